"""Core utilities shared across ytanalytics."""

from ytanalytics.core.logging import get_logger, setup_logging


__all__ = ["get_logger", "setup_logging"]

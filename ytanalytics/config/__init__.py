"""Configuration for ytanalytics."""

from .auth import AuthSettings
from .core import HTTPSettings, LoggingSettings, RetrySettings, YouTubeSettings
from .settings import ConfigurationError, Settings, find_toml_config_file


__all__ = [
    "AuthSettings",
    "ConfigurationError",
    "HTTPSettings",
    "LoggingSettings",
    "RetrySettings",
    "Settings",
    "YouTubeSettings",
    "find_toml_config_file",
]

"""Remote API access: client, classification, retry and caching."""

from .cache import AuthenticatedClientCache
from .client import AnalyticsQuery, YouTubeClient
from .errors import (
    AuthFailedError,
    ClassifiedError,
    ErrorKind,
    QuotaExceededError,
    RateLimitError,
    RemoteCallError,
    YouTubeAPIError,
    classify_error,
    classify_exception,
)
from .resilience import ResilientInvoker


__all__ = [
    "AnalyticsQuery",
    "AuthFailedError",
    "AuthenticatedClientCache",
    "ClassifiedError",
    "ErrorKind",
    "QuotaExceededError",
    "RateLimitError",
    "RemoteCallError",
    "ResilientInvoker",
    "YouTubeAPIError",
    "YouTubeClient",
    "classify_error",
    "classify_exception",
]

"""Classification of remote API failures."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import httpx


class ErrorKind(str, Enum):
    QUOTA_EXCEEDED = "QuotaExceeded"
    RATE_LIMITED = "RateLimited"
    AUTH_FAILED = "AuthFailed"
    UNKNOWN = "Unknown"


@dataclass(frozen=True, slots=True)
class ClassifiedError:
    kind: ErrorKind
    retryable: bool
    message: str
    status_code: int | None = None


def classify_error(status_code: int | None, message: str) -> ClassifiedError:
    """Map a failed call's status code and message to a ClassifiedError.

    Rules are checked in order; message matching is case-insensitive.
    """
    text = message.lower()
    if status_code == 403 and "quota" in text:
        return ClassifiedError(ErrorKind.QUOTA_EXCEEDED, False, message, status_code)
    if status_code == 403 and "rate" in text:
        return ClassifiedError(ErrorKind.RATE_LIMITED, True, message, status_code)
    if status_code == 429:
        return ClassifiedError(ErrorKind.RATE_LIMITED, True, message, status_code)
    if status_code == 401:
        return ClassifiedError(ErrorKind.AUTH_FAILED, False, message, status_code)
    return ClassifiedError(ErrorKind.UNKNOWN, False, message, status_code)


@dataclass(slots=True, eq=False)
class YouTubeAPIError(Exception):
    """Raw error response from a YouTube endpoint."""

    status_code: int
    message: str
    reasons: list[str] = field(default_factory=list)

    def __str__(self) -> str:
        return f"HTTP {self.status_code}: {self.message}"

    @property
    def classification_text(self) -> str:
        if not self.reasons:
            return self.message
        return f"{', '.join(self.reasons)}: {self.message}"

    @classmethod
    def from_response(cls, response: httpx.Response) -> "YouTubeAPIError":
        """Build from a Google JSON error body, falling back to the reason phrase."""
        message = response.reason_phrase or "Request failed"
        reasons: list[str] = []
        try:
            payload: Any = response.json()
        except ValueError:
            payload = None
        error = payload.get("error") if isinstance(payload, dict) else None
        if isinstance(error, dict):
            message = str(error.get("message") or message)
            for item in error.get("errors") or []:
                if isinstance(item, dict) and item.get("reason"):
                    reasons.append(str(item["reason"]))
        elif isinstance(error, str):
            message = error
        return cls(response.status_code, message, reasons)


class RemoteCallError(Exception):
    """Terminal failure of a remote call, carrying its classification."""

    def __init__(self, classified: ClassifiedError, message: str | None = None):
        super().__init__(message or classified.message)
        self.classified = classified

    @property
    def kind(self) -> ErrorKind:
        return self.classified.kind

    @property
    def status_code(self) -> int | None:
        return self.classified.status_code


class QuotaExceededError(RemoteCallError):
    def __init__(self, classified: ClassifiedError):
        super().__init__(
            classified, f"YouTube API quota exceeded: {classified.message}"
        )


class RateLimitError(RemoteCallError):
    def __init__(self, classified: ClassifiedError):
        super().__init__(
            classified, f"YouTube API rate limit exceeded: {classified.message}"
        )


class AuthFailedError(RemoteCallError):
    def __init__(self, classified: ClassifiedError):
        super().__init__(
            classified,
            "Authentication failed. Please re-authenticate.",
        )


def classify_exception(exc: BaseException) -> ClassifiedError:
    """Classify any exception raised by a remote action."""
    if isinstance(exc, RemoteCallError):
        return exc.classified
    if isinstance(exc, YouTubeAPIError):
        return classify_error(exc.status_code, exc.classification_text)
    if isinstance(exc, httpx.HTTPStatusError):
        return classify_error(exc.response.status_code, exc.response.text)
    if isinstance(exc, httpx.TransportError):
        return classify_error(None, f"Network error: {exc}")
    return classify_error(None, str(exc) or type(exc).__name__)


def to_terminal_error(classified: ClassifiedError) -> RemoteCallError:
    """Typed exception for a classification."""
    if classified.kind is ErrorKind.QUOTA_EXCEEDED:
        return QuotaExceededError(classified)
    if classified.kind is ErrorKind.RATE_LIMITED:
        return RateLimitError(classified)
    if classified.kind is ErrorKind.AUTH_FAILED:
        return AuthFailedError(classified)
    return RemoteCallError(classified)

"""Core configuration sections: logging, HTTP, retry and API endpoints."""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator


class LoggingSettings(BaseModel):
    """Logging configuration."""

    level: str = Field(default="WARNING", description="Root log level")
    format: Literal["console", "json"] = Field(
        default="console", description="Renderer used for stderr output"
    )
    file: Path | None = Field(
        default=None, description="Optional file receiving JSON log lines"
    )

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log level: {v}")
        return level


class HTTPSettings(BaseModel):
    """Shared httpx client configuration."""

    timeout: float = Field(
        default=30.0, gt=0, description="Request timeout in seconds"
    )
    verify: bool = Field(default=True, description="Verify TLS certificates")


class RetrySettings(BaseModel):
    """Bounded retry policy for remote API calls."""

    max_attempts: int = Field(
        default=3, ge=1, description="Total attempts, including the first one"
    )
    base_delay: float = Field(
        default=1.0,
        gt=0,
        description="Delay unit; attempt n waits base_delay * 2**n seconds",
    )
    jitter_ratio: float = Field(
        default=0.2,
        ge=0.0,
        le=1.0,
        description="Upper bound of random extra delay as a fraction of the backoff",
    )


class YouTubeSettings(BaseModel):
    """Remote API endpoints."""

    data_api_url: str = Field(
        default="https://www.googleapis.com/youtube/v3",
        description="YouTube Data API base URL",
    )
    analytics_api_url: str = Field(
        default="https://youtubeanalytics.googleapis.com/v2",
        description="YouTube Analytics API base URL",
    )

"""Credential and OAuth configuration."""

import os
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field


DEFAULT_SCOPES = [
    "https://www.googleapis.com/auth/youtube.readonly",
    "https://www.googleapis.com/auth/yt-analytics.readonly",
    "https://www.googleapis.com/auth/youtubepartner",
]


def get_config_dir() -> Path:
    """Return the per-user configuration directory."""
    xdg = os.environ.get("XDG_CONFIG_HOME")
    base = Path(xdg) if xdg else Path.home() / ".config"
    return base / "ytanalytics"


class AuthSettings(BaseModel):
    """Credential storage, refresh policy and consent flow settings."""

    credentials_file: Path = Field(
        default_factory=lambda: get_config_dir() / "token.json",
        description="Persisted credential record",
    )
    client_secrets_file: Path = Field(
        default_factory=lambda: get_config_dir() / "credentials.json",
        description="OAuth client configuration downloaded from the Google console",
    )
    scopes: list[str] = Field(
        default_factory=lambda: list(DEFAULT_SCOPES),
        description="Scopes requested during interactive sign-in",
    )

    refresh_margin_seconds: float = Field(
        default=300.0,
        ge=0,
        description="Refresh when fewer than this many seconds of validity remain",
    )
    refresh_policy: Literal["reactive", "proactive"] = Field(
        default="reactive",
        description="'proactive' also refreshes once proactive_refresh_ratio of the lifetime has elapsed",
    )
    proactive_refresh_ratio: float = Field(default=0.5, gt=0, lt=1)

    allow_interactive: bool = Field(
        default=True,
        description="Allow get_valid() to start the browser consent flow",
    )
    open_browser: bool = Field(
        default=True, description="Launch the system browser for consent"
    )
    callback_host: str = Field(default="localhost")
    callback_port: int = Field(
        default=0, ge=0, le=65535, description="0 picks a free port"
    )
    callback_timeout: float = Field(
        default=300.0, gt=0, description="Seconds to wait for the consent callback"
    )

    auth_uri: str = "https://accounts.google.com/o/oauth2/v2/auth"
    token_uri: str = "https://oauth2.googleapis.com/token"
    revoke_uri: str = "https://oauth2.googleapis.com/revoke"

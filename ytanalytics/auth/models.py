"""Data models for credentials and OAuth exchanges."""

import json
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, SecretStr, ValidationError, field_validator

from .exceptions import ClientConfigError


def _preview(secret: SecretStr | None) -> str:
    if secret is None:
        return "None"
    value = secret.get_secret_value()
    return f"{value[:4]}...{value[-4:]}" if len(value) > 16 else "***"


class TokenGrant(BaseModel):
    """Token endpoint response."""

    access_token: SecretStr
    expires_in: int | None = None
    refresh_token: SecretStr | None = None
    scope: str | None = None
    token_type: str = "Bearer"

    def expiry_date(self, now: float) -> int | None:
        """Absolute expiry in epoch milliseconds, relative to ``now`` seconds."""
        if self.expires_in is None:
            return None
        return int((now + self.expires_in) * 1000)


class Credential(BaseModel):
    """A delegated access grant held in memory.

    Mutated in place on every successful refresh.
    """

    client_id: str
    client_secret: SecretStr
    refresh_token: SecretStr | None = None
    access_token: SecretStr | None = None
    expiry_date: int | None = Field(
        default=None, description="Access token expiry in epoch milliseconds"
    )

    @field_validator("expiry_date", mode="before")
    @classmethod
    def coerce_expiry(cls, v: Any) -> Any:
        if isinstance(v, float):
            return int(v)
        return v

    def __repr__(self) -> str:
        return (
            f"Credential(client_id='{self.client_id}', "
            f"access_token='{_preview(self.access_token)}', "
            f"refresh_token='{_preview(self.refresh_token)}', "
            f"expires_at={self.expires_at_datetime})"
        )

    __str__ = __repr__

    @property
    def can_refresh(self) -> bool:
        return self.refresh_token is not None and bool(
            self.refresh_token.get_secret_value()
        )

    @property
    def expires_at_datetime(self) -> datetime | None:
        if self.expiry_date is None:
            return None
        return datetime.fromtimestamp(self.expiry_date / 1000, tz=UTC)

    def seconds_until_expiry(self, now: float) -> float | None:
        """Seconds of validity left, negative once expired."""
        if self.expiry_date is None:
            return None
        return self.expiry_date / 1000 - now

    def has_valid_access_token(self, now: float, margin: float = 0.0) -> bool:
        """True when an access token exists and outlives ``now + margin``.

        A token without a known expiry is treated as expired.
        """
        if self.access_token is None:
            return False
        remaining = self.seconds_until_expiry(now)
        return remaining is not None and remaining > margin

    def apply_grant(self, grant: TokenGrant, now: float) -> None:
        """Update tokens from a refresh exchange."""
        self.access_token = grant.access_token
        self.expiry_date = grant.expiry_date(now)
        if grant.refresh_token is not None:
            self.refresh_token = grant.refresh_token

    def to_record(self) -> "CredentialRecord":
        return CredentialRecord(
            client_id=self.client_id,
            client_secret=self.client_secret.get_secret_value(),
            refresh_token=(
                self.refresh_token.get_secret_value() if self.refresh_token else None
            ),
            access_token=(
                self.access_token.get_secret_value() if self.access_token else None
            ),
            expiry_date=self.expiry_date,
        )

    @classmethod
    def from_record(cls, record: "CredentialRecord") -> "Credential":
        return cls.model_validate(record.model_dump(exclude={"type"}))


class CredentialRecord(BaseModel):
    """On-disk form of a credential."""

    type: Literal["authorized_user"] = "authorized_user"
    client_id: str
    client_secret: str
    refresh_token: str | None = None
    access_token: str | None = None
    expiry_date: int | None = None

    @field_validator("expiry_date", mode="before")
    @classmethod
    def coerce_expiry(cls, v: Any) -> Any:
        if isinstance(v, float):
            return int(v)
        return v

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class OAuthClientConfig(BaseModel):
    """OAuth client identity from the Google console download."""

    client_id: str
    client_secret: SecretStr
    redirect_uris: list[str] = Field(default_factory=list)
    auth_uri: str | None = None
    token_uri: str | None = None

    @classmethod
    def from_file(cls, path: Path) -> "OAuthClientConfig":
        """Read a client secrets file with an ``installed`` or ``web`` section.

        Raises:
            ClientConfigError: If the file is missing or malformed
        """
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError as e:
            raise ClientConfigError(
                f"OAuth client configuration not found at {path}. "
                "Download it from the Google Cloud console."
            ) from e
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ClientConfigError(
                f"Cannot read OAuth client configuration {path}: {e}"
            ) from e

        section = None
        if isinstance(data, dict):
            section = data.get("installed") or data.get("web")
        if not isinstance(section, dict):
            raise ClientConfigError(
                f"OAuth client configuration {path} has no 'installed' or 'web' section"
            )
        try:
            return cls.model_validate(section)
        except ValidationError as e:
            raise ClientConfigError(
                f"Invalid OAuth client configuration {path}: "
                f"{e.error_count()} validation error(s)"
            ) from e

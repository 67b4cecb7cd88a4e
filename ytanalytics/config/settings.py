import os
import tomllib
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from structlog import get_logger

from .auth import AuthSettings, get_config_dir
from .core import HTTPSettings, LoggingSettings, RetrySettings, YouTubeSettings


__all__ = ["Settings", "ConfigurationError", "find_toml_config_file"]

ENV_PREFIX = "YTANALYTICS_"


class ConfigurationError(Exception):
    """Raised when configuration loading or validation fails."""

    pass


def find_toml_config_file() -> Path | None:
    """Locate a TOML config file.

    Checked in order: ``.ytanalytics.toml`` in the current directory, then
    ``config.toml`` in the per-user configuration directory.
    """
    candidates = [Path.cwd() / ".ytanalytics.toml", get_config_dir() / "config.toml"]
    for candidate in candidates:
        if candidate.is_file():
            return candidate
    return None


class Settings(BaseSettings):
    """
    Configuration for ytanalytics.

    Values come from keyword arguments, ``YTANALYTICS_``-prefixed environment
    variables (nested with ``__``, e.g. ``YTANALYTICS_AUTH__CREDENTIALS_FILE``),
    a ``.env`` file and finally an optional TOML file.
    """

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_nested_delimiter="__",
    )

    auth: AuthSettings = Field(
        default_factory=AuthSettings,
        description="Credential storage and OAuth settings",
    )
    retry: RetrySettings = Field(
        default_factory=RetrySettings,
        description="Remote call retry policy",
    )
    http: HTTPSettings = Field(
        default_factory=HTTPSettings,
        description="HTTP client configuration",
    )
    youtube: YouTubeSettings = Field(
        default_factory=YouTubeSettings,
        description="YouTube API endpoints",
    )
    logging: LoggingSettings = Field(
        default_factory=LoggingSettings,
        description="Logging configuration",
    )

    @classmethod
    def load_toml_config(cls, toml_path: Path) -> dict[str, Any]:
        """Load configuration from a TOML file."""
        try:
            with toml_path.open("rb") as f:
                return tomllib.load(f)
        except OSError as e:
            raise ConfigurationError(
                f"Cannot read TOML config file {toml_path}: {e}"
            ) from e
        except tomllib.TOMLDecodeError as e:
            raise ConfigurationError(f"Invalid TOML syntax in {toml_path}: {e}") from e

    @classmethod
    def from_config(
        cls, config_path: Path | str | None = None, **kwargs: Any
    ) -> "Settings":
        """Create settings, layering a TOML file underneath env and kwargs."""
        if isinstance(config_path, str):
            config_path = Path(config_path)
        if config_path is None:
            config_path = find_toml_config_file()

        settings = cls(**kwargs)
        if config_path is None:
            return settings
        if not config_path.exists():
            raise ConfigurationError(f"Config file not found: {config_path}")

        config_data = cls.load_toml_config(config_path)
        get_logger(__name__).info("config_file_loaded", path=str(config_path))

        for section, values in config_data.items():
            current = getattr(settings, section, None)
            if not isinstance(current, BaseModel) or not isinstance(values, dict):
                continue
            explicit = kwargs.get(section)
            if isinstance(explicit, BaseModel):
                continue
            explicit_keys = set(explicit) if isinstance(explicit, dict) else set()
            updates = {
                key: value
                for key, value in values.items()
                if key not in explicit_keys
                and os.getenv(f"{ENV_PREFIX}{section.upper()}__{key.upper()}") is None
            }
            if updates:
                try:
                    merged = type(current).model_validate(
                        {**current.model_dump(), **updates}
                    )
                except ValueError as e:
                    raise ConfigurationError(
                        f"Invalid [{section}] section in {config_path}: {e}"
                    ) from e
                setattr(settings, section, merged)

        return settings

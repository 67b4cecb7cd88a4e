"""Shared helpers for CLI commands."""

import asyncio
import contextlib
import signal
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import TypeVar

import typer
from structlog import get_logger

from ytanalytics.config.settings import ConfigurationError, Settings
from ytanalytics.services.container import ServiceContainer


logger = get_logger(__name__)

T = TypeVar("T")


def get_config_path(ctx: typer.Context) -> Path | None:
    root = ctx.find_root()
    if isinstance(root.obj, dict):
        path = root.obj.get("config_path")
        return path if isinstance(path, Path) else None
    return None


def load_settings(ctx: typer.Context) -> Settings:
    """Return the settings loaded by the root command, loading them if absent."""
    root = ctx.find_root()
    if isinstance(root.obj, dict) and isinstance(root.obj.get("settings"), Settings):
        return root.obj["settings"]
    try:
        return Settings.from_config(get_config_path(ctx))
    except ConfigurationError as e:
        typer.secho(f"Configuration error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(2) from e


def run_with_container(
    settings: Settings, func: Callable[[ServiceContainer], Awaitable[T]]
) -> T:
    """Run ``func`` with a container, closing it and honouring SIGTERM."""

    async def _main() -> T:
        async with ServiceContainer(settings) as container:
            loop = asyncio.get_running_loop()
            with contextlib.suppress(NotImplementedError, RuntimeError):
                loop.add_signal_handler(signal.SIGTERM, container.shutdown)
            try:
                return await func(container)
            finally:
                with contextlib.suppress(NotImplementedError, RuntimeError):
                    loop.remove_signal_handler(signal.SIGTERM)

    return asyncio.run(_main())

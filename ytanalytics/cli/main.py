"""Command line entry point for ytanalytics."""

from pathlib import Path

import typer

from ytanalytics import __version__
from ytanalytics.core.logging import setup_logging

from .commands.auth import app as auth_app
from .commands.tools import app as tools_app
from .helpers import load_settings


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"ytanalytics {__version__}")
        raise typer.Exit()


app = typer.Typer(
    rich_markup_mode="rich",
    add_completion=False,
    no_args_is_help=True,
    pretty_exceptions_enable=False,
)


@app.callback()
def app_main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    config: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to a TOML configuration file",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
    log_level: str | None = typer.Option(
        None, "--log-level", help="Log level for stderr output [default: from config]"
    ),
    json_logs: bool | None = typer.Option(
        None,
        "--json-logs/--console-logs",
        help="Emit logs as JSON lines [default: from config]",
    ),
) -> None:
    """YouTube Analytics access with managed OAuth credentials."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config
    settings = load_settings(ctx)
    ctx.obj["settings"] = settings

    logging_settings = settings.logging
    if json_logs is None:
        json_logs = logging_settings.format == "json"
    setup_logging(
        json_logs=json_logs,
        log_level_name=log_level or logging_settings.level,
        log_file=logging_settings.file,
    )


app.add_typer(auth_app)
app.add_typer(tools_app)


def main() -> None:
    app()

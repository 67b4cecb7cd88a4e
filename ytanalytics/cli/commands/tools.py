"""Commands for listing and invoking tools."""

import json
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from ytanalytics.cli.helpers import load_settings, run_with_container
from ytanalytics.tools import create_registry


app = typer.Typer(name="tools", help="List and invoke YouTube tools")

console = Console()


def parse_arguments(pairs: list[str], raw_json: str | None) -> dict[str, Any]:
    """Merge ``--json`` with ``key=value`` pairs; values are JSON when they parse."""
    arguments: dict[str, Any] = {}
    if raw_json:
        try:
            loaded = json.loads(raw_json)
        except json.JSONDecodeError as e:
            raise typer.BadParameter(f"Invalid JSON: {e}", param_hint="--json") from e
        if not isinstance(loaded, dict):
            raise typer.BadParameter("Expected a JSON object", param_hint="--json")
        arguments.update(loaded)

    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"Expected key=value, got '{pair}'", param_hint="--arg")
        try:
            arguments[key] = json.loads(value)
        except json.JSONDecodeError:
            arguments[key] = value
    return arguments


@app.command(name="list")
def list_command() -> None:
    """List available tools."""
    table = Table(title="Tools")
    table.add_column("Name", style="cyan")
    table.add_column("Category", style="white")
    table.add_column("Description", style="dim")
    for tool in create_registry().list_tools():
        table.add_row(tool.name, tool.category, tool.description)
    console.print(table)


@app.command(name="call")
def call_command(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Tool name"),
    arg: list[str] = typer.Option(
        [], "--arg", "-a", help="Argument as key=value (repeatable)"
    ),
    raw_json: str | None = typer.Option(
        None, "--json", help="Arguments as a JSON object"
    ),
) -> None:
    """Invoke a tool and print its text result."""
    arguments = parse_arguments(arg, raw_json)
    settings = load_settings(ctx)
    registry = create_registry()

    result = run_with_container(
        settings, lambda container: registry.dispatch(name, arguments, container)
    )
    typer.echo(result.text, err=result.is_error)
    if result.is_error:
        raise typer.Exit(1)

"""Authentication and credential management commands."""

import typer
from rich import box
from rich.console import Console
from rich.table import Table
from structlog import get_logger

from ytanalytics.auth.exceptions import CredentialsError
from ytanalytics.cli.helpers import load_settings, run_with_container
from ytanalytics.services.container import ServiceContainer


app = typer.Typer(name="auth", help="Authentication and credential management")

console = Console()
logger = get_logger(__name__)


@app.command(name="login")
def login_command(
    ctx: typer.Context,
    no_browser: bool = typer.Option(
        False, "--no-browser", help="Print the consent URL instead of opening it"
    ),
) -> None:
    """Sign in through the browser and store the credential."""
    settings = load_settings(ctx)
    if no_browser:
        settings.auth.open_browser = False

    async def _login(container: ServiceContainer) -> str | None:
        credential = await container.get_credential_manager().acquire()
        container.get_client_cache().invalidate()
        expires_at = credential.expires_at_datetime
        return expires_at.isoformat() if expires_at else None

    console.print("Opening browser for Google sign-in...")
    try:
        expires_at = run_with_container(settings, _login)
    except CredentialsError as e:
        console.print(f"[red]✗[/red] Login failed: {e}")
        raise typer.Exit(1) from e

    console.print("[green]✓[/green] Authentication successful")
    if expires_at:
        console.print(f"  Token expires: {expires_at}")
    console.print(f"  Stored at: {settings.auth.credentials_file}")


@app.command(name="status")
def status_command(ctx: typer.Context) -> None:
    """Show whether a usable credential is stored."""
    settings = load_settings(ctx)

    async def _status(container: ServiceContainer) -> dict[str, object]:
        return await container.get_credential_manager().get_auth_status()

    status = run_with_container(settings, _status)

    if status["authenticated"]:
        console.print("[green]✓[/green] Authenticated")
    else:
        console.print("[red]✗[/red] Not authenticated")
        console.print("  Run 'ytanalytics auth login' to authenticate")

    table = Table(show_header=False, box=box.SIMPLE)
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="white")
    labels = {
        "expires_at": "Token expires",
        "expires_in": "Expires in (s)",
        "can_refresh": "Refreshable",
        "refresh_policy": "Refresh policy",
        "storage_location": "Stored at",
        "reason": "Reason",
    }
    for key, label in labels.items():
        if key in status:
            table.add_row(label, str(status[key]))
    console.print(table)


@app.command(name="revoke")
def revoke_command(
    ctx: typer.Context,
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Revoke the credential remotely and delete it locally."""
    settings = load_settings(ctx)
    if not yes and not typer.confirm("Revoke access and remove stored credentials?"):
        console.print("Revoke cancelled.")
        raise typer.Exit(0)

    try:
        revoked = run_with_container(settings, lambda c: c.revoke())
    except CredentialsError as e:
        console.print(f"[red]✗[/red] Revoke failed: {e}")
        raise typer.Exit(1) from e

    if revoked:
        console.print("[green]✓[/green] Access revoked and credentials removed.")
    else:
        console.print(
            "[yellow]![/yellow] Local credentials removed; "
            "remote revocation could not be confirmed."
        )

"""Authentication tools."""

from ytanalytics.services.container import ServiceContainer

from .registry import NoArguments, ToolConfig


async def check_auth_status(_: NoArguments, container: ServiceContainer) -> str:
    authenticated = await container.is_authenticated()
    return (
        f"Authentication Status: {'Authenticated' if authenticated else 'Not Authenticated'}"
    )


async def revoke_auth(_: NoArguments, container: ServiceContainer) -> str:
    await container.revoke()
    return (
        "Authentication revoked successfully. "
        "You will need to re-authenticate to use YouTube tools."
    )


AUTH_TOOLS = [
    ToolConfig(
        name="check_auth_status",
        description="Check if the user is authenticated with YouTube",
        category="authentication",
        handler=check_auth_status,
        error_prefix="Error checking auth status",
    ),
    ToolConfig(
        name="revoke_auth",
        description="Revoke YouTube authentication and remove stored tokens",
        category="authentication",
        handler=revoke_auth,
        error_prefix="Error revoking authentication",
    ),
]

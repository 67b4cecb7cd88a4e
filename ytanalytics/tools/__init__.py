"""Tools exposed to callers."""

from .auth import AUTH_TOOLS
from .public import PUBLIC_TOOLS
from .registry import ToolConfig, ToolRegistry, ToolResult
from .reports import REPORT_TOOLS
from .server import SERVER_TOOLS
from .youtube import YOUTUBE_TOOLS


def create_registry() -> ToolRegistry:
    """Registry holding every built-in tool."""
    registry = ToolRegistry()
    for tool in [
        *AUTH_TOOLS,
        *YOUTUBE_TOOLS,
        *REPORT_TOOLS,
        *PUBLIC_TOOLS,
        *SERVER_TOOLS,
    ]:
        registry.register(tool)
    return registry


__all__ = ["ToolConfig", "ToolRegistry", "ToolResult", "create_registry"]

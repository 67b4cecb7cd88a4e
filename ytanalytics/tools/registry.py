"""Registry and dispatch for tool handlers."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError
from structlog import get_logger

from ytanalytics.api.errors import RemoteCallError
from ytanalytics.auth.exceptions import CredentialsError
from ytanalytics.services.container import ServiceContainer


logger = get_logger(__name__)


class NoArguments(BaseModel):
    model_config = ConfigDict(extra="forbid")


@dataclass(frozen=True, slots=True)
class ToolResult:
    text: str
    is_error: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Content-block form used by tool transports."""
        result: dict[str, Any] = {"content": [{"type": "text", "text": self.text}]}
        if self.is_error:
            result["isError"] = True
        return result


ToolHandler = Callable[[Any, ServiceContainer], Awaitable[str]]


@dataclass(frozen=True, slots=True)
class ToolConfig:
    name: str
    description: str
    category: str
    handler: ToolHandler
    arguments: type[BaseModel] = NoArguments
    error_prefix: str = "Error"


class ToolRegistry:
    """Named tools with argument validation and uniform error results."""

    def __init__(self) -> None:
        self._tools: dict[str, ToolConfig] = {}

    def register(self, tool: ToolConfig) -> None:
        if tool.name in self._tools:
            raise ValueError(f"Tool already registered: {tool.name}")
        self._tools[tool.name] = tool

    def get(self, name: str) -> ToolConfig | None:
        return self._tools.get(name)

    def list_tools(self) -> list[ToolConfig]:
        return sorted(self._tools.values(), key=lambda t: (t.category, t.name))

    async def dispatch(
        self,
        name: str,
        arguments: dict[str, Any] | None,
        container: ServiceContainer,
    ) -> ToolResult:
        """Validate arguments, run the handler and convert failures to results."""
        tool = self._tools.get(name)
        if tool is None:
            return ToolResult(f"Error: Unknown tool '{name}'", is_error=True)

        try:
            params = tool.arguments.model_validate(arguments or {})
        except ValidationError as e:
            details = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'arguments'}: {err['msg']}"
                for err in e.errors()
            )
            return ToolResult(f"Invalid arguments for {name}: {details}", is_error=True)

        try:
            text = await tool.handler(params, container)
        except (CredentialsError, RemoteCallError) as e:
            logger.warning(
                "tool_failed", tool=name, error_type=type(e).__name__, error=str(e)
            )
            return ToolResult(f"{tool.error_prefix}: {e}", is_error=True)

        logger.debug("tool_completed", tool=name)
        return ToolResult(text)

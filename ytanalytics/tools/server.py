"""Server information tool."""

import json
from typing import Literal

from pydantic import BaseModel, ConfigDict

from ytanalytics import __version__
from ytanalytics.services.container import ServiceContainer

from .registry import ToolConfig


class ServerInfoArguments(BaseModel):
    model_config = ConfigDict(extra="forbid")

    format: Literal["text", "json"] = "text"


async def get_server_info(
    args: ServerInfoArguments, container: ServiceContainer
) -> str:
    info = {
        "name": "ytanalytics",
        "version": __version__,
        "status": (
            "shutting_down" if container.get_invoker().is_shutting_down else "running"
        ),
        "authenticated": await container.is_authenticated(),
        "description": "YouTube Data and Analytics access with managed OAuth credentials",
    }
    if args.format == "json":
        return json.dumps(info, indent=2)
    return "\n".join(
        [
            f"Server: {info['name']}",
            f"Version: {info['version']}",
            f"Status: {info['status']}",
            f"Authenticated: {'yes' if info['authenticated'] else 'no'}",
            f"Description: {info['description']}",
        ]
    )


SERVER_TOOLS = [
    ToolConfig(
        name="get_server_info",
        description="Version and status of this ytanalytics instance",
        category="server",
        handler=get_server_info,
        arguments=ServerInfoArguments,
    ),
]

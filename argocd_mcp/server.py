"""MCP server wiring for the Argo CD tools.

Run over stdio:
  argocd-mcp serve
"""

from __future__ import annotations

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from .log import get_logger
from .tools import ToolManager

logger = get_logger("server")

SERVER_NAME = "argocd-mcp"


class ToolCallError(Exception):
    """Raised from the call_tool handler so the SDK reports ``isError``."""


def build_server(manager: ToolManager, name: str = SERVER_NAME) -> Server:
    """Create an MCP server that serves ``manager``'s tools."""
    app = Server(name)

    @app.list_tools()
    async def list_tools() -> list[Tool]:
        return manager.list_tools()

    @app.call_tool()
    async def call_tool(name: str, arguments: dict | None) -> list[TextContent]:
        outcome = await manager.call_tool(name, arguments)
        if outcome.isError:
            raise ToolCallError(
                "\n".join(c.text for c in outcome.content if isinstance(c, TextContent))
            )
        return list(outcome.content)

    return app


async def run_stdio(manager: ToolManager, endpoint: str = "stdio") -> None:
    """Serve over stdio until the client disconnects.

    stdio is the only transport; any other ``endpoint`` is logged and ignored.
    """
    if endpoint != "stdio":
        logger.warning("server.unsupported_endpoint", endpoint=endpoint, using="stdio")

    app = build_server(manager)
    logger.info(
        "server.starting",
        transport="stdio",
        tools=len(manager.list_tools()),
        safe_mode=manager.safe_mode,
    )
    async with stdio_server() as (read_stream, write_stream):
        await app.run(read_stream, write_stream, app.create_initialization_options())
    logger.info("server.stopped", stats=manager.stats.to_dict())

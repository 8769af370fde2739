"""MCP server exposing the tool registry.

Creates and configures the low-level MCP server with:
    - Dynamic tool listing and invocation backed by ToolRegistry
    - A documentation resource describing how to write tools
    - ``tools/list_changed`` notifications whenever a tool file changes
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from importlib import resources
from typing import Any

import mcp.server.stdio
import mcp.types as types
from mcp.server.lowlevel import NotificationOptions, Server
from mcp.server.lowlevel.helper_types import ReadResourceContents
from mcp.server.session import ServerSession

from trinity import __version__
from trinity.capabilities.notifier import FileChange
from trinity.core.console import get_logger
from trinity.core.result import NotFoundError, ToolExecutionError, TrinityError
from trinity.core.runtime import RuntimeContext
from trinity.mcp.formatting import Content, format_tool_result, structured_content

logger = get_logger(__name__)

SERVER_NAME = "trinity"
DOCS_URI = "trinity://docs/tools"
DOCS_RESOURCE = "TOOLS.md"

# Content blocks plus the optional structuredContent payload.
ToolOutput = tuple[list[Content], dict[str, Any] | None]


def read_tool_docs() -> str:
    return resources.files("trinity").joinpath("docs", DOCS_RESOURCE).read_text(encoding="utf-8")


class TrinityServer:
    """Bind a RuntimeContext to an MCP server instance."""

    def __init__(self, runtime: RuntimeContext) -> None:
        self.runtime = runtime
        self.registry = runtime.registry
        self.server = Server(SERVER_NAME, version=__version__)
        self._sessions: list[ServerSession] = []
        self._register_handlers()
        self.registry.on_change(self.on_tools_changed)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def _register_handlers(self) -> None:
        server = self.server

        @server.list_tools()
        async def _list_tools() -> list[types.Tool]:
            self._remember_session()
            return await self.list_tools()

        @server.call_tool()
        async def _call_tool(name: str, arguments: dict[str, Any] | None) -> ToolOutput:
            self._remember_session()
            return await self.call_tool(name, arguments)

        @server.list_resources()
        async def _list_resources() -> list[types.Resource]:
            self._remember_session()
            return self.list_resources()

        @server.read_resource()
        async def _read_resource(uri: Any) -> Iterable[ReadResourceContents]:
            self._remember_session()
            return self.read_resource(str(uri))

    async def list_tools(self) -> list[types.Tool]:
        logger.debug("Handling list_tools request")
        definitions = await self.registry.load_tools()
        tools = [
            types.Tool(
                name=definition.name,
                description=definition.description,
                inputSchema=definition.json_schema(),
            )
            for definition in definitions
        ]
        logger.debug("Returning %d tools", len(tools))
        return tools

    async def call_tool(self, name: str, arguments: dict[str, Any] | None) -> ToolOutput:
        logger.info("Calling tool %s", name)
        try:
            tool = await self.registry.load_tool(name)
            raw = await tool.execute(arguments or {})
        except asyncio.CancelledError:
            raise
        except TrinityError as exc:
            logger.error("Tool execution failed: %s", exc)
            raise ToolExecutionError(f"Error: {exc.message}") from exc
        except Exception as exc:
            logger.exception("Unhandled error in tool %s", name)
            raise ToolExecutionError(f"Error: {exc}") from exc
        logger.debug("Tool %s executed successfully", name)
        return format_tool_result(raw), structured_content(raw)

    def list_resources(self) -> list[types.Resource]:
        return [
            types.Resource(
                uri=DOCS_URI,
                name="How to implement/define Tools",
                description=(
                    "Guide for creating and managing tools with trinity, including schemas, "
                    "hot reload, and best practices"
                ),
                mimeType="text/markdown",
            )
        ]

    def read_resource(self, uri: str) -> list[ReadResourceContents]:
        logger.info("Reading resource %s", uri)
        if uri != DOCS_URI:
            raise NotFoundError(f"Resource not found: {uri}", context={"uri": uri})
        try:
            content = read_tool_docs()
        except OSError as exc:
            logger.error("Failed to read resource %s: %s", uri, exc)
            raise ToolExecutionError(f"Failed to read resource: {exc}") from exc
        return [ReadResourceContents(content=content, mime_type="text/markdown")]

    # ------------------------------------------------------------------
    # Change notification
    # ------------------------------------------------------------------

    def _remember_session(self) -> None:
        try:
            session = self.server.request_context.session
        except LookupError:
            return
        if session not in self._sessions:
            self._sessions.append(session)

    async def on_tools_changed(self, change: FileChange) -> None:
        logger.info("Tools changed (%s %s), notifying clients", change.kind, change.path)
        for session in list(self._sessions):
            try:
                await session.send_tool_list_changed()
            except Exception as exc:
                logger.error("Failed to send tool list changed notification: %s", exc)
                self._sessions.remove(session)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def initialization_options(self) -> Any:
        return self.server.create_initialization_options(
            notification_options=NotificationOptions(tools_changed=True, resources_changed=True),
        )

    async def run_stdio(self) -> None:
        config = self.runtime.config
        logger.info(
            "Starting server (target=%s, glob=%s, trace=%s)",
            config.target_folder,
            config.glob,
            self.runtime.trace_id,
        )
        await self.registry.load_tools()
        self.registry.start_watching()
        try:
            async with mcp.server.stdio.stdio_server() as (read_stream, write_stream):
                logger.info("Server started successfully")
                await self.server.run(read_stream, write_stream, self.initialization_options())
        finally:
            logger.info("Stopping server...")
            await self.runtime.aclose()
            logger.info("Server stopped")


def create_server(runtime: RuntimeContext) -> TrinityServer:
    return TrinityServer(runtime)


__all__ = ["DOCS_URI", "SERVER_NAME", "TrinityServer", "create_server", "read_tool_docs"]

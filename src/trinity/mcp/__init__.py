"""MCP protocol layer: serves the tool registry over stdio."""

from __future__ import annotations

from trinity.mcp.formatting import format_tool_result, structured_content
from trinity.mcp.server import TrinityServer, create_server

__all__ = ["TrinityServer", "create_server", "format_tool_result", "structured_content"]

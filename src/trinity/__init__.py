"""trinity - a hot-reloading MCP tool server.

Tools are plain Python files in a target folder. trinity discovers them,
validates them, caches them, and reloads them as soon as they change on disk.

Exports:
    __version__: Package version string.
"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"

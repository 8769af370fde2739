"""Capabilities package - tool discovery, loading, caching and hot reload.

This package owns the only stateful part of trinity: the registry of tool
files under the target folder and the machinery that keeps it current.
"""

from __future__ import annotations

from trinity.capabilities.glob import GlobMatcher
from trinity.capabilities.loader import ToolDefinition, UnitLoader
from trinity.capabilities.notifier import ChangeNotifier, FileChange
from trinity.capabilities.registry import ToolRegistry
from trinity.capabilities.watcher import ToolWatcher

__all__ = [
    "ChangeNotifier",
    "FileChange",
    "GlobMatcher",
    "ToolDefinition",
    "ToolRegistry",
    "ToolWatcher",
    "UnitLoader",
]

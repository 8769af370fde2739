"""
Runtime wiring for trinity.

Every long-lived object is built exactly once here and handed to whoever
needs it; nothing is reachable through module-level globals.

Usage:
    from trinity.core.runtime import build_runtime

    config, _ = load_config(target="./tools")
    runtime = build_runtime(config)
    tools = await runtime.registry.load_tools()
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from uuid import uuid4

from trinity.capabilities.glob import GlobMatcher
from trinity.capabilities.loader import UnitLoader
from trinity.capabilities.notifier import ChangeNotifier
from trinity.capabilities.registry import ToolRegistry
from trinity.core.config import AppConfig


@dataclass
class RuntimeContext:
    """Process-wide collaborators for one server run.

    Attributes:
        config: The loaded AppConfig
        matcher: Glob matcher shared by discovery and the watcher
        notifier: Channel carrying "tool list changed" signals
        registry: Cached tool registry over the target folder
        trace_id: Identifier for this run in the logs
    """

    config: AppConfig
    matcher: GlobMatcher
    notifier: ChangeNotifier
    registry: ToolRegistry
    trace_id: str = field(default_factory=lambda: uuid4().hex[:12])

    @property
    def target_folder(self) -> Path:
        return self.config.target_folder

    async def aclose(self) -> None:
        self.registry.stop_watching()
        await self.notifier.close()


def build_runtime(config: AppConfig, loader: UnitLoader | None = None) -> RuntimeContext:
    matcher = GlobMatcher(config.glob)
    notifier = ChangeNotifier()
    registry = ToolRegistry(
        config.target_folder,
        matcher,
        loader=loader,
        notifier=notifier,
    )
    return RuntimeContext(config=config, matcher=matcher, notifier=notifier, registry=registry)


__all__ = ["RuntimeContext", "build_runtime"]

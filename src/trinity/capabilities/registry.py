"""Hot-reloading tool registry.

This module is the single source of truth for:
- Which tool files exist under the target folder (via GlobMatcher)
- The cached ToolDefinitions built from them (via UnitLoader)
- Invalidation when the folder changes (via ToolWatcher)

Cache policy:
    A valid, non-empty cache is served without touching the disk. Any
    filesystem event invalidates it: the cached definitions are dropped, the
    path index is kept as a lookup hint, and a generation counter is bumped.
    A scan that started under an older generation is thrown away and redone,
    so no caller ever receives definitions that a change observed before the
    call returned has already superseded.

Usage:
    registry = ToolRegistry(root, GlobMatcher("**/*.py"))
    tools = await registry.load_all()
    hello = await registry.load_one("hello")
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from pathlib import Path

from trinity.capabilities.glob import GlobMatcher
from trinity.capabilities.loader import ToolDefinition, UnitLoader, tool_name
from trinity.capabilities.notifier import ChangeCallback, ChangeNotifier, FileChange
from trinity.capabilities.watcher import ToolWatcher
from trinity.core.console import get_logger
from trinity.core.result import Err, InvalidUnitError, NotFoundError, Ok, Result

logger = get_logger(__name__)

WatcherFactory = Callable[[Path, GlobMatcher, Callable[[FileChange], None]], ToolWatcher]


class ToolRegistry:
    """In-memory cache of ToolDefinitions kept in step with a folder on disk."""

    def __init__(
        self,
        root: Path,
        matcher: GlobMatcher,
        loader: UnitLoader | None = None,
        notifier: ChangeNotifier | None = None,
        watcher_factory: WatcherFactory = ToolWatcher,
    ) -> None:
        self.root = Path(root).resolve()
        self.matcher = matcher
        self.loader = loader or UnitLoader()
        self.notifier = notifier or ChangeNotifier()
        self._watcher_factory = watcher_factory
        self._watcher: ToolWatcher | None = None

        self._cache: dict[str, ToolDefinition] = {}
        self._path_index: dict[str, Path] = {}
        self._valid = False
        self._generation = 0
        self.last_failures: dict[Path, InvalidUnitError] = {}

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def valid(self) -> bool:
        return self._valid

    @property
    def generation(self) -> int:
        return self._generation

    def cached_names(self) -> list[str]:
        return sorted(self._cache)

    def invalidate(self) -> None:
        """Mark the cache stale and drop cached definitions."""
        self._generation += 1
        self._valid = False
        self._cache = {}

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def load_all(self) -> list[ToolDefinition]:
        """Return every loadable tool, rescanning unless the cache is valid."""
        while True:
            if self._valid and self._cache:
                return list(self._cache.values())

            generation = self._generation
            tools, index, failures = await self._scan()
            if generation != self._generation:
                logger.debug(
                    "Discarding tool scan from generation %d (now %d)", generation, self._generation
                )
                continue

            self._cache = tools
            self._path_index = index
            self.last_failures = failures
            self._valid = True
            logger.debug("Loaded %d tools (%d failed)", len(tools), len(failures))
            return list(tools.values())

    async def load_one(self, name: str) -> ToolDefinition:
        """Return the tool called ``name``.

        Raises:
            NotFoundError: No file under the root resolves to ``name``.
            InvalidUnitError: The file exists but is not a valid tool.
        """
        while True:
            if self._valid and name in self._cache:
                return self._cache[name]

            generation = self._generation
            path = self._path_index.get(name)
            if path is None or not await asyncio.to_thread(path.is_file):
                path = await self._locate(name)

            tool = await self.loader.load(path)
            if generation != self._generation:
                logger.debug("Reloading %s: folder changed during load", name)
                continue

            self._cache[name] = tool
            self._path_index[name] = path
            return tool

    async def _locate(self, name: str) -> Path:
        files = await self.matcher.scan(self.root)
        candidates = [f for f in files if tool_name(f) == name]
        if not candidates:
            raise NotFoundError(f"Tool not found: {name}", context={"name": name})
        return candidates[-1]

    async def _settle(self, path: Path) -> Result[ToolDefinition, InvalidUnitError]:
        try:
            return Ok(await self.loader.load(path))
        except InvalidUnitError as exc:
            return Err(exc)
        except Exception as exc:
            return Err(InvalidUnitError(f"Failed to load tool {path}: {exc}", context={"file": str(path)}))

    async def _scan(
        self,
    ) -> tuple[dict[str, ToolDefinition], dict[str, Path], dict[Path, InvalidUnitError]]:
        files = await self.matcher.scan(self.root)
        logger.debug("Resolved %d tool files", len(files))
        results = await asyncio.gather(*(self._settle(path) for path in files))

        tools: dict[str, ToolDefinition] = {}
        index: dict[str, Path] = {}
        failures: dict[Path, InvalidUnitError] = {}
        for path, result in zip(files, results):
            if isinstance(result, Err):
                failures[path] = result.error
                logger.error("Failed to load tool %s: %s", path, result.error.message)
                continue
            tool = result.value
            if tool.name in tools:
                logger.warning(
                    "Duplicate tool name '%s': %s overrides %s", tool.name, path, index[tool.name]
                )
            tools[tool.name] = tool
            index[tool.name] = path
        return tools, index, failures

    # ------------------------------------------------------------------
    # Watching and notification
    # ------------------------------------------------------------------

    def on_change(self, callback: ChangeCallback | None) -> None:
        """Register the single downstream sink for change signals."""
        self.notifier.subscribe(callback)

    def handle_change(self, change: FileChange) -> None:
        self.invalidate()
        self.notifier.notify(change)

    @property
    def watching(self) -> bool:
        return self._watcher is not None and self._watcher.running

    def start_watching(self) -> bool:
        if self.watching:
            return True
        self._watcher = self._watcher_factory(self.root, self.matcher, self.handle_change)
        started = self._watcher.start()
        if not started:
            self._watcher = None
        return started

    def stop_watching(self) -> None:
        watcher, self._watcher = self._watcher, None
        if watcher is not None:
            watcher.stop()

    # Names used by the protocol layer.
    load_tools = load_all
    load_tool = load_one


__all__ = ["ToolRegistry"]

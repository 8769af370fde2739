"""Recursive filesystem watching for the tool folder.

watchdog delivers events on its observer thread; they are handed to the
event loop with ``call_soon_threadsafe`` and filtered through the same
GlobMatcher used for discovery before reaching the callback.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from pathlib import Path

from watchdog.events import (
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver

from trinity.capabilities.glob import GlobMatcher
from trinity.capabilities.notifier import FileChange
from trinity.core.console import get_logger
from trinity.core.result import WatcherError

logger = get_logger(__name__)

# Event kinds that can change a tool file's presence or content.
_RELEVANT_EVENTS = frozenset({"created", "modified", "deleted", "moved"})


def _as_str(path: str | bytes) -> str:
    return path.decode() if isinstance(path, bytes) else path


class _AsyncDispatchHandler(FileSystemEventHandler):
    def __init__(self, watcher: ToolWatcher, loop: asyncio.AbstractEventLoop) -> None:
        super().__init__()
        self._watcher = watcher
        self._loop = loop

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.event_type not in _RELEVANT_EVENTS:
            return
        paths = [Path(_as_str(event.src_path))]
        dest = getattr(event, "dest_path", "")
        if dest:
            paths.append(Path(_as_str(dest)))

        if event.is_directory:
            # A removed or renamed directory can take tool files with it.
            if event.event_type not in (EVENT_TYPE_DELETED, EVENT_TYPE_MOVED):
                return
            change = FileChange(kind=event.event_type, path=paths[0])
        else:
            matched = [p for p in paths if self._watcher.matcher.matches(p, self._watcher.root)]
            if not matched:
                return
            change = FileChange(kind=event.event_type, path=matched[-1])

        try:
            self._loop.call_soon_threadsafe(self._watcher._dispatch, change)
        except RuntimeError:
            # Loop already closed; nothing left to notify.
            logger.debug("Dropping %s event for %s: event loop closed", change.kind, change.path)


class ToolWatcher:
    """Forward glob-matching file changes under ``root`` to ``on_event``."""

    def __init__(
        self,
        root: Path,
        matcher: GlobMatcher,
        on_event: Callable[[FileChange], None],
    ) -> None:
        self.root = Path(root).resolve()
        self.matcher = matcher
        self._on_event = on_event
        self._observer: BaseObserver | None = None

    @property
    def running(self) -> bool:
        return self._observer is not None

    def start(self) -> bool:
        """Begin watching. Must be called from the event loop thread.

        Returns False (after logging) when the change source cannot be started;
        the registry keeps serving its cache in that case.
        """
        if self._observer is not None:
            return True
        loop = asyncio.get_running_loop()
        observer = Observer()
        try:
            if not self.root.is_dir():
                raise FileNotFoundError(f"{self.root} is not a directory")
            observer.schedule(_AsyncDispatchHandler(self, loop), str(self.root), recursive=True)
            observer.start()
        except Exception as exc:
            error = WatcherError(f"Failed to watch {self.root}: {exc}", context={"root": str(self.root)})
            logger.error("Watcher error: %s", error)
            return False
        self._observer = observer
        logger.info("Watching for changes in %s", self.root)
        return True

    def stop(self) -> None:
        observer, self._observer = self._observer, None
        if observer is None:
            return
        observer.stop()
        observer.join(timeout=2)
        logger.info("Stopped watching for changes")

    def _dispatch(self, change: FileChange) -> None:
        # Callbacks queued before stop() must not fire afterwards.
        if self._observer is None:
            return
        logger.info("File changed: %s %s", change.kind, change.path)
        try:
            self._on_event(change)
        except Exception as exc:
            logger.error("Watcher callback failed for %s: %s", change.path, exc, exc_info=exc)


__all__ = ["FileChange", "ToolWatcher"]

"""Fire-and-forget delivery of "tool list changed" signals.

The registry publishes onto a queue and never waits for the subscriber. A
single pump task drains the queue and calls the subscriber; whatever the
subscriber raises is logged and dropped.
"""

from __future__ import annotations

import asyncio
import contextlib
import inspect
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path

from trinity.core.console import get_logger
from trinity.core.result import NotifyFailure

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class FileChange:
    """One filesystem event that survived glob filtering."""

    kind: str
    path: Path


ChangeCallback = Callable[[FileChange], Awaitable[None] | None]


class ChangeNotifier:
    """Single-subscriber channel between the registry and its consumer.

    Every invalidation that reaches ``notify`` is followed by a subscriber
    call, but changes queued while the subscriber is still running are folded
    into one call carrying the newest change. The downstream signal is "the
    tool list changed", which says nothing about how many times, so one call
    per burst is enough and keeps a slow client from falling behind.
    """

    def __init__(self) -> None:
        self._subscriber: ChangeCallback | None = None
        self._queue: asyncio.Queue[FileChange] | None = None
        self._pump: asyncio.Task[None] | None = None
        self.delivered = 0

    def subscribe(self, callback: ChangeCallback | None) -> None:
        """Register the subscriber, replacing any previous one."""
        self._subscriber = callback

    def notify(self, change: FileChange) -> None:
        """Queue ``change`` for delivery. Never blocks and never raises."""
        if self._subscriber is None:
            return
        try:
            if self._queue is None:
                self._queue = asyncio.Queue()
            if self._pump is None or self._pump.done():
                self._pump = asyncio.get_running_loop().create_task(self._run(self._queue))
        except RuntimeError:
            logger.warning("No running event loop; dropping change notification for %s", change.path)
            return
        self._queue.put_nowait(change)

    async def _run(self, queue: asyncio.Queue[FileChange]) -> None:
        while True:
            change = await queue.get()
            taken = 1
            # Pending changes collapse into the newest one.
            while not queue.empty():
                change = queue.get_nowait()
                taken += 1
            try:
                await self._deliver(change)
            finally:
                for _ in range(taken):
                    queue.task_done()

    async def _deliver(self, change: FileChange) -> None:
        subscriber = self._subscriber
        if subscriber is None:
            return
        try:
            result = subscriber(change)
            if inspect.isawaitable(result):
                await result
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            failure = NotifyFailure(
                f"Change subscriber failed: {exc}", context={"path": str(change.path)}
            )
            logger.error("%s", failure, exc_info=exc)
        else:
            self.delivered += 1

    async def drain(self) -> None:
        """Wait until every queued change has been handed to the subscriber."""
        if self._queue is not None:
            await self._queue.join()

    async def close(self) -> None:
        pump, self._pump = self._pump, None
        self._queue = None
        if pump is not None and not pump.done():
            pump.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await pump


__all__ = ["ChangeCallback", "ChangeNotifier", "FileChange"]

"""Glob matching shared by tool discovery and change filtering.

Discovery and the watcher must agree on which files are tools, so both go
through the same ``GlobMatcher`` instance.
"""

from __future__ import annotations

import asyncio
import os
from pathlib import Path, PurePath

from pathspec import PathSpec

from trinity.core.console import get_logger

logger = get_logger(__name__)

_SKIP_DIRS = frozenset({"__pycache__"})


def _anchor(pattern: str) -> str:
    pattern = pattern.removeprefix("./")
    return pattern if pattern.startswith("/") else f"/{pattern}"


def _ancestors(path: PurePath) -> list[PurePath]:
    return [parent for parent in path.parents if parent.as_posix() not in ("", ".")]


class GlobMatcher:
    """Match paths relative to a root against a single glob pattern.

    Patterns use gitignore wildcard rules anchored at the root: ``*`` stays
    within one path segment and ``**/`` may match zero directories.
    """

    def __init__(self, pattern: str) -> None:
        self.pattern = pattern
        self._spec = PathSpec.from_lines("gitwildmatch", [_anchor(pattern)])
        # A trailing "**" already means "everything below", as in a glob.
        self._files_only = pattern.rstrip("/").rsplit("/", 1)[-1] != "**"

    def __repr__(self) -> str:
        return f"GlobMatcher({self.pattern!r})"

    def matches(self, path: str | PurePath, root: Path | None = None) -> bool:
        candidate = PurePath(path)
        if candidate.is_absolute():
            if root is None:
                return False
            try:
                candidate = candidate.relative_to(root)
            except ValueError:
                return False
        relative = candidate.as_posix()
        if relative in ("", "."):
            return False
        if not self._spec.match_file(relative):
            return False
        if not self._files_only:
            return True
        # gitignore rules also match everything below a matching directory.
        return not any(
            self._spec.match_file(parent.as_posix()) for parent in _ancestors(candidate)
        )

    async def scan(self, root: Path) -> list[Path]:
        """Return sorted absolute paths of matching regular files under ``root``."""
        return await asyncio.to_thread(self._scan_sync, root)

    def _scan_sync(self, root: Path) -> list[Path]:
        root = root.resolve()
        if not root.is_dir():
            logger.warning("Tool folder %s is missing or not a directory", root)
            return []

        def _on_error(exc: OSError) -> None:
            logger.warning("Cannot read %s while scanning for tools: %s", exc.filename, exc)

        found: list[Path] = []
        for dirpath, dirnames, filenames in os.walk(root, onerror=_on_error):
            dirnames[:] = sorted(d for d in dirnames if d not in _SKIP_DIRS)
            current = Path(dirpath)
            for filename in filenames:
                path = current / filename
                if not self.matches(path.relative_to(root)):
                    continue
                if path.is_file():
                    found.append(path)
        return sorted(found)


__all__ = ["GlobMatcher"]

"""Console output and logging configuration.

Provides Rich-based console output and logging setup:
    - console: Main Rich console for stdout
    - stderr_console: Rich console for stderr
    - setup_logging(): Configure logging with a Rich handler and optional JSON log file
    - get_logger(): Get a named logger instance
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

console = Console()
stderr_console = Console(stderr=True)

# Attributes every LogRecord carries; anything else came in through `extra=`.
_RESERVED_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class JsonLineFormatter(logging.Formatter):
    """Render records as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "name": record.name,
            "msg": record.getMessage(),
        }
        meta = {k: v for k, v in vars(record).items() if k not in _RESERVED_ATTRS}
        if record.exc_info:
            meta["exc"] = self.formatException(record.exc_info)
        if meta:
            entry["meta"] = meta
        return json.dumps(entry, default=str)


def _normalize_level(level: str | int) -> int:
    if isinstance(level, str):
        return getattr(logging, level.upper(), logging.INFO)
    return int(level)


def setup_logging(
    level: str | int = logging.INFO,
    verbose: bool = False,
    log_file: Path | None = None,
    console_output: bool = True,
) -> logging.Logger:
    """Configure logging and return the app logger.

    With ``log_file`` set, records are appended there as JSON lines. The Rich
    handler writes to stderr so stdout stays free for the stdio protocol.
    """
    numeric_level = logging.DEBUG if verbose else _normalize_level(level)
    handlers: list[logging.Handler] = []

    if console_output or log_file is None:
        handler = RichHandler(
            console=stderr_console,
            markup=False,
            rich_tracebacks=True,
            tracebacks_show_locals=False,
            show_path=False,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
        handlers.append(handler)

    if log_file is not None:
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler: logging.Handler = logging.FileHandler(log_file, encoding="utf-8")
        except OSError as exc:
            stderr_console.print(f"Failed to open log file {log_file}: {exc}")
        else:
            file_handler.setFormatter(JsonLineFormatter())
            handlers.append(file_handler)
        if not handlers:
            handlers.append(RichHandler(console=stderr_console, show_path=False))

    for handler in handlers:
        handler.setLevel(numeric_level)

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(numeric_level)
    for handler in handlers:
        root.addHandler(handler)

    logger = logging.getLogger("trinity")
    logger.setLevel(numeric_level)

    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    return logging.getLogger(name or "trinity")

"""
Result containers and error hierarchy for trinity.

This module provides:
1. Ok / Err containers used to settle batch loads without failing the batch
2. Domain-specific exception hierarchy

Usage:
    from trinity.core.result import Ok, Err, Result, InvalidUnitError

    async def settle(path) -> Result[ToolDefinition, InvalidUnitError]:
        try:
            return Ok(await loader.load(path))
        except InvalidUnitError as exc:
            return Err(exc)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")
E = TypeVar("E", bound=Exception)


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Represents a successful result containing a value."""

    value: T


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """Represents a failed result containing an error."""

    error: E


# Type alias for Result
Result = Ok[T] | Err[E]


# ---------------------------------------------------------------------------
# Domain-specific error hierarchy
# ---------------------------------------------------------------------------


class TrinityError(Exception):
    """Base exception for all trinity errors.

    All custom exceptions should inherit from this class to enable
    consistent error handling across the codebase.
    """

    def __init__(self, message: str, *, context: dict | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            ctx_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} [{ctx_str}]"
        return self.message


class InvalidUnitError(TrinityError):
    """Raised when a tool file cannot be turned into a ToolDefinition.

    Examples:
    - Missing or non-string `description`
    - Missing or non-object `input_schema`
    - Missing or non-callable `execute`
    """


class ImportFailure(InvalidUnitError):
    """Raised when a tool file fails to read, compile or execute."""


class NotFoundError(TrinityError):
    """Raised when no tool file resolves to the requested name."""


class WatcherError(TrinityError):
    """Reported when the filesystem change source fails."""


class NotifyFailure(TrinityError):
    """Reported when the change subscriber raises."""


class ToolValidationError(TrinityError):
    """Raised when a tool receives arguments its input schema rejects."""


class ToolExecutionError(TrinityError):
    """Raised when a tool call fails at the protocol boundary."""


__all__ = [
    # Result types
    "Ok",
    "Err",
    "Result",
    # Error hierarchy
    "TrinityError",
    "InvalidUnitError",
    "ImportFailure",
    "NotFoundError",
    "WatcherError",
    "NotifyFailure",
    "ToolValidationError",
    "ToolExecutionError",
]

"""Load tool files into validated ToolDefinitions.

A tool file is plain Python exporting three names:

    description = "Says hello to a person by name"

    class input_schema(BaseModel):
        name: str

    async def execute(name: str) -> str:
        return f"Hello, {name}!"

Every load compiles the file's current bytes into a new module object, so an
edit on disk is picked up by the next load without restarting the process.
"""

from __future__ import annotations

import asyncio
import inspect
import itertools
import sys
import types
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ValidationError

from trinity.core.console import get_logger
from trinity.core.result import (
    ImportFailure,
    InvalidUnitError,
    ToolExecutionError,
    ToolValidationError,
)

logger = get_logger(__name__)

DESCRIPTION_ATTR = "description"
SCHEMA_ATTR = "input_schema"
EXECUTE_ATTR = "execute"

HOT_RELOAD_NOTE = (
    "Note: This tool is dynamically loaded. Changes to this file will immediately "
    "affect this tool's behavior. You can read and modify this file to change the tool."
)

InputSchema = type[BaseModel] | Mapping[str, Any]
Executor = Callable[..., Any]

_load_counter = itertools.count(1)


def _is_model_class(obj: object) -> bool:
    return isinstance(obj, type) and issubclass(obj, BaseModel)


def _fallback_schema(reason: str) -> dict[str, Any]:
    return {"type": "object", "properties": {}, "description": reason}


@dataclass(frozen=True, slots=True)
class ToolDefinition:
    """Immutable snapshot of one loaded tool file."""

    name: str
    description: str
    input_schema: InputSchema = field(repr=False)
    executor: Executor = field(repr=False)
    source: Path

    def json_schema(self) -> dict[str, Any]:
        """Describe ``input_schema`` as JSON Schema for the protocol layer."""
        try:
            if _is_model_class(self.input_schema):
                return self.input_schema.model_json_schema()  # type: ignore[union-attr]
            return dict(self.input_schema)  # type: ignore[arg-type]
        except Exception as exc:
            logger.error("Failed to convert input schema of %s to JSON Schema: %s", self.name, exc)
            return _fallback_schema(
                "Failed to convert input_schema to JSON Schema; check the tool's schema definition."
            )

    def validate_arguments(self, arguments: Mapping[str, Any] | None) -> dict[str, Any]:
        raw = dict(arguments or {})
        if not _is_model_class(self.input_schema):
            return raw
        try:
            model = self.input_schema.model_validate(raw)  # type: ignore[union-attr]
        except ValidationError as exc:
            raise ToolValidationError(
                f"Invalid arguments for tool '{self.name}': {exc}", context={"tool": self.name}
            ) from exc
        return dict(model)

    async def execute(self, arguments: Mapping[str, Any] | None = None) -> Any:
        """Validate ``arguments`` and run the tool, awaiting its result."""
        kwargs = self.validate_arguments(arguments)
        try:
            if inspect.iscoroutinefunction(self.executor):
                return await self.executor(**kwargs)
            result = await asyncio.to_thread(self.executor, **kwargs)
            if inspect.isawaitable(result):
                result = await result
            return result
        except SystemExit as exc:
            raise ToolExecutionError(
                f"Tool '{self.name}' called sys.exit({exc.code})", context={"tool": self.name}
            ) from exc


def build_description(description: str, path: Path) -> str:
    return "\n".join([description, "", "---", f"Source: {path}", HOT_RELOAD_NOTE])


def tool_name(path: Path) -> str:
    """Tool names come from the file name alone, never from its contents."""
    return path.stem


class UnitLoader:
    """Turn one file into a ToolDefinition, bypassing every import cache."""

    async def load(self, path: Path) -> ToolDefinition:
        path = Path(path)
        module = await asyncio.to_thread(self._exec_module, path)
        return self._build_definition(module, path)

    def _exec_module(self, path: Path) -> types.ModuleType:
        name = tool_name(path)
        module_name = f"trinity_unit_{name}_{next(_load_counter)}"
        try:
            source = path.read_bytes()
            code = compile(source, str(path), "exec", dont_inherit=True)
        except (OSError, SyntaxError, ValueError) as exc:
            raise ImportFailure(
                f"Failed to import tool module {path}: {exc}", context={"file": str(path)}
            ) from exc

        module = types.ModuleType(module_name)
        module.__file__ = str(path)
        # Registered only while executing so class definitions can resolve their module.
        sys.modules[module_name] = module
        try:
            exec(code, module.__dict__)
        except asyncio.CancelledError:
            raise
        except BaseException as exc:
            # A tool file calling sys.exit() fails on its own instead of aborting the batch.
            raise ImportFailure(
                f"Failed to import tool module {path}: {type(exc).__name__}: {exc}",
                context={"file": str(path)},
            ) from exc
        finally:
            sys.modules.pop(module_name, None)
        return module

    def _build_definition(self, module: types.ModuleType, path: Path) -> ToolDefinition:
        description = getattr(module, DESCRIPTION_ATTR, None)
        if not description or not isinstance(description, str):
            raise InvalidUnitError(
                f"Tool file {path} must export a '{DESCRIPTION_ATTR}' string",
                context={"file": str(path)},
            )

        schema = getattr(module, SCHEMA_ATTR, None)
        if schema is None or not (_is_model_class(schema) or isinstance(schema, Mapping)):
            raise InvalidUnitError(
                f"Tool file {path} must export an '{SCHEMA_ATTR}' pydantic model or mapping",
                context={"file": str(path)},
            )

        executor = getattr(module, EXECUTE_ATTR, None)
        if executor is None or not callable(executor):
            raise InvalidUnitError(
                f"Tool file {path} must define an '{EXECUTE_ATTR}' function",
                context={"file": str(path)},
            )

        return ToolDefinition(
            name=tool_name(path),
            description=build_description(description, path),
            input_schema=schema,
            executor=executor,
            source=path,
        )


__all__ = [
    "HOT_RELOAD_NOTE",
    "ToolDefinition",
    "UnitLoader",
    "build_description",
    "tool_name",
]

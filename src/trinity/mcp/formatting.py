"""Convert raw tool return values into MCP content blocks."""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

import mcp.types as types
from pydantic import ValidationError

Content = types.TextContent | types.ImageContent

_CONTENT_MODELS: dict[str, type[types.TextContent] | type[types.ImageContent]] = {
    "text": types.TextContent,
    "image": types.ImageContent,
}


def _to_json(value: Any) -> str:
    return json.dumps(value, indent=2, default=str)


def _text(text: str) -> types.TextContent:
    return types.TextContent(type="text", text=text)


def format_content_item(item: Any) -> Content:
    """Pass MCP-shaped items through; render anything else as text."""
    if isinstance(item, (types.TextContent, types.ImageContent)):
        return item
    if isinstance(item, Mapping):
        model = _CONTENT_MODELS.get(str(item.get("type")))
        if model is not None:
            try:
                return model.model_validate(dict(item))
            except ValidationError:
                pass
        return _text(_to_json(item))
    if isinstance(item, str):
        return _text(item)
    if isinstance(item, (list, tuple)):
        return _text(_to_json(item))
    return _text(str(item))


def format_tool_result(raw: Any) -> list[Content]:
    """Lists become one content item per element, mappings become JSON text."""
    if isinstance(raw, (list, tuple)):
        return [format_content_item(item) for item in raw]
    if isinstance(raw, Mapping):
        return [_text(_to_json(raw))]
    return [_text(str(raw))]


def structured_content(raw: Any) -> dict[str, Any] | None:
    """Mapping results are also sent as ``structuredContent`` in JSON form."""
    if not isinstance(raw, Mapping):
        return None
    return json.loads(_to_json(raw))


__all__ = ["format_content_item", "format_tool_result", "structured_content"]

"""Result serialization for MCP responses."""

import json
from dataclasses import asdict, is_dataclass
from enum import Enum
from typing import Any

from mcp.types import TextContent


def serialize_model(obj: Any) -> Any:
    """
    Serialize a result or model to JSON-compatible data.

    Objects with ``to_dict()`` use it; other dataclasses are converted field
    by field; enums become their values; containers are walked recursively.

    Args:
        obj: Result, model, or plain value

    Returns:
        JSON-compatible representation
    """
    if hasattr(obj, "to_dict"):
        return serialize_model(obj.to_dict())
    if is_dataclass(obj) and not isinstance(obj, type):
        return serialize_model(asdict(obj))
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, dict):
        return {key: serialize_model(value) for key, value in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [serialize_model(item) for item in obj]
    if hasattr(obj, "isoformat"):  # datetime
        return obj.isoformat()
    return obj


def text_result(obj: Any) -> list[TextContent]:
    """Wrap a serialized result as MCP text content."""
    return [TextContent(type="text", text=json.dumps(serialize_model(obj), indent=2))]

"""MCP module with tool schemas, handlers, and serializers."""

from contentgate.mcp.tool_handlers import call_tool_handler, TOOL_HANDLERS
from contentgate.mcp.tool_schemas import get_tool_schemas
from contentgate.mcp.serializers import serialize_model, text_result

__all__ = [
    "call_tool_handler",
    "TOOL_HANDLERS",
    "get_tool_schemas",
    "serialize_model",
    "text_result",
]

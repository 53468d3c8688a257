"""HTTP API for the Content-Gate MCP service using Server-Sent Events (SSE)."""

import asyncio
import json
import logging
from typing import Any, Dict

from fastapi import Body, FastAPI
from fastapi.responses import StreamingResponse
from mcp import McpError

from contentgate import __version__
from contentgate.config import get_settings
from contentgate.mcp.tool_handlers import call_tool_handler
from contentgate.mcp.tool_schemas import get_tool_schemas
from contentgate.storage import get_client

logger = logging.getLogger(__name__)

SERVER_NAME = "content-gate"
PROTOCOL_VERSION = "2024-11-05"

app = FastAPI(
    title="Content-Gate MCP Service",
    description="Content operations gateway: documents, drafts and releases",
    version=__version__,
)


def list_tool_definitions() -> list[dict[str, Any]]:
    return [
        {
            "name": tool_def["name"],
            "description": tool_def["description"],
            "inputSchema": tool_def["inputSchema"],
        }
        for tool_def in get_tool_schemas().values()
    ]


def _error(jsonrpc: str, request_id: Any, code: int, message: str) -> Dict[str, Any]:
    return {"jsonrpc": jsonrpc, "id": request_id, "error": {"code": code, "message": message}}


async def handle_jsonrpc_request(request: Dict[str, Any]) -> Dict[str, Any]:
    """Handle JSON-RPC 2.0 request."""
    jsonrpc = request.get("jsonrpc", "2.0")
    request_id = request.get("id")
    method = request.get("method")
    params = request.get("params") or {}

    if method == "initialize":
        return {
            "jsonrpc": jsonrpc,
            "id": request_id,
            "result": {
                "protocolVersion": PROTOCOL_VERSION,
                "capabilities": {},
                "serverInfo": {"name": SERVER_NAME, "version": __version__},
            },
        }
    elif method == "tools/list":
        return {"jsonrpc": jsonrpc, "id": request_id, "result": {"tools": list_tool_definitions()}}
    elif method == "tools/call":
        tool_name = params.get("name")
        arguments = params.get("arguments") or {}

        try:
            result = await call_tool_handler(tool_name, arguments, get_client)
        except McpError as e:
            return _error(jsonrpc, request_id, e.error.code, e.error.message)
        except Exception as e:
            logger.exception(f"Error handling tool {tool_name}")
            return _error(jsonrpc, request_id, -32603, f"Internal error: {str(e)}")

        return {
            "jsonrpc": jsonrpc,
            "id": request_id,
            "result": {"content": [{"type": "text", "text": item.text} for item in result]},
        }
    elif method == "prompts/list":
        return {"jsonrpc": jsonrpc, "id": request_id, "result": {"prompts": []}}
    elif method == "resources/list":
        return {"jsonrpc": jsonrpc, "id": request_id, "result": {"resources": []}}
    else:
        return _error(jsonrpc, request_id, -32601, f"Method not found: {method}")


def _sse(payload: Dict[str, Any]) -> str:
    return f"data: {json.dumps(payload)}\n\n"


@app.post("/mcp/sse")
async def mcp_sse_post(request: dict = Body(...)):
    """Server-Sent Events endpoint for MCP (POST)."""
    result = await handle_jsonrpc_request(request)
    return StreamingResponse(content=_sse(result), media_type="text/event-stream")


@app.post("/mcp")
async def mcp_json_post(request: dict = Body(...)):
    """Plain JSON-RPC endpoint for MCP."""
    return await handle_jsonrpc_request(request)


@app.get("/mcp/sse")
async def mcp_sse_get():
    """Server-Sent Events endpoint for MCP (GET).

    Sends the discovery responses (initialize, tools/list, prompts/list,
    resources/list) and then keeps the connection open with keepalives.
    """

    async def generate_sse_stream():
        discovery = ["initialize", "tools/list", "prompts/list", "resources/list"]
        for request_id, method in enumerate(discovery, start=1):
            response = await handle_jsonrpc_request(
                {"jsonrpc": "2.0", "id": request_id, "method": method, "params": {}}
            )
            if method == "tools/list":
                logger.info(f"MCP SSE GET: Sending {len(response['result']['tools'])} tools")
            yield _sse(response)
            await asyncio.sleep(0.1)

        try:
            while True:
                await asyncio.sleep(30)
                yield ": keepalive\n\n"
        except asyncio.CancelledError:
            logger.info("MCP SSE GET: Connection closed by client")
            raise

    return StreamingResponse(
        generate_sse_stream(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",  # Disable nginx buffering
        },
    )


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    settings = get_settings()
    return {
        "status": "healthy",
        "service": SERVER_NAME,
        "version": __version__,
        "dataset": settings.sanity_dataset,
        "apiVersion": settings.get_api_version(),
        "configured": bool(settings.sanity_project_id),
    }


def run() -> None:
    """Serve the HTTP API with uvicorn."""
    import uvicorn

    from contentgate.config import configure_logging

    settings = get_settings()
    configure_logging(settings)
    uvicorn.run(app, host=settings.http_host, port=settings.http_port)


if __name__ == "__main__":
    run()

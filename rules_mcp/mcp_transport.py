"""
Streamable HTTP transport for MCP protocol.

Implements the MCP JSON-RPC method set (initialize, tools/list,
tools/call, ping) for direct connection from MCP clients. The request
handling here is shared with the stdio transport.
"""

import asyncio
import json
import logging
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, Response, StreamingResponse

from . import __version__
from .auth import require_api_key
from .config import settings
from .rule_engine import RuleEngine, ToolParamsError, UnknownToolError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/mcp", tags=["MCP Transport"])

MCP_VERSION = "2024-11-05"
SERVER_NAME = "rules-mcp"

# JSON-RPC error codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
SERVER_ERROR = -32000

_RULE_SET_PROPERTY = {
    "type": "string",
    "description": "Rule set name (defaults to the server's default rule set)",
}

# Tool definitions for MCP list_tools
TOOL_DEFINITIONS = [
    {
        "name": "get_rules",
        "description": (
            "開発ルールを取得する。query でキーワード検索、category でカテゴリ別取得、"
            "list_categories でカテゴリ一覧。パラメータなしでルール全体を返す。"
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "rule_set": _RULE_SET_PROPERTY,
                "query": {"type": "string", "minLength": 1, "description": "検索キーワード"},
                "category": {"type": "string", "minLength": 1, "description": "取得するカテゴリ名"},
                "list_categories": {"type": "boolean", "default": False, "description": "カテゴリ一覧を表示する"},
            },
            "required": [],
        },
    },
    {
        "name": "list_rule_sections",
        "description": "List the category and subsection headers of a rule set.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "rule_set": _RULE_SET_PROPERTY,
                "filter": {"type": "string", "default": ""},
                "limit": {"type": "integer", "default": 50, "minimum": 1, "maximum": 500},
                "offset": {"type": "integer", "default": 0, "minimum": 0},
            },
            "required": [],
        },
    },
    {
        "name": "list_rule_sets",
        "description": "List the available rule sets.",
        "inputSchema": {"type": "object", "properties": {}, "required": []},
    },
]


def jsonrpc_response(id: Any, result: Any) -> dict:
    return {"jsonrpc": "2.0", "id": id, "result": result}


def jsonrpc_error(id: Any, code: int, message: str) -> dict:
    return {"jsonrpc": "2.0", "id": id, "error": {"code": code, "message": message}}


def tool_content(data: Any) -> dict:
    """Wrap handler output in an MCP text content envelope."""
    text = data if isinstance(data, str) else json.dumps(data, indent=2, ensure_ascii=False, default=str)
    return {"content": [{"type": "text", "text": text}]}


async def handle_call_tool(id: Any, params: dict, engine: RuleEngine) -> dict:
    """Handle MCP tools/call request."""
    if not isinstance(params, dict):
        return jsonrpc_error(id, INVALID_PARAMS, "Invalid params")

    tool_name = params.get("name")
    arguments = params.get("arguments") or {}

    try:
        result = await engine.execute(tool_name, arguments)
    except (UnknownToolError, ToolParamsError) as e:
        return jsonrpc_error(id, INVALID_PARAMS, str(e))
    except Exception as e:
        logger.error(f"Tool {tool_name} failed: {e}", exc_info=True)
        return jsonrpc_error(id, SERVER_ERROR, "An error occurred processing your request.")

    return jsonrpc_response(id, tool_content(result.data))


async def handle_request(body: Any, engine: RuleEngine | None = None) -> dict | None:
    """Handle a single JSON-RPC request. Returns None for notifications."""
    if not isinstance(body, dict):
        return jsonrpc_error(None, INVALID_REQUEST, "Invalid Request")

    engine = engine or RuleEngine()
    method, id, params = body.get("method"), body.get("id"), body.get("params") or {}

    if id is None:  # Notification
        return None

    if method == "initialize":
        return jsonrpc_response(id, {
            "protocolVersion": MCP_VERSION,
            "serverInfo": {"name": SERVER_NAME, "version": __version__},
            "capabilities": {"tools": {}},
        })
    elif method == "tools/list":
        return jsonrpc_response(id, {"tools": TOOL_DEFINITIONS})
    elif method == "tools/call":
        return await handle_call_tool(id, params, engine)
    elif method == "ping":
        return jsonrpc_response(id, {})
    else:
        return jsonrpc_error(id, METHOD_NOT_FOUND, f"Method not found: {method}")


async def handle_payload(body: Any, engine: RuleEngine | None = None) -> dict | list | None:
    """Handle a single request or a batch."""
    if isinstance(body, list):
        return [r for req in body if (r := await handle_request(req, engine))]
    return await handle_request(body, engine)


@router.post("", dependencies=[Depends(require_api_key)])
async def mcp_endpoint(request: Request):
    """
    MCP Streamable HTTP endpoint.

    Config example:
    ```json
    {"mcpServers": {"rules": {"type": "http", "url": "http://localhost:8000/mcp"}}}
    ```
    """
    raw = await request.body()
    if len(raw) > settings.max_json_payload_size:
        return JSONResponse(jsonrpc_error(None, INVALID_REQUEST, "Payload too large"), status_code=413)

    try:
        body = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError):
        return JSONResponse(jsonrpc_error(None, PARSE_ERROR, "Parse error"), status_code=400)

    response = await handle_payload(body)
    if not response:
        return Response(status_code=204)
    return JSONResponse(response)


@router.get("", dependencies=[Depends(require_api_key)])
async def mcp_sse():
    """MCP SSE endpoint for server-initiated messages (keep-alive)."""

    async def stream():
        yield f"data: {json.dumps({'type': 'connected'})}\n\n"
        try:
            while True:
                await asyncio.sleep(30)
                yield f"data: {json.dumps({'type': 'ping'})}\n\n"
        except asyncio.CancelledError:
            pass

    return StreamingResponse(stream(), media_type="text/event-stream", headers={"Cache-Control": "no-cache", "Connection": "keep-alive"})

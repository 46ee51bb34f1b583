"""FastAPI MCP Server for rule document queries."""

import json
import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path
from typing import AsyncGenerator
from uuid import uuid4

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from starlette.middleware.base import BaseHTTPMiddleware

from . import __version__
from .auth import require_api_key
from .config import settings
from .documents import discover_rule_sets
from .mcp_transport import router as mcp_router
from .models import HealthResponse, MCPRequest, MCPResponse, ToolName, UsageInfo
from .rule_engine import RuleEngine, ToolParamsError, UnknownToolError

logger = logging.getLogger(__name__)


# ============ SECURITY HELPERS ============


def sanitize_error_message(error: Exception) -> str:
    """
    Sanitize error messages to prevent information disclosure.

    Validation and unknown-tool errors are returned as-is; anything else
    is logged and replaced with a generic message.
    """
    if isinstance(error, (ToolParamsError, UnknownToolError)):
        return str(error)

    logger.error(f"Tool execution error: {error}", exc_info=error)
    return "An error occurred processing your request. Please try again."


async def limit_payload_size(request: Request) -> None:
    """Reject request bodies larger than the configured JSON payload limit."""
    body = await request.body()
    if len(body) > settings.max_json_payload_size:
        raise HTTPException(
            status_code=413,
            detail=f"JSON payload too large. Maximum size: {settings.max_json_payload_size} bytes",
        )


# ============ SECURITY MIDDLEWARE ============


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(self, request: Request, call_next):
        request_id = str(uuid4())

        response = await call_next(request)

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"

        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    logger.info(f"Starting Rules MCP Server v{__version__}")

    rules_dir = Path(settings.rules_dir)
    if not rules_dir.is_dir():
        logger.warning(f"Rules directory not found: {rules_dir.resolve()}")
    else:
        logger.info(f"Available rule sets: {', '.join(discover_rule_sets()) or '(none)'}")

    if not settings.debug and settings.cors_allowed_origins == "*":
        logger.warning(
            "CORS is configured to allow all origins ('*'). "
            "Set CORS_ALLOWED_ORIGINS to specific domains in production."
        )

    yield

    logger.info("Shutting down Rules MCP Server")


app = FastAPI(
    title="Rules MCP Server",
    description="MCP endpoint for searching hierarchical development rule documents",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(SecurityHeadersMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-API-Key"],
)

# Mount MCP Streamable HTTP transport
app.include_router(mcp_router)


# ============ EXCEPTION HANDLERS ============


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Handle HTTP exceptions with consistent response format."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "error": exc.detail,
            "usage": {"latency_ms": 0},
        },
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions with sanitized error messages."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "An internal server error occurred. Please try again.",
            "usage": {"latency_ms": 0},
        },
    )


# ============ HEALTH ENDPOINTS ============


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check() -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(
        status="healthy",
        version=__version__,
        timestamp=datetime.utcnow(),
        rules_dir_exists=Path(settings.rules_dir).is_dir(),
    )


@app.get("/", tags=["Health"])
async def root():
    """Root endpoint with API info."""
    return {
        "name": "Rules MCP Server",
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
    }


# ============ MCP ENDPOINTS ============


@app.post(
    "/v1/mcp",
    response_model=MCPResponse,
    tags=["MCP"],
    dependencies=[Depends(require_api_key), Depends(limit_payload_size)],
)
async def mcp_endpoint(request: MCPRequest) -> MCPResponse:
    """
    Execute a rule tool.

    Args:
        request: The MCP request with tool and parameters

    Returns:
        MCPResponse with result or error
    """
    start_time = time.perf_counter()

    try:
        engine = RuleEngine()
        result = await engine.execute(request.tool, request.params)
    except Exception as e:
        latency_ms = int((time.perf_counter() - start_time) * 1000)
        return MCPResponse(
            success=False,
            error=sanitize_error_message(e),
            usage=UsageInfo(latency_ms=latency_ms),
        )

    latency_ms = int((time.perf_counter() - start_time) * 1000)
    return MCPResponse(
        success=True,
        result=result.data,
        usage=UsageInfo(
            input_tokens=result.input_tokens,
            output_tokens=result.output_tokens,
            latency_ms=latency_ms,
        ),
    )


# ============ SSE ENDPOINTS ============


async def sse_event_generator(tool: str, params: dict) -> AsyncGenerator[str, None]:
    """
    Generate Server-Sent Events for MCP tool execution.

    Yields SSE-formatted events:
    - start: Tool execution started
    - result: Tool execution complete with result
    - error: Error occurred during execution
    - done: Stream end
    """
    start_time = time.perf_counter()

    yield f"data: {json.dumps({'type': 'start', 'tool': tool})}\n\n"

    try:
        engine = RuleEngine()
        result = await engine.execute(tool, params)

        latency_ms = int((time.perf_counter() - start_time) * 1000)
        event = {
            "type": "result",
            "success": True,
            "result": result.data,
            "usage": {
                "input_tokens": result.input_tokens,
                "output_tokens": result.output_tokens,
                "latency_ms": latency_ms,
            },
        }
        yield f"data: {json.dumps(event, ensure_ascii=False)}\n\n"

    except Exception as e:
        latency_ms = int((time.perf_counter() - start_time) * 1000)
        yield f"data: {json.dumps({'type': 'error', 'error': sanitize_error_message(e), 'usage': {'latency_ms': latency_ms}}, ensure_ascii=False)}\n\n"

    yield f"data: {json.dumps({'type': 'done'})}\n\n"


_SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",  # Disable nginx buffering
}


@app.get("/v1/mcp/sse", tags=["MCP", "SSE"], dependencies=[Depends(require_api_key)])
async def mcp_sse_endpoint(
    tool: str = Query(..., description="Tool name to execute"),
    params: str = Query(default="{}", description="JSON-encoded parameters"),
):
    """
    Execute a rule tool via Server-Sent Events (SSE).

    Args:
        tool: Tool name (e.g., get_rules)
        params: JSON-encoded parameters

    Returns:
        SSE stream with tool execution events
    """
    if len(params) > settings.max_json_payload_size:
        raise HTTPException(
            status_code=413,
            detail=f"JSON payload too large. Maximum size: {settings.max_json_payload_size} bytes",
        )

    try:
        RuleEngine.parse_tool(tool)
    except UnknownToolError:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid tool name: {tool}. Valid tools: {[t.value for t in ToolName]}",
        )

    try:
        parsed_params = json.loads(params)
    except json.JSONDecodeError:
        raise HTTPException(status_code=400, detail="Invalid JSON format in params parameter")

    return StreamingResponse(
        sse_event_generator(tool, parsed_params),
        media_type="text/event-stream",
        headers=_SSE_HEADERS,
    )


@app.post(
    "/v1/mcp/sse",
    tags=["MCP", "SSE"],
    dependencies=[Depends(require_api_key), Depends(limit_payload_size)],
)
async def mcp_sse_endpoint_post(request: MCPRequest):
    """Execute a rule tool via SSE using a JSON body instead of query parameters."""
    return StreamingResponse(
        sse_event_generator(request.tool.value, request.params),
        media_type="text/event-stream",
        headers=_SSE_HEADERS,
    )


# ============ MAIN ============


def main():
    """Run the server with uvicorn."""
    import uvicorn

    uvicorn.run(
        "rules_mcp.server:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()

"""
Stdio transport for MCP protocol.

Reads newline-delimited JSON-RPC messages from stdin and writes responses
to stdout, one per line. Logs go to stderr so they never mix with
protocol frames. Used by MCP clients that spawn the server as a
subprocess.
"""

import asyncio
import json
import logging
import sys
from typing import Any, TextIO

from . import __version__
from .config import settings
from .documents import discover_rule_sets
from .mcp_transport import INVALID_REQUEST, PARSE_ERROR, TOOL_DEFINITIONS, handle_payload, jsonrpc_error
from .rule_engine import RuleEngine

logger = logging.getLogger(__name__)


async def handle_line(line: str, engine: RuleEngine | None = None) -> Any | None:
    """Handle one protocol line. Returns the response to write, or None."""
    try:
        body = json.loads(line)
    except json.JSONDecodeError:
        return jsonrpc_error(None, PARSE_ERROR, "Parse error")

    response = await handle_payload(body, engine)
    return response or None


async def open_stdin(limit: int | None = None) -> asyncio.StreamReader:
    """Attach an asyncio stream reader to the process's stdin.

    Pipes and terminals are read through the event loop, so a pending read
    is cancelled with the task on Ctrl-C. A redirected regular file is
    read up front.
    """
    loop = asyncio.get_running_loop()
    reader = asyncio.StreamReader(limit=limit or settings.max_json_payload_size)
    try:
        await loop.connect_read_pipe(lambda: asyncio.StreamReaderProtocol(reader), sys.stdin)
    except ValueError:
        reader.feed_data(await asyncio.to_thread(sys.stdin.buffer.read))
        reader.feed_eof()
    return reader


def _write(stdout: TextIO, response: Any) -> None:
    stdout.write(json.dumps(response, ensure_ascii=False) + "\n")
    stdout.flush()


async def run_stdio(reader: asyncio.StreamReader | None = None, stdout: TextIO | None = None) -> None:
    """Serve requests until the reader reaches EOF."""
    reader = reader or await open_stdin()
    stdout = stdout or sys.stdout
    engine = RuleEngine()

    while True:
        try:
            raw = await reader.readline()
        except ValueError:
            logger.warning("Dropped a stdio message over the payload limit")
            _write(stdout, jsonrpc_error(None, INVALID_REQUEST, "Payload too large"))
            continue
        if not raw:
            break

        line = raw.decode("utf-8", errors="replace")
        if not line.strip():
            continue

        response = await handle_line(line, engine)
        if response is not None:
            _write(stdout, response)


def main():
    """Run the server on stdin/stdout."""
    logging.basicConfig(
        stream=sys.stderr,
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    logger.info(f"Starting Rules MCP Server v{__version__} on stdio")
    logger.info(f"Available tools: {', '.join(t['name'] for t in TOOL_DEFINITIONS)}")
    logger.info(f"Available rule sets: {', '.join(discover_rule_sets()) or '(none)'}")

    try:
        asyncio.run(run_stdio())
    except KeyboardInterrupt:
        pass
    logger.info("Shutting down Rules MCP Server")


if __name__ == "__main__":
    main()

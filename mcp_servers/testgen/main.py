"""
MCP server for browser-driven test generation.

Reads one JSON-RPC message per line on stdin and writes responses to stdout.
Tool dispatch is handled via the registry in server/registry.py. Logs go to
stderr; the readiness line printed there tells a parent process the server
is accepting requests.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from contextlib import suppress
from typing import IO, Any

from .config import READY_LINE
from .driver import Driver
from .http_client import HttpClientError
from .server.contract import initialize_result, select_protocol, tools_list
from .server.redaction import redact_arguments, redact_frame
from .server.registry import create_default_registry
from .server.types import ToolResult
from .tools.base import SmartToolError

logger = logging.getLogger("mcp.testgen")

__all__ = ["McpServer", "main"]


def _write_message(payload: dict[str, Any], stream: IO[bytes] | None = None) -> None:
    """Write JSON-RPC message to stdout."""
    out = stream if stream is not None else sys.stdout.buffer
    out.write((json.dumps(payload, ensure_ascii=False) + "\n").encode())
    out.flush()


def _parse_line(line: bytes) -> dict[str, Any] | None:
    """Decode one frame; malformed lines are logged and skipped."""
    line = line.strip()
    if not line:
        return None
    try:
        msg = json.loads(line.decode())
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        logger.warning("malformed frame skipped: %s", exc)
        return None
    if not isinstance(msg, dict):
        logger.warning("non-object frame skipped")
        return None
    if os.environ.get("MCP_TRACE"):
        logger.info("recv %s", redact_frame(msg))
    return msg


class McpServer:
    """MCP server with registry-based tool dispatch."""

    def __init__(self, driver: Driver | None = None, output: IO[bytes] | None = None) -> None:
        self.driver = driver or Driver()
        self.registry = create_default_registry(self.driver)
        self._output = output

    def _send(self, payload: dict[str, Any]) -> None:
        _write_message(payload, self._output)

    def _reply(self, request_id: Any, result: dict[str, Any]) -> None:
        if request_id is None:
            return
        self._send({"jsonrpc": "2.0", "id": request_id, "result": result})

    def handle_initialize(self, request_id: Any, params: dict[str, Any] | None = None) -> None:
        requested = (params or {}).get("protocolVersion") if isinstance(params, dict) else None
        self._reply(request_id, initialize_result(select_protocol(requested)))

    def handle_list_tools(self, request_id: Any) -> None:
        self._reply(request_id, {"tools": tools_list()})

    def call_tool(self, name: str, arguments: dict[str, Any]) -> ToolResult:
        """Run one tool; every failure becomes an error result."""
        logger.info("tool=%s args=%s", name, redact_arguments(name, arguments))
        try:
            if not name:
                return ToolResult.error("<unnamed>", "Missing tool name")
            if not self.registry.has(name):
                return ToolResult.error(name, f"Unknown tool: {name}")
            return self.registry.dispatch(name, arguments)
        except SmartToolError as e:
            logger.info("tool_error tool=%s action=%s reason=%s", e.tool, e.action, e.reason.splitlines()[0])
            return ToolResult.error(name, str(e))
        except HttpClientError as e:
            logger.info("http_error tool=%s %s", name, e)
            return ToolResult.error(name, str(e))
        except Exception as exc:
            logger.exception("tool_call_failed tool=%s", name)
            return ToolResult.error(name, str(exc) or type(exc).__name__)

    def handle_call_tool(self, request_id: Any, name: str, arguments: dict[str, Any]) -> None:
        self._reply(request_id, self.call_tool(name, arguments).to_dict())

    def dispatch(self, message: dict[str, Any]) -> None:
        """Dispatch incoming JSON-RPC message to appropriate handler."""
        if not message:
            return

        method = message.get("method")
        request_id = message.get("id")
        params = message.get("params") or {}
        if not isinstance(params, dict):
            params = {}

        if method == "initialize":
            self.handle_initialize(request_id, params)
        elif method == "notifications/initialized":
            return
        elif method in ("tools/list", "list_tools"):
            self.handle_list_tools(request_id)
        elif method in ("tools/call", "call_tool"):
            name = params.get("name")
            arguments = params.get("arguments") or params.get("args") or {}
            self.handle_call_tool(request_id, name if isinstance(name, str) else "", arguments)
        elif method == "ping":
            self._reply(request_id, {})
        elif request_id is not None:
            self._send(
                {
                    "jsonrpc": "2.0",
                    "id": request_id,
                    "error": {"code": -32601, "message": f"Method {method} not found"},
                }
            )

    def serve(self, stream: IO[bytes]) -> None:
        """Process frames until EOF, then close the browser."""
        try:
            for line in stream:
                message = _parse_line(line)
                if message is not None:
                    self.dispatch(message)
        finally:
            with suppress(Exception):
                self.driver.close()


def main() -> None:
    """Main entry point for the stdio server."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        stream=sys.stderr,
    )
    server = McpServer()
    print(READY_LINE, file=sys.stderr, flush=True)
    server.serve(sys.stdin.buffer)


if __name__ == "__main__":
    main()

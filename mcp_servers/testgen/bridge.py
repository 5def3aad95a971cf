"""
Async JSON-RPC bridge to the driver process over line-delimited stdio.

- Ids start at 1 and increase monotonically; several requests may be in flight.
- The bridge is connected only after the driver printed its readiness line
  on stderr.
- A timed-out request is rejected once; its id is remembered and a late
  response for it is discarded. Only the most recent expired ids are kept.
- Malformed frames and unmatched ids are logged at debug and skipped.
- When the driver's stdout closes, every pending request is rejected.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from typing import Any

from .config import BridgeConfig

logger = logging.getLogger("mcp.testgen.bridge")

# Oldest expired ids are forgotten past this many.
MAX_EXPIRED_IDS = 256


class BridgeError(Exception):
    """Transport or remote error talking to the driver process."""


class BridgeTimeoutError(BridgeError):
    """A request got no response within its timeout."""


class McpBridge:
    def __init__(self, config: BridgeConfig | None = None) -> None:
        self.config = config or BridgeConfig.from_env()
        self._proc: asyncio.subprocess.Process | None = None
        self._reader: asyncio.StreamReader | None = None
        self._writer: Any = None
        self._reader_task: asyncio.Task | None = None
        self._stderr_task: asyncio.Task | None = None
        self._ready: asyncio.Event | None = None
        self._pending: dict[int, asyncio.Future] = {}
        self._expired: dict[int, None] = {}
        self._next_id = 1
        self._connected = False

    @property
    def connected(self) -> bool:
        return self._connected

    # ─────────────────────────────────────────────────────────────────────────
    # Lifecycle
    # ─────────────────────────────────────────────────────────────────────────

    async def start(self) -> None:
        """Spawn the driver and wait (bounded) for its readiness line."""
        if self._connected:
            return
        cmd = list(self.config.command)
        logger.info("starting driver: %s", " ".join(cmd))
        try:
            self._proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise BridgeError(f"Failed to start MCP server: {exc}") from exc

        self._ready = asyncio.Event()
        self._stderr_task = asyncio.create_task(self._watch_stderr(self._proc.stderr))
        try:
            await asyncio.wait_for(self._ready.wait(), timeout=self.config.startup_timeout)
        except asyncio.TimeoutError:
            await self.stop()
            raise BridgeError(
                f"MCP server did not report readiness within {self.config.startup_timeout:.0f}s"
            ) from None
        if self._proc.returncode is not None or self._stderr_task.done():
            await self.stop()
            raise BridgeError("MCP server exited before it became ready")

        self.attach(self._proc.stdout, self._proc.stdin)
        await self.request("initialize", {"protocolVersion": "2025-06-18", "clientInfo": {"name": "testgen-orchestrator"}})
        await self.notify("notifications/initialized")

    def attach(self, reader: asyncio.StreamReader, writer: Any) -> None:
        """Bind to an already-ready stream pair and start reading responses."""
        self._reader = reader
        self._writer = writer
        self._connected = True
        self._reader_task = asyncio.create_task(self._read_loop(reader))

    async def stop(self) -> None:
        """Disconnect and terminate the driver (bounded wait, then kill)."""
        self._connected = False
        self._fail_pending(BridgeError("MCP server stopped"))
        if self._writer is not None:
            with contextlib.suppress(Exception):
                self._writer.close()
        proc, self._proc = self._proc, None
        if proc is not None and proc.returncode is None:
            with contextlib.suppress(ProcessLookupError):
                proc.terminate()
            try:
                await asyncio.wait_for(proc.wait(), timeout=5.0)
            except asyncio.TimeoutError:
                with contextlib.suppress(ProcessLookupError):
                    proc.kill()
                await proc.wait()
        for task in (self._reader_task, self._stderr_task):
            if task is not None and not task.done():
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError, Exception):
                    await task
        self._reader_task = None
        self._stderr_task = None

    # ─────────────────────────────────────────────────────────────────────────
    # Requests
    # ─────────────────────────────────────────────────────────────────────────

    async def _send_frame(self, frame: dict[str, Any]) -> None:
        self._writer.write((json.dumps(frame, ensure_ascii=False) + "\n").encode())
        await self._writer.drain()

    async def notify(self, method: str, params: dict[str, Any] | None = None) -> None:
        if not self._connected:
            raise BridgeError("MCP server not connected")
        frame: dict[str, Any] = {"jsonrpc": "2.0", "method": method}
        if params:
            frame["params"] = params
        await self._send_frame(frame)

    async def request(self, method: str, params: dict[str, Any] | None = None, *, timeout: float | None = None) -> Any:
        if not self._connected:
            raise BridgeError("MCP server not connected")

        req_id = self._next_id
        self._next_id += 1
        fut: asyncio.Future = asyncio.get_running_loop().create_future()
        self._pending[req_id] = fut

        frame = {"jsonrpc": "2.0", "id": req_id, "method": method, "params": params or {}}
        try:
            await self._send_frame(frame)
        except (OSError, RuntimeError) as exc:
            self._pending.pop(req_id, None)
            raise BridgeError(f"Failed to send {method}: {exc}") from exc

        limit = self.config.request_timeout if timeout is None else timeout
        try:
            return await asyncio.wait_for(fut, timeout=limit)
        except asyncio.TimeoutError:
            self._pending.pop(req_id, None)
            self._mark_expired(req_id)
            raise BridgeTimeoutError(f"Request {req_id} ({method}) timed out after {limit:g}s") from None

    def _mark_expired(self, req_id: int) -> None:
        self._expired[req_id] = None
        while len(self._expired) > MAX_EXPIRED_IDS:
            del self._expired[next(iter(self._expired))]

    async def invoke(self, name: str, arguments: dict[str, Any] | None = None) -> dict[str, Any]:
        """tools/call; returns the raw result envelope ({content, isError})."""
        result = await self.request("tools/call", {"name": name, "arguments": arguments or {}})
        return result if isinstance(result, dict) else {"content": [], "isError": True}

    async def list_tools(self) -> list[dict[str, Any]]:
        result = await self.request("tools/list")
        tools = result.get("tools") if isinstance(result, dict) else None
        return tools if isinstance(tools, list) else []

    # ─────────────────────────────────────────────────────────────────────────
    # Reading
    # ─────────────────────────────────────────────────────────────────────────

    def _on_line(self, line: bytes | str) -> None:
        raw = line.decode(errors="replace") if isinstance(line, bytes) else line
        raw = raw.strip()
        if not raw:
            return
        try:
            msg = json.loads(raw)
        except json.JSONDecodeError:
            logger.debug("ignoring malformed frame: %.200s", raw)
            return
        if not isinstance(msg, dict):
            logger.debug("ignoring non-object frame")
            return

        req_id = msg.get("id")
        if not isinstance(req_id, int) or isinstance(req_id, bool):
            logger.debug("ignoring frame without numeric id")
            return
        if req_id in self._expired:
            del self._expired[req_id]
            logger.debug("discarding late response for expired request %s", req_id)
            return
        fut = self._pending.pop(req_id, None)
        if fut is None:
            logger.debug("ignoring response for unknown request %s", req_id)
            return
        if fut.done():
            return

        err = msg.get("error")
        if err is not None:
            message = err.get("message") if isinstance(err, dict) else None
            fut.set_exception(BridgeError(str(message or err)))
        else:
            fut.set_result(msg.get("result"))

    async def _read_loop(self, reader: asyncio.StreamReader) -> None:
        try:
            while True:
                line = await reader.readline()
                if not line:
                    break
                self._on_line(line)
        finally:
            self._connected = False
            self._fail_pending(BridgeError("MCP server disconnected"))

    async def _watch_stderr(self, stream: asyncio.StreamReader | None) -> None:
        if stream is None:
            return
        while True:
            line = await stream.readline()
            if not line:
                # EOF before readiness: unblock start() so it can report the exit.
                if self._ready is not None:
                    self._ready.set()
                return
            text = line.decode(errors="replace").rstrip()
            if self._ready is not None and not self._ready.is_set() and self.config.ready_line in text:
                self._ready.set()
                continue
            logger.debug("driver: %s", text)

    def _fail_pending(self, exc: BridgeError) -> None:
        pending = list(self._pending.values())
        self._pending.clear()
        for fut in pending:
            if not fut.done():
                fut.set_exception(exc)

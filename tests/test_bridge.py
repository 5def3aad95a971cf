"""
Tests for the async JSON-RPC bridge: id matching, timeouts, EOF and startup.
"""

from __future__ import annotations

import asyncio
import json
import sys
from typing import Any

import pytest

from mcp_servers.testgen import bridge as bridge_module
from mcp_servers.testgen.bridge import BridgeError, BridgeTimeoutError, McpBridge
from mcp_servers.testgen.config import READY_LINE, BridgeConfig


class FakeWriter:
    """Collects written frames; stands in for the driver's stdin."""

    def __init__(self) -> None:
        self.frames: list[dict[str, Any]] = []
        self.closed = False

    def write(self, data: bytes) -> None:
        self.frames.extend(json.loads(line) for line in data.decode().splitlines() if line.strip())

    async def drain(self) -> None:
        return None

    def close(self) -> None:
        self.closed = True


def _respond(reader: asyncio.StreamReader, req_id: Any, result: Any = None, error: Any = None) -> None:
    frame: dict[str, Any] = {"jsonrpc": "2.0", "id": req_id}
    if error is not None:
        frame["error"] = error
    else:
        frame["result"] = result
    reader.feed_data((json.dumps(frame) + "\n").encode())


async def _until(predicate, attempts: int = 200) -> None:
    for _ in range(attempts):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition not reached")


async def _attached(timeout: float = 5.0) -> tuple[McpBridge, asyncio.StreamReader, FakeWriter]:
    bridge = McpBridge(BridgeConfig(request_timeout=timeout))
    reader = asyncio.StreamReader()
    writer = FakeWriter()
    bridge.attach(reader, writer)
    return bridge, reader, writer


# ═══════════════════════════════════════════════════════════════════════════════
# REQUEST MATCHING
# ═══════════════════════════════════════════════════════════════════════════════


def test_out_of_order_responses_match_by_id() -> None:
    async def scenario() -> tuple[Any, Any, list[int]]:
        bridge, reader, writer = await _attached()
        first = asyncio.create_task(bridge.request("tools/list"))
        second = asyncio.create_task(bridge.request("ping"))
        await _until(lambda: len(writer.frames) == 2)
        _respond(reader, 2, {"pong": True})
        _respond(reader, 1, {"tools": []})
        results = await asyncio.gather(first, second)
        await bridge.stop()
        return results[0], results[1], [f["id"] for f in writer.frames]

    first, second, ids = asyncio.run(scenario())
    assert first == {"tools": []}
    assert second == {"pong": True}
    assert ids == [1, 2]


def test_timeout_rejects_once_and_discards_late_response() -> None:
    async def scenario() -> tuple[Any, set[int]]:
        bridge, reader, writer = await _attached()
        with pytest.raises(BridgeTimeoutError, match="Request 1"):
            await bridge.request("slow", timeout=0.05)
        _respond(reader, 1, {"late": True})
        nxt = asyncio.create_task(bridge.request("next"))
        await _until(lambda: len(writer.frames) == 2)
        _respond(reader, 2, {"ok": True})
        result = await nxt
        expired = set(bridge._expired)
        await bridge.stop()
        return result, expired

    result, expired = asyncio.run(scenario())
    assert result == {"ok": True}
    assert expired == set()


def test_expired_ids_are_bounded(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(bridge_module, "MAX_EXPIRED_IDS", 2)

    async def scenario() -> list[int]:
        bridge, reader, writer = await _attached()
        for _ in range(3):
            with pytest.raises(BridgeTimeoutError):
                await bridge.request("slow", timeout=0.01)
        expired = list(bridge._expired)
        await bridge.stop()
        return expired

    assert asyncio.run(scenario()) == [2, 3]


def test_remote_error_becomes_bridge_error() -> None:
    async def scenario() -> None:
        bridge, reader, writer = await _attached()
        task = asyncio.create_task(bridge.request("resources/list"))
        await _until(lambda: writer.frames)
        _respond(reader, 1, error={"code": -32601, "message": "Method resources/list not found"})
        try:
            with pytest.raises(BridgeError, match="not found"):
                await task
        finally:
            await bridge.stop()

    asyncio.run(scenario())


def test_request_without_connection_fails() -> None:
    async def scenario() -> None:
        bridge = McpBridge(BridgeConfig())
        with pytest.raises(BridgeError, match="not connected"):
            await bridge.request("ping")
        with pytest.raises(BridgeError, match="not connected"):
            await bridge.notify("notifications/initialized")

    asyncio.run(scenario())


def test_eof_rejects_pending_requests() -> None:
    async def scenario() -> bool:
        bridge, reader, writer = await _attached()
        task = asyncio.create_task(bridge.request("tools/call"))
        await _until(lambda: writer.frames)
        reader.feed_eof()
        with pytest.raises(BridgeError, match="disconnected"):
            await task
        connected = bridge.connected
        await bridge.stop()
        return connected

    assert asyncio.run(scenario()) is False


def test_malformed_and_unmatched_frames_are_ignored() -> None:
    async def scenario() -> Any:
        bridge, reader, writer = await _attached()
        task = asyncio.create_task(bridge.request("ping"))
        await _until(lambda: writer.frames)
        reader.feed_data(b"this is not json\n")
        reader.feed_data(b'{"jsonrpc": "2.0", "method": "notifications/message"}\n')
        reader.feed_data(b"[1, 2, 3]\n")
        _respond(reader, 99, {"stray": True})
        _respond(reader, 1, {})
        result = await task
        await bridge.stop()
        return result

    assert asyncio.run(scenario()) == {}


def test_invoke_sends_tools_call_frame() -> None:
    async def scenario() -> tuple[dict[str, Any], dict[str, Any]]:
        bridge, reader, writer = await _attached()
        task = asyncio.create_task(bridge.invoke("navigate_to", {"url": "https://x.test"}))
        await _until(lambda: writer.frames)
        envelope = {"content": [{"type": "text", "text": "Navigated"}], "isError": False}
        _respond(reader, 1, envelope)
        result = await task
        await bridge.stop()
        return writer.frames[0], result

    frame, result = asyncio.run(scenario())
    assert frame == {
        "jsonrpc": "2.0",
        "id": 1,
        "method": "tools/call",
        "params": {"name": "navigate_to", "arguments": {"url": "https://x.test"}},
    }
    assert result["isError"] is False


def test_stop_rejects_pending_and_closes_writer() -> None:
    async def scenario() -> FakeWriter:
        bridge, reader, writer = await _attached()
        task = asyncio.create_task(bridge.request("ping"))
        await _until(lambda: writer.frames)
        await bridge.stop()
        with pytest.raises(BridgeError, match="stopped"):
            await task
        return writer

    assert asyncio.run(scenario()).closed


# ═══════════════════════════════════════════════════════════════════════════════
# STARTUP
# ═══════════════════════════════════════════════════════════════════════════════

_ECHO_CHILD = f"""
import json, sys
print("booting", file=sys.stderr, flush=True)
print({READY_LINE!r}, file=sys.stderr, flush=True)
for line in sys.stdin:
    msg = json.loads(line)
    if "id" in msg:
        print(json.dumps({{"jsonrpc": "2.0", "id": msg["id"], "result": {{"method": msg["method"]}}}}), flush=True)
"""


def _child(code: str, **overrides: Any) -> BridgeConfig:
    return BridgeConfig(command=[sys.executable, "-c", code], request_timeout=5.0, **overrides)


def test_start_waits_for_ready_line_and_initializes() -> None:
    async def scenario() -> Any:
        bridge = McpBridge(_child(_ECHO_CHILD, startup_timeout=10.0))
        await bridge.start()
        try:
            assert bridge.connected
            return await bridge.request("ping")
        finally:
            await bridge.stop()

    # id 1 went to initialize during start()
    assert asyncio.run(scenario()) == {"method": "ping"}


def test_start_times_out_without_ready_line() -> None:
    async def scenario() -> None:
        bridge = McpBridge(_child("import time; time.sleep(30)", startup_timeout=0.3))
        with pytest.raises(BridgeError, match="did not report readiness"):
            await bridge.start()
        assert not bridge.connected

    asyncio.run(scenario())


def test_start_reports_early_exit() -> None:
    async def scenario() -> None:
        bridge = McpBridge(_child("import sys; sys.exit(3)", startup_timeout=10.0))
        with pytest.raises(BridgeError, match="exited before"):
            await bridge.start()

    asyncio.run(scenario())


def test_start_reports_missing_command() -> None:
    async def scenario() -> None:
        bridge = McpBridge(BridgeConfig(command=["/nonexistent/testgen-driver"]))
        with pytest.raises(BridgeError, match="Failed to start"):
            await bridge.start()

    asyncio.run(scenario())

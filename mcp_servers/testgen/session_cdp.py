"""Raw Chrome DevTools Protocol connection over websocket-client."""

from __future__ import annotations

import json
import socket
import time
from contextlib import suppress
from typing import Any

import websocket

from .http_client import HttpClientError


class CdpConnection:
    """Low-level CDP WebSocket connection."""

    def __init__(self, ws_url: str, timeout: float = 5.0):
        try:
            self.ws = websocket.create_connection(ws_url, timeout=timeout)
        except (OSError, websocket.WebSocketException) as exc:
            raise HttpClientError(f"CDP connect failed: {exc}") from exc
        self.ws_url = ws_url
        self.timeout = timeout
        self._next_id = 1
        # CDP is event-heavy. Events received while waiting for a command response are
        # queued so later waits (load, navigation) can still observe them.
        self._event_queue: list[dict[str, Any]] = []
        self._max_event_queue = 2000

    def _push_event(self, event: dict[str, Any]) -> None:
        self._event_queue.append(event)
        if len(self._event_queue) > self._max_event_queue:
            del self._event_queue[: len(self._event_queue) - self._max_event_queue]

    def pop_event(self, event_name: str) -> dict[str, Any] | None:
        """Pop the oldest queued event params for the given event name."""
        for i, ev in enumerate(self._event_queue):
            if ev.get("method") == event_name:
                self._event_queue.pop(i)
                params = ev.get("params")
                return params if isinstance(params, dict) else {}
        return None

    def clear_events(self, event_name: str) -> None:
        self._event_queue = [ev for ev in self._event_queue if ev.get("method") != event_name]

    def send(self, method: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        """Send CDP command and wait for response."""
        msg_id = self._next_id
        self._next_id += 1

        msg: dict[str, Any] = {"id": msg_id, "method": method}
        if params:
            msg["params"] = params

        try:
            self.ws.settimeout(min(2.0, max(0.5, float(self.timeout))))
            self.ws.send(json.dumps(msg))
        except (OSError, websocket.WebSocketException) as exc:
            raise HttpClientError(str(exc)) from exc

        return self._recv_until(msg_id, method)

    def send_many(self, commands: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Send multiple CDP commands sequentially."""
        return [self.send(cmd["method"], cmd.get("params")) for cmd in commands]

    def _recv(self, remaining: float) -> dict[str, Any] | None:
        """Receive one decoded frame, or None when nothing arrived in time."""
        try:
            self.ws.settimeout(min(0.5, remaining))
            raw = self.ws.recv()
        except websocket.WebSocketTimeoutException:
            return None
        except TimeoutError:
            return None
        except (OSError, websocket.WebSocketException) as exc:
            raise HttpClientError(str(exc)) from exc
        try:
            data = json.loads(raw)
        except (TypeError, json.JSONDecodeError):
            return None
        return data if isinstance(data, dict) else None

    def _recv_until(self, expected_id: int, method: str = "") -> dict[str, Any]:
        """Wait for response with specific ID."""
        deadline = time.time() + self.timeout
        while True:
            remaining = deadline - time.time()
            if remaining <= 0:
                raise HttpClientError(f"CDP response timed out ({method or expected_id})")
            data = self._recv(remaining)
            if data is None:
                continue
            if isinstance(data.get("method"), str) and "id" not in data:
                self._push_event(data)
                continue
            if data.get("id") == expected_id:
                if "error" in data:
                    err = data["error"]
                    message = err.get("message") if isinstance(err, dict) else None
                    raise HttpClientError(f"{method}: {message or err}")
                return data.get("result", {})

    def wait_for_event(self, event_name: str, timeout: float = 10.0) -> dict[str, Any] | None:
        """Wait for specific CDP event."""
        queued = self.pop_event(event_name)
        if queued is not None:
            return queued

        deadline = time.time() + timeout
        while True:
            remaining = deadline - time.time()
            if remaining <= 0:
                return None
            data = self._recv(remaining)
            if data is None:
                continue
            if isinstance(data.get("method"), str) and "id" not in data:
                if data["method"] == event_name:
                    params = data.get("params")
                    return params if isinstance(params, dict) else {}
                self._push_event(data)

    def close(self) -> None:
        """Close the WebSocket connection."""
        # Prefer a raw-socket shutdown; websocket-client close() may block on the handshake.
        sock = getattr(self.ws, "sock", None)
        if sock is not None:
            with suppress(OSError):
                sock.shutdown(socket.SHUT_RDWR)
            with suppress(OSError):
                sock.close()

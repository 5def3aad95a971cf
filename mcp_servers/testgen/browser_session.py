"""High-level page session on top of a CDP connection."""

from __future__ import annotations

import time
from typing import Any

from .http_client import HttpClientError
from .session_cdp import CdpConnection
from .tools import js_helpers


class BrowserSession:
    """
    High-level browser session for a specific tab.

    Wraps CdpConnection with the page operations the driver tools need.
    Element-level helpers take a selector (css, xpath=/``//``, text=) and
    run a small JS probe in the page.
    """

    def __init__(self, connection: CdpConnection, tab_id: str, tab_url: str = ""):
        self.conn = connection
        self.tab_id = tab_id
        self.tab_url = tab_url
        self._page_enabled = False
        self._runtime_enabled = False

    def close(self) -> None:
        """Close the session connection."""
        self.conn.close()

    def enable_page(self) -> None:
        """Enable Page domain for navigation events."""
        if not self._page_enabled:
            self.conn.send("Page.enable")
            self._page_enabled = True

    def enable_runtime(self) -> None:
        """Enable Runtime domain for JS evaluation."""
        if not self._runtime_enabled:
            self.conn.send("Runtime.enable")
            self._runtime_enabled = True

    # ─────────────────────────────────────────────────────────────────────────
    # Navigation
    # ─────────────────────────────────────────────────────────────────────────

    def navigate(self, url: str, wait_load: bool = True, timeout: float = 30.0) -> str:
        """Navigate to URL, optionally waiting for load."""
        self.enable_page()
        self.conn.clear_events("Page.loadEventFired")
        result = self.conn.send("Page.navigate", {"url": url})
        if result.get("errorText"):
            raise HttpClientError(f"Navigation to {url} failed: {result['errorText']}")
        if wait_load:
            self.wait_load(timeout)
        self.tab_url = url
        return url

    def wait_load(self, timeout: float = 30.0) -> bool:
        """Wait for page load event."""
        return self.conn.wait_for_event("Page.loadEventFired", timeout) is not None

    # ─────────────────────────────────────────────────────────────────────────
    # JavaScript
    # ─────────────────────────────────────────────────────────────────────────

    def eval_js(self, expression: str) -> Any:
        """Evaluate JavaScript and return its JSON value (None for undefined/null)."""
        self.enable_runtime()
        result = self.conn.send(
            "Runtime.evaluate",
            {
                "expression": expression,
                "returnByValue": True,
                "awaitPromise": True,
            },
        )
        details = result.get("exceptionDetails")
        if details:
            exc = details.get("exception") if isinstance(details, dict) else None
            message = (exc or {}).get("description") or details.get("text") or "JavaScript exception"
            raise HttpClientError(str(message).splitlines()[0])
        value = result.get("result")
        if not isinstance(value, dict):
            return None
        if value.get("type") == "undefined":
            return None
        if value.get("type") == "object" and value.get("subtype") == "null":
            return None
        return value.get("value")

    def get_url(self) -> str:
        """Get current page URL."""
        return self.eval_js("window.location.href") or ""

    def get_title(self) -> str:
        """Get current page title."""
        return self.eval_js("document.title") or ""

    def html_length(self) -> int:
        return int(self.eval_js("document.documentElement.outerHTML.length") or 0)

    # ─────────────────────────────────────────────────────────────────────────
    # Input
    # ─────────────────────────────────────────────────────────────────────────

    def click(self, x: float, y: float, button: str = "left", click_count: int = 1) -> None:
        """Click at viewport coordinates."""
        self.conn.send_many(
            [
                {"method": "Input.dispatchMouseEvent", "params": {"type": "mouseMoved", "x": x, "y": y}},
                {
                    "method": "Input.dispatchMouseEvent",
                    "params": {"type": "mousePressed", "x": x, "y": y, "button": button, "clickCount": click_count},
                },
                {
                    "method": "Input.dispatchMouseEvent",
                    "params": {"type": "mouseReleased", "x": x, "y": y, "button": button, "clickCount": click_count},
                },
            ]
        )

    def press_key(self, key: str, modifiers: int = 0) -> None:
        """Press a keyboard key (named key or single character)."""
        key_codes = {
            "Enter": 13,
            "Tab": 9,
            "Escape": 27,
            "Backspace": 8,
            "Delete": 46,
            "ArrowUp": 38,
            "ArrowDown": 40,
            "ArrowLeft": 37,
            "ArrowRight": 39,
            "/": 191,
        }
        key_code = key_codes.get(key, ord(key[0].upper()) if len(key) == 1 else 0)
        code = key if len(key) > 1 else ("Slash" if key == "/" else f"Key{key.upper()}")
        down: dict[str, Any] = {
            "type": "keyDown",
            "key": key,
            "code": code,
            "windowsVirtualKeyCode": key_code,
            "modifiers": modifiers,
        }
        if key == "Enter":
            down["text"] = "\r"
        elif len(key) == 1:
            down["text"] = key
        self.conn.send_many(
            [
                {"method": "Input.dispatchKeyEvent", "params": down},
                {
                    "method": "Input.dispatchKeyEvent",
                    "params": {
                        "type": "keyUp",
                        "key": key,
                        "code": code,
                        "windowsVirtualKeyCode": key_code,
                        "modifiers": modifiers,
                    },
                },
            ]
        )

    def type_text(self, text: str) -> None:
        """Insert text into the focused element."""
        if text:
            self.conn.send("Input.insertText", {"text": str(text)})

    # ─────────────────────────────────────────────────────────────────────────
    # Element helpers
    # ─────────────────────────────────────────────────────────────────────────

    def query(self, selector: str) -> dict[str, Any]:
        """Return {found, visible, enabled, tag, editable} for the first match."""
        return self.eval_js(js_helpers.probe_js(selector)) or {"found": False, "visible": False, "enabled": False}

    def wait_visible(self, selector: str, timeout: float) -> dict[str, Any]:
        """Poll until the selector is visible; return the last probe state."""
        deadline = time.time() + max(0.0, timeout)
        while True:
            state = self.query(selector)
            if state.get("visible"):
                return state
            if time.time() >= deadline:
                return state
            time.sleep(0.1)

    def scroll_into_view(self, selector: str) -> dict[str, float] | None:
        return self.eval_js(js_helpers.scroll_into_view_js(selector))

    def focus_and_clear(self, selector: str) -> bool:
        return bool(self.eval_js(js_helpers.focus_and_clear_js(selector)))

    def read_value(self, selector: str) -> str | None:
        return self.eval_js(js_helpers.read_value_js(selector))

    def set_value(self, selector: str, text: str) -> str | None:
        return self.eval_js(js_helpers.set_value_js(selector, text))

    def focused_editable(self) -> bool:
        return bool(self.eval_js(js_helpers.focused_editable_js()))

    def collect_elements(self, kind: str) -> list[dict[str, Any]]:
        """Describe clickable or fillable elements on the page (diagnostics)."""
        return list(self.eval_js(js_helpers.collect_elements_js(kind)) or [])

    def inspect(self, element_type: str = "all") -> dict[str, Any]:
        return self.eval_js(js_helpers.inspect_js(element_type)) or {}

    # ─────────────────────────────────────────────────────────────────────────
    # Screenshots
    # ─────────────────────────────────────────────────────────────────────────

    def screenshot(self, format: str = "png") -> str:
        """Capture screenshot, return base64 data."""
        result = self.conn.send("Page.captureScreenshot", {"format": format, "fromSurface": True})
        return result.get("data", "")


__all__ = ["BrowserSession"]

"""
Shared fakes: an in-memory page that implements the BrowserSession surface
the driver tools use, and a launcher handing it out.
"""

from __future__ import annotations

import base64
from pathlib import Path
from typing import Any

import pytest

from mcp_servers.testgen.config import BrowserConfig
from mcp_servers.testgen.driver import Driver
from mcp_servers.testgen.tools import search as search_module

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 24


class FakeSession:
    """Selector -> element dict. Elements: visible, enabled, editable, value, text, box."""

    def __init__(self, url: str = "about:blank", title: str = "") -> None:
        self.tab_id = "TAB1"
        self.tab_url = url
        self.title = title
        self.elements: dict[str, dict[str, Any]] = {}
        self.focused: str | None = None
        self.focused_text_field = False
        self.clicks: list[tuple[float, float]] = []
        self.clicked: list[str] = []
        self.keys: list[str] = []
        self.typed: list[str] = []
        self.navigations: list[str] = []
        self.probes: list[str] = []
        self.drop_typing: set[str] = set()
        self.shortcut_reveals: dict[str, str] = {}
        self.collect_error: Exception | None = None
        self.closed = False

    def add(self, selector: str, **attrs: Any) -> dict[str, Any]:
        el = {"visible": True, "enabled": True, "editable": False, "value": "", "box": (10, 20, 100, 30)}
        el.update(attrs)
        self.elements[selector] = el
        return el

    # navigation / page
    def navigate(self, url: str, wait_load: bool = True, timeout: float = 30.0) -> str:
        self.navigations.append(url)
        self.tab_url = url
        return url

    def get_url(self) -> str:
        return self.tab_url

    def get_title(self) -> str:
        return self.title

    def html_length(self) -> int:
        return 1234

    def close(self) -> None:
        self.closed = True

    # element helpers
    def query(self, selector: str) -> dict[str, Any]:
        self.probes.append(selector)
        el = self.elements.get(selector)
        if el is None:
            return {"found": False, "visible": False, "enabled": False}
        return {"found": True, "visible": el["visible"], "enabled": el["enabled"], "editable": el["editable"]}

    def wait_visible(self, selector: str, timeout: float) -> dict[str, Any]:
        return self.query(selector)

    def scroll_into_view(self, selector: str) -> dict[str, float] | None:
        el = self.elements.get(selector)
        if el is None:
            return None
        x, y, w, h = el["box"]
        return {"x": x, "y": y, "width": w, "height": h}

    def click(self, x: float, y: float) -> None:
        self.clicks.append((x, y))
        for selector, el in self.elements.items():
            bx, by, bw, bh = el["box"]
            if bx <= x <= bx + bw and by <= y <= by + bh:
                self.clicked.append(selector)
                break

    def focus_and_clear(self, selector: str) -> bool:
        el = self.elements.get(selector)
        if el is None or not el["editable"]:
            return False
        self.focused = selector
        el["value"] = ""
        return True

    def type_text(self, text: str) -> None:
        self.typed.append(text)
        if self.focused and self.focused not in self.drop_typing:
            self.elements[self.focused]["value"] += text

    def read_value(self, selector: str) -> str | None:
        el = self.elements.get(selector)
        return None if el is None else el["value"]

    def set_value(self, selector: str, text: str) -> str | None:
        el = self.elements.get(selector)
        if el is None:
            return None
        el["value"] = text
        return text

    def focused_editable(self) -> bool:
        return self.focused_text_field

    def press_key(self, key: str, modifiers: int = 0) -> None:
        self.keys.append(key)
        revealed = self.shortcut_reveals.get(key)
        if revealed and revealed in self.elements:
            self.elements[revealed]["visible"] = True

    def collect_elements(self, kind: str) -> list[dict[str, Any]]:
        if self.collect_error is not None:
            raise self.collect_error
        out = []
        for selector, el in self.elements.items():
            if (kind == "fillable") == bool(el["editable"]):
                out.append({"tag": "input" if el["editable"] else "button", "selectors": [selector], "visible": el["visible"]})
        return out

    def inspect(self, element_type: str = "all") -> dict[str, Any]:
        return {
            "url": self.tab_url,
            "title": self.title,
            "forms": [{"index": 0, "selectors": ["form#login"], "fields": []}],
            "inputs": [{"tag": "input", "label": "Email", "selectors": ["#email", 'input[name="email"]']}],
            "buttons": [{"tag": "button", "text": "Sign in", "selectors": ["text=Sign in", "button"]}],
        }

    def screenshot(self, format: str = "png") -> str:
        return base64.b64encode(PNG_BYTES).decode()


class FakeLauncher:
    def __init__(self, session: FakeSession) -> None:
        self.session = session
        self.opened: list[bool] = []
        self.stopped = 0

    def open_session(self, *, headless: bool = False) -> FakeSession:
        self.opened.append(headless)
        return self.session

    def stop(self, *, timeout: float = 2.0) -> bool:
        self.stopped += 1
        return True


@pytest.fixture(autouse=True)
def _fast_search_waits(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(search_module, "RESULTS_TIMEOUT_S", 0.0)
    monkeypatch.setattr(search_module, "SETTLE_DELAY_S", 0.0)
    monkeypatch.setattr(search_module, "SHORTCUT_WAIT_S", 0.0)


@pytest.fixture
def page() -> FakeSession:
    return FakeSession()


@pytest.fixture
def browser_config(tmp_path: Path) -> BrowserConfig:
    return BrowserConfig(binary_path="/usr/bin/chromium", profile_path=str(tmp_path / "profile"))


@pytest.fixture
def launcher(page: FakeSession) -> FakeLauncher:
    return FakeLauncher(page)


@pytest.fixture
def driver(browser_config: BrowserConfig, launcher: FakeLauncher) -> Driver:
    return Driver(browser_config, launcher=launcher)  # type: ignore[arg-type]

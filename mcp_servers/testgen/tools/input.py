"""
Click and fill through multi-candidate selector resolution.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .base import SmartToolError
from .locate import build_candidates, resolve_and_act

if TYPE_CHECKING:
    from ..browser_session import BrowserSession


def click_at_element(session: BrowserSession, selector: str, tool: str = "click_element") -> dict[str, float]:
    """Scroll into view and dispatch a mouse click at the element's box centre."""
    box = session.scroll_into_view(selector)
    if not box or not box.get("width") or not box.get("height"):
        raise SmartToolError(tool=tool, action="click", reason="element has no clickable box")
    x = box["x"] + box["width"] / 2
    y = box["y"] + box["height"] / 2
    session.click(x, y)
    return {"x": x, "y": y}


def click_candidates(
    session: BrowserSession, candidates: list[str], timeout: float = 30000, tool: str = "click_element"
) -> dict[str, Any]:
    resolution = resolve_and_act(
        session,
        candidates,
        tool=tool,
        action="click",
        attempt=lambda sel: click_at_element(session, sel, tool),
        timeout_ms=timeout,
    )
    return {"selector": resolution.selector, "tried": resolution.tried, "position": resolution.result}


def click_element(session: BrowserSession, selector: str, timeout: float = 30000) -> dict[str, Any]:
    return click_candidates(session, build_candidates(session.get_url() or session.tab_url, selector, "click"), timeout)


def fill_element(session: BrowserSession, selector: str, text: str) -> str:
    """Focus, clear, type; fall back to the native value setter when typing did not stick."""
    if not session.focus_and_clear(selector):
        raise SmartToolError(tool="fill_input", action="focus", reason="element did not take focus")
    session.type_text(text)
    value = session.read_value(selector)
    if value != text:
        value = session.set_value(selector, text)
        value = session.read_value(selector) if value is None else value
    if value is None:
        raise SmartToolError(tool="fill_input", action="fill", reason="element has no readable value")
    return value


def fill_input(session: BrowserSession, selector: str, text: str, timeout: float = 30000) -> dict[str, Any]:
    resolution = resolve_and_act(
        session,
        build_candidates(session.get_url() or session.tab_url, selector, "fill"),
        tool="fill_input",
        action="fill",
        attempt=lambda sel: fill_element(session, sel, text),
        timeout_ms=timeout,
    )
    return {"selector": resolution.selector, "tried": resolution.tried, "confirmed": resolution.result}

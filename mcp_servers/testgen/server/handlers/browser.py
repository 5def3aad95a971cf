"""
Browser lifecycle and page-level tool handlers.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ..types import ToolResult

if TYPE_CHECKING:
    from ...driver import Driver


def handle_launch_browser(driver: Driver, args: dict[str, Any]) -> ToolResult:
    result = driver.launch(headless=bool(args.get("headless", False)))
    if result["status"] == "already_running":
        return ToolResult.text(f"Browser already running (headless={result['headless']}); session kept")
    mode = "headless" if result["headless"] else "headed"
    return ToolResult.text(f"Browser launched successfully ({mode})")


def handle_navigate_to(driver: Driver, args: dict[str, Any]) -> ToolResult:
    result = driver.navigate(args["url"])
    return ToolResult.text(f"Navigated to {result['url']} (title: {result['title']!r})")


def handle_take_screenshot(driver: Driver, args: dict[str, Any]) -> ToolResult:
    result = driver.screenshot(args.get("filename") or "screenshot.png")
    return ToolResult.text(f"Screenshot saved to {result['path']} ({result['bytes']} bytes)")


def handle_inspect_page(driver: Driver, args: dict[str, Any]) -> ToolResult:
    return ToolResult.json(driver.inspect(args.get("elementType") or "all"))


def handle_get_page_content(driver: Driver, args: dict[str, Any]) -> ToolResult:
    return ToolResult.json(driver.page_content())


def handle_close_browser(driver: Driver, args: dict[str, Any]) -> ToolResult:
    return ToolResult.text(driver.close()["message"])


BROWSER_HANDLERS: dict[str, Any] = {
    "launch_browser": handle_launch_browser,
    "navigate_to": handle_navigate_to,
    "take_screenshot": handle_take_screenshot,
    "inspect_page": handle_inspect_page,
    "get_page_content": handle_get_page_content,
    "close_browser": handle_close_browser,
}

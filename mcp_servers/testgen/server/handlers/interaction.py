"""
Element interaction tool handlers: click, fill, wait, submit, site search.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ..types import ToolResult

if TYPE_CHECKING:
    from ...driver import Driver


def _resolved_note(requested: str, result: dict[str, Any]) -> str:
    resolved = result["selector"]
    return "" if resolved == requested else f" (resolved from {requested!r})"


def handle_click_element(driver: Driver, args: dict[str, Any]) -> ToolResult:
    result = driver.click(args["selector"], args.get("timeout", 30000))
    return ToolResult.text(f"Clicked {result['selector']}{_resolved_note(args['selector'], result)}")


def handle_fill_input(driver: Driver, args: dict[str, Any]) -> ToolResult:
    result = driver.fill(args["selector"], args["text"])
    return ToolResult.text(
        f"Filled {result['selector']}{_resolved_note(args['selector'], result)}; value is {result['confirmed']!r}"
    )


def handle_wait_for_element(driver: Driver, args: dict[str, Any]) -> ToolResult:
    result = driver.wait(args["selector"], args.get("timeout", 30000))
    return ToolResult.text(f"Element {result['selector']} is visible")


def handle_submit_form(driver: Driver, args: dict[str, Any]) -> ToolResult:
    result = driver.submit_form(args.get("formSelector") or "form")
    return ToolResult.text(f"Form submitted by clicking {result['selector']}")


def handle_site_search(driver: Driver, args: dict[str, Any]) -> ToolResult:
    result = driver.site_search(args["query"])
    return ToolResult.json(
        {
            "query": result["query"],
            "strategy": result["strategy"],
            "site": result["site"],
            "resultsSelector": result["resultsSelector"],
        }
    )


INTERACTION_HANDLERS: dict[str, Any] = {
    "click_element": handle_click_element,
    "fill_input": handle_fill_input,
    "wait_for_element": handle_wait_for_element,
    "submit_form": handle_submit_form,
    "site_search": handle_site_search,
}

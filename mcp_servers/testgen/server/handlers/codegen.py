"""
Script generation tool handler.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ..types import ToolResult

if TYPE_CHECKING:
    from ...driver import Driver


def handle_generate_test(driver: Driver, args: dict[str, Any]) -> ToolResult:
    result = driver.generate_script(
        args["testName"],
        args.get("description") or "",
        actions=args.get("actions"),
        output_file=args.get("outputFile"),
    )
    text = result["script"]
    if result.get("outputFile"):
        text = f"# Written to {result['outputFile']}\n{text}"
    return ToolResult.text(text)


CODEGEN_HANDLERS: dict[str, Any] = {
    "generate_test": handle_generate_test,
}

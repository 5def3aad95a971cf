"""
Script generator: action records -> pytest-playwright test module.

Output is deterministic: the same records always produce byte-identical
source, in the original execution order.
"""

from __future__ import annotations

import json
import re
from collections.abc import Callable, Iterable, Mapping
from pathlib import Path
from typing import Any

from .actions import ActionRecord, DriverAction, coerce_action
from .sites import SUBMIT_CONTROLS

DEFAULT_TIMEOUT_MS = 30000


def literal(value: Any) -> str:
    """Python literal for a string/number (JSON string syntax is valid Python)."""
    if isinstance(value, bool):
        return "True" if value else "False"
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, (int, float)):
        return repr(value)
    return json.dumps(str(value), ensure_ascii=False)


def _timeout_kw(timeout: Any) -> str:
    if timeout is None:
        return ""
    try:
        ms = float(timeout)
    except (TypeError, ValueError):
        return ""
    if ms == DEFAULT_TIMEOUT_MS:
        return ""
    return f", timeout={literal(ms)}"


# ─────────────────────────────────────────────────────────────────────────────
# Line builders (shared by the driver and the tool-call translation table)
# ─────────────────────────────────────────────────────────────────────────────


def goto_line(url: str) -> str:
    return f"page.goto({literal(url)})"


def click_line(selector: str, timeout: Any = None) -> str:
    return f"page.click({literal(selector)}{_timeout_kw(timeout)})"


def fill_line(selector: str, text: str) -> str:
    return f"page.fill({literal(selector)}, {literal(text)})"


def press_line(selector: str, key: str) -> str:
    return f"page.press({literal(selector)}, {literal(key)})"


def wait_line(selector: str, timeout: Any = None) -> str:
    return f"page.wait_for_selector({literal(selector)}{_timeout_kw(timeout)})"


def screenshot_line(path: str) -> str:
    return f"page.screenshot(path={literal(path)})"


def keyboard_press_line(key: str) -> str:
    return f"page.keyboard.press({literal(key)})"


def keyboard_type_line(text: str) -> str:
    return f"page.keyboard.type({literal(text)})"


def submit_selector(form_selector: str) -> str:
    form = (form_selector or "form").strip() or "form"
    return ", ".join(f"{form} {control}" for control in SUBMIT_CONTROLS[:3])


# ─────────────────────────────────────────────────────────────────────────────
# Tool-call translation table
# ─────────────────────────────────────────────────────────────────────────────


def _no_lines(_args: Mapping[str, Any]) -> list[str]:
    return []


def _navigate(args: Mapping[str, Any]) -> list[str]:
    return [goto_line(args.get("url", ""))]


def _click(args: Mapping[str, Any]) -> list[str]:
    return [click_line(args.get("selector", ""), args.get("timeout"))]


def _fill(args: Mapping[str, Any]) -> list[str]:
    return [fill_line(args.get("selector", ""), args.get("text", ""))]


def _wait(args: Mapping[str, Any]) -> list[str]:
    return [wait_line(args.get("selector", ""), args.get("timeout"))]


def _screenshot(args: Mapping[str, Any]) -> list[str]:
    return [screenshot_line(args.get("filename") or "screenshot.png")]


def _submit(args: Mapping[str, Any]) -> list[str]:
    return [click_line(submit_selector(args.get("formSelector") or "form"))]


def _site_search(args: Mapping[str, Any]) -> list[str]:
    # The winning strategy is only known to the driver; replay the shortcut route.
    query = args.get("query", "")
    return [keyboard_press_line("/"), keyboard_type_line(query), keyboard_press_line("Enter")]


TOOL_TRANSLATIONS: dict[str, Callable[[Mapping[str, Any]], list[str]]] = {
    "launch_browser": _no_lines,
    "navigate_to": _navigate,
    "click_element": _click,
    "fill_input": _fill,
    "wait_for_element": _wait,
    "take_screenshot": _screenshot,
    "inspect_page": _no_lines,
    "site_search": _site_search,
    "submit_form": _submit,
    "get_page_content": _no_lines,
    "generate_test": _no_lines,
    "close_browser": _no_lines,
}


def lines_for(record: ActionRecord) -> list[str]:
    if isinstance(record, DriverAction):
        return list(record.source)
    translate = TOOL_TRANSLATIONS.get(record.name)
    if translate is None:
        return [f"# Unsupported action: {record.name}"]
    return translate(record.arguments)


# ─────────────────────────────────────────────────────────────────────────────
# Module rendering
# ─────────────────────────────────────────────────────────────────────────────


def sanitize_test_name(name: str) -> str:
    cleaned = re.sub(r"[^0-9a-zA-Z_]+", "_", (name or "").strip().lower())
    cleaned = re.sub(r"_+", "_", cleaned).strip("_") or "generated_test"
    return cleaned if cleaned.startswith("test_") else f"test_{cleaned}"


def test_name_from_prompt(prompt: str) -> str:
    words = [w for w in re.sub(r"[^\w\s]", " ", (prompt or "").lower()).split() if len(w) > 2]
    return "_".join(words[:4]) or "generated_test"


def generate_script(
    test_name: str,
    description: str = "",
    actions: Iterable[ActionRecord | Mapping[str, Any]] = (),
) -> str:
    """Render a standalone pytest-playwright module for the given actions."""
    body: list[str] = []
    for raw in actions:
        body.extend(lines_for(coerce_action(raw)))

    header = (description or test_name or "").strip().splitlines() or ["generated test"]
    out = [f"# {line}".rstrip() for line in header]
    out.append("from playwright.sync_api import Page")
    out.append("")
    out.append("")
    out.append(f"def {sanitize_test_name(test_name)}(page: Page) -> None:")
    if body:
        out.extend(f"    {line}" for line in body)
    else:
        out.append("    pass")
    return "\n".join(out) + "\n"


def write_script(path: str | Path, source: str) -> Path:
    target = Path(path).expanduser()
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(source, encoding="utf-8")
    return target.resolve()


__all__ = [
    "TOOL_TRANSLATIONS",
    "click_line",
    "fill_line",
    "generate_script",
    "goto_line",
    "keyboard_press_line",
    "keyboard_type_line",
    "lines_for",
    "literal",
    "press_line",
    "sanitize_test_name",
    "screenshot_line",
    "submit_selector",
    "test_name_from_prompt",
    "wait_line",
    "write_script",
]

"""Tool schema definitions (served by tools/list, also used for argument validation)."""

from __future__ import annotations

from typing import Any

_SELECTOR_HELP = 'CSS selector, XPath ("xpath=..." or "//..."), or text ("text=Sign in", quoted for exact match)'


def _tool(name: str, description: str, properties: dict[str, Any], required: list[str] | None = None) -> dict[str, Any]:
    return {
        "name": name,
        "description": description,
        "inputSchema": {
            "$schema": "http://json-schema.org/draft-07/schema#",
            "type": "object",
            "properties": properties,
            "required": list(required or []),
        },
    }


TOOL_DEFINITIONS: list[dict[str, Any]] = [
    _tool(
        "launch_browser",
        "Launch a browser session. Starting a session clears the action log; "
        "calling it while a session is active only reports the current state.",
        {"headless": {"type": "boolean", "default": False, "description": "Run without a visible window"}},
    ),
    _tool(
        "navigate_to",
        "Navigate the current tab to a URL and wait for the page to load.",
        {"url": {"type": "string", "description": "Absolute URL (http, https, about, data, file)"}},
        ["url"],
    ),
    _tool(
        "click_element",
        """Click an element. Known-good selectors for the current site are tried first,
the given selector last. On failure the error lists every tried selector and the
clickable elements actually present on the page.""",
        {
            "selector": {"type": "string", "description": _SELECTOR_HELP},
            "timeout": {"type": "number", "default": 30000, "description": "Total timeout in milliseconds"},
        },
        ["selector"],
    ),
    _tool(
        "fill_input",
        "Clear an input and type text into it; the value is re-read and confirmed.",
        {
            "selector": {"type": "string", "description": _SELECTOR_HELP},
            "text": {"type": "string", "description": "Text to type"},
        },
        ["selector", "text"],
    ),
    _tool(
        "wait_for_element",
        "Wait until an element is visible.",
        {
            "selector": {"type": "string", "description": _SELECTOR_HELP},
            "timeout": {"type": "number", "default": 30000, "description": "Timeout in milliseconds"},
        },
        ["selector"],
    ),
    _tool(
        "take_screenshot",
        "Save a screenshot of the viewport (PNG, or JPEG for .jpg/.jpeg names).",
        {"filename": {"type": "string", "default": "screenshot.png", "description": "Output file path"}},
    ),
    _tool(
        "inspect_page",
        "Describe forms, inputs and buttons on the page with candidate selectors for each element.",
        {
            "elementType": {
                "type": "string",
                "enum": ["forms", "inputs", "buttons", "all"],
                "default": "all",
                "description": "Which elements to describe",
            }
        },
    ),
    _tool(
        "site_search",
        "Search the current site: visible search box, then the keyboard shortcut, then the search URL.",
        {"query": {"type": "string", "description": "Search query"}},
        ["query"],
    ),
    _tool(
        "submit_form",
        "Click the submit control of a form.",
        {"formSelector": {"type": "string", "default": "form", "description": "Selector of the form"}},
    ),
    _tool("get_page_content", "Return the page title, URL and HTML length.", {}),
    _tool(
        "generate_test",
        "Generate a pytest-playwright test from the given actions, or from the actions executed in this session.",
        {
            "testName": {"type": "string", "description": "Test function name (prefixed with test_)"},
            "description": {"type": "string", "default": "", "description": "Comment written at the top"},
            "actions": {
                "type": "array",
                "items": {"type": "object"},
                "description": "Optional list of {name, arguments} tool calls or {kind, target, source} recorded actions",
            },
            "outputFile": {"type": "string", "description": "Optional path to write the script to"},
        },
        ["testName"],
    ),
    _tool("close_browser", "Close the browser session and clear the action log.", {}),
]

TOOL_NAMES: list[str] = [t["name"] for t in TOOL_DEFINITIONS]


def definition_for(name: str) -> dict[str, Any] | None:
    for tool in TOOL_DEFINITIONS:
        if tool["name"] == name:
            return tool
    return None

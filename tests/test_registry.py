"""
Tests for the tool registry, argument validation and log redaction.
"""

from __future__ import annotations

import pytest

from mcp_servers.testgen.server.definitions import TOOL_DEFINITIONS, TOOL_NAMES, definition_for
from mcp_servers.testgen.server.redaction import REDACTED, redact_arguments, redact_frame, redact_url
from mcp_servers.testgen.server.registry import ToolRegistry, create_default_registry, validate_arguments
from mcp_servers.testgen.server.types import ToolResult
from mcp_servers.testgen.tools.base import SmartToolError

# ═══════════════════════════════════════════════════════════════════════════════
# VALIDATION
# ═══════════════════════════════════════════════════════════════════════════════


def test_validate_fills_defaults() -> None:
    args = validate_arguments("click_element", definition_for("click_element"), {"selector": "#a"})
    assert args == {"selector": "#a", "timeout": 30000}
    assert validate_arguments("launch_browser", definition_for("launch_browser"), None) == {"headless": False}


def test_validate_missing_required() -> None:
    with pytest.raises(SmartToolError) as excinfo:
        validate_arguments("fill_input", definition_for("fill_input"), {"selector": "#a"})
    assert excinfo.value.action == "validate"
    assert "text" in excinfo.value.reason


def test_validate_types() -> None:
    descriptor = definition_for("click_element")
    with pytest.raises(SmartToolError, match="must be of type number"):
        validate_arguments("click_element", descriptor, {"selector": "#a", "timeout": "5s"})
    with pytest.raises(SmartToolError, match="must be of type number"):
        validate_arguments("click_element", descriptor, {"selector": "#a", "timeout": True})
    with pytest.raises(SmartToolError, match="must be an object"):
        validate_arguments("click_element", descriptor, ["#a"])


def test_validate_enum() -> None:
    descriptor = definition_for("inspect_page")
    assert validate_arguments("inspect_page", descriptor, {"elementType": "forms"})["elementType"] == "forms"
    with pytest.raises(SmartToolError, match="must be one of"):
        validate_arguments("inspect_page", descriptor, {"elementType": "links"})


def test_validate_does_not_mutate_input() -> None:
    original = {"selector": "#a"}
    validate_arguments("click_element", definition_for("click_element"), original)
    assert original == {"selector": "#a"}


# ═══════════════════════════════════════════════════════════════════════════════
# REGISTRY
# ═══════════════════════════════════════════════════════════════════════════════


def test_default_registry_matches_definitions(driver) -> None:
    registry = create_default_registry(driver)
    assert registry.tool_names == TOOL_NAMES
    assert len(registry) == 12
    assert registry.descriptors() == TOOL_DEFINITIONS


def test_definitions_are_well_formed() -> None:
    assert len(set(TOOL_NAMES)) == len(TOOL_NAMES)
    for tool in TOOL_DEFINITIONS:
        schema = tool["inputSchema"]
        assert schema["type"] == "object"
        assert set(schema["required"]) <= set(schema["properties"])
        assert tool["description"]


def test_dispatch_unknown_tool_raises_key_error(driver) -> None:
    with pytest.raises(KeyError):
        create_default_registry(driver).dispatch("github_search", {})


def test_dispatch_validates_before_handler(driver) -> None:
    calls: list[dict] = []
    registry = ToolRegistry(driver)
    registry.register("echo", lambda d, a: calls.append(a) or ToolResult.json(a), definition_for("navigate_to"))
    with pytest.raises(SmartToolError):
        registry.dispatch("echo", {})
    assert calls == []
    result = registry.dispatch("echo", {"url": "https://x.test"})
    assert calls == [{"url": "https://x.test"}]
    assert not result.is_error


# ═══════════════════════════════════════════════════════════════════════════════
# REDACTION
# ═══════════════════════════════════════════════════════════════════════════════


def test_redact_url() -> None:
    assert redact_url("https://x.test/a?q=1") == "https://x.test/a?q=1"
    assert redact_url("https://user:pw@x.test/") == "https://x.test/"
    assert REDACTED in redact_url("https://x.test/cb?code=abc&state=1")
    assert "abc" not in redact_url("https://x.test/cb?code=abc&state=1")


def test_redact_password_fill() -> None:
    args = {"selector": "#password", "text": "hunter2"}
    assert redact_arguments("fill_input", args) == {"selector": "#password", "text": REDACTED}
    assert redact_arguments("fill_input", {"selector": "#email", "text": "a@b.c"})["text"] == "a@b.c"
    assert args["text"] == "hunter2"


def test_redact_frame_only_touches_tool_calls() -> None:
    frame = {
        "jsonrpc": "2.0",
        "id": 3,
        "method": "tools/call",
        "params": {"name": "fill_input", "arguments": {"selector": "input[name=pass]", "text": "s3cret"}},
    }
    redacted = redact_frame(frame)
    assert redacted["params"]["arguments"]["text"] == REDACTED
    assert frame["params"]["arguments"]["text"] == "s3cret"
    ping = {"jsonrpc": "2.0", "id": 4, "method": "ping"}
    assert redact_frame(ping) is ping

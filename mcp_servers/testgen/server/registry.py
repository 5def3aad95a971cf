"""
Tool registry: dispatch table from tool name to handler and descriptor.

Adding a tool means one descriptor in definitions.py, one handler and one
entry in the handler table.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from ..tools.base import SmartToolError
from .types import ToolResult

if TYPE_CHECKING:
    from ..driver import Driver

logger = logging.getLogger("mcp.testgen.registry")

HandlerFunc = Callable[["Driver", dict[str, Any]], ToolResult]

_JSON_TYPES: dict[str, Callable[[Any], bool]] = {
    "string": lambda v: isinstance(v, str),
    "number": lambda v: isinstance(v, (int, float)) and not isinstance(v, bool),
    "integer": lambda v: isinstance(v, int) and not isinstance(v, bool),
    "boolean": lambda v: isinstance(v, bool),
    "array": lambda v: isinstance(v, list),
    "object": lambda v: isinstance(v, dict),
}


@dataclass(frozen=True)
class ToolSpec:
    name: str
    handler: HandlerFunc
    descriptor: dict[str, Any]


def validate_arguments(tool: str, descriptor: dict[str, Any], arguments: Any) -> dict[str, Any]:
    """Check required/type/enum constraints and fill defaults; returns a new dict."""
    if arguments is None:
        arguments = {}
    if not isinstance(arguments, dict):
        raise SmartToolError(tool=tool, action="validate", reason="arguments must be an object")

    schema = descriptor.get("inputSchema") or {}
    properties: dict[str, Any] = schema.get("properties") or {}
    args = dict(arguments)

    missing = [name for name in schema.get("required") or [] if args.get(name) is None]
    if missing:
        raise SmartToolError(
            tool=tool,
            action="validate",
            reason=f"missing required argument(s): {', '.join(missing)}",
            suggestion=f"Pass {', '.join(missing)}",
        )

    for name, prop in properties.items():
        value = args.get(name)
        if value is None:
            if "default" in prop:
                args[name] = prop["default"]
            continue
        expected = prop.get("type")
        check = _JSON_TYPES.get(expected or "")
        if check is not None and not check(value):
            raise SmartToolError(
                tool=tool,
                action="validate",
                reason=f"argument {name!r} must be of type {expected}, got {type(value).__name__}",
            )
        enum = prop.get("enum")
        if enum and value not in enum:
            raise SmartToolError(
                tool=tool,
                action="validate",
                reason=f"argument {name!r} must be one of {', '.join(map(str, enum))}",
            )
    return args


class ToolRegistry:
    """Registry of tool specs bound to one driver."""

    def __init__(self, driver: Driver) -> None:
        self.driver = driver
        self._specs: dict[str, ToolSpec] = {}

    def register(self, name: str, handler: HandlerFunc, descriptor: dict[str, Any]) -> None:
        self._specs[name] = ToolSpec(name=name, handler=handler, descriptor=descriptor)

    def get(self, name: str) -> ToolSpec | None:
        return self._specs.get(name)

    def has(self, name: str) -> bool:
        return name in self._specs

    def dispatch(self, name: str, arguments: Any) -> ToolResult:
        """
        Validate arguments and run the tool's handler.

        Raises:
            KeyError: If tool not found
            SmartToolError: On invalid arguments (handlers raise their own errors)
        """
        spec = self._specs.get(name)
        if spec is None:
            raise KeyError(f"Unknown tool: {name}")
        args = validate_arguments(name, spec.descriptor, arguments)
        return spec.handler(self.driver, args)

    def descriptors(self) -> list[dict[str, Any]]:
        return [spec.descriptor for spec in self._specs.values()]

    @property
    def tool_names(self) -> list[str]:
        return list(self._specs.keys())

    def __len__(self) -> int:
        return len(self._specs)


def create_default_registry(driver: Driver) -> ToolRegistry:
    """Registry with every tool from definitions.py wired to its handler."""
    from .definitions import TOOL_DEFINITIONS
    from .handlers import ALL_HANDLERS

    registry = ToolRegistry(driver)
    for descriptor in TOOL_DEFINITIONS:
        name = descriptor["name"]
        handler = ALL_HANDLERS.get(name)
        if handler is None:
            raise RuntimeError(f"Tool {name} has a definition but no handler")
        registry.register(name, handler, descriptor)  # type: ignore[arg-type]
    extra = set(ALL_HANDLERS) - set(registry.tool_names)
    if extra:
        raise RuntimeError(f"Handlers without definitions: {', '.join(sorted(extra))}")
    return registry

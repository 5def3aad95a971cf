"""
Type definitions for MCP tool results.
"""

from __future__ import annotations

import json as _json
from dataclasses import dataclass, field
from typing import Any


@dataclass(slots=True)
class ToolContent:
    """Single content item in a tool response."""

    type: str  # "text" only for this server
    text: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "text": self.text}


@dataclass(slots=True)
class ToolResult:
    """Result of a tool execution."""

    content: list[ToolContent] = field(default_factory=list)
    is_error: bool = False

    @classmethod
    def text(cls, text: str) -> ToolResult:
        return cls(content=[ToolContent(type="text", text=text or "")])

    @classmethod
    def json(cls, data: Any) -> ToolResult:
        """Structured payload rendered as indented JSON text."""
        rendered = _json.dumps(data, indent=2, ensure_ascii=False, default=str)
        return cls(content=[ToolContent(type="text", text=rendered)])

    @classmethod
    def error(cls, tool: str, message: str) -> ToolResult:
        return cls(content=[ToolContent(type="text", text=f"Error executing {tool}: {message}")], is_error=True)

    def to_content_list(self) -> list[dict[str, Any]]:
        return [c.to_dict() for c in self.content]

    def to_dict(self) -> dict[str, Any]:
        return {"content": self.to_content_list(), "isError": self.is_error}

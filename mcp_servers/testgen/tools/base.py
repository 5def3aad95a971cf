"""
Base utilities for driver tools.

Provides:
- SmartToolError: structured errors carrying tool/action/reason/suggestion
- Navigation URL validation against the configured allowlist
- Precondition error for calls made without an active browser session
"""

from __future__ import annotations

import urllib.parse
from dataclasses import dataclass, field
from typing import Any

from ..config import BrowserConfig
from ..http_client import HttpClientError

NOT_LAUNCHED = "Browser not launched. Call launch_browser first."


def ensure_allowed_navigation(url: str, config: BrowserConfig) -> None:
    """Relaxed check for browser navigation - allows about:, data:, blob:, file: schemes."""
    parsed = urllib.parse.urlparse(url)
    if parsed.scheme in ("about", "data", "blob"):
        return
    if parsed.scheme == "file":
        if config.allow_hosts and "*" not in config.allow_hosts:
            raise HttpClientError("file:// scheme requires permissive allowlist (set MCP_ALLOW_HOSTS=*)")
        return
    if parsed.scheme not in ("http", "https"):
        raise HttpClientError(f"Unsupported scheme: {parsed.scheme or '<none>'} (allowed: http, https, about, data, blob, file)")
    if not parsed.hostname:
        raise HttpClientError(f"URL has no host: {url}")
    if not config.is_host_allowed(parsed.hostname):
        raise HttpClientError(f"Host {parsed.hostname} is not in allowlist")


@dataclass
class SmartToolError(Exception):
    """Structured error with enough context for the caller to recover."""

    tool: str
    action: str
    reason: str
    suggestion: str = ""
    details: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        if not self.suggestion:
            return f"[{self.tool}] {self.action} failed: {self.reason}"
        return f"[{self.tool}] {self.action} failed: {self.reason}. Suggestion: {self.suggestion}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": True,
            "tool": self.tool,
            "action": self.action,
            "reason": self.reason,
            "suggestion": self.suggestion,
            "details": self.details,
        }


def not_launched(tool: str) -> SmartToolError:
    return SmartToolError(
        tool=tool,
        action="precondition",
        reason=NOT_LAUNCHED,
        suggestion="Call launch_browser first",
    )

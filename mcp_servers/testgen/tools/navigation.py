"""Page navigation."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ..config import BrowserConfig
from ..http_client import HttpClientError
from .base import SmartToolError, ensure_allowed_navigation

if TYPE_CHECKING:
    from ..browser_session import BrowserSession


def navigate_to(session: BrowserSession, config: BrowserConfig, url: str, timeout: float = 30.0) -> dict[str, Any]:
    """Navigate the tab and wait (bounded) for the load event."""
    url = (url or "").strip()
    if not url:
        raise SmartToolError(tool="navigate_to", action="validate", reason="url is empty", suggestion="Pass an absolute URL")
    try:
        ensure_allowed_navigation(url, config)
    except HttpClientError as exc:
        raise SmartToolError(
            tool="navigate_to",
            action="validate",
            reason=str(exc),
            suggestion="Use an http(s) URL on an allowed host (see MCP_ALLOW_HOSTS)",
        ) from exc

    session.navigate(url, wait_load=True, timeout=timeout)
    return {"url": session.get_url() or url, "title": session.get_title()}

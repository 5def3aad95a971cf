"""Screenshots and page content summary."""

from __future__ import annotations

import base64
import binascii
from pathlib import Path
from typing import TYPE_CHECKING, Any

from .base import SmartToolError

if TYPE_CHECKING:
    from ..browser_session import BrowserSession

DEFAULT_SCREENSHOT = "screenshot.png"


def image_format_for(filename: str) -> str:
    return "jpeg" if filename.lower().endswith((".jpg", ".jpeg")) else "png"


def take_screenshot(session: BrowserSession, filename: str = DEFAULT_SCREENSHOT) -> dict[str, Any]:
    """Capture the viewport and write it to ``filename`` (parents created)."""
    filename = (filename or DEFAULT_SCREENSHOT).strip() or DEFAULT_SCREENSHOT
    fmt = image_format_for(filename)
    data_b64 = session.screenshot(fmt)
    try:
        data = base64.b64decode(data_b64, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise SmartToolError(tool="take_screenshot", action="decode", reason=f"invalid image data: {exc}") from exc
    if not data:
        raise SmartToolError(
            tool="take_screenshot",
            action="capture",
            reason="browser returned an empty image",
            suggestion="Make sure the tab is visible and has finished loading",
        )

    path = Path(filename).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    return {"path": str(path.resolve()), "bytes": len(data), "format": fmt}


def get_page_content(session: BrowserSession) -> dict[str, Any]:
    return {"url": session.get_url(), "title": session.get_title(), "htmlLength": session.html_length()}

"""Structured page inspection: forms, inputs and buttons with candidate selectors."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .base import SmartToolError

if TYPE_CHECKING:
    from ..browser_session import BrowserSession

ELEMENT_TYPES = ("forms", "inputs", "buttons", "all")


def inspect_page(session: BrowserSession, element_type: str = "all") -> dict[str, Any]:
    element_type = (element_type or "all").strip().lower()
    if element_type not in ELEMENT_TYPES:
        raise SmartToolError(
            tool="inspect_page",
            action="validate",
            reason=f"unknown elementType {element_type!r}",
            suggestion=f"Use one of: {', '.join(ELEMENT_TYPES)}",
        )
    data = dict(session.inspect(element_type))
    data.setdefault("url", session.tab_url)
    data.setdefault("title", "")
    for key in ("forms", "inputs", "buttons"):
        if element_type in (key, "all"):
            data.setdefault(key, [])
        else:
            data.pop(key, None)
    return data

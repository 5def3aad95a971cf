"""Waiting for elements and submitting forms."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ..sites import SUBMIT_CONTROLS
from .base import SmartToolError
from .input import click_candidates

if TYPE_CHECKING:
    from ..browser_session import BrowserSession


def wait_for_element(session: BrowserSession, selector: str, timeout: float = 30000) -> dict[str, Any]:
    state = session.wait_visible(selector, max(0.0, float(timeout)) / 1000.0)
    if not state.get("visible"):
        status = "present but not visible" if state.get("found") else "not found"
        raise SmartToolError(
            tool="wait_for_element",
            action="wait",
            reason=f"Timeout {int(timeout)}ms exceeded waiting for {selector} ({status})",
            suggestion="Increase timeout or check the selector with inspect_page",
        )
    return {"selector": selector, "visible": True}


def submit_candidates(form_selector: str = "form") -> list[str]:
    form = (form_selector or "form").strip() or "form"
    return [f"{form} {control}" for control in SUBMIT_CONTROLS]


def submit_form(session: BrowserSession, form_selector: str = "form", timeout: float = 30000) -> dict[str, Any]:
    """Click the first submit-like control inside the form."""
    return click_candidates(session, submit_candidates(form_selector), timeout, tool="submit_form")

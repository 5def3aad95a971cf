"""
Multi-candidate selector resolution.

A caller selector is expanded into an ordered candidate list (site-specific
known-good selectors first, the caller's own selector last). Candidates are
tried in order until one of them accepts the action; when all fail, a single
aggregated error lists what was tried and what the page actually offers.
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from ..sites import profile_for_url
from .base import SmartToolError

if TYPE_CHECKING:
    from ..browser_session import BrowserSession

logger = logging.getLogger("mcp.testgen.locate")

PER_CANDIDATE_TIMEOUT_MS = 5000

_KIND_FOR_ACTION = {"click": "clickable", "fill": "fillable"}


@dataclass
class Resolution:
    """Outcome of a successful resolution."""

    selector: str
    result: Any = None
    tried: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


def build_candidates(page_url: str, selector: str, action: str) -> list[str]:
    """Known-good selectors for the page's site, then the caller selector (deduplicated)."""
    selector = (selector or "").strip()
    out: list[str] = []
    for candidate in profile_for_url(page_url).known_selectors(selector, action):
        if candidate and candidate not in out:
            out.append(candidate)
    if selector and selector not in out:
        out.append(selector)
    return out


def _probe_failure(state: dict[str, Any], action: str) -> str | None:
    if not state.get("found"):
        return "element not found"
    if not state.get("visible"):
        return "element not visible"
    if action == "click" and not state.get("enabled", True):
        return "element is disabled"
    return None


def resolve_and_act(
    session: BrowserSession,
    candidates: list[str],
    *,
    tool: str,
    action: str,
    attempt: Callable[[str], Any],
    timeout_ms: float = 30000,
) -> Resolution:
    """Run ``attempt(selector)`` on the first candidate that is visible and applicable.

    Each candidate waits at most ``min(5000 ms, remaining total)`` for
    visibility; even with the total exhausted every candidate gets one probe.
    """
    if not candidates:
        raise SmartToolError(
            tool=tool,
            action="validate",
            reason="selector is empty",
            suggestion="Pass a CSS, xpath= or text= selector",
        )

    deadline = time.monotonic() + max(0.0, float(timeout_ms)) / 1000.0
    tried: list[str] = []
    errors: list[str] = []
    last_error = ""

    for selector in candidates:
        tried.append(selector)
        remaining_ms = max(0.0, (deadline - time.monotonic()) * 1000.0)
        wait_s = min(PER_CANDIDATE_TIMEOUT_MS, remaining_ms) / 1000.0
        try:
            state = session.wait_visible(selector, wait_s)
            problem = _probe_failure(state or {}, action)
            if problem:
                raise SmartToolError(tool=tool, action=action, reason=problem)
            result = attempt(selector)
        except Exception as exc:
            last_error = str(exc)
            errors.append(f"{selector}: {last_error}")
            logger.debug("%s candidate %r failed: %s", tool, selector, last_error)
            continue
        if len(tried) > 1:
            logger.info("%s resolved %r after %d candidates", tool, selector, len(tried))
        return Resolution(selector=selector, result=result, tried=tried, errors=errors)

    kind = _KIND_FOR_ACTION.get(action, "clickable")
    try:
        elements = session.collect_elements(kind)
    except Exception as diag_exc:
        raise SmartToolError(
            tool=tool,
            action="resolve",
            reason=(
                f"no candidate worked (tried: {', '.join(tried)}); last error: {last_error}; "
                f"collecting {kind} elements also failed: {diag_exc}"
            ),
            suggestion="Check that the page finished loading",
            details={"tried": tried, "lastError": last_error, "diagnosticsError": str(diag_exc)},
        ) from diag_exc

    listing = "\n".join(json.dumps(el, ensure_ascii=False, sort_keys=True) for el in elements) or "(none)"
    raise SmartToolError(
        tool=tool,
        action="resolve",
        reason=(
            f"no candidate worked (tried: {', '.join(tried)}); last error: {last_error}\n"
            f"Available {kind} elements:\n{listing}"
        ),
        suggestion="Pick a selector from the available elements or call inspect_page",
        details={"tried": tried, "lastError": last_error, "elements": elements},
    )

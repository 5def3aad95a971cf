"""
Site search with ordered fallback strategies.

Strategies run strictly in order and the first success wins:

1. ``input``    - fill the first visible known search input, press Enter
2. ``shortcut`` - press the site's keyboard shortcut, type into whatever
                  search field opens (or the focused text field), press Enter
3. ``url``      - navigate straight to the site's search URL

After a success the results area is awaited (bounded); its absence is
tolerated with a short fixed delay.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from .. import codegen
from ..sites import SiteProfile, origin_of, profile_for_url
from .base import SmartToolError

if TYPE_CHECKING:
    from ..browser_session import BrowserSession

logger = logging.getLogger("mcp.testgen.search")

RESULTS_TIMEOUT_S = 5.0
SETTLE_DELAY_S = 1.0
SHORTCUT_WAIT_S = 2.0
POLL_INTERVAL_S = 0.1


def _first_visible(session: BrowserSession, selectors: tuple[str, ...]) -> str | None:
    for selector in selectors:
        if session.query(selector).get("visible"):
            return selector
    return None


def _type_and_submit(session: BrowserSession, selector: str, query: str) -> None:
    if not session.focus_and_clear(selector):
        raise SmartToolError(tool="site_search", action="focus", reason=f"{selector} did not take focus")
    session.type_text(query)
    session.press_key("Enter")


def search_by_input(session: BrowserSession, profile: SiteProfile, query: str) -> list[str]:
    selector = _first_visible(session, profile.search_inputs)
    if selector is None:
        raise SmartToolError(tool="site_search", action="input", reason="no visible search input")
    _type_and_submit(session, selector, query)
    return [codegen.fill_line(selector, query), codegen.press_line(selector, "Enter")]


def search_by_shortcut(session: BrowserSession, profile: SiteProfile, query: str) -> list[str]:
    key = profile.search_shortcut
    if not key:
        raise SmartToolError(tool="site_search", action="shortcut", reason="site has no search shortcut")
    session.press_key(key)

    deadline = time.monotonic() + SHORTCUT_WAIT_S
    while True:
        selector = _first_visible(session, profile.search_inputs)
        if selector is not None:
            _type_and_submit(session, selector, query)
            return [
                codegen.keyboard_press_line(key),
                codegen.fill_line(selector, query),
                codegen.press_line(selector, "Enter"),
            ]
        if session.focused_editable():
            session.type_text(query)
            session.press_key("Enter")
            return [
                codegen.keyboard_press_line(key),
                codegen.keyboard_type_line(query),
                codegen.keyboard_press_line("Enter"),
            ]
        if time.monotonic() >= deadline:
            raise SmartToolError(
                tool="site_search", action="shortcut", reason=f"no search field opened after pressing {key!r}"
            )
        time.sleep(POLL_INTERVAL_S)


def search_by_url(session: BrowserSession, profile: SiteProfile, query: str) -> list[str]:
    origin = origin_of(session.tab_url)
    if not origin and not profile.search_url:
        raise SmartToolError(tool="site_search", action="url", reason="current page has no http(s) origin")
    url = profile.build_search_url(origin, query)
    session.navigate(url, wait_load=True)
    return [codegen.goto_line(url)]


STRATEGIES: tuple[tuple[str, Callable[[BrowserSession, SiteProfile, str], list[str]]], ...] = (
    ("input", search_by_input),
    ("shortcut", search_by_shortcut),
    ("url", search_by_url),
)


def wait_for_results(session: BrowserSession, profile: SiteProfile) -> str | None:
    deadline = time.monotonic() + RESULTS_TIMEOUT_S
    while True:
        selector = _first_visible(session, profile.results)
        if selector is not None:
            return selector
        if time.monotonic() >= deadline:
            break
        time.sleep(POLL_INTERVAL_S)
    time.sleep(SETTLE_DELAY_S)
    return None


def site_search(session: BrowserSession, query: str) -> dict[str, Any]:
    query = (query or "").strip()
    if not query:
        raise SmartToolError(tool="site_search", action="validate", reason="query is empty")

    session.tab_url = session.get_url() or session.tab_url
    profile = profile_for_url(session.tab_url)
    failures: list[str] = []
    for name, strategy in STRATEGIES:
        try:
            lines = strategy(session, profile, query)
        except Exception as exc:
            failures.append(f"{name}: {exc}")
            logger.debug("site_search strategy %s failed on %s: %s", name, profile.name, exc)
            continue
        results = wait_for_results(session, profile)
        return {
            "query": query,
            "strategy": name,
            "site": profile.name,
            "resultsSelector": results,
            "source": lines,
        }

    raise SmartToolError(
        tool="site_search",
        action="search",
        reason="every strategy failed: " + "; ".join(failures),
        suggestion="Navigate to the site first, or use fill_input on the search box",
        details={"failures": failures},
    )

"""
Tests for multi-candidate selector resolution.
"""

from __future__ import annotations

import pytest

from mcp_servers.testgen.sites import GITHUB_SEARCH_INPUTS, profile_for_url
from mcp_servers.testgen.tools import js_helpers
from mcp_servers.testgen.tools.base import SmartToolError
from mcp_servers.testgen.tools.locate import build_candidates, resolve_and_act


def _click_attempt(page):
    def attempt(selector: str) -> str:
        page.clicked.append(selector)
        return selector

    return attempt


# ═══════════════════════════════════════════════════════════════════════════════
# CANDIDATES
# ═══════════════════════════════════════════════════════════════════════════════


def test_candidates_generic_site_is_caller_selector_only() -> None:
    assert build_candidates("https://example.com/", "#login", "click") == ["#login"]
    assert build_candidates("about:blank", "  #q  ", "fill") == ["#q"]
    assert build_candidates("https://example.com/", "", "click") == []


def test_candidates_known_site_first_caller_last() -> None:
    candidates = build_candidates("https://github.com/", "input.search-box", "fill")
    assert candidates[: len(GITHUB_SEARCH_INPUTS)] == list(GITHUB_SEARCH_INPUTS)
    assert candidates[-1] == "input.search-box"


def test_candidates_are_deduplicated() -> None:
    candidates = build_candidates("https://github.com/", 'input[name="q"]', "fill")
    assert candidates.count('input[name="q"]') == 1
    assert len(candidates) == len(set(candidates))


def test_candidates_alias_is_action_specific() -> None:
    # fill aliases do not leak into click resolution
    clicks = build_candidates("https://github.com/", "#query-builder-test", "click")
    assert clicks[-1] == "#query-builder-test"
    assert not set(GITHUB_SEARCH_INPUTS[1:]) & set(clicks)


def test_profile_lookup_matches_subdomains() -> None:
    assert profile_for_url("https://gist.github.com/x").name == "github"
    assert profile_for_url("https://www.google.com/").name == "google"
    assert profile_for_url("https://notgithub.com/").name == "generic"


# ═══════════════════════════════════════════════════════════════════════════════
# RESOLUTION
# ═══════════════════════════════════════════════════════════════════════════════


def test_only_last_candidate_present_wins(page) -> None:
    page.add("#c")
    resolution = resolve_and_act(page, ["#a", "#b", "#c"], tool="click_element", action="click", attempt=_click_attempt(page))
    assert resolution.selector == "#c"
    assert resolution.tried == ["#a", "#b", "#c"]
    assert page.clicked == ["#c"]
    assert [e.split(":")[0] for e in resolution.errors] == ["#a", "#b"]


def test_first_success_stops(page) -> None:
    page.add("#a")
    page.add("#b")
    resolution = resolve_and_act(page, ["#a", "#b"], tool="click_element", action="click", attempt=_click_attempt(page))
    assert resolution.selector == "#a"
    assert "#b" not in page.probes


def test_hidden_and_disabled_candidates_are_skipped(page) -> None:
    page.add("#hidden", visible=False)
    page.add("#disabled", enabled=False)
    page.add("#ok")
    resolution = resolve_and_act(
        page, ["#hidden", "#disabled", "#ok"], tool="click_element", action="click", attempt=_click_attempt(page)
    )
    assert resolution.selector == "#ok"
    assert "not visible" in resolution.errors[0]
    assert "disabled" in resolution.errors[1]


def test_failing_attempt_falls_through(page) -> None:
    page.add("#a")
    page.add("#b")

    def attempt(selector: str) -> str:
        if selector == "#a":
            raise RuntimeError("detached from DOM")
        return selector

    resolution = resolve_and_act(page, ["#a", "#b"], tool="click_element", action="click", attempt=attempt)
    assert resolution.selector == "#b"
    assert resolution.errors == ["#a: detached from DOM"]


def test_exhaustion_lists_tried_selectors_and_live_elements(page) -> None:
    page.add("button.real-login")
    with pytest.raises(SmartToolError) as excinfo:
        resolve_and_act(page, ["#x", "#y"], tool="click_element", action="click", attempt=_click_attempt(page), timeout_ms=0)
    err = excinfo.value
    assert err.action == "resolve"
    message = str(err)
    assert "#x" in message and "#y" in message
    assert "button.real-login" in message
    assert err.details["tried"] == ["#x", "#y"]
    assert err.details["lastError"] == "[click_element] click failed: element not found"
    assert err.details["elements"][0]["selectors"] == ["button.real-login"]


def test_exhaustion_for_fill_lists_fillable_elements(page) -> None:
    page.add("#email", editable=True)
    page.add("button.go")
    with pytest.raises(SmartToolError) as excinfo:
        resolve_and_act(page, ["#nope"], tool="fill_input", action="fill", attempt=lambda s: s)
    assert "fillable" in str(excinfo.value)
    assert "#email" in str(excinfo.value)
    assert "button.go" not in str(excinfo.value)


def test_exhaustion_when_diagnostics_fail(page) -> None:
    page.collect_error = RuntimeError("page crashed")
    with pytest.raises(SmartToolError) as excinfo:
        resolve_and_act(page, ["#x"], tool="click_element", action="click", attempt=_click_attempt(page))
    message = str(excinfo.value)
    assert "element not found" in message
    assert "page crashed" in message


def test_zero_timeout_still_probes_every_candidate(page) -> None:
    page.add("#late")
    resolution = resolve_and_act(
        page, ["#a", "#late"], tool="click_element", action="click", attempt=_click_attempt(page), timeout_ms=0
    )
    assert resolution.selector == "#late"


def test_empty_candidates_is_validation_error(page) -> None:
    with pytest.raises(SmartToolError) as excinfo:
        resolve_and_act(page, [], tool="click_element", action="click", attempt=_click_attempt(page))
    assert excinfo.value.action == "validate"


def test_probe_targets_first_match_in_document_order() -> None:
    # A hidden first match must fail the probe, as page.click in the replayed script would.
    script = js_helpers.probe_js("button.go")
    body = js_helpers.RESOLVE_SELECTOR
    assert "return all[0] || null;" in body
    assert "isVisible(el)) ||" not in body
    assert 'resolveFirst("button.go")' in script

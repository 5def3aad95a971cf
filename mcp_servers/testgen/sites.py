"""
Selector knowledge: per-site profiles of known-good selectors.

A profile is looked up by the current page's host. It contributes:
- aliases: known-good selectors tried before a caller selector that matches
  a trigger pattern (e.g. any selector mentioning "search" on GitHub),
- search: the ordered data the site-search strategies need.
"""

from __future__ import annotations

import re
import urllib.parse
from dataclasses import dataclass

SUBMIT_CONTROLS: tuple[str, ...] = (
    'button[type="submit"]',
    'input[type="submit"]',
    "button:not([type])",
    "button",
    'input[type="button"]',
)

GENERIC_SEARCH_INPUTS: tuple[str, ...] = (
    'input[type="search"]',
    'input[name="q"]',
    'textarea[name="q"]',
    'input[name="query"]',
    'input[name="search"]',
    '[role="searchbox"]',
    'input[aria-label*="search" i]',
    'input[placeholder*="search" i]',
)

GENERIC_RESULTS: tuple[str, ...] = ("main", "#search", '[role="main"]')


@dataclass(frozen=True)
class SelectorAlias:
    """Known-good selectors for caller selectors matching ``trigger`` (regex, case-insensitive)."""

    trigger: str
    selectors: tuple[str, ...]
    actions: frozenset[str] = frozenset({"click", "fill"})

    def matches(self, selector: str, action: str) -> bool:
        return action in self.actions and re.search(self.trigger, selector or "", re.IGNORECASE) is not None


@dataclass(frozen=True)
class SiteProfile:
    name: str
    hosts: tuple[str, ...]
    aliases: tuple[SelectorAlias, ...] = ()
    search_inputs: tuple[str, ...] = GENERIC_SEARCH_INPUTS
    search_shortcut: str = "/"
    search_url: str | None = None
    results: tuple[str, ...] = GENERIC_RESULTS

    def matches_host(self, host: str) -> bool:
        host = (host or "").lower().rstrip(".")
        return any(host == h or host.endswith("." + h) for h in self.hosts)

    def known_selectors(self, selector: str, action: str) -> list[str]:
        out: list[str] = []
        for alias in self.aliases:
            if alias.matches(selector, action):
                out.extend(s for s in alias.selectors if s not in out)
        return out

    def build_search_url(self, origin: str, query: str) -> str:
        template = self.search_url or "{origin}/search?q={query}"
        return template.format(origin=origin.rstrip("/"), query=urllib.parse.quote_plus(query))


GITHUB_SEARCH_INPUTS: tuple[str, ...] = (
    "#query-builder-test",
    '[data-target="query-builder.input"]',
    'input[name="query-builder-test"]',
    'input[name="q"]',
)

GITHUB = SiteProfile(
    name="github",
    hosts=("github.com",),
    aliases=(
        SelectorAlias(
            trigger=r"query-builder|search|name=.?q\b",
            selectors=GITHUB_SEARCH_INPUTS,
            actions=frozenset({"fill"}),
        ),
        SelectorAlias(
            trigger=r"query-builder|search",
            selectors=('[data-target="qbsearch-input.inputButton"]', 'button[aria-label="Search or jump to…"]'),
            actions=frozenset({"click"}),
        ),
        SelectorAlias(
            trigger=r"sign.?in|login",
            selectors=('a[href^="/login"]', "text=Sign in"),
            actions=frozenset({"click"}),
        ),
    ),
    search_inputs=GITHUB_SEARCH_INPUTS,
    search_shortcut="/",
    search_url="https://github.com/search?q={query}&type=repositories",
    results=('[data-testid="results-list"]', ".repo-list", '[data-testid="search-sub-header"]'),
)

GOOGLE = SiteProfile(
    name="google",
    hosts=("google.com",),
    aliases=(
        SelectorAlias(
            trigger=r"name=.?q\b|search",
            selectors=('textarea[name="q"]', 'input[name="q"]'),
            actions=frozenset({"fill"}),
        ),
        SelectorAlias(
            trigger=r"submit|btnK|search",
            selectors=('input[name="btnK"]', 'button[type="submit"]'),
            actions=frozenset({"click"}),
        ),
    ),
    search_inputs=('textarea[name="q"]', 'input[name="q"]'),
    search_shortcut="/",
    search_url="https://www.google.com/search?q={query}",
    results=("#search", "#rso"),
)

GENERIC = SiteProfile(name="generic", hosts=())

PROFILES: tuple[SiteProfile, ...] = (GITHUB, GOOGLE)


def profile_for_url(url: str) -> SiteProfile:
    host = urllib.parse.urlparse(url or "").hostname or ""
    for profile in PROFILES:
        if profile.matches_host(host):
            return profile
    return GENERIC


def origin_of(url: str) -> str:
    parsed = urllib.parse.urlparse(url or "")
    if not parsed.scheme or not parsed.netloc:
        return ""
    return f"{parsed.scheme}://{parsed.netloc}"

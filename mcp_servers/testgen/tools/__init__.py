"""
Driver tools.

Every tool takes the BrowserSession explicitly and returns a plain dict;
failures surface as SmartToolError.

Modules:
- base: SmartToolError, navigation URL checks, precondition error
- locate: multi-candidate selector resolution with diagnostics
- navigation: navigate_to
- input: click_element, fill_input
- forms: wait_for_element, submit_form
- dom: take_screenshot, get_page_content
- page: inspect_page
- search: site_search (input / shortcut / url strategies)
- js_helpers: JavaScript snippets evaluated in the page
"""

from __future__ import annotations

from .base import NOT_LAUNCHED, SmartToolError, ensure_allowed_navigation, not_launched
from .dom import get_page_content, take_screenshot
from .forms import submit_form, wait_for_element
from .input import click_element, fill_input
from .locate import build_candidates, resolve_and_act
from .navigation import navigate_to
from .page import inspect_page
from .search import site_search

__all__ = [
    "NOT_LAUNCHED",
    "SmartToolError",
    "build_candidates",
    "click_element",
    "ensure_allowed_navigation",
    "fill_input",
    "get_page_content",
    "inspect_page",
    "navigate_to",
    "not_launched",
    "resolve_and_act",
    "site_search",
    "submit_form",
    "take_screenshot",
    "wait_for_element",
]

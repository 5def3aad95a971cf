"""
Planning collaborator: natural-language prompt -> list of tool calls.

The language model is asked for a JSON array of ``{name, arguments}``
objects. Its reply may wrap the array in prose or markdown fences;
``extract_actions`` pulls out the first well-formed array.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Protocol

from langchain_core.messages import HumanMessage, SystemMessage

from .actions import ToolCallAction
from .config import PlannerConfig

logger = logging.getLogger("mcp.testgen.planner")


class PlanningError(Exception):
    """The planner reply did not contain a usable action list."""


class Planner(Protocol):
    async def plan(self, prompt: str, browser_running: bool) -> str: ...


_SYSTEM_PROMPT = """You convert natural language requests into browser automation steps.

Available tools:
- launch_browser: start the browser (arguments: headless true/false)
- navigate_to: open a URL (arguments: url)
- inspect_page: list forms, inputs and buttons with selectors (arguments: elementType "forms" | "inputs" | "buttons" | "all")
- site_search: search the current site (arguments: query); prefer this over typing into search boxes by hand
- click_element: click an element (arguments: selector, optional timeout in ms)
- fill_input: type into an input (arguments: selector, text)
- submit_form: click the submit button of a form (arguments: optional formSelector)
- wait_for_element: wait until an element is visible (arguments: selector, optional timeout in ms)
- take_screenshot: save a screenshot (arguments: filename)

Selectors may be CSS, XPath ("xpath=//..." or "//...") or text ("text=Sign in").

Reply with a JSON array only. Each item has "name" (a tool name) and "arguments" (an object).

Example for "Go to google.com and search for playwright":
[
  {"name": "navigate_to", "arguments": {"url": "https://google.com"}},
  {"name": "site_search", "arguments": {"query": "playwright"}},
  {"name": "take_screenshot", "arguments": {"filename": "search_results.png"}}
]

For form tasks: navigate, call inspect_page with elementType "forms", then fill the
fields with the selectors it reports and finish with submit_form.
"""


def build_system_prompt(browser_running: bool) -> str:
    if browser_running:
        state = "Session state: the browser is already running. Do NOT include launch_browser."
    else:
        state = 'Session state: no browser is running. Start with {"name": "launch_browser", "arguments": {"headless": false}}.'
    return f"{_SYSTEM_PROMPT}\n{state}\n"


_FENCE_RE = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)


def _validate_items(items: list[Any]) -> list[ToolCallAction]:
    actions: list[ToolCallAction] = []
    for idx, item in enumerate(items):
        if not isinstance(item, dict):
            raise PlanningError(f"Action {idx} is not an object")
        name = item.get("name")
        if not isinstance(name, str) or not name.strip():
            raise PlanningError(f"Action {idx} has no tool name")
        args = item.get("arguments")
        if args is None:
            args = {}
        if not isinstance(args, dict):
            raise PlanningError(f"Action {idx} ({name}) arguments must be an object")
        actions.append(ToolCallAction(name=name.strip(), arguments=args))
    return actions


def _first_array(text: str) -> list[Any] | None:
    decoder = json.JSONDecoder()
    pos = text.find("[")
    while pos != -1:
        try:
            value, _end = decoder.raw_decode(text, pos)
        except json.JSONDecodeError:
            pos = text.find("[", pos + 1)
            continue
        if isinstance(value, list):
            return value
        pos = text.find("[", pos + 1)
    return None


def extract_actions(text: str) -> list[ToolCallAction]:
    """First well-formed JSON array in ``text`` (fenced blocks first), validated."""
    if not isinstance(text, str) or not text.strip():
        raise PlanningError("Planner returned an empty reply")
    for block in _FENCE_RE.findall(text):
        found = _first_array(block)
        if found is not None:
            return _validate_items(found)
    found = _first_array(text)
    if found is None:
        raise PlanningError(f"No JSON action array in planner reply: {text[:200]!r}")
    return _validate_items(found)


class LangChainPlanner:
    """Planner backed by a LangChain chat model (OpenAI by default)."""

    def __init__(self, config: PlannerConfig | None = None, llm: Any = None) -> None:
        self.config = config or PlannerConfig.from_env()
        self._llm = llm

    @property
    def llm(self) -> Any:
        if self._llm is None:
            from langchain_openai import ChatOpenAI

            kwargs: dict[str, Any] = {"model": self.config.model, "temperature": self.config.temperature}
            if self.config.api_key:
                kwargs["api_key"] = self.config.api_key
            self._llm = ChatOpenAI(**kwargs)
        return self._llm

    async def plan(self, prompt: str, browser_running: bool) -> str:
        messages = [SystemMessage(content=build_system_prompt(browser_running)), HumanMessage(content=prompt)]
        logger.info("planning prompt model=%s browser_running=%s", self.config.model, browser_running)
        try:
            reply = await self.llm.ainvoke(messages)
        except Exception as exc:
            raise PlanningError(f"model call failed: {exc}") from exc
        content = getattr(reply, "content", reply)
        if isinstance(content, list):
            content = "".join(part.get("text", "") if isinstance(part, dict) else str(part) for part in content)
        return str(content)

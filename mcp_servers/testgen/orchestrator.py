"""
Prompt orchestration: plan -> execute over the bridge -> generate the script.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from contextlib import suppress
from dataclasses import dataclass, field
from typing import Any

from .actions import ToolCallAction
from .bridge import BridgeError, McpBridge
from .codegen import test_name_from_prompt
from .planner import Planner, PlanningError, extract_actions

logger = logging.getLogger("mcp.testgen.orchestrator")

ActionCallback = Callable[[ToolCallAction, dict[str, Any]], None]


def result_text(envelope: dict[str, Any]) -> str:
    parts = envelope.get("content") if isinstance(envelope, dict) else None
    if not isinstance(parts, list):
        return ""
    return "\n".join(str(p.get("text", "")) for p in parts if isinstance(p, dict) and p.get("type") == "text")


def is_error_result(envelope: dict[str, Any]) -> bool:
    if not isinstance(envelope, dict) or envelope.get("isError"):
        return True
    return result_text(envelope).startswith("Error executing")


@dataclass
class PromptResult:
    prompt: str
    success: bool
    actions: list[ToolCallAction] = field(default_factory=list)
    results: list[dict[str, Any]] = field(default_factory=list)
    script: str | None = None
    error: str | None = None


class Orchestrator:
    def __init__(self, bridge: McpBridge, planner: Planner) -> None:
        self.bridge = bridge
        self.planner = planner
        self.browser_running = False

    async def start(self) -> None:
        await self.bridge.start()

    async def _generate_script(self, prompt: str, result: PromptResult) -> bool:
        envelope = await self.bridge.invoke(
            "generate_test",
            {"testName": test_name_from_prompt(prompt), "description": prompt},
        )
        result.results.append(envelope)
        if is_error_result(envelope):
            result.error = result_text(envelope) or "Error executing generate_test"
            return False
        result.script = result_text(envelope)
        return True

    async def process_prompt(self, prompt: str, on_action: ActionCallback | None = None) -> PromptResult:
        """Run one prompt; a failing action aborts the rest but keeps the session.

        The script is rendered from the driver's log, which close_browser
        clears, so it is taken right before a close and again at the end
        while a session is still open.
        """
        result = PromptResult(prompt=prompt, success=False)
        try:
            reply = await self.planner.plan(prompt, self.browser_running)
            result.actions = extract_actions(reply)
        except PlanningError as exc:
            result.error = f"Planning failed: {exc}"
            return result
        except Exception as exc:
            logger.exception("planner call failed")
            result.error = f"Planning failed: {str(exc) or type(exc).__name__}"
            return result

        logger.info("prompt planned into %d actions", len(result.actions))
        try:
            for action in result.actions:
                if action.name == "close_browser" and self.browser_running:
                    if not await self._generate_script(prompt, result):
                        return result
                envelope = await self.bridge.invoke(action.name, dict(action.arguments))
                result.results.append(envelope)
                if on_action is not None:
                    on_action(action, envelope)
                if is_error_result(envelope):
                    result.error = result_text(envelope) or f"Error executing {action.name}"
                    logger.info("action %s failed, skipping the rest of the plan", action.name)
                    return result
                if action.name == "launch_browser":
                    self.browser_running = True
                elif action.name == "close_browser":
                    self.browser_running = False

            if result.actions and (self.browser_running or result.script is None):
                if not await self._generate_script(prompt, result):
                    return result
        except BridgeError as exc:
            result.error = str(exc)
            return result

        result.success = True
        return result

    async def cleanup(self) -> None:
        """Close the browser (best effort) and stop the driver process."""
        if self.bridge.connected and self.browser_running:
            with suppress(BridgeError):
                await self.bridge.invoke("close_browser", {})
        self.browser_running = False
        await self.bridge.stop()

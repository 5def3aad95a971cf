"""
Driver: owns the browser session and the action log.

Every operation except launch/close/generate requires an active session.
Successful operations append a DriverAction whose ``source`` lines replay
exactly what happened (e.g. the selector that actually matched).
"""

from __future__ import annotations

import logging
from contextlib import suppress
from typing import TYPE_CHECKING, Any

from . import codegen, tools
from .actions import ActionKind, ActionLog, ActionRecord, DriverAction
from .config import BrowserConfig
from .launcher import BrowserLauncher

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from .browser_session import BrowserSession

logger = logging.getLogger("mcp.testgen.driver")


class Driver:
    def __init__(self, config: BrowserConfig | None = None, launcher: BrowserLauncher | None = None) -> None:
        self.config = config or BrowserConfig.from_env()
        self._launcher = launcher or BrowserLauncher(self.config)
        self._session: BrowserSession | None = None
        self.headless = False
        self.log = ActionLog()

    @property
    def is_running(self) -> bool:
        return self._session is not None

    def require_session(self, tool: str) -> BrowserSession:
        if self._session is None:
            raise tools.not_launched(tool)
        return self._session

    # ─────────────────────────────────────────────────────────────────────────
    # Lifecycle
    # ─────────────────────────────────────────────────────────────────────────

    def launch(self, headless: bool = False) -> dict[str, Any]:
        if self._session is not None:
            # Relaunch keeps the running session and its log.
            return {"status": "already_running", "headless": self.headless, "url": self._session.tab_url}
        self._session = self._launcher.open_session(headless=headless)
        self.headless = bool(headless)
        self.log.clear()
        logger.info("browser session started headless=%s tab=%s", headless, self._session.tab_id)
        return {"status": "launched", "headless": self.headless, "url": self._session.tab_url}

    def close(self) -> dict[str, Any]:
        if self._session is None:
            return {"status": "not_running", "message": "No browser to close"}
        session, self._session = self._session, None
        with suppress(Exception):
            session.close()
        self._launcher.stop()
        self.log.clear()
        logger.info("browser session closed")
        return {"status": "closed", "message": "Browser closed"}

    # ─────────────────────────────────────────────────────────────────────────
    # Page operations
    # ─────────────────────────────────────────────────────────────────────────

    def navigate(self, url: str) -> dict[str, Any]:
        session = self.require_session("navigate_to")
        result = tools.navigate_to(session, self.config, url)
        self.log.append(DriverAction(ActionKind.NAVIGATE, url, source=(codegen.goto_line(url),)))
        return result

    def click(self, selector: str, timeout: float = 30000) -> dict[str, Any]:
        session = self.require_session("click_element")
        result = tools.click_element(session, selector, timeout)
        resolved = result["selector"]
        self.log.append(
            DriverAction(
                ActionKind.CLICK,
                resolved,
                {"requested": selector},
                (codegen.click_line(resolved, timeout),),
            )
        )
        return result

    def fill(self, selector: str, text: str, timeout: float = 30000) -> dict[str, Any]:
        session = self.require_session("fill_input")
        result = tools.fill_input(session, selector, text, timeout)
        resolved = result["selector"]
        self.log.append(
            DriverAction(
                ActionKind.FILL,
                resolved,
                {"requested": selector, "confirmed": result["confirmed"]},
                (codegen.fill_line(resolved, text),),
            )
        )
        return result

    def wait(self, selector: str, timeout: float = 30000) -> dict[str, Any]:
        session = self.require_session("wait_for_element")
        result = tools.wait_for_element(session, selector, timeout)
        self.log.append(
            DriverAction(ActionKind.WAIT, selector, {"timeout": timeout}, (codegen.wait_line(selector, timeout),))
        )
        return result

    def screenshot(self, filename: str = "screenshot.png") -> dict[str, Any]:
        session = self.require_session("take_screenshot")
        result = tools.take_screenshot(session, filename)
        self.log.append(
            DriverAction(
                ActionKind.SCREENSHOT,
                filename,
                {"path": result["path"], "bytes": result["bytes"]},
                (codegen.screenshot_line(filename),),
            )
        )
        return result

    def inspect(self, element_type: str = "all") -> dict[str, Any]:
        session = self.require_session("inspect_page")
        result = tools.inspect_page(session, element_type)
        self.log.append(DriverAction(ActionKind.INSPECT, element_type))
        return result

    def site_search(self, query: str) -> dict[str, Any]:
        session = self.require_session("site_search")
        result = tools.site_search(session, query)
        self.log.append(
            DriverAction(
                ActionKind.SEARCH,
                query,
                {"strategy": result["strategy"], "site": result["site"]},
                tuple(result["source"]),
            )
        )
        return result

    def submit_form(self, form_selector: str = "form", timeout: float = 30000) -> dict[str, Any]:
        session = self.require_session("submit_form")
        result = tools.submit_form(session, form_selector, timeout)
        resolved = result["selector"]
        self.log.append(
            DriverAction(
                ActionKind.CLICK,
                resolved,
                {"form": form_selector},
                (codegen.click_line(resolved, timeout),),
            )
        )
        return result

    def page_content(self) -> dict[str, Any]:
        return tools.get_page_content(self.require_session("get_page_content"))

    # ─────────────────────────────────────────────────────────────────────────
    # Script generation
    # ─────────────────────────────────────────────────────────────────────────

    def generate_script(
        self,
        test_name: str,
        description: str = "",
        actions: Iterable[ActionRecord | Mapping[str, Any]] | None = None,
        output_file: str | None = None,
    ) -> dict[str, Any]:
        """Script from explicit actions when given, else from this session's log."""
        records = list(actions) if actions is not None else list(self.log.records())
        source = codegen.generate_script(test_name, description, records)
        out: dict[str, Any] = {"testName": codegen.sanitize_test_name(test_name), "actions": len(records), "script": source}
        if output_file:
            out["outputFile"] = str(codegen.write_script(output_file, source))
        return out

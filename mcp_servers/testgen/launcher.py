from __future__ import annotations

import contextlib
import logging
import socket
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from urllib.error import URLError
from urllib.request import urlopen

from .browser_session import BrowserSession
from .config import BrowserConfig, expand_path
from .http_client import HttpClientError, get_json
from .session_cdp import CdpConnection

logger = logging.getLogger("mcp.testgen.launcher")


@dataclass
class LaunchResult:
    command: list[str]
    started: bool
    message: str
    log_path: str | None = None
    log_tail: str | None = None


def _tail_text(path: str | None, max_chars: int = 4000) -> str | None:
    if not path:
        return None
    try:
        p = Path(path)
        if not p.exists():
            return None
        raw = p.read_text(encoding="utf-8", errors="replace")
        return raw if len(raw) <= max_chars else raw[-max_chars:]
    except OSError:
        return None


class BrowserLauncher:
    """Owns the Chrome process and hands out CDP page sessions."""

    def __init__(self, config: BrowserConfig | None = None) -> None:
        self.config = config or BrowserConfig.from_env()
        self.process: subprocess.Popen | None = None

    @staticmethod
    def find_free_port() -> int:
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
            sock.bind(("127.0.0.1", 0))
            return int(sock.getsockname()[1])

    def cdp_ready(self, timeout: float = 0.4) -> bool:
        """Return True if the CDP HTTP endpoint responds."""
        endpoint = f"http://127.0.0.1:{self.config.cdp_port}/json/version"
        try:
            with urlopen(endpoint, timeout=timeout) as resp:
                return resp.status == 200
        except (OSError, TimeoutError, URLError):
            return False

    def _port_available(self, timeout: float = 0.2) -> bool:
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
            sock.settimeout(timeout)
            try:
                return sock.connect_ex(("127.0.0.1", self.config.cdp_port)) != 0
            except OSError:
                return False

    def build_launch_command(self, *, headless: bool = False, extra: list[str] | None = None) -> list[str]:
        flags = [
            f"--remote-debugging-port={self.config.cdp_port}",
            f"--user-data-dir={expand_path(self.config.profile_path)}",
            "--remote-allow-origins=*",
            "--no-first-run",
            "--no-default-browser-check",
            "--disable-fre",
        ]
        if headless:
            flags.append("--headless=new")
        else:
            flags.append(f"--window-size={self.config.window_size}")
        flags.extend(self.config.extra_flags)
        if extra:
            flags.extend(extra)
        return [self.config.binary_path, *flags]

    def ensure_running(self, *, headless: bool = False, timeout: float | None = None) -> LaunchResult:
        """Start Chrome with remote debugging unless a CDP endpoint already answers."""
        if self.config.cdp_port == 0:
            self.config.cdp_port = self.find_free_port()
        elif self.cdp_ready():
            return LaunchResult([], False, "Chrome already listening on CDP port")
        elif not self._port_available():
            return LaunchResult([], False, f"Port {self.config.cdp_port} already in use")

        cmd = self.build_launch_command(headless=headless)
        log_dir = Path(expand_path(self.config.profile_path)).parent / "logs"
        log_path: str | None = None
        try:
            log_dir.mkdir(parents=True, exist_ok=True)
            log_path = str(log_dir / f"chrome_launch_{int(time.time() * 1000)}.log")
            with open(log_path, "ab", buffering=0) as log_fh:
                self.process = subprocess.Popen(
                    cmd,
                    stdout=log_fh,
                    stderr=log_fh,
                    stdin=subprocess.DEVNULL,
                    start_new_session=True,
                )
        except OSError as exc:
            return LaunchResult(cmd, False, str(exc), log_path=log_path, log_tail=_tail_text(log_path))

        deadline = time.time() + (timeout if timeout is not None else self.config.launch_timeout)
        while time.time() < deadline:
            if self.cdp_ready():
                logger.info("chrome_launched port=%s headless=%s", self.config.cdp_port, headless)
                return LaunchResult(cmd, True, "Chrome launched", log_path=log_path)
            if self.process.poll() is not None:
                break
            time.sleep(0.1)
        return LaunchResult(cmd, False, "Chrome launch timed out", log_path=log_path, log_tail=_tail_text(log_path))

    def list_targets(self) -> list[dict[str, Any]]:
        try:
            targets = get_json(f"http://127.0.0.1:{self.config.cdp_port}/json/list")
        except HttpClientError:
            return []
        return targets if isinstance(targets, list) else []

    def _browser_ws_url(self) -> str:
        version = get_json(f"http://127.0.0.1:{self.config.cdp_port}/json/version")
        ws_url = version.get("webSocketDebuggerUrl") if isinstance(version, dict) else None
        if not ws_url:
            raise HttpClientError("CDP browser WebSocket URL not found")
        return ws_url

    def create_tab(self, url: str = "about:blank") -> dict[str, Any]:
        """Create a new page target and return its /json/list entry."""
        conn = CdpConnection(self._browser_ws_url(), timeout=5.0)
        try:
            result = conn.send("Target.createTarget", {"url": url})
        finally:
            conn.close()
        tab_id = result.get("targetId")
        if not tab_id:
            raise HttpClientError("Failed to create browser tab")
        deadline = time.time() + 3.0
        while time.time() < deadline:
            for target in self.list_targets():
                if target.get("id") == tab_id and target.get("webSocketDebuggerUrl"):
                    return target
            time.sleep(0.05)
        raise HttpClientError(f"Tab {tab_id} has no WebSocket URL")

    def open_session(self, *, headless: bool = False) -> BrowserSession:
        """Make sure Chrome runs and return a session bound to a fresh tab."""
        result = self.ensure_running(headless=headless)
        if not result.started and not self.cdp_ready(timeout=1.0):
            detail = f" (log tail: {result.log_tail[-500:]})" if result.log_tail else ""
            raise HttpClientError(f"{result.message}{detail}")
        target = self.create_tab()
        conn = CdpConnection(target["webSocketDebuggerUrl"], timeout=self.config.cdp_timeout)
        session = BrowserSession(conn, target["id"], target.get("url") or "")
        session.enable_page()
        return session

    def stop(self, *, timeout: float = 2.0) -> bool:
        """Best-effort stop of the launcher-owned Chrome process."""
        proc = self.process
        if proc is None:
            return False
        self.process = None
        if proc.poll() is not None:
            return True

        with contextlib.suppress(OSError):
            proc.terminate()
        try:
            proc.wait(timeout=max(0.1, float(timeout)))
        except subprocess.TimeoutExpired:
            # Escalate to kill.
            with contextlib.suppress(OSError):
                proc.kill()
        return True

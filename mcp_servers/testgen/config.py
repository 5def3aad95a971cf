from __future__ import annotations

import os
import shlex
import sys
from dataclasses import dataclass, field
from pathlib import Path

READY_LINE = "testgen MCP server running on stdio"

DEFAULT_BINARY_CANDIDATES: list[str] = [
    # Prefer Chromium for better compatibility.
    # IMPORTANT: Avoid snap versions - they ignore --user-data-dir!
    "/usr/bin/chromium",
    "/usr/bin/chromium-browser",
    "/usr/local/bin/chromium",
    "/opt/chromium/chromium",
    "/Applications/Chromium.app/Contents/MacOS/Chromium",
    "C:\\Program Files\\Chromium\\Application\\chrome.exe",
    # Chrome entries kept as fallback.
    "/Applications/Google Chrome.app/Contents/MacOS/Google Chrome",
    "/usr/bin/google-chrome",
    "/usr/bin/google-chrome-stable",
    "/opt/google/chrome/chrome",
    "C:\\Program Files\\Google\\Chrome\\Application\\chrome.exe",
    "C:\\Program Files (x86)\\Google\\Chrome\\Application\\chrome.exe",
    "/snap/bin/chromium",
]


def expand_path(raw: str) -> str:
    return str(Path(raw).expanduser())


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.environ.get(name) or default)
    except ValueError:
        return default


@dataclass
class BrowserConfig:
    binary_path: str
    profile_path: str
    cdp_port: int = 9222
    extra_flags: list[str] = field(default_factory=list)
    allow_hosts: list[str] = field(default_factory=list)
    cdp_timeout: float = 10.0
    launch_timeout: float = 10.0
    window_size: str = "1280,900"

    @classmethod
    def detect_binary(cls) -> str:
        env_path = os.environ.get("MCP_BROWSER_BINARY")
        if env_path:
            return expand_path(env_path)
        for candidate in DEFAULT_BINARY_CANDIDATES:
            path = Path(candidate)
            if path.exists() and os.access(str(path), os.X_OK):
                return str(path)
        # Last resort: rely on PATH lookup
        return "google-chrome"

    @classmethod
    def from_env(cls) -> BrowserConfig:
        profile = expand_path(os.environ.get("MCP_BROWSER_PROFILE", "~/.cache/testgen/browser-profile"))
        port = int(os.environ.get("MCP_BROWSER_PORT", "9222"))
        flags_raw = os.environ.get("MCP_BROWSER_FLAGS", "")
        extra_flags = [flag.strip() for flag in flags_raw.split(",") if flag.strip()]
        allow_raw = os.environ.get("MCP_ALLOW_HOSTS", "")
        allow_hosts = [host.strip().lower() for host in allow_raw.split(",") if host.strip() and host.strip() != "*"]
        return cls(
            binary_path=cls.detect_binary(),
            profile_path=profile,
            cdp_port=port,
            extra_flags=extra_flags,
            allow_hosts=allow_hosts,
            cdp_timeout=_env_float("MCP_CDP_TIMEOUT", 10.0),
            launch_timeout=_env_float("MCP_LAUNCH_TIMEOUT", 10.0),
            window_size=os.environ.get("MCP_WINDOW_SIZE", "1280,900"),
        )

    def is_host_allowed(self, host: str) -> bool:
        host = (host or "").strip().lower().rstrip(".")
        if not self.allow_hosts:
            return True
        for raw_allowed in self.allow_hosts:
            allowed = (raw_allowed or "").strip().lower().lstrip(".").rstrip(".")
            if not allowed:
                continue
            if host == allowed:
                return True
            if host.endswith("." + allowed):
                return True
        return False


@dataclass
class BridgeConfig:
    """How the orchestrator spawns and talks to the driver process."""

    command: list[str] = field(default_factory=lambda: [sys.executable, "-m", "mcp_servers.testgen.main"])
    request_timeout: float = 30.0
    startup_timeout: float = 15.0
    ready_line: str = READY_LINE

    @classmethod
    def from_env(cls) -> BridgeConfig:
        cfg = cls()
        raw_cmd = (os.environ.get("MCP_TESTGEN_COMMAND") or "").strip()
        if raw_cmd:
            cfg.command = shlex.split(raw_cmd)
        cfg.request_timeout = _env_float("MCP_BRIDGE_TIMEOUT", cfg.request_timeout)
        cfg.startup_timeout = _env_float("MCP_BRIDGE_STARTUP_TIMEOUT", cfg.startup_timeout)
        return cfg


@dataclass
class PlannerConfig:
    model: str = "gpt-4o"
    temperature: float = 0.1
    api_key: str | None = None

    @classmethod
    def from_env(cls) -> PlannerConfig:
        return cls(
            model=(os.environ.get("MCP_PLANNER_MODEL") or "gpt-4o").strip(),
            temperature=_env_float("MCP_PLANNER_TEMPERATURE", 0.1),
            api_key=os.environ.get("OPENAI_API_KEY") or None,
        )

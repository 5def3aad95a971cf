"""Redaction of tool arguments and frames before they reach the logs."""

from __future__ import annotations

import re
from typing import Any
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

REDACTED = "<redacted>"

_SENSITIVE_KEYS = {
    "secret",
    "password",
    "passwd",
    "pass",
    "pwd",
    "token",
    "access_token",
    "refresh_token",
    "id_token",
    "auth",
    "authorization",
    "api_key",
    "apikey",
    "api-key",
    "key",
    "sig",
    "signature",
    "session",
    "code",
}

_SENSITIVE_SELECTOR_RE = re.compile(r"pass(word|wd)?|secret|token|otp|pin\b|cvv|card", re.IGNORECASE)


def is_sensitive_key(key: str) -> bool:
    lk = (key or "").strip().lower()
    if not lk:
        return False
    if lk in _SENSITIVE_KEYS:
        return True
    return any(part in lk for part in ("password", "secret", "token", "apikey", "api_key"))


def redact_url(url: str) -> str:
    """Drop userinfo and redact token-like query values; unchanged URLs are returned as-is."""
    if not isinstance(url, str) or not url:
        return url
    try:
        parts = urlsplit(url)
    except ValueError:
        return url

    changed = False
    netloc = parts.netloc
    if "@" in netloc:
        netloc = netloc.rsplit("@", 1)[1]
        changed = True

    query = parts.query
    if query:
        pairs = parse_qsl(query, keep_blank_values=True)
        redacted = [(k, REDACTED if is_sensitive_key(k) else v) for k, v in pairs]
        if redacted != pairs:
            query = urlencode(redacted, safe="<>")
            changed = True

    if not changed:
        return url
    return urlunsplit((parts.scheme, netloc, parts.path, query, parts.fragment))


def redact_arguments(tool: str, args: dict[str, Any]) -> dict[str, Any]:
    """Copy of tool arguments that is safe to log."""
    if not isinstance(args, dict):
        return {}
    out: dict[str, Any] = {}
    for key, value in args.items():
        if is_sensitive_key(key):
            out[key] = REDACTED
        elif key == "url" and isinstance(value, str):
            out[key] = redact_url(value)
        elif key == "actions" and isinstance(value, list):
            out[key] = f"<{len(value)} actions>"
        else:
            out[key] = value
    if tool == "fill_input" and isinstance(args.get("text"), str):
        if _SENSITIVE_SELECTOR_RE.search(str(args.get("selector") or "")):
            out["text"] = REDACTED
    return out


def redact_frame(frame: Any) -> Any:
    """Redact the arguments of a tools/call frame (other frames pass through)."""
    if not isinstance(frame, dict):
        return frame
    params = frame.get("params")
    if frame.get("method") not in ("tools/call", "call_tool") or not isinstance(params, dict):
        return frame
    args = params.get("arguments")
    if not isinstance(args, dict):
        return frame
    return {**frame, "params": {**params, "arguments": redact_arguments(str(params.get("name") or ""), args)}}

from __future__ import annotations

import json
from typing import Any
from urllib.error import URLError
from urllib.request import Request, urlopen


class HttpClientError(Exception):
    pass


def get_json(url: str, timeout: float = 2.0, *, method: str = "GET") -> Any:
    """Fetch JSON from a local CDP HTTP endpoint (/json/version, /json/list, /json/new)."""
    req = Request(url, method=method, headers={"User-Agent": "testgen/0.1"})
    try:
        with urlopen(req, timeout=timeout) as resp:
            return json.loads(resp.read().decode())
    except (TimeoutError, URLError) as exc:
        raise HttpClientError(str(exc)) from exc
    except ValueError as exc:
        raise HttpClientError(f"Invalid JSON from {url}: {exc}") from exc

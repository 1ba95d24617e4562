"""Shared HTTP access for link fetching and place search.

Requests go through one ``requests.Session`` with a common User-Agent and a
simple global rate limit. The async wrappers run the blocking call in a
worker thread so callers suspend instead of blocking the event loop.
"""

from __future__ import annotations

import asyncio
import logging
import os
import re
import threading
import time
from typing import Any, Optional
from urllib.parse import urlparse

import requests

from domain.errors import TransportError

logger = logging.getLogger(__name__)
_session = requests.Session()
_last_request_ts: float = 0.0
_lock = threading.Lock()
_MIN_INTERVAL_SEC = float(os.getenv("NOMINATIM_MIN_INTERVAL", "1.1"))
DEFAULT_TIMEOUT_SEC = float(os.getenv("HTTP_TIMEOUT_SECONDS", "10.0"))

FALLBACK_UA = "geo-link-resolver/0.1 (contact: example@example.com)"
USER_AGENT = os.getenv("NOMINATIM_USER_AGENT")
if USER_AGENT is None:
    logger.warning(
        "NOMINATIM_USER_AGENT not set in environment; using fallback UA. "
        "This may violate Nominatim usage policy."
    )


def _redact_email(ua: str) -> str:
    if "@" not in ua:
        return ua
    return re.sub(r"\S+@\S+", "<redacted>", ua)


_ua_value = USER_AGENT or FALLBACK_UA
DEFAULT_HEADERS = {
    "User-Agent": _ua_value,
}
logger.debug("HTTP User-Agent: %s", _redact_email(_ua_value))


def _throttled_get(
    url: str,
    *,
    params: Optional[dict[str, Any]] = None,
    headers: Optional[dict[str, str]] = None,
    timeout: float = DEFAULT_TIMEOUT_SEC,
) -> requests.Response:
    """Perform a GET request, rate limiting calls to Nominatim hosts."""
    global _last_request_ts
    if "nominatim" not in (urlparse(url).hostname or ""):
        return _session.get(url, params=params, headers=headers or DEFAULT_HEADERS, timeout=timeout)
    with _lock:
        now = time.time()
        delta = now - _last_request_ts
        if delta < _MIN_INTERVAL_SEC:
            time.sleep(_MIN_INTERVAL_SEC - delta)
        _last_request_ts = time.time()
    return _session.get(url, params=params, headers=headers or DEFAULT_HEADERS, timeout=timeout)


def _checked_get(url: str, params: Optional[dict[str, Any]], timeout: float) -> requests.Response:
    try:
        resp = _throttled_get(url, params=params, timeout=timeout)
    except requests.RequestException as exc:
        raise TransportError(f"GET {url} failed: {exc}", url) from exc

    if resp is None:
        raise TransportError(f"GET {url} returned no response", url)
    if not resp.ok:
        raise TransportError(f"GET {url} returned HTTP {resp.status_code}", url)
    return resp


def fetch_text_sync(
    url: str,
    params: Optional[dict[str, Any]] = None,
    timeout: float = DEFAULT_TIMEOUT_SEC,
) -> str:
    """GET ``url`` and return the body, raising TransportError on any failure."""
    return _checked_get(url, params, timeout).text


def fetch_json_sync(
    url: str,
    params: Optional[dict[str, Any]] = None,
    timeout: float = DEFAULT_TIMEOUT_SEC,
) -> Any:
    """GET ``url`` and decode the JSON body, raising TransportError on any failure."""
    resp = _checked_get(url, params, timeout)
    try:
        return resp.json()
    except ValueError as exc:
        raise TransportError(f"GET {url} returned invalid JSON: {exc}", url) from exc


async def get_text(url: str, params: Optional[dict[str, Any]] = None) -> str:
    """Async GET returning the response body."""
    return await asyncio.to_thread(fetch_text_sync, url, params)


async def get_json(url: str, params: Optional[dict[str, Any]] = None) -> Any:
    """Async GET returning the decoded JSON body."""
    return await asyncio.to_thread(fetch_json_sync, url, params)

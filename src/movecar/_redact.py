"""Helpers for safe debug logging.

Push channel credentials travel in request bodies (PushPlus token) and in
URL paths (the Bark device key), so anything logged on the dispatch path
goes through these helpers first.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any
from urllib.parse import urlsplit

_SENSITIVE_VALUE_KEYS: frozenset[str] = frozenset(
    {
        "token",
        "pushplus_token",
        "bark_url",
        "phone",
        "phone_number",
        "authorization",
        "cookie",
    }
)


def redact_url(url: str) -> str:
    """Keep only scheme and host of *url*; paths may embed device keys."""
    parts = urlsplit(url)
    if not parts.scheme or not parts.netloc:
        return "<redacted-url>"
    return f"{parts.scheme}://{parts.netloc}/<redacted>"


def redact_for_log(value: Any, *, max_string: int = 256, _depth: int = 0) -> Any:
    """Return a redacted copy of *value* suitable for debug logs."""
    if _depth > 10:
        return "<max-depth>"

    if value is None or isinstance(value, (int, float, bool)):
        return value

    if isinstance(value, str):
        if len(value) > max_string:
            return f"{value[:max_string]}…<truncated>"
        return value

    if isinstance(value, Mapping):
        redacted: dict[str, Any] = {}
        for k, v in value.items():
            key = str(k)
            if key.lower() in _SENSITIVE_VALUE_KEYS:
                redacted[key] = "<redacted>"
            else:
                redacted[key] = redact_for_log(v, max_string=max_string, _depth=_depth + 1)
        return redacted

    if isinstance(value, Sequence) and not isinstance(value, (bytes, bytearray)):
        return [redact_for_log(v, max_string=max_string, _depth=_depth + 1) for v in value]

    return repr(value)

"""Helpers for safe debug logging.

Outbound websocket frames and REST headers carry the hub bearer token.
Frames pass through :func:`redact_for_log` before they are written to DEBUG
logs so the token never ends up in a log file.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

REDACTED = "<redacted>"

_SENSITIVE_KEYS: frozenset[str] = frozenset(
    {
        "access_token",
        "authorization",
        "password",
        "token",
    }
)


def redact_for_log(value: Any, *, max_string: int = 256) -> Any:
    """Return a copy of a JSON-like *value* with secrets masked.

    Long strings (base64 attachments, large replies) are truncated to
    *max_string* characters.
    """
    if isinstance(value, Mapping):
        return {
            str(key): REDACTED if str(key).lower() in _SENSITIVE_KEYS else redact_for_log(item, max_string=max_string)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [redact_for_log(item, max_string=max_string) for item in value]
    if isinstance(value, str) and len(value) > max_string:
        return f"{value[:max_string]}…<truncated>"
    return value

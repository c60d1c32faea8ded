"""
error_insight/capture/redaction.py - Sensitive-name redaction

Names containing password, token, secret or key are never rendered;
containers are copied with those keys replaced by a placeholder.
"""

from __future__ import annotations

from itertools import islice
from typing import Any


REDACTED_PLACEHOLDER = "[REDACTED]"

_SENSITIVE_SUBSTRINGS = (
    "password",
    "token",
    "secret",
    "key",
)

# Containers are copied only up to this many entries; the renderer shows
# fewer, so its "..." marker still appears for longer containers.
WALK_LIMIT = 12


def is_sensitive_name(name: Any) -> bool:
    try:
        s = str(name).strip().lower()
    except Exception:
        return False
    return any(sub in s for sub in _SENSITIVE_SUBSTRINGS)


def scrub(value: Any, _depth: int = 0) -> Any:
    """
    Return a copy of mappings/sequences with sensitive keys replaced.

    Only plain containers are walked; anything else is returned as is.
    """
    if _depth > 4:
        return value
    if isinstance(value, dict):
        out = {}
        for k, v in islice(value.items(), WALK_LIMIT):
            if is_sensitive_name(k):
                out[k] = REDACTED_PLACEHOLDER
            else:
                out[k] = scrub(v, _depth + 1)
        return out
    if isinstance(value, list):
        return [scrub(x, _depth + 1) for x in islice(value, WALK_LIMIT)]
    if isinstance(value, tuple):
        return tuple(scrub(x, _depth + 1) for x in islice(value, WALK_LIMIT))
    return value

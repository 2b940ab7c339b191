"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Small shared helpers.
"""

from __future__ import annotations

import os


def backoff_delay(attempt: int, base_s: float, max_s: float | None = None) -> float:
    """
    Exponential backoff delay for a zero-based attempt index.

    attempt 0 -> base, 1 -> 2*base, 2 -> 4*base, optionally capped at `max_s`.
    """
    if attempt < 0:
        raise ValueError("attempt must be >= 0")
    delay = max(0.0, base_s) * (2**attempt)
    if max_s is not None:
        delay = min(delay, max_s)
    return delay


def env_first(*names: str, default: str | None = None) -> str | None:
    """
    Return the first non-empty environment variable in `names`.

    Args:
        *names: Environment variable names to check in order.
        default: Value returned if no non-empty variable is found.
    """
    for name in names:
        raw = os.getenv(name)
        if raw is None:
            continue
        value = raw.strip()
        if value:
            return value
    return default


def env_flag(name: str, default: bool) -> bool:
    """Parse a boolean environment flag (`1/true/yes/on`)."""
    raw = env_first(name)
    if raw is None:
        return default
    return raw.lower() in ("1", "true", "yes", "on")

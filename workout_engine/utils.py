"""Utility helpers used across engine modules."""

from __future__ import annotations

import math
import re
import time

_LEADING_NUMBER = re.compile(r"^\s*(-?\d+(?:\.\d+)?)")


def date_key(timestamp: float) -> str:
    """Return the ``YYYY-MM-DD`` key for ``timestamp`` in local time."""

    return time.strftime("%Y-%m-%d", time.localtime(timestamp))


def round_half_up(value: float) -> int:
    """Round ``value`` to the nearest integer, halves rounding up."""

    return int(math.floor(value + 0.5))


def format_timer(seconds: float) -> str:
    """Return ``seconds`` formatted as ``MM:SS``."""

    total = max(0, int(seconds))
    m, s = divmod(total, 60)
    return f"{m:02d}:{s:02d}"


def parse_display_number(text: str | None) -> float | None:
    """Return the leading number of a display string such as ``"8-12"``.

    ``None`` is returned when ``text`` does not start with a number, e.g.
    ``"Bodyweight"``.
    """

    if not text:
        return None
    match = _LEADING_NUMBER.match(str(text))
    if not match:
        return None
    return float(match.group(1))

"""Conversion between duration text and whole seconds.

Parsing is deliberately lenient: anything that does not match the grammar
yields ``0`` instead of raising, because a malformed cell in a vendor export
must not abort the whole report.

Accepted inputs::

    "90"        -> 90        bare number of seconds
    "1:30"      -> 90        M:S
    "1:02:03"   -> 3723      H:M:S
    ""/"n/a"    -> 0
"""

from __future__ import annotations

import math
import re
from datetime import time, timedelta
from typing import Any

ZERO_DURATION = "00:00:00"

_BARE_NUMBER_RE = re.compile(r"^\d+(?:\.\d+)?$")
_COLON_RE = re.compile(r"^(\d+):(\d+)(?::(\d+))?$")


def parse_duration(value: Any) -> int:
    """Return ``value`` as non-negative whole seconds, or 0 if unparseable."""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, timedelta):
        return max(0, int(value.total_seconds()))
    if isinstance(value, time):
        return value.hour * 3600 + value.minute * 60 + value.second
    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            return 0
        return max(0, int(math.floor(value)))

    text = str(value).strip()
    if not text:
        return 0
    if _BARE_NUMBER_RE.match(text):
        return int(math.floor(float(text)))

    match = _COLON_RE.match(text)
    if not match:
        return 0
    first, second, third = match.groups()
    if third is None:
        hours, minutes, seconds = 0, int(first), int(second)
    else:
        hours, minutes, seconds = int(first), int(second), int(third)
    return hours * 3600 + minutes * 60 + seconds


def format_duration(seconds: float) -> str:
    """Render seconds as ``HH:MM:SS``; hours are never truncated."""
    if not isinstance(seconds, (int, float)) or not math.isfinite(seconds):
        return ZERO_DURATION
    total = max(0, int(math.floor(seconds)))
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def average_duration(total_seconds: int, calls: int) -> str:
    """Average per call, or the zero duration when there were no calls."""
    if not calls or calls <= 0:
        return ZERO_DURATION
    return format_duration(total_seconds / calls)


__all__ = ["ZERO_DURATION", "average_duration", "format_duration", "parse_duration"]

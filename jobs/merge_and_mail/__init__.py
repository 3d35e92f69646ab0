"""Scheduled merge-and-mail job package.

Fetches the day's agent activity report and emails each agent their totals.
"""

from __future__ import annotations

from typing import Any


def __getattr__(name: str) -> Any:
    if name in {"main", "run_job"}:
        from . import handler

        return getattr(handler, name)
    raise AttributeError(name)


__all__ = ["main", "run_job"]

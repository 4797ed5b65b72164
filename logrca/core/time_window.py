"""Shared time range parsing utilities."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

from logrca.core.models import InvestigationTimeRange


def parse_time_window(time_window: str) -> timedelta:
    """
    Parse a window string (e.g. '15m', '1h', '2h30m', '24h') into a timedelta.

    Raises:
        ValueError: if the string has no hour/minute component.
    """
    raw = (time_window or "").strip().lower()
    hours = 0
    minutes = 0

    if "h" in raw:
        parts = raw.split("h")
        hours = int(parts[0])
        if len(parts) > 1 and parts[1]:
            minutes = int(parts[1].replace("m", ""))
    elif "m" in raw:
        minutes = int(raw.replace("m", ""))
    else:
        raise ValueError(f"Invalid time window format: {time_window}")

    return timedelta(hours=hours, minutes=minutes)


def time_range_from_window(time_window: str, *, now: Optional[datetime] = None) -> InvestigationTimeRange:
    """Build an investigation range ending at `now` (UTC)."""
    end = now or datetime.now(timezone.utc)
    if end.tzinfo is None:
        end = end.replace(tzinfo=timezone.utc)
    return InvestigationTimeRange(start=end - parse_time_window(time_window), end=end)

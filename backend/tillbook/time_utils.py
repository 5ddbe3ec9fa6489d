from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def local_day_start_utc(days_back: int = 0, now: Optional[datetime] = None) -> datetime:
    """
    Start of a local calendar day, expressed as a UTC-naive datetime.

    days_back=0 is the start of today in local time, days_back=6 the start of
    the day six days ago. `now` may be naive (treated as UTC) or aware.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    local_now = now.astimezone()
    day_start = local_now.replace(hour=0, minute=0, second=0, microsecond=0)
    day_start = day_start - timedelta(days=days_back)
    return day_start.astimezone(timezone.utc).replace(tzinfo=None)


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """
    Serializes datetime to ISO-8601 with trailing 'Z'.
    If dt is naive, it is treated as UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt_utc = dt.astimezone(timezone.utc).replace(microsecond=0)
    return dt_utc.isoformat().replace("+00:00", "Z")

from __future__ import annotations

from datetime import date, datetime, time, timezone


def utcnow() -> datetime:
    """Return a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def utctoday() -> date:
    return utcnow().date()


def start_of_utc_day(value: datetime | None = None) -> datetime:
    dt = value or utcnow()
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    else:
        dt = dt.astimezone(timezone.utc)
    return datetime.combine(dt.date(), time.min, tzinfo=timezone.utc)

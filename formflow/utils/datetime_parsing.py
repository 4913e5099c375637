"""Datetime helpers for deadlines and stored timestamps."""

from __future__ import annotations

import math
from datetime import date, datetime, time, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """Treat naive datetimes (SQLite round-trips) as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def normalize_deadline(value: date | datetime | None) -> datetime | None:
    """
    Normalize a form deadline to an aware UTC datetime.

    A bare date means the form stays open through the end of that day (UTC).
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return as_utc(value)
    return datetime.combine(value, time.max, tzinfo=timezone.utc)


def is_past(deadline: datetime | None, now: datetime | None = None) -> bool:
    if deadline is None:
        return False
    now = now or utc_now()
    return as_utc(deadline) < now


def days_until(deadline: datetime | None, now: datetime | None = None) -> int | None:
    """Whole days left until the deadline, rounded up; None without a deadline."""
    if deadline is None:
        return None
    now = now or utc_now()
    remaining = (as_utc(deadline) - now).total_seconds()
    return math.ceil(remaining / 86400)

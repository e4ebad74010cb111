"""Time helpers.

All timestamps are stored as naive UTC so SQLite and PostgreSQL round-trip
the same values.
"""

from __future__ import annotations

from datetime import datetime, timezone


def utcnow() -> datetime:
    """Current time as naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def as_naive_utc(value: datetime) -> datetime:
    """Normalize an aware datetime to naive UTC; naive values pass through."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def minutes_between(earlier: datetime, later: datetime) -> float:
    return (as_naive_utc(later) - as_naive_utc(earlier)).total_seconds() / 60.0

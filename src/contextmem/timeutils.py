"""Timestamp helpers shared by the store and the prioritizer."""

from __future__ import annotations

from datetime import datetime
from datetime import UTC

_SECONDS_PER_DAY = 86_400


def utcnow() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(tz=UTC)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so they compare with aware ones."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def days_since(then: datetime, now: datetime) -> float:
    """Fractional days elapsed from *then* to *now* (negative if in the future)."""
    return (ensure_utc(now) - ensure_utc(then)).total_seconds() / _SECONDS_PER_DAY

"""Datetime helpers for the API layer.

DATE CONVENTION:
Timestamps (start_date, starts_at, created_at) are stored timezone-aware
and handled in UTC. Race-day columns (tracks.end_date) are plain dates and
start at UTC midnight. tracks.timezone is display-only.

All datetime fields in responses are UTC (ISO 8601).
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone


def now_utc() -> datetime:
    """Get the current time in UTC, timezone-aware."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime; naive values are taken as UTC."""
    if value.tzinfo is None or value.tzinfo.utcoffset(value) is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utc_midnight(day: date) -> datetime:
    """Start of ``day`` in UTC."""
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def to_utc_datetime(value: date | datetime | None) -> datetime | None:
    """Normalize a date or datetime column value to an aware UTC datetime.

    Plain dates become UTC midnight, whatever the circuit's local zone.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return as_utc(value)
    return utc_midnight(value)


def week_start(now: datetime) -> date:
    """Return the Monday (UTC) of the week containing ``now``."""
    today = as_utc(now).date()
    return today - timedelta(days=today.weekday())

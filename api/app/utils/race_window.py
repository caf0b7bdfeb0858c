"""
Race weekend window calculations.

A race weekend is "live" from the first session (tracks.start_date) until
24 hours after the race day (tracks.end_date). The grace period absorbs
timezone and finish-time slack so chat stays open through the race.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, NamedTuple

from .datetime_utils import as_utc, to_utc_datetime


class RaceWindowConfig(NamedTuple):
    """Configuration for the live race weekend window."""

    grace_hours: int = 24


DEFAULT_CONFIG = RaceWindowConfig()


class RaceWindow(NamedTuple):
    """Time window during which a race weekend counts as live."""

    start: datetime
    end: datetime

    def contains(self, moment: datetime) -> bool:
        return self.start <= as_utc(moment) <= self.end


def is_chat_enabled(track: Any) -> bool:
    """Chat is on unless explicitly disabled; a null flag counts as enabled."""
    return getattr(track, "chat_enabled", None) is not False


def race_weekend_window(
    track: Any,
    config: RaceWindowConfig = DEFAULT_CONFIG,
) -> RaceWindow | None:
    """
    Calculate the live window for a track's race weekend.

    Args:
        track: Any object with start_date and end_date
        config: Window configuration (grace period after race day)

    Returns:
        RaceWindow, or None when either date is missing
    """
    start = to_utc_datetime(getattr(track, "start_date", None))
    race_day = to_utc_datetime(getattr(track, "end_date", None))
    if start is None or race_day is None:
        return None
    return RaceWindow(start=start, end=race_day + timedelta(hours=config.grace_hours))


def is_race_live(
    track: Any,
    now: datetime,
    config: RaceWindowConfig = DEFAULT_CONFIG,
) -> bool:
    """True when chat is enabled and ``now`` falls inside the race weekend window."""
    if not is_chat_enabled(track):
        return False
    window = race_weekend_window(track, config)
    if window is None:
        return False
    return window.contains(now)


def format_time_until(target: datetime | None, now: datetime) -> str:
    """
    Countdown label for a future moment.

    Returns "3d 4h", "5h 12m" or "42m"; empty string for None or the past.
    """
    if target is None:
        return ""
    remaining = as_utc(target) - as_utc(now)
    if remaining < timedelta(0):
        return ""

    total_minutes = int(remaining.total_seconds() // 60)
    days, minutes_left = divmod(total_minutes, 24 * 60)
    hours, minutes = divmod(minutes_left, 60)

    if days > 0:
        return f"{days}d {hours}h"
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"

"""Closest race weekend selection.

Pure functions over track rows (ORM objects or anything exposing id, name,
start_date, end_date, chat_enabled). Priority, first non-empty wins:

1. Live: inside the race weekend window; most recently started wins.
2. Upcoming: start_date in the future; earliest wins.
3. Fallback: most recent start_date overall.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any, Iterable, TypeVar

from ..utils.datetime_utils import as_utc, to_utc_datetime
from ..utils.race_window import DEFAULT_CONFIG, RaceWindowConfig, is_race_live

T = TypeVar("T")

RACE_LIVE = "live"
RACE_UPCOMING = "upcoming"
RACE_PAST = "past"

_WHITESPACE = re.compile(r"\s+")


def _start(track: Any) -> datetime | None:
    return to_utc_datetime(getattr(track, "start_date", None))


def _latest_first_key(track: Any) -> tuple[int, float, str]:
    # Tracks without a start date sort after every dated track.
    start = _start(track)
    if start is None:
        return (1, 0.0, str(getattr(track, "id", "")))
    return (0, -start.timestamp(), str(getattr(track, "id", "")))


def _earliest_first_key(track: Any) -> tuple[float, str]:
    start = _start(track)
    return (start.timestamp() if start else 0.0, str(getattr(track, "id", "")))


def select_closest_race(
    tracks: Iterable[T],
    now: datetime,
    config: RaceWindowConfig = DEFAULT_CONFIG,
) -> T | None:
    """
    Pick the single race weekend the feed should surface.

    Args:
        tracks: Candidate track rows
        now: Reference instant
        config: Live window configuration

    Returns:
        The chosen track, or None for empty input
    """
    candidates = list(tracks)
    if not candidates:
        return None

    now = as_utc(now)

    live = [track for track in candidates if is_race_live(track, now, config)]
    if live:
        return min(live, key=_latest_first_key)

    upcoming = [
        track
        for track in candidates
        if (start := _start(track)) is not None and start > now
    ]
    if upcoming:
        return min(upcoming, key=_earliest_first_key)

    return min(candidates, key=_latest_first_key)


def classify_race(
    track: Any,
    now: datetime,
    config: RaceWindowConfig = DEFAULT_CONFIG,
) -> str:
    """Label a track as live, upcoming or past relative to ``now``."""
    if is_race_live(track, now, config):
        return RACE_LIVE
    start = _start(track)
    if start is not None and start > as_utc(now):
        return RACE_UPCOMING
    return RACE_PAST


def race_slug(name: str) -> str:
    """'Monaco Grand Prix' -> 'monaco-grand-prix'."""
    return _WHITESPACE.sub("-", name.strip().lower())

"""Live-status gate for the closest race.

The race card is always built for the upcoming-race panel; the carousel only
shows it while the weekend is live, together with a best-effort count of
fans active in the race chat.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Any, Iterable

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..db.racing import LiveChatMessage
from ..utils.datetime_utils import as_utc, to_utc_datetime
from ..utils.race_window import (
    DEFAULT_CONFIG,
    RaceWindowConfig,
    format_time_until,
    race_weekend_window,
)
from .closest_race import RACE_LIVE, classify_race, race_slug
from .feed_types import RaceCard, SessionView

logger = logging.getLogger(__name__)

DEFAULT_CHAT_WINDOW_MINUTES = 10


def next_session(events: Iterable[Any], now: datetime) -> SessionView | None:
    """First scheduled session at or after ``now``, if any."""
    now = as_utc(now)
    upcoming = sorted(
        (event for event in events if as_utc(event.scheduled_at) >= now),
        key=lambda event: (as_utc(event.scheduled_at), event.event_type),
    )
    if not upcoming:
        return None
    event = upcoming[0]
    return SessionView(
        event_type=event.event_type,
        scheduled_at=as_utc(event.scheduled_at),
        duration_minutes=event.duration_minutes,
    )


def build_race_card(
    track: Any,
    now: datetime,
    events: Iterable[Any] = (),
    config: RaceWindowConfig = DEFAULT_CONFIG,
) -> RaceCard:
    status = classify_race(track, now, config)
    window = race_weekend_window(track, config)
    start = to_utc_datetime(track.start_date)
    countdown_target = window.end if status == RACE_LIVE and window else start
    return RaceCard(
        id=str(track.id),
        name=track.name,
        slug=race_slug(track.name),
        status=status,
        is_live=status == RACE_LIVE,
        location=getattr(track, "location", None),
        country=getattr(track, "country", None),
        image_url=getattr(track, "image_url", None),
        circuit_ref=getattr(track, "circuit_ref", None),
        timezone=getattr(track, "timezone", None),
        start_date=start,
        end_date=getattr(track, "end_date", None),
        window_ends_at=window.end if window else None,
        countdown=format_time_until(countdown_target, now),
        next_session=next_session(events, now),
    )


def carousel_race(card: RaceCard | None, live_chat_user_count: int) -> RaceCard | None:
    """Only a live race goes in the primary carousel."""
    if card is None or not card.is_live:
        return None
    return replace(card, live_chat_user_count=live_chat_user_count)


async def count_live_chat_users(
    session: AsyncSession,
    track_id: str,
    now: datetime,
    window_minutes: int = DEFAULT_CHAT_WINDOW_MINUTES,
) -> int:
    """Distinct chat authors for a track in the last ``window_minutes``.

    Best effort: backend failures are logged and reported as zero.
    """
    since = as_utc(now) - timedelta(minutes=window_minutes)
    stmt = (
        select(func.count(func.distinct(LiveChatMessage.user_id)))
        .where(LiveChatMessage.track_id == track_id)
        .where(LiveChatMessage.created_at >= since)
    )
    try:
        result = await session.execute(stmt)
        return int(result.scalar() or 0)
    except (SQLAlchemyError, OSError) as exc:
        logger.warning(
            "live_chat_count_failed",
            extra={"track_id": track_id, "error": str(exc)},
        )
        return 0

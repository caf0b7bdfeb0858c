"""Feed endpoints."""

from __future__ import annotations

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ..config import settings
from ..db import AsyncSession, get_db, get_session_factory
from ..dependencies.auth import require_user_id, verify_api_key
from ..services.closest_race import select_closest_race
from ..services.feed_composer import FeedComposer
from ..services.feed_queries import fetch_race_tracks, fetch_track_events
from ..services.live_status import build_race_card, count_live_chat_users
from ..utils.datetime_utils import as_utc, now_utc
from ..utils.race_window import RaceWindowConfig
from .feed_models import ClosestRaceResponse, FeedResponse, RaceCardModel

router = APIRouter(prefix="/api", tags=["feed"], dependencies=[Depends(verify_api_key)])
logger = logging.getLogger(__name__)


def get_feed_composer() -> FeedComposer:
    return FeedComposer(get_session_factory(), settings)


def resolve_now(as_of: datetime | None) -> datetime:
    """Reference instant for a request; ``as_of`` pins it in development only."""
    if as_of is None:
        return now_utc()
    if settings.environment != "development":
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="as_of is only available in development",
        )
    return as_utc(as_of)


@router.get("/feed", response_model=FeedResponse)
async def get_feed(
    as_of: datetime | None = Query(None),
    user_id: str = Depends(require_user_id),
    composer: FeedComposer = Depends(get_feed_composer),
) -> FeedResponse:
    """
    Compose the weekly feed for the signed-in user.

    Example request:
        GET /api/feed
        X-User-Id: 7d3c...
    """
    view = await composer.compose(user_id, resolve_now(as_of))
    return FeedResponse.model_validate(view)


@router.get("/feed/closest-race", response_model=ClosestRaceResponse)
async def get_closest_race(
    as_of: datetime | None = Query(None),
    session: AsyncSession = Depends(get_db),
) -> ClosestRaceResponse:
    """The race weekend the feed would surface right now."""
    now = resolve_now(as_of)
    config = RaceWindowConfig(grace_hours=settings.race_live_grace_hours)

    race = select_closest_race(await fetch_race_tracks(session), now, config)
    if race is None:
        return ClosestRaceResponse(race=None, is_live=False, live_chat_user_count=0)

    events = []
    if race.start_date is not None:
        events = await fetch_track_events(session, str(race.id), race.start_date.year)
    card = build_race_card(race, now, events, config)

    live_users = 0
    if card.is_live:
        live_users = await count_live_chat_users(
            session, card.id, now, settings.live_chat_window_minutes
        )
        card.live_chat_user_count = live_users

    return ClosestRaceResponse(
        race=RaceCardModel.model_validate(card),
        is_live=card.is_live,
        live_chat_user_count=live_users,
    )

"""Read queries behind the feed, polls and grid pages.

Each function issues one statement (or none, for an empty id set) and
returns plain lists/dicts of rows. Failure handling is the caller's job.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Sequence

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..db.content import (
    Comment,
    HotTake,
    NewsStory,
    Poll,
    PollResponse,
    Post,
    Sponsor,
    Vote,
    WeeklyHighlight,
)
from ..db.grids import Grid, GridLike, GridSlotBlurb, GridSlotComment
from ..db.profiles import Follow
from ..db.racing import Driver, Team, Track, TrackEvent


def _active_poll_clause(now: datetime):
    return or_(Poll.ends_at.is_(None), Poll.ends_at > now)


async def fetch_following_ids(session: AsyncSession, user_id: str) -> list[str]:
    stmt = (
        select(Follow.following_id)
        .where(Follow.follower_id == user_id)
        .order_by(Follow.following_id)
    )
    result = await session.execute(stmt)
    return [str(value) for value in result.scalars().all()]


async def fetch_posts_by_authors(
    session: AsyncSession, author_ids: Sequence[str], limit: int
) -> list[Post]:
    if not author_ids:
        return []
    stmt = (
        select(Post)
        .where(Post.user_id.in_(author_ids))
        .order_by(Post.created_at.desc(), Post.id.desc())
        .limit(limit)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def fetch_grids_by_authors(
    session: AsyncSession, author_ids: Sequence[str], limit: int
) -> list[Grid]:
    if not author_ids:
        return []
    stmt = (
        select(Grid)
        .where(Grid.user_id.in_(author_ids))
        .order_by(Grid.created_at.desc(), Grid.id.desc())
        .limit(limit)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def fetch_community_polls(
    session: AsyncSession, now: datetime, limit: int
) -> list[Poll]:
    stmt = (
        select(Poll)
        .where(Poll.admin_id.is_(None))
        .where(_active_poll_clause(now))
        .order_by(Poll.created_at.desc(), Poll.id.desc())
        .limit(limit)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def fetch_admin_polls(session: AsyncSession, now: datetime) -> list[Poll]:
    stmt = (
        select(Poll)
        .where(Poll.admin_id.is_not(None))
        .where(_active_poll_clause(now))
        .order_by(Poll.created_at.desc(), Poll.id.desc())
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def fetch_all_polls(session: AsyncSession) -> list[Poll]:
    stmt = select(Poll).order_by(Poll.created_at.desc(), Poll.id.desc())
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def fetch_poll_responses(
    session: AsyncSession, poll_ids: Sequence[str]
) -> list[PollResponse]:
    """Responses oldest first, so replaying them leaves each user's latest vote."""
    if not poll_ids:
        return []
    stmt = (
        select(PollResponse)
        .where(PollResponse.poll_id.in_(poll_ids))
        .order_by(PollResponse.created_at.asc(), PollResponse.id.asc())
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def fetch_featured_news(session: AsyncSession, limit: int) -> list[NewsStory]:
    stmt = (
        select(NewsStory)
        .where(NewsStory.is_featured.is_(True))
        .order_by(NewsStory.created_at.desc(), NewsStory.id.desc())
        .limit(limit)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def fetch_sponsors(session: AsyncSession) -> list[Sponsor]:
    stmt = select(Sponsor).order_by(Sponsor.name.asc(), Sponsor.id.asc())
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def fetch_weekly_highlight(
    session: AsyncSession, week_start_date: date
) -> WeeklyHighlight | None:
    stmt = select(WeeklyHighlight).where(WeeklyHighlight.week_start_date == week_start_date)
    result = await session.execute(stmt)
    return result.scalars().first()


async def fetch_race_tracks(session: AsyncSession) -> list[Track]:
    stmt = (
        select(Track)
        .where(Track.start_date.is_not(None))
        .order_by(Track.start_date.asc(), Track.id.asc())
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def fetch_track_events(
    session: AsyncSession, track_id: str, season_year: int
) -> list[TrackEvent]:
    stmt = (
        select(TrackEvent)
        .where(TrackEvent.track_id == track_id)
        .where(TrackEvent.season_year == season_year)
        .order_by(TrackEvent.scheduled_at.asc())
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def fetch_active_hot_take(session: AsyncSession, now: datetime) -> HotTake | None:
    stmt = (
        select(HotTake)
        .where(HotTake.starts_at <= now)
        .where(HotTake.ends_at > now)
        .order_by(HotTake.starts_at.desc(), HotTake.id.desc())
        .limit(1)
    )
    result = await session.execute(stmt)
    return result.scalars().first()


async def fetch_parent_page_posts(
    session: AsyncSession, page_type: str, page_id: str, limit: int
) -> list[Post]:
    stmt = (
        select(Post)
        .where(Post.parent_page_type == page_type)
        .where(Post.parent_page_id == page_id)
        .order_by(Post.created_at.desc(), Post.id.desc())
        .limit(limit)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def fetch_liked_targets(
    session: AsyncSession, user_id: str, target_type: str, target_ids: Sequence[str]
) -> set[str]:
    if not target_ids:
        return set()
    stmt = (
        select(Vote.target_id)
        .where(Vote.user_id == user_id)
        .where(Vote.target_type == target_type)
        .where(Vote.target_id.in_(target_ids))
    )
    result = await session.execute(stmt)
    return {str(value) for value in result.scalars().all()}


async def _grouped_counts(session: AsyncSession, column: Any, ids: Sequence[str]) -> dict[str, int]:
    if not ids:
        return {}
    stmt = select(column, func.count()).where(column.in_(ids)).group_by(column)
    result = await session.execute(stmt)
    return {str(key): int(count) for key, count in result.all()}


async def fetch_post_comment_counts(
    session: AsyncSession, post_ids: Sequence[str]
) -> dict[str, int]:
    return await _grouped_counts(session, Comment.post_id, post_ids)


async def fetch_grid_like_counts(
    session: AsyncSession, grid_ids: Sequence[str]
) -> dict[str, int]:
    return await _grouped_counts(session, GridLike.grid_id, grid_ids)


async def fetch_grid_comment_counts(
    session: AsyncSession, grid_ids: Sequence[str]
) -> dict[str, int]:
    return await _grouped_counts(session, GridSlotComment.grid_id, grid_ids)


async def fetch_user_grid_likes(
    session: AsyncSession, user_id: str, grid_ids: Sequence[str]
) -> set[str]:
    if not grid_ids:
        return set()
    stmt = (
        select(GridLike.grid_id)
        .where(GridLike.user_id == user_id)
        .where(GridLike.grid_id.in_(grid_ids))
    )
    result = await session.execute(stmt)
    return {str(value) for value in result.scalars().all()}


async def fetch_drivers_by_id(
    session: AsyncSession, driver_ids: Sequence[str]
) -> dict[str, Driver]:
    if not driver_ids:
        return {}
    stmt = select(Driver).where(Driver.id.in_(driver_ids)).where(Driver.active.is_(True))
    result = await session.execute(stmt)
    return {str(driver.id): driver for driver in result.scalars().all()}


async def fetch_tracks_by_id(
    session: AsyncSession, track_ids: Sequence[str]
) -> dict[str, Track]:
    if not track_ids:
        return {}
    result = await session.execute(select(Track).where(Track.id.in_(track_ids)))
    return {str(track.id): track for track in result.scalars().all()}


async def fetch_teams_by_id(
    session: AsyncSession, team_ids: Sequence[str]
) -> dict[str, Team]:
    if not team_ids:
        return {}
    result = await session.execute(select(Team).where(Team.id.in_(team_ids)))
    return {str(team.id): team for team in result.scalars().all()}


async def fetch_grid(session: AsyncSession, grid_id: str) -> Grid | None:
    result = await session.execute(select(Grid).where(Grid.id == grid_id))
    return result.scalars().first()


async def fetch_slot_blurbs(session: AsyncSession, grid_id: str) -> list[GridSlotBlurb]:
    stmt = (
        select(GridSlotBlurb)
        .where(GridSlotBlurb.grid_id == grid_id)
        .order_by(GridSlotBlurb.rank_index.asc())
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())

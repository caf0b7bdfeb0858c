"""Weekly feed composition.

Request-time aggregator over the relational store:

    Stage 1  independent fetches, fanned out with asyncio.gather
             (followed posts/grids are chained after the follows lookup)
    Stage 2  lookups that depend on stage 1 ids, also fanned out
    Stage 3  pure shaping into a FeedView

Every fetch runs on its own session and through ``_guarded``: a backend
failure is logged and the section falls back to its empty default, so a
broken query removes one section instead of the whole feed. Nothing here
writes, retries or caches.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..config import Settings, settings as default_settings
from ..db.content import ParentPageType
from ..db.grids import GridType
from ..utils.datetime_utils import as_utc, now_utc, week_start
from ..utils.race_window import RaceWindowConfig
from . import feed_queries as queries
from .banner import compose_banner, desktop_banner, normalize_featured_grid
from .closest_race import select_closest_race
from .enrichment import build_grid_view, enrich_posts, referenced_ids, user_summary
from .feed_types import FeedView, GridView, HotTakeView, SpotlightView
from .live_status import build_race_card, carousel_race, count_live_chat_users
from .poll_tally import summarize_polls

logger = logging.getLogger(__name__)

FETCH_FAILURES = (SQLAlchemyError, OSError)


@dataclass
class _Sources:
    """Stage 1 results."""

    following_posts: list[Any] = field(default_factory=list)
    following_grids: list[Any] = field(default_factory=list)
    community_polls: list[Any] = field(default_factory=list)
    admin_polls: list[Any] = field(default_factory=list)
    featured_news: list[Any] = field(default_factory=list)
    sponsors: list[Any] = field(default_factory=list)
    weekly_highlight: Any = None
    race_tracks: list[Any] = field(default_factory=list)
    hot_take: Any = None


@dataclass
class _Lookups:
    """Stage 2 results."""

    discussion_posts: list[Any] = field(default_factory=list)
    liked_post_ids: set[str] = field(default_factory=set)
    post_comment_counts: dict[str, int] = field(default_factory=dict)
    grid_like_counts: dict[str, int] = field(default_factory=dict)
    liked_grid_ids: set[str] = field(default_factory=set)
    grid_comment_counts: dict[str, int] = field(default_factory=dict)
    drivers_by_id: dict[str, Any] = field(default_factory=dict)
    tracks_by_id: dict[str, Any] = field(default_factory=dict)
    teams_by_id: dict[str, Any] = field(default_factory=dict)
    poll_responses: list[Any] = field(default_factory=list)
    race_events: list[Any] = field(default_factory=list)
    live_chat_user_count: int = 0


class FeedComposer:
    """Builds the personalised feed for one user at one instant."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession] | Callable[[], Any],
        config: Settings = default_settings,
    ) -> None:
        self._session_factory = session_factory
        self._config = config
        self._race_config = RaceWindowConfig(grace_hours=config.race_live_grace_hours)

    async def _guarded(
        self,
        section: str,
        query: Callable[..., Awaitable[Any]],
        *args: Any,
        default: Any,
    ) -> Any:
        try:
            async with self._session_factory() as session:
                return await query(session, *args)
        except FETCH_FAILURES as exc:
            logger.warning(
                "feed_fetch_failed",
                extra={"section": section, "error": str(exc)},
                exc_info=True,
            )
            return default

    # ------------------------------------------------------------------
    # Stage 1
    # ------------------------------------------------------------------

    async def _following_content(self, user_id: str) -> tuple[list[Any], list[Any]]:
        following_ids = await self._guarded(
            "follows", queries.fetch_following_ids, user_id, default=[]
        )
        if not following_ids:
            return [], []
        posts, grids = await asyncio.gather(
            self._guarded(
                "following_posts",
                queries.fetch_posts_by_authors,
                following_ids,
                self._config.feed_following_posts_limit,
                default=[],
            ),
            self._guarded(
                "following_grids",
                queries.fetch_grids_by_authors,
                following_ids,
                self._config.feed_following_grids_limit,
                default=[],
            ),
        )
        return posts, grids

    async def _fetch_sources(self, user_id: str, now: datetime) -> _Sources:
        (
            (following_posts, following_grids),
            community_polls,
            admin_polls,
            featured_news,
            sponsors,
            weekly_highlight,
            race_tracks,
            hot_take,
        ) = await asyncio.gather(
            self._following_content(user_id),
            self._guarded(
                "community_polls",
                queries.fetch_community_polls,
                now,
                self._config.feed_community_polls_limit,
                default=[],
            ),
            self._guarded("admin_polls", queries.fetch_admin_polls, now, default=[]),
            self._guarded(
                "featured_news",
                queries.fetch_featured_news,
                self._config.feed_featured_news_limit,
                default=[],
            ),
            self._guarded("sponsors", queries.fetch_sponsors, default=[]),
            self._guarded(
                "weekly_highlight", queries.fetch_weekly_highlight, week_start(now), default=None
            ),
            self._guarded("race_tracks", queries.fetch_race_tracks, default=[]),
            self._guarded("hot_take", queries.fetch_active_hot_take, now, default=None),
        )
        return _Sources(
            following_posts=following_posts,
            following_grids=following_grids,
            community_polls=community_polls,
            admin_polls=admin_polls,
            featured_news=featured_news,
            sponsors=sponsors,
            weekly_highlight=weekly_highlight,
            race_tracks=race_tracks,
            hot_take=hot_take,
        )

    # ------------------------------------------------------------------
    # Stage 2
    # ------------------------------------------------------------------

    async def _constant(self, value: Any) -> Any:
        return value

    async def _discussion_posts(self, hot_take: Any) -> list[Any]:
        if hot_take is None:
            return []
        return await self._guarded(
            "hot_take_posts",
            queries.fetch_parent_page_posts,
            ParentPageType.hot_take.value,
            str(hot_take.id),
            self._config.hot_take_posts_limit,
            default=[],
        )

    async def _post_state(
        self, user_id: str, posts: list[Any]
    ) -> tuple[set[str], dict[str, int]]:
        post_ids = [str(post.id) for post in posts]
        if not post_ids:
            return set(), {}
        return await asyncio.gather(
            self._guarded(
                "post_likes", queries.fetch_liked_targets, user_id, "post", post_ids, default=set()
            ),
            self._guarded(
                "post_comment_counts", queries.fetch_post_comment_counts, post_ids, default={}
            ),
        )

    async def _live_chat_count(self, race: Any, now: datetime) -> int:
        async with self._session_factory() as session:
            return await count_live_chat_users(
                session, str(race.id), now, self._config.live_chat_window_minutes
            )

    async def _fetch_lookups(
        self,
        user_id: str,
        now: datetime,
        sources: _Sources,
        grids: list[Any],
        race: Any,
        race_is_live: bool,
    ) -> _Lookups:
        grid_ids = [str(grid.id) for grid in grids]
        poll_ids = [str(poll.id) for poll in [*sources.community_polls, *sources.admin_polls]]
        season_year = race.start_date.year if race is not None and race.start_date else None

        discussion_posts = await self._discussion_posts(sources.hot_take)

        (
            (liked_post_ids, post_comment_counts),
            grid_like_counts,
            liked_grid_ids,
            grid_comment_counts,
            drivers_by_id,
            tracks_by_id,
            teams_by_id,
            poll_responses,
            race_events,
            live_chat_user_count,
        ) = await asyncio.gather(
            self._post_state(user_id, [*sources.following_posts, *discussion_posts]),
            self._guarded("grid_like_counts", queries.fetch_grid_like_counts, grid_ids, default={}),
            self._guarded(
                "grid_likes", queries.fetch_user_grid_likes, user_id, grid_ids, default=set()
            ),
            self._guarded(
                "grid_comment_counts", queries.fetch_grid_comment_counts, grid_ids, default={}
            ),
            self._guarded(
                "drivers",
                queries.fetch_drivers_by_id,
                referenced_ids(grids, GridType.driver.value),
                default={},
            ),
            self._guarded(
                "tracks",
                queries.fetch_tracks_by_id,
                referenced_ids(grids, GridType.track.value),
                default={},
            ),
            self._guarded(
                "teams",
                queries.fetch_teams_by_id,
                referenced_ids(grids, GridType.team.value),
                default={},
            ),
            self._guarded("poll_responses", queries.fetch_poll_responses, poll_ids, default=[]),
            (
                self._guarded(
                    "track_events",
                    queries.fetch_track_events,
                    str(race.id),
                    season_year,
                    default=[],
                )
                if season_year is not None
                else self._constant([])
            ),
            self._live_chat_count(race, now) if race_is_live else self._constant(0),
        )
        return _Lookups(
            discussion_posts=discussion_posts,
            liked_post_ids=liked_post_ids,
            post_comment_counts=post_comment_counts,
            grid_like_counts=grid_like_counts,
            liked_grid_ids=liked_grid_ids,
            grid_comment_counts=grid_comment_counts,
            drivers_by_id=drivers_by_id,
            tracks_by_id=tracks_by_id,
            teams_by_id=teams_by_id,
            poll_responses=poll_responses,
            race_events=race_events,
            live_chat_user_count=live_chat_user_count,
        )

    # ------------------------------------------------------------------
    # Stage 3
    # ------------------------------------------------------------------

    def _grid_view(self, grid: Any, lookups: _Lookups) -> GridView:
        return build_grid_view(
            grid,
            drivers_by_id=lookups.drivers_by_id,
            tracks_by_id=lookups.tracks_by_id,
            teams_by_id=lookups.teams_by_id,
            like_counts=lookups.grid_like_counts,
            liked_ids=lookups.liked_grid_ids,
            comment_counts=lookups.grid_comment_counts,
        )

    async def compose(self, user_id: str, now: datetime | None = None) -> FeedView:
        now = as_utc(now) if now is not None else now_utc()
        sources = await self._fetch_sources(user_id, now)

        highlight = sources.weekly_highlight
        featured_grid_row = getattr(highlight, "highlighted_fan_grid", None)
        if normalize_featured_grid(featured_grid_row) is None:
            featured_grid_row = None
        hot_take_grid_row = getattr(sources.hot_take, "featured_grid", None)

        grids_by_id: dict[str, Any] = {}
        for grid in [*sources.following_grids, featured_grid_row, hot_take_grid_row]:
            if grid is not None:
                grids_by_id.setdefault(str(grid.id), grid)
        all_grids = list(grids_by_id.values())

        race = select_closest_race(sources.race_tracks, now, self._race_config)
        race_card = build_race_card(race, now, config=self._race_config) if race else None

        lookups = await self._fetch_lookups(
            user_id,
            now,
            sources,
            all_grids,
            race,
            race_card is not None and race_card.is_live,
        )

        if race is not None:
            race_card = build_race_card(race, now, lookups.race_events, self._race_config)

        poll_summaries = summarize_polls(
            [*sources.community_polls, *sources.admin_polls], lookups.poll_responses, user_id
        )
        summaries_by_id = {summary.id: summary for summary in poll_summaries}
        community_count = len(sources.community_polls)

        banner = compose_banner(
            sponsors=sources.sponsors,
            polls=sources.admin_polls,
            featured_news=sources.featured_news,
            featured_grid=featured_grid_row,
            highlighted_fan=getattr(highlight, "highlighted_fan", None),
            poll_summaries=summaries_by_id,
        )

        hot_take_view = None
        if sources.hot_take is not None:
            hot_take_view = HotTakeView(
                id=str(sources.hot_take.id),
                content_text=sources.hot_take.content_text,
                starts_at=sources.hot_take.starts_at,
                ends_at=sources.hot_take.ends_at,
                featured_grid=(
                    self._grid_view(hot_take_grid_row, lookups) if hot_take_grid_row else None
                ),
            )

        spotlight = SpotlightView(
            hot_take=hot_take_view,
            discussion_posts=enrich_posts(
                lookups.discussion_posts, lookups.liked_post_ids, lookups.post_comment_counts
            ),
            featured_grid=(
                self._grid_view(featured_grid_row, lookups) if featured_grid_row else None
            ),
            highlighted_fan=user_summary(getattr(highlight, "highlighted_fan", None)),
            banner=banner,
            desktop_banner=desktop_banner(banner),
            carousel_race=carousel_race(race_card, lookups.live_chat_user_count),
        )

        view = FeedView(
            user_id=user_id,
            generated_at=now,
            week_start=week_start(now),
            posts=enrich_posts(
                sources.following_posts, lookups.liked_post_ids, lookups.post_comment_counts
            ),
            grids=[self._grid_view(grid, lookups) for grid in sources.following_grids],
            community_polls=poll_summaries[:community_count],
            admin_polls=poll_summaries[community_count:],
            spotlight=spotlight,
            upcoming_race=race_card,
        )
        logger.info(
            "feed_composed",
            extra={
                "user_id": user_id,
                "posts": len(view.posts),
                "grids": len(view.grids),
                "polls": len(poll_summaries),
                "banner_items": len(banner),
                "race_status": race_card.status if race_card else None,
            },
        )
        return view

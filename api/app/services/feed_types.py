"""View-model records produced by feed composition.

Everything here is a plain dataclass built from already-fetched rows; the
router layer serialises them with Pydantic.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any


@dataclass(frozen=True)
class UserSummary:
    id: str
    username: str
    profile_image_url: str | None = None


@dataclass
class PostView:
    id: str
    user_id: str
    content: str
    created_at: datetime
    image_url: str | None = None
    parent_page_type: str = "none"
    parent_page_id: str | None = None
    like_count: int = 0
    is_liked: bool = False
    comment_count: int = 0
    user: UserSummary | None = None


@dataclass
class RankedItemView:
    """One ranked entry of a grid, enriched from the referenced table.

    Fields that do not apply to the grid type, or whose lookup row is
    missing, stay None.
    """

    rank: int
    id: str | None
    name: str | None
    image_url: str | None = None
    headshot_url: str | None = None
    nationality: str | None = None
    team_name: str | None = None
    location: str | None = None
    country: str | None = None
    circuit_ref: str | None = None
    track_slug: str | None = None


@dataclass
class GridView:
    id: str
    type: str
    ranked_items: list[RankedItemView]
    blurb: str | None = None
    user: UserSummary | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    like_count: int = 0
    is_liked: bool = False
    comment_count: int = 0


@dataclass
class PollOptionView:
    id: str
    label: str
    votes: int
    percentage: int


@dataclass
class PollSummary:
    id: str
    question: str
    options: list[PollOptionView]
    total_votes: int
    is_featured_podium: bool = False
    is_community: bool = True
    ends_at: datetime | None = None
    created_at: datetime | None = None
    user_selection: str | None = None


@dataclass
class HotTakeView:
    id: str
    content_text: str
    starts_at: datetime
    ends_at: datetime
    featured_grid: GridView | None = None


@dataclass
class SessionView:
    event_type: str
    scheduled_at: datetime
    duration_minutes: int | None = None


@dataclass
class RaceCard:
    """Closest race weekend, shaped for the race banner/carousel."""

    id: str
    name: str
    slug: str
    status: str
    is_live: bool
    location: str | None = None
    country: str | None = None
    image_url: str | None = None
    circuit_ref: str | None = None
    timezone: str | None = None
    start_date: datetime | None = None
    end_date: date | None = None
    window_ends_at: datetime | None = None
    countdown: str = ""
    next_session: SessionView | None = None
    live_chat_user_count: int | None = None


@dataclass(frozen=True)
class BannerItem:
    """One promotional slot: sponsor, poll, news, featured_grid or featured_user."""

    kind: str
    id: str
    payload: dict[str, Any]


@dataclass
class SpotlightView:
    hot_take: HotTakeView | None = None
    discussion_posts: list[PostView] = field(default_factory=list)
    featured_grid: GridView | None = None
    highlighted_fan: UserSummary | None = None
    banner: list[BannerItem] = field(default_factory=list)
    desktop_banner: list[BannerItem] = field(default_factory=list)
    carousel_race: RaceCard | None = None


@dataclass
class FeedView:
    user_id: str
    generated_at: datetime
    week_start: date
    posts: list[PostView] = field(default_factory=list)
    grids: list[GridView] = field(default_factory=list)
    community_polls: list[PollSummary] = field(default_factory=list)
    admin_polls: list[PollSummary] = field(default_factory=list)
    spotlight: SpotlightView = field(default_factory=SpotlightView)
    upcoming_race: RaceCard | None = None

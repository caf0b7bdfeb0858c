"""Pydantic response models for the feed, poll and grid routes.

The service layer builds plain dataclasses (see services.feed_types); these
models validate them with ``from_attributes`` and define the wire format.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict


class _ViewModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class UserSummaryModel(_ViewModel):
    id: str
    username: str
    profile_image_url: str | None = None


class PostModel(_ViewModel):
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
    user: UserSummaryModel | None = None


class RankedItemModel(_ViewModel):
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


class GridModel(_ViewModel):
    id: str
    type: str
    ranked_items: list[RankedItemModel]
    blurb: str | None = None
    user: UserSummaryModel | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    like_count: int = 0
    is_liked: bool = False
    comment_count: int = 0


class PollOptionModel(_ViewModel):
    id: str
    label: str
    votes: int
    percentage: int


class PollModel(_ViewModel):
    id: str
    question: str
    options: list[PollOptionModel]
    total_votes: int
    is_featured_podium: bool = False
    is_community: bool = True
    ends_at: datetime | None = None
    created_at: datetime | None = None
    user_selection: str | None = None


class HotTakeModel(_ViewModel):
    id: str
    content_text: str
    starts_at: datetime
    ends_at: datetime
    featured_grid: GridModel | None = None


class SessionModel(_ViewModel):
    event_type: str
    scheduled_at: datetime
    duration_minutes: int | None = None


class RaceCardModel(_ViewModel):
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
    next_session: SessionModel | None = None
    live_chat_user_count: int | None = None


class BannerItemModel(_ViewModel):
    kind: str
    id: str
    payload: dict[str, Any]


class SpotlightModel(_ViewModel):
    hot_take: HotTakeModel | None = None
    discussion_posts: list[PostModel] = []
    featured_grid: GridModel | None = None
    highlighted_fan: UserSummaryModel | None = None
    banner: list[BannerItemModel] = []
    desktop_banner: list[BannerItemModel] = []
    carousel_race: RaceCardModel | None = None


class FeedResponse(_ViewModel):
    """Everything the feed page renders for one user."""

    user_id: str
    generated_at: datetime
    week_start: date
    posts: list[PostModel]
    grids: list[GridModel]
    community_polls: list[PollModel]
    admin_polls: list[PollModel]
    spotlight: SpotlightModel
    upcoming_race: RaceCardModel | None = None


class ClosestRaceResponse(BaseModel):
    race: RaceCardModel | None
    is_live: bool
    live_chat_user_count: int


class PollListResponse(BaseModel):
    polls: list[PollModel]


class PodiumsResponse(BaseModel):
    featured: list[PollModel]
    community: list[PollModel]


class SlotBlurbModel(_ViewModel):
    rank_index: int
    content: str = ""


class GridDetailResponse(BaseModel):
    grid: GridModel
    slot_blurbs: list[SlotBlurbModel]

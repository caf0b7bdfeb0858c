"""Community and editorial content: posts, polls, hot takes, sponsors, news, highlights."""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Any

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import text

from .base import Base, new_id
from .grids import Grid
from .profiles import Profile


class ParentPageType(str, Enum):
    """Page a post is attached to."""

    poll = "poll"
    hot_take = "hot_take"
    driver = "driver"
    team = "team"
    track = "track"
    none = "none"


class Post(Base):
    """Fan post, optionally attached to a parent page."""

    __tablename__ = "posts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    parent_page_type: Mapped[str] = mapped_column(
        String(20), server_default=ParentPageType.none.value, nullable=False
    )
    parent_page_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    # Denormalized; maintained by the backend when votes change.
    like_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    user: Mapped[Profile | None] = relationship("Profile", lazy="joined")

    __table_args__ = (
        Index("idx_posts_user_created", "user_id", "created_at"),
        Index("idx_posts_parent", "parent_page_type", "parent_page_id"),
    )


class Comment(Base):
    """Comment on a post."""

    __tablename__ = "comments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    post_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


class Vote(Base):
    """Like/upvote on any target; post likes use target_type='post'."""

    __tablename__ = "votes"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    target_type: Mapped[str] = mapped_column(String(20), nullable=False)
    target_id: Mapped[str] = mapped_column(String(36), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("user_id", "target_type", "target_id", name="uq_votes_user_target"),
    )


class Poll(Base):
    """Poll; admin_id null means community-submitted.

    options is an ordered JSON list of {"id": ..., "label": ...}.
    """

    __tablename__ = "polls"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    question: Mapped[str] = mapped_column(Text, nullable=False)
    options: Mapped[list[dict[str, Any]]] = mapped_column(JSONB, nullable=False, default=list)
    admin_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    ends_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    is_featured_podium: Mapped[bool] = mapped_column(
        Boolean, server_default=text("false"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


class PollResponse(Base):
    """A user's vote on a poll (upserted, last write wins)."""

    __tablename__ = "poll_responses"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    poll_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("polls.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    selected_option_id: Mapped[str] = mapped_column(String(36), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


class HotTake(Base):
    """Admin-scheduled discussion prompt active during [starts_at, ends_at)."""

    __tablename__ = "hot_takes"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    content_text: Mapped[str] = mapped_column(Text, nullable=False)
    starts_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    ends_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    featured_grid_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("grids.id", ondelete="SET NULL"), nullable=True
    )

    featured_grid: Mapped[Grid | None] = relationship("Grid", lazy="joined")

    __table_args__ = (
        Index("idx_hot_takes_window", "starts_at", "ends_at"),
    )


class Sponsor(Base):
    __tablename__ = "sponsors"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    logo_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    website_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)


class NewsStory(Base):
    __tablename__ = "news_stories"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_featured: Mapped[bool] = mapped_column(
        Boolean, server_default=text("false"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


class WeeklyHighlight(Base):
    """Editorial picks for one week (keyed by the Monday it starts on)."""

    __tablename__ = "weekly_highlights"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    week_start_date: Mapped[date] = mapped_column(Date, nullable=False, unique=True)
    highlighted_fan_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True
    )
    highlighted_sponsor_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("sponsors.id", ondelete="SET NULL"), nullable=True
    )
    highlighted_fan_grid_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("grids.id", ondelete="SET NULL"), nullable=True
    )

    highlighted_fan: Mapped[Profile | None] = relationship("Profile", lazy="joined")
    highlighted_sponsor: Mapped[Sponsor | None] = relationship("Sponsor", lazy="joined")
    highlighted_fan_grid: Mapped[Grid | None] = relationship("Grid", lazy="joined")

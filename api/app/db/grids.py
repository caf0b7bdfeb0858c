"""Grid models: user ranked lists, their likes and per-slot commentary."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from sqlalchemy import (
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

from .base import Base, new_id
from .profiles import Profile


class GridType(str, Enum):
    """What a grid ranks."""

    driver = "driver"
    team = "team"
    track = "track"


class Grid(Base):
    """A user's ranked list.

    ranked_items is an ordered JSON list of {"id": ..., "name": ...} entries
    referencing drivers, teams or tracks depending on ``type``.
    """

    __tablename__ = "grids"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    ranked_items: Mapped[list[dict[str, Any]]] = mapped_column(
        JSONB, nullable=False, default=list
    )
    blurb: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    user: Mapped[Profile | None] = relationship("Profile", lazy="joined")

    __table_args__ = (
        Index("idx_grids_user_created", "user_id", "created_at"),
    )


class GridLike(Base):
    """One like per (grid, user)."""

    __tablename__ = "grid_likes"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    grid_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("grids.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("grid_id", "user_id", name="uq_grid_likes_grid_user"),
    )


class GridSlotComment(Base):
    """Discussion comment attached to a single ranked position of a grid."""

    __tablename__ = "grid_slot_comments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    grid_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("grids.id", ondelete="CASCADE"), nullable=False
    )
    rank_index: Mapped[int] = mapped_column(Integer, nullable=False)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        Index("idx_grid_slot_comments_grid", "grid_id", "rank_index"),
    )


class GridSlotBlurb(Base):
    """Owner's commentary for one ranked position (1-10)."""

    __tablename__ = "grid_slot_blurbs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    grid_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("grids.id", ondelete="CASCADE"), nullable=False
    )
    rank_index: Mapped[int] = mapped_column(Integer, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")

    __table_args__ = (
        UniqueConstraint("grid_id", "rank_index", name="uq_grid_slot_blurbs_rank"),
    )

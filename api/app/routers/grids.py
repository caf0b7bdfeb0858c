"""Grid detail endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from ..db import AsyncSession, get_db
from ..db.grids import GridType
from ..dependencies.auth import optional_user_id, verify_api_key
from ..services import feed_queries as queries
from ..services.enrichment import build_grid_view, referenced_ids
from .feed_models import GridDetailResponse, GridModel, SlotBlurbModel

router = APIRouter(prefix="/api", tags=["grids"], dependencies=[Depends(verify_api_key)])

MAX_SLOT_RANK = 10


@router.get("/grids/{grid_id}", response_model=GridDetailResponse)
async def get_grid(
    grid_id: str,
    session: AsyncSession = Depends(get_db),
    user_id: str | None = Depends(optional_user_id),
) -> GridDetailResponse:
    """
    A single grid with enriched items, like state and slot blurbs.

    Example request:
        GET /api/grids/5b0e...
    """
    grid = await queries.fetch_grid(session, grid_id)
    if grid is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Grid not found")

    ids = [str(grid.id)]
    drivers = await queries.fetch_drivers_by_id(
        session, referenced_ids([grid], GridType.driver.value)
    )
    tracks = await queries.fetch_tracks_by_id(session, referenced_ids([grid], GridType.track.value))
    teams = await queries.fetch_teams_by_id(session, referenced_ids([grid], GridType.team.value))
    like_counts = await queries.fetch_grid_like_counts(session, ids)
    comment_counts = await queries.fetch_grid_comment_counts(session, ids)
    liked = await queries.fetch_user_grid_likes(session, user_id, ids) if user_id else set()
    blurbs = await queries.fetch_slot_blurbs(session, str(grid.id))

    view = build_grid_view(
        grid,
        drivers_by_id=drivers,
        tracks_by_id=tracks,
        teams_by_id=teams,
        like_counts=like_counts,
        liked_ids=liked,
        comment_counts=comment_counts,
    )
    return GridDetailResponse(
        grid=GridModel.model_validate(view),
        slot_blurbs=[
            SlotBlurbModel.model_validate(blurb)
            for blurb in blurbs
            if 1 <= blurb.rank_index <= MAX_SLOT_RANK
        ],
    )

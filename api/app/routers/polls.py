"""Poll listing endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from ..db import AsyncSession, get_db
from ..dependencies.auth import optional_user_id, verify_api_key
from ..services.feed_queries import fetch_all_polls, fetch_poll_responses
from ..services.poll_tally import split_podiums, summarize_polls
from .feed_models import PodiumsResponse, PollListResponse, PollModel

router = APIRouter(prefix="/api", tags=["polls"], dependencies=[Depends(verify_api_key)])


async def _load_summaries(session: AsyncSession, polls: list, user_id: str | None):
    responses = await fetch_poll_responses(session, [str(poll.id) for poll in polls])
    return summarize_polls(polls, responses, user_id)


@router.get("/polls", response_model=PollListResponse)
async def list_polls(
    session: AsyncSession = Depends(get_db),
    user_id: str | None = Depends(optional_user_id),
) -> PollListResponse:
    """All polls, newest first, with tallies and the caller's own vote."""
    polls = await fetch_all_polls(session)
    summaries = await _load_summaries(session, polls, user_id)
    return PollListResponse(polls=[PollModel.model_validate(s) for s in summaries])


@router.get("/podiums", response_model=PodiumsResponse)
async def list_podiums(
    session: AsyncSession = Depends(get_db),
    user_id: str | None = Depends(optional_user_id),
) -> PodiumsResponse:
    """Featured podium polls and community polls, tallied."""
    featured, community = split_podiums(await fetch_all_polls(session))
    summaries = await _load_summaries(session, [*featured, *community], user_id)
    return PodiumsResponse(
        featured=[PollModel.model_validate(s) for s in summaries[: len(featured)]],
        community=[PollModel.model_validate(s) for s in summaries[len(featured) :]],
    )

"""Poll vote tallies and per-user selections."""

from __future__ import annotations

import math
from collections import defaultdict
from datetime import datetime
from typing import Any, Iterable, Mapping

from ..utils.datetime_utils import as_utc
from .feed_types import PollOptionView, PollSummary


def tally_votes(rows: Iterable[Any]) -> dict[str, dict[str, int]]:
    """Count responses as ``{poll_id: {option_id: count}}``."""
    counts: dict[str, dict[str, int]] = defaultdict(lambda: defaultdict(int))
    for row in rows:
        counts[str(row.poll_id)][str(row.selected_option_id)] += 1
    return {poll_id: dict(options) for poll_id, options in counts.items()}


def user_selections(rows: Iterable[Any], user_id: str | None) -> dict[str, str]:
    """Map poll_id -> the user's selected option. Later rows overwrite earlier ones."""
    if not user_id:
        return {}
    selections: dict[str, str] = {}
    for row in rows:
        if str(row.user_id) == user_id:
            selections[str(row.poll_id)] = str(row.selected_option_id)
    return selections


def option_percentage(count: int, total: int) -> int:
    """Whole-number share of the vote, rounding halves up; 0 when nobody voted."""
    if total <= 0:
        return 0
    return math.floor(count / total * 100 + 0.5)


def _option_id(option: Any, index: int) -> str:
    if isinstance(option, Mapping):
        value = option.get("id")
    else:
        value = getattr(option, "id", None)
    return str(value) if value is not None else str(index)


def _option_label(option: Any) -> str:
    if isinstance(option, Mapping):
        return str(option.get("label") or option.get("text") or "")
    return str(getattr(option, "label", "") or "")


def summarize_poll(
    poll: Any,
    counts: Mapping[str, int] | None = None,
    user_choice: str | None = None,
) -> PollSummary:
    """Shape a poll and its counts; options keep the poll's own order."""
    counts = counts or {}
    raw_options = poll.options if isinstance(poll.options, list) else []
    option_ids = [_option_id(option, index) for index, option in enumerate(raw_options)]
    total = sum(counts.get(option_id, 0) for option_id in option_ids)

    options = [
        PollOptionView(
            id=option_id,
            label=_option_label(option),
            votes=counts.get(option_id, 0),
            percentage=option_percentage(counts.get(option_id, 0), total),
        )
        for option_id, option in zip(option_ids, raw_options)
    ]
    return PollSummary(
        id=str(poll.id),
        question=poll.question,
        options=options,
        total_votes=total,
        is_featured_podium=bool(getattr(poll, "is_featured_podium", False)),
        is_community=getattr(poll, "admin_id", None) is None,
        ends_at=getattr(poll, "ends_at", None),
        created_at=getattr(poll, "created_at", None),
        user_selection=user_choice,
    )


def summarize_polls(
    polls: Iterable[Any],
    response_rows: Iterable[Any],
    user_id: str | None = None,
) -> list[PollSummary]:
    rows = list(response_rows)
    counts = tally_votes(rows)
    selections = user_selections(rows, user_id)
    return [
        summarize_poll(poll, counts.get(str(poll.id)), selections.get(str(poll.id)))
        for poll in polls
    ]


def is_poll_active(poll: Any, now: datetime) -> bool:
    ends_at = getattr(poll, "ends_at", None)
    return ends_at is None or as_utc(ends_at) > as_utc(now)


def split_podiums(polls: Iterable[Any]) -> tuple[list[Any], list[Any]]:
    """Separate admin-featured podiums from the community list."""
    featured: list[Any] = []
    community: list[Any] = []
    for poll in polls:
        (featured if getattr(poll, "is_featured_podium", False) else community).append(poll)
    return featured, community

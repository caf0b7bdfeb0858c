"""Banner/spotlight composition.

Builds the ordered promotional strip from five content kinds:

    sponsor -> poll -> news -> featured_grid -> featured_user

Sponsors all appear; every other kind contributes at most one item, and a
missing kind is simply left out. The desktop sidebar shows the same strip
without the poll and news slots.
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Any, Iterable, Mapping

from ..db.grids import GridType
from .enrichment import ranked_items_of, user_summary
from .feed_types import BannerItem, PollSummary

KIND_SPONSOR = "sponsor"
KIND_POLL = "poll"
KIND_NEWS = "news"
KIND_FEATURED_GRID = "featured_grid"
KIND_FEATURED_USER = "featured_user"

DESKTOP_EXCLUDED_KINDS = frozenset({KIND_POLL, KIND_NEWS})

SPOTLIGHT_GRID_TYPES = frozenset(member.value for member in GridType)


def is_spotlight_grid_type(value: Any) -> bool:
    return isinstance(value, str) and value in SPOTLIGHT_GRID_TYPES


def normalize_featured_grid(grid: Any) -> dict[str, Any] | None:
    """Validate and flatten a highlighted grid; unknown types are rejected, not coerced."""
    if grid is None:
        return None
    grid_type = getattr(grid, "type", None)
    if not is_spotlight_grid_type(grid_type):
        return None
    blurb = getattr(grid, "blurb", None)
    user = user_summary(getattr(grid, "user", None))
    return {
        "id": str(grid.id),
        "type": grid_type,
        "comment": blurb if isinstance(blurb, str) else None,
        "ranked_items": list(ranked_items_of(grid)),
        "user": asdict(user) if user else None,
    }


def is_featured_admin_poll(poll: Any) -> bool:
    """Only admin-authored polls flagged as featured podiums may be promoted."""
    return getattr(poll, "admin_id", None) is not None and bool(
        getattr(poll, "is_featured_podium", False)
    )


def _sponsor_item(sponsor: Any) -> BannerItem:
    return BannerItem(
        kind=KIND_SPONSOR,
        id=str(sponsor.id),
        payload={
            "name": sponsor.name,
            "logo_url": getattr(sponsor, "logo_url", None),
            "website_url": getattr(sponsor, "website_url", None),
            "description": getattr(sponsor, "description", None),
        },
    )


def _poll_item(poll: Any, summary: PollSummary | None) -> BannerItem:
    payload: dict[str, Any] = {
        "question": poll.question,
        "is_featured_podium": True,
    }
    if summary is not None:
        payload["options"] = [asdict(option) for option in summary.options]
        payload["total_votes"] = summary.total_votes
        payload["user_selection"] = summary.user_selection
    return BannerItem(kind=KIND_POLL, id=str(poll.id), payload=payload)


def _news_item(story: Any) -> BannerItem:
    return BannerItem(
        kind=KIND_NEWS,
        id=str(story.id),
        payload={
            "title": story.title,
            "image_url": getattr(story, "image_url", None),
            "content": story.content,
            "created_at": story.created_at.isoformat() if story.created_at else None,
        },
    )


def compose_banner(
    sponsors: Iterable[Any] = (),
    polls: Iterable[Any] = (),
    featured_news: Iterable[Any] = (),
    featured_grid: Any = None,
    highlighted_fan: Any = None,
    poll_summaries: Mapping[str, PollSummary] | None = None,
) -> list[BannerItem]:
    items = [_sponsor_item(sponsor) for sponsor in sponsors]

    poll = next((p for p in polls if is_featured_admin_poll(p)), None)
    if poll is not None:
        items.append(_poll_item(poll, (poll_summaries or {}).get(str(poll.id))))

    story = next((s for s in featured_news if getattr(s, "is_featured", True)), None)
    if story is not None:
        items.append(_news_item(story))

    grid = normalize_featured_grid(featured_grid)
    if grid is not None:
        items.append(BannerItem(kind=KIND_FEATURED_GRID, id=grid["id"], payload=grid))

    fan = user_summary(highlighted_fan)
    if fan is not None:
        items.append(BannerItem(kind=KIND_FEATURED_USER, id=fan.id, payload=asdict(fan)))

    return items


def desktop_banner(items: Iterable[BannerItem]) -> list[BannerItem]:
    return [item for item in items if item.kind not in DESKTOP_EXCLUDED_KINDS]

"""Grid and post enrichment.

Grids store only ``{id, name}`` per ranked item; posts carry only their
denormalized like_count. Enrichment merges batch lookups (one IN query per
referenced table, see feed_queries) back in by id. A referenced row that
did not come back leaves its fields None; it never fails the batch.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping

from ..db.grids import GridType
from .closest_race import race_slug
from .feed_types import GridView, PostView, RankedItemView, UserSummary


def user_summary(profile: Any) -> UserSummary | None:
    if profile is None:
        return None
    return UserSummary(
        id=str(profile.id),
        username=str(profile.username),
        profile_image_url=getattr(profile, "profile_image_url", None),
    )


def _item_field(item: Any, key: str) -> Any:
    if isinstance(item, Mapping):
        return item.get(key)
    return getattr(item, key, None)


def ranked_items_of(grid: Any) -> list[Any]:
    items = getattr(grid, "ranked_items", None)
    return items if isinstance(items, list) else []


def referenced_ids(grids: Iterable[Any], grid_type: str) -> list[str]:
    """Ordered, de-duplicated item ids across all grids of ``grid_type``."""
    seen: dict[str, None] = {}
    for grid in grids:
        if getattr(grid, "type", None) != grid_type:
            continue
        for item in ranked_items_of(grid):
            item_id = _item_field(item, "id")
            if item_id is not None:
                seen.setdefault(str(item_id), None)
    return list(seen)


def _team_name(driver: Any) -> str | None:
    team = getattr(driver, "team", None)
    return getattr(team, "name", None) if team is not None else None


def enrich_ranked_items(
    grid_type: str,
    items: list[Any],
    drivers_by_id: Mapping[str, Any] | None = None,
    tracks_by_id: Mapping[str, Any] | None = None,
    teams_by_id: Mapping[str, Any] | None = None,
) -> list[RankedItemView]:
    drivers_by_id = drivers_by_id or {}
    tracks_by_id = tracks_by_id or {}
    teams_by_id = teams_by_id or {}

    enriched: list[RankedItemView] = []
    for rank, item in enumerate(items, start=1):
        raw_id = _item_field(item, "id")
        item_id = str(raw_id) if raw_id is not None else None
        name = _item_field(item, "name") or _item_field(item, "title")
        view = RankedItemView(rank=rank, id=item_id, name=name)

        if grid_type == GridType.driver.value:
            driver = drivers_by_id.get(item_id) if item_id else None
            if driver is not None:
                view.nationality = driver.nationality
                view.headshot_url = driver.headshot_url
                view.image_url = driver.headshot_url or driver.image_url
                view.team_name = _team_name(driver)
        elif grid_type == GridType.track.value:
            track = tracks_by_id.get(item_id) if item_id else None
            if track is not None:
                view.name = track.name or name
                view.location = track.location
                view.country = track.country
                view.circuit_ref = track.circuit_ref
                view.image_url = track.image_url
            if view.name:
                view.track_slug = race_slug(view.name)
        elif grid_type == GridType.team.value:
            team = teams_by_id.get(item_id) if item_id else None
            if team is not None:
                view.name = team.name or name
                view.image_url = team.image_url

        enriched.append(view)
    return enriched


def build_grid_view(
    grid: Any,
    *,
    drivers_by_id: Mapping[str, Any] | None = None,
    tracks_by_id: Mapping[str, Any] | None = None,
    teams_by_id: Mapping[str, Any] | None = None,
    like_counts: Mapping[str, int] | None = None,
    liked_ids: set[str] | frozenset[str] = frozenset(),
    comment_counts: Mapping[str, int] | None = None,
) -> GridView:
    grid_id = str(grid.id)
    return GridView(
        id=grid_id,
        type=grid.type,
        ranked_items=enrich_ranked_items(
            grid.type, ranked_items_of(grid), drivers_by_id, tracks_by_id, teams_by_id
        ),
        blurb=getattr(grid, "blurb", None),
        user=user_summary(getattr(grid, "user", None)),
        created_at=getattr(grid, "created_at", None),
        updated_at=getattr(grid, "updated_at", None),
        like_count=(like_counts or {}).get(grid_id, 0),
        is_liked=grid_id in liked_ids,
        comment_count=(comment_counts or {}).get(grid_id, 0),
    )


def enrich_posts(
    posts: Iterable[Any],
    liked_ids: set[str] | frozenset[str] = frozenset(),
    comment_counts: Mapping[str, int] | None = None,
) -> list[PostView]:
    comment_counts = comment_counts or {}
    views: list[PostView] = []
    for post in posts:
        post_id = str(post.id)
        views.append(
            PostView(
                id=post_id,
                user_id=str(post.user_id),
                content=post.content,
                created_at=post.created_at,
                image_url=getattr(post, "image_url", None),
                parent_page_type=getattr(post, "parent_page_type", None) or "none",
                parent_page_id=getattr(post, "parent_page_id", None),
                like_count=post.like_count or 0,
                is_liked=post_id in liked_ids,
                comment_count=comment_counts.get(post_id, 0),
                user=user_summary(getattr(post, "user", None)),
            )
        )
    return views

"""Tests for banner composition."""

from __future__ import annotations

from datetime import datetime, timezone
from types import SimpleNamespace

from app.services.banner import (
    KIND_FEATURED_GRID,
    KIND_FEATURED_USER,
    KIND_NEWS,
    KIND_POLL,
    KIND_SPONSOR,
    compose_banner,
    desktop_banner,
    is_featured_admin_poll,
    normalize_featured_grid,
)
from app.services.poll_tally import summarize_poll


def _sponsor(sponsor_id: str) -> SimpleNamespace:
    return SimpleNamespace(
        id=sponsor_id,
        name=f"Sponsor {sponsor_id}",
        logo_url=None,
        website_url="https://sponsor.example",
        description=None,
    )


def _poll(poll_id: str, admin_id: str | None, featured: bool = True) -> SimpleNamespace:
    return SimpleNamespace(
        id=poll_id,
        question="Pole sitter?",
        options=[{"id": "A", "label": "VER"}],
        admin_id=admin_id,
        is_featured_podium=featured,
        ends_at=None,
        created_at=None,
    )


def _news(story_id: str) -> SimpleNamespace:
    return SimpleNamespace(
        id=story_id,
        title="Upgrade package lands",
        content="...",
        image_url=None,
        is_featured=True,
        created_at=datetime(2025, 3, 1, tzinfo=timezone.utc),
    )


def _profile(user_id: str = "fan") -> SimpleNamespace:
    return SimpleNamespace(id=user_id, username="pitwallpete", profile_image_url=None)


def _grid(grid_type: str = "driver") -> SimpleNamespace:
    return SimpleNamespace(
        id="g1",
        type=grid_type,
        blurb="My top ten",
        ranked_items=[{"id": "d1", "name": "Driver 1"}],
        user=_profile("author"),
    )


class TestNormalizeFeaturedGrid:
    def test_accepts_known_types(self) -> None:
        for grid_type in ("driver", "team", "track"):
            normalized = normalize_featured_grid(_grid(grid_type))
            assert normalized is not None
            assert normalized["type"] == grid_type

    def test_rejects_unknown_type(self) -> None:
        assert normalize_featured_grid(_grid("constructor")) is None

    def test_none(self) -> None:
        assert normalize_featured_grid(None) is None

    def test_flattens_owner(self) -> None:
        normalized = normalize_featured_grid(_grid())

        assert normalized["comment"] == "My top ten"
        assert normalized["user"] == {
            "id": "author",
            "username": "pitwallpete",
            "profile_image_url": None,
        }


class TestIsFeaturedAdminPoll:
    def test_admin_featured(self) -> None:
        assert is_featured_admin_poll(_poll("p", "admin")) is True

    def test_community_poll_never_featured(self) -> None:
        assert is_featured_admin_poll(_poll("p", None, featured=True)) is False

    def test_admin_not_flagged(self) -> None:
        assert is_featured_admin_poll(_poll("p", "admin", featured=False)) is False


class TestComposeBanner:
    def test_full_order(self) -> None:
        items = compose_banner(
            sponsors=[_sponsor("s1"), _sponsor("s2")],
            polls=[_poll("p1", "admin")],
            featured_news=[_news("n1"), _news("n2")],
            featured_grid=_grid(),
            highlighted_fan=_profile(),
        )

        assert [item.kind for item in items] == [
            KIND_SPONSOR,
            KIND_SPONSOR,
            KIND_POLL,
            KIND_NEWS,
            KIND_FEATURED_GRID,
            KIND_FEATURED_USER,
        ]
        assert [item.id for item in items] == ["s1", "s2", "p1", "n1", "g1", "fan"]

    def test_community_poll_excluded_even_when_flagged(self) -> None:
        items = compose_banner(polls=[_poll("community", None, featured=True)])

        assert items == []

    def test_first_eligible_admin_poll_is_used(self) -> None:
        items = compose_banner(
            polls=[
                _poll("community", None),
                _poll("plain", "admin", featured=False),
                _poll("podium", "admin"),
                _poll("podium2", "admin"),
            ]
        )

        assert [item.id for item in items] == ["podium"]

    def test_missing_categories_are_omitted(self) -> None:
        items = compose_banner(featured_grid=_grid("constructor"), highlighted_fan=_profile())

        assert [item.kind for item in items] == [KIND_FEATURED_USER]

    def test_poll_payload_includes_tally(self) -> None:
        poll = _poll("p1", "admin")
        summary = summarize_poll(poll, {"A": 2})

        items = compose_banner(polls=[poll], poll_summaries={"p1": summary})

        assert items[0].payload["total_votes"] == 2
        assert items[0].payload["options"][0]["percentage"] == 100

    def test_deterministic(self) -> None:
        kwargs = dict(
            sponsors=[_sponsor("s1")],
            polls=[_poll("p1", "admin")],
            featured_news=[_news("n1")],
            featured_grid=_grid(),
            highlighted_fan=_profile(),
        )

        assert compose_banner(**kwargs) == compose_banner(**kwargs)


class TestDesktopBanner:
    def test_drops_poll_and_news(self) -> None:
        items = compose_banner(
            sponsors=[_sponsor("s1")],
            polls=[_poll("p1", "admin")],
            featured_news=[_news("n1")],
            featured_grid=_grid(),
            highlighted_fan=_profile(),
        )

        desktop = desktop_banner(items)

        assert [item.kind for item in desktop] == [
            KIND_SPONSOR,
            KIND_FEATURED_GRID,
            KIND_FEATURED_USER,
        ]
        assert all(item in items for item in desktop)

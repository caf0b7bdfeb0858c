"""Tests for feed, poll and grid endpoints."""

from __future__ import annotations

from datetime import date, datetime, timezone
from types import SimpleNamespace
from typing import AsyncGenerator
import unittest
from unittest.mock import patch

from fastapi.testclient import TestClient

import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[2]
if str(REPO_ROOT) not in sys.path:
    sys.path.append(str(REPO_ROOT))

from app.db import get_db
from app.routers.feed import get_feed_composer
from app.services.feed_types import (
    BannerItem,
    FeedView,
    PollOptionView,
    PollSummary,
    RaceCard,
    SpotlightView,
)
from api.main import app


class _FakeScalarResult:
    def __init__(self, items: list[SimpleNamespace]) -> None:
        self._items = items

    def all(self) -> list[SimpleNamespace]:
        return self._items

    def first(self) -> SimpleNamespace | None:
        return self._items[0] if self._items else None


class _FakeResult:
    def __init__(
        self,
        rows: list[tuple] | None = None,
        scalars: list[SimpleNamespace] | None = None,
    ) -> None:
        self._rows = rows or []
        self._scalars = scalars or []

    def all(self) -> list[tuple]:
        return self._rows

    def scalars(self) -> _FakeScalarResult:
        return _FakeScalarResult(self._scalars)


class _FakeSession:
    def __init__(self, execute_results: list[_FakeResult]) -> None:
        self._execute_results = execute_results

    async def execute(self, statement: object) -> _FakeResult:
        return self._execute_results.pop(0)


class _StubComposer:
    def __init__(self, view: FeedView) -> None:
        self.view = view
        self.calls: list[tuple[str, datetime | None]] = []

    async def compose(self, user_id: str, now: datetime | None = None) -> FeedView:
        self.calls.append((user_id, now))
        return self.view


def _poll(poll_id: str, admin_id: str | None, featured: bool) -> SimpleNamespace:
    return SimpleNamespace(
        id=poll_id,
        question=f"question {poll_id}",
        options=[{"id": "A", "label": "Yes"}, {"id": "B", "label": "No"}],
        admin_id=admin_id,
        is_featured_podium=featured,
        ends_at=None,
        created_at=datetime(2025, 3, 1, tzinfo=timezone.utc),
    )


class TestFeedEndpoints(unittest.TestCase):
    def setUp(self) -> None:
        self.client = TestClient(app)

    def tearDown(self) -> None:
        app.dependency_overrides.clear()

    def _override_db(self, session: _FakeSession) -> None:
        async def override_get_db() -> AsyncGenerator[_FakeSession, None]:
            yield session

        app.dependency_overrides[get_db] = override_get_db

    def _feed_view(self) -> FeedView:
        now = datetime(2025, 3, 2, 12, 0, tzinfo=timezone.utc)
        race = RaceCard(
            id="bhr",
            name="Bahrain Grand Prix",
            slug="bahrain-grand-prix",
            status="live",
            is_live=True,
            start_date=datetime(2025, 2, 28, tzinfo=timezone.utc),
            end_date=date(2025, 3, 2),
            countdown="12h 0m",
        )
        return FeedView(
            user_id="me",
            generated_at=now,
            week_start=date(2025, 2, 24),
            admin_polls=[
                PollSummary(
                    id="a1",
                    question="Pole?",
                    options=[PollOptionView(id="A", label="Yes", votes=3, percentage=75)],
                    total_votes=4,
                    is_community=False,
                )
            ],
            spotlight=SpotlightView(
                banner=[BannerItem(kind="sponsor", id="s1", payload={"name": "Oil Co"})],
                carousel_race=race,
            ),
            upcoming_race=race,
        )

    def test_healthz(self) -> None:
        response = self.client.get("/healthz")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "ok"})

    def test_feed_requires_user(self) -> None:
        app.dependency_overrides[get_feed_composer] = lambda: _StubComposer(self._feed_view())

        response = self.client.get("/api/feed")

        self.assertEqual(response.status_code, 401)

    def test_feed_returns_composed_view(self) -> None:
        composer = _StubComposer(self._feed_view())
        app.dependency_overrides[get_feed_composer] = lambda: composer

        response = self.client.get("/api/feed", headers={"X-User-Id": "me"})

        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertEqual(payload["user_id"], "me")
        self.assertEqual(payload["week_start"], "2025-02-24")
        self.assertEqual(payload["admin_polls"][0]["options"][0]["percentage"], 75)
        self.assertEqual(payload["spotlight"]["banner"][0]["kind"], "sponsor")
        self.assertEqual(payload["upcoming_race"]["slug"], "bahrain-grand-prix")
        self.assertEqual(composer.calls[0][0], "me")

    def test_feed_as_of_pins_now_in_development(self) -> None:
        composer = _StubComposer(self._feed_view())
        app.dependency_overrides[get_feed_composer] = lambda: composer

        response = self.client.get(
            "/api/feed",
            params={"as_of": "2025-03-02T12:00:00"},
            headers={"X-User-Id": "me"},
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(composer.calls[0][1], datetime(2025, 3, 2, 12, 0, tzinfo=timezone.utc))

    def test_feed_as_of_rejected_outside_development(self) -> None:
        app.dependency_overrides[get_feed_composer] = lambda: _StubComposer(self._feed_view())

        with patch("app.routers.feed.settings") as mock_settings:
            mock_settings.environment = "production"
            response = self.client.get(
                "/api/feed",
                params={"as_of": "2025-03-02T12:00:00Z"},
                headers={"X-User-Id": "me"},
            )

        self.assertEqual(response.status_code, 400)

    def test_api_key_enforced_when_configured(self) -> None:
        app.dependency_overrides[get_feed_composer] = lambda: _StubComposer(self._feed_view())

        with patch("app.dependencies.auth.settings") as mock_settings:
            mock_settings.api_key = "k" * 32
            missing = self.client.get("/api/feed", headers={"X-User-Id": "me"})
            accepted = self.client.get(
                "/api/feed", headers={"X-User-Id": "me", "X-API-Key": "k" * 32}
            )

        self.assertEqual(missing.status_code, 401)
        self.assertEqual(accepted.status_code, 200)

    def test_closest_race_live(self) -> None:
        track = SimpleNamespace(
            id="bhr",
            name="Bahrain Grand Prix",
            location="Sakhir",
            country="Bahrain",
            image_url=None,
            circuit_ref="bahrain",
            start_date=datetime(2025, 2, 28, tzinfo=timezone.utc),
            end_date=date(2025, 3, 2),
            chat_enabled=None,
            timezone=None,
        )
        event = SimpleNamespace(
            event_type="race",
            scheduled_at=datetime(2025, 3, 2, 15, 0, tzinfo=timezone.utc),
            duration_minutes=120,
        )

        class _CountResult:
            def scalar(self) -> int:
                return 4

        session = _FakeSession(
            [_FakeResult(scalars=[track]), _FakeResult(scalars=[event]), _CountResult()]
        )
        self._override_db(session)

        response = self.client.get(
            "/api/feed/closest-race", params={"as_of": "2025-03-02T12:00:00Z"}
        )

        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertTrue(payload["is_live"])
        self.assertEqual(payload["live_chat_user_count"], 4)
        self.assertEqual(payload["race"]["id"], "bhr")
        self.assertEqual(payload["race"]["next_session"]["event_type"], "race")

    def test_closest_race_none(self) -> None:
        self._override_db(_FakeSession([_FakeResult(scalars=[])]))

        response = self.client.get("/api/feed/closest-race")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            response.json(), {"race": None, "is_live": False, "live_chat_user_count": 0}
        )

    def test_polls_with_user_selection(self) -> None:
        polls = [_poll("p2", None, False), _poll("p1", "admin", True)]
        responses = [
            SimpleNamespace(poll_id="p1", selected_option_id="A", user_id="x"),
            SimpleNamespace(poll_id="p1", selected_option_id="B", user_id="me"),
        ]
        self._override_db(
            _FakeSession([_FakeResult(scalars=polls), _FakeResult(scalars=responses)])
        )

        response = self.client.get("/api/polls", headers={"X-User-Id": "me"})

        self.assertEqual(response.status_code, 200)
        payload = response.json()["polls"]
        self.assertEqual([poll["id"] for poll in payload], ["p2", "p1"])
        self.assertEqual(payload[1]["total_votes"], 2)
        self.assertEqual(payload[1]["user_selection"], "B")
        self.assertIsNone(payload[0]["user_selection"])

    def test_podiums_split(self) -> None:
        polls = [_poll("c1", None, False), _poll("f1", "admin", True)]
        self._override_db(_FakeSession([_FakeResult(scalars=polls), _FakeResult(scalars=[])]))

        response = self.client.get("/api/podiums")

        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertEqual([poll["id"] for poll in payload["featured"]], ["f1"])
        self.assertEqual([poll["id"] for poll in payload["community"]], ["c1"])

    def test_grid_not_found(self) -> None:
        self._override_db(_FakeSession([_FakeResult(scalars=[])]))

        response = self.client.get("/api/grids/missing")

        self.assertEqual(response.status_code, 404)

    def test_grid_detail(self) -> None:
        grid = SimpleNamespace(
            id="g1",
            type="driver",
            ranked_items=[{"id": "d1", "name": "Leclerc"}, {"id": "d2", "name": "Gone"}],
            blurb="Tifosi approved",
            user=SimpleNamespace(id="u1", username="lapchart", profile_image_url=None),
            created_at=datetime(2025, 3, 1, tzinfo=timezone.utc),
            updated_at=datetime(2025, 3, 1, tzinfo=timezone.utc),
        )
        driver = SimpleNamespace(
            id="d1",
            nationality="Monegasque",
            headshot_url="lec.png",
            image_url=None,
            team=SimpleNamespace(name="Ferrari"),
        )
        blurbs = [
            SimpleNamespace(rank_index=1, content="GOAT"),
            SimpleNamespace(rank_index=11, content="out of range"),
        ]
        session = _FakeSession(
            [
                _FakeResult(scalars=[grid]),
                _FakeResult(scalars=[driver]),
                _FakeResult(rows=[("g1", 5)]),
                _FakeResult(rows=[("g1", 2)]),
                _FakeResult(scalars=["g1"]),
                _FakeResult(scalars=blurbs),
            ]
        )
        self._override_db(session)

        response = self.client.get("/api/grids/g1", headers={"X-User-Id": "me"})

        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertEqual(payload["grid"]["like_count"], 5)
        self.assertEqual(payload["grid"]["comment_count"], 2)
        self.assertTrue(payload["grid"]["is_liked"])
        items = payload["grid"]["ranked_items"]
        self.assertEqual(items[0]["image_url"], "lec.png")
        self.assertIsNone(items[1]["image_url"])
        self.assertEqual(payload["slot_blurbs"], [{"rank_index": 1, "content": "GOAT"}])

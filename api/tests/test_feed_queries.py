"""Tests for feed query construction."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from sqlalchemy.dialects import postgresql

from app.services import feed_queries


class _RecordingSession:
    def __init__(self, result: object = None) -> None:
        self.statements: list[object] = []
        self._result = result

    async def execute(self, statement: object) -> object:
        self.statements.append(statement)
        return self._result


class _Rows:
    def __init__(self, rows: list) -> None:
        self._rows = rows

    def all(self) -> list:
        return self._rows

    def scalars(self) -> "_Rows":
        return self

    def first(self):
        return self._rows[0] if self._rows else None


def _sql(statement: object) -> str:
    return str(statement.compile(dialect=postgresql.dialect()))


class TestEmptyIdSets:
    """Lookups over an empty id set return empty without touching the database."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("name", "args", "expected"),
        [
            ("fetch_posts_by_authors", ([], 10), []),
            ("fetch_grids_by_authors", ([], 5), []),
            ("fetch_poll_responses", ([],), []),
            ("fetch_liked_targets", ("me", "post", []), set()),
            ("fetch_post_comment_counts", ([],), {}),
            ("fetch_grid_like_counts", ([],), {}),
            ("fetch_grid_comment_counts", ([],), {}),
            ("fetch_user_grid_likes", ("me", []), set()),
            ("fetch_drivers_by_id", ([],), {}),
            ("fetch_tracks_by_id", ([],), {}),
            ("fetch_teams_by_id", ([],), {}),
        ],
    )
    async def test_no_query(self, name: str, args: tuple, expected: object) -> None:
        session = _RecordingSession()

        result = await getattr(feed_queries, name)(session, *args)

        assert result == expected
        assert session.statements == []


class TestStatements:
    @pytest.mark.asyncio
    async def test_community_polls_exclude_admin_polls_and_expired(self) -> None:
        session = _RecordingSession(_Rows([]))

        await feed_queries.fetch_community_polls(
            session, datetime(2025, 3, 2, tzinfo=timezone.utc), 3
        )

        sql = _sql(session.statements[0])
        assert "polls.admin_id IS NULL" in sql
        assert "polls.ends_at IS NULL OR polls.ends_at >" in sql
        assert "ORDER BY polls.created_at DESC, polls.id DESC" in sql

    @pytest.mark.asyncio
    async def test_grouped_counts(self) -> None:
        session = _RecordingSession(_Rows([("g1", 3), ("g2", 1)]))

        counts = await feed_queries.fetch_grid_like_counts(session, ["g1", "g2", "g3"])

        assert counts == {"g1": 3, "g2": 1}
        assert "GROUP BY grid_likes.grid_id" in _sql(session.statements[0])

    @pytest.mark.asyncio
    async def test_poll_responses_replay_oldest_first(self) -> None:
        session = _RecordingSession(_Rows([]))

        await feed_queries.fetch_poll_responses(session, ["p1"])

        sql = _sql(session.statements[0])
        assert "ORDER BY poll_responses.created_at ASC, poll_responses.id ASC" in sql

    @pytest.mark.asyncio
    async def test_active_hot_take_window(self) -> None:
        session = _RecordingSession(_Rows([]))

        result = await feed_queries.fetch_active_hot_take(
            session, datetime(2025, 3, 2, tzinfo=timezone.utc)
        )

        assert result is None
        sql = _sql(session.statements[0])
        assert "hot_takes.starts_at <=" in sql
        assert "hot_takes.ends_at >" in sql


class TestFeedMetadata:
    def test_migration_modules_register_every_feed_table(self) -> None:
        from app.db import Base
        from app.db import content, grids, profiles, racing  # noqa: F401

        assert set(Base.metadata.tables) >= {
            "profiles",
            "follows",
            "teams",
            "drivers",
            "tracks",
            "track_events",
            "live_chat_messages",
            "grids",
            "grid_likes",
            "grid_slot_comments",
            "grid_slot_blurbs",
            "posts",
            "comments",
            "votes",
            "polls",
            "poll_responses",
            "hot_takes",
            "sponsors",
            "news_stories",
            "weekly_highlights",
        }

# tests/test_models.py

from datetime import datetime, timezone

import pytest
from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite

from sentiment_dashboard.db.sql_functions import as_utc, hour_bucket
from sentiment_dashboard.models import Reaction, ReactionType, Sentiment


class TestSingleTarget:
    """Sentiments and reactions point at exactly one of a post or a comment."""

    async def test_sentiment_with_both_targets_is_rejected(self, db, world):
        db.add(Sentiment(post_id=world.posts["C"], comment_id=world.comments["c1"], sentiment="neutral"))
        with pytest.raises(ValueError):
            await db.flush()

    async def test_sentiment_without_target_is_rejected(self, db, world):
        db.add(Sentiment(sentiment="neutral"))
        with pytest.raises(ValueError):
            await db.flush()

    async def test_reaction_with_both_targets_is_rejected(self, db, world):
        db.add(Reaction(user_id=world.users["u1"], post_id=world.posts["C"], comment_id=world.comments["c1"],
                        reaction_type=ReactionType.LIKE))
        with pytest.raises(ValueError):
            await db.flush()

    async def test_reaction_without_target_is_rejected(self, db, world):
        db.add(Reaction(user_id=world.users["u1"], reaction_type=ReactionType.LIKE))
        with pytest.raises(ValueError):
            await db.flush()

    async def test_single_target_is_accepted(self, db, world):
        db.add_all([
            Sentiment(comment_id=world.comments["c1"], sentiment="positive", sentiment_category="positive"),
            Reaction(user_id=world.users["u1"], comment_id=world.comments["c1"], reaction_type=ReactionType.HAHA),
        ])
        await db.flush()


class TestHourBucket:

    def test_postgresql_truncates_in_utc(self):
        stmt = select(hour_bucket(Sentiment.created_at))
        sql = str(stmt.compile(dialect=postgresql.dialect()))
        assert "date_trunc('hour', timezone('UTC', sentiments.created_at))" in sql

    def test_sqlite_uses_strftime(self):
        sql = str(select(hour_bucket(Sentiment.created_at)).compile(dialect=sqlite.dialect()))
        assert "strftime(" in sql

    def test_naive_values_are_read_as_utc(self):
        assert as_utc(datetime(2026, 10, 19, 10)) == datetime(2026, 10, 19, 10, tzinfo=timezone.utc)
        assert as_utc("2026-10-19 10:00:00") == datetime(2026, 10, 19, 10, tzinfo=timezone.utc)
        assert as_utc(None) is None

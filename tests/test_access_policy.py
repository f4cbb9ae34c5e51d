# tests/test_access_policy.py

import uuid

from sqlalchemy import select

from sentiment_dashboard.db.access_policy import (can_access_comment, can_access_post, can_access_sentiment,
                                                  restrict_to_visible_posts, visible_post_clause)
from sentiment_dashboard.models import Post


class TestPostVisibility:

    async def test_admin_short_circuits_without_lookup(self, db, world):
        assert await can_access_post(db, world.posts["B"], world.admin)
        # Not even existence is checked for admins.
        assert await can_access_post(db, uuid.uuid4(), world.admin)

    async def test_grant_is_the_only_channel(self, db, world):
        assert await can_access_post(db, world.posts["A"], world.alice)
        assert not await can_access_post(db, world.posts["B"], world.alice)
        assert not await can_access_post(db, world.posts["A"], world.bob)

    async def test_unknown_post_is_denied(self, db, world):
        assert not await can_access_post(db, uuid.uuid4(), world.alice)

    def test_admin_gets_no_filter_clause(self, world):
        assert visible_post_clause(world.admin, Post.id) is None
        assert visible_post_clause(world.alice, Post.id) is not None

    async def test_restricted_select_matches_precheck(self, db, world):
        stmt = restrict_to_visible_posts(select(Post.id), world.alice, Post.id)
        visible = set((await db.execute(stmt)).scalars().all())
        assert visible == {world.posts["A"]}


class TestInheritedVisibility:

    async def test_comment_follows_its_post(self, db, world):
        assert await can_access_comment(db, world.comments["a1"], world.alice)
        assert not await can_access_comment(db, world.comments["b1"], world.alice)
        assert not await can_access_comment(db, uuid.uuid4(), world.alice)
        assert await can_access_comment(db, world.comments["c1"], world.admin)

    async def test_sentiment_through_post_or_comment(self, db, world):
        # Post-level sentiment of a granted post.
        assert await can_access_sentiment(db, world.sentiments["A"], world.alice)
        # Comment-level sentiment on a comment of a granted post.
        assert await can_access_sentiment(db, world.sentiments["a1"], world.alice)
        assert not await can_access_sentiment(db, world.sentiments["B"], world.alice)
        assert not await can_access_sentiment(db, world.sentiments["b1"], world.alice)
        assert not await can_access_sentiment(db, world.sentiments["a1"], world.bob)
        assert not await can_access_sentiment(db, uuid.uuid4(), world.alice)

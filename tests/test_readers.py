# tests/test_readers.py

import uuid
from datetime import timedelta

import pytest

from conftest import NOW
from sentiment_dashboard.models import Post, Sentiment
from sentiment_dashboard.schemas.query_options import (CommentQueryOptions, PageQueryOptions, PostQueryOptions,
                                                       SentimentQueryOptions, UserQueryOptions)
from sentiment_dashboard.services.data_service import DataService


class TestPosts:

    async def test_visibility_per_caller(self, db, world):
        service = DataService(db)

        alice = await service.list_posts(world.alice, PostQueryOptions())
        assert alice.total == 1
        assert [p.id for p in alice.items] == [world.posts["A"]]

        bob = await service.list_posts(world.bob, PostQueryOptions())
        assert bob.total == 0
        assert bob.items == []

        admin = await service.list_posts(world.admin, PostQueryOptions())
        assert admin.total == 3

    async def test_derived_counts(self, db, world):
        page = await DataService(db).list_posts(world.admin, PostQueryOptions())
        counts = {p.id: (p.comment_count, p.reaction_count, p.engagement_score) for p in page.items}
        assert counts == {
            world.posts["A"]: (2, 1, 3),
            world.posts["B"]: (1, 1, 2),
            world.posts["C"]: (1, 0, 1),
        }

    async def test_order_by_engagement(self, db, world):
        options = PostQueryOptions(order_by="engagement_score", order_direction="ASC")
        page = await DataService(db).list_posts(world.admin, options)
        assert [p.id for p in page.items] == [world.posts["C"], world.posts["B"], world.posts["A"]]

    @pytest.mark.parametrize("filters, expected", [
        ({"sentiment": "POSITIVE"}, ["A"]),
        ({"sentiment": "negative"}, ["B"]),
        ({"search": "OUTAGE"}, ["B"]),
        ({"page_name": "Beta"}, ["C"]),
        ({"post_url": "https://facebook.com/alpha/posts/1"}, ["A"]),
    ])
    async def test_filters(self, db, world, filters, expected):
        page = await DataService(db).list_posts(world.admin, PostQueryOptions(**filters))
        assert [p.id for p in page.items] == [world.posts[name] for name in expected]
        assert page.total == len(expected)

    async def test_sentiment_filter_uses_latest_post_sentiment(self, db, world):
        db.add_all([
            Sentiment(post_id=world.posts["C"], sentiment="positive", sentiment_category="positive",
                      confidence=0.8, polarity=0.6, created_at=NOW - timedelta(days=9)),
            Sentiment(post_id=world.posts["C"], sentiment="negative", sentiment_category="negative",
                      confidence=0.7, polarity=-0.5, created_at=NOW - timedelta(days=1)),
        ])
        await db.commit()
        service = DataService(db)

        positive = await service.list_posts(world.admin, PostQueryOptions(sentiment="positive"))
        assert [p.id for p in positive.items] == [world.posts["A"]]

        negative = await service.list_posts(world.admin, PostQueryOptions(sentiment="negative"))
        assert {p.id for p in negative.items} == {world.posts["B"], world.posts["C"]}

    @pytest.mark.parametrize("search", ["_", "%"])
    async def test_search_wildcards_are_literal(self, db, world, search):
        page = await DataService(db).list_posts(world.admin, PostQueryOptions(search=search))
        assert page.total == 0

    async def test_search_matches_literal_wildcard_characters(self, db, world):
        db.add(Post(page_id=world.pages["beta"], url="https://facebook.com/beta/posts/2", content="Sale: 50% off_today"))
        await db.commit()
        page = await DataService(db).list_posts(world.admin, PostQueryOptions(search="50% OFF_"))
        assert [p.content for p in page.items] == ["Sale: 50% off_today"]

    async def test_filter_by_page_id(self, db, world):
        options = PostQueryOptions(page_id=world.pages["alpha"])
        page = await DataService(db).list_posts(world.admin, options)
        assert {p.id for p in page.items} == {world.posts["A"], world.posts["B"]}

    async def test_pagination_keeps_total(self, db, world):
        page = await DataService(db).list_posts(world.admin, PostQueryOptions(limit=1, offset=1))
        assert page.total == 3
        assert len(page.items) == 1
        assert (page.limit, page.offset) == (1, 1)

    async def test_get_post_denied_is_none(self, db, world):
        service = DataService(db)
        options = PostQueryOptions()
        assert await service.get_post(world.posts["B"], world.alice, options) is None
        assert await service.get_post(uuid.uuid4(), world.admin, options) is None

    async def test_get_post_with_includes(self, db, world):
        options = PostQueryOptions(include_comments=True, include_sentiments=True, include_reactions=True)
        post = await DataService(db).get_post(world.posts["A"], world.alice, options)

        assert post.page.name == "Alpha"
        assert {c.id for c in post.comments} == {world.comments["a1"], world.comments["a2"]}
        assert [s.id for s in post.sentiments] == [world.sentiments["A"]]
        assert post.sentiments[0].probabilities["positive"] == pytest.approx(0.9)
        assert [r.reaction_type.value for r in post.reactions] == ["like"]

    async def test_includes_are_absent_unless_requested(self, db, world):
        post = await DataService(db).get_post(world.posts["A"], world.alice, PostQueryOptions(include_page=False))
        assert post.page is None
        assert post.comments is None
        assert post.sentiments is None


class TestComments:

    async def test_visibility_per_caller(self, db, world):
        service = DataService(db)
        assert (await service.list_comments(world.alice, CommentQueryOptions())).total == 2
        assert (await service.list_comments(world.bob, CommentQueryOptions())).total == 0
        assert (await service.list_comments(world.admin, CommentQueryOptions())).total == 4

    async def test_filter_by_user_and_includes(self, db, world):
        options = CommentQueryOptions(user_id=world.users["u2"], include_sentiments=True, include_reactions=True)
        page = await DataService(db).list_comments(world.alice, options)

        assert [c.id for c in page.items] == [world.comments["a2"]]
        comment = page.items[0]
        assert comment.user.display_name == "Ben Ray"
        assert [s.sentiment_category for s in comment.sentiments] == ["negative"]
        assert comment.reactions == []

    async def test_get_comment(self, db, world):
        service = DataService(db)
        options = CommentQueryOptions(include_post=True)
        comment = await service.get_comment(world.comments["a1"], world.alice, options)
        assert comment.post.id == world.posts["A"]
        assert await service.get_comment(world.comments["b1"], world.alice, options) is None


class TestSentiments:

    async def test_visibility_and_scope_filters(self, db, world):
        service = DataService(db)
        assert (await service.list_sentiments(world.alice, SentimentQueryOptions())).total == 3
        assert (await service.list_sentiments(world.alice, SentimentQueryOptions(only_comment=True))).total == 2
        assert (await service.list_sentiments(world.alice, SentimentQueryOptions(only_post=True))).total == 1
        assert (await service.list_sentiments(world.bob, SentimentQueryOptions())).total == 0

    async def test_confidence_and_category_filters(self, db, world):
        service = DataService(db)
        high = await service.list_sentiments(world.admin, SentimentQueryOptions(min_confidence=0.7))
        assert {s.id for s in high.items} == {world.sentiments[k] for k in ("A", "B", "a1")}

        negative = await service.list_sentiments(world.admin, SentimentQueryOptions(sentiment_category="NEGATIVE"))
        assert {s.id for s in negative.items} == {world.sentiments["B"], world.sentiments["a2"]}

    async def test_order_by_confidence(self, db, world):
        options = SentimentQueryOptions(order_by="confidence", order_direction="ASC")
        page = await DataService(db).list_sentiments(world.admin, options)
        assert [s.confidence for s in page.items] == [0.5, 0.6, 0.7, 0.8, 0.9]

    async def test_get_sentiment_with_targets(self, db, world):
        service = DataService(db)
        options = SentimentQueryOptions(include_post=True, include_comment=True)

        sentiment = await service.get_sentiment(world.sentiments["a1"], world.alice, options)
        assert sentiment.comment.id == world.comments["a1"]
        assert sentiment.post is None

        assert await service.get_sentiment(world.sentiments["b1"], world.alice, options) is None


class TestUsers:

    async def test_visible_through_comments_or_reactions(self, db, world):
        service = DataService(db)

        page = await service.list_users(world.alice, UserQueryOptions())
        # u3 only reacted to post A, u1 and u2 commented on it.
        assert {u.id for u in page.items} == set(world.users.values())

        commenters = await service.list_users(world.alice, UserQueryOptions(only_with_comments=True))
        assert {u.id for u in commenters.items} == {world.users["u1"], world.users["u2"]}

        assert (await service.list_users(world.bob, UserQueryOptions())).total == 0

    async def test_counts_cover_visible_posts_only(self, db, world):
        service = DataService(db)
        alice = await service.get_user(str(world.users["u2"]), world.alice, UserQueryOptions())
        admin = await service.get_user(str(world.users["u2"]), world.admin, UserQueryOptions())
        assert alice.comment_count == 1
        assert admin.comment_count == 2

    async def test_stats_for_restricted_caller(self, db, world):
        options = UserQueryOptions(include_stats=True)
        user = await DataService(db).get_user(str(world.users["u2"]), world.alice, options)
        stats = user.stats

        assert stats.total_comments == 1
        assert stats.posts_commented == 1
        # The wow on comment a1 counts, a1 belongs to post A.
        assert stats.total_reactions == 1
        assert stats.sentiment_breakdown.negative == 1
        assert stats.sentiment_breakdown.positive == 0
        assert [(p.page_name, p.comment_count) for p in stats.top_pages] == [("Alpha", 1)]

    async def test_stats_for_admin(self, db, world):
        options = UserQueryOptions(include_stats=True)
        stats = (await DataService(db).get_user(str(world.users["u2"]), world.admin, options)).stats

        assert stats.total_comments == 2
        assert stats.posts_commented == 2
        assert stats.sentiment_breakdown.negative == 1
        assert stats.sentiment_breakdown.neutral == 1
        assert stats.sentiment_breakdown.average_polarity == pytest.approx(-0.2)

    async def test_search_is_a_literal_substring(self, db, world):
        service = DataService(db)
        assert {u.id for u in (await service.list_users(world.admin, UserQueryOptions(search="n r"))).items} == {world.users["u2"]}
        assert (await service.list_users(world.admin, UserQueryOptions(search="_"))).total == 0

    async def test_lookup_by_external_profile_id(self, db, world):
        service = DataService(db)
        found = await service.get_user("1003", world.alice, UserQueryOptions())
        assert found.id == world.users["u3"]
        assert await service.get_user("1003", world.bob, UserQueryOptions()) is None
        assert await service.get_user("no-such-profile", world.admin, UserQueryOptions()) is None

    async def test_comments_include_carries_sentiments(self, db, world):
        options = UserQueryOptions(include_comments=True, include_counts=False)
        user = await DataService(db).get_user(str(world.users["u1"]), world.alice, options)
        assert user.comment_count is None
        assert [c.id for c in user.comments] == [world.comments["a1"]]
        assert [s.sentiment for s in user.comments[0].sentiments] == ["positive"]


class TestPages:

    async def test_restricted_caller_sees_pages_with_visible_posts(self, db, world):
        page = await DataService(db).list_pages(world.alice, PageQueryOptions())
        assert page.total == 1
        alpha = page.items[0]
        assert alpha.id == world.pages["alpha"]
        # Statistics cover post A only.
        assert (alpha.post_count, alpha.comment_count, alpha.reaction_count, alpha.engagement_score) == (1, 2, 1, 3)
        assert alpha.sentiment_summary.positive == 1
        assert alpha.sentiment_summary.total == 1

    async def test_admin_sees_every_page_by_name(self, db, world):
        page = await DataService(db).list_pages(world.admin, PageQueryOptions())
        assert [p.name for p in page.items] == ["Alpha", "Beta"]

        alpha = page.items[0]
        assert (alpha.post_count, alpha.comment_count, alpha.reaction_count) == (2, 3, 2)
        summary = alpha.sentiment_summary
        assert (summary.total, summary.positive, summary.negative) == (2, 1, 1)

        beta = page.items[1]
        assert beta.post_count == 1
        assert beta.sentiment_summary.total == 0

    @pytest.mark.parametrize("sentiment, expected", [
        ("positive", ["alpha"]),
        ("Negative", ["alpha"]),
        ("neutral", []),
    ])
    async def test_dominant_sentiment_filter(self, db, world, sentiment, expected):
        page = await DataService(db).list_pages(world.admin, PageQueryOptions(sentiment=sentiment))
        assert [p.id for p in page.items] == [world.pages[name] for name in expected]

    @pytest.mark.parametrize("order_by", ["positive_sentiments", "negative_sentiments"])
    async def test_order_by_sentiment_counts(self, db, world, order_by):
        options = PageQueryOptions(order_by=order_by, order_direction="DESC")
        assert options.order_by.value == order_by
        page = await DataService(db).list_pages(world.admin, options)
        # Alpha holds one positive and one negative post sentiment, Beta none.
        assert [p.id for p in page.items] == [world.pages["alpha"], world.pages["beta"]]

        options = PageQueryOptions(order_by=order_by, order_direction="ASC")
        page = await DataService(db).list_pages(world.admin, options)
        assert [p.id for p in page.items] == [world.pages["beta"], world.pages["alpha"]]

    async def test_get_page(self, db, world):
        service = DataService(db)
        assert (await service.get_page(world.pages["alpha"], world.alice, PageQueryOptions())).post_count == 1
        assert await service.get_page(world.pages["beta"], world.alice, PageQueryOptions()) is None

    async def test_stats_can_be_left_out(self, db, world):
        page = await DataService(db).get_page(world.pages["beta"], world.admin, PageQueryOptions(include_stats=False))
        assert page.name == "Beta"
        assert page.post_count is None
        assert page.sentiment_summary is None

# tests/test_analytics.py

import uuid
from datetime import datetime, timedelta, timezone

import pytest

from conftest import NOW
from sentiment_dashboard.models import Post, Sentiment
from sentiment_dashboard.schemas.query_options import (CommentersQueryOptions, CommentsWithSentimentOptions,
                                                       UserPostsQueryOptions)
from sentiment_dashboard.services.analytics_service import (ENGAGEMENT_DISPLAY_SCALE, TREND_HOURS, AnalyticsService,
                                                            average_engagement, trend_buckets)


def test_engagement_kpi_scale():
    assert ENGAGEMENT_DISPLAY_SCALE == 10
    assert average_engagement(1.5, 0.5) == 20.0
    assert average_engagement(0.0, 0.0) == 0.0
    assert average_engagement(1 / 3, 0) == 3.3


def test_trend_buckets_cover_last_24_hours():
    buckets = trend_buckets(NOW)
    assert len(buckets) == TREND_HOURS == 24
    assert buckets[-1] == datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)
    assert buckets[0] == datetime(2026, 10, 18, 13, 0, tzinfo=timezone.utc)
    assert all(later - earlier == timedelta(hours=1) for earlier, later in zip(buckets, buckets[1:]))


class TestPostSentimentSummary:

    async def test_groups_post_and_comment_sentiments(self, db, world):
        summary = await AnalyticsService(db).post_sentiment_summary(world.posts["A"], world.admin)

        assert summary.total.total_sentiments == 3
        assert summary.total.overall_avg_confidence == pytest.approx((0.9 + 0.8 + 0.6) / 3)
        by_category = {c.sentiment_category: c for c in summary.by_category}
        assert set(by_category) == {"positive", "negative"}
        assert by_category["positive"].count == 2
        assert by_category["positive"].avg_confidence == pytest.approx(0.85)
        assert by_category["positive"].avg_polarity == pytest.approx(0.65)
        assert by_category["negative"].count == 1
        assert by_category["negative"].avg_polarity == pytest.approx(-0.4)
        # Largest group first.
        assert summary.by_category[0].sentiment_category == "positive"

    async def test_single_sentiment_post(self, db, world):
        post = Post(url="https://facebook.com/fresh/posts/1", content="Fresh")
        db.add(post)
        await db.flush()
        db.add(Sentiment(post_id=post.id, sentiment="positive", sentiment_category="positive", confidence=0.9, polarity=0.8))
        await db.commit()

        summary = await AnalyticsService(db).post_sentiment_summary(post.id, world.admin)

        assert summary.total.total_sentiments == 1
        assert len(summary.by_category) == 1
        only = summary.by_category[0]
        assert (only.sentiment_category, only.count) == ("positive", 1)
        assert only.avg_confidence == pytest.approx(0.9)
        assert only.avg_polarity == pytest.approx(0.8)

    async def test_denied_or_unknown_post(self, db, world):
        service = AnalyticsService(db)
        assert await service.post_sentiment_summary(world.posts["B"], world.alice) is None
        assert await service.post_sentiment_summary(uuid.uuid4(), world.admin) is None


class TestPostScopedReads:

    async def test_commenters(self, db, world):
        service = AnalyticsService(db)
        options = CommentersQueryOptions(order_by="last_comment_at")
        page = await service.commenters(world.posts["A"], world.alice, options)

        assert page.total == 2
        assert [c.user_id for c in page.items] == [world.users["u2"], world.users["u1"]]
        assert all(c.comment_count == 1 for c in page.items)
        assert await service.commenters(world.posts["A"], world.bob, options) is None

    async def test_post_and_comment_sentiments(self, db, world):
        service = AnalyticsService(db)

        post_level = await service.post_sentiments(world.posts["A"], world.alice)
        assert [s.id for s in post_level] == [world.sentiments["A"]]

        comment_level = await service.comment_sentiments(world.posts["A"], world.alice)
        # Newest first.
        assert [s.id for s in comment_level] == [world.sentiments["a2"], world.sentiments["a1"]]
        assert comment_level[0].comment.id == world.comments["a2"]
        assert comment_level[0].user.display_name == "Ben Ray"

        assert await service.comment_sentiments(world.posts["B"], world.alice) is None

    async def test_user_activity_on_post(self, db, world):
        service = AnalyticsService(db)

        activity = await service.user_activity_on_post(world.users["u3"], world.posts["A"], world.alice)
        assert activity.comment_count == 0
        assert [r.reaction_type.value for r in activity.reactions] == ["like"]

        activity = await service.user_activity_on_post(world.users["u2"], world.posts["A"], world.alice)
        assert [c.id for c in activity.comments] == [world.comments["a2"]]
        assert activity.comments[0].sentiments[0].sentiment == "negative"
        # The wow on comment a1 is not a reaction on the post.
        assert activity.reaction_count == 0

        assert await service.user_activity_on_post(world.users["u2"], world.posts["B"], world.alice) is None
        assert await service.user_activity_on_post(uuid.uuid4(), world.posts["A"], world.admin) is None


class TestUserAndCommentAggregations:

    async def test_posts_by_user(self, db, world):
        service = AnalyticsService(db)

        alice = await service.posts_by_user(world.users["u2"], world.alice, UserPostsQueryOptions())
        assert alice.total == 1
        assert alice.items[0].id == world.posts["A"]
        assert alice.items[0].user_comment_count == 1
        assert alice.items[0].page.name == "Alpha"

        admin = await service.posts_by_user(world.users["u2"], world.admin, UserPostsQueryOptions())
        assert admin.total == 2
        # Most recent comment first.
        assert [p.id for p in admin.items] == [world.posts["A"], world.posts["B"]]

    async def test_comments_with_sentiment(self, db, world):
        service = AnalyticsService(db)

        page = await service.comments_with_sentiment(world.alice, CommentsWithSentimentOptions())
        assert page.total == 2
        assert {c.id for c in page.items} == {world.comments["a1"], world.comments["a2"]}
        assert all(c.page_name == "Alpha" for c in page.items)

        negative = await service.comments_with_sentiment(world.admin, CommentsWithSentimentOptions(sentiment="NEGATIVE"))
        assert [(c.id, c.user_display_name) for c in negative.items] == [(world.comments["a2"], "Ben Ray")]

    async def test_comments_without_sentiment_are_kept(self, db, world):
        options = CommentsWithSentimentOptions(post_id=world.posts["C"])
        page = await AnalyticsService(db).comments_with_sentiment(world.admin, options)
        assert [c.id for c in page.items] == [world.comments["c1"]]
        assert page.items[0].sentiment_id is None


class TestDashboard:

    async def test_admin_figures(self, db, world):
        stats = await AnalyticsService(db).dashboard_stats(world.admin, now=NOW)

        assert stats.total_posts == 3
        assert (stats.positive_posts, stats.negative_posts, stats.neutral_posts) == (1, 1, 0)
        # (4 comments + 2 reactions) / 3 posts, times 10.
        assert stats.avg_engagement == 20.0

        pages = stats.page_summary
        assert pages.total_pages == 2
        assert pages.pages_added_last_30_days == 1
        assert pages.active_pages_last_7_days == 1
        assert pages.avg_posts_per_page == pytest.approx(1.5)
        assert pages.avg_comments_per_page == pytest.approx(2.0)

        posts = stats.post_summary
        assert posts.posts_last_24_hours == 1
        assert posts.posts_last_7_days == 2
        assert posts.unique_commenters == 3
        assert posts.avg_comments_per_post == pytest.approx(4 / 3)
        assert posts.avg_sentiment_confidence == pytest.approx(0.8)

    async def test_sentiment_trend(self, db, world):
        stats = await AnalyticsService(db).dashboard_stats(world.admin, now=NOW)
        trend = stats.sentiment_trend

        assert len(trend) == 24
        assert trend[0].date == datetime(2026, 10, 18, 13, 0, tzinfo=timezone.utc)
        assert trend[-1].date == datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)

        filled = [p for p in trend if p.positive or p.negative or p.neutral]
        assert len(filled) == 1
        assert filled[0].date == datetime(2026, 10, 19, 10, 0, tzinfo=timezone.utc)
        assert (filled[0].positive, filled[0].negative, filled[0].neutral) == (1, 0, 0)

    async def test_restricted_caller(self, db, world):
        stats = await AnalyticsService(db).dashboard_stats(world.alice, now=NOW)

        assert stats.total_posts == 1
        assert stats.positive_posts == 1
        assert stats.negative_posts == 0
        assert stats.avg_engagement == 30.0
        assert stats.page_summary.total_pages == 1
        assert stats.page_summary.pages_added_last_30_days == 0
        assert stats.post_summary.unique_commenters == 2

    async def test_caller_without_grants(self, db, world):
        stats = await AnalyticsService(db).dashboard_stats(world.bob, now=NOW)

        assert stats.total_posts == 0
        assert stats.avg_engagement == 0.0
        assert stats.page_summary.total_pages == 0
        assert stats.post_summary.avg_sentiment_confidence == 0.0
        assert len(stats.sentiment_trend) == 24
        assert all(p.positive == p.negative == p.neutral == 0 for p in stats.sentiment_trend)

# src/sentiment_dashboard/services/analytics_service.py

# ==============================================================================
# ANALYTICS SERVICE
# ==============================================================================
# Post- and user-scoped aggregations (thin pass-through to the repository) and
# the assembly of the dashboard payload: KPIs, the 24-hour sentiment trend and
# the page/post summaries, all over the caller's visible posts.
# ==============================================================================

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import translate_store_errors
from ..core.security import Principal
from ..db.repositories.analytics_repository import AnalyticsRepository
from ..db.sql_functions import as_utc
from ..schemas import api_schemas
from ..schemas.query_options import CommentersQueryOptions, CommentsWithSentimentOptions, UserPostsQueryOptions

logger = logging.getLogger(__name__)

# Display multiplier of the average engagement KPI (comments + reactions per post).
ENGAGEMENT_DISPLAY_SCALE = 10
TREND_HOURS = 24
TREND_CATEGORIES = ("positive", "negative", "neutral")


def trend_buckets(now: datetime) -> List[datetime]:
    """Start of each of the last TREND_HOURS UTC hours, oldest first, the current hour last."""
    current = now.astimezone(timezone.utc).replace(minute=0, second=0, microsecond=0)
    return [current - timedelta(hours=offset) for offset in range(TREND_HOURS - 1, -1, -1)]


def average_engagement(avg_comments_per_post: float, avg_reactions_per_post: float) -> float:
    return round((avg_comments_per_post + avg_reactions_per_post) * ENGAGEMENT_DISPLAY_SCALE, 1)


def _ratio(numerator: int, denominator: int) -> float:
    return numerator / denominator if denominator else 0.0


class AnalyticsService:
    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.repo = AnalyticsRepository(self.db)

    @translate_store_errors
    async def commenters(
        self, post_id: uuid.UUID, principal: Principal, options: CommentersQueryOptions
    ) -> Optional[api_schemas.Paginated[api_schemas.Commenter]]:
        result = await self.repo.users_by_post(post_id, principal, options)
        if result is None:
            return None
        items, total = result
        return api_schemas.Paginated[api_schemas.Commenter](
            total=total, limit=options.limit, offset=options.offset, items=items
        )

    @translate_store_errors
    async def posts_by_user(
        self, user_id: uuid.UUID, principal: Principal, options: UserPostsQueryOptions
    ) -> api_schemas.Paginated[api_schemas.UserPostActivity]:
        items, total = await self.repo.posts_by_user(user_id, principal, options)
        return api_schemas.Paginated[api_schemas.UserPostActivity](
            total=total, limit=options.limit, offset=options.offset, items=items
        )

    @translate_store_errors
    async def post_sentiment_summary(self, post_id: uuid.UUID, principal: Principal) -> Optional[api_schemas.PostSentimentSummary]:
        return await self.repo.post_sentiment_summary(post_id, principal)

    @translate_store_errors
    async def post_sentiments(self, post_id: uuid.UUID, principal: Principal) -> Optional[List[api_schemas.SentimentRead]]:
        return await self.repo.post_sentiments(post_id, principal)

    @translate_store_errors
    async def comment_sentiments(self, post_id: uuid.UUID, principal: Principal) -> Optional[List[api_schemas.CommentSentiment]]:
        return await self.repo.comment_sentiments_by_post(post_id, principal)

    @translate_store_errors
    async def comments_with_sentiment(
        self, principal: Principal, options: CommentsWithSentimentOptions
    ) -> api_schemas.Paginated[api_schemas.CommentWithSentiment]:
        items, total = await self.repo.comments_with_sentiment(principal, options)
        return api_schemas.Paginated[api_schemas.CommentWithSentiment](
            total=total, limit=options.limit, offset=options.offset, items=items
        )

    @translate_store_errors
    async def user_activity_on_post(
        self, user_id: uuid.UUID, post_id: uuid.UUID, principal: Principal
    ) -> Optional[api_schemas.UserActivityOnPost]:
        return await self.repo.user_activity_on_post(user_id, post_id, principal)

    @translate_store_errors
    async def dashboard_stats(self, principal: Principal, now: Optional[datetime] = None) -> api_schemas.DashboardStats:
        """
        Dashboard KPIs for the caller. Admins get global figures, other callers
        figures over their granted posts. `now` is injectable for tests.
        """
        now = now or datetime.now(timezone.utc)
        repo = self.repo

        total_posts = await repo.total_posts(principal)
        sentiment_counts = await repo.post_sentiment_counts(principal)

        engaged_posts, engaged_comments, engaged_reactions = await repo.engagement_totals(principal)
        avg_comments_per_post = _ratio(engaged_comments, engaged_posts)
        avg_reactions_per_post = _ratio(engaged_reactions, engaged_posts)

        buckets = trend_buckets(now)
        trend = {bucket: api_schemas.TrendPoint(date=bucket) for bucket in buckets}
        for hour, category, count in await repo.hourly_sentiment_counts(principal, buckets[0]):
            point = trend.get(as_utc(hour))
            if point is not None and category in TREND_CATEGORIES:
                setattr(point, category, count)

        total_pages, pages_added = await repo.page_counts(principal, now - timedelta(days=30))
        active_pages = await repo.active_pages(principal, now - timedelta(days=7))
        total_comments = await repo.total_comments(principal)

        page_summary = api_schemas.PageSummary(
            total_pages=total_pages,
            active_pages_last_7_days=active_pages,
            pages_added_last_30_days=pages_added,
            avg_posts_per_page=_ratio(total_posts, total_pages),
            avg_comments_per_page=_ratio(total_comments, total_pages),
        )
        post_summary = api_schemas.PostSummary(
            posts_last_24_hours=await repo.posts_since(principal, now - timedelta(hours=24)),
            posts_last_7_days=await repo.posts_since(principal, now - timedelta(days=7)),
            avg_comments_per_post=avg_comments_per_post,
            avg_reactions_per_post=avg_reactions_per_post,
            unique_commenters=await repo.unique_commenters(principal),
            avg_sentiment_confidence=await repo.avg_post_sentiment_confidence(principal) or 0.0,
        )

        stats = api_schemas.DashboardStats(
            total_posts=total_posts,
            positive_posts=sentiment_counts.get("positive", 0),
            negative_posts=sentiment_counts.get("negative", 0),
            neutral_posts=sentiment_counts.get("neutral", 0),
            avg_engagement=average_engagement(avg_comments_per_post, avg_reactions_per_post),
            sentiment_trend=[trend[bucket] for bucket in buckets],
            page_summary=page_summary,
            post_summary=post_summary,
        )
        logger.info("Dashboard stats computed", extra={"total_posts": total_posts, "total_pages": total_pages})
        return stats

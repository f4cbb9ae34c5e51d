# src/sentiment_dashboard/db/repositories/analytics_repository.py

# ==============================================================================
# AGGREGATION QUERIES
# ==============================================================================
# Cross-entity statistics. Post-scoped operations check access to the post
# first and return None when it is unknown or hidden from the caller; the
# dashboard figures are computed over the caller's visible posts only.
# Assembly of the dashboard payload lives in services/analytics_service.py.
# ==============================================================================

import uuid
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from sqlalchemy import Select, distinct, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ...core.security import Principal
from ...models.social_data import Comment, Page, Post, Reaction, Sentiment, User
from ...schemas import api_schemas
from ...schemas.query_options import (CommentersQueryOptions, CommenterOrderField, CommentSentimentOrderField,
                                      CommentsWithSentimentOptions, UserPostOrderField, UserPostsQueryOptions)
from ..access_policy import can_access_post, restrict_to_visible_posts
from ..sql_functions import hour_bucket
from . import includes


def _direction(expression, descending: bool):
    return expression.desc() if descending else expression.asc()


def _count(stmt: Select):
    return select(func.count()).select_from(stmt.subquery())


class AnalyticsRepository:
    def __init__(self, db_session: AsyncSession):
        self.db = db_session

    async def _post_visible(self, post_id: uuid.UUID, principal: Principal) -> bool:
        """Access pre-check that also rejects unknown posts for admins."""
        if not await can_access_post(self.db, post_id, principal):
            return False
        return (await self.db.execute(select(Post.id).where(Post.id == post_id))).first() is not None

    # --- Post-scoped aggregations ---

    async def users_by_post(
        self, post_id: uuid.UUID, principal: Principal, options: CommentersQueryOptions
    ) -> Optional[Tuple[List[api_schemas.Commenter], int]]:
        """Commenters of a post with their comment count and last comment time."""
        if not await self._post_visible(post_id, principal):
            return None

        comment_count = func.count(Comment.id).label("comment_count")
        last_comment_at = func.max(Comment.created_at).label("last_comment_at")
        stmt = (
            select(User.id, User.external_profile_id, User.display_name, User.created_at, comment_count, last_comment_at)
            .select_from(Comment)
            .join(User, User.id == Comment.user_id)
            .where(Comment.post_id == post_id)
            .group_by(User.id, User.external_profile_id, User.display_name, User.created_at)
        )
        total = (await self.db.execute(_count(stmt))).scalar_one()

        order_columns = {
            CommenterOrderField.COMMENT_COUNT: comment_count,
            CommenterOrderField.LAST_COMMENT_AT: last_comment_at,
            CommenterOrderField.DISPLAY_NAME: User.display_name,
            CommenterOrderField.CREATED_AT: User.created_at,
        }
        stmt = (
            stmt.order_by(_direction(order_columns[options.order_by], options.descending), User.id)
            .limit(options.limit)
            .offset(options.offset)
        )
        items = [
            api_schemas.Commenter(
                user_id=row.id,
                external_profile_id=row.external_profile_id,
                display_name=row.display_name,
                created_at=row.created_at,
                comment_count=row.comment_count,
                last_comment_at=row.last_comment_at,
            )
            for row in (await self.db.execute(stmt)).all()
        ]
        return items, total

    async def posts_by_user(
        self, user_id: uuid.UUID, principal: Principal, options: UserPostsQueryOptions
    ) -> Tuple[List[api_schemas.UserPostActivity], int]:
        """Visible posts the scraped user commented on, with that user's comment count per post."""
        user_comment_count = func.count(Comment.id).label("user_comment_count")
        last_comment_at = func.max(Comment.created_at).label("last_comment_at")
        stmt = (
            select(Post, Page, user_comment_count, last_comment_at)
            .select_from(Comment)
            .join(Post, Post.id == Comment.post_id)
            .outerjoin(Page, Page.id == Post.page_id)
            .where(Comment.user_id == user_id)
            .group_by(Post.id, Page.id)
        )
        stmt = restrict_to_visible_posts(stmt, principal, Post.id)
        total = (await self.db.execute(_count(stmt))).scalar_one()

        order_columns = {
            UserPostOrderField.LAST_COMMENT_AT: last_comment_at,
            UserPostOrderField.USER_COMMENT_COUNT: user_comment_count,
            UserPostOrderField.CREATED_AT: Post.created_at,
            UserPostOrderField.POSTED_AT: Post.posted_at,
            UserPostOrderField.PAGE_NAME: Page.name,
            UserPostOrderField.PAGE_URL: Page.url,
        }
        stmt = (
            stmt.order_by(_direction(order_columns[options.order_by], options.descending), Post.id)
            .limit(options.limit)
            .offset(options.offset)
        )
        items = []
        for post, page, count, last_at in (await self.db.execute(stmt)).all():
            brief = includes.post_brief(post, page)
            items.append(api_schemas.UserPostActivity(
                **brief.model_dump(exclude={"page"}),
                page=brief.page,
                user_comment_count=count,
                last_comment_at=last_at,
            ))
        return items, total

    async def post_sentiment_summary(self, post_id: uuid.UUID, principal: Principal) -> Optional[api_schemas.PostSentimentSummary]:
        """Post-level and comment-level sentiments of the post together, grouped by category."""
        if not await self._post_visible(post_id, principal):
            return None

        def summary(*columns):
            return (
                select(*columns)
                .select_from(Sentiment)
                .outerjoin(Comment, Sentiment.comment_id == Comment.id)
                .where(or_(Sentiment.post_id == post_id, Comment.post_id == post_id))
            )

        totals = (await self.db.execute(
            summary(func.count(Sentiment.id), func.avg(Sentiment.confidence), func.avg(Sentiment.polarity))
        )).one()
        count = func.count(Sentiment.id).label("count")
        rows = (await self.db.execute(
            summary(
                Sentiment.sentiment_category,
                count,
                func.avg(Sentiment.confidence).label("avg_confidence"),
                func.avg(Sentiment.polarity).label("avg_polarity"),
            )
            .group_by(Sentiment.sentiment_category)
            .order_by(count.desc(), Sentiment.sentiment_category)
        )).all()

        return api_schemas.PostSentimentSummary(
            post_id=post_id,
            total=api_schemas.SentimentTotals(
                total_sentiments=totals[0] or 0,
                overall_avg_confidence=_as_float(totals[1]),
                overall_avg_polarity=_as_float(totals[2]),
            ),
            by_category=[
                api_schemas.CategorySummary(
                    sentiment_category=category,
                    count=category_count,
                    avg_confidence=_as_float(avg_confidence),
                    avg_polarity=_as_float(avg_polarity),
                )
                for category, category_count, avg_confidence, avg_polarity in rows
            ],
        )

    async def post_sentiments(self, post_id: uuid.UUID, principal: Principal) -> Optional[List[api_schemas.SentimentRead]]:
        if not await self._post_visible(post_id, principal):
            return None
        return (await includes.load_post_sentiments(self.db, [post_id])).get(post_id, [])

    async def comment_sentiments_by_post(
        self, post_id: uuid.UUID, principal: Principal
    ) -> Optional[List[api_schemas.CommentSentiment]]:
        """Sentiments of the post's comments, each with the comment and its author."""
        if not await self._post_visible(post_id, principal):
            return None
        stmt = (
            select(Sentiment, Comment, User)
            .join(Comment, Sentiment.comment_id == Comment.id)
            .outerjoin(User, User.id == Comment.user_id)
            .where(Comment.post_id == post_id)
            .order_by(Sentiment.created_at.desc(), Sentiment.id)
        )
        result = []
        for sentiment, comment, user in (await self.db.execute(stmt)).all():
            result.append(api_schemas.CommentSentiment(
                **api_schemas.SentimentRead.model_validate(sentiment).model_dump(),
                comment=api_schemas.CommentBrief.model_validate(comment),
                user=api_schemas.UserRead.model_validate(user) if user is not None else None,
            ))
        return result

    async def comments_with_sentiment(
        self, principal: Principal, options: CommentsWithSentimentOptions
    ) -> Tuple[List[api_schemas.CommentWithSentiment], int]:
        """Comments of visible posts flattened with post, page, author and sentiment (one row per sentiment)."""
        stmt = (
            select(Comment, Post, Page, User, Sentiment)
            .join(Post, Post.id == Comment.post_id)
            .outerjoin(Page, Page.id == Post.page_id)
            .outerjoin(User, User.id == Comment.user_id)
            .outerjoin(Sentiment, Sentiment.comment_id == Comment.id)
        )
        if options.post_id is not None:
            stmt = stmt.where(Comment.post_id == options.post_id)
        if options.sentiment:
            wanted = options.sentiment.lower()
            stmt = stmt.where(or_(
                func.lower(Sentiment.sentiment_category) == wanted,
                func.lower(Sentiment.sentiment) == wanted,
            ))
        stmt = restrict_to_visible_posts(stmt, principal, Post.id)
        total = (await self.db.execute(_count(stmt))).scalar_one()

        order_columns = {
            CommentSentimentOrderField.CREATED_AT: Comment.created_at,
            CommentSentimentOrderField.SENTIMENT_CATEGORY: Sentiment.sentiment_category,
            CommentSentimentOrderField.DISPLAY_NAME: User.display_name,
        }
        stmt = (
            stmt.order_by(_direction(order_columns[options.order_by], options.descending), Comment.id, Sentiment.id)
            .limit(options.limit)
            .offset(options.offset)
        )
        items = []
        for comment, post, page, user, sentiment in (await self.db.execute(stmt)).all():
            item = api_schemas.CommentWithSentiment.model_validate(comment)
            item.post_url = post.url
            item.post_content = post.content
            item.page_id = post.page_id
            item.page_name = page.name if page is not None else None
            if user is not None:
                item.user_display_name = user.display_name
                item.user_external_profile_id = user.external_profile_id
            if sentiment is not None:
                item.sentiment_id = sentiment.id
                item.sentiment = sentiment.sentiment
                item.sentiment_category = sentiment.sentiment_category
                item.confidence = sentiment.confidence
                item.polarity = sentiment.polarity
            items.append(item)
        return items, total

    async def user_activity_on_post(
        self, user_id: uuid.UUID, post_id: uuid.UUID, principal: Principal
    ) -> Optional[api_schemas.UserActivityOnPost]:
        """A scraped user's comments (with sentiments) and reactions on one post."""
        if not await self._post_visible(post_id, principal):
            return None
        user = await self.db.get(User, user_id)
        if user is None:
            return None

        comments = (await self.db.execute(
            select(Comment)
            .where(Comment.user_id == user_id, Comment.post_id == post_id)
            .order_by(Comment.created_at.desc(), Comment.id)
        )).scalars().all()
        sentiments = await includes.load_comment_sentiments(self.db, [c.id for c in comments])
        comment_items = []
        for comment in comments:
            item = api_schemas.CommentWithSentiments.model_validate(comment)
            item.sentiments = sentiments.get(comment.id, [])
            comment_items.append(item)

        reactions = (await self.db.execute(
            select(Reaction)
            .where(Reaction.user_id == user_id, Reaction.post_id == post_id)
            .order_by(Reaction.created_at.desc(), Reaction.id)
        )).scalars().all()

        return api_schemas.UserActivityOnPost(
            post_id=post_id,
            user=api_schemas.UserRead.model_validate(user),
            comment_count=len(comment_items),
            reaction_count=len(reactions),
            comments=comment_items,
            reactions=[api_schemas.ReactionRead.model_validate(r) for r in reactions],
        )

    # --- Dashboard figures ---

    async def total_posts(self, principal: Principal) -> int:
        stmt = restrict_to_visible_posts(select(func.count(Post.id)), principal, Post.id)
        return (await self.db.execute(stmt)).scalar_one() or 0

    def _post_level_sentiments(self, stmt: Select, principal: Principal) -> Select:
        stmt = stmt.where(
            Sentiment.post_id.is_not(None),
            Sentiment.comment_id.is_(None),
        )
        return restrict_to_visible_posts(stmt, principal, Sentiment.post_id)

    async def post_sentiment_counts(self, principal: Principal) -> Dict[str, int]:
        """Post-level sentiments counted per lowercase category."""
        category = func.lower(Sentiment.sentiment_category)
        stmt = self._post_level_sentiments(
            select(category, func.count(Sentiment.id)).where(Sentiment.sentiment_category.is_not(None)),
            principal,
        ).group_by(category)
        return {name: count for name, count in (await self.db.execute(stmt)).all()}

    async def engagement_totals(self, principal: Principal) -> Tuple[int, int, int]:
        """(visible posts, their comments, their reactions)."""
        stmt = (
            select(
                func.count(distinct(Post.id)),
                func.count(distinct(Comment.id)),
                func.count(distinct(Reaction.id)),
            )
            .select_from(Post)
            .outerjoin(Comment, Comment.post_id == Post.id)
            .outerjoin(Reaction, Reaction.post_id == Post.id)
        )
        stmt = restrict_to_visible_posts(stmt, principal, Post.id)
        posts, comments, reactions = (await self.db.execute(stmt)).one()
        return posts or 0, comments or 0, reactions or 0

    async def hourly_sentiment_counts(self, principal: Principal, since: datetime) -> List[Tuple[datetime, str, int]]:
        """(hour, lowercase category, count) of post-level sentiments created since `since`."""
        bucket = hour_bucket(Sentiment.created_at)
        category = func.lower(Sentiment.sentiment_category)
        stmt = self._post_level_sentiments(
            select(bucket, category, func.count(Sentiment.id))
            .where(Sentiment.created_at >= since, Sentiment.sentiment_category.is_not(None)),
            principal,
        ).group_by(bucket, category)
        return [tuple(row) for row in (await self.db.execute(stmt)).all()]

    async def page_counts(self, principal: Principal, added_since: datetime) -> Tuple[int, int]:
        """(pages, pages created since `added_since`); for non-admins only pages with a visible post."""
        stmt = select(
            func.count(distinct(Page.id)),
            func.count(distinct(Page.id)).filter(Page.created_at >= added_since),
        )
        if not principal.is_admin:
            stmt = restrict_to_visible_posts(stmt.select_from(Page).join(Post, Post.page_id == Page.id), principal, Post.id)
        total, added = (await self.db.execute(stmt)).one()
        return total or 0, added or 0

    async def active_pages(self, principal: Principal, since: datetime) -> int:
        """Pages with at least one (visible) post dated since `since` (posted_at, else created_at)."""
        stmt = (
            select(func.count(distinct(Page.id)))
            .select_from(Page)
            .join(Post, Post.page_id == Page.id)
            .where(func.coalesce(Post.posted_at, Post.created_at) >= since)
        )
        stmt = restrict_to_visible_posts(stmt, principal, Post.id)
        return (await self.db.execute(stmt)).scalar_one() or 0

    async def total_comments(self, principal: Principal) -> int:
        stmt = select(func.count(Comment.id))
        stmt = restrict_to_visible_posts(stmt, principal, Comment.post_id)
        return (await self.db.execute(stmt)).scalar_one() or 0

    async def posts_since(self, principal: Principal, since: datetime) -> int:
        stmt = select(func.count(Post.id)).where(func.coalesce(Post.posted_at, Post.created_at) >= since)
        stmt = restrict_to_visible_posts(stmt, principal, Post.id)
        return (await self.db.execute(stmt)).scalar_one() or 0

    async def unique_commenters(self, principal: Principal) -> int:
        stmt = select(func.count(distinct(Comment.user_id))).where(Comment.user_id.is_not(None))
        stmt = restrict_to_visible_posts(stmt, principal, Comment.post_id)
        return (await self.db.execute(stmt)).scalar_one() or 0

    async def avg_post_sentiment_confidence(self, principal: Principal) -> Optional[float]:
        stmt = self._post_level_sentiments(
            select(func.avg(Sentiment.confidence)).where(Sentiment.confidence.is_not(None)),
            principal,
        )
        return _as_float((await self.db.execute(stmt)).scalar_one())


def _as_float(value) -> Optional[float]:
    return float(value) if value is not None else None

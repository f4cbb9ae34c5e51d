# src/sentiment_dashboard/db/repositories/sentiment_repository.py

import uuid
from typing import List, Optional

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ...core.security import Principal
from ...models.social_data import Sentiment
from ...schemas import api_schemas
from ...schemas.query_options import SentimentOrderField, SentimentQueryOptions
from ..access_policy import can_access_sentiment, join_sentiment_target, visible_sentiment_clause
from . import includes

_ORDER_COLUMNS = {
    SentimentOrderField.CREATED_AT: Sentiment.created_at,
    SentimentOrderField.CONFIDENCE: Sentiment.confidence,
    SentimentOrderField.POLARITY: Sentiment.polarity,
}


class SentimentRepository:
    """
    Post-level and comment-level sentiments.
    A comment sentiment is visible when the comment's post is.
    """
    def __init__(self, db_session: AsyncSession):
        self.db = db_session

    @staticmethod
    def _filtered(stmt: Select, principal: Principal, options: SentimentQueryOptions) -> Select:
        if options.post_id is not None:
            stmt = stmt.where(Sentiment.post_id == options.post_id)
        if options.comment_id is not None:
            stmt = stmt.where(Sentiment.comment_id == options.comment_id)
        if options.sentiment_category:
            stmt = stmt.where(func.lower(Sentiment.sentiment_category) == options.sentiment_category.lower())
        if options.min_confidence is not None:
            stmt = stmt.where(Sentiment.confidence >= options.min_confidence)
        if options.max_confidence is not None:
            stmt = stmt.where(Sentiment.confidence <= options.max_confidence)
        if options.only_post:
            stmt = stmt.where(Sentiment.comment_id.is_(None))
        if options.only_comment:
            stmt = stmt.where(Sentiment.comment_id.is_not(None))

        clause = visible_sentiment_clause(principal)
        if clause is not None:
            stmt = join_sentiment_target(stmt).where(clause)
        return stmt

    async def _attach(self, sentiments, options: SentimentQueryOptions) -> List[api_schemas.SentimentDetail]:
        items = [api_schemas.SentimentDetail.model_validate(s) for s in sentiments]
        if options.include_post:
            posts = await includes.load_posts(self.db, [s.post_id for s in items])
            for s in items:
                s.post = posts.get(s.post_id)
        if options.include_comment:
            comments = await includes.load_comments(self.db, [s.comment_id for s in items])
            for s in items:
                s.comment = comments.get(s.comment_id)
        return items

    async def find_all_with_access(
        self, principal: Principal, options: SentimentQueryOptions
    ) -> List[api_schemas.SentimentDetail]:
        column = _ORDER_COLUMNS[options.order_by]
        stmt = (
            self._filtered(select(Sentiment), principal, options)
            .order_by(column.desc() if options.descending else column.asc(), Sentiment.id)
            .limit(options.limit)
            .offset(options.offset)
        )
        sentiments = (await self.db.execute(stmt)).scalars().all()
        return await self._attach(sentiments, options)

    async def count_with_access(self, principal: Principal, options: SentimentQueryOptions) -> int:
        stmt = self._filtered(select(Sentiment.id), principal, options)
        return (await self.db.execute(select(func.count()).select_from(stmt.subquery()))).scalar_one()

    async def find_by_id_with_access(
        self, sentiment_id: uuid.UUID, principal: Principal, options: SentimentQueryOptions
    ) -> Optional[api_schemas.SentimentDetail]:
        if not await can_access_sentiment(self.db, sentiment_id, principal):
            return None
        sentiment = await self.db.get(Sentiment, sentiment_id)
        if sentiment is None:
            return None
        return (await self._attach([sentiment], options))[0]

# src/sentiment_dashboard/db/repositories/page_repository.py

import uuid
from typing import List, Optional

from sqlalchemy import Select, and_, exists, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ...core.security import Principal
from ...models.social_data import Comment, Page, Post, Reaction, Sentiment
from ...schemas import api_schemas
from ...schemas.query_options import PageOrderField, PageQueryOptions
from ..access_policy import restrict_to_visible_posts

_SENTIMENTS = ("positive", "neutral", "negative")


class PageRepository:
    """
    Pages, with per-page statistics computed over the caller's visible posts.
    A non-admin caller only sees pages holding at least one visible post.
    """
    def __init__(self, db_session: AsyncSession):
        self.db = db_session

    @staticmethod
    def _visible_posts(principal: Principal):
        stmt = select(Post.id, Post.page_id, Post.posted_at, Post.created_at)
        return restrict_to_visible_posts(stmt, principal, Post.id).cte("visible_posts")

    def _stat_subqueries(self, vp):
        post_stats = (
            select(
                vp.c.page_id,
                func.count(vp.c.id).label("post_count"),
                func.max(vp.c.posted_at).label("last_post_at"),
            )
            .group_by(vp.c.page_id)
            .subquery("post_stats")
        )
        comment_stats = (
            select(vp.c.page_id, func.count(Comment.id).label("comment_count"))
            .select_from(vp)
            .join(Comment, Comment.post_id == vp.c.id)
            .group_by(vp.c.page_id)
            .subquery("comment_stats")
        )
        reaction_stats = (
            select(vp.c.page_id, func.count(Reaction.id).label("reaction_count"))
            .select_from(vp)
            .join(Reaction, Reaction.post_id == vp.c.id)
            .group_by(vp.c.page_id)
            .subquery("reaction_stats")
        )
        category = func.lower(Sentiment.sentiment_category)
        sentiment_stats = (
            select(
                vp.c.page_id,
                func.count(Sentiment.id).label("total_sentiments"),
                *[func.count(Sentiment.id).filter(category == name).label(f"{name}_sentiments") for name in _SENTIMENTS],
                func.avg(Sentiment.polarity).label("avg_polarity"),
            )
            .select_from(vp)
            .join(Sentiment, and_(Sentiment.post_id == vp.c.id, Sentiment.comment_id.is_(None)))
            .group_by(vp.c.page_id)
            .subquery("sentiment_stats")
        )
        return post_stats, comment_stats, reaction_stats, sentiment_stats

    def _statement(self, select_page: bool, principal: Principal, options: PageQueryOptions) -> Select:
        vp = self._visible_posts(principal)
        post_stats, comment_stats, reaction_stats, sentiment_stats = self._stat_subqueries(vp)

        comment_count = func.coalesce(comment_stats.c.comment_count, 0)
        reaction_count = func.coalesce(reaction_stats.c.reaction_count, 0)
        counts = {name: func.coalesce(sentiment_stats.c[f"{name}_sentiments"], 0) for name in _SENTIMENTS}

        columns = [Page] if select_page else [Page.id]
        if select_page:
            columns += [
                func.coalesce(post_stats.c.post_count, 0).label("post_count"),
                post_stats.c.last_post_at.label("last_post_at"),
                comment_count.label("comment_count"),
                reaction_count.label("reaction_count"),
                (comment_count + reaction_count).label("engagement_score"),
                func.coalesce(sentiment_stats.c.total_sentiments, 0).label("total_sentiments"),
                counts["positive"].label("positive_sentiments"),
                counts["neutral"].label("neutral_sentiments"),
                counts["negative"].label("negative_sentiments"),
                sentiment_stats.c.avg_polarity.label("avg_polarity"),
            ]

        stmt = (
            select(*columns)
            .outerjoin(post_stats, post_stats.c.page_id == Page.id)
            .outerjoin(comment_stats, comment_stats.c.page_id == Page.id)
            .outerjoin(reaction_stats, reaction_stats.c.page_id == Page.id)
            .outerjoin(sentiment_stats, sentiment_stats.c.page_id == Page.id)
        )

        if options.url is not None:
            stmt = stmt.where(Page.url == options.url)
        if options.name is not None:
            stmt = stmt.where(Page.name == options.name)
        wanted = options.sentiment.lower() if options.sentiment else None
        if wanted in counts:
            # Dominant sentiment: at least one, and no other category ahead of it.
            stmt = stmt.where(counts[wanted] > 0)
            for other in _SENTIMENTS:
                if other != wanted:
                    stmt = stmt.where(counts[wanted] >= counts[other])
        if not principal.is_admin:
            stmt = stmt.where(exists().where(vp.c.page_id == Page.id))
        return stmt

    @staticmethod
    def _order(stmt: Select, options: PageQueryOptions) -> Select:
        plain = {
            PageOrderField.NAME: Page.name,
            PageOrderField.URL: Page.url,
            PageOrderField.CREATED_AT: Page.created_at,
        }
        expression = plain.get(options.order_by)
        if expression is None:
            expression = stmt.selected_columns[options.order_by.value]
        return stmt.order_by(expression.desc() if options.descending else expression.asc(), Page.id)

    @staticmethod
    def _to_schema(row, include_stats: bool) -> api_schemas.PageDetail:
        page = row[0]
        item = api_schemas.PageDetail.model_validate(page)
        if include_stats:
            item.post_count = row.post_count
            item.last_post_at = row.last_post_at
            item.comment_count = row.comment_count
            item.reaction_count = row.reaction_count
            item.engagement_score = row.engagement_score
            item.sentiment_summary = api_schemas.PageSentimentSummary(
                total=row.total_sentiments,
                positive=row.positive_sentiments,
                neutral=row.neutral_sentiments,
                negative=row.negative_sentiments,
                average_polarity=float(row.avg_polarity) if row.avg_polarity is not None else None,
            )
        return item

    async def find_all_with_access(self, principal: Principal, options: PageQueryOptions) -> List[api_schemas.PageDetail]:
        stmt = self._order(self._statement(True, principal, options), options)
        rows = (await self.db.execute(stmt.limit(options.limit).offset(options.offset))).all()
        return [self._to_schema(row, options.include_stats) for row in rows]

    async def count_with_access(self, principal: Principal, options: PageQueryOptions) -> int:
        stmt = self._statement(False, principal, options)
        return (await self.db.execute(select(func.count()).select_from(stmt.subquery()))).scalar_one()

    async def find_by_id_with_access(
        self, page_id: uuid.UUID, principal: Principal, options: PageQueryOptions
    ) -> Optional[api_schemas.PageDetail]:
        stmt = self._statement(True, principal, options).where(Page.id == page_id)
        row = (await self.db.execute(stmt)).first()
        return self._to_schema(row, options.include_stats) if row is not None else None

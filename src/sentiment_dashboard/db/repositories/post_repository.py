# src/sentiment_dashboard/db/repositories/post_repository.py

import uuid
from typing import List, Optional

from sqlalchemy import Select, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ...core.security import Principal
from ...models.social_data import Comment, Page, Post, Reaction, Sentiment
from ...schemas import api_schemas
from ...schemas.query_options import PostOrderField, PostQueryOptions
from ..access_policy import can_access_post, restrict_to_visible_posts
from . import includes


def comment_count_expr():
    """Correlated COUNT of a post's comments."""
    return (
        select(func.count(Comment.id))
        .where(Comment.post_id == Post.id)
        .correlate(Post)
        .scalar_subquery()
    )


def reaction_count_expr():
    """Correlated COUNT of the reactions on the post itself."""
    return (
        select(func.count(Reaction.id))
        .where(Reaction.post_id == Post.id)
        .correlate(Post)
        .scalar_subquery()
    )


def latest_post_sentiment(column):
    """`column` of the newest post-level sentiment of the post, NULL when it has none."""
    return (
        select(column)
        .where(Sentiment.post_id == Post.id, Sentiment.comment_id.is_(None))
        .order_by(Sentiment.created_at.desc(), Sentiment.id.desc())
        .limit(1)
        .correlate(Post)
        .scalar_subquery()
    )


class PostRepository:
    """
    Access-filtered reads of posts.
    Every returned post carries comment_count, reaction_count and
    engagement_score (their sum), whatever the include flags say.
    """
    def __init__(self, db_session: AsyncSession):
        self.db = db_session

    def _filtered(self, stmt: Select, principal: Principal, options: PostQueryOptions) -> Select:
        """ANDs the supplied filters and the visibility rule onto `stmt`."""
        if options.page_url is not None or options.page_name is not None:
            stmt = stmt.join(Page, Page.id == Post.page_id)
            if options.page_url is not None:
                stmt = stmt.where(Page.url == options.page_url)
            if options.page_name is not None:
                stmt = stmt.where(Page.name == options.page_name)
        if options.page_id is not None:
            stmt = stmt.where(Post.page_id == options.page_id)
        if options.post_url is not None:
            stmt = stmt.where(Post.url == options.post_url)
        if options.search:
            stmt = stmt.where(Post.content.icontains(options.search, autoescape=True))
        if options.sentiment:
            wanted = options.sentiment.lower()
            stmt = stmt.where(or_(
                func.lower(latest_post_sentiment(Sentiment.sentiment_category)) == wanted,
                func.lower(latest_post_sentiment(Sentiment.sentiment)) == wanted,
            ))
        return restrict_to_visible_posts(stmt, principal, Post.id)

    def _select_with_counts(self) -> Select:
        comment_count = comment_count_expr()
        reaction_count = reaction_count_expr()
        return select(
            Post,
            comment_count.label("comment_count"),
            reaction_count.label("reaction_count"),
            (comment_count + reaction_count).label("engagement_score"),
        )

    @staticmethod
    def _order_clause(stmt: Select, options: PostQueryOptions) -> Select:
        columns = {
            PostOrderField.CREATED_AT: Post.created_at,
            PostOrderField.POSTED_AT: Post.posted_at,
            PostOrderField.CONTENT: Post.content,
        }
        if options.order_by in columns:
            expression = columns[options.order_by]
        else:
            # Labels of the derived counts in the select list.
            expression = stmt.selected_columns[options.order_by.value]
        ordered = expression.desc() if options.descending else expression.asc()
        # Post.id keeps pagination stable between equal sort keys.
        return stmt.order_by(ordered, Post.id)

    async def _attach(self, rows, options: PostQueryOptions) -> List[api_schemas.PostRead]:
        posts = []
        for post, comment_count, reaction_count, engagement_score in rows:
            posts.append(api_schemas.PostRead(
                id=post.id,
                page_id=post.page_id,
                url=post.url,
                content=post.content,
                posted_at=post.posted_at,
                created_at=post.created_at,
                comment_count=comment_count or 0,
                reaction_count=reaction_count or 0,
                engagement_score=engagement_score or 0,
            ))
        if not posts:
            return posts

        post_ids = [p.id for p in posts]
        if options.include_page:
            pages = await includes.load_pages(self.db, [p.page_id for p in posts])
            for p in posts:
                p.page = pages.get(p.page_id)
        if options.include_comments:
            comments = await includes.load_post_comments(self.db, post_ids)
            for p in posts:
                p.comments = comments.get(p.id, [])
        if options.include_sentiments:
            sentiments = await includes.load_post_sentiments(self.db, post_ids)
            for p in posts:
                p.sentiments = sentiments.get(p.id, [])
        if options.include_reactions:
            reactions = await includes.load_post_reactions(self.db, post_ids)
            for p in posts:
                p.reactions = reactions.get(p.id, [])
        return posts

    async def find_all_with_access(self, principal: Principal, options: PostQueryOptions) -> List[api_schemas.PostRead]:
        stmt = self._filtered(self._select_with_counts(), principal, options)
        stmt = self._order_clause(stmt, options).limit(options.limit).offset(options.offset)
        rows = (await self.db.execute(stmt)).all()
        return await self._attach(rows, options)

    async def count_with_access(self, principal: Principal, options: PostQueryOptions) -> int:
        stmt = self._filtered(select(Post.id), principal, options)
        return (await self.db.execute(select(func.count()).select_from(stmt.subquery()))).scalar_one()

    async def find_by_id_with_access(
        self, post_id: uuid.UUID, principal: Principal, options: PostQueryOptions
    ) -> Optional[api_schemas.PostRead]:
        """None when the post does not exist or the caller may not see it."""
        if not await can_access_post(self.db, post_id, principal):
            return None
        stmt = self._select_with_counts().where(Post.id == post_id)
        rows = (await self.db.execute(stmt)).all()
        posts = await self._attach(rows, options)
        return posts[0] if posts else None


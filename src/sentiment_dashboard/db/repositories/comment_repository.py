# src/sentiment_dashboard/db/repositories/comment_repository.py

import uuid
from typing import List, Optional

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ...core.security import Principal
from ...models.social_data import Comment
from ...schemas import api_schemas
from ...schemas.query_options import CommentOrderField, CommentQueryOptions
from ..access_policy import can_access_comment, restrict_to_visible_posts
from . import includes


class CommentRepository:
    """Comments, visible exactly when their post is visible."""

    def __init__(self, db_session: AsyncSession):
        self.db = db_session

    @staticmethod
    def _filtered(stmt: Select, principal: Principal, options: CommentQueryOptions) -> Select:
        if options.post_id is not None:
            stmt = stmt.where(Comment.post_id == options.post_id)
        if options.user_id is not None:
            stmt = stmt.where(Comment.user_id == options.user_id)
        if options.url is not None:
            stmt = stmt.where(Comment.url == options.url)
        return restrict_to_visible_posts(stmt, principal, Comment.post_id)

    async def _attach(self, comments, options: CommentQueryOptions) -> List[api_schemas.CommentRead]:
        items = [api_schemas.CommentRead.model_validate(c) for c in comments]
        if not items:
            return items
        comment_ids = [c.id for c in items]
        if options.include_user:
            users = await includes.load_users(self.db, [c.user_id for c in items])
            for c in items:
                c.user = users.get(c.user_id)
        if options.include_post:
            posts = await includes.load_posts(self.db, [c.post_id for c in items])
            for c in items:
                c.post = posts.get(c.post_id)
        if options.include_sentiments:
            sentiments = await includes.load_comment_sentiments(self.db, comment_ids)
            for c in items:
                c.sentiments = sentiments.get(c.id, [])
        if options.include_reactions:
            reactions = await includes.load_comment_reactions(self.db, comment_ids)
            for c in items:
                c.reactions = reactions.get(c.id, [])
        return items

    async def find_all_with_access(self, principal: Principal, options: CommentQueryOptions) -> List[api_schemas.CommentRead]:
        column = Comment.posted_at if options.order_by == CommentOrderField.POSTED_AT else Comment.created_at
        stmt = (
            self._filtered(select(Comment), principal, options)
            .order_by(column.desc() if options.descending else column.asc(), Comment.id)
            .limit(options.limit)
            .offset(options.offset)
        )
        comments = (await self.db.execute(stmt)).scalars().all()
        return await self._attach(comments, options)

    async def count_with_access(self, principal: Principal, options: CommentQueryOptions) -> int:
        stmt = self._filtered(select(Comment.id), principal, options)
        return (await self.db.execute(select(func.count()).select_from(stmt.subquery()))).scalar_one()

    async def find_by_id_with_access(
        self, comment_id: uuid.UUID, principal: Principal, options: CommentQueryOptions
    ) -> Optional[api_schemas.CommentRead]:
        if not await can_access_comment(self.db, comment_id, principal):
            return None
        comment = await self.db.get(Comment, comment_id)
        if comment is None:
            return None
        return (await self._attach([comment], options))[0]

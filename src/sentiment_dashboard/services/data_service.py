# src/sentiment_dashboard/services/data_service.py

import logging
import uuid
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import translate_store_errors
from ..core.security import Principal
from ..db.repositories.comment_repository import CommentRepository
from ..db.repositories.page_repository import PageRepository
from ..db.repositories.post_repository import PostRepository
from ..db.repositories.sentiment_repository import SentimentRepository
from ..db.repositories.user_repository import UserRepository
from ..schemas import api_schemas
from ..schemas.query_options import (CommentQueryOptions, PageQueryOptions, PostQueryOptions,
                                     SentimentQueryOptions, UserQueryOptions)

logger = logging.getLogger(__name__)


class DataService:
    """
    Read facade over the entity readers.
    Lists come back paginated with the total row count; single reads return
    None when the row does not exist or is hidden from the caller.
    """
    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.posts = PostRepository(self.db)
        self.comments = CommentRepository(self.db)
        self.sentiments = SentimentRepository(self.db)
        self.users = UserRepository(self.db)
        self.pages = PageRepository(self.db)

    # --- Posts ---

    @translate_store_errors
    async def list_posts(self, principal: Principal, options: PostQueryOptions) -> api_schemas.Paginated[api_schemas.PostRead]:
        items = await self.posts.find_all_with_access(principal, options)
        total = await self.posts.count_with_access(principal, options)
        logger.info("Posts listed", extra={"returned": len(items), "total": total})
        return api_schemas.Paginated[api_schemas.PostRead](
            total=total, limit=options.limit, offset=options.offset, items=items
        )

    @translate_store_errors
    async def get_post(self, post_id: uuid.UUID, principal: Principal, options: PostQueryOptions) -> Optional[api_schemas.PostRead]:
        return await self.posts.find_by_id_with_access(post_id, principal, options)

    # --- Comments ---

    @translate_store_errors
    async def list_comments(self, principal: Principal, options: CommentQueryOptions) -> api_schemas.Paginated[api_schemas.CommentRead]:
        items = await self.comments.find_all_with_access(principal, options)
        total = await self.comments.count_with_access(principal, options)
        return api_schemas.Paginated[api_schemas.CommentRead](
            total=total, limit=options.limit, offset=options.offset, items=items
        )

    @translate_store_errors
    async def get_comment(self, comment_id: uuid.UUID, principal: Principal, options: CommentQueryOptions) -> Optional[api_schemas.CommentRead]:
        return await self.comments.find_by_id_with_access(comment_id, principal, options)

    # --- Sentiments ---

    @translate_store_errors
    async def list_sentiments(
        self, principal: Principal, options: SentimentQueryOptions
    ) -> api_schemas.Paginated[api_schemas.SentimentDetail]:
        items = await self.sentiments.find_all_with_access(principal, options)
        total = await self.sentiments.count_with_access(principal, options)
        return api_schemas.Paginated[api_schemas.SentimentDetail](
            total=total, limit=options.limit, offset=options.offset, items=items
        )

    @translate_store_errors
    async def get_sentiment(
        self, sentiment_id: uuid.UUID, principal: Principal, options: SentimentQueryOptions
    ) -> Optional[api_schemas.SentimentDetail]:
        return await self.sentiments.find_by_id_with_access(sentiment_id, principal, options)

    # --- Scraped users ---

    @translate_store_errors
    async def list_users(self, principal: Principal, options: UserQueryOptions) -> api_schemas.Paginated[api_schemas.UserDetail]:
        items = await self.users.find_all_with_access(principal, options)
        total = await self.users.count_with_access(principal, options)
        logger.info("Users listed", extra={"returned": len(items), "total": total, "with_stats": options.include_stats})
        return api_schemas.Paginated[api_schemas.UserDetail](
            total=total, limit=options.limit, offset=options.offset, items=items
        )

    @translate_store_errors
    async def get_user(self, identifier: str, principal: Principal, options: UserQueryOptions) -> Optional[api_schemas.UserDetail]:
        """`identifier` is the user UUID or the external profile id."""
        return await self.users.find_by_id_with_access(identifier, principal, options)

    # --- Pages ---

    @translate_store_errors
    async def list_pages(self, principal: Principal, options: PageQueryOptions) -> api_schemas.Paginated[api_schemas.PageDetail]:
        items = await self.pages.find_all_with_access(principal, options)
        total = await self.pages.count_with_access(principal, options)
        return api_schemas.Paginated[api_schemas.PageDetail](
            total=total, limit=options.limit, offset=options.offset, items=items
        )

    @translate_store_errors
    async def get_page(self, page_id: uuid.UUID, principal: Principal, options: PageQueryOptions) -> Optional[api_schemas.PageDetail]:
        return await self.pages.find_by_id_with_access(page_id, principal, options)

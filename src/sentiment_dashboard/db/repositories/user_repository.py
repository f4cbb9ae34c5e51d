# src/sentiment_dashboard/db/repositories/user_repository.py

# ==============================================================================
# SCRAPED USERS (COMMENT AUTHORS)
# ==============================================================================
# A non-admin caller sees a scraped user only if the user commented on, or
# reacted to, a post the caller can see. Every count and statistic attached to
# a user is computed over visible posts only, so nothing about hidden posts
# can be inferred from a user profile.
# ==============================================================================

import uuid
from collections import defaultdict
from typing import Dict, List, Optional

from sqlalchemy import Select, distinct, exists, func, literal, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from ...core.security import Principal
from ...models.social_data import Comment, Page, Post, Reaction, Sentiment, User
from ...schemas import api_schemas
from ...schemas.query_options import UserOrderField, UserQueryOptions
from ..access_policy import visible_post_clause
from . import includes

TOP_PAGES_LIMIT = 3

# Comment a reaction was left on (reactions target a post or a comment).
reaction_comment = aliased(Comment, name="reaction_comment")


def _and_visible(conditions: list, principal: Principal, post_id_column) -> list:
    clause = visible_post_clause(principal, post_id_column)
    return conditions if clause is None else conditions + [clause]


def _visible_reaction_clause(principal: Principal):
    """Reaction on a visible post, or on a comment of a visible post. Needs the reaction_comment join."""
    if principal.is_admin:
        return None
    return or_(
        visible_post_clause(principal, Reaction.post_id),
        visible_post_clause(principal, reaction_comment.post_id),
    )


def _category_count(category: str):
    return func.count(distinct(Comment.id)).filter(func.lower(Sentiment.sentiment_category) == category)


class UserRepository:
    def __init__(self, db_session: AsyncSession):
        self.db = db_session

    # --- Statement building ---

    def _visibility(self, principal: Principal):
        if principal.is_admin:
            return None
        commented = exists().where(*_and_visible([Comment.user_id == User.id], principal, Comment.post_id))
        reacted = exists(
            select(Reaction.id)
            .outerjoin(reaction_comment, Reaction.comment_id == reaction_comment.id)
            .where(Reaction.user_id == User.id, _visible_reaction_clause(principal))
        )
        return or_(commented, reacted)

    def _derived_columns(self, principal: Principal):
        visible_comments = _and_visible([Comment.user_id == User.id], principal, Comment.post_id)
        comment_count = (
            select(func.count(Comment.id)).where(*visible_comments).correlate(User).scalar_subquery()
        )
        last_comment_at = (
            select(func.max(Comment.created_at)).where(*visible_comments).correlate(User).scalar_subquery()
        )
        reaction_stmt = (
            select(func.count(Reaction.id))
            .select_from(Reaction)
            .outerjoin(reaction_comment, Reaction.comment_id == reaction_comment.id)
            .where(Reaction.user_id == User.id)
        )
        reaction_clause = _visible_reaction_clause(principal)
        if reaction_clause is not None:
            reaction_stmt = reaction_stmt.where(reaction_clause)
        reaction_count = reaction_stmt.correlate(User).scalar_subquery()
        return (
            comment_count.label("comment_count"),
            reaction_count.label("reaction_count"),
            last_comment_at.label("last_comment_at"),
        )

    def _filtered(self, stmt: Select, principal: Principal, options: UserQueryOptions) -> Select:
        if options.external_profile_id is not None:
            stmt = stmt.where(User.external_profile_id == options.external_profile_id)
        if options.search:
            stmt = stmt.where(User.display_name.icontains(options.search, autoescape=True))
        if options.only_with_comments:
            stmt = stmt.where(
                exists().where(*_and_visible([Comment.user_id == User.id], principal, Comment.post_id))
            )
        clause = self._visibility(principal)
        return stmt if clause is None else stmt.where(clause)

    # --- Includes ---

    async def _load_comments(self, principal: Principal, user_ids: List[uuid.UUID]) -> Dict[uuid.UUID, List[api_schemas.CommentWithSentiments]]:
        stmt = (
            select(Comment)
            .where(*_and_visible([Comment.user_id.in_(user_ids)], principal, Comment.post_id))
            .order_by(Comment.created_at.desc(), Comment.id)
        )
        comments = (await self.db.execute(stmt)).scalars().all()
        sentiments = await includes.load_comment_sentiments(self.db, [c.id for c in comments])
        grouped: Dict[uuid.UUID, List[api_schemas.CommentWithSentiments]] = defaultdict(list)
        for comment in comments:
            item = api_schemas.CommentWithSentiments.model_validate(comment)
            item.sentiments = sentiments.get(comment.id, [])
            grouped[comment.user_id].append(item)
        return grouped

    async def _load_reactions(self, principal: Principal, user_ids: List[uuid.UUID]) -> Dict[uuid.UUID, List[api_schemas.ReactionRead]]:
        stmt = (
            select(Reaction)
            .outerjoin(reaction_comment, Reaction.comment_id == reaction_comment.id)
            .where(Reaction.user_id.in_(user_ids))
            .order_by(Reaction.created_at.desc(), Reaction.id)
        )
        clause = _visible_reaction_clause(principal)
        if clause is not None:
            stmt = stmt.where(clause)
        grouped: Dict[uuid.UUID, List[api_schemas.ReactionRead]] = defaultdict(list)
        for reaction in (await self.db.execute(stmt)).scalars().all():
            grouped[reaction.user_id].append(api_schemas.ReactionRead.model_validate(reaction))
        return grouped

    async def _load_stats(self, principal: Principal, user_ids: List[uuid.UUID]) -> Dict[uuid.UUID, api_schemas.UserStats]:
        """Heavy per-user statistics, one grouped query per figure for the whole batch."""
        stats = {user_id: api_schemas.UserStats() for user_id in user_ids}

        comment_rows = await self.db.execute(
            select(Comment.user_id, func.count(Comment.id), func.count(distinct(Comment.post_id)))
            .where(*_and_visible([Comment.user_id.in_(user_ids)], principal, Comment.post_id))
            .group_by(Comment.user_id)
        )
        for user_id, total_comments, posts_commented in comment_rows.all():
            stats[user_id].total_comments = total_comments or 0
            stats[user_id].posts_commented = posts_commented or 0

        reaction_stmt = (
            select(Reaction.user_id, func.count(Reaction.id))
            .outerjoin(reaction_comment, Reaction.comment_id == reaction_comment.id)
            .where(Reaction.user_id.in_(user_ids))
            .group_by(Reaction.user_id)
        )
        reaction_clause = _visible_reaction_clause(principal)
        if reaction_clause is not None:
            reaction_stmt = reaction_stmt.where(reaction_clause)
        for user_id, total_reactions in (await self.db.execute(reaction_stmt)).all():
            stats[user_id].total_reactions = total_reactions or 0

        sentiment_rows = await self.db.execute(
            select(
                Comment.user_id,
                _category_count("positive"),
                _category_count("neutral"),
                _category_count("negative"),
                func.avg(Sentiment.polarity),
            )
            .select_from(Sentiment)
            .join(Comment, Sentiment.comment_id == Comment.id)
            .where(*_and_visible([Comment.user_id.in_(user_ids)], principal, Comment.post_id))
            .group_by(Comment.user_id)
        )
        for user_id, positive, neutral, negative, avg_polarity in sentiment_rows.all():
            stats[user_id].sentiment_breakdown = api_schemas.SentimentBreakdown(
                positive=positive or 0,
                neutral=neutral or 0,
                negative=negative or 0,
                average_polarity=float(avg_polarity) if avg_polarity is not None else None,
            )

        page_name = func.coalesce(Page.name, Page.url, literal("Unknown Page"))
        page_rows = await self.db.execute(
            select(
                Comment.user_id,
                Post.page_id,
                page_name.label("page_name"),
                func.count(distinct(Comment.id)).label("comment_count"),
                _category_count("positive"),
                _category_count("neutral"),
                _category_count("negative"),
                func.avg(Sentiment.polarity),
            )
            .select_from(Comment)
            .join(Post, Comment.post_id == Post.id)
            .outerjoin(Page, Post.page_id == Page.id)
            .outerjoin(Sentiment, Sentiment.comment_id == Comment.id)
            .where(*_and_visible([Comment.user_id.in_(user_ids)], principal, Comment.post_id))
            .group_by(Comment.user_id, Post.page_id, Page.name, Page.url)
        )
        per_user: Dict[uuid.UUID, List[api_schemas.TopPage]] = defaultdict(list)
        for user_id, page_id, name, comment_count, positive, neutral, negative, avg_polarity in page_rows.all():
            per_user[user_id].append(api_schemas.TopPage(
                page_id=page_id,
                page_name=name,
                comment_count=comment_count or 0,
                sentiment_breakdown=api_schemas.SentimentBreakdown(
                    positive=positive or 0,
                    neutral=neutral or 0,
                    negative=negative or 0,
                    average_polarity=float(avg_polarity) if avg_polarity is not None else None,
                ),
            ))
        for user_id, pages in per_user.items():
            pages.sort(key=lambda p: (-p.comment_count, p.page_name))
            stats[user_id].top_pages = pages[:TOP_PAGES_LIMIT]

        return stats

    async def _build(self, rows, principal: Principal, options: UserQueryOptions) -> List[api_schemas.UserDetail]:
        users = []
        for user, comment_count, reaction_count, last_comment_at in rows:
            item = api_schemas.UserDetail.model_validate(user)
            if options.include_counts:
                item.comment_count = comment_count or 0
                item.reaction_count = reaction_count or 0
                item.last_comment_at = last_comment_at
            users.append(item)
        if not users:
            return users

        user_ids = [u.id for u in users]
        if options.include_comments:
            comments = await self._load_comments(principal, user_ids)
            for u in users:
                u.comments = comments.get(u.id, [])
        if options.include_reactions:
            reactions = await self._load_reactions(principal, user_ids)
            for u in users:
                u.reactions = reactions.get(u.id, [])
        if options.include_stats:
            stats = await self._load_stats(principal, user_ids)
            for u in users:
                u.stats = stats[u.id]
        return users

    # --- Public reads ---

    async def find_all_with_access(self, principal: Principal, options: UserQueryOptions) -> List[api_schemas.UserDetail]:
        stmt = self._filtered(select(User, *self._derived_columns(principal)), principal, options)
        order_columns = {
            UserOrderField.CREATED_AT: User.created_at,
            UserOrderField.DISPLAY_NAME: User.display_name,
        }
        expression = order_columns.get(options.order_by)
        if expression is None:
            expression = stmt.selected_columns[options.order_by.value]
        stmt = (
            stmt.order_by(expression.desc() if options.descending else expression.asc(), User.id)
            .limit(options.limit)
            .offset(options.offset)
        )
        rows = (await self.db.execute(stmt)).all()
        return await self._build(rows, principal, options)

    async def count_with_access(self, principal: Principal, options: UserQueryOptions) -> int:
        stmt = self._filtered(select(User.id), principal, options)
        return (await self.db.execute(select(func.count()).select_from(stmt.subquery()))).scalar_one()

    async def find_by_id_with_access(
        self, identifier: str, principal: Principal, options: UserQueryOptions
    ) -> Optional[api_schemas.UserDetail]:
        """Looks the user up by UUID or, failing that, by external profile id."""
        try:
            condition = User.id == uuid.UUID(str(identifier))
        except ValueError:
            condition = User.external_profile_id == str(identifier)
        stmt = select(User, *self._derived_columns(principal)).where(condition)
        clause = self._visibility(principal)
        if clause is not None:
            stmt = stmt.where(clause)
        stmt = stmt.order_by(User.created_at, User.id).limit(1)
        rows = (await self.db.execute(stmt)).all()
        users = await self._build(rows, principal, options)
        return users[0] if users else None

# src/sentiment_dashboard/db/access_policy.py

# ==============================================================================
# POST VISIBILITY RULE
# ==============================================================================
# Admins see every post. Any other caller sees a post only through a row in
# `user_post_access`; comments and sentiments inherit the visibility of the
# post they belong to.
#
# The rule exists in two shapes built from the same pieces:
#   * SQL clauses (`visible_post_clause`, `visible_sentiment_clause`) that list
#     readers and aggregators AND into their WHERE;
#   * pre-checks (`can_access_post`, `can_access_comment`,
#     `can_access_sentiment`) used before a by-id read.
# The admin case is decided first, in Python, and never reaches SQL.
# ==============================================================================

import uuid
from typing import Optional

from sqlalchemy import ColumnElement, exists, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from sentiment_dashboard.core.security import Principal
from sentiment_dashboard.models.auth import UserPostAccess
from sentiment_dashboard.models.social_data import Comment, Sentiment

# Comment a sentiment points at, joined with LEFT OUTER JOIN so that
# post-level sentiments keep their row.
sentiment_comment = aliased(Comment, name="sentiment_comment")


def grant_exists(principal: Principal, post_id_column) -> ColumnElement[bool]:
    """EXISTS (grant for this caller on `post_id_column`). Correlates with the outer query."""
    return exists().where(
        UserPostAccess.auth_user_id == principal.user_id,
        UserPostAccess.post_id == post_id_column,
    )


def visible_post_clause(principal: Principal, post_id_column) -> Optional[ColumnElement[bool]]:
    """
    Filter restricting `post_id_column` to posts the caller may see.
    Returns None for admins: no filter at all.
    """
    if principal.is_admin:
        return None
    return grant_exists(principal, post_id_column)


def restrict_to_visible_posts(stmt, principal: Principal, post_id_column):
    """Applies `visible_post_clause` to a select, if there is one."""
    clause = visible_post_clause(principal, post_id_column)
    return stmt if clause is None else stmt.where(clause)


def join_sentiment_target(stmt):
    """LEFT JOIN from `sentiments` to the comment it scores (if any)."""
    return stmt.outerjoin(sentiment_comment, Sentiment.comment_id == sentiment_comment.id)


def sentiment_post_id():
    """Post a sentiment belongs to, directly or through its comment. Needs `join_sentiment_target`."""
    return func.coalesce(Sentiment.post_id, sentiment_comment.post_id)


def visible_sentiment_clause(principal: Principal) -> Optional[ColumnElement[bool]]:
    """
    Visibility of a sentiment row: a grant on its own post OR on the post of its comment.
    The statement must already carry `join_sentiment_target`.
    """
    if principal.is_admin:
        return None
    return or_(
        grant_exists(principal, Sentiment.post_id),
        grant_exists(principal, sentiment_comment.post_id),
    )


async def can_access_post(db: AsyncSession, post_id: uuid.UUID, principal: Principal) -> bool:
    """True for admins; otherwise True iff a grant exists. Unknown posts are simply not granted."""
    if principal.is_admin:
        return True
    stmt = (
        select(UserPostAccess.id)
        .where(UserPostAccess.auth_user_id == principal.user_id, UserPostAccess.post_id == post_id)
        .limit(1)
    )
    return (await db.execute(stmt)).first() is not None


async def can_access_comment(db: AsyncSession, comment_id: uuid.UUID, principal: Principal) -> bool:
    """Comment visibility, resolved through its post in a single statement."""
    if principal.is_admin:
        return True
    stmt = (
        select(Comment.id)
        .join(UserPostAccess, UserPostAccess.post_id == Comment.post_id)
        .where(Comment.id == comment_id, UserPostAccess.auth_user_id == principal.user_id)
        .limit(1)
    )
    return (await db.execute(stmt)).first() is not None


async def can_access_sentiment(db: AsyncSession, sentiment_id: uuid.UUID, principal: Principal) -> bool:
    if principal.is_admin:
        return True
    stmt = join_sentiment_target(select(Sentiment.id)).where(
        Sentiment.id == sentiment_id,
        visible_sentiment_clause(principal),
    ).limit(1)
    return (await db.execute(stmt)).first() is not None

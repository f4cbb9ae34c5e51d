# src/sentiment_dashboard/db/repositories/includes.py

# Batched loaders for the optional sub-objects of the readers.
# Each loader issues one query for the whole id list and groups the rows in
# memory by foreign key, never one query per parent row.

import uuid
from collections import defaultdict
from typing import Dict, Iterable, List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ...models.social_data import Comment, Page, Post, Reaction, Sentiment, User
from ...schemas import api_schemas


def _distinct(ids: Iterable) -> List[uuid.UUID]:
    return list({i for i in ids if i is not None})


async def load_pages(db: AsyncSession, page_ids: Iterable) -> Dict[uuid.UUID, api_schemas.PageRead]:
    ids = _distinct(page_ids)
    if not ids:
        return {}
    rows = (await db.execute(select(Page).where(Page.id.in_(ids)))).scalars().all()
    return {page.id: api_schemas.PageRead.model_validate(page) for page in rows}


async def load_users(db: AsyncSession, user_ids: Iterable) -> Dict[uuid.UUID, api_schemas.UserRead]:
    ids = _distinct(user_ids)
    if not ids:
        return {}
    rows = (await db.execute(select(User).where(User.id.in_(ids)))).scalars().all()
    return {user.id: api_schemas.UserRead.model_validate(user) for user in rows}


async def load_posts(db: AsyncSession, post_ids: Iterable) -> Dict[uuid.UUID, api_schemas.PostBrief]:
    """Posts with their page attached."""
    ids = _distinct(post_ids)
    if not ids:
        return {}
    rows = (await db.execute(
        select(Post, Page).outerjoin(Page, Page.id == Post.page_id).where(Post.id.in_(ids))
    )).all()
    return {post.id: post_brief(post, page) for post, page in rows}


def post_brief(post: Post, page) -> api_schemas.PostBrief:
    """PostBrief from a Post row and its (optional) Page row."""
    return api_schemas.PostBrief(
        id=post.id, page_id=post.page_id, url=post.url, content=post.content,
        posted_at=post.posted_at, created_at=post.created_at,
        page=api_schemas.PageRead.model_validate(page) if page is not None else None,
    )


async def load_comments(db: AsyncSession, comment_ids: Iterable) -> Dict[uuid.UUID, api_schemas.CommentBrief]:
    ids = _distinct(comment_ids)
    if not ids:
        return {}
    rows = (await db.execute(select(Comment).where(Comment.id.in_(ids)))).scalars().all()
    return {comment.id: api_schemas.CommentBrief.model_validate(comment) for comment in rows}


async def load_post_comments(db: AsyncSession, post_ids: Iterable) -> Dict[uuid.UUID, List[api_schemas.CommentRead]]:
    """Comments of the posts (newest first), each with its author."""
    ids = _distinct(post_ids)
    grouped: Dict[uuid.UUID, List[api_schemas.CommentRead]] = defaultdict(list)
    if not ids:
        return grouped
    stmt = (
        select(Comment, User)
        .outerjoin(User, User.id == Comment.user_id)
        .where(Comment.post_id.in_(ids))
        .order_by(Comment.created_at.desc(), Comment.id)
    )
    for comment, user in (await db.execute(stmt)).all():
        item = api_schemas.CommentRead.model_validate(comment)
        item.user = api_schemas.UserRead.model_validate(user) if user is not None else None
        grouped[comment.post_id].append(item)
    return grouped


async def load_post_sentiments(db: AsyncSession, post_ids: Iterable) -> Dict[uuid.UUID, List[api_schemas.SentimentRead]]:
    """Post-level sentiments only (comment_id IS NULL), newest first."""
    ids = _distinct(post_ids)
    grouped: Dict[uuid.UUID, List[api_schemas.SentimentRead]] = defaultdict(list)
    if not ids:
        return grouped
    stmt = (
        select(Sentiment)
        .where(Sentiment.post_id.in_(ids), Sentiment.comment_id.is_(None))
        .order_by(Sentiment.created_at.desc(), Sentiment.id)
    )
    for sentiment in (await db.execute(stmt)).scalars().all():
        grouped[sentiment.post_id].append(api_schemas.SentimentRead.model_validate(sentiment))
    return grouped


async def load_comment_sentiments(db: AsyncSession, comment_ids: Iterable) -> Dict[uuid.UUID, List[api_schemas.SentimentRead]]:
    ids = _distinct(comment_ids)
    grouped: Dict[uuid.UUID, List[api_schemas.SentimentRead]] = defaultdict(list)
    if not ids:
        return grouped
    stmt = (
        select(Sentiment)
        .where(Sentiment.comment_id.in_(ids))
        .order_by(Sentiment.created_at.desc(), Sentiment.id)
    )
    for sentiment in (await db.execute(stmt)).scalars().all():
        grouped[sentiment.comment_id].append(api_schemas.SentimentRead.model_validate(sentiment))
    return grouped


async def load_post_reactions(db: AsyncSession, post_ids: Iterable) -> Dict[uuid.UUID, List[api_schemas.ReactionRead]]:
    ids = _distinct(post_ids)
    grouped: Dict[uuid.UUID, List[api_schemas.ReactionRead]] = defaultdict(list)
    if not ids:
        return grouped
    stmt = select(Reaction).where(Reaction.post_id.in_(ids)).order_by(Reaction.created_at.desc(), Reaction.id)
    for reaction in (await db.execute(stmt)).scalars().all():
        grouped[reaction.post_id].append(api_schemas.ReactionRead.model_validate(reaction))
    return grouped


async def load_comment_reactions(db: AsyncSession, comment_ids: Iterable) -> Dict[uuid.UUID, List[api_schemas.ReactionRead]]:
    ids = _distinct(comment_ids)
    grouped: Dict[uuid.UUID, List[api_schemas.ReactionRead]] = defaultdict(list)
    if not ids:
        return grouped
    stmt = select(Reaction).where(Reaction.comment_id.in_(ids)).order_by(Reaction.created_at.desc(), Reaction.id)
    for reaction in (await db.execute(stmt)).scalars().all():
        grouped[reaction.comment_id].append(api_schemas.ReactionRead.model_validate(reaction))
    return grouped

# src/sentiment_dashboard/models/social_data.py

# ==============================================================================
# ORM MODELS: SCRAPED SOCIAL DATA
# ==============================================================================
# Pages, posts, comments, the scraped users who wrote the comments, reactions
# and sentiment scores. The ingestion pipeline writes these tables; the API
# only reads them (apart from the administrative seed/clear).
# Derived counts (comments, reactions, engagement) are never stored here.
# ==============================================================================

import enum
import uuid
from datetime import datetime, timezone
from typing import Dict, Optional

from sqlalchemy import (JSON, CheckConstraint, DateTime, Enum, Float, ForeignKey, String, Text, Uuid,
                        event, func)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from sentiment_dashboard.db.base_class import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ReactionType(str, enum.Enum):
    LIKE = "like"
    LOVE = "love"
    SAD = "sad"
    ANGRY = "angry"
    HAHA = "haha"
    WOW = "wow"


class User(Base):
    """A scraped social identity (comment author / reacting account)."""
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    # Profile id on the source network. Not unique: the same person can be
    # ingested twice by different scrape runs.
    external_profile_id: Mapped[Optional[str]] = mapped_column(String, index=True)
    display_name: Mapped[Optional[str]] = mapped_column(String)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now())


class Page(Base):
    """A social-media page (source of posts)."""
    __tablename__ = "pages"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    url: Mapped[Optional[str]] = mapped_column(String, index=True)
    name: Mapped[Optional[str]] = mapped_column(String, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now())


class Post(Base):
    __tablename__ = "posts"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    page_id: Mapped[Optional[uuid.UUID]] = mapped_column(ForeignKey("pages.id", ondelete="SET NULL"), index=True)
    url: Mapped[Optional[str]] = mapped_column(String, index=True)
    content: Mapped[Optional[str]] = mapped_column(Text)

    # Timestamp reported by the source; may be missing.
    posted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), index=True)
    # Ingestion time.
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now(), index=True)


class Comment(Base):
    __tablename__ = "comments"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    post_id: Mapped[Optional[uuid.UUID]] = mapped_column(ForeignKey("posts.id", ondelete="CASCADE"), index=True)
    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), index=True)
    url: Mapped[Optional[str]] = mapped_column(String)
    content: Mapped[Optional[str]] = mapped_column(Text)
    posted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now(), index=True)


class Sentiment(Base):
    """
    Sentiment score of exactly one post or exactly one comment.

    `sentiment` is the coarse label (positive/negative/neutral),
    `sentiment_category` the finer one produced by the model (joy, anger, ...).
    Rows with `comment_id IS NULL` are "post-level" sentiments.
    """
    __tablename__ = "sentiments"
    __table_args__ = (
        CheckConstraint(
            "(post_id IS NOT NULL AND comment_id IS NULL) OR (post_id IS NULL AND comment_id IS NOT NULL)",
            name="ck_sentiments_single_target",
        ),
        CheckConstraint("confidence IS NULL OR (confidence >= 0 AND confidence <= 1)", name="ck_sentiments_confidence_range"),
        CheckConstraint("polarity IS NULL OR (polarity >= -1 AND polarity <= 1)", name="ck_sentiments_polarity_range"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    post_id: Mapped[Optional[uuid.UUID]] = mapped_column(ForeignKey("posts.id", ondelete="CASCADE"), index=True)
    comment_id: Mapped[Optional[uuid.UUID]] = mapped_column(ForeignKey("comments.id", ondelete="CASCADE"), index=True)

    sentiment: Mapped[Optional[str]] = mapped_column(String(32))
    sentiment_category: Mapped[Optional[str]] = mapped_column(String(64), index=True)
    confidence: Mapped[Optional[float]] = mapped_column(Float)
    polarity: Mapped[Optional[float]] = mapped_column(Float)
    probabilities: Mapped[Optional[Dict[str, float]]] = mapped_column(JSON().with_variant(JSONB(), "postgresql"))

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now(), index=True)


class Reaction(Base):
    __tablename__ = "reactions"
    __table_args__ = (
        CheckConstraint(
            "(post_id IS NOT NULL AND comment_id IS NULL) OR (post_id IS NULL AND comment_id IS NOT NULL)",
            name="ck_reactions_single_target",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), index=True)
    post_id: Mapped[Optional[uuid.UUID]] = mapped_column(ForeignKey("posts.id", ondelete="CASCADE"), index=True)
    comment_id: Mapped[Optional[uuid.UUID]] = mapped_column(ForeignKey("comments.id", ondelete="CASCADE"), index=True)
    reaction_type: Mapped[ReactionType] = mapped_column(
        Enum(ReactionType, name="reaction_type", values_callable=lambda e: [m.value for m in e])
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now())


@event.listens_for(Sentiment, "before_insert")
@event.listens_for(Sentiment, "before_update")
@event.listens_for(Reaction, "before_insert")
@event.listens_for(Reaction, "before_update")
def _check_single_target(mapper, connection, target):
    """Rejects rows that point at both a post and a comment, or at neither."""
    if (target.post_id is None) == (target.comment_id is None):
        raise ValueError(
            f"{type(target).__name__} must reference exactly one of post_id / comment_id "
            f"(post_id={target.post_id}, comment_id={target.comment_id})"
        )

# src/sentiment_dashboard/schemas/api_schemas.py

# ==============================================================================
# API CONTRACT
# ==============================================================================
# Response and request bodies of the HTTP API. `*Read` schemas mirror one ORM
# row; the richer schemas add the optional sub-objects and derived counts the
# readers attach. Optional sub-objects are None when not requested.
# ==============================================================================

import uuid
from datetime import datetime
from typing import Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from ..models.social_data import ReactionType

T = TypeVar("T")


class Paginated(BaseModel, Generic[T]):
    """A page of results plus the total number of matching rows."""
    total: int
    limit: int
    offset: int
    items: List[T]


# --- Plain rows ---

class PageRead(BaseModel):
    id: uuid.UUID
    url: Optional[str] = None
    name: Optional[str] = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class UserRead(BaseModel):
    id: uuid.UUID
    external_profile_id: Optional[str] = None
    display_name: Optional[str] = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class SentimentRead(BaseModel):
    id: uuid.UUID
    post_id: Optional[uuid.UUID] = None
    comment_id: Optional[uuid.UUID] = None
    sentiment: Optional[str] = None
    sentiment_category: Optional[str] = None
    confidence: Optional[float] = None
    polarity: Optional[float] = None
    probabilities: Optional[Dict[str, float]] = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class ReactionRead(BaseModel):
    id: uuid.UUID
    user_id: Optional[uuid.UUID] = None
    post_id: Optional[uuid.UUID] = None
    comment_id: Optional[uuid.UUID] = None
    reaction_type: ReactionType
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class PostBrief(BaseModel):
    id: uuid.UUID
    page_id: Optional[uuid.UUID] = None
    url: Optional[str] = None
    content: Optional[str] = None
    posted_at: Optional[datetime] = None
    created_at: datetime
    page: Optional[PageRead] = None
    model_config = ConfigDict(from_attributes=True)


class CommentBrief(BaseModel):
    id: uuid.UUID
    post_id: Optional[uuid.UUID] = None
    user_id: Optional[uuid.UUID] = None
    url: Optional[str] = None
    content: Optional[str] = None
    posted_at: Optional[datetime] = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


# --- Enriched entities ---

class CommentRead(CommentBrief):
    user: Optional[UserRead] = None
    post: Optional[PostBrief] = None
    sentiments: Optional[List[SentimentRead]] = None
    reactions: Optional[List[ReactionRead]] = None


class PostRead(BaseModel):
    id: uuid.UUID
    page_id: Optional[uuid.UUID] = None
    url: Optional[str] = None
    content: Optional[str] = None
    posted_at: Optional[datetime] = None
    created_at: datetime

    # Derived, always present.
    comment_count: int = 0
    reaction_count: int = 0
    engagement_score: int = 0

    page: Optional[PageRead] = None
    comments: Optional[List[CommentRead]] = None
    sentiments: Optional[List[SentimentRead]] = None
    reactions: Optional[List[ReactionRead]] = None


class SentimentDetail(SentimentRead):
    post: Optional[PostBrief] = None
    comment: Optional[CommentBrief] = None


class SentimentBreakdown(BaseModel):
    positive: int = 0
    neutral: int = 0
    negative: int = 0
    average_polarity: Optional[float] = None


class TopPage(BaseModel):
    page_id: Optional[uuid.UUID] = None
    page_name: str
    comment_count: int
    sentiment_breakdown: SentimentBreakdown


class UserStats(BaseModel):
    total_comments: int = 0
    posts_commented: int = 0
    total_reactions: int = 0
    sentiment_breakdown: SentimentBreakdown = Field(default_factory=SentimentBreakdown)
    top_pages: List[TopPage] = Field(default_factory=list)


class CommentWithSentiments(CommentBrief):
    sentiments: List[SentimentRead] = Field(default_factory=list)


class UserDetail(UserRead):
    comment_count: Optional[int] = None
    reaction_count: Optional[int] = None
    last_comment_at: Optional[datetime] = None
    comments: Optional[List[CommentWithSentiments]] = None
    reactions: Optional[List[ReactionRead]] = None
    stats: Optional[UserStats] = None


class PageSentimentSummary(BaseModel):
    total: int = 0
    positive: int = 0
    neutral: int = 0
    negative: int = 0
    average_polarity: Optional[float] = None


class PageDetail(PageRead):
    post_count: Optional[int] = None
    last_post_at: Optional[datetime] = None
    comment_count: Optional[int] = None
    reaction_count: Optional[int] = None
    engagement_score: Optional[int] = None
    sentiment_summary: Optional[PageSentimentSummary] = None


# --- Aggregations ---

class Commenter(BaseModel):
    user_id: uuid.UUID
    external_profile_id: Optional[str] = None
    display_name: Optional[str] = None
    created_at: datetime
    comment_count: int
    last_comment_at: Optional[datetime] = None


class UserPostActivity(PostBrief):
    user_comment_count: int
    last_comment_at: Optional[datetime] = None


class CategorySummary(BaseModel):
    sentiment_category: Optional[str] = None
    count: int
    avg_confidence: Optional[float] = None
    avg_polarity: Optional[float] = None


class SentimentTotals(BaseModel):
    total_sentiments: int = 0
    overall_avg_confidence: Optional[float] = None
    overall_avg_polarity: Optional[float] = None


class PostSentimentSummary(BaseModel):
    post_id: uuid.UUID
    total: SentimentTotals
    by_category: List[CategorySummary]


class CommentSentiment(SentimentRead):
    comment: CommentBrief
    user: Optional[UserRead] = None


class CommentWithSentiment(CommentBrief):
    """A comment flattened with its post, page, author and sentiment."""
    post_url: Optional[str] = None
    post_content: Optional[str] = None
    page_id: Optional[uuid.UUID] = None
    page_name: Optional[str] = None
    user_display_name: Optional[str] = None
    user_external_profile_id: Optional[str] = None
    sentiment_id: Optional[uuid.UUID] = None
    sentiment: Optional[str] = None
    sentiment_category: Optional[str] = None
    confidence: Optional[float] = None
    polarity: Optional[float] = None


class UserActivityOnPost(BaseModel):
    post_id: uuid.UUID
    user: UserRead
    comment_count: int
    reaction_count: int
    comments: List[CommentWithSentiments]
    reactions: List[ReactionRead]


# --- Dashboard ---

class TrendPoint(BaseModel):
    date: datetime
    positive: int = 0
    negative: int = 0
    neutral: int = 0


class PageSummary(BaseModel):
    total_pages: int = 0
    active_pages_last_7_days: int = 0
    pages_added_last_30_days: int = 0
    avg_posts_per_page: float = 0.0
    avg_comments_per_page: float = 0.0


class PostSummary(BaseModel):
    posts_last_24_hours: int = 0
    posts_last_7_days: int = 0
    avg_comments_per_post: float = 0.0
    avg_reactions_per_post: float = 0.0
    unique_commenters: int = 0
    avg_sentiment_confidence: float = 0.0


class DashboardStats(BaseModel):
    total_posts: int
    positive_posts: int
    negative_posts: int
    neutral_posts: int
    avg_engagement: float
    sentiment_trend: List[TrendPoint]
    page_summary: PageSummary
    post_summary: PostSummary


# --- Access grants ---

class AccessGrantRead(BaseModel):
    id: uuid.UUID
    auth_user_id: uuid.UUID
    post_id: uuid.UUID
    granted_at: datetime
    granted_by: Optional[uuid.UUID] = None
    model_config = ConfigDict(from_attributes=True)


class PostGrantRead(AccessGrantRead):
    username: str
    email: str


class UserGrants(BaseModel):
    auth_user_id: uuid.UUID
    post_ids: List[uuid.UUID]


class GrantRequest(BaseModel):
    auth_user_id: uuid.UUID
    post_id: uuid.UUID


class BulkGrantToPostRequest(BaseModel):
    """Many users, one post."""
    post_id: Optional[uuid.UUID] = None
    auth_user_ids: Optional[List[uuid.UUID]] = None


class BulkGrantToUserRequest(BaseModel):
    """One user, many posts."""
    auth_user_id: Optional[uuid.UUID] = None
    post_ids: Optional[List[uuid.UUID]] = None


class BulkGrantResult(BaseModel):
    granted: int
    grants: List[AccessGrantRead]


# --- Administration ---

class SeedResult(BaseModel):
    pages: int = 0
    posts: int = 0
    users: int = 0
    comments: int = 0
    sentiments: int = 0
    reactions: int = 0


class MessageResponse(BaseModel):
    message: str

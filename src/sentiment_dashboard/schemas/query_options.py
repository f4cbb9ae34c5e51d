# src/sentiment_dashboard/schemas/query_options.py

# ==============================================================================
# QUERY OPTIONS
# ==============================================================================
# Typed description of what a list request asks for: filters, include flags,
# pagination and ordering. Repositories build their statements from these
# objects only; no client string ever reaches SQL unbound.
#
# Parsing is forgiving: a value that cannot be used (blank string, negative
# limit, unknown order field, malformed id) is dropped and the field keeps its
# default, the request is never rejected because of it.
# ==============================================================================

import uuid
from enum import Enum
from typing import Any, ClassVar, Optional, Union, get_args, get_origin

from pydantic import BaseModel, ConfigDict, model_validator

from sentiment_dashboard.core.config import settings

_TRUE_STRINGS = {"true", "1", "yes", "on"}
_FALSE_STRINGS = {"false", "0", "no", "off"}
_DROP = object()


class OrderDirection(str, Enum):
    ASC = "ASC"
    DESC = "DESC"


# --- Allow-lists of sortable fields, one per entity ---

class PostOrderField(str, Enum):
    CREATED_AT = "created_at"
    POSTED_AT = "posted_at"
    CONTENT = "content"
    COMMENT_COUNT = "comment_count"
    REACTION_COUNT = "reaction_count"
    ENGAGEMENT_SCORE = "engagement_score"


class CommentOrderField(str, Enum):
    CREATED_AT = "created_at"
    POSTED_AT = "posted_at"


class SentimentOrderField(str, Enum):
    CREATED_AT = "created_at"
    CONFIDENCE = "confidence"
    POLARITY = "polarity"


class UserOrderField(str, Enum):
    CREATED_AT = "created_at"
    DISPLAY_NAME = "display_name"
    COMMENT_COUNT = "comment_count"
    LAST_COMMENT_AT = "last_comment_at"


class PageOrderField(str, Enum):
    NAME = "name"
    URL = "url"
    CREATED_AT = "created_at"
    POST_COUNT = "post_count"
    LAST_POST_AT = "last_post_at"
    COMMENT_COUNT = "comment_count"
    REACTION_COUNT = "reaction_count"
    ENGAGEMENT_SCORE = "engagement_score"
    AVG_POLARITY = "avg_polarity"
    POSITIVE_SENTIMENTS = "positive_sentiments"
    NEUTRAL_SENTIMENTS = "neutral_sentiments"
    NEGATIVE_SENTIMENTS = "negative_sentiments"


class CommenterOrderField(str, Enum):
    COMMENT_COUNT = "comment_count"
    LAST_COMMENT_AT = "last_comment_at"
    DISPLAY_NAME = "display_name"
    CREATED_AT = "created_at"


class UserPostOrderField(str, Enum):
    LAST_COMMENT_AT = "last_comment_at"
    USER_COMMENT_COUNT = "user_comment_count"
    CREATED_AT = "created_at"
    POSTED_AT = "posted_at"
    PAGE_NAME = "page_name"
    PAGE_URL = "page_url"


class CommentSentimentOrderField(str, Enum):
    CREATED_AT = "created_at"
    SENTIMENT_CATEGORY = "sentiment_category"
    DISPLAY_NAME = "display_name"


def _unwrap_optional(annotation):
    if get_origin(annotation) is Union:
        args = [a for a in get_args(annotation) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return annotation


def _coerce(target, value: Any) -> Any:
    """Converts a raw value to `target`, or returns _DROP when it is unusable."""
    if isinstance(target, type) and issubclass(target, Enum):
        if isinstance(value, target):
            return value
        wanted = str(value).strip().lower()
        for member in target:
            if str(member.value).lower() == wanted:
                return member
        return _DROP
    if target is bool:
        if isinstance(value, bool):
            return value
        lowered = str(value).strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
        return _DROP
    if target is uuid.UUID:
        if isinstance(value, uuid.UUID):
            return value
        try:
            return uuid.UUID(str(value))
        except ValueError:
            return _DROP
    if target is float:
        try:
            return float(value)
        except (TypeError, ValueError):
            return _DROP
    if target is int:
        try:
            return int(value)
        except (TypeError, ValueError):
            return _DROP
    return value


class QueryOptions(BaseModel):
    """Pagination and ordering shared by every list request."""
    model_config = ConfigDict(extra="ignore", use_enum_values=False)

    # Upper bound for `limit`, None means unbounded.
    max_limit: ClassVar[Optional[int]] = None

    limit: int = settings.DEFAULT_PAGE_LIMIT
    offset: int = 0
    order_direction: OrderDirection = OrderDirection.DESC

    @model_validator(mode="before")
    @classmethod
    def _drop_unusable_values(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        cleaned = {}
        for key, value in data.items():
            field = cls.model_fields.get(key)
            if field is None or value is None:
                continue
            if isinstance(value, str):
                value = value.strip()
                if not value:
                    continue
            value = _coerce(_unwrap_optional(field.annotation), value)
            if value is _DROP:
                continue
            if key in ("limit", "offset") and value < 0:
                continue
            if key == "limit" and cls.max_limit is not None:
                value = min(value, cls.max_limit)
            cleaned[key] = value
        return cleaned

    @property
    def descending(self) -> bool:
        return self.order_direction == OrderDirection.DESC


class PostQueryOptions(QueryOptions):
    page_id: Optional[uuid.UUID] = None
    page_url: Optional[str] = None
    page_name: Optional[str] = None
    post_url: Optional[str] = None
    # Case-insensitive substring of the post content.
    search: Optional[str] = None
    # Matched against the latest post-level sentiment (label or category).
    sentiment: Optional[str] = None

    include_page: bool = True
    include_comments: bool = False
    include_sentiments: bool = False
    include_reactions: bool = False

    order_by: PostOrderField = PostOrderField.CREATED_AT


class CommentQueryOptions(QueryOptions):
    post_id: Optional[uuid.UUID] = None
    user_id: Optional[uuid.UUID] = None
    url: Optional[str] = None

    include_user: bool = True
    include_post: bool = False
    include_sentiments: bool = False
    include_reactions: bool = False

    order_by: CommentOrderField = CommentOrderField.CREATED_AT


class SentimentQueryOptions(QueryOptions):
    post_id: Optional[uuid.UUID] = None
    comment_id: Optional[uuid.UUID] = None
    sentiment_category: Optional[str] = None
    min_confidence: Optional[float] = None
    max_confidence: Optional[float] = None
    only_post: bool = False
    only_comment: bool = False

    include_post: bool = False
    include_comment: bool = False

    order_by: SentimentOrderField = SentimentOrderField.CREATED_AT


class UserQueryOptions(QueryOptions):
    max_limit: ClassVar[Optional[int]] = settings.USERS_MAX_PAGE_LIMIT

    limit: int = settings.USERS_DEFAULT_PAGE_LIMIT
    external_profile_id: Optional[str] = None
    # Case-insensitive substring of the display name.
    search: Optional[str] = None
    only_with_comments: bool = False

    include_counts: bool = True
    include_comments: bool = False
    include_reactions: bool = False
    include_stats: bool = False

    order_by: UserOrderField = UserOrderField.CREATED_AT


class PageQueryOptions(QueryOptions):
    order_direction: OrderDirection = OrderDirection.ASC

    url: Optional[str] = None
    name: Optional[str] = None
    # Dominant post-level sentiment of the page.
    sentiment: Optional[str] = None

    include_stats: bool = True

    order_by: PageOrderField = PageOrderField.NAME


class AggregateQueryOptions(QueryOptions):
    """Pagination/ordering of the per-post and per-user aggregations."""


class CommentersQueryOptions(AggregateQueryOptions):
    order_by: CommenterOrderField = CommenterOrderField.COMMENT_COUNT


class UserPostsQueryOptions(AggregateQueryOptions):
    order_by: UserPostOrderField = UserPostOrderField.LAST_COMMENT_AT


class CommentsWithSentimentOptions(AggregateQueryOptions):
    post_id: Optional[uuid.UUID] = None
    # Coarse label or fine category of the comment sentiment.
    sentiment: Optional[str] = None

    order_by: CommentSentimentOrderField = CommentSentimentOrderField.CREATED_AT

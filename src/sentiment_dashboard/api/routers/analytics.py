# src/sentiment_dashboard/api/routers/analytics.py

import uuid
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from ...core.dependencies import get_analytics_service, query_options
from ...core.security import Principal, get_current_principal
from ...schemas import api_schemas
from ...schemas.query_options import CommentersQueryOptions, CommentsWithSentimentOptions, UserPostsQueryOptions
from ...services.analytics_service import AnalyticsService

router = APIRouter(prefix="/analytics", tags=["Analytics"])

POST_NOT_FOUND = "Post not found or access denied"


@router.get(
    "/posts/{post_id}/users",
    response_model=api_schemas.Paginated[api_schemas.Commenter],
    summary="Users who commented on a post"
)
async def get_post_commenters(
    post_id: uuid.UUID,
    options: CommentersQueryOptions = Depends(query_options(CommentersQueryOptions)),
    principal: Principal = Depends(get_current_principal),
    analytics_service: AnalyticsService = Depends(get_analytics_service)
):
    result = await analytics_service.commenters(post_id, principal, options)
    if result is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=POST_NOT_FOUND)
    return result


@router.get(
    "/users/{user_id}/posts",
    response_model=api_schemas.Paginated[api_schemas.UserPostActivity],
    summary="Visible posts a user commented on"
)
async def get_user_posts(
    user_id: uuid.UUID,
    options: UserPostsQueryOptions = Depends(query_options(UserPostsQueryOptions)),
    principal: Principal = Depends(get_current_principal),
    analytics_service: AnalyticsService = Depends(get_analytics_service)
):
    return await analytics_service.posts_by_user(user_id, principal, options)


@router.get(
    "/posts/{post_id}/sentiment-summary",
    response_model=api_schemas.PostSentimentSummary,
    summary="Sentiments of a post and its comments, grouped by category"
)
async def get_post_sentiment_summary(
    post_id: uuid.UUID,
    principal: Principal = Depends(get_current_principal),
    analytics_service: AnalyticsService = Depends(get_analytics_service)
):
    summary = await analytics_service.post_sentiment_summary(post_id, principal)
    if summary is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=POST_NOT_FOUND)
    return summary


@router.get(
    "/posts/{post_id}/sentiments",
    response_model=List[api_schemas.SentimentRead],
    summary="Post-level sentiments of a post, newest first"
)
async def get_post_sentiments(
    post_id: uuid.UUID,
    principal: Principal = Depends(get_current_principal),
    analytics_service: AnalyticsService = Depends(get_analytics_service)
):
    sentiments = await analytics_service.post_sentiments(post_id, principal)
    if sentiments is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=POST_NOT_FOUND)
    return sentiments


@router.get(
    "/posts/{post_id}/comment-sentiments",
    response_model=List[api_schemas.CommentSentiment],
    summary="Comment-level sentiments of a post with comment and author"
)
async def get_comment_sentiments(
    post_id: uuid.UUID,
    principal: Principal = Depends(get_current_principal),
    analytics_service: AnalyticsService = Depends(get_analytics_service)
):
    sentiments = await analytics_service.comment_sentiments(post_id, principal)
    if sentiments is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=POST_NOT_FOUND)
    return sentiments


@router.get(
    "/comments-with-sentiment",
    response_model=api_schemas.Paginated[api_schemas.CommentWithSentiment],
    summary="Comments flattened with post, page, author and sentiment"
)
async def get_comments_with_sentiment(
    options: CommentsWithSentimentOptions = Depends(query_options(CommentsWithSentimentOptions)),
    principal: Principal = Depends(get_current_principal),
    analytics_service: AnalyticsService = Depends(get_analytics_service)
):
    return await analytics_service.comments_with_sentiment(principal, options)


@router.get(
    "/users/{user_id}/posts/{post_id}/activity",
    response_model=api_schemas.UserActivityOnPost,
    summary="Comments and reactions of a user on one post"
)
async def get_user_activity_on_post(
    user_id: uuid.UUID,
    post_id: uuid.UUID,
    principal: Principal = Depends(get_current_principal),
    analytics_service: AnalyticsService = Depends(get_analytics_service)
):
    activity = await analytics_service.user_activity_on_post(user_id, post_id, principal)
    if activity is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User or post not found, or access denied")
    return activity

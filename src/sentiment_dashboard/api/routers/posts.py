# src/sentiment_dashboard/api/routers/posts.py

import uuid

from fastapi import APIRouter, Depends, HTTPException, status

from ...core.dependencies import get_data_service, query_options
from ...core.security import Principal, get_current_principal
from ...schemas import api_schemas
from ...schemas.query_options import PostQueryOptions
from ...services.data_service import DataService

router = APIRouter(prefix="/posts", tags=["Posts"])


@router.get(
    "",
    response_model=api_schemas.Paginated[api_schemas.PostRead],
    summary="List the posts visible to the caller"
)
async def list_posts(
    options: PostQueryOptions = Depends(query_options(PostQueryOptions)),
    principal: Principal = Depends(get_current_principal),
    data_service: DataService = Depends(get_data_service)
):
    """
    Filters: page_id, page_url, page_name, post_url, search, sentiment.
    Every post carries comment_count, reaction_count and engagement_score.
    """
    return await data_service.list_posts(principal, options)


@router.get(
    "/{post_id}",
    response_model=api_schemas.PostRead,
    summary="Get one post with its sentiments and reactions"
)
async def get_post(
    post_id: uuid.UUID,
    options: PostQueryOptions = Depends(
        query_options(PostQueryOptions, defaults={"include_sentiments": True, "include_reactions": True})
    ),
    principal: Principal = Depends(get_current_principal),
    data_service: DataService = Depends(get_data_service)
):
    post = await data_service.get_post(post_id, principal, options)
    if post is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found or access denied")
    return post

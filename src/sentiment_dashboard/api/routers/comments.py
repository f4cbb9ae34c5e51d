# src/sentiment_dashboard/api/routers/comments.py

import uuid

from fastapi import APIRouter, Depends, HTTPException, status

from ...core.dependencies import get_data_service, query_options
from ...core.security import Principal, get_current_principal
from ...schemas import api_schemas
from ...schemas.query_options import CommentQueryOptions
from ...services.data_service import DataService

router = APIRouter(prefix="/comments", tags=["Comments"])


@router.get(
    "",
    response_model=api_schemas.Paginated[api_schemas.CommentRead],
    summary="List the comments of the caller's visible posts"
)
async def list_comments(
    options: CommentQueryOptions = Depends(query_options(CommentQueryOptions)),
    principal: Principal = Depends(get_current_principal),
    data_service: DataService = Depends(get_data_service)
):
    return await data_service.list_comments(principal, options)


@router.get("/{comment_id}", response_model=api_schemas.CommentRead, summary="Get one comment")
async def get_comment(
    comment_id: uuid.UUID,
    options: CommentQueryOptions = Depends(query_options(CommentQueryOptions)),
    principal: Principal = Depends(get_current_principal),
    data_service: DataService = Depends(get_data_service)
):
    comment = await data_service.get_comment(comment_id, principal, options)
    if comment is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Comment not found or access denied")
    return comment

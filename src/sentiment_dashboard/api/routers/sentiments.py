# src/sentiment_dashboard/api/routers/sentiments.py

import uuid

from fastapi import APIRouter, Depends, HTTPException, status

from ...core.dependencies import get_data_service, query_options
from ...core.security import Principal, get_current_principal
from ...schemas import api_schemas
from ...schemas.query_options import SentimentQueryOptions
from ...services.data_service import DataService

router = APIRouter(prefix="/sentiments", tags=["Sentiments"])


@router.get(
    "",
    response_model=api_schemas.Paginated[api_schemas.SentimentDetail],
    summary="List post- and comment-level sentiments"
)
async def list_sentiments(
    options: SentimentQueryOptions = Depends(query_options(SentimentQueryOptions)),
    principal: Principal = Depends(get_current_principal),
    data_service: DataService = Depends(get_data_service)
):
    """
    Filters: post_id, comment_id, sentiment_category, min_confidence,
    max_confidence, only_post, only_comment.
    """
    return await data_service.list_sentiments(principal, options)


@router.get("/{sentiment_id}", response_model=api_schemas.SentimentDetail, summary="Get one sentiment")
async def get_sentiment(
    sentiment_id: uuid.UUID,
    options: SentimentQueryOptions = Depends(query_options(SentimentQueryOptions)),
    principal: Principal = Depends(get_current_principal),
    data_service: DataService = Depends(get_data_service)
):
    sentiment = await data_service.get_sentiment(sentiment_id, principal, options)
    if sentiment is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Sentiment not found or access denied")
    return sentiment

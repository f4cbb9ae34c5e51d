# src/sentiment_dashboard/api/routers/pages.py

import uuid

from fastapi import APIRouter, Depends, HTTPException, status

from ...core.dependencies import get_data_service, query_options
from ...core.security import Principal, get_current_principal
from ...schemas import api_schemas
from ...schemas.query_options import PageQueryOptions
from ...services.data_service import DataService

router = APIRouter(prefix="/pages", tags=["Pages"])


@router.get(
    "",
    response_model=api_schemas.Paginated[api_schemas.PageDetail],
    summary="List pages with post statistics"
)
async def list_pages(
    options: PageQueryOptions = Depends(query_options(PageQueryOptions)),
    principal: Principal = Depends(get_current_principal),
    data_service: DataService = Depends(get_data_service)
):
    """`sentiment` keeps only the pages whose dominant post-level sentiment it is."""
    return await data_service.list_pages(principal, options)


@router.get("/{page_id}", response_model=api_schemas.PageDetail, summary="Get one page")
async def get_page(
    page_id: uuid.UUID,
    options: PageQueryOptions = Depends(query_options(PageQueryOptions)),
    principal: Principal = Depends(get_current_principal),
    data_service: DataService = Depends(get_data_service)
):
    page = await data_service.get_page(page_id, principal, options)
    if page is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Page not found or access denied")
    return page

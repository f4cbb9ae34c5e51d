# src/sentiment_dashboard/api/routers/users.py

from fastapi import APIRouter, Depends, HTTPException, status

from ...core.dependencies import get_data_service, query_options
from ...core.security import Principal, get_current_principal
from ...schemas import api_schemas
from ...schemas.query_options import UserQueryOptions
from ...services.data_service import DataService

router = APIRouter(prefix="/users", tags=["Scraped users"])


@router.get(
    "",
    response_model=api_schemas.Paginated[api_schemas.UserDetail],
    summary="List commenters and reacting accounts"
)
async def list_users(
    options: UserQueryOptions = Depends(query_options(UserQueryOptions)),
    principal: Principal = Depends(get_current_principal),
    data_service: DataService = Depends(get_data_service)
):
    """
    A non-admin caller only sees users who commented on or reacted to one of
    the posts granted to them; counts and stats cover those posts only.
    """
    return await data_service.list_users(principal, options)


@router.get(
    "/{identifier}",
    response_model=api_schemas.UserDetail,
    summary="Get one user by id or by external profile id"
)
async def get_user(
    identifier: str,
    options: UserQueryOptions = Depends(query_options(UserQueryOptions)),
    principal: Principal = Depends(get_current_principal),
    data_service: DataService = Depends(get_data_service)
):
    user = await data_service.get_user(identifier, principal, options)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found or access denied")
    return user

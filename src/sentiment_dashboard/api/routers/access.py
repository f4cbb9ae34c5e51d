# src/sentiment_dashboard/api/routers/access.py

import logging
import uuid
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from ...core.dependencies import get_access_service
from ...core.exceptions import DashboardError
from ...core.security import Principal, require_admin
from ...schemas import api_schemas
from ...services.access_service import AccessService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/access", tags=["Access grants (admin)"])


@router.post(
    "/grants",
    response_model=api_schemas.AccessGrantRead,
    status_code=status.HTTP_201_CREATED,
    summary="Grant one post to one auth user"
)
async def grant_access(
    request_body: api_schemas.GrantRequest,
    admin: Principal = Depends(require_admin),
    access_service: AccessService = Depends(get_access_service)
):
    """Granting twice refreshes granted_at and granted_by of the existing grant."""
    try:
        return await access_service.grant(request_body.auth_user_id, request_body.post_id, granted_by=admin.user_id)
    except (HTTPException, DashboardError):
        raise
    except Exception as e:
        logger.error(f"Unexpected error granting post {request_body.post_id} to {request_body.auth_user_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal error while granting access."
        )


@router.delete(
    "/grants/{auth_user_id}/{post_id}",
    response_model=api_schemas.MessageResponse,
    summary="Revoke a grant (no-op when absent)"
)
async def revoke_access(
    auth_user_id: uuid.UUID,
    post_id: uuid.UUID,
    admin: Principal = Depends(require_admin),
    access_service: AccessService = Depends(get_access_service)
):
    try:
        removed = await access_service.revoke(auth_user_id, post_id)
    except (HTTPException, DashboardError):
        raise
    except Exception as e:
        logger.error(f"Unexpected error revoking post {post_id} from {auth_user_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal error while revoking access."
        )
    return {"message": "Access revoked." if removed else "No grant to revoke."}


@router.get("/users/{auth_user_id}", response_model=api_schemas.UserGrants, summary="Posts granted to an auth user")
async def list_user_grants(
    auth_user_id: uuid.UUID,
    admin: Principal = Depends(require_admin),
    access_service: AccessService = Depends(get_access_service)
):
    return await access_service.list_for_user(auth_user_id)


@router.get("/posts/{post_id}", response_model=List[api_schemas.PostGrantRead], summary="Auth users holding a grant on a post")
async def list_post_grants(
    post_id: uuid.UUID,
    admin: Principal = Depends(require_admin),
    access_service: AccessService = Depends(get_access_service)
):
    return await access_service.list_for_post(post_id)


@router.post(
    "/bulk/post",
    response_model=api_schemas.BulkGrantResult,
    status_code=status.HTTP_201_CREATED,
    summary="Grant one post to many auth users"
)
async def grant_bulk_to_post(
    request_body: api_schemas.BulkGrantToPostRequest,
    admin: Principal = Depends(require_admin),
    access_service: AccessService = Depends(get_access_service)
):
    """All-or-nothing: one unknown user or post rejects the whole batch."""
    try:
        return await access_service.grant_bulk_to_post(request_body, granted_by=admin.user_id)
    except (HTTPException, DashboardError):
        raise
    except Exception as e:
        logger.error(f"Unexpected error in bulk grant to post {request_body.post_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal error while granting access."
        )


@router.post(
    "/bulk/user",
    response_model=api_schemas.BulkGrantResult,
    status_code=status.HTTP_201_CREATED,
    summary="Grant many posts to one auth user"
)
async def grant_bulk_to_user(
    request_body: api_schemas.BulkGrantToUserRequest,
    admin: Principal = Depends(require_admin),
    access_service: AccessService = Depends(get_access_service)
):
    """All-or-nothing: one unknown user or post rejects the whole batch."""
    try:
        return await access_service.grant_bulk_to_user(request_body, granted_by=admin.user_id)
    except (HTTPException, DashboardError):
        raise
    except Exception as e:
        logger.error(f"Unexpected error in bulk grant to user {request_body.auth_user_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal error while granting access."
        )

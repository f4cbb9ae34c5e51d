# src/sentiment_dashboard/services/access_service.py

import logging
import uuid
from typing import Iterable, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import InvalidRequestError, MissingReferenceError, translate_store_errors
from ..db.repositories.access_repository import AccessRepository
from ..schemas import api_schemas

logger = logging.getLogger(__name__)


def _unique(ids: Iterable[uuid.UUID]) -> List[uuid.UUID]:
    return list(dict.fromkeys(ids))


class AccessService:
    """
    Manages per-post access grants.

    Every write validates all referenced auth users and posts before touching
    the table. Bulk operations are all-or-nothing: one missing reference rejects
    the whole batch and nothing is written.
    """
    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.repo = AccessRepository(self.db)

    async def _ensure_references(self, auth_user_ids: List[uuid.UUID], post_ids: List[uuid.UUID]) -> None:
        known_users = await self.repo.existing_auth_user_ids(auth_user_ids)
        known_posts = await self.repo.existing_post_ids(post_ids)
        missing_users = [u for u in auth_user_ids if u not in known_users]
        missing_posts = [p for p in post_ids if p not in known_posts]
        if missing_users or missing_posts:
            logger.warning(
                "Grant rejected: unknown references",
                extra={"missing_users": [str(u) for u in missing_users], "missing_posts": [str(p) for p in missing_posts]},
            )
            raise MissingReferenceError(missing_users=missing_users, missing_posts=missing_posts)

    async def _upsert_all(self, pairs, granted_by: Optional[uuid.UUID]) -> List[api_schemas.AccessGrantRead]:
        try:
            grants = [await self.repo.upsert(auth_user_id, post_id, granted_by) for auth_user_id, post_id in pairs]
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            logger.error("Failed to write access grants", exc_info=True)
            raise
        return [api_schemas.AccessGrantRead.model_validate(g) for g in grants]

    @translate_store_errors
    async def grant(self, auth_user_id: uuid.UUID, post_id: uuid.UUID, granted_by: Optional[uuid.UUID]) -> api_schemas.AccessGrantRead:
        """Creates the grant, or refreshes granted_at/granted_by when it already exists."""
        await self._ensure_references([auth_user_id], [post_id])
        grants = await self._upsert_all([(auth_user_id, post_id)], granted_by)
        logger.info("Access granted", extra={"auth_user_id": str(auth_user_id), "post_id": str(post_id)})
        return grants[0]

    @translate_store_errors
    async def revoke(self, auth_user_id: uuid.UUID, post_id: uuid.UUID) -> bool:
        """Idempotent. Returns whether a grant was actually removed."""
        try:
            removed = await self.repo.delete(auth_user_id, post_id)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        logger.info("Access revoked", extra={"auth_user_id": str(auth_user_id), "post_id": str(post_id), "removed": removed})
        return removed

    @translate_store_errors
    async def list_for_user(self, auth_user_id: uuid.UUID) -> api_schemas.UserGrants:
        post_ids = await self.repo.post_ids_for_user(auth_user_id)
        return api_schemas.UserGrants(auth_user_id=auth_user_id, post_ids=post_ids)

    @translate_store_errors
    async def list_for_post(self, post_id: uuid.UUID) -> List[api_schemas.PostGrantRead]:
        rows = await self.repo.grants_for_post(post_id)
        return [
            api_schemas.PostGrantRead(
                id=grant.id,
                auth_user_id=grant.auth_user_id,
                post_id=grant.post_id,
                granted_at=grant.granted_at,
                granted_by=grant.granted_by,
                username=username,
                email=email,
            )
            for grant, username, email in rows
        ]

    @translate_store_errors
    async def grant_bulk_to_post(
        self, request: api_schemas.BulkGrantToPostRequest, granted_by: Optional[uuid.UUID]
    ) -> api_schemas.BulkGrantResult:
        """Grants one post to many auth users."""
        if request.post_id is None:
            raise InvalidRequestError("post_id", "post_id is required.")
        if not request.auth_user_ids:
            raise InvalidRequestError("auth_user_ids", "auth_user_ids must be a non-empty list.")

        user_ids = _unique(request.auth_user_ids)
        await self._ensure_references(user_ids, [request.post_id])
        grants = await self._upsert_all([(u, request.post_id) for u in user_ids], granted_by)
        logger.info("Bulk grant to post", extra={"post_id": str(request.post_id), "granted": len(grants)})
        return api_schemas.BulkGrantResult(granted=len(grants), grants=grants)

    @translate_store_errors
    async def grant_bulk_to_user(
        self, request: api_schemas.BulkGrantToUserRequest, granted_by: Optional[uuid.UUID]
    ) -> api_schemas.BulkGrantResult:
        """Grants many posts to one auth user."""
        if request.auth_user_id is None:
            raise InvalidRequestError("auth_user_id", "auth_user_id is required.")
        if not request.post_ids:
            raise InvalidRequestError("post_ids", "post_ids must be a non-empty list.")

        post_ids = _unique(request.post_ids)
        await self._ensure_references([request.auth_user_id], post_ids)
        grants = await self._upsert_all([(request.auth_user_id, p) for p in post_ids], granted_by)
        logger.info("Bulk grant to user", extra={"auth_user_id": str(request.auth_user_id), "granted": len(grants)})
        return api_schemas.BulkGrantResult(granted=len(grants), grants=grants)

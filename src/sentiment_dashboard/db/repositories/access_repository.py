# src/sentiment_dashboard/db/repositories/access_repository.py

import uuid
from typing import Iterable, List, Optional, Set, Tuple

from sqlalchemy import delete, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from ...models.auth import AuthUser, UserPostAccess
from ...models.social_data import Post, utcnow


class AccessRepository:
    """
    Reads and writes rows of `user_post_access`.
    Methods only flush; the service decides when to commit.
    """
    def __init__(self, db_session: AsyncSession):
        self.db = db_session

    def _insert(self):
        """INSERT construct of the current dialect (both support ON CONFLICT)."""
        dialect = self.db.get_bind().dialect.name
        if dialect == "sqlite":
            return sqlite.insert(UserPostAccess)
        return postgresql.insert(UserPostAccess)

    async def upsert(self, auth_user_id: uuid.UUID, post_id: uuid.UUID, granted_by: Optional[uuid.UUID]) -> UserPostAccess:
        """Creates the grant or refreshes granted_at/granted_by of the existing one."""
        now = utcnow()
        stmt = self._insert().values(
            id=uuid.uuid4(),
            auth_user_id=auth_user_id,
            post_id=post_id,
            granted_at=now,
            granted_by=granted_by,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[UserPostAccess.auth_user_id, UserPostAccess.post_id],
            set_={"granted_at": now, "granted_by": granted_by},
        )
        await self.db.execute(stmt)
        return await self.get(auth_user_id, post_id, refresh=True)

    async def get(self, auth_user_id: uuid.UUID, post_id: uuid.UUID, refresh: bool = False) -> Optional[UserPostAccess]:
        stmt = select(UserPostAccess).where(
            UserPostAccess.auth_user_id == auth_user_id,
            UserPostAccess.post_id == post_id,
        )
        if refresh:
            stmt = stmt.execution_options(populate_existing=True)
        return (await self.db.execute(stmt)).scalar_one_or_none()

    async def delete(self, auth_user_id: uuid.UUID, post_id: uuid.UUID) -> bool:
        """Returns False when there was nothing to delete."""
        stmt = delete(UserPostAccess).where(
            UserPostAccess.auth_user_id == auth_user_id,
            UserPostAccess.post_id == post_id,
        )
        result = await self.db.execute(stmt)
        return result.rowcount > 0

    async def post_ids_for_user(self, auth_user_id: uuid.UUID) -> List[uuid.UUID]:
        """Granted post ids, most recent grant first."""
        stmt = (
            select(UserPostAccess.post_id)
            .where(UserPostAccess.auth_user_id == auth_user_id)
            .order_by(UserPostAccess.granted_at.desc(), UserPostAccess.post_id)
        )
        return list((await self.db.execute(stmt)).scalars().all())

    async def grants_for_post(self, post_id: uuid.UUID) -> List[Tuple[UserPostAccess, str, str]]:
        """(grant, username, email) for every user holding a grant on the post."""
        stmt = (
            select(UserPostAccess, AuthUser.username, AuthUser.email)
            .join(AuthUser, AuthUser.id == UserPostAccess.auth_user_id)
            .where(UserPostAccess.post_id == post_id)
            .order_by(UserPostAccess.granted_at.desc(), AuthUser.username)
        )
        return [tuple(row) for row in (await self.db.execute(stmt)).all()]

    async def existing_auth_user_ids(self, ids: Iterable[uuid.UUID]) -> Set[uuid.UUID]:
        ids = list(ids)
        if not ids:
            return set()
        stmt = select(AuthUser.id).where(AuthUser.id.in_(ids))
        return set((await self.db.execute(stmt)).scalars().all())

    async def existing_post_ids(self, ids: Iterable[uuid.UUID]) -> Set[uuid.UUID]:
        ids = list(ids)
        if not ids:
            return set()
        stmt = select(Post.id).where(Post.id.in_(ids))
        return set((await self.db.execute(stmt)).scalars().all())

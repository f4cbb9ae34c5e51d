# src/sentiment_dashboard/models/auth.py

# Dashboard accounts and the per-post access grants.
# Accounts are created by the auth service; the API only reads them to
# validate and list grants.

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Enum, ForeignKey, String, UniqueConstraint, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from sentiment_dashboard.core.security import Role
from sentiment_dashboard.db.base_class import Base
from .social_data import utcnow


class AuthUser(Base):
    __tablename__ = "auth_users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    username: Mapped[str] = mapped_column(String(150))
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String)
    role: Mapped[Role] = mapped_column(
        Enum(Role, name="auth_role", values_callable=lambda e: [m.value for m in e]),
        default=Role.USER,
        server_default=Role.USER.value,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow)
    last_login: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))


class UserPostAccess(Base):
    """
    Access grant: the auth user may see the post, its comments and their sentiments.
    Admins never need a grant.
    """
    __tablename__ = "user_post_access"
    __table_args__ = (UniqueConstraint("auth_user_id", "post_id", name="uq_user_post_access_user_post"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    auth_user_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("auth_users.id", ondelete="CASCADE"), index=True)
    post_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("posts.id", ondelete="CASCADE"), index=True)
    granted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    granted_by: Mapped[Optional[uuid.UUID]] = mapped_column(ForeignKey("auth_users.id", ondelete="SET NULL"))

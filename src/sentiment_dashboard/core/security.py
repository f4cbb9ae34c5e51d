# src/sentiment_dashboard/core/security.py

# ==============================================================================
# CALLER IDENTITY
# ==============================================================================
# Authentication happens upstream (gateway / auth service). It forwards the
# authenticated caller as two trusted headers, X-User-Id and X-User-Role, and
# this module turns them into a `Principal`. No further verification is done
# here: every reader and aggregator trusts the pair verbatim.
# ==============================================================================

import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from fastapi import Depends, Header, HTTPException, status

from .logging_config import role_ctx, user_id_ctx


class Role(str, Enum):
    USER = "user"
    ADMIN = "admin"


@dataclass(frozen=True)
class Principal:
    """Authenticated caller: auth user id + role."""
    user_id: uuid.UUID
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


async def get_current_principal(
    x_user_id: Optional[str] = Header(None),
    x_user_role: Optional[str] = Header(None),
) -> Principal:
    """FastAPI dependency: builds the Principal from the forwarded headers."""
    if not x_user_id or not x_user_role:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
    try:
        user_id = uuid.UUID(x_user_id)
        role = Role(x_user_role.strip().lower())
    except ValueError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid caller identity")

    user_id_ctx.set(str(user_id))
    role_ctx.set(role.value)
    return Principal(user_id=user_id, role=role)


async def require_admin(principal: Principal = Depends(get_current_principal)) -> Principal:
    """FastAPI dependency: same as get_current_principal, but only admins pass."""
    if not principal.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return principal

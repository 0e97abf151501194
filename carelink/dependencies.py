"""FastAPI dependency providers for auth and role enforcement."""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from carelink.db import crud
from carelink.db.engine import get_db
from carelink.models import User
from carelink.services.auth import AuthContext, get_current_user


async def require_auth(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> AuthContext:
    """Require a valid authenticated session. Returns AuthContext."""
    return await get_current_user(request, db)


async def require_admin(auth: AuthContext = Depends(require_auth)) -> AuthContext:
    if not auth.is_admin:
        raise HTTPException(403, "Insufficient permissions")
    return auth


async def require_partner(
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Resolve the calling partner's profile (404 if it has vanished)."""
    if auth.account_type != "partner":
        raise HTTPException(403, "Partner account required")
    user = await crud.get_user(db, auth.user_id)
    if not user:
        raise HTTPException(404, "User not found")
    return user

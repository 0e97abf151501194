"""Caller identity: DB-backed bearer/cookie sessions.

Login and token issuance belong to the account service; the only issuer
here is the CLI (``carelink.cli issue-token``).
"""

from __future__ import annotations

import hashlib
import secrets
from dataclasses import dataclass
from datetime import datetime, timezone, timedelta

from fastapi import Request, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from carelink.config import get_settings
from carelink.models import User, UserSession

SESSION_COOKIE_NAME = "session_token"


@dataclass
class AuthContext:
    user_id: str
    account_type: str  # 'patient' | 'partner'
    role: str  # 'user' | 'admin'

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def _hash_token(token: str) -> str:
    """SHA-256 hash of a session token for DB storage."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


async def create_session(user: User, db: AsyncSession) -> str:
    """Create a DB-backed session. Returns the raw token (not the hash)."""
    token = secrets.token_urlsafe(48)
    max_age = get_settings().auth.session_max_age_days
    session = UserSession(
        user_id=user.id,
        token_hash=_hash_token(token),
        expires_at=datetime.now(timezone.utc) + timedelta(days=max_age),
    )
    db.add(session)
    await db.commit()
    return token


async def validate_session(token: str, db: AsyncSession) -> User | None:
    """Look up session by token hash, return User if valid."""
    result = await db.execute(
        select(UserSession).where(
            UserSession.token_hash == _hash_token(token),
            UserSession.expires_at > datetime.now(timezone.utc),
        )
    )
    session = result.scalars().first()
    if not session:
        return None

    user = await db.get(User, session.user_id)
    if not user or not user.is_active:
        return None
    return user


def _request_token(request: Request) -> str:
    header = request.headers.get("authorization", "")
    if header.lower().startswith("bearer "):
        return header[7:].strip()
    return request.cookies.get(SESSION_COOKIE_NAME, "")


async def get_current_user(request: Request, db: AsyncSession) -> AuthContext:
    """Read bearer token or session cookie, validate, return AuthContext or raise 401."""
    token = _request_token(request)
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")

    user = await validate_session(token, db)
    if not user:
        raise HTTPException(status_code=401, detail="Session expired")

    return AuthContext(user_id=user.id, account_type=user.account_type, role=user.role)

"""Request guards: bearer token → live session → user, plus the admin check."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from fastapi import Depends, Request
from jose import ExpiredSignatureError, JWTError, jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from winx.auth.models import UserSession
from winx.auth.service import hash_token
from winx.common.exceptions import ForbiddenException, UnauthorizedException
from winx.config import settings
from winx.database import get_db
from winx.users.models import User

BEARER_PREFIX = "Bearer "


def extract_bearer(request: Request) -> str:
    header = request.headers.get("Authorization", "")
    if not header.startswith(BEARER_PREFIX):
        raise UnauthorizedException(detail="Missing or invalid Authorization header.")
    return header[len(BEARER_PREFIX):]


def decode_access_token(token: str) -> dict[str, Any]:
    """Verify signature and expiry; refresh tokens are refused here."""
    try:
        claims = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except ExpiredSignatureError:
        raise UnauthorizedException(detail="Token has expired.")
    except JWTError:
        raise UnauthorizedException(detail="Invalid token.")

    if claims.get("type") != "access":
        raise UnauthorizedException(detail="Invalid token type.")
    return claims


async def _has_live_session(db: AsyncSession, token: str) -> bool:
    found = await db.scalar(
        select(UserSession.id).where(
            UserSession.token_hash == hash_token(token),
            UserSession.is_revoked.is_(False),
            UserSession.expires_at > datetime.now(timezone.utc),
        ),
    )
    return found is not None


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> User:
    """Resolve the caller from the bearer token.

    Route handlers read ``user.company_id`` from the returned object and
    pass it down explicitly as the tenant.
    """
    token = extract_bearer(request)
    claims = decode_access_token(token)

    if not await _has_live_session(db, token):
        raise UnauthorizedException(detail="Session invalid or expired.")

    user = await db.scalar(
        select(User)
        .where(User.id == int(claims["sub"]))
        .options(selectinload(User.company)),
    )
    if user is None:
        raise UnauthorizedException(detail="User account not found.")
    return user


async def require_admin(user: User = Depends(get_current_user)) -> User:
    if not user.admin:
        raise ForbiddenException(detail="Administrator access is required.")
    return user

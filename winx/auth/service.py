"""Credential checks, token issuance and the session lifecycle."""

from __future__ import annotations

import hashlib
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import bcrypt
from jose import JWTError, jwt
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from winx.auth.models import UserSession
from winx.common.exceptions import ForbiddenException, UnauthorizedException
from winx.config import settings
from winx.users.models import User


# ── Passwords ───────────────────────────────────────────────────────

def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode(), password_hash.encode())
    except ValueError:
        # Malformed stored hash
        return False


async def authenticate(db: AsyncSession, email: str, password: str) -> User:
    """Return the user for valid credentials, or raise 401."""
    result = await db.execute(select(User).where(User.email == email.lower()))
    user = result.scalars().first()
    if user is None or not verify_password(password, user.password):
        raise UnauthorizedException(detail="Invalid email or password.")
    return user


# ── Tokens ──────────────────────────────────────────────────────────

def hash_token(token: str) -> str:
    """Sessions store only the SHA-256 of their tokens."""
    return hashlib.sha256(token.encode()).hexdigest()


def _sign(claims: dict[str, Any], lifetime: timedelta) -> str:
    claims = {
        **claims,
        "jti": uuid.uuid4().hex,
        "exp": datetime.now(timezone.utc) + lifetime,
    }
    return jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def access_lifetime() -> timedelta:
    return timedelta(hours=settings.JWT_EXPIRY_HOURS)


def create_access_token(user: User) -> tuple[str, int]:
    """Return (encoded_jwt, expires_in_seconds)."""
    lifetime = access_lifetime()
    token = _sign(
        {"sub": str(user.id), "company_id": user.company_id, "admin": user.admin, "type": "access"},
        lifetime,
    )
    return token, int(lifetime.total_seconds())


def create_refresh_token(user_id: int) -> str:
    return _sign(
        {"sub": str(user_id), "type": "refresh"},
        timedelta(days=settings.REFRESH_EXPIRY_DAYS),
    )


# ── Sessions ────────────────────────────────────────────────────────

async def create_session(
    db: AsyncSession,
    user: User,
    ip: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> tuple[str, str, int]:
    """Issue a token pair and persist its session. Returns (access, refresh, expires_in)."""
    access_token, expires_in = create_access_token(user)
    refresh_token = create_refresh_token(user.id)

    db.add(UserSession(
        user_id=user.id,
        token_hash=hash_token(access_token),
        refresh_token_hash=hash_token(refresh_token),
        ip_address=ip,
        user_agent=user_agent,
        expires_at=datetime.now(timezone.utc) + access_lifetime(),
    ))
    await db.flush()
    return access_token, refresh_token, expires_in


async def refresh_session(
    db: AsyncSession,
    refresh_token: str,
) -> tuple[str, str, int]:
    """Consume a refresh token and issue a new pair.

    A refresh token works once. Replaying a consumed one revokes every
    session of that user.
    """
    try:
        claims = jwt.decode(refresh_token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        raise ForbiddenException(detail="Invalid or expired refresh token.")
    if claims.get("type") != "refresh":
        raise ForbiddenException(detail="Invalid token type.")

    consumed = await db.scalar(
        select(UserSession).where(UserSession.refresh_token_hash == hash_token(refresh_token)),
    )
    if consumed is None:
        raise ForbiddenException(detail="Invalid refresh token.")

    if consumed.is_revoked:
        await revoke_all_sessions(db, consumed.user_id)
        # get_db rolls back on error; the revocations must survive the 403
        await db.commit()
        raise ForbiddenException(detail="Refresh token reuse detected. All sessions revoked.")

    consumed.is_revoked = True
    await db.flush()

    user = await db.get(User, int(claims["sub"]))
    if user is None:
        raise ForbiddenException(detail="User no longer exists.")
    return await create_session(db, user, consumed.ip_address, consumed.user_agent)


async def revoke_all_sessions(db: AsyncSession, user_id: int) -> None:
    await _revoke(db, UserSession.user_id == user_id)


async def revoke_session(db: AsyncSession, token_hash: str) -> None:
    """Revoke the session issued with the access token of this hash."""
    await _revoke(db, UserSession.token_hash == token_hash)


async def _revoke(db: AsyncSession, condition) -> None:
    await db.execute(
        update(UserSession)
        .where(condition, UserSession.is_revoked.is_(False))
        .values(is_revoked=True),
    )
    await db.flush()

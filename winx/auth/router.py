"""Auth router — login, token refresh, logout, current user profile."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from winx.auth.dependencies import extract_bearer, get_current_user
from winx.auth.schemas import (
    CompanyBrief,
    LoginRequest,
    RefreshRequest,
    RefreshResponse,
    TokenResponse,
    UserInfo,
)
from winx.auth.service import (
    authenticate,
    create_session,
    hash_token,
    refresh_session,
    revoke_session,
)
from winx.common.rate_limit import limiter, login_rate_limit
from winx.database import get_db
from winx.users.models import User

router = APIRouter(prefix="", tags=["auth"])


def _user_info(user: User) -> UserInfo:
    company = CompanyBrief(id=user.company.id, name=user.company.name) if user.company else None
    return UserInfo(
        id=user.id,
        name=user.name,
        email=user.email,
        admin=user.admin,
        company=company,
    )


# ── POST /login — email + password ─────────────────────────────────

@router.post("/login", response_model=TokenResponse)
@limiter.limit(login_rate_limit)
async def login(
    body: LoginRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    user = await authenticate(db, body.email, body.password)
    await db.refresh(user, ["company"])

    ip = request.client.host if request.client else None
    access_token, refresh_token, expires_in = await create_session(
        db, user, ip, request.headers.get("user-agent"),
    )

    return TokenResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        expires_in=expires_in,
        user=_user_info(user),
    )


# ── POST /refresh — Rotate the token pair ──────────────────────────

@router.post("/refresh", response_model=RefreshResponse)
async def refresh_token(
    body: RefreshRequest,
    db: AsyncSession = Depends(get_db),
):
    access_token, refresh_token, expires_in = await refresh_session(db, body.refresh_token)
    return RefreshResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        expires_in=expires_in,
    )


# ── POST /logout — Revoke current session ──────────────────────────

@router.post("/logout")
async def logout(
    request: Request,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await revoke_session(db, hash_token(extract_bearer(request)))
    return {"message": "Logged out successfully."}


# ── GET /me — Current user profile ─────────────────────────────────

@router.get("/me", response_model=UserInfo)
async def me(user: User = Depends(get_current_user)):
    return _user_info(user)

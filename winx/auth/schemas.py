"""Auth Pydantic schemas for request / response validation."""


from typing import Optional

from pydantic import BaseModel, EmailStr


# ── Requests ────────────────────────────────────────────────────────

class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


# ── Embedded / Shared ──────────────────────────────────────────────

class CompanyBrief(BaseModel):
    id: int
    name: str


class UserInfo(BaseModel):
    id: int
    name: str
    email: str
    admin: bool
    company: Optional[CompanyBrief] = None


# ── Responses ───────────────────────────────────────────────────────

class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserInfo


class RefreshResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int

"""User service — admin-managed accounts, hashed passwords, guarded deletes."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from winx.auth.models import UserSession
from winx.auth.service import hash_password
from winx.common.exceptions import ConflictError, NotFoundException, ValidationException
from winx.common.filters import apply_filters
from winx.common.pagination import Page, PageRequest, paginate
from winx.companies.models import Company
from winx.employees.models import Employee
from winx.users.models import User
from winx.users.schemas import UserWrite


class UserService:
    """Async CRUD operations for users."""

    @staticmethod
    async def list_users(
        db: AsyncSession,
        pagination: PageRequest,
        *,
        company_id: Optional[int] = None,
        email: Optional[str] = None,
    ) -> Page:
        query = apply_filters(
            select(User),
            User,
            {"company_id": company_id, "email__ilike": email},
        )
        return await paginate(db, query, pagination, model=User)

    @staticmethod
    async def get_user(db: AsyncSession, user_id: int) -> User:
        user = await db.get(User, user_id)
        if user is None:
            raise NotFoundException("User", user_id)
        return user

    @staticmethod
    async def create_user(db: AsyncSession, data: UserWrite) -> User:
        await _ensure_company(db, data.company_id)
        await _ensure_email_free(db, data.email)

        user = User(
            name=data.name,
            email=data.email,
            password=hash_password(data.password),
            company_id=data.company_id,
            admin=data.admin,
        )
        db.add(user)
        await _flush_user(db, data.email)
        await db.refresh(user)
        return user

    @staticmethod
    async def update_user(db: AsyncSession, user_id: int, data: UserWrite) -> User:
        user = await UserService.get_user(db, user_id)
        await _ensure_company(db, data.company_id)
        if data.email != user.email:
            await _ensure_email_free(db, data.email)

        user.name = data.name
        user.email = data.email
        user.password = hash_password(data.password)
        user.company_id = data.company_id
        user.admin = data.admin
        user.updated_at = datetime.now(timezone.utc)
        await _flush_user(db, data.email)
        return user

    @staticmethod
    async def delete_user(db: AsyncSession, user_id: int) -> None:
        """Delete a non-admin user together with its employee record."""
        user = await UserService.get_user(db, user_id)
        if user.admin:
            raise ValidationException({"user": ["User Admin cannot be deleted."]})

        await db.execute(delete(Employee).where(Employee.user_id == user.id))
        await db.execute(delete(UserSession).where(UserSession.user_id == user.id))
        await db.execute(delete(User).where(User.id == user.id))
        await db.flush()


# ── Helpers ─────────────────────────────────────────────────────────

async def _ensure_company(db: AsyncSession, company_id: int) -> None:
    if await db.get(Company, company_id) is None:
        raise ValidationException({"company_id": ["The selected company does not exist."]})


async def _ensure_email_free(db: AsyncSession, email: str) -> None:
    result = await db.execute(select(User.id).where(User.email == email))
    if result.first() is not None:
        raise ConflictError("email", email)


async def _flush_user(db: AsyncSession, email: str) -> None:
    try:
        await db.flush()
    except IntegrityError as exc:
        await db.rollback()
        if "email" in str(exc.orig):
            raise ConflictError("email", email)
        raise

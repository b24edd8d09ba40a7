"""Employee service — tenant-scoped CRUD.

Every method takes the caller's ``company_id`` explicitly; an employee whose
user belongs to another company is reported as not found.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from winx.common.constants import strip_phone
from winx.common.exceptions import ConflictError, NotFoundException, ValidationException
from winx.common.filters import apply_filters
from winx.common.pagination import Page, PageRequest, paginate
from winx.employees.models import Employee
from winx.employees.schemas import EmployeeWrite
from winx.users.models import User


def _scoped(company_id: int):
    return (
        select(Employee)
        .join(User, Employee.user_id == User.id)
        .where(User.company_id == company_id)
    )


class EmployeeService:
    """Async CRUD operations for employees within one company."""

    @staticmethod
    async def list_employees(
        db: AsyncSession,
        company_id: int,
        pagination: PageRequest,
        *,
        responsibility: Optional[str] = None,
        admission_at: Optional[date] = None,
        phone: Optional[str] = None,
    ) -> Page:
        filters = {
            "responsibility__ilike": responsibility,
            "admission_at": admission_at,
            "phone__ilike": strip_phone(phone) if phone else None,
        }
        query = apply_filters(_scoped(company_id), Employee, filters)
        return await paginate(
            db,
            query,
            pagination,
            model=Employee,
            options=[selectinload(Employee.user)],
        )

    @staticmethod
    async def get_employee(
        db: AsyncSession,
        company_id: int,
        employee_id: int,
    ) -> Employee:
        result = await db.execute(
            _scoped(company_id)
            .where(Employee.id == employee_id)
            .options(selectinload(Employee.user)),
        )
        employee = result.scalars().first()
        if employee is None:
            raise NotFoundException("Employee", employee_id)
        return employee

    @staticmethod
    async def create_employee(
        db: AsyncSession,
        company_id: int,
        data: EmployeeWrite,
    ) -> Employee:
        await _ensure_user_available(db, company_id, data.user_id)

        employee = Employee(**data.model_dump())
        db.add(employee)
        await _flush_employee(db, data.user_id)
        return await EmployeeService.get_employee(db, company_id, employee.id)

    @staticmethod
    async def update_employee(
        db: AsyncSession,
        company_id: int,
        employee_id: int,
        data: EmployeeWrite,
    ) -> Employee:
        employee = await EmployeeService.get_employee(db, company_id, employee_id)
        if data.user_id != employee.user_id:
            await _ensure_user_available(db, company_id, data.user_id)

        for field, value in data.model_dump().items():
            setattr(employee, field, value)
        employee.updated_at = datetime.now(timezone.utc)
        await _flush_employee(db, data.user_id)
        await db.refresh(employee, ["user"])
        return employee

    @staticmethod
    async def delete_employee(
        db: AsyncSession,
        company_id: int,
        employee_id: int,
    ) -> None:
        employee = await EmployeeService.get_employee(db, company_id, employee_id)
        await db.delete(employee)
        await db.flush()


# ── Helpers ─────────────────────────────────────────────────────────

async def _ensure_user_available(db: AsyncSession, company_id: int, user_id: int) -> None:
    """The user must exist in *company_id* and must not have an employee yet."""
    result = await db.execute(
        select(User)
        .where(User.id == user_id)
        .options(selectinload(User.employee)),
    )
    user = result.scalars().first()
    if user is None or user.company_id != company_id:
        raise ValidationException({"user_id": ["The selected user does not exist."]})
    if user.employee is not None:
        raise ConflictError(
            "user_id",
            user_id,
            detail=f"User {user_id} already has an employee record.",
        )


async def _flush_employee(db: AsyncSession, user_id: int) -> None:
    try:
        await db.flush()
    except IntegrityError as exc:
        await db.rollback()
        if "user_id" in str(exc.orig):
            raise ConflictError("user_id", user_id)
        raise

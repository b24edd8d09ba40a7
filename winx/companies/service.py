"""Company service — CRUD and the tenant-wide cascading delete."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from winx.auth.models import UserSession
from winx.common.exceptions import NotFoundException
from winx.common.filters import apply_filters
from winx.common.pagination import Page, PageRequest, paginate
from winx.companies.models import Company
from winx.companies.schemas import CompanyWrite
from winx.employees.models import Employee
from winx.imports.models import EmployeeImport
from winx.users.models import User


class CompanyService:
    """Async CRUD operations for companies."""

    @staticmethod
    async def list_companies(
        db: AsyncSession,
        pagination: PageRequest,
        *,
        name: Optional[str] = None,
    ) -> Page:
        query = apply_filters(select(Company), Company, {"name__ilike": name})
        return await paginate(db, query, pagination, model=Company)

    @staticmethod
    async def get_company(db: AsyncSession, company_id: int) -> Company:
        company = await db.get(Company, company_id)
        if company is None:
            raise NotFoundException("Company", company_id)
        return company

    @staticmethod
    async def create_company(db: AsyncSession, data: CompanyWrite) -> Company:
        company = Company(name=data.name)
        db.add(company)
        await db.flush()
        await db.refresh(company)
        return company

    @staticmethod
    async def update_company(
        db: AsyncSession,
        company_id: int,
        data: CompanyWrite,
    ) -> Company:
        company = await CompanyService.get_company(db, company_id)
        company.name = data.name
        company.updated_at = datetime.now(timezone.utc)
        await db.flush()
        return company

    @staticmethod
    async def delete_company(db: AsyncSession, company_id: int) -> None:
        """Delete the company with its users' employees, its users and its import jobs."""
        company = await CompanyService.get_company(db, company_id)

        user_ids = select(User.id).where(User.company_id == company.id)
        await db.execute(delete(Employee).where(Employee.user_id.in_(user_ids)))
        await db.execute(delete(UserSession).where(UserSession.user_id.in_(user_ids)))
        await db.execute(delete(User).where(User.company_id == company.id))
        await db.execute(
            delete(EmployeeImport).where(EmployeeImport.company_id == company.id),
        )
        await db.execute(delete(Company).where(Company.id == company.id))
        await db.flush()

"""Companies router — list and read for any user, writes for admins."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from winx.auth.dependencies import get_current_user, require_admin
from winx.common.pagination import PageRequest, page_request
from winx.companies.schemas import CompanyResponse, CompanyWrite
from winx.companies.service import CompanyService
from winx.database import get_db
from winx.users.models import User

router = APIRouter(prefix="", tags=["companies"])


# ── GET /companies ──────────────────────────────────────────────────

@router.get("")
async def list_companies(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    pagination: PageRequest = Depends(page_request),
    name: Optional[str] = Query(None, description="Filter by name (substring)"),
):
    result = await CompanyService.list_companies(db, pagination, name=name)
    return result.envelope(CompanyResponse)


# ── POST /companies ─────────────────────────────────────────────────

@router.post("", status_code=201)
async def create_company(
    body: CompanyWrite,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    company = await CompanyService.create_company(db, body)
    return {
        "data": CompanyResponse.model_validate(company).model_dump(mode="json"),
        "message": "Company created successfully.",
    }


# ── GET /companies/{id} ─────────────────────────────────────────────

@router.get("/{company_id}")
async def get_company(
    company_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    company = await CompanyService.get_company(db, company_id)
    return {
        "data": CompanyResponse.model_validate(company).model_dump(mode="json"),
        "message": "Company retrieved successfully.",
    }


# ── PUT /companies/{id} ─────────────────────────────────────────────

@router.put("/{company_id}")
async def update_company(
    company_id: int,
    body: CompanyWrite,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    company = await CompanyService.update_company(db, company_id, body)
    return {
        "data": CompanyResponse.model_validate(company).model_dump(mode="json"),
        "message": "Company updated successfully.",
    }


# ── DELETE /companies/{id} ──────────────────────────────────────────

@router.delete("/{company_id}")
async def delete_company(
    company_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    await CompanyService.delete_company(db, company_id)
    return {
        "data": [],
        "message": "Company and related users and employees deleted successfully.",
    }

"""Employees router — tenant-scoped CRUD and the asynchronous CSV import.

Routes:
    /employees                        — List (filters + pagination), create
    /employees/import                 — Upload a CSV; processed in the background
    /employees/imports/{job_id}        — Import status and summary
    /employees/imports/{job_id}/cancel — Stop an import at its next batch
    /employees/{id}                   — Get, replace, delete

The caller's company is read once from the authenticated user and passed
to every service call.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from winx.auth.dependencies import get_current_user
from winx.common.pagination import PageRequest, page_request
from winx.database import get_db
from winx.employees.schemas import EmployeeResponse, EmployeeWrite
from winx.employees.service import EmployeeService
from winx.imports.dependencies import get_import_dispatcher, get_upload_store
from winx.imports.dispatcher import ImportDispatcher
from winx.imports.files import UploadStore
from winx.imports.schemas import ImportAccepted, ImportJobResponse
from winx.imports.service import ImportService
from winx.users.models import User

router = APIRouter(prefix="", tags=["employees"])

IMPORT_ACCEPTED_MESSAGE = "Upload received. The file is being processed."


def _employee_out(employee) -> dict:
    return EmployeeResponse.model_validate(employee).model_dump(mode="json")


# ── GET /employees — List employees ─────────────────────────────────

@router.get("")
async def list_employees(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    pagination: PageRequest = Depends(page_request),
    responsibility: Optional[str] = Query(None, description="Filter by responsibility (substring)"),
    admission_at: Optional[date] = Query(None, description="Filter by admission date (yyyy-mm-dd)"),
    phone: Optional[str] = Query(None, description="Filter by phone; non-digits are ignored"),
):
    result = await EmployeeService.list_employees(
        db,
        current_user.company_id,
        pagination,
        responsibility=responsibility,
        admission_at=admission_at,
        phone=phone,
    )
    return result.envelope(EmployeeResponse)


# ── POST /employees — Create employee ───────────────────────────────

@router.post("", status_code=201)
async def create_employee(
    body: EmployeeWrite,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    employee = await EmployeeService.create_employee(db, current_user.company_id, body)
    return {
        "data": _employee_out(employee),
        "message": "Employee created successfully.",
    }


# ── POST /employees/import — Queue a CSV import ─────────────────────

@router.post("/import", status_code=201, response_model=ImportAccepted)
async def import_employees(
    csv_file: UploadFile = File(..., description="CSV: responsibility, admission_at, phone, user_id"),
    current_user: User = Depends(get_current_user),
    store: UploadStore = Depends(get_upload_store),
    dispatcher: ImportDispatcher = Depends(get_import_dispatcher),
):
    """Store the upload and queue it; answers before any row is processed."""
    job_id = await ImportService.accept_upload(
        csv_file,
        current_user.company_id,
        store=store,
        dispatcher=dispatcher,
    )
    return ImportAccepted(message=IMPORT_ACCEPTED_MESSAGE, job_id=job_id)


# ── GET /employees/imports/{job_id} — Import status ─────────────────

@router.get("/imports/{job_id}", response_model=ImportJobResponse)
async def get_import(
    job_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    job = await ImportService.get_job(db, current_user.company_id, job_id)
    return ImportJobResponse.model_validate(job)


# ── POST /employees/imports/{job_id}/cancel — Cancel an import ──────

@router.post("/imports/{job_id}/cancel", response_model=ImportJobResponse)
async def cancel_import(
    job_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    dispatcher: ImportDispatcher = Depends(get_import_dispatcher),
    store: UploadStore = Depends(get_upload_store),
):
    job = await ImportService.cancel_job(
        db, current_user.company_id, job_id, dispatcher, store,
    )
    return ImportJobResponse.model_validate(job)


# ── GET /employees/{id} ─────────────────────────────────────────────

@router.get("/{employee_id}")
async def get_employee(
    employee_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    employee = await EmployeeService.get_employee(db, current_user.company_id, employee_id)
    return {
        "data": _employee_out(employee),
        "message": "Employee retrieved successfully.",
    }


# ── PUT /employees/{id} ─────────────────────────────────────────────

@router.put("/{employee_id}")
async def update_employee(
    employee_id: int,
    body: EmployeeWrite,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    employee = await EmployeeService.update_employee(
        db, current_user.company_id, employee_id, body,
    )
    return {
        "data": _employee_out(employee),
        "message": "Employee updated successfully.",
    }


# ── DELETE /employees/{id} ──────────────────────────────────────────

@router.delete("/{employee_id}")
async def delete_employee(
    employee_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    await EmployeeService.delete_employee(db, current_user.company_id, employee_id)
    return {"data": [], "message": "Employee deleted successfully."}

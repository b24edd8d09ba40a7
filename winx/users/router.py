"""Users router — account management, restricted to admins."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from winx.auth.dependencies import require_admin
from winx.common.pagination import PageRequest, page_request
from winx.database import get_db
from winx.users.models import User
from winx.users.schemas import UserResponse, UserWrite
from winx.users.service import UserService

router = APIRouter(prefix="", tags=["users"])


@router.get("")
async def list_users(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
    pagination: PageRequest = Depends(page_request),
    company_id: Optional[int] = Query(None, description="Filter by company"),
    email: Optional[str] = Query(None, description="Filter by e-mail (substring)"),
):
    result = await UserService.list_users(
        db, pagination, company_id=company_id, email=email,
    )
    return result.envelope(UserResponse)


@router.post("", status_code=201)
async def create_user(
    body: UserWrite,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    user = await UserService.create_user(db, body)
    return {
        "data": UserResponse.model_validate(user).model_dump(mode="json"),
        "message": "User created successfully.",
    }


@router.get("/{user_id}")
async def get_user(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    user = await UserService.get_user(db, user_id)
    return {
        "data": UserResponse.model_validate(user).model_dump(mode="json"),
        "message": "User retrieved successfully.",
    }


@router.put("/{user_id}")
async def update_user(
    user_id: int,
    body: UserWrite,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    user = await UserService.update_user(db, user_id, body)
    return {
        "data": UserResponse.model_validate(user).model_dump(mode="json"),
        "message": "User updated successfully.",
    }


@router.delete("/{user_id}")
async def delete_user(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    await UserService.delete_user(db, user_id)
    return {"data": [], "message": "User and related employee deleted successfully."}

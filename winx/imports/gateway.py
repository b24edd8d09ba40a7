"""Storage gateway used by the import pipeline.

Every call opens its own short-lived session so a long import never holds a
transaction open across batches.
"""

from __future__ import annotations

from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from winx.employees.models import Employee
from winx.imports.errors import StorageError
from winx.imports.models import EmployeeImport
from winx.imports.schemas import EmployeeRecord
from winx.users.models import User


class EmployeeGateway:

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def find_user(self, user_id: int) -> Optional[User]:
        """Return the user with its employee eagerly loaded, or None."""
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(User)
                    .where(User.id == user_id)
                    .options(selectinload(User.employee)),
                )
                return result.scalars().first()
        except SQLAlchemyError as exc:
            raise StorageError(
                f"Looking up user {user_id} failed: {exc.__class__.__name__}",
            ) from exc

    async def insert_batch(self, records: Sequence[EmployeeRecord]) -> None:
        """Insert all *records* in one transaction, or none of them."""
        if not records:
            return
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    session.add_all(
                        [Employee(**record.model_dump()) for record in records]
                    )
        except SQLAlchemyError as exc:
            raise StorageError(
                f"Inserting a batch of {len(records)} employees failed: {exc.__class__.__name__}",
            ) from exc

    async def cancel_requested(self, job_id: str) -> bool:
        """True once a cancel request for *job_id* is stored, from any process."""
        try:
            async with self._session_factory() as session:
                flag = await session.scalar(
                    select(EmployeeImport.cancel_requested)
                    .where(EmployeeImport.id == job_id),
                )
        except SQLAlchemyError as exc:
            raise StorageError(
                f"Reading the cancel flag of import {job_id} failed: {exc.__class__.__name__}",
            ) from exc
        return bool(flag)

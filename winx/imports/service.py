"""Import job service — upload acceptance, status lookups and cancellation."""

from __future__ import annotations

import os
from datetime import datetime, timezone

from fastapi import UploadFile
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from winx.common.constants import (
    FINISHED_IMPORT_STATUSES,
    IMPORT_CONTENT_TYPES,
    IMPORT_EXTENSIONS,
    ImportStatus,
)
from winx.common.exceptions import ConflictError, NotFoundException, ValidationException
from winx.config import settings
from winx.imports.dispatcher import ImportDispatcher
from winx.imports.errors import Cancelled
from winx.imports.files import UploadStore
from winx.imports.models import EmployeeImport
from winx.imports.schemas import ImportSummary


class ImportService:

    @staticmethod
    async def accept_upload(
        file: UploadFile,
        company_id: int,
        *,
        store: UploadStore,
        dispatcher: ImportDispatcher,
    ) -> str:
        """Validate and store the upload, queue its import and return the job id."""
        ext = os.path.splitext(file.filename or "")[1].lower()
        if ext not in IMPORT_EXTENSIONS and file.content_type not in IMPORT_CONTENT_TYPES:
            raise ValidationException(
                {"csv_file": ["The csv file must be a file of type: csv, txt."]},
            )

        contents = await file.read()
        if not contents:
            raise ValidationException({"csv_file": ["The csv file field is required."]})
        if len(contents) > settings.MAX_IMPORT_SIZE_KB * 1024:
            raise ValidationException(
                {"csv_file": [
                    f"The csv file may not be greater than {settings.MAX_IMPORT_SIZE_KB} kilobytes.",
                ]},
            )

        file_ref = store.save(contents, suffix=ext if ext in IMPORT_EXTENSIONS else ".csv")
        try:
            return await dispatcher.submit(
                file_ref, company_id, original_filename=file.filename,
            )
        except Exception:
            store.delete(file_ref)
            raise

    @staticmethod
    async def get_job(db: AsyncSession, company_id: int, job_id: str) -> EmployeeImport:
        result = await db.execute(
            select(EmployeeImport).where(
                EmployeeImport.id == job_id,
                EmployeeImport.company_id == company_id,
            ),
        )
        job = result.scalars().first()
        if job is None:
            raise NotFoundException("Import", job_id)
        return job

    @staticmethod
    async def cancel_job(
        db: AsyncSession,
        company_id: int,
        job_id: str,
        dispatcher: ImportDispatcher,
        store: UploadStore,
    ) -> EmployeeImport:
        """Cancel a queued job outright, or flag a running one to stop at its next batch.

        The flag is stored on the job row, so the worker honours it whichever
        process runs the job.
        """
        job = await ImportService.get_job(db, company_id, job_id)
        if job.status in FINISHED_IMPORT_STATUSES:
            raise ConflictError(
                "status",
                job.status.value,
                detail=f"Import {job_id} has already finished ({job.status.value}).",
            )

        summary = ImportSummary()
        summary.finish_with(Cancelled("Import cancelled before it started."))
        closed = await db.execute(
            update(EmployeeImport)
            .where(
                EmployeeImport.id == job_id,
                EmployeeImport.status == ImportStatus.queued,
            )
            .values(
                status=ImportStatus.cancelled,
                cancel_requested=True,
                summary=summary.model_dump(mode="json"),
                finished_at=datetime.now(timezone.utc),
            ),
        )
        if closed.rowcount == 1:
            store.delete(job.file_ref)
        else:
            await db.execute(
                update(EmployeeImport)
                .where(
                    EmployeeImport.id == job_id,
                    EmployeeImport.status == ImportStatus.running,
                )
                .values(cancel_requested=True),
            )
        dispatcher.cancel(job_id)

        await db.flush()
        await db.refresh(job)
        return job

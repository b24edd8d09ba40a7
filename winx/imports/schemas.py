"""Import Pydantic schemas: normalised rows, per-job summary, job status."""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from winx.common.constants import ImportStatus
from winx.imports.errors import Cancelled, ImportFailure


class EmployeeRecord(BaseModel):
    """A validated, normalised row ready for insertion."""

    model_config = ConfigDict(frozen=True)

    responsibility: str
    admission_at: date
    phone: str
    user_id: int


class RowError(BaseModel):
    code: str
    detail: str
    field: Optional[str] = None


class ImportSummary(BaseModel):
    """Per-job report of row outcomes.

    Rows are keyed by their 1-based position among the data records of the
    file (header excluded). Blank records are skipped but keep their number,
    so a key always points at the same line a spreadsheet shows under the
    header.
    """

    total_rows: int = 0
    succeeded: int = 0
    failed: int = 0
    succeeded_rows: list[int] = Field(default_factory=list)
    errors: dict[int, RowError] = Field(default_factory=dict)
    # Job-level failure: cancelled, file_read_error or import_failure
    error: Optional[RowError] = None

    def record_success(self, row_number: int) -> None:
        self.succeeded += 1
        self.succeeded_rows.append(row_number)

    def record_failure(self, row_number: int, failure: ImportFailure) -> None:
        self.failed += 1
        self.errors[row_number] = RowError(**failure.to_dict())

    def finish_with(self, failure: ImportFailure) -> None:
        self.error = RowError(**failure.to_dict())

    @property
    def status(self) -> ImportStatus:
        if self.error is not None:
            if self.error.code == Cancelled.code:
                return ImportStatus.cancelled
            return ImportStatus.aborted
        if self.failed:
            return ImportStatus.completed_with_errors
        return ImportStatus.completed


# ── API responses ───────────────────────────────────────────────────

class ImportAccepted(BaseModel):
    message: str
    job_id: str


class ImportJobResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    company_id: int
    original_filename: Optional[str] = None
    status: ImportStatus
    total_rows: int = 0
    succeeded: int = 0
    failed: int = 0
    cancel_requested: bool = False
    summary: Optional[ImportSummary] = None
    created_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

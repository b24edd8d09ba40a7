"""Import failure taxonomy.

Row-level failures (``FieldInvalid``, ``TenantMismatch``,
``DuplicateEmployee``) are recorded against a row and the job carries on.
``StorageError`` is raised by the gateway for a failed batch insert,
``FileReadError`` aborts a whole job and ``Cancelled`` marks a job stopped
on request. None of these ever reach an HTTP response.
"""

from __future__ import annotations

from typing import Any, Optional


class ImportFailure(Exception):
    """Base class; ``code`` is the stable identifier stored in summaries."""

    code = "import_failure"

    def __init__(self, detail: str, *, field: Optional[str] = None) -> None:
        self.detail = detail
        self.field = field
        super().__init__(detail)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"code": self.code, "detail": self.detail}
        if self.field:
            data["field"] = self.field
        return data


class RowRejected(ImportFailure):
    """A single row failed validation."""


class FieldInvalid(RowRejected):
    code = "field_invalid"

    def __init__(self, field: str, detail: Optional[str] = None) -> None:
        super().__init__(detail or f"Invalid value for '{field}'.", field=field)


class TenantMismatch(RowRejected):
    code = "tenant_mismatch"

    def __init__(self, user_id: int) -> None:
        super().__init__(
            f"User {user_id} does not belong to the importing company.",
            field="user_id",
        )


class DuplicateEmployee(RowRejected):
    code = "duplicate_employee"

    def __init__(self, user_id: int) -> None:
        super().__init__(
            f"User {user_id} already has an employee record.",
            field="user_id",
        )


class StorageError(ImportFailure):
    code = "storage_error"


class FileReadError(ImportFailure):
    code = "file_read_error"


class Cancelled(ImportFailure):
    code = "cancelled"

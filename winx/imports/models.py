"""Import job ORM model: one row per submitted CSV file."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Optional

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from winx.common.constants import ImportStatus
from winx.database import Base


class EmployeeImport(Base):
    """Status and final summary of a CSV import, polled by the client."""

    __tablename__ = "employee_imports"

    id: Mapped[str] = mapped_column(
        sa.String(32),
        primary_key=True,
        default=lambda: uuid.uuid4().hex,
    )
    company_id: Mapped[int] = mapped_column(
        sa.Integer,
        sa.ForeignKey("companies.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    file_ref: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    original_filename: Mapped[Optional[str]] = mapped_column(sa.String(255))
    status: Mapped[ImportStatus] = mapped_column(
        sa.Enum(ImportStatus, name="import_status", native_enum=False, length=32),
        nullable=False,
        default=ImportStatus.queued,
        index=True,
    )
    total_rows: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    succeeded: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    failed: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    cancel_requested: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=False)
    summary: Mapped[Optional[dict[str, Any]]] = mapped_column(sa.JSON)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), server_default=sa.func.now(),
    )
    started_at: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))
    finished_at: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))

    def __repr__(self) -> str:
        return f"<EmployeeImport {self.id} company={self.company_id} {self.status.value}>"

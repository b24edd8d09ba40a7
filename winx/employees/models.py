"""Employee ORM model: the job record attached to exactly one user."""

from __future__ import annotations

from datetime import date, datetime

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from winx.common.constants import PHONE_DIGITS, RESPONSIBILITY_MAX
from winx.database import Base
from winx.users.models import User


class Employee(Base):
    __tablename__ = "employees"

    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    responsibility: Mapped[str] = mapped_column(
        sa.String(RESPONSIBILITY_MAX), nullable=False,
    )
    admission_at: Mapped[date] = mapped_column(sa.Date, nullable=False)
    # Digits only; normalised before storage
    phone: Mapped[str] = mapped_column(sa.String(PHONE_DIGITS), nullable=False)
    user_id: Mapped[int] = mapped_column(
        sa.Integer,
        sa.ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), server_default=sa.func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), server_default=sa.func.now(),
    )

    # ── Relationships ───────────────────────────────────────────────
    user: Mapped[User] = relationship(back_populates="employee")

    def __repr__(self) -> str:
        return f"<Employee {self.id} user={self.user_id} {self.responsibility!r}>"

"""User ORM model: a tenant-scoped account that may own one employee record."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Optional

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from winx.common.constants import USER_EMAIL_MAX, USER_NAME_MAX
from winx.companies.models import Company
from winx.database import Base

if TYPE_CHECKING:
    from winx.auth.models import UserSession
    from winx.employees.models import Employee


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(sa.String(USER_NAME_MAX), nullable=False)
    email: Mapped[str] = mapped_column(
        sa.String(USER_EMAIL_MAX), unique=True, nullable=False,
    )
    password: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    company_id: Mapped[int] = mapped_column(
        sa.Integer,
        sa.ForeignKey("companies.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    admin: Mapped[bool] = mapped_column(
        sa.Boolean, nullable=False, default=False, server_default=sa.false(),
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), server_default=sa.func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), server_default=sa.func.now(),
    )

    # ── Relationships ───────────────────────────────────────────────
    company: Mapped[Company] = relationship(back_populates="users")
    employee: Mapped[Optional[Employee]] = relationship(
        back_populates="user", uselist=False,
    )
    sessions: Mapped[list[UserSession]] = relationship(
        back_populates="user", passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<User {self.id} {self.email!r} company={self.company_id}>"

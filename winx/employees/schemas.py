"""Employee Pydantic schemas.

Write payloads go through the same normalisers as CSV rows
(``winx.employees.fields``), so an employee created over HTTP and one
imported from a file are validated identically.
"""


from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from winx.employees.fields import (
    clean_responsibility,
    normalize_phone,
    parse_admission_at,
    parse_user_id,
)
from winx.users.schemas import UserBrief


class EmployeeWrite(BaseModel):
    """Payload for creating or fully replacing an employee."""

    model_config = ConfigDict(extra="forbid")

    responsibility: str
    admission_at: date
    phone: str
    user_id: int

    @field_validator("responsibility")
    @classmethod
    def _responsibility(cls, value: str) -> str:
        return clean_responsibility(value)

    @field_validator("admission_at", mode="before")
    @classmethod
    def _admission_at(cls, value: Any) -> date:
        return parse_admission_at(value)

    @field_validator("phone", mode="before")
    @classmethod
    def _phone(cls, value: Any) -> str:
        return normalize_phone(value)

    @field_validator("user_id", mode="before")
    @classmethod
    def _user_id(cls, value: Any) -> int:
        return parse_user_id(value)


class EmployeeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    responsibility: str
    admission_at: date
    phone: str
    user_id: int
    user: Optional[UserBrief] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

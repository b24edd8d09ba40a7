"""User Pydantic schemas: explicit, allow-listed write payloads."""


from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from winx.common.constants import (
    MAX_RECORD_ID,
    PASSWORD_MAX,
    PASSWORD_MIN,
    PASSWORD_RULES,
    USER_EMAIL_MAX,
    USER_NAME_MAX,
)


class UserWrite(BaseModel):
    """Payload for creating or fully replacing a user."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, max_length=USER_NAME_MAX)
    email: EmailStr
    password: str = Field(..., min_length=PASSWORD_MIN, max_length=PASSWORD_MAX)
    company_id: int = Field(..., ge=1, le=MAX_RECORD_ID)
    admin: bool = False

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Name is required.")
        return value

    @field_validator("email")
    @classmethod
    def _lower_email(cls, value: str) -> str:
        if len(value) > USER_EMAIL_MAX:
            raise ValueError(f"E-mail may not exceed {USER_EMAIL_MAX} characters.")
        return value.lower()

    @field_validator("password")
    @classmethod
    def _password_complexity(cls, value: str) -> str:
        for pattern, message in PASSWORD_RULES:
            if not pattern.search(value):
                raise ValueError(message)
        return value


class UserBrief(BaseModel):
    """Minimal user info embedded in employee responses."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    company_id: int


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    company_id: int
    admin: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

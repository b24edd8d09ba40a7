"""Company Pydantic schemas."""


from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from winx.common.constants import COMPANY_NAME_MAX


class CompanyWrite(BaseModel):
    """Payload for creating or replacing a company."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, max_length=COMPANY_NAME_MAX)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Name is required.")
        return value


class CompanyResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

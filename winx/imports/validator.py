"""Row Validator — one decoded CSV row → ``EmployeeRecord`` or a rejection."""

from __future__ import annotations

from typing import AbstractSet, Sequence

from winx.common.constants import IMPORT_COLUMNS
from winx.employees.fields import (
    clean_responsibility,
    normalize_phone,
    parse_admission_at,
    parse_user_id,
)
from winx.imports.errors import DuplicateEmployee, FieldInvalid, TenantMismatch
from winx.imports.gateway import EmployeeGateway
from winx.imports.schemas import EmployeeRecord


def map_row(row: Sequence[str]) -> dict[str, str]:
    """Map positional cells onto the allow-listed import columns.

    Missing trailing cells become ``""``; cells past the known columns are ignored.
    """
    cells = list(row) + [""] * (len(IMPORT_COLUMNS) - len(row))
    return dict(zip(IMPORT_COLUMNS, cells))


class RowValidator:
    """Validates rows for one tenant; performs lookups but never writes."""

    def __init__(self, gateway: EmployeeGateway) -> None:
        self._gateway = gateway

    async def validate(
        self,
        row: Sequence[str],
        company_id: int,
        *,
        claimed_user_ids: AbstractSet[int] = frozenset(),
    ) -> EmployeeRecord:
        """Return the normalised record, or raise a ``RowRejected`` subclass.

        *claimed_user_ids* holds users already taken by earlier rows of the
        same job that are not committed yet.
        """
        fields = map_row(row)

        try:
            responsibility = clean_responsibility(fields["responsibility"])
        except ValueError as exc:
            raise FieldInvalid("responsibility", str(exc)) from None

        try:
            admission_at = parse_admission_at(fields["admission_at"])
        except ValueError as exc:
            raise FieldInvalid("admission_at", str(exc)) from None

        try:
            phone = normalize_phone(fields["phone"])
        except ValueError as exc:
            raise FieldInvalid("phone", str(exc)) from None

        try:
            user_id = parse_user_id(fields["user_id"])
        except ValueError as exc:
            raise FieldInvalid("user_id", str(exc)) from None

        user = await self._gateway.find_user(user_id)
        if user is None:
            raise FieldInvalid("user_id", f"User {user_id} does not exist.")
        if user.company_id != company_id:
            raise TenantMismatch(user_id)
        if user.employee is not None or user_id in claimed_user_ids:
            raise DuplicateEmployee(user_id)

        return EmployeeRecord(
            responsibility=responsibility,
            admission_at=admission_at,
            phone=phone,
            user_id=user_id,
        )

"""Row validator test suite — column mapping, field normalisation and the
tenant / duplicate checks that run against the database."""

from __future__ import annotations

from datetime import date

import pytest

from winx.imports.errors import DuplicateEmployee, FieldInvalid, StorageError, TenantMismatch
from winx.imports.gateway import EmployeeGateway
from winx.imports.validator import RowValidator, map_row
from tests.conftest import TestSessionFactory, seed_employee


@pytest.fixture
def validator() -> RowValidator:
    return RowValidator(EmployeeGateway(TestSessionFactory))


# ── map_row ─────────────────────────────────────────────────────────


def test_map_row_pads_missing_cells():
    assert map_row(["Actor", "2014-08-22"]) == {
        "responsibility": "Actor",
        "admission_at": "2014-08-22",
        "phone": "",
        "user_id": "",
    }


def test_map_row_ignores_extra_cells():
    fields = map_row(["Actor", "2014-08-22", "47988771122", "2", "admin", "true"])
    assert set(fields) == {"responsibility", "admission_at", "phone", "user_id"}
    assert fields["user_id"] == "2"


# ═════════════════════════════════════════════════════════════════════
# FIELD CHECKS
# ═════════════════════════════════════════════════════════════════════


class TestFieldValidation:

    async def test_valid_row_is_normalised(self, validator, member_user):
        record = await validator.validate(
            ["  Actor ", "2014-08-22", "(47) 98877-1122", f" {member_user.id} "],
            member_user.company_id,
        )
        assert record.responsibility == "Actor"
        assert record.admission_at == date(2014, 8, 22)
        assert record.phone == "47988771122"
        assert record.user_id == member_user.id

    @pytest.mark.parametrize(
        "cells, field",
        [
            (["", "2014-08-22", "47988771122", "1"], "responsibility"),
            (["x" * 91, "2014-08-22", "47988771122", "1"], "responsibility"),
            (["Actor", "22/08/2014", "47988771122", "1"], "admission_at"),
            (["Actor", "2014-02-30", "47988771122", "1"], "admission_at"),
            (["Actor", "2014-08-22", "4798877112", "1"], "phone"),
            (["Actor", "2014-08-22", "479887711223", "1"], "phone"),
            (["Actor", "2014-08-22", "47988771122", "abc"], "user_id"),
            (["Actor", "2014-08-22", "47988771122", "-3"], "user_id"),
            (["Actor", "2014-08-22", "47988771122", "0"], "user_id"),
            (["Actor", "2014-08-22", "47988771122", "99999999999999999999"], "user_id"),
            (["Actor", "2014-08-22", "47988771122", "2147483648"], "user_id"),
            (["Actor", "2014-08-22", "47988771122"], "user_id"),
        ],
    )
    async def test_invalid_field(self, validator, company, cells, field):
        with pytest.raises(FieldInvalid) as exc_info:
            await validator.validate(cells, company.id)
        assert exc_info.value.field == field
        assert exc_info.value.code == "field_invalid"

    async def test_first_failing_column_is_reported(self, validator, company):
        with pytest.raises(FieldInvalid) as exc_info:
            await validator.validate(["", "bad-date", "123", "x"], company.id)
        assert exc_info.value.field == "responsibility"

    async def test_unknown_user(self, validator, company):
        with pytest.raises(FieldInvalid) as exc_info:
            await validator.validate(["Actor", "2014-08-22", "47988771122", "9999"], company.id)
        assert exc_info.value.field == "user_id"
        assert "9999" in exc_info.value.detail


# ═════════════════════════════════════════════════════════════════════
# TENANT AND DUPLICATE CHECKS
# ═════════════════════════════════════════════════════════════════════


class TestLookups:

    async def test_user_of_another_company(self, validator, member_user, other_company):
        with pytest.raises(TenantMismatch) as exc_info:
            await validator.validate(
                ["Actor", "2014-08-22", "47988771122", str(member_user.id)],
                other_company.id,
            )
        assert exc_info.value.code == "tenant_mismatch"

    async def test_user_with_existing_employee(self, validator, member_user):
        await seed_employee(member_user)
        with pytest.raises(DuplicateEmployee):
            await validator.validate(
                ["Actor", "2014-08-22", "47988771122", str(member_user.id)],
                member_user.company_id,
            )

    async def test_user_claimed_earlier_in_same_job(self, validator, member_user):
        with pytest.raises(DuplicateEmployee):
            await validator.validate(
                ["Actor", "2014-08-22", "47988771122", str(member_user.id)],
                member_user.company_id,
                claimed_user_ids={member_user.id},
            )

    async def test_lookup_failure_surfaces_as_storage_error(self, company):
        validator = RowValidator(_FailingLookupGateway(TestSessionFactory))
        with pytest.raises(StorageError):
            await validator.validate(["Actor", "2014-08-22", "47988771122", "1"], company.id)


class _FailingLookupGateway(EmployeeGateway):
    async def find_user(self, user_id):
        raise StorageError(f"Looking up user {user_id} failed: OperationalError")

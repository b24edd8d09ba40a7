"""User module test suite — admin-only CRUD, password rules, e-mail uniqueness,
the admin delete guard and removal of a user's employee record.

Uses the shared conftest.py pattern with a throwaway SQLite file.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError
from sqlalchemy import func, select

from winx.auth.service import verify_password
from winx.employees.models import Employee
from winx.users.models import User
from winx.users.schemas import UserWrite
from tests.conftest import TestSessionFactory, seed_employee


def _payload(company_id: int, **overrides) -> dict:
    data = {
        "name": "Stella",
        "email": "stella@winx.dev",
        "password": "Solaria@1",
        "company_id": company_id,
    }
    data.update(overrides)
    return data


# ═════════════════════════════════════════════════════════════════════
# 1. USER CRUD
# ═════════════════════════════════════════════════════════════════════


class TestUserCRUD:

    async def test_create_user_hashes_password(self, client, company, admin_headers):
        resp = await client.post(
            "/api/v1/users",
            json=_payload(company.id, email="Stella@Winx.dev"),
            headers=admin_headers,
        )
        assert resp.status_code == 201
        data = resp.json()["data"]
        assert data["email"] == "stella@winx.dev"
        assert data["admin"] is False
        assert "password" not in data

        async with TestSessionFactory() as session:
            user = await session.get(User, data["id"])
        assert user.password != "Solaria@1"
        assert verify_password("Solaria@1", user.password)

    async def test_get_user(self, client, member_user, admin_headers):
        resp = await client.get(f"/api/v1/users/{member_user.id}", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json()["data"]["email"] == "bojack@winx.dev"

    async def test_get_missing_user(self, client, admin_headers):
        resp = await client.get("/api/v1/users/9999", headers=admin_headers)
        assert resp.status_code == 404

    async def test_update_user_replaces_fields(
        self, client, member_user, other_company, admin_headers,
    ):
        resp = await client.put(
            f"/api/v1/users/{member_user.id}",
            json=_payload(other_company.id, name="BoJack", email="bojack@winx.dev", admin=True),
            headers=admin_headers,
        )
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["name"] == "BoJack"
        assert data["company_id"] == other_company.id
        assert data["admin"] is True

    async def test_list_users_filters(
        self, client, admin_user, member_user, foreign_admin, admin_headers,
    ):
        resp = await client.get("/api/v1/users", headers=admin_headers)
        assert resp.json()["meta"]["total"] == 3

        resp = await client.get(
            "/api/v1/users",
            params={"company_id": admin_user.company_id},
            headers=admin_headers,
        )
        emails = sorted(u["email"] for u in resp.json()["data"])
        assert emails == ["admin@winx.dev", "bojack@winx.dev"]

        resp = await client.get(
            "/api/v1/users", params={"email": "galactica"}, headers=admin_headers,
        )
        assert [u["id"] for u in resp.json()["data"]] == [foreign_admin.id]

    async def test_list_users_pagination(self, client, admin_user, member_user, admin_headers):
        resp = await client.get(
            "/api/v1/users",
            params={"page_size": 1, "page": 2, "sort": "-id"},
            headers=admin_headers,
        )
        body = resp.json()
        assert body["meta"]["total"] == 2
        assert body["meta"]["total_pages"] == 2
        assert body["meta"]["has_prev"] is True
        assert body["meta"]["has_next"] is False
        assert [u["id"] for u in body["data"]] == [admin_user.id]


# ═════════════════════════════════════════════════════════════════════
# 2. VALIDATION
# ═════════════════════════════════════════════════════════════════════


class TestUserValidation:

    @pytest.mark.parametrize(
        "password, message",
        [
            ("Sh@1", "at least 8"),
            ("Toolongpassword@12345", "at most 20"),
            ("lowercase@1", "uppercase"),
            ("NoNumbers@", "number"),
            ("NoSpecial1", "special character"),
        ],
    )
    def test_password_rules(self, password, message):
        with pytest.raises(ValidationError) as exc_info:
            UserWrite(**_payload(1, password=password))
        assert message in str(exc_info.value)

    def test_email_max_length(self):
        local = "a" * 60
        with pytest.raises(ValidationError):
            UserWrite(**_payload(1, email=f"{local}@{'b' * 60}.{'c' * 40}.dev"))

    async def test_duplicate_email_conflict(self, client, member_user, admin_headers):
        resp = await client.post(
            "/api/v1/users",
            json=_payload(member_user.company_id, email="BOJACK@winx.dev"),
            headers=admin_headers,
        )
        assert resp.status_code == 409
        assert "email" in resp.json()["errors"]

    async def test_unknown_company(self, client, admin_headers):
        resp = await client.post("/api/v1/users", json=_payload(9999), headers=admin_headers)
        assert resp.status_code == 422
        assert "company_id" in resp.json()["errors"]

    async def test_unknown_fields_rejected(self, client, company, admin_headers):
        resp = await client.post(
            "/api/v1/users",
            json=_payload(company.id, role="superuser"),
            headers=admin_headers,
        )
        assert resp.status_code == 422


# ═════════════════════════════════════════════════════════════════════
# 3. PERMISSIONS & DELETE
# ═════════════════════════════════════════════════════════════════════


class TestUserDelete:

    async def test_non_admin_forbidden(self, client, member_user, member_headers):
        resp = await client.get("/api/v1/users", headers=member_headers)
        assert resp.status_code == 403

    async def test_admin_cannot_be_deleted(self, client, admin_user, admin_headers):
        resp = await client.delete(f"/api/v1/users/{admin_user.id}", headers=admin_headers)
        assert resp.status_code == 422
        assert resp.json()["errors"] == {"user": ["User Admin cannot be deleted."]}

    async def test_delete_removes_employee_record(
        self, client, member_user, member_headers, admin_headers,
    ):
        await seed_employee(member_user)

        resp = await client.delete(f"/api/v1/users/{member_user.id}", headers=admin_headers)
        assert resp.status_code == 200

        async with TestSessionFactory() as session:
            users = (await session.execute(
                select(func.count()).select_from(User).where(User.id == member_user.id),
            )).scalar_one()
            employees = (await session.execute(
                select(func.count()).select_from(Employee).where(
                    Employee.user_id == member_user.id,
                ),
            )).scalar_one()
        assert users == 0
        assert employees == 0

        # Deleted user's session no longer authenticates
        resp = await client.get("/api/v1/auth/me", headers=member_headers)
        assert resp.status_code == 401

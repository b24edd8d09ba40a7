"""Company module test suite — CRUD over HTTP, admin-only writes, filtering,
and the cascading delete of a company's users, employees and import jobs.

Uses the shared conftest.py pattern with a throwaway SQLite file.
"""

from __future__ import annotations

from sqlalchemy import func, select

from winx.auth.models import UserSession
from winx.common.constants import ImportStatus
from winx.companies.models import Company
from winx.employees.models import Employee
from winx.imports.models import EmployeeImport
from winx.users.models import User
from tests.conftest import (
    TestSessionFactory,
    bearer_for,
    seed,
    seed_employee,
    seed_user,
)


async def _count(model, *where) -> int:
    async with TestSessionFactory() as session:
        query = select(func.count()).select_from(model)
        if where:
            query = query.where(*where)
        return (await session.execute(query)).scalar_one()


# ═════════════════════════════════════════════════════════════════════
# 1. COMPANY CRUD
# ═════════════════════════════════════════════════════════════════════


class TestCompanyCRUD:
    """Tests for company create, read, update, delete."""

    async def test_create_company(self, client, admin_headers):
        resp = await client.post(
            "/api/v1/companies", json={"name": "  Alfea  "}, headers=admin_headers,
        )
        assert resp.status_code == 201
        body = resp.json()
        assert body["message"] == "Company created successfully."
        assert body["data"]["name"] == "Alfea"
        assert isinstance(body["data"]["id"], int)

    async def test_get_company(self, client, company, member_headers):
        resp = await client.get(f"/api/v1/companies/{company.id}", headers=member_headers)
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["id"] == company.id
        assert data["name"] == "Winx"

    async def test_get_missing_company(self, client, member_headers):
        resp = await client.get("/api/v1/companies/9999", headers=member_headers)
        assert resp.status_code == 404
        assert resp.json()["title"] == "Company Not Found"

    async def test_update_company(self, client, company, admin_headers):
        resp = await client.put(
            f"/api/v1/companies/{company.id}",
            json={"name": "Winx Club"},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["data"]["name"] == "Winx Club"

    async def test_list_companies_filtered_by_name(
        self, client, company, other_company, member_headers,
    ):
        resp = await client.get("/api/v1/companies", headers=member_headers)
        assert resp.status_code == 200
        assert resp.json()["meta"]["total"] == 2

        resp = await client.get(
            "/api/v1/companies", params={"name": "galác"}, headers=member_headers,
        )
        names = [c["name"] for c in resp.json()["data"]]
        assert names == ["República Galáctica"]


# ═════════════════════════════════════════════════════════════════════
# 2. VALIDATION & PERMISSIONS
# ═════════════════════════════════════════════════════════════════════


class TestCompanyValidation:

    async def test_name_is_required(self, client, admin_headers):
        resp = await client.post("/api/v1/companies", json={"name": "   "}, headers=admin_headers)
        assert resp.status_code == 422
        assert "name" in resp.json()["errors"]

    async def test_name_max_length(self, client, admin_headers):
        resp = await client.post(
            "/api/v1/companies", json={"name": "x" * 91}, headers=admin_headers,
        )
        assert resp.status_code == 422

    async def test_unknown_fields_rejected(self, client, admin_headers):
        """Only allow-listed fields are accepted on write."""
        resp = await client.post(
            "/api/v1/companies",
            json={"name": "Alfea", "id": 77},
            headers=admin_headers,
        )
        assert resp.status_code == 422

    async def test_non_admin_cannot_write(self, client, company, member_headers):
        resp = await client.post(
            "/api/v1/companies", json={"name": "Alfea"}, headers=member_headers,
        )
        assert resp.status_code == 403

        resp = await client.delete(f"/api/v1/companies/{company.id}", headers=member_headers)
        assert resp.status_code == 403

    async def test_anonymous_cannot_list(self, client, company):
        resp = await client.get("/api/v1/companies")
        assert resp.status_code == 401


# ═════════════════════════════════════════════════════════════════════
# 3. CASCADING DELETE
# ═════════════════════════════════════════════════════════════════════


class TestCompanyCascade:

    async def test_delete_removes_users_employees_and_imports(
        self, client, company, other_company, member_user, foreign_admin, foreign_headers,
    ):
        """Deleting a company removes its users, their employees, sessions and imports
        but leaves other companies untouched."""
        await seed_employee(member_user)
        await bearer_for(member_user)
        foreign_member = await seed_user(other_company, "padme@galactica.dev", name="Padmé")
        await seed_employee(foreign_member, responsibility="Senator", phone="47988771133")
        await seed(EmployeeImport, dict(
            company_id=company.id, file_ref="imports/x.csv", status=ImportStatus.completed,
        ))

        resp = await client.delete(f"/api/v1/companies/{company.id}", headers=foreign_headers)
        assert resp.status_code == 200
        assert resp.json()["data"] == []

        assert await _count(Company, Company.id == company.id) == 0
        assert await _count(User, User.company_id == company.id) == 0
        assert await _count(Employee, Employee.user_id == member_user.id) == 0
        assert await _count(UserSession, UserSession.user_id == member_user.id) == 0
        assert await _count(EmployeeImport, EmployeeImport.company_id == company.id) == 0

        # The other tenant is untouched
        assert await _count(User, User.company_id == other_company.id) == 2
        assert await _count(Employee, Employee.user_id == foreign_member.id) == 1

    async def test_delete_missing_company(self, client, admin_headers):
        resp = await client.delete("/api/v1/companies/9999", headers=admin_headers)
        assert resp.status_code == 404

    async def test_deleted_companys_sessions_stop_working(
        self, client, company, member_headers, foreign_headers,
    ):
        resp = await client.delete(f"/api/v1/companies/{company.id}", headers=foreign_headers)
        assert resp.status_code == 200

        resp = await client.get("/api/v1/auth/me", headers=member_headers)
        assert resp.status_code == 401


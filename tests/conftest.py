"""Shared test fixtures — async DB, client, auth helpers, factories.

Reusable across all test modules (auth, companies, users, employees, imports).
Uses a throwaway SQLite file + aiosqlite instead of PostgreSQL. Every
session gets its own connection, so import workers, request handlers and
seed helpers see each other's commits the way they would in production.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

# Set test JWT_SECRET before any other import touches pydantic-settings
os.environ.setdefault("JWT_SECRET", "test-secret-for-ci-do-not-use-in-production")

from datetime import date
from typing import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from winx.auth.service import create_session, hash_password
from winx.database import Base, get_db
from winx.imports.dependencies import get_upload_store
from winx.imports.dispatcher import ImportDispatcher
from winx.imports.files import UploadStore
from winx.main import create_app

# Import ALL model modules so SQLAlchemy can resolve cross-module relationships
import winx.auth.models  # noqa: F401
import winx.companies.models  # noqa: F401
import winx.employees.models  # noqa: F401
import winx.imports.models  # noqa: F401
import winx.users.models  # noqa: F401

from winx.companies.models import Company
from winx.employees.models import Employee
from winx.users.models import User

# ── Test database (SQLite file) ─────────────────────────────────────

TEST_DB_PATH = Path(tempfile.gettempdir()) / f"winx-tests-{os.getpid()}.sqlite3"
TEST_DATABASE_URL = f"sqlite+aiosqlite:///{TEST_DB_PATH}"

engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=NullPool)

TestSessionFactory = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False,
)

DEFAULT_PASSWORD = "Secret@123"
# bcrypt is slow on purpose; hash once for every seeded user
DEFAULT_PASSWORD_HASH = hash_password(DEFAULT_PASSWORD)


@pytest.fixture(scope="session", autouse=True)
def _remove_db_file():
    yield
    TEST_DB_PATH.unlink(missing_ok=True)


@pytest.fixture(autouse=True)
async def _setup_db():
    """Create all tables before each test, drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture(autouse=True)
def _reset_rate_limiter():
    """Reset rate limiter storage between tests to prevent cross-test interference."""
    from winx.common.rate_limit import limiter

    limiter.reset()
    yield


async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── Import pipeline wiring ──────────────────────────────────────────

@pytest.fixture
def upload_store(tmp_path) -> UploadStore:
    return UploadStore(tmp_path / "uploads")


@pytest.fixture
async def dispatcher(upload_store) -> AsyncGenerator[ImportDispatcher, None]:
    """A dispatcher bound to the test database; workers are started by the test."""
    instance = ImportDispatcher(TestSessionFactory, upload_store, workers=1, batch_size=2)
    yield instance
    await instance.stop()


# ── FastAPI test client ─────────────────────────────────────────────

@pytest.fixture
async def app(upload_store, dispatcher):
    """Create a fresh app instance with DB and import dependencies overridden."""
    application = create_app()
    application.dependency_overrides[get_db] = _override_get_db
    application.dependency_overrides[get_upload_store] = lambda: upload_store
    application.state.import_dispatcher = dispatcher
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client wired to the test app."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


# ── Database session (for direct DB operations in tests) ────────────

@pytest.fixture
async def db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        yield session
        await session.commit()


# ── Model factories ─────────────────────────────────────────────────

def _make_company(*, name: str = "Winx") -> dict:
    return dict(name=name)


def _make_user(
    *,
    company_id: int,
    email: str = "bloom@winx.dev",
    name: str = "Bloom",
    admin: bool = False,
) -> dict:
    return dict(
        name=name,
        email=email,
        password=DEFAULT_PASSWORD_HASH,
        company_id=company_id,
        admin=admin,
    )


def _make_employee(
    *,
    user_id: int,
    responsibility: str = "Actor",
    admission_at: date = date(2014, 8, 22),
    phone: str = "47988771122",
) -> dict:
    return dict(
        responsibility=responsibility,
        admission_at=admission_at,
        phone=phone,
        user_id=user_id,
    )


async def seed(model, data: dict):
    """Insert one row in its own committed transaction and return it."""
    async with TestSessionFactory() as session:
        instance = model(**data)
        session.add(instance)
        await session.commit()
        return instance


async def seed_user(company: Company, email: str, **kwargs) -> User:
    return await seed(User, _make_user(company_id=company.id, email=email, **kwargs))


async def seed_employee(user: User, **kwargs) -> Employee:
    return await seed(Employee, _make_employee(user_id=user.id, **kwargs))


@pytest.fixture
async def company() -> Company:
    return await seed(Company, _make_company())


@pytest.fixture
async def other_company() -> Company:
    return await seed(Company, _make_company(name="República Galáctica"))


@pytest.fixture
async def admin_user(company) -> User:
    return await seed_user(company, "admin@winx.dev", name="Admin Master", admin=True)


@pytest.fixture
async def member_user(company) -> User:
    return await seed_user(company, "bojack@winx.dev", name="BoJack Horseman")


@pytest.fixture
async def foreign_admin(other_company) -> User:
    return await seed_user(
        other_company, "anakin@galactica.dev", name="Anakin Skywalker", admin=True,
    )


# ── Auth helpers ────────────────────────────────────────────────────

async def bearer_for(user: User) -> dict[str, str]:
    """Return Bearer auth headers with a valid session persisted in the DB."""
    async with TestSessionFactory() as session:
        access_token, _, _ = await create_session(session, user)
        await session.commit()
    return {"Authorization": f"Bearer {access_token}"}


@pytest.fixture
async def admin_headers(admin_user) -> dict[str, str]:
    return await bearer_for(admin_user)


@pytest.fixture
async def member_headers(member_user) -> dict[str, str]:
    return await bearer_for(member_user)


@pytest.fixture
async def foreign_headers(foreign_admin) -> dict[str, str]:
    return await bearer_for(foreign_admin)

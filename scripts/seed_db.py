#!/usr/bin/env python3
"""Seed the database with the demo companies, users and employees.

Usage:
    python scripts/seed_db.py                 # create tables (if missing) and seed
    python scripts/seed_db.py --skip-create   # seed only; schema managed by alembic
    python scripts/seed_db.py --reset         # drop and recreate every table first

Requires .env at project root with DATABASE_URL and JWT_SECRET.
Seeding is skipped when any company already exists, unless --reset is given.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from datetime import date
from pathlib import Path

# ── Path setup ────────────────────────────────────────────────────────
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from dotenv import load_dotenv

load_dotenv(PROJECT_ROOT / ".env")

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s — %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("seed_db")

from sqlalchemy import func, select  # noqa: E402

from winx.auth.models import UserSession  # noqa: E402,F401
from winx.auth.service import hash_password  # noqa: E402
from winx.companies.models import Company  # noqa: E402
from winx.database import Base, async_session_factory, engine  # noqa: E402
from winx.employees.models import Employee  # noqa: E402
from winx.imports.models import EmployeeImport  # noqa: E402,F401
from winx.users.models import User  # noqa: E402


# ══════════════════════════════════════════════════════════════════════
# Seed data
# ══════════════════════════════════════════════════════════════════════

COMPANIES = ["Winx", "República Galáctica"]

# (name, email, password, company index, admin)
USERS = [
    ("Admin Master", "admin@adminstradores.adm", "Admin@adm1", 0, True),
    ("BoJack Horseman", "bojack@horse.men", "Bo@Jack12", 0, False),
    ("Anakin Skywalker", "bogan@imperio.tatooine", "Darth@Vader1", 1, True),
]

# (user index, responsibility, admission_at, phone)
EMPLOYEES = [
    (1, "Actor", date(2014, 8, 22), "47988771122"),
    (2, "Mestre Jedi", date(2012, 2, 9), "47988771133"),
]


async def seed(*, create: bool, reset: bool) -> int:
    """Insert the seed rows in one transaction; returns the number of rows added."""
    if reset or create:
        async with engine.begin() as conn:
            if reset:
                logger.info("Dropping all tables")
                await conn.run_sync(Base.metadata.drop_all)
            await conn.run_sync(Base.metadata.create_all)

    async with async_session_factory() as session:
        existing = (await session.execute(select(func.count(Company.id)))).scalar_one()
        if existing:
            logger.info("Database already has %d companies; nothing to seed", existing)
            return 0

        async with session.begin():
            companies = [Company(name=name) for name in COMPANIES]
            session.add_all(companies)
            await session.flush()

            users = [
                User(
                    name=name,
                    email=email,
                    password=hash_password(password),
                    company_id=companies[company_idx].id,
                    admin=admin,
                )
                for name, email, password, company_idx, admin in USERS
            ]
            session.add_all(users)
            await session.flush()

            employees = [
                Employee(
                    responsibility=responsibility,
                    admission_at=admission_at,
                    phone=phone,
                    user_id=users[user_idx].id,
                )
                for user_idx, responsibility, admission_at, phone in EMPLOYEES
            ]
            session.add_all(employees)

    total = len(companies) + len(users) + len(employees)
    logger.info(
        "Seeded %d companies, %d users, %d employees",
        len(companies), len(users), len(employees),
    )
    return total


def main():
    parser = argparse.ArgumentParser(description="Seed the Winx database with demo data")
    parser.add_argument("--skip-create", action="store_true",
                        help="Do not create missing tables (schema managed by alembic)")
    parser.add_argument("--reset", action="store_true",
                        help="Drop and recreate all tables before seeding")
    args = parser.parse_args()

    async def _run() -> int:
        try:
            return await seed(create=not args.skip_create, reset=args.reset)
        finally:
            await engine.dispose()

    asyncio.run(_run())


if __name__ == "__main__":
    main()

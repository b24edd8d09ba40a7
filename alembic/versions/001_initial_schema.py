"""001 – Initial schema: companies, users, employees, sessions, imports.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-18 10:00:00.000000+00:00
"""

from alembic import op

# Revision identifiers
revision = "001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


# ---------------------------------------------------------------------------
# UPGRADE
# ---------------------------------------------------------------------------


def upgrade() -> None:
    # ── 1. companies ──────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE companies (
            id          SERIAL PRIMARY KEY,
            name        VARCHAR(90) NOT NULL,
            created_at  TIMESTAMPTZ DEFAULT NOW(),
            updated_at  TIMESTAMPTZ DEFAULT NOW()
        )
    """)

    # ── 2. users ──────────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE users (
            id          SERIAL PRIMARY KEY,
            name        VARCHAR(150) NOT NULL,
            email       VARCHAR(150) NOT NULL UNIQUE,
            password    VARCHAR(255) NOT NULL,
            company_id  INTEGER NOT NULL REFERENCES companies(id) ON DELETE CASCADE,
            admin       BOOLEAN NOT NULL DEFAULT FALSE,
            created_at  TIMESTAMPTZ DEFAULT NOW(),
            updated_at  TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX ix_users_company_id ON users (company_id)")

    # ── 3. employees ──────────────────────────────────────────────────────
    # user_id is UNIQUE: a user owns at most one employee record
    op.execute("""
        CREATE TABLE employees (
            id              SERIAL PRIMARY KEY,
            responsibility  VARCHAR(90) NOT NULL,
            admission_at    DATE NOT NULL,
            phone           VARCHAR(11) NOT NULL,
            user_id         INTEGER NOT NULL UNIQUE REFERENCES users(id) ON DELETE CASCADE,
            created_at      TIMESTAMPTZ DEFAULT NOW(),
            updated_at      TIMESTAMPTZ DEFAULT NOW()
        )
    """)

    # ── 4. user_sessions ──────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE user_sessions (
            id                  VARCHAR(32) PRIMARY KEY,
            user_id             INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            token_hash          VARCHAR(64) NOT NULL,
            refresh_token_hash  VARCHAR(64),
            ip_address          VARCHAR(45),
            user_agent          TEXT,
            expires_at          TIMESTAMPTZ NOT NULL,
            is_revoked          BOOLEAN NOT NULL DEFAULT FALSE,
            created_at          TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX ix_user_sessions_user_id ON user_sessions (user_id)")
    op.execute("CREATE INDEX ix_user_sessions_token_hash ON user_sessions (token_hash)")
    op.execute(
        "CREATE INDEX ix_user_sessions_refresh_token_hash "
        "ON user_sessions (refresh_token_hash)"
    )

    # ── 5. employee_imports ───────────────────────────────────────────────
    op.execute("""
        CREATE TABLE employee_imports (
            id                 VARCHAR(32) PRIMARY KEY,
            company_id         INTEGER NOT NULL REFERENCES companies(id) ON DELETE CASCADE,
            file_ref           VARCHAR(255) NOT NULL,
            original_filename  VARCHAR(255),
            status             VARCHAR(32) NOT NULL DEFAULT 'queued',
            total_rows         INTEGER NOT NULL DEFAULT 0,
            succeeded          INTEGER NOT NULL DEFAULT 0,
            failed             INTEGER NOT NULL DEFAULT 0,
            summary            JSON,
            created_at         TIMESTAMPTZ DEFAULT NOW(),
            started_at         TIMESTAMPTZ,
            finished_at        TIMESTAMPTZ,
            CONSTRAINT import_status CHECK (status IN (
                'queued', 'running', 'completed', 'completed_with_errors',
                'aborted', 'cancelled'
            ))
        )
    """)
    op.execute(
        "CREATE INDEX ix_employee_imports_company_id ON employee_imports (company_id)"
    )


# ---------------------------------------------------------------------------
# DOWNGRADE
# ---------------------------------------------------------------------------


def downgrade() -> None:
    # Drop tables in reverse dependency order
    tables = [
        "employee_imports",
        "user_sessions",
        "employees",
        "users",
        "companies",
    ]
    for table in tables:
        op.execute(f"DROP TABLE IF EXISTS {table} CASCADE")

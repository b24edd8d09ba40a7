"""002 – employee_imports.cancel_requested.

Lets a cancel request reach a job that is running in another API process:
the worker reads the flag between batches.

Revision ID: 002_import_cancel_flag
Revises: 001_initial_schema
Create Date: 2026-10-18 16:30:00.000000+00:00
"""

from alembic import op

# Revision identifiers
revision = "002_import_cancel_flag"
down_revision = "001_initial_schema"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.execute("""
        ALTER TABLE employee_imports
            ADD COLUMN IF NOT EXISTS cancel_requested BOOLEAN NOT NULL DEFAULT FALSE
    """)
    # Startup recovery scans unfinished jobs
    op.execute(
        "CREATE INDEX IF NOT EXISTS ix_employee_imports_status ON employee_imports (status)"
    )


def downgrade() -> None:
    op.execute("DROP INDEX IF EXISTS ix_employee_imports_status")
    op.execute("ALTER TABLE employee_imports DROP COLUMN IF EXISTS cancel_requested")

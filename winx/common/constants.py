"""Enums and constants shared across the Winx API."""

from __future__ import annotations

import enum
import re


# ── Field limits ────────────────────────────────────────────────────

COMPANY_NAME_MAX = 90
USER_NAME_MAX = 150
USER_EMAIL_MAX = 150
PASSWORD_MIN = 8
PASSWORD_MAX = 20
RESPONSIBILITY_MAX = 90
PHONE_DIGITS = 11

# Upper bound of the INTEGER primary keys
MAX_RECORD_ID = 2**31 - 1

DATE_FORMAT = "%Y-%m-%d"

# Password complexity rules: (pattern, message)
PASSWORD_RULES: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"[A-Z]"), "Password must contain at least one uppercase letter."),
    (re.compile(r"[0-9]"), "Password must contain at least one number."),
    (re.compile(r"[@$!%*?&]"), "Password must contain at least one special character (@$!%*?&)."),
]

_NON_DIGIT = re.compile(r"\D")


def strip_phone(value: str) -> str:
    """Drop every non-digit character: ``"(47) 98877-1122"`` → ``"47988771122"``."""
    return _NON_DIGIT.sub("", value)


# ── Pagination ──────────────────────────────────────────────────────

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 100


# ── CSV import ──────────────────────────────────────────────────────

# Column order of an employee import file; the header row is skipped, not matched.
IMPORT_COLUMNS: tuple[str, ...] = ("responsibility", "admission_at", "phone", "user_id")

IMPORT_CONTENT_TYPES = frozenset({
    "text/csv",
    "text/plain",
    "application/csv",
    "application/vnd.ms-excel",
})
IMPORT_EXTENSIONS = frozenset({".csv", ".txt"})


class ImportStatus(str, enum.Enum):
    queued = "queued"
    running = "running"
    completed = "completed"
    completed_with_errors = "completed_with_errors"
    aborted = "aborted"
    cancelled = "cancelled"


FINISHED_IMPORT_STATUSES = frozenset({
    ImportStatus.completed,
    ImportStatus.completed_with_errors,
    ImportStatus.aborted,
    ImportStatus.cancelled,
})

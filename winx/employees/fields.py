"""Employee field normalisers shared by the HTTP schemas and the CSV import.

Each function returns the normalised value or raises ``ValueError`` with a
human-readable message; callers translate that into a 422 or a row rejection.
"""

from __future__ import annotations

from datetime import date, datetime

from winx.common.constants import (
    DATE_FORMAT,
    MAX_RECORD_ID,
    PHONE_DIGITS,
    RESPONSIBILITY_MAX,
    strip_phone,
)


def clean_responsibility(value: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValueError("Responsibility is required.")
    if len(value) > RESPONSIBILITY_MAX:
        raise ValueError(f"Responsibility may not exceed {RESPONSIBILITY_MAX} characters.")
    return value


def parse_admission_at(value: str | date) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    value = (value or "").strip()
    if not value:
        raise ValueError("Admission date is required.")
    try:
        return datetime.strptime(value, DATE_FORMAT).date()
    except ValueError:
        raise ValueError(f"Admission date '{value}' must use the yyyy-mm-dd format.") from None


def normalize_phone(value: str | int) -> str:
    digits = strip_phone(str(value or ""))
    if len(digits) != PHONE_DIGITS:
        raise ValueError(f"Phone must contain exactly {PHONE_DIGITS} digits.")
    return digits


def parse_user_id(value: str | int) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        user_id = value
    else:
        text = str(value or "").strip()
        if not text.isdigit():
            raise ValueError("User id must be a positive integer.")
        user_id = int(text)
    if not 1 <= user_id <= MAX_RECORD_ID:
        raise ValueError(f"User id must be between 1 and {MAX_RECORD_ID}.")
    return user_id

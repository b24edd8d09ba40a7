"""HTTP error types rendered as RFC 7807 problem details.

Every handled error leaves the API as ``application/problem+json``::

    {"type": ".../errors/not-found", "title": "...", "status": 404,
     "detail": "...", "instance": "/api/v1/...", "errors": {...}}

``errors`` maps a field name to its messages and is present only when there
is something field-specific to report.
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

BASE_ERROR_URI = "https://api.winx.dev/errors"
PROBLEM_JSON = "application/problem+json"

FieldErrors = dict[str, list[str]]


class AppException(Exception):
    """Base for errors the API reports to its caller."""

    status_code = 500
    error_type = "internal-error"
    title = "Internal Server Error"

    def __init__(self, detail: str, errors: Optional[FieldErrors] = None) -> None:
        self.detail = detail
        self.errors = errors
        super().__init__(detail)


class NotFoundException(AppException):
    """404; also used for rows owned by another company."""

    status_code = 404
    error_type = "not-found"

    def __init__(self, entity_type: str, entity_id: Any) -> None:
        self.title = f"{entity_type} Not Found"
        super().__init__(f"{entity_type} with id '{entity_id}' does not exist.")


class ConflictError(AppException):
    status_code = 409
    error_type = "conflict"
    title = "Conflict"

    def __init__(self, field: str, value: Any, detail: Optional[str] = None) -> None:
        super().__init__(
            detail or f"An entry with {field}='{value}' already exists.",
            {field: [f"'{value}' is already in use."]},
        )


class UnauthorizedException(AppException):
    status_code = 401
    error_type = "unauthorized"
    title = "Unauthorized"

    def __init__(self, detail: str = "Authentication required.") -> None:
        super().__init__(detail)


class ForbiddenException(AppException):
    status_code = 403
    error_type = "forbidden"
    title = "Forbidden"

    def __init__(self, detail: str = "You do not have permission to perform this action.") -> None:
        super().__init__(detail)


class ValidationException(AppException):
    """422 raised by services for rules a schema cannot check (lookups, guards)."""

    status_code = 422
    error_type = "validation-error"
    title = "Validation Error"

    def __init__(self, errors: FieldErrors) -> None:
        super().__init__("One or more fields failed validation.", errors)


# ── Rendering ───────────────────────────────────────────────────────

def problem_response(
    request: Request,
    *,
    status: int,
    error_type: str,
    title: str,
    detail: str,
    errors: Optional[FieldErrors] = None,
    headers: Optional[dict[str, str]] = None,
) -> JSONResponse:
    body: dict[str, Any] = {
        "type": f"{BASE_ERROR_URI}/{error_type}",
        "title": title,
        "status": status,
        "detail": detail,
        "instance": request.url.path,
    }
    if errors:
        body["errors"] = errors
    return JSONResponse(
        status_code=status, content=body, media_type=PROBLEM_JSON, headers=headers,
    )


def _field_name(loc: tuple) -> str:
    # ("body", "phone") → "phone"; ("query", "page") → "page"
    parts = [str(p) for p in loc[1:]] if len(loc) > 1 else [str(p) for p in loc]
    return ".".join(parts) or "unknown"


def _message(err: dict[str, Any]) -> str:
    # pydantic prefixes messages raised from our validators with "Value error, "
    return str(err.get("msg", "Invalid value")).removeprefix("Value error, ")


async def _handle_app_exception(request: Request, exc: AppException) -> JSONResponse:
    return problem_response(
        request,
        status=exc.status_code,
        error_type=exc.error_type,
        title=exc.title,
        detail=exc.detail,
        errors=exc.errors,
        headers={"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None,
    )


async def _handle_validation_error(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    errors: FieldErrors = {}
    for err in exc.errors():
        errors.setdefault(_field_name(tuple(err.get("loc", ()))), []).append(_message(err))
    return problem_response(
        request,
        status=422,
        error_type="validation-error",
        title="Validation Error",
        detail="Request validation failed.",
        errors=errors,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the problem-detail handlers (called from main.py)."""
    app.add_exception_handler(AppException, _handle_app_exception)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _handle_validation_error)  # type: ignore[arg-type]

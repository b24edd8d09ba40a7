"""Common module — shared utilities for the Winx API."""

from winx.common.constants import (
    DATE_FORMAT,
    DEFAULT_PAGE_SIZE,
    IMPORT_COLUMNS,
    MAX_PAGE_SIZE,
    ImportStatus,
    strip_phone,
)
from winx.common.exceptions import (
    AppException,
    ConflictError,
    ForbiddenException,
    NotFoundException,
    UnauthorizedException,
    ValidationException,
    register_exception_handlers,
)
from winx.common.filters import apply_filters, apply_sorting
from winx.common.pagination import (
    Page,
    PageMeta,
    PageRequest,
    page_request,
    paginate,
)

__all__ = [
    # Constants / Enums
    "DATE_FORMAT",
    "DEFAULT_PAGE_SIZE",
    "IMPORT_COLUMNS",
    "MAX_PAGE_SIZE",
    "ImportStatus",
    "strip_phone",
    # Exceptions
    "AppException",
    "ConflictError",
    "ForbiddenException",
    "NotFoundException",
    "UnauthorizedException",
    "ValidationException",
    "register_exception_handlers",
    # Filters
    "apply_filters",
    "apply_sorting",
    # Pagination
    "Page",
    "PageMeta",
    "PageRequest",
    "page_request",
    "paginate",
]

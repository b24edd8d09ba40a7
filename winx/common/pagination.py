"""Offset pagination for list endpoints.

List routes depend on ``page_request`` and answer with
``Page.envelope(Schema)``: ``{"data": [...], "meta": {...}}``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Optional, Sequence

from fastapi import Query
from pydantic import BaseModel
from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from winx.common.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from winx.common.filters import apply_sorting


@dataclass(frozen=True)
class PageRequest:
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE
    sort: Optional[str] = None

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


def page_request(
    page: int = Query(default=1, ge=1, description="Page number (1-indexed)"),
    page_size: int = Query(
        default=DEFAULT_PAGE_SIZE,
        ge=1,
        le=MAX_PAGE_SIZE,
        description=f"Items per page (max {MAX_PAGE_SIZE})",
    ),
    sort: Optional[str] = Query(
        default=None,
        description='Sort field; prefix "-" for descending (e.g. "-admission_at")',
    ),
) -> PageRequest:
    """FastAPI dependency: ``Depends(page_request)``."""
    return PageRequest(page=page, page_size=page_size, sort=sort)


class PageMeta(BaseModel):
    page: int
    page_size: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool

    @classmethod
    def build(cls, request: PageRequest, total: int) -> PageMeta:
        total_pages = math.ceil(total / request.page_size)
        return cls(
            page=request.page,
            page_size=request.page_size,
            total=total,
            total_pages=total_pages,
            has_next=request.page < total_pages,
            has_prev=request.page > 1,
        )


@dataclass
class Page:
    items: Sequence[Any]
    meta: PageMeta

    def envelope(self, schema: type[BaseModel]) -> dict[str, Any]:
        """Serialise the ORM rows through *schema* into the list envelope."""
        return {
            "data": [schema.model_validate(item).model_dump(mode="json") for item in self.items],
            "meta": self.meta.model_dump(),
        }


async def paginate(
    session: AsyncSession,
    query: Select,
    request: PageRequest,
    *,
    model: Any,
    options: Sequence[Any] = (),
) -> Page:
    """Count *query*, then fetch the requested page sorted per ``request.sort``.

    Loader *options* apply to the page query only.
    """
    total = (
        await session.execute(
            select(func.count()).select_from(query.order_by(None).subquery()),
        )
    ).scalar_one()

    page_query = apply_sorting(query, model, request.sort).options(*options)
    items = (
        await session.execute(page_query.offset(request.offset).limit(request.page_size))
    ).scalars().all()

    return Page(items=items, meta=PageMeta.build(request, total))

"""Query-string filters and sorting for list endpoints.

Filter keys name a mapped column, optionally followed by an operator suffix:
``name`` (equals), ``name__ilike`` (substring, case-insensitive),
``id__from`` / ``id__to`` (inclusive bounds) and ``id__in`` (membership).
Keys naming no mapped column are ignored, so user input never becomes SQL.
"""

from __future__ import annotations

import operator
from typing import Any, Callable, Optional

from sqlalchemy import Select
from sqlalchemy.orm import InstrumentedAttribute

_OPERATORS: dict[str, Callable[[Any, Any], Any]] = {
    "eq": operator.eq,
    "ilike": lambda col, value: col.ilike(f"%{value}%"),
    "from": operator.ge,
    "to": operator.le,
    "in": lambda col, values: col.in_(values),
}


def _get_column(model: Any, name: str) -> Optional[InstrumentedAttribute]:
    """Return the mapped attribute *name* on *model*, or None."""
    attr = getattr(model, name, None)
    return attr if isinstance(attr, InstrumentedAttribute) else None


def _split_key(key: str) -> tuple[str, str]:
    name, sep, suffix = key.rpartition("__")
    if sep and suffix in _OPERATORS:
        return name, suffix
    return key, "eq"


def apply_filters(query: Select, model: Any, filters: dict[str, Any]) -> Select:
    """AND every non-empty entry of *filters* onto *query*."""
    for key, value in filters.items():
        if value is None or value == "":
            continue
        name, op = _split_key(key)
        col = _get_column(model, name)
        if col is not None:
            query = query.where(_OPERATORS[op](col, value))
    return query


def apply_sorting(
    query: Select,
    model: Any,
    sort: Optional[str],
    *,
    default: Optional[str] = "id",
) -> Select:
    """Order by ``"field"`` or ``"-field"`` (descending).

    An unknown field falls back to *default*.
    """
    for candidate in (sort, default):
        if not candidate:
            continue
        col = _get_column(model, candidate.lstrip("-"))
        if col is not None:
            return query.order_by(col.desc() if candidate.startswith("-") else col.asc())
    return query

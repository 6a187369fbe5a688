"""
services/pagination.py - Generic filter / sort / page query helper.

paginate() works on any mapped model. It takes plain data (filters dict,
options dict, a projector function) and returns a plain Page; it never
mutates or extends the model class.

Options:
  sort_by : "field:direction[,field:direction...]", direction asc|desc
            (default asc). Keys are applied in order; ties fall through to
            the next key and finally to the primary key ascending, so the
            order is total and stable across pages.
            Absent → created_at ascending.
  limit   : page size, default 10 when absent or non-positive
  page    : 1-based, default 1 when absent or non-positive

Unknown filter or sort fields raise marshmallow.ValidationError so the
global handler reports them like any other invalid query parameter.

Layer rules:
  - No Flask imports. Pure Python with a SQLAlchemy session parameter.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable

from marshmallow import ValidationError
from sqlalchemy import func, inspect, select
from sqlalchemy.orm import Session

DEFAULT_LIMIT = 10
DEFAULT_PAGE = 1
DEFAULT_SORT_FIELD = "created_at"


@dataclass(frozen=True)
class SortKey:
    field: str
    descending: bool = False


@dataclass
class Page:
    results: list = field(default_factory=list)
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT
    total_pages: int = 0
    total_results: int = 0

    def to_dict(self) -> dict:
        return {
            "results":       self.results,
            "page":          self.page,
            "limit":         self.limit,
            "total_pages":   self.total_pages,
            "total_results": self.total_results,
        }


def pick(data: dict, keys: Iterable[str]) -> dict:
    """Returns the subset of `data` whose keys are in `keys`."""
    return {key: data[key] for key in keys if key in data}


def _positive_or_default(value: Any, default: int) -> int:
    if isinstance(value, bool):
        return default
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return number if number > 0 else default


def parse_sort_by(sort_by: str | None, sortable: Iterable[str]) -> list[SortKey]:
    """
    Parses "role:desc,name:asc" into [SortKey("role", True), SortKey("name")].

    Raises ValidationError(field_name="sort_by") for an unknown field or
    a direction other than asc/desc.
    """
    if not sort_by:
        return []

    allowed = set(sortable)
    keys: list[SortKey] = []
    for criterion in sort_by.split(","):
        criterion = criterion.strip()
        if not criterion:
            continue
        name, _, direction = criterion.partition(":")
        name = name.strip()
        direction = direction.strip().lower() or "asc"

        if name not in allowed:
            raise ValidationError(f"Cannot sort by '{name}'.", field_name="sort_by")
        if direction not in ("asc", "desc"):
            raise ValidationError(
                f"Sort direction for '{name}' must be 'asc' or 'desc'.",
                field_name="sort_by",
            )
        keys.append(SortKey(name, direction == "desc"))
    return keys


def paginate(
        session: Session,
        model: type,
        filters: dict | None = None,
        options: dict | None = None,
        projector: Callable[[Any], dict] | None = None,
        sortable: Iterable[str] | None = None,
) -> Page:
    """
    Runs a filtered, sorted, paged query on `model`.

    Args:
        filters:   {column: value} exact-match predicates. None values are
                   ignored (the column stays unconstrained).
        options:   {"sort_by", "limit", "page"} - see module docstring.
        projector: entity → public dict. Applied to every result row.
        sortable:  column names allowed in filters and sort_by. Defaults to
                   every mapped column; pass an explicit list to keep
                   internal-only columns (e.g. password_hash) out.

    Returns: Page with total_results counted over all matching rows and
             total_pages = ceil(total_results / limit).
    """
    options = options or {}
    columns = list(sortable) if sortable is not None else inspect(model).columns.keys()
    allowed = set(columns)

    limit = _positive_or_default(options.get("limit"), DEFAULT_LIMIT)
    page = _positive_or_default(options.get("page"), DEFAULT_PAGE)

    conditions = []
    for name, value in (filters or {}).items():
        if value is None:
            continue
        if name not in allowed:
            raise ValidationError(f"Cannot filter by '{name}'.", field_name=name)
        conditions.append(getattr(model, name) == value)

    sort_keys = parse_sort_by(options.get("sort_by"), allowed)
    if not sort_keys and hasattr(model, DEFAULT_SORT_FIELD):
        sort_keys = [SortKey(DEFAULT_SORT_FIELD)]

    order_by = [
        getattr(model, key.field).desc() if key.descending else getattr(model, key.field).asc()
        for key in sort_keys
    ]
    # Final tie-break keeps the order total.
    primary_key = inspect(model).primary_key[0]
    order_by.append(primary_key.asc())

    count_stmt = select(func.count()).select_from(model)
    rows_stmt = select(model)
    if conditions:
        count_stmt = count_stmt.where(*conditions)
        rows_stmt = rows_stmt.where(*conditions)

    total_results = session.execute(count_stmt).scalar_one()

    rows = session.execute(
        rows_stmt
        .order_by(*order_by)
        .offset((page - 1) * limit)
        .limit(limit)
    ).scalars().all()

    return Page(
        results=[projector(row) for row in rows] if projector else list(rows),
        page=page,
        limit=limit,
        total_pages=math.ceil(total_results / limit),
        total_results=total_results,
    )

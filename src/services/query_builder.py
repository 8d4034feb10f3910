"""Filter composition and offset pagination for list endpoints.

Every list endpoint follows the same recipe:

1. :func:`parse_page_params` turns raw ``page``/``limit`` query strings into a
   bounded :class:`PageParams` (invalid input falls back to the defaults).
2. A :class:`FilterSet` collects one condition per supplied filter; a
   ``search`` term becomes an OR of case-insensitive substring matches.
3. :func:`paginate` runs an independent ``COUNT(*)`` with the same predicate,
   then fetches one page ordered by a stable key.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from sqlalchemy import ColumnElement, FromClause, Row, Select, and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.schemas.common import PaginationMeta

logger = logging.getLogger(__name__)

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 50

# Largest OFFSET the drivers can bind (signed 64-bit).
MAX_OFFSET = 2**63 - 1

_LIKE_ESCAPE = "\\"


@dataclass(frozen=True)
class PageParams:
    """A validated page window."""

    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def _positive_int(value: object) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 1 else None
    try:
        parsed = int(str(value).strip())
    except ValueError:
        return None
    return parsed if parsed >= 1 else None


def parse_page_params(
    page: object = None,
    limit: object = None,
    *,
    default_limit: int = DEFAULT_LIMIT,
    max_limit: int = MAX_LIMIT,
) -> PageParams:
    """Coerce raw pagination input into a :class:`PageParams`.

    Non-numeric, zero or negative values fall back to page 1 and
    *default_limit*; *limit* is capped at *max_limit*.  A page whose offset
    would not fit in a 64-bit integer also falls back to page 1.  This never
    raises.
    """
    current_page = _positive_int(page) or DEFAULT_PAGE
    per_page = min(_positive_int(limit) or default_limit, max_limit)
    if (current_page - 1) * per_page > MAX_OFFSET:
        current_page = DEFAULT_PAGE
    return PageParams(page=current_page, limit=per_page)


def build_pagination(total: int, params: PageParams) -> PaginationMeta:
    """Derive pagination metadata from a total count and the page window."""
    total_pages = -(-total // params.limit) if total > 0 else 0
    return PaginationMeta(
        total=total,
        page=params.page,
        limit=params.limit,
        total_pages=total_pages,
        has_next_page=params.page < total_pages,
        has_prev_page=params.page > 1,
    )


def escape_like(term: str) -> str:
    """Escape LIKE metacharacters so *term* matches literally."""
    return (
        term.replace(_LIKE_ESCAPE, _LIKE_ESCAPE * 2)
        .replace("%", _LIKE_ESCAPE + "%")
        .replace("_", _LIKE_ESCAPE + "_")
    )


class FilterSet:
    """Accumulates optional WHERE conditions, combined with AND."""

    def __init__(self) -> None:
        self._conditions: list[ColumnElement[bool]] = []

    def __len__(self) -> int:
        return len(self._conditions)

    def search(self, term: str | None, *columns: Any) -> FilterSet:
        """Add ``col1 ILIKE %term% OR col2 ILIKE %term% ...`` when *term* is set."""
        if term and columns:
            pattern = f"%{escape_like(term)}%"
            self._conditions.append(
                or_(*(column.ilike(pattern, escape=_LIKE_ESCAPE) for column in columns))
            )
        return self

    def equals(self, column: Any, value: object) -> FilterSet:
        """Add ``column = value`` unless *value* is ``None``."""
        if value is not None:
            self._conditions.append(column == value)
        return self

    def where(self, condition: ColumnElement[bool]) -> FilterSet:
        """Add an arbitrary pre-built condition."""
        self._conditions.append(condition)
        return self

    def predicate(self) -> ColumnElement[bool] | None:
        """Return the AND of all conditions, or ``None`` when there are none."""
        if not self._conditions:
            return None
        if len(self._conditions) == 1:
            return self._conditions[0]
        return and_(*self._conditions)

    def apply(self, stmt: Select[Any]) -> Select[Any]:
        predicate = self.predicate()
        return stmt if predicate is None else stmt.where(predicate)


async def paginate(
    db: AsyncSession,
    stmt: Select[Any],
    *,
    count_from: FromClause | Any,
    filters: FilterSet,
    params: PageParams,
    order_by: Sequence[Any],
) -> tuple[list[Row[Any]], PaginationMeta]:
    """Fetch one page of *stmt* plus the total row count.

    Args:
        db: Async database session.
        stmt: Base SELECT (joins included, no WHERE/ORDER/LIMIT).
        count_from: Entity or join the count query selects from; must expose
            every column the filters reference.
        filters: Conditions shared by the count and the page fetch.
        params: Page window.
        order_by: Stable ordering, e.g. ``created_at DESC, id DESC``.

    Returns:
        ``(rows, pagination)`` where ``len(rows) <= params.limit``.
    """
    count_stmt = filters.apply(select(func.count()).select_from(count_from))
    total = int((await db.execute(count_stmt)).scalar_one() or 0)

    page_stmt = (
        filters.apply(stmt)
        .order_by(*order_by)
        .limit(params.limit)
        .offset(params.offset)
    )
    rows = list((await db.execute(page_stmt)).all())

    logger.debug(
        "paginate: total=%d page=%d limit=%d returned=%d",
        total,
        params.page,
        params.limit,
        len(rows),
    )
    return rows, build_pagination(total, params)

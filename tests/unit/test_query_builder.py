"""Unit tests for page parsing, pagination maths and filter composition
(src/services/query_builder.py).

Filters are checked by compiling them with the PostgreSQL dialect; ``paginate``
runs against the ``mock_db_session`` fixture.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy import select
from sqlalchemy.dialects import postgresql

from src.models.class_section import ClassSection
from src.models.department import Department
from src.services.query_builder import (
    DEFAULT_LIMIT,
    MAX_LIMIT,
    FilterSet,
    PageParams,
    build_pagination,
    escape_like,
    paginate,
    parse_page_params,
)


def _compile(clause) -> tuple[str, dict]:
    compiled = clause.compile(dialect=postgresql.dialect())
    return str(compiled), compiled.params


# ---------------------------------------------------------------------------
# parse_page_params
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("page", "limit", "expected"),
    [
        (None, None, PageParams(1, DEFAULT_LIMIT)),
        ("2", "5", PageParams(2, 5)),
        ("abc", "xyz", PageParams(1, DEFAULT_LIMIT)),
        ("0", "-4", PageParams(1, DEFAULT_LIMIT)),
        ("3", "1000", PageParams(3, MAX_LIMIT)),
        (4, 20, PageParams(4, 20)),
        ("99999999999999999999", "10", PageParams(1, 10)),
        (2**62, 5, PageParams(1, 5)),
        (2**58, 10, PageParams(2**58, 10)),
    ],
)
def test_parse_page_params_falls_back_and_caps(page, limit, expected):
    """Invalid input never raises; it falls back to page 1 / limit 10 and caps at 50."""
    assert parse_page_params(page, limit) == expected


def test_page_params_offset():
    assert PageParams(page=3, limit=10).offset == 20
    assert PageParams(page=1, limit=50).offset == 0


# ---------------------------------------------------------------------------
# build_pagination
# ---------------------------------------------------------------------------


def test_build_pagination_rounds_total_pages_up():
    meta = build_pagination(23, PageParams(page=1, limit=10))

    assert meta.total == 23
    assert meta.total_pages == 3, f"ceil(23/10) must be 3, got {meta.total_pages}"
    assert meta.has_next_page is True
    assert meta.has_prev_page is False


def test_build_pagination_last_and_beyond_last_page():
    last = build_pagination(23, PageParams(page=3, limit=10))
    beyond = build_pagination(23, PageParams(page=9, limit=10))

    assert last.has_next_page is False and last.has_prev_page is True
    assert beyond.has_next_page is False, "a page past the end has no next page"


def test_build_pagination_empty_result():
    meta = build_pagination(0, PageParams(page=1, limit=10))

    assert meta.total_pages == 0
    assert meta.has_next_page is False
    assert meta.model_dump(by_alias=True)["totalPages"] == 0


# ---------------------------------------------------------------------------
# FilterSet
# ---------------------------------------------------------------------------


def test_empty_filter_set_has_no_predicate():
    filters = FilterSet().search(None, Department.name).search("", Department.code).equals(
        Department.id, None
    )

    assert len(filters) == 0
    assert filters.predicate() is None


def test_search_builds_case_insensitive_or():
    sql, params = _compile(FilterSet().search("math", Department.name, Department.code).predicate())

    assert sql.count("ILIKE") == 2, f"Expected two ILIKE terms, got: {sql}"
    assert " OR " in sql
    assert set(params.values()) == {"%math%"}


def test_search_and_equals_are_anded():
    filters = (
        FilterSet()
        .search("algo", ClassSection.name, ClassSection.invite_code)
        .equals(ClassSection.subject_id, 3)
    )
    sql, params = _compile(filters.predicate())

    assert " AND " in sql, f"Filters must be combined with AND: {sql}"
    assert 3 in params.values()


def test_search_escapes_like_metacharacters():
    """A literal '%' or '_' in the term must not act as a wildcard."""
    assert escape_like("50%_off") == "50\\%\\_off"

    _, params = _compile(FilterSet().search("50%", Department.name).predicate())
    assert "%50\\%%" in params.values()


def test_apply_adds_where_clause():
    stmt = FilterSet().equals(Department.code, "CS").apply(select(Department))
    sql, _ = _compile(stmt)

    assert "WHERE departments.code" in sql


# ---------------------------------------------------------------------------
# paginate
# ---------------------------------------------------------------------------


async def test_paginate_counts_then_fetches_page(mock_db_session):
    """paginate issues an independent COUNT and an ordered, windowed page fetch."""
    count_result = MagicMock()
    count_result.scalar_one = MagicMock(return_value=23)
    page_result = MagicMock()
    page_result.all = MagicMock(return_value=[("row-1",), ("row-2",)])
    mock_db_session.execute = AsyncMock(side_effect=[count_result, page_result])

    rows, meta = await paginate(
        mock_db_session,
        select(Department),
        count_from=Department,
        filters=FilterSet().search("cs", Department.name),
        params=PageParams(page=2, limit=10),
        order_by=(Department.created_at.desc(), Department.id.desc()),
    )

    assert rows == [("row-1",), ("row-2",)]
    assert (meta.total, meta.page, meta.total_pages) == (23, 2, 3)

    count_sql, _ = _compile(mock_db_session.execute.await_args_list[0].args[0])
    page_sql, page_params = _compile(mock_db_session.execute.await_args_list[1].args[0])
    assert "count(*)" in count_sql.lower()
    assert "ILIKE" in count_sql, "count must share the list predicate"
    assert "ORDER BY departments.created_at DESC, departments.id DESC" in page_sql
    assert "LIMIT" in page_sql and "OFFSET" in page_sql
    assert 10 in page_params.values(), "offset for page 2 of 10 must be 10"

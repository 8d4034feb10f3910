"""Shared Pydantic v2 building blocks for request/response schemas.

The admin frontend speaks camelCase JSON; Python attributes stay snake_case.
``populate_by_name`` lets tests and services build models with either form.
"""

from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """Base model serialising field names as camelCase."""

    model_config = ConfigDict(
        strict=False,
        populate_by_name=True,
        alias_generator=to_camel,
        from_attributes=True,
        str_strip_whitespace=True,
    )


class PaginationMeta(CamelModel):
    """Pagination block returned with every list response.

    Attributes:
        total: Number of rows matching the filters.
        page: Current 1-based page.
        limit: Page size actually applied.
        total_pages: ``ceil(total / limit)``.
        has_next_page: ``page < total_pages``.
        has_prev_page: ``page > 1``.
    """

    total: int = Field(..., ge=0)
    page: int = Field(..., ge=1)
    limit: int = Field(..., ge=1)
    total_pages: int = Field(..., ge=0)
    has_next_page: bool = False
    has_prev_page: bool = False


class DataResponse(CamelModel, Generic[T]):
    """Envelope for a single record."""

    data: T


class ListResponse(CamelModel, Generic[T]):
    """Envelope for one page of records."""

    data: list[T]
    pagination: PaginationMeta


class DeletedRef(CamelModel):
    id: int | str


class DeleteResponse(CamelModel):
    """Confirmation returned by DELETE endpoints."""

    message: str
    data: DeletedRef

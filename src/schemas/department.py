"""Pydantic v2 schemas for departments."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field, field_validator

from src.schemas.common import CamelModel
from src.services.validation import (
    CODE_MAX_LENGTH,
    DESCRIPTION_MAX_LENGTH,
    NAME_MAX_LENGTH,
)


class DepartmentCreate(CamelModel):
    """Request payload for POST /api/departments."""

    code: str = Field(..., min_length=1, max_length=CODE_MAX_LENGTH)
    name: str = Field(..., min_length=1, max_length=NAME_MAX_LENGTH)
    description: str | None = Field(default=None, max_length=DESCRIPTION_MAX_LENGTH)


class DepartmentUpdate(CamelModel):
    """Partial update payload for PUT /api/departments/{id}."""

    code: str | None = Field(default=None, min_length=1, max_length=CODE_MAX_LENGTH)
    name: str | None = Field(default=None, min_length=1, max_length=NAME_MAX_LENGTH)
    description: str | None = Field(default=None, max_length=DESCRIPTION_MAX_LENGTH)

    @field_validator("code", "name")
    @classmethod
    def _not_null(cls, value: str | None) -> str:
        if value is None:
            raise ValueError("may not be null")
        return value


class DepartmentRef(CamelModel):
    id: int
    name: str


class DepartmentRead(CamelModel):
    """Department as returned by the API."""

    id: int
    code: str
    name: str
    description: str | None = None
    created_at: datetime
    updated_at: datetime


class DepartmentDetail(DepartmentRead):
    """Department with the number of subjects that reference it."""

    total_subjects: int = 0

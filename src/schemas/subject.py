"""Pydantic v2 schemas for subjects."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field, field_validator

from src.schemas.common import CamelModel
from src.schemas.department import DepartmentRef
from src.services.validation import (
    CODE_MAX_LENGTH,
    DESCRIPTION_MAX_LENGTH,
    NAME_MAX_LENGTH,
)


class SubjectCreate(CamelModel):
    """Request payload for POST /api/subjects."""

    code: str = Field(..., min_length=1, max_length=CODE_MAX_LENGTH)
    name: str = Field(..., min_length=1, max_length=NAME_MAX_LENGTH)
    description: str | None = Field(default=None, max_length=DESCRIPTION_MAX_LENGTH)
    department_id: int = Field(..., gt=0)


class SubjectUpdate(CamelModel):
    """Partial update payload for PUT /api/subjects/{id}."""

    code: str | None = Field(default=None, min_length=1, max_length=CODE_MAX_LENGTH)
    name: str | None = Field(default=None, min_length=1, max_length=NAME_MAX_LENGTH)
    description: str | None = Field(default=None, max_length=DESCRIPTION_MAX_LENGTH)
    department_id: int | None = Field(default=None, gt=0)

    @field_validator("code", "name", "department_id")
    @classmethod
    def _not_null(cls, value: object) -> object:
        if value is None:
            raise ValueError("may not be null")
        return value


class SubjectRef(CamelModel):
    id: int
    name: str
    code: str


class SubjectRead(CamelModel):
    """Subject joined with its department."""

    id: int
    code: str
    name: str
    description: str | None = None
    department_id: int
    department: DepartmentRef | None = None
    created_at: datetime
    updated_at: datetime

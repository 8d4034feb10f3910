"""Pydantic v2 schemas for users."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field, field_validator

from src.models.user import UserRole
from src.schemas.common import CamelModel
from src.services.validation import NAME_MAX_LENGTH


class UserRead(CamelModel):
    """Public user record."""

    id: str
    name: str
    email: str
    role: UserRole
    image: str | None = None
    email_verified: bool = False
    created_at: datetime


class UserUpdate(CamelModel):
    """Partial update payload for PUT /api/users/{id}."""

    name: str | None = Field(default=None, min_length=1, max_length=NAME_MAX_LENGTH)
    role: UserRole | None = None
    image: str | None = None

    @field_validator("name", "role")
    @classmethod
    def _not_null(cls, value: object) -> object:
        if value is None:
            raise ValueError("may not be null")
        return value


class UserRef(CamelModel):
    id: str
    name: str
    email: str


class StudentRef(UserRef):
    image: str | None = None

"""Pydantic v2 schemas for enrollments."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from src.schemas.common import CamelModel
from src.schemas.user import StudentRef


class EnrollmentCreate(CamelModel):
    """Request payload for POST /api/enrollments.

    Both fields are optional at the schema level so the enrollment workflow
    can report their absence as its own presence check.
    """

    class_id: int | None = Field(default=None, gt=0)
    student_id: str | None = None


class JoinClassRequest(CamelModel):
    """Request payload for POST /api/enrollments/join."""

    invite_code: str | None = None
    student_id: str | None = None


class EnrollmentRead(CamelModel):
    """Bare enrollment row, returned after creation."""

    id: int
    class_id: int
    student_id: str
    created_at: datetime
    updated_at: datetime


class EnrolledClassRef(CamelModel):
    id: int
    name: str
    invite_code: str | None = None


class EnrollmentDetail(CamelModel):
    """Enrollment joined with its student and class."""

    id: int
    class_id: int
    student_id: str
    student: StudentRef | None = None
    class_: EnrolledClassRef | None = Field(default=None, alias="class")
    created_at: datetime

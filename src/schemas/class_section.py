"""Pydantic v2 schemas for class sections."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field, field_validator, model_validator

from src.models.class_section import ClassStatus
from src.schemas.common import CamelModel
from src.schemas.department import DepartmentRef
from src.schemas.subject import SubjectRef
from src.schemas.user import UserRef
from src.services.validation import NAME_MAX_LENGTH

_TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class ScheduleSlot(CamelModel):
    """One weekly meeting slot, e.g. ``{"day": "Monday", "startTime": "09:00"}``."""

    day: str = Field(..., min_length=1, max_length=20)
    start_time: str = Field(..., pattern=_TIME_PATTERN)
    end_time: str = Field(..., pattern=_TIME_PATTERN)

    @model_validator(mode="after")
    def _ends_after_start(self) -> ScheduleSlot:
        # Zero-padded HH:MM strings compare correctly as text.
        if self.end_time <= self.start_time:
            raise ValueError("endTime must be after startTime")
        return self


class ClassCreate(CamelModel):
    """Request payload for POST /api/classes.

    ``capacity`` falls back to the configured default (50) and ``status`` to
    ``active``.  The invite code is always generated server-side.
    """

    name: str = Field(..., min_length=1, max_length=NAME_MAX_LENGTH)
    description: str | None = None
    subject_id: int = Field(..., gt=0)
    teacher_id: str | None = Field(default=None, min_length=1)
    capacity: int | None = Field(default=None, ge=1)
    status: ClassStatus = ClassStatus.ACTIVE
    schedules: list[ScheduleSlot] = Field(default_factory=list)


class ClassUpdate(CamelModel):
    """Partial update payload for PUT /api/classes/{id}.

    ``schedules`` replaces the whole list when supplied; ``teacherId: null``
    unassigns the teacher.
    """

    name: str | None = Field(default=None, min_length=1, max_length=NAME_MAX_LENGTH)
    description: str | None = None
    subject_id: int | None = Field(default=None, gt=0)
    teacher_id: str | None = Field(default=None, min_length=1)
    capacity: int | None = Field(default=None, ge=1)
    status: ClassStatus | None = None
    schedules: list[ScheduleSlot] | None = None

    @field_validator("name", "subject_id", "capacity", "status", "schedules")
    @classmethod
    def _not_null(cls, value: object) -> object:
        if value is None:
            raise ValueError("may not be null")
        return value


class ClassRead(CamelModel):
    """Class section joined with its subject, department and teacher."""

    id: int
    name: str
    description: str | None = None
    invite_code: str | None = None
    capacity: int
    status: ClassStatus
    schedules: list[ScheduleSlot] = Field(default_factory=list)
    subject_id: int
    teacher_id: str | None = None
    subject: SubjectRef | None = None
    department: DepartmentRef | None = None
    teacher: UserRef | None = None
    created_at: datetime
    updated_at: datetime

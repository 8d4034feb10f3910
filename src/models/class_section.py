"""SQLAlchemy ORM model for the classes table."""

from __future__ import annotations

import enum
from typing import TYPE_CHECKING, Any, List

from sqlalchemy import JSON, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from src.models.enrollment import Enrollment
    from src.models.subject import Subject
    from src.models.user import User


class ClassStatus(str, enum.Enum):
    """Lifecycle status of a class section."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    ARCHIVED = "archived"


class ClassSection(TimestampMixin, Base):
    """A concrete class section of a subject, optionally taught by a teacher.

    Attributes:
        id: Auto-incrementing primary key.
        name: Display name (e.g. 'Algo 101').
        description: Optional description text.
        invite_code: Short unique code students use to join.
        capacity: Maximum number of simultaneous enrollments.
        status: One of active, inactive, archived.
        subject_id: Foreign key to subjects (ON DELETE RESTRICT).
        teacher_id: Optional foreign key to users (ON DELETE SET NULL).
        schedules: Ordered list of ``{"day", "startTime", "endTime"}`` slots.
    """

    __tablename__ = "classes"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    invite_code: Mapped[str | None] = mapped_column(String(32), unique=True, nullable=True)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=50)
    status: Mapped[ClassStatus] = mapped_column(
        Enum(
            ClassStatus,
            name="class_status",
            values_callable=lambda members: [m.value for m in members],
        ),
        nullable=False,
        default=ClassStatus.ACTIVE,
    )
    subject_id: Mapped[int] = mapped_column(
        ForeignKey("subjects.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    teacher_id: Mapped[str | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )
    schedules: Mapped[list[dict[str, Any]]] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"), nullable=False, default=list
    )

    subject: Mapped[Subject] = relationship("Subject", back_populates="classes")
    teacher: Mapped[User | None] = relationship("User")
    enrollments: Mapped[List[Enrollment]] = relationship(
        "Enrollment", back_populates="class_section", passive_deletes="all"
    )

    def __repr__(self) -> str:
        return f"<ClassSection(id={self.id}, name='{self.name}')>"

"""SQLAlchemy ORM model for the departments table."""

from __future__ import annotations

from typing import TYPE_CHECKING, List

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from src.models.subject import Subject


class Department(TimestampMixin, Base):
    """Academic departments (e.g. 'CS', 'Computer Science').

    Attributes:
        id: Auto-incrementing primary key.
        code: Unique short code.
        name: Human-readable department name.
        description: Optional free-text description.
        subjects: Subjects owned by this department. Deleting a department
            that still has subjects is rejected by the database.
    """

    __tablename__ = "departments"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(String(255), nullable=True)

    subjects: Mapped[List[Subject]] = relationship(
        "Subject", back_populates="department", passive_deletes="all"
    )

    def __repr__(self) -> str:
        return f"<Department(id={self.id}, code='{self.code}')>"

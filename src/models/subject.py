"""SQLAlchemy ORM model for the subjects table."""

from __future__ import annotations

from typing import TYPE_CHECKING, List

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from src.models.class_section import ClassSection
    from src.models.department import Department


class Subject(TimestampMixin, Base):
    """Subjects taught within a department.

    Attributes:
        id: Auto-incrementing primary key.
        code: Unique short code (e.g. 'CS101').
        name: Full subject name.
        description: Optional description text.
        department_id: Foreign key to departments table (ON DELETE RESTRICT).
        department: Relationship to the owning department.
        classes: Class sections teaching this subject.
    """

    __tablename__ = "subjects"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(String(255), nullable=True)
    department_id: Mapped[int] = mapped_column(
        ForeignKey("departments.id", ondelete="RESTRICT"), nullable=False, index=True
    )

    department: Mapped[Department] = relationship("Department", back_populates="subjects")
    classes: Mapped[List[ClassSection]] = relationship(
        "ClassSection", back_populates="subject", passive_deletes="all"
    )

    def __repr__(self) -> str:
        return f"<Subject(id={self.id}, code='{self.code}')>"

"""SQLAlchemy ORM model for the enrollments table."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from src.models.class_section import ClassSection
    from src.models.user import User


class Enrollment(TimestampMixin, Base):
    """A student's membership in a class section.

    Rows disappear with either the student or the class (ON DELETE CASCADE).
    A student can hold at most one enrollment per class.
    """

    __tablename__ = "enrollments"
    __table_args__ = (
        UniqueConstraint("student_id", "class_id", name="uq_enrollments_student_class"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    student_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    class_id: Mapped[int] = mapped_column(
        ForeignKey("classes.id", ondelete="CASCADE"), nullable=False, index=True
    )

    student: Mapped[User] = relationship("User")
    class_section: Mapped[ClassSection] = relationship(
        "ClassSection", back_populates="enrollments"
    )

    def __repr__(self) -> str:
        return (
            f"<Enrollment(id={self.id}, student_id='{self.student_id}', "
            f"class_id={self.class_id})>"
        )

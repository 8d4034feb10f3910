"""Enrollment workflow: enroll by class id, join by invite code, unenroll.

Each enrollment attempt moves through the same checks, any of which can
reject it:

1. presence: the class reference and the student id must be supplied;
2. the class exists (looked up by id or invite code) and its row is locked;
3. the student exists;
4. the student is not already enrolled;
5. the class is below capacity;
6. the enrollment row is inserted.

Steps 2-6 run inside the caller's transaction.  ``SELECT ... FOR UPDATE`` on
the class row serialises concurrent enrollments into the same class on
PostgreSQL, and the ``(student_id, class_id)`` unique constraint catches any
duplicate that slips past step 4.
"""

from __future__ import annotations

import logging

from sqlalchemy import ColumnElement, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.exceptions import (
    BadRequestError,
    ConflictError,
    ConstraintKind,
    NotFoundError,
    classify_integrity_error,
)
from src.models.class_section import ClassSection
from src.models.enrollment import Enrollment
from src.models.user import User

logger = logging.getLogger(__name__)


class EnrollmentService:
    """Service implementing the enrollment workflow.

    Attributes:
        db: Async database session; the caller owns commit/rollback.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def enroll(self, class_id: int | None, student_id: str | None) -> Enrollment:
        """Enroll *student_id* into the class with primary key *class_id*.

        Raises:
            BadRequestError: a field is missing.
            NotFoundError: the class or the student does not exist.
            ConflictError: already enrolled, or class full.
        """
        if not class_id or not student_id:
            raise BadRequestError("Class ID and Student ID are required")

        class_section = await self._lock_class(ClassSection.id == class_id)
        if class_section is None:
            raise NotFoundError("Class", class_id)
        return await self._enroll(class_section, student_id)

    async def join_by_invite_code(
        self, invite_code: str | None, student_id: str | None
    ) -> Enrollment:
        """Enroll *student_id* into the class identified by *invite_code*.

        Invite codes are matched case-insensitively (they are stored upper-case).

        Raises:
            BadRequestError: a field is missing.
            NotFoundError: no class has this invite code, or the student does
                not exist.
            ConflictError: already enrolled, or class full.
        """
        code = (invite_code or "").strip().upper()
        if not code or not student_id:
            raise BadRequestError("Invite code and Student ID are required")

        class_section = await self._lock_class(ClassSection.invite_code == code)
        if class_section is None:
            raise NotFoundError("Class", code)
        return await self._enroll(class_section, student_id)

    async def unenroll(self, enrollment_id: int) -> Enrollment:
        """Delete an enrollment by id.

        Raises:
            NotFoundError: no enrollment has this id.
        """
        enrollment = await self.db.get(Enrollment, enrollment_id)
        if enrollment is None:
            raise NotFoundError("Enrollment", enrollment_id)

        await self.db.delete(enrollment)
        await self.db.flush()
        logger.info(
            "Unenrolled: enrollment=%d student=%s class=%d",
            enrollment.id,
            enrollment.student_id,
            enrollment.class_id,
        )
        return enrollment

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _lock_class(self, condition: ColumnElement[bool]) -> ClassSection | None:
        stmt = select(ClassSection).where(condition).with_for_update()
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def _enroll(self, class_section: ClassSection, student_id: str) -> Enrollment:
        student = await self.db.get(User, student_id)
        if student is None:
            raise NotFoundError("Student", student_id)

        existing = await self.db.scalar(
            select(Enrollment.id).where(
                Enrollment.class_id == class_section.id,
                Enrollment.student_id == student_id,
            )
        )
        if existing is not None:
            raise ConflictError("Student is already enrolled in this class")

        enrolled = await self.db.scalar(
            select(func.count())
            .select_from(Enrollment)
            .where(Enrollment.class_id == class_section.id)
        )
        if (enrolled or 0) >= class_section.capacity:
            raise ConflictError("Class is full")

        enrollment = Enrollment(class_id=class_section.id, student_id=student_id)
        self.db.add(enrollment)
        try:
            await self.db.flush()
        except IntegrityError as exc:
            await self.db.rollback()
            if classify_integrity_error(exc) is ConstraintKind.UNIQUE:
                raise ConflictError("Student is already enrolled in this class") from exc
            raise

        logger.info(
            "Enrolled student=%s class=%d (%d/%d)",
            student_id,
            class_section.id,
            (enrolled or 0) + 1,
            class_section.capacity,
        )
        return enrollment

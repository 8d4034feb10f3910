"""Enrollments API routes.

Provides:
    GET    /api/enrollments                   — Paginated list with student and class joined.
    GET    /api/enrollments/{enrollment_id}   — Single enrollment with its joins.
    POST   /api/enrollments                   — Enroll a student by class id.
    POST   /api/enrollments/join              — Enroll a student by invite code.
    DELETE /api/enrollments/{enrollment_id}   — Unenroll.

The create/join/delete handlers delegate to
:class:`~src.services.enrollment.EnrollmentService`.
"""

import logging

from fastapi import APIRouter, Query, Response, status
from sqlalchemy import select

from src.api.dependencies import DBDep, PageDep
from src.exceptions import NotFoundError
from src.models.class_section import ClassSection
from src.models.enrollment import Enrollment
from src.models.user import User
from src.schemas.common import DataResponse, DeletedRef, DeleteResponse, ListResponse
from src.schemas.enrollment import (
    EnrolledClassRef,
    EnrollmentCreate,
    EnrollmentDetail,
    EnrollmentRead,
    JoinClassRequest,
)
from src.schemas.user import StudentRef
from src.services.enrollment import EnrollmentService
from src.services.query_builder import FilterSet, paginate
from src.services.validation import parse_id, parse_int_filter, parse_str_filter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/enrollments", tags=["enrollments"])

_ENROLLMENT_WITH_JOINS = (
    select(Enrollment, User, ClassSection)
    .outerjoin(User, Enrollment.student_id == User.id)
    .outerjoin(ClassSection, Enrollment.class_id == ClassSection.id)
)


def _to_detail(
    enrollment: Enrollment, student: User | None, class_section: ClassSection | None
) -> EnrollmentDetail:
    return EnrollmentDetail(
        id=enrollment.id,
        class_id=enrollment.class_id,
        student_id=enrollment.student_id,
        student=(
            StudentRef(
                id=student.id, name=student.name, email=student.email, image=student.image
            )
            if student is not None
            else None
        ),
        class_=(
            EnrolledClassRef(
                id=class_section.id,
                name=class_section.name,
                invite_code=class_section.invite_code,
            )
            if class_section is not None
            else None
        ),
        created_at=enrollment.created_at,
    )


# ---------------------------------------------------------------------------
# Route handlers
# ---------------------------------------------------------------------------


@router.get(
    "",
    response_model=ListResponse[EnrollmentDetail],
    summary="List enrollments",
    description="Filter by ``classId`` and/or ``studentId``; newest first.",
    responses={400: {"description": "Non-integer classId"}},
)
async def list_enrollments(
    db: DBDep,
    params: PageDep,
    response: Response,
    class_id: str | None = Query(default=None, alias="classId"),
    student_id: str | None = Query(default=None, alias="studentId"),
) -> ListResponse[EnrollmentDetail]:
    filters = (
        FilterSet()
        .equals(Enrollment.class_id, parse_int_filter(class_id, "classId"))
        .equals(Enrollment.student_id, parse_str_filter(student_id))
    )
    rows, pagination = await paginate(
        db,
        _ENROLLMENT_WITH_JOINS,
        count_from=Enrollment,
        filters=filters,
        params=params,
        order_by=(Enrollment.created_at.desc(), Enrollment.id.desc()),
    )
    response.headers["X-Total-Count"] = str(pagination.total)
    return ListResponse[EnrollmentDetail](
        data=[_to_detail(*row) for row in rows],
        pagination=pagination,
    )


@router.get(
    "/{enrollment_id}",
    response_model=DataResponse[EnrollmentDetail],
    summary="Get an enrollment",
    responses={404: {"description": "Enrollment not found"}},
)
async def get_enrollment(enrollment_id: str, db: DBDep) -> DataResponse[EnrollmentDetail]:
    pk = parse_id(enrollment_id, "enrollment")
    row = (await db.execute(_ENROLLMENT_WITH_JOINS.where(Enrollment.id == pk))).first()
    if row is None:
        raise NotFoundError("Enrollment", pk)
    return DataResponse[EnrollmentDetail](data=_to_detail(row[0], row[1], row[2]))


@router.post(
    "",
    response_model=DataResponse[EnrollmentRead],
    status_code=status.HTTP_201_CREATED,
    summary="Enroll a student in a class",
    responses={
        400: {"description": "classId or studentId missing"},
        404: {"description": "Class or student not found"},
        409: {"description": "Already enrolled, or class full"},
    },
)
async def create_enrollment(
    payload: EnrollmentCreate, db: DBDep
) -> DataResponse[EnrollmentRead]:
    """Enroll ``studentId`` into ``classId``.

    Args:
        payload: Request body; both fields are checked by the service.
        db: Injected async database session; committed when the handler returns.

    Returns:
        The created enrollment row.
    """
    enrollment = await EnrollmentService(db).enroll(
        payload.class_id, payload.student_id
    )
    return DataResponse[EnrollmentRead](data=EnrollmentRead.model_validate(enrollment))


@router.post(
    "/join",
    response_model=DataResponse[EnrollmentRead],
    status_code=status.HTTP_201_CREATED,
    summary="Join a class by invite code",
    responses={
        400: {"description": "inviteCode or studentId missing"},
        404: {"description": "No class with this invite code, or student not found"},
        409: {"description": "Already enrolled, or class full"},
    },
)
async def join_class(payload: JoinClassRequest, db: DBDep) -> DataResponse[EnrollmentRead]:
    enrollment = await EnrollmentService(db).join_by_invite_code(
        payload.invite_code, payload.student_id
    )
    return DataResponse[EnrollmentRead](data=EnrollmentRead.model_validate(enrollment))


@router.delete(
    "/{enrollment_id}",
    response_model=DeleteResponse,
    summary="Unenroll",
    responses={404: {"description": "Enrollment not found"}},
)
async def delete_enrollment(enrollment_id: str, db: DBDep) -> DeleteResponse:
    pk = parse_id(enrollment_id, "enrollment")
    await EnrollmentService(db).unenroll(pk)
    return DeleteResponse(message="Enrollment deleted successfully", data=DeletedRef(id=pk))

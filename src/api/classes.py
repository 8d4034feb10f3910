"""Classes API routes.

Provides:
    GET    /api/classes                   — Paginated list with subject, department, teacher.
    GET    /api/classes/{class_id}        — Single class with its joins.
    GET    /api/classes/{class_id}/users  — Paginated list of enrolled users.
    POST   /api/classes                   — Create with a generated invite code.
    PUT    /api/classes/{class_id}        — Partial update (schedules replaced wholesale).
    DELETE /api/classes/{class_id}        — Delete (enrollments cascade).
"""

import logging
from typing import Any

from fastapi import APIRouter, Query, Response, status
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from src.api.dependencies import DBDep, PageDep, SettingsDep
from src.exceptions import BadRequestError, ConflictError, NotFoundError
from src.models.base import utcnow
from src.models.class_section import ClassSection, ClassStatus
from src.models.department import Department
from src.models.enrollment import Enrollment
from src.models.subject import Subject
from src.models.user import User, UserRole
from src.schemas.class_section import ClassCreate, ClassRead, ClassUpdate
from src.schemas.common import DataResponse, DeletedRef, DeleteResponse, ListResponse
from src.schemas.department import DepartmentRef
from src.schemas.subject import SubjectRef
from src.schemas.user import UserRead, UserRef
from src.services.invite_codes import allocate_invite_code
from src.services.persistence import delete_or_conflict, flush_or_conflict
from src.services.query_builder import FilterSet, paginate
from src.services.validation import (
    parse_enum_filter,
    parse_id,
    parse_int_filter,
    parse_str_filter,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/classes", tags=["classes"])

Teacher = aliased(User, name="teacher")

_CLASS_WITH_JOINS = (
    select(ClassSection, Subject, Department, Teacher)
    .outerjoin(Subject, ClassSection.subject_id == Subject.id)
    .outerjoin(Department, Subject.department_id == Department.id)
    .outerjoin(Teacher, ClassSection.teacher_id == Teacher.id)
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _to_read(
    class_section: ClassSection,
    subject: Subject | None,
    department: Department | None,
    teacher: User | None,
) -> ClassRead:
    """Build the API representation from already-loaded rows.

    Relationship attributes are never touched here, so no lazy load is issued.
    """
    return ClassRead(
        id=class_section.id,
        name=class_section.name,
        description=class_section.description,
        invite_code=class_section.invite_code,
        capacity=class_section.capacity,
        status=class_section.status,
        schedules=class_section.schedules or [],
        subject_id=class_section.subject_id,
        teacher_id=class_section.teacher_id,
        subject=(
            SubjectRef(id=subject.id, name=subject.name, code=subject.code)
            if subject is not None
            else None
        ),
        department=(
            DepartmentRef(id=department.id, name=department.name)
            if department is not None
            else None
        ),
        teacher=(
            UserRef(id=teacher.id, name=teacher.name, email=teacher.email)
            if teacher is not None
            else None
        ),
        created_at=class_section.created_at,
        updated_at=class_section.updated_at,
    )


async def _load_read(db: AsyncSession, class_id: int) -> ClassRead:
    row = (await db.execute(_CLASS_WITH_JOINS.where(ClassSection.id == class_id))).first()
    if row is None:
        raise NotFoundError("Class", class_id)
    return _to_read(row[0], row[1], row[2], row[3])


async def _require_subject(db: AsyncSession, subject_id: int) -> None:
    if await db.get(Subject, subject_id) is None:
        raise NotFoundError("Subject", subject_id)


async def _require_teacher(db: AsyncSession, teacher_id: str | None) -> None:
    if teacher_id is not None and await db.get(User, teacher_id) is None:
        raise NotFoundError("Teacher", teacher_id)


def _dump_schedules(schedules: list[Any]) -> list[dict[str, Any]]:
    return [
        slot if isinstance(slot, dict) else slot.model_dump(by_alias=True)
        for slot in schedules
    ]


# ---------------------------------------------------------------------------
# Route handlers
# ---------------------------------------------------------------------------


@router.get(
    "",
    response_model=ListResponse[ClassRead],
    summary="List classes",
    description=(
        "Return one page of classes with subject, department and teacher joined."
        " ``search`` matches class name or invite code; ``subjectId``,"
        " ``teacherId`` and ``status`` filter exactly."
    ),
    responses={400: {"description": "Non-integer subjectId or unknown status"}},
)
async def list_classes(
    db: DBDep,
    params: PageDep,
    response: Response,
    search: str | None = Query(default=None, description="Substring of name or invite code"),
    subject_id: str | None = Query(default=None, alias="subjectId"),
    teacher_id: str | None = Query(default=None, alias="teacherId"),
    class_status: str | None = Query(default=None, alias="status"),
) -> ListResponse[ClassRead]:
    filters = (
        FilterSet()
        .search(parse_str_filter(search), ClassSection.name, ClassSection.invite_code)
        .equals(ClassSection.subject_id, parse_int_filter(subject_id, "subjectId"))
        .equals(ClassSection.teacher_id, parse_str_filter(teacher_id))
        .equals(ClassSection.status, parse_enum_filter(class_status, ClassStatus, "status"))
    )
    rows, pagination = await paginate(
        db,
        _CLASS_WITH_JOINS,
        count_from=ClassSection,
        filters=filters,
        params=params,
        order_by=(ClassSection.created_at.desc(), ClassSection.id.desc()),
    )
    response.headers["X-Total-Count"] = str(pagination.total)
    return ListResponse[ClassRead](
        data=[_to_read(*row) for row in rows],
        pagination=pagination,
    )


@router.get(
    "/{class_id}",
    response_model=DataResponse[ClassRead],
    summary="Get a class",
    responses={404: {"description": "Class not found"}},
)
async def get_class(class_id: str, db: DBDep) -> DataResponse[ClassRead]:
    return DataResponse[ClassRead](data=await _load_read(db, parse_id(class_id, "class")))


@router.get(
    "/{class_id}/users",
    response_model=ListResponse[UserRead],
    summary="List users enrolled in a class",
    description="``search`` matches name or email; ``role`` filters exactly.",
    responses={404: {"description": "Class not found"}},
)
async def list_class_users(
    class_id: str,
    db: DBDep,
    params: PageDep,
    response: Response,
    search: str | None = Query(default=None, description="Substring of name or email"),
    role: str | None = Query(default=None, description="admin, teacher or student"),
) -> ListResponse[UserRead]:
    """Return one page of the users enrolled in a class, most recent enrollment first.

    Raises:
        BadRequestError: malformed id or unknown role.
        NotFoundError: the class does not exist.
    """
    pk = parse_id(class_id, "class")
    role_filter = parse_enum_filter(role, UserRole, "role")
    if await db.get(ClassSection, pk) is None:
        raise NotFoundError("Class", pk)

    filters = (
        FilterSet()
        .equals(Enrollment.class_id, pk)
        .search(parse_str_filter(search), User.name, User.email)
        .equals(User.role, role_filter.value if role_filter else None)
    )
    rows, pagination = await paginate(
        db,
        select(User).join(Enrollment, Enrollment.student_id == User.id),
        count_from=User.__table__.join(
            Enrollment.__table__, Enrollment.student_id == User.id
        ),
        filters=filters,
        params=params,
        order_by=(Enrollment.created_at.desc(), Enrollment.id.desc()),
    )
    response.headers["X-Total-Count"] = str(pagination.total)
    return ListResponse[UserRead](
        data=[UserRead.model_validate(row[0]) for row in rows],
        pagination=pagination,
    )


@router.post(
    "",
    response_model=DataResponse[ClassRead],
    status_code=status.HTTP_201_CREATED,
    summary="Create a class",
    responses={404: {"description": "Subject or teacher not found"}},
)
async def create_class(
    payload: ClassCreate, db: DBDep, settings: SettingsDep
) -> DataResponse[ClassRead]:
    """Create a class section with a freshly generated invite code.

    ``capacity`` defaults to the configured class capacity, ``status`` to
    ``active`` and ``schedules`` to an empty list.

    Raises:
        NotFoundError: ``subjectId`` or ``teacherId`` references nothing.
        ConflictError: no unique invite code could be allocated.
    """
    await _require_subject(db, payload.subject_id)
    await _require_teacher(db, payload.teacher_id)

    class_section = ClassSection(
        name=payload.name,
        description=payload.description,
        subject_id=payload.subject_id,
        teacher_id=payload.teacher_id,
        capacity=payload.capacity or settings.default_class_capacity,
        status=payload.status,
        schedules=_dump_schedules(payload.schedules),
        invite_code=await allocate_invite_code(db, settings.invite_code_length),
    )
    db.add(class_section)
    await flush_or_conflict(
        db, unique_message="Invite code collision, please retry"
    )

    logger.info(
        "Created class id=%d invite_code=%s subject=%d",
        class_section.id,
        class_section.invite_code,
        class_section.subject_id,
    )
    return DataResponse[ClassRead](data=await _load_read(db, class_section.id))


@router.put(
    "/{class_id}",
    response_model=DataResponse[ClassRead],
    summary="Update a class",
    responses={
        400: {"description": "Malformed id or empty payload"},
        404: {"description": "Class, subject or teacher not found"},
        409: {"description": "Capacity below current enrollment"},
    },
)
async def update_class(
    class_id: str, payload: ClassUpdate, db: DBDep
) -> DataResponse[ClassRead]:
    changes = payload.model_dump(exclude_unset=True)
    pk = parse_id(class_id, "class")
    if not changes:
        raise BadRequestError("No fields to update")

    class_section = await db.get(ClassSection, pk)
    if class_section is None:
        raise NotFoundError("Class", pk)
    if "subject_id" in changes:
        await _require_subject(db, changes["subject_id"])
    if "teacher_id" in changes:
        await _require_teacher(db, changes["teacher_id"])
    if "capacity" in changes:
        enrolled = await db.scalar(
            select(func.count())
            .select_from(Enrollment)
            .where(Enrollment.class_id == pk)
        )
        if changes["capacity"] < (enrolled or 0):
            raise ConflictError(
                f"Capacity cannot be lower than the current enrollment count ({enrolled})"
            )
    if "schedules" in changes:
        changes["schedules"] = _dump_schedules(payload.schedules or [])

    for key, value in changes.items():
        setattr(class_section, key, value)
    class_section.updated_at = utcnow()
    await flush_or_conflict(db, unique_message="Invite code already in use")

    return DataResponse[ClassRead](data=await _load_read(db, pk))


@router.delete(
    "/{class_id}",
    response_model=DeleteResponse,
    summary="Delete a class",
    responses={404: {"description": "Class not found"}},
)
async def delete_class(class_id: str, db: DBDep) -> DeleteResponse:
    pk = parse_id(class_id, "class")
    if await db.get(ClassSection, pk) is None:
        raise NotFoundError("Class", pk)
    await delete_or_conflict(
        db,
        delete(ClassSection).where(ClassSection.id == pk),
        restrict_message="Cannot delete class because other records reference it",
    )

    logger.info("Deleted class id=%d", pk)
    return DeleteResponse(message="Class deleted successfully", data=DeletedRef(id=pk))

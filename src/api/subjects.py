"""Subjects API routes.

Provides:
    GET    /api/subjects               — Paginated list with department joined.
    GET    /api/subjects/{subject_id}  — Single subject with its department.
    POST   /api/subjects               — Create (404 if the department is missing).
    PUT    /api/subjects/{subject_id}  — Partial update.
    DELETE /api/subjects/{subject_id}  — Delete (409 while classes reference it).
"""

import logging

from fastapi import APIRouter, Query, Response, status
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import DBDep, PageDep
from src.exceptions import BadRequestError, NotFoundError
from src.models.base import utcnow
from src.models.department import Department
from src.models.subject import Subject
from src.schemas.common import DataResponse, DeletedRef, DeleteResponse, ListResponse
from src.schemas.department import DepartmentRef
from src.schemas.subject import SubjectCreate, SubjectRead, SubjectUpdate
from src.services.persistence import delete_or_conflict, flush_or_conflict
from src.services.query_builder import FilterSet, paginate
from src.services.validation import parse_id, parse_int_filter, parse_str_filter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/subjects", tags=["subjects"])

_DUPLICATE_CODE = "Subject code already exists"

_SUBJECT_WITH_DEPARTMENT = select(Subject, Department).outerjoin(
    Department, Subject.department_id == Department.id
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _to_read(subject: Subject, department: Department | None) -> SubjectRead:
    """Build the API representation from an already-loaded subject/department pair."""
    return SubjectRead(
        id=subject.id,
        code=subject.code,
        name=subject.name,
        description=subject.description,
        department_id=subject.department_id,
        department=(
            DepartmentRef(id=department.id, name=department.name)
            if department is not None
            else None
        ),
        created_at=subject.created_at,
        updated_at=subject.updated_at,
    )


async def _require_department(db: AsyncSession, department_id: int) -> Department:
    department = await db.get(Department, department_id)
    if department is None:
        raise NotFoundError("Department", department_id)
    return department


async def _get_or_404(db: AsyncSession, subject_id: int) -> Subject:
    subject = await db.get(Subject, subject_id)
    if subject is None:
        raise NotFoundError("Subject", subject_id)
    return subject


# ---------------------------------------------------------------------------
# Route handlers
# ---------------------------------------------------------------------------


@router.get(
    "",
    response_model=ListResponse[SubjectRead],
    summary="List subjects",
    description=(
        "Return one page of subjects with their department. ``search`` matches"
        " subject name or code, ``department`` matches the department name, and"
        " ``departmentId`` filters exactly."
    ),
    responses={400: {"description": "Non-integer departmentId"}},
)
async def list_subjects(
    db: DBDep,
    params: PageDep,
    response: Response,
    search: str | None = Query(default=None, description="Substring of name or code"),
    department: str | None = Query(default=None, description="Substring of department name"),
    department_id: str | None = Query(default=None, alias="departmentId"),
) -> ListResponse[SubjectRead]:
    filters = (
        FilterSet()
        .search(parse_str_filter(search), Subject.name, Subject.code)
        .search(parse_str_filter(department), Department.name)
        .equals(Subject.department_id, parse_int_filter(department_id, "departmentId"))
    )
    rows, pagination = await paginate(
        db,
        _SUBJECT_WITH_DEPARTMENT,
        count_from=Subject.__table__.outerjoin(
            Department.__table__, Subject.department_id == Department.id
        ),
        filters=filters,
        params=params,
        order_by=(Subject.created_at.desc(), Subject.id.desc()),
    )
    response.headers["X-Total-Count"] = str(pagination.total)
    return ListResponse[SubjectRead](
        data=[_to_read(subject, dept) for subject, dept in rows],
        pagination=pagination,
    )


@router.get(
    "/{subject_id}",
    response_model=DataResponse[SubjectRead],
    summary="Get a subject",
    responses={404: {"description": "Subject not found"}},
)
async def get_subject(subject_id: str, db: DBDep) -> DataResponse[SubjectRead]:
    pk = parse_id(subject_id, "subject")
    row = (await db.execute(_SUBJECT_WITH_DEPARTMENT.where(Subject.id == pk))).first()
    if row is None:
        raise NotFoundError("Subject", pk)
    return DataResponse[SubjectRead](data=_to_read(row[0], row[1]))


@router.post(
    "",
    response_model=DataResponse[SubjectRead],
    status_code=status.HTTP_201_CREATED,
    summary="Create a subject",
    responses={
        404: {"description": "Department not found"},
        409: {"description": "Code already in use"},
    },
)
async def create_subject(payload: SubjectCreate, db: DBDep) -> DataResponse[SubjectRead]:
    """Create a subject under an existing department.

    Raises:
        NotFoundError: ``departmentId`` does not reference a department.
        ConflictError: the subject code is taken.
    """
    department = await _require_department(db, payload.department_id)

    subject = Subject(**payload.model_dump())
    db.add(subject)
    await flush_or_conflict(db, unique_message=_DUPLICATE_CODE)

    logger.info(
        "Created subject id=%d code=%s department=%d",
        subject.id,
        subject.code,
        department.id,
    )
    return DataResponse[SubjectRead](data=_to_read(subject, department))


@router.put(
    "/{subject_id}",
    response_model=DataResponse[SubjectRead],
    summary="Update a subject",
    responses={
        400: {"description": "Malformed id or empty payload"},
        404: {"description": "Subject or department not found"},
        409: {"description": "Code already in use"},
    },
)
async def update_subject(
    subject_id: str, payload: SubjectUpdate, db: DBDep
) -> DataResponse[SubjectRead]:
    changes = payload.model_dump(exclude_unset=True)
    pk = parse_id(subject_id, "subject")
    if not changes:
        raise BadRequestError("No fields to update")

    subject = await _get_or_404(db, pk)
    department_id = changes.get("department_id", subject.department_id)
    department = await _require_department(db, department_id)

    for key, value in changes.items():
        setattr(subject, key, value)
    subject.updated_at = utcnow()
    await flush_or_conflict(db, unique_message=_DUPLICATE_CODE)

    return DataResponse[SubjectRead](data=_to_read(subject, department))


@router.delete(
    "/{subject_id}",
    response_model=DeleteResponse,
    summary="Delete a subject",
    responses={
        404: {"description": "Subject not found"},
        409: {"description": "Classes still reference this subject"},
    },
)
async def delete_subject(subject_id: str, db: DBDep) -> DeleteResponse:
    pk = parse_id(subject_id, "subject")
    await _get_or_404(db, pk)
    await delete_or_conflict(
        db,
        delete(Subject).where(Subject.id == pk),
        restrict_message="Cannot delete subject because it has associated classes",
    )

    logger.info("Deleted subject id=%d", pk)
    return DeleteResponse(message="Subject deleted successfully", data=DeletedRef(id=pk))

"""Departments API routes.

Provides:
    GET    /api/departments                — Paginated list, ``search`` over name/code.
    GET    /api/departments/{department_id} — Single department with ``totalSubjects``.
    POST   /api/departments                — Create a department.
    PUT    /api/departments/{department_id} — Partial update.
    DELETE /api/departments/{department_id} — Delete (409 while subjects reference it).
"""

import logging

from fastapi import APIRouter, Query, Response, status
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import DBDep, PageDep
from src.exceptions import BadRequestError, NotFoundError
from src.models.base import utcnow
from src.models.department import Department
from src.models.subject import Subject
from src.schemas.common import DataResponse, DeletedRef, DeleteResponse, ListResponse
from src.schemas.department import (
    DepartmentCreate,
    DepartmentDetail,
    DepartmentRead,
    DepartmentUpdate,
)
from src.services.persistence import delete_or_conflict, flush_or_conflict
from src.services.query_builder import FilterSet, paginate
from src.services.validation import parse_id, parse_str_filter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/departments", tags=["departments"])

_DUPLICATE_CODE = "Department code already exists"


async def _get_or_404(db: AsyncSession, department_id: int) -> Department:
    department = await db.get(Department, department_id)
    if department is None:
        raise NotFoundError("Department", department_id)
    return department


# ---------------------------------------------------------------------------
# Route handlers
# ---------------------------------------------------------------------------


@router.get(
    "",
    response_model=ListResponse[DepartmentRead],
    summary="List departments",
    description=(
        "Return one page of departments, newest first. ``search`` matches name or"
        " code case-insensitively. Invalid ``page``/``limit`` fall back to defaults."
    ),
)
async def list_departments(
    db: DBDep,
    params: PageDep,
    response: Response,
    search: str | None = Query(default=None, description="Substring of name or code"),
) -> ListResponse[DepartmentRead]:
    filters = FilterSet().search(
        parse_str_filter(search), Department.name, Department.code
    )
    rows, pagination = await paginate(
        db,
        select(Department),
        count_from=Department,
        filters=filters,
        params=params,
        order_by=(Department.created_at.desc(), Department.id.desc()),
    )
    response.headers["X-Total-Count"] = str(pagination.total)
    return ListResponse[DepartmentRead](
        data=[DepartmentRead.model_validate(row[0]) for row in rows],
        pagination=pagination,
    )


@router.get(
    "/{department_id}",
    response_model=DataResponse[DepartmentDetail],
    summary="Get a department",
    responses={
        400: {"description": "Malformed id"},
        404: {"description": "Department not found"},
    },
)
async def get_department(department_id: str, db: DBDep) -> DataResponse[DepartmentDetail]:
    """Return one department with the number of subjects it owns.

    Args:
        department_id: Raw path segment; must be a positive integer.
        db: Injected async database session.

    Raises:
        BadRequestError: malformed id.
        NotFoundError: no such department.
    """
    department = await _get_or_404(db, parse_id(department_id, "department"))
    total_subjects = await db.scalar(
        select(func.count())
        .select_from(Subject)
        .where(Subject.department_id == department.id)
    )
    detail = DepartmentDetail.model_validate(department).model_copy(
        update={"total_subjects": int(total_subjects or 0)}
    )
    return DataResponse[DepartmentDetail](data=detail)


@router.post(
    "",
    response_model=DataResponse[DepartmentRead],
    status_code=status.HTTP_201_CREATED,
    summary="Create a department",
    responses={409: {"description": "Code already in use"}},
)
async def create_department(
    payload: DepartmentCreate, db: DBDep
) -> DataResponse[DepartmentRead]:
    department = Department(**payload.model_dump())
    db.add(department)
    await flush_or_conflict(db, unique_message=_DUPLICATE_CODE)

    logger.info("Created department id=%d code=%s", department.id, department.code)
    return DataResponse[DepartmentRead](data=DepartmentRead.model_validate(department))


@router.put(
    "/{department_id}",
    response_model=DataResponse[DepartmentRead],
    summary="Update a department",
    responses={
        400: {"description": "Malformed id or empty payload"},
        404: {"description": "Department not found"},
        409: {"description": "Code already in use"},
    },
)
async def update_department(
    department_id: str, payload: DepartmentUpdate, db: DBDep
) -> DataResponse[DepartmentRead]:
    changes = payload.model_dump(exclude_unset=True)
    pk = parse_id(department_id, "department")
    if not changes:
        raise BadRequestError("No fields to update")

    department = await _get_or_404(db, pk)
    for key, value in changes.items():
        setattr(department, key, value)
    department.updated_at = utcnow()
    await flush_or_conflict(db, unique_message=_DUPLICATE_CODE)

    return DataResponse[DepartmentRead](data=DepartmentRead.model_validate(department))


@router.delete(
    "/{department_id}",
    response_model=DeleteResponse,
    summary="Delete a department",
    responses={
        404: {"description": "Department not found"},
        409: {"description": "Subjects still reference this department"},
    },
)
async def delete_department(department_id: str, db: DBDep) -> DeleteResponse:
    pk = parse_id(department_id, "department")
    await _get_or_404(db, pk)
    await delete_or_conflict(
        db,
        delete(Department).where(Department.id == pk),
        restrict_message="Cannot delete department because it has associated subjects",
    )

    logger.info("Deleted department id=%d", pk)
    return DeleteResponse(message="Department deleted successfully", data=DeletedRef(id=pk))

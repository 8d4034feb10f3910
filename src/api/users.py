"""Users API routes.

Provides:
    GET    /api/users             — Paginated list, ``search`` over name/email, ``role``.
    GET    /api/users/{user_id}   — Single user.
    PUT    /api/users/{user_id}   — Update name, role or image.
    DELETE /api/users/{user_id}   — Delete (enrollments cascade, taught classes lose their teacher).

Users are created through registration (``/api/register`` or
``/api/auth/sign-up/email``), never here.
"""

import logging

from fastapi import APIRouter, Query, Response
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import DBDep, PageDep
from src.exceptions import BadRequestError, NotFoundError
from src.models.base import utcnow
from src.models.user import User, UserRole
from src.schemas.common import DataResponse, DeletedRef, DeleteResponse, ListResponse
from src.schemas.user import UserRead, UserUpdate
from src.services.persistence import delete_or_conflict
from src.services.query_builder import FilterSet, paginate
from src.services.validation import parse_enum_filter, parse_str_filter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["users"])


async def _get_or_404(db: AsyncSession, user_id: str) -> User:
    user = await db.get(User, user_id)
    if user is None:
        raise NotFoundError("User", user_id)
    return user


@router.get(
    "",
    response_model=ListResponse[UserRead],
    summary="List users",
    responses={400: {"description": "Unknown role"}},
)
async def list_users(
    db: DBDep,
    params: PageDep,
    response: Response,
    search: str | None = Query(default=None, description="Substring of name or email"),
    role: str | None = Query(default=None, description="admin, teacher or student"),
) -> ListResponse[UserRead]:
    role_filter = parse_enum_filter(role, UserRole, "role")
    filters = (
        FilterSet()
        .search(parse_str_filter(search), User.name, User.email)
        .equals(User.role, role_filter.value if role_filter else None)
    )
    rows, pagination = await paginate(
        db,
        select(User),
        count_from=User,
        filters=filters,
        params=params,
        order_by=(User.created_at.desc(), User.id.desc()),
    )
    response.headers["X-Total-Count"] = str(pagination.total)
    return ListResponse[UserRead](
        data=[UserRead.model_validate(row[0]) for row in rows],
        pagination=pagination,
    )


@router.get(
    "/{user_id}",
    response_model=DataResponse[UserRead],
    summary="Get a user",
    responses={404: {"description": "User not found"}},
)
async def get_user(user_id: str, db: DBDep) -> DataResponse[UserRead]:
    return DataResponse[UserRead](data=UserRead.model_validate(await _get_or_404(db, user_id)))


@router.put(
    "/{user_id}",
    response_model=DataResponse[UserRead],
    summary="Update a user",
    responses={
        400: {"description": "Empty payload"},
        404: {"description": "User not found"},
    },
)
async def update_user(user_id: str, payload: UserUpdate, db: DBDep) -> DataResponse[UserRead]:
    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        raise BadRequestError("No fields to update")

    user = await _get_or_404(db, user_id)
    if "role" in changes:
        changes["role"] = UserRole(changes["role"]).value
    for key, value in changes.items():
        setattr(user, key, value)
    user.updated_at = utcnow()
    await db.flush()

    logger.info("Updated user id=%s fields=%s", user.id, sorted(changes))
    return DataResponse[UserRead](data=UserRead.model_validate(user))


@router.delete(
    "/{user_id}",
    response_model=DeleteResponse,
    summary="Delete a user",
    responses={404: {"description": "User not found"}},
)
async def delete_user(user_id: str, db: DBDep) -> DeleteResponse:
    """Delete a user together with their credentials, sessions and enrollments.

    Classes the user taught remain, with ``teacherId`` cleared by the database.
    """
    await _get_or_404(db, user_id)
    await delete_or_conflict(
        db,
        delete(User).where(User.id == user_id),
        restrict_message="Cannot delete user because other records reference it",
    )

    logger.info("Deleted user id=%s", user_id)
    return DeleteResponse(message="User deleted successfully", data=DeletedRef(id=user_id))

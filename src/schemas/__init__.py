"""Pydantic v2 request/response schemas for the classroom API."""

from src.schemas.auth import (
    AuthTokenResponse,
    IdentitySchema,
    RegisterRequest,
    SessionResponse,
    SignInRequest,
    SignUpRequest,
)
from src.schemas.class_section import ClassCreate, ClassRead, ClassUpdate, ScheduleSlot
from src.schemas.common import (
    DataResponse,
    DeleteResponse,
    ListResponse,
    PaginationMeta,
)
from src.schemas.department import (
    DepartmentCreate,
    DepartmentDetail,
    DepartmentRead,
    DepartmentUpdate,
)
from src.schemas.enrollment import (
    EnrollmentCreate,
    EnrollmentDetail,
    EnrollmentRead,
    JoinClassRequest,
)
from src.schemas.subject import SubjectCreate, SubjectRead, SubjectUpdate
from src.schemas.user import UserRead, UserUpdate

__all__ = [
    "PaginationMeta",
    "DataResponse",
    "ListResponse",
    "DeleteResponse",
    "DepartmentCreate",
    "DepartmentUpdate",
    "DepartmentRead",
    "DepartmentDetail",
    "SubjectCreate",
    "SubjectUpdate",
    "SubjectRead",
    "ClassCreate",
    "ClassUpdate",
    "ClassRead",
    "ScheduleSlot",
    "EnrollmentCreate",
    "EnrollmentRead",
    "EnrollmentDetail",
    "JoinClassRequest",
    "UserRead",
    "UserUpdate",
    "SignUpRequest",
    "SignInRequest",
    "IdentitySchema",
    "RegisterRequest",
    "SessionResponse",
    "AuthTokenResponse",
]

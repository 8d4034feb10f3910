"""Pydantic v2 schemas for the auth gateway and login/register surface."""

from __future__ import annotations

from datetime import datetime

from pydantic import EmailStr, Field

from src.models.user import UserRole
from src.schemas.common import CamelModel
from src.services.validation import NAME_MAX_LENGTH


class SignUpRequest(CamelModel):
    """Registration payload (email + password)."""

    name: str = Field(..., min_length=1, max_length=NAME_MAX_LENGTH)
    email: EmailStr
    password: str = Field(..., min_length=1)
    role: UserRole = UserRole.STUDENT
    image: str | None = None
    image_cld_pub_id: str | None = None


class SignInRequest(CamelModel):
    """Login payload."""

    email: EmailStr
    password: str = Field(..., min_length=1)


class IdentitySchema(CamelModel):
    """The authenticated user as exposed to clients."""

    id: str
    name: str
    email: str
    email_verified: bool = False
    role: UserRole
    image: str | None = None
    created_at: datetime
    updated_at: datetime


class SessionInfo(CamelModel):
    id: str
    user_id: str
    expires_at: datetime


class SessionResponse(CamelModel):
    """Body of GET /api/auth/get-session."""

    session: SessionInfo
    user: IdentitySchema


class AuthTokenResponse(CamelModel):
    """Body of sign-in / sign-up: the signed session token and the user."""

    token: str
    user: IdentitySchema


class RegisterRequest(CamelModel):
    """Payload for POST /api/register; the role always starts as ``student``."""

    name: str = Field(..., min_length=1, max_length=NAME_MAX_LENGTH)
    email: EmailStr
    password: str = Field(..., min_length=1)

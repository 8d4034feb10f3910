"""SQLAlchemy ORM models for the tables owned by the auth gateway.

``users`` is read by the resource controllers; ``accounts`` and
``auth_sessions`` are only touched by :mod:`src.services.auth_gateway`.
"""

from __future__ import annotations

import enum
import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from src.models.base import Base, TimestampMixin


def _new_id() -> str:
    return str(uuid.uuid4())


class UserRole(str, enum.Enum):
    """Application role attached to every user."""

    ADMIN = "admin"
    TEACHER = "teacher"
    STUDENT = "student"


class User(TimestampMixin, Base):
    """Application user (admin, teacher or student).

    Attributes:
        id: String primary key generated by the auth gateway.
        name: Display name.
        email: Unique login email.
        email_verified: Whether the email address has been confirmed.
        image: Optional avatar URL.
        image_cld_pub_id: Optional image-host public id for the avatar.
        role: One of admin, teacher, student (stored as text).
    """

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    email_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    image: Mapped[str | None] = mapped_column(Text, nullable=True)
    image_cld_pub_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    role: Mapped[str] = mapped_column(
        String(20), nullable=False, default=UserRole.STUDENT.value, index=True
    )

    def __repr__(self) -> str:
        return f"<User(id='{self.id}', email='{self.email}', role='{self.role}')>"


class Account(TimestampMixin, Base):
    """Credential record for a user (email + bcrypt password hash)."""

    __tablename__ = "accounts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    provider_id: Mapped[str] = mapped_column(String(50), nullable=False, default="credential")
    password_hash: Mapped[str | None] = mapped_column(String(255), nullable=True)


class AuthSession(TimestampMixin, Base):
    """Server-side login session; only a SHA-256 digest of the token is stored."""

    __tablename__ = "auth_sessions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    token_hash: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    ip_address: Mapped[str | None] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(Text, nullable=True)

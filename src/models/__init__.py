"""SQLAlchemy ORM models for the classroom management backend."""

from src.models.base import Base
from src.models.class_section import ClassSection, ClassStatus
from src.models.department import Department
from src.models.enrollment import Enrollment
from src.models.subject import Subject
from src.models.user import Account, AuthSession, User, UserRole

__all__ = [
    "Base",
    "Department",
    "Subject",
    "ClassSection",
    "ClassStatus",
    "Enrollment",
    "User",
    "UserRole",
    "Account",
    "AuthSession",
]

"""Custom exception classes for the Classroom Management API.

All domain-level errors should be raised as one of these typed exceptions so
that FastAPI exception handlers can convert them to structured HTTP responses.
"""

from __future__ import annotations

import enum


class ClassroomAPIError(Exception):
    """Base class for errors that map onto an HTTP response.

    Args:
        message: Human-readable description returned to the client.
    """

    status_code: int = 500
    error: str = "internal_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message: str = message


class BadRequestError(ClassroomAPIError):
    """Raised for missing or malformed input, detected before any DB call."""

    status_code = 400
    error = "bad_request"


class NotFoundError(ClassroomAPIError):
    """Raised when no row matches the requested id or code.

    Args:
        resource: Human-readable resource name (e.g. ``"Department"``).
        identifier: The id, code or invite code that was looked up.
    """

    status_code = 404
    error = "not_found"

    def __init__(self, resource: str, identifier: object | None = None) -> None:
        super().__init__(f"{resource} not found")
        self.resource: str = resource
        self.identifier: object | None = identifier


class ConflictError(ClassroomAPIError):
    """Raised for uniqueness violations, duplicate enrollment, a full class,
    or a delete blocked by dependent rows."""

    status_code = 409
    error = "conflict"


class AuthGatewayError(ClassroomAPIError):
    """Raised by the auth gateway; carries the status the gateway chose.

    Args:
        message: Client-facing message.
        status_code: HTTP status to respond with.
    """

    error = "auth_error"

    def __init__(self, message: str, status_code: int = 400) -> None:
        super().__init__(message)
        self.status_code = status_code


class DatabaseConnectionError(ClassroomAPIError):
    """Raised when a connection to the database cannot be established.

    Args:
        message: Detail from the underlying driver exception.
    """

    status_code = 503
    error = "database_unavailable"


# ---------------------------------------------------------------------------
# Constraint taxonomy
# ---------------------------------------------------------------------------


class ConstraintKind(str, enum.Enum):
    """Kind of integrity constraint a database error reports."""

    UNIQUE = "unique"
    FOREIGN_KEY = "foreign_key"
    NOT_NULL = "not_null"
    CHECK = "check"
    UNKNOWN = "unknown"


# PostgreSQL SQLSTATE class 23 codes.
_SQLSTATE_KINDS: dict[str, ConstraintKind] = {
    "23505": ConstraintKind.UNIQUE,
    "23503": ConstraintKind.FOREIGN_KEY,
    "23502": ConstraintKind.NOT_NULL,
    "23514": ConstraintKind.CHECK,
}

# Message fragments for drivers that report no SQLSTATE (SQLite).
_MESSAGE_KINDS: tuple[tuple[str, ConstraintKind], ...] = (
    ("unique constraint", ConstraintKind.UNIQUE),
    ("duplicate key", ConstraintKind.UNIQUE),
    ("foreign key constraint", ConstraintKind.FOREIGN_KEY),
    ("violates foreign key", ConstraintKind.FOREIGN_KEY),
    ("not null constraint", ConstraintKind.NOT_NULL),
    ("check constraint", ConstraintKind.CHECK),
)


def _sqlstate(error: BaseException | None) -> str | None:
    for attr in ("sqlstate", "pgcode"):
        code = getattr(error, attr, None)
        if isinstance(code, str) and code:
            return code
    return None


def classify_integrity_error(exc: BaseException) -> ConstraintKind:
    """Map a persistence-layer integrity error onto a :class:`ConstraintKind`.

    Checks the SQLSTATE exposed by asyncpg/psycopg (on the DBAPI error or its
    cause) first and falls back to the driver message.

    Args:
        exc: Usually a ``sqlalchemy.exc.IntegrityError``; bare DBAPI errors work too.

    Returns:
        The detected constraint kind, ``UNKNOWN`` when nothing matches.
    """
    orig = getattr(exc, "orig", None) or exc
    code = _sqlstate(orig) or _sqlstate(orig.__cause__)
    if code in _SQLSTATE_KINDS:
        return _SQLSTATE_KINDS[code]

    message = str(orig).lower()
    for fragment, kind in _MESSAGE_KINDS:
        if fragment in message:
            return kind
    return ConstraintKind.UNKNOWN

"""Classroom Management API — FastAPI application entry point.

Features:
- Lifespan context manager: builds the database handle and auth gateway on
  startup, disposes the engine on shutdown
- Structured exception handlers rendering ``{"error", "message"}`` bodies
- Request/response logging middleware with request-ID tracing
- /health endpoint reporting database connectivity
- Session-protected resource routers under /api
"""

from __future__ import annotations

import datetime
import logging
import time
import uuid
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

from fastapi import Depends, FastAPI, HTTPException, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.config import get_settings
from src.exceptions import ClassroomAPIError

# ---------------------------------------------------------------------------
# Logging setup  (must happen before routers are imported)
# ---------------------------------------------------------------------------

_settings = get_settings()
logging.basicConfig(
    level=getattr(logging, _settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S",
)
logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Router and service imports
# ---------------------------------------------------------------------------

from src.api import auth as _auth_module  # noqa: E402
from src.api import auth_actions as _auth_actions_module  # noqa: E402
from src.api import classes as _classes_module  # noqa: E402
from src.api import departments as _departments_module  # noqa: E402
from src.api import enrollments as _enrollments_module  # noqa: E402
from src.api import subjects as _subjects_module  # noqa: E402
from src.api import users as _users_module  # noqa: E402
from src.api.dependencies import require_session  # noqa: E402
from src.database import Database  # noqa: E402
from src.services.auth_gateway import DatabaseAuthGateway  # noqa: E402

# Register all ORM models with the declarative base (required for metadata)
import src.models  # noqa: F401, E402

# ---------------------------------------------------------------------------
# Lifespan context manager
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application startup and shutdown lifecycle.

    Startup sequence:
    1. Refuse to start without ``AUTH_SECRET`` unless running in debug mode.
    2. Build the :class:`Database` handle; create tables when configured.
    3. Check DB connectivity and log the result (non-fatal at startup).
    4. Build the auth gateway and store both on ``app.state`` for DI.

    Shutdown:
    1. Dispose the SQLAlchemy connection pool gracefully.
    """
    # --- Startup -----------------------------------------------------------
    logger.info("Classroom Management API — starting up (v%s)", _settings.app_version)

    if not _settings.auth_secret:
        if not _settings.debug:
            logger.critical("FATAL — AUTH_SECRET is not set")
            raise RuntimeError("Cannot start: AUTH_SECRET is not set")
        logger.warning("AUTH_SECRET not set; using an ephemeral debug secret")
        _settings.auth_secret = uuid.uuid4().hex

    database = Database(_settings.database_url)
    app.state.database = database

    if _settings.create_tables_on_startup:
        await database.create_all()
        logger.info("Database tables created (%s)", database.dialect_name)

    db_health = await database.check_connection()
    if db_health["status"] == "ok":
        logger.info("Database: OK")
    else:
        logger.warning("Database: DEGRADED — %s", db_health.get("detail", "unknown"))

    app.state.auth_gateway = DatabaseAuthGateway(database, _settings)

    logger.info("Startup complete — serving requests")
    yield

    # --- Shutdown ----------------------------------------------------------
    logger.info("Classroom Management API — shutting down")
    try:
        await database.dispose()
    except Exception as exc:
        logger.warning("Error during engine disposal: %s", exc)
    logger.info("Shutdown complete")


# ---------------------------------------------------------------------------
# FastAPI application
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Classroom Management API",
    description=(
        "Administrative backend for departments, subjects, classes, enrollments"
        " and users, with session-based authentication."
    ),
    version=_settings.app_version,
    debug=_settings.debug,
    lifespan=lifespan,
    openapi_tags=[
        {"name": "health", "description": "System health and readiness checks."},
        {"name": "auth", "description": "Registration, login, logout and session lookup."},
        {"name": "departments", "description": "Academic departments."},
        {"name": "subjects", "description": "Subjects owned by departments."},
        {
            "name": "classes",
            "description": "Class sections of a subject, with invite codes and schedules.",
        },
        {
            "name": "enrollments",
            "description": "Student membership in classes, bounded by class capacity.",
        },
        {"name": "users", "description": "Admins, teachers and students."},
    ],
)

# ---------------------------------------------------------------------------
# CORS middleware
# ---------------------------------------------------------------------------

app.add_middleware(
    CORSMiddleware,
    allow_origins=[_settings.frontend_url],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["*"],
    expose_headers=["X-Total-Count"],
)


# ---------------------------------------------------------------------------
# Request / response logging middleware
# ---------------------------------------------------------------------------


@app.middleware("http")
async def request_logging_middleware(request: Request, call_next: Any) -> Response:
    """Log every HTTP request with method, path, status, and duration.

    A short UUID-derived ``request_id`` is attached to each log line and
    returned as the ``X-Request-ID`` response header.
    """
    request_id = str(uuid.uuid4())[:8]
    t0 = time.monotonic()
    logger.info("[%s] → %s %s", request_id, request.method, request.url.path)

    try:
        response: Response = await call_next(request)
    except Exception as exc:
        elapsed = (time.monotonic() - t0) * 1000
        logger.error(
            "[%s] ✗ %s %s — unhandled after %.1f ms: %s",
            request_id,
            request.method,
            request.url.path,
            elapsed,
            exc,
        )
        raise

    elapsed = (time.monotonic() - t0) * 1000
    logger.info(
        "[%s] ← %s %s — %d (%.1f ms)",
        request_id,
        request.method,
        request.url.path,
        response.status_code,
        elapsed,
    )
    response.headers["X-Request-ID"] = request_id
    return response


# ---------------------------------------------------------------------------
# Structured exception handlers
# ---------------------------------------------------------------------------


@app.exception_handler(ClassroomAPIError)
async def classroom_error_handler(request: Request, exc: ClassroomAPIError) -> JSONResponse:
    """Render domain errors (400/404/409/503 and gateway errors) as JSON."""
    if exc.status_code >= 500:
        logger.error("%s: %s", type(exc).__name__, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.error, "message": exc.message},
    )


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """400 for malformed request bodies and parameters."""
    details = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ())[1:]),
            "message": error.get("msg", ""),
        }
        for error in exc.errors()
    ]
    message = "; ".join(
        f"{d['field']}: {d['message']}" if d["field"] else d["message"] for d in details
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": "bad_request",
            "message": message or "Invalid request",
            "details": details,
        },
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Render FastAPI HTTPExceptions as structured JSON."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": "http_error", "message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """500 for anything unexpected; details stay in the server log."""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "internal_error", "message": "Internal Server Error"},
    )


# ---------------------------------------------------------------------------
# Core routes
# ---------------------------------------------------------------------------


@app.get("/", tags=["health"], summary="API root / service info")
async def root() -> dict[str, str]:
    """Return basic service metadata and navigation links."""
    return {
        "service": "Classroom Management API",
        "version": _settings.app_version,
        "documentation": "/docs",
        "health": "/health",
        "openapi": "/openapi.json",
    }


@app.get(
    "/health",
    tags=["health"],
    summary="System health check",
    description=(
        "Checks database connectivity. ``status: ok`` means the database answered;"
        " ``status: degraded`` means the API is responding but the database is not."
    ),
)
async def health_check(request: Request) -> dict[str, Any]:
    """Return current system health including DB status.

    Args:
        request: Used to access ``app.state.database``.

    Returns:
        Health summary dict with ``status`` and ``database``.
    """
    database: Database | None = getattr(request.app.state, "database", None)
    if database is None:
        db_health: dict[str, Any] = {"status": "not_initialised"}
    else:
        db_health = await database.check_connection()

    return {
        "status": "ok" if db_health["status"] == "ok" else "degraded",
        "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
        "version": _settings.app_version,
        "database": db_health,
    }


# ---------------------------------------------------------------------------
# Include routers
# ---------------------------------------------------------------------------

app.include_router(_auth_module.router)
app.include_router(_auth_actions_module.router)

_protected = [Depends(require_session)]
app.include_router(_departments_module.router, dependencies=_protected)
app.include_router(_subjects_module.router, dependencies=_protected)
app.include_router(_classes_module.router, dependencies=_protected)
app.include_router(_enrollments_module.router, dependencies=_protected)
app.include_router(_users_module.router, dependencies=_protected)


# ---------------------------------------------------------------------------
# Development entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level=_settings.log_level.lower(),
    )

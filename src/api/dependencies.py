"""FastAPI dependency injection helpers.

Provides reusable ``Depends``-compatible callables for:
- ``get_db()``            → request-scoped async database session
- ``get_settings()``      → application settings
- ``get_page_params()``   → bounded page window from ``page``/``limit``
- ``get_auth_gateway()``  → auth gateway instance (stored on app.state)
- ``require_session()``   → authenticated identity, or 401
"""

import logging
from typing import Annotated

from fastapi import Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.config import Settings
from src.config import get_settings as _get_settings_impl
from src.database import get_async_db
from src.services.auth_gateway import AuthGateway, Identity
from src.services.query_builder import PageParams, parse_page_params

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Database session
# ---------------------------------------------------------------------------


async def get_db(
    db: AsyncSession = Depends(get_async_db),
) -> AsyncSession:
    """Provide an async database session to route handlers.

    Thin wrapper around :func:`src.database.get_async_db` that adds a
    typed annotation so handlers can use ``Annotated[AsyncSession, Depends(get_db)]``.
    """
    return db


DBDep = Annotated[AsyncSession, Depends(get_db)]


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


def get_settings() -> Settings:
    """Return the cached application settings."""
    return _get_settings_impl()


SettingsDep = Annotated[Settings, Depends(get_settings)]


# ---------------------------------------------------------------------------
# Pagination
# ---------------------------------------------------------------------------


def get_page_params(
    settings: SettingsDep,
    page: str | None = Query(default=None, description="1-based page number"),
    limit: str | None = Query(default=None, description="Page size (capped)"),
) -> PageParams:
    """Parse ``page``/``limit`` leniently; invalid values fall back to defaults.

    The parameters are declared as strings so FastAPI never rejects them.
    """
    return parse_page_params(
        page,
        limit,
        default_limit=settings.default_page_size,
        max_limit=settings.max_page_size,
    )


PageDep = Annotated[PageParams, Depends(get_page_params)]


# ---------------------------------------------------------------------------
# Auth gateway (stored on app.state during lifespan startup)
# ---------------------------------------------------------------------------


def get_auth_gateway(request: Request) -> AuthGateway:
    """Return the application-wide auth gateway from ``app.state``.

    Raises:
        HTTPException: 503 if startup did not build a gateway.
    """
    gateway: AuthGateway | None = getattr(request.app.state, "auth_gateway", None)
    if gateway is None:
        logger.error("Auth gateway not initialised — app.state.auth_gateway is None")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Authentication is not available. Check server logs for startup errors.",
        )
    return gateway


AuthGatewayDep = Annotated[AuthGateway, Depends(get_auth_gateway)]


async def require_session(request: Request, gateway: AuthGatewayDep) -> Identity:
    """Reject requests without a valid session.

    The identity is also stored on ``request.state.user``.

    Raises:
        HTTPException: 401 when there is no valid session, 500 when the
            session check itself fails.
    """
    try:
        identity = await gateway.validate_session(request.headers)
    except Exception as exc:
        logger.exception("Authentication error while checking session: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal Server Error during authentication check.",
        ) from exc

    if identity is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized: You must be logged in to access this resource.",
        )

    request.state.user = identity
    return identity


CurrentUserDep = Annotated[Identity, Depends(require_session)]

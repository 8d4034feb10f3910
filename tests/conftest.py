"""Top-level pytest configuration and shared fixtures for the classroom API test suite.

Environment variables are set at the top of this module *before* any src
imports so that the cached settings point the application at an in-memory
SQLite database with tables created on startup and cheap bcrypt rounds.

Fixture hierarchy
-----------------
mock_db_session  → Async mock of SQLAlchemy AsyncSession
client           → FastAPI TestClient over a fresh in-memory database
auth_client      → ``client`` carrying a valid session for a registered admin-side user
"""

from __future__ import annotations

import os

# ---------------------------------------------------------------------------
# Set environment variables BEFORE any src imports; get_settings() caches
# the first Settings instance it builds.
# ---------------------------------------------------------------------------
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("CREATE_TABLES_ON_STARTUP", "true")
os.environ.setdefault("AUTH_SECRET", "test_secret_not_real")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from typing import AsyncGenerator, Iterator
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from tests.fixtures.factories import register_user


# ---------------------------------------------------------------------------
# Async DB session mock
# ---------------------------------------------------------------------------


@pytest.fixture
async def mock_db_session() -> AsyncGenerator[AsyncMock, None]:
    """Provide an async mock of SQLAlchemy ``AsyncSession``.

    Yields an ``AsyncMock`` with all common session methods (execute, commit,
    rollback, close, add, flush, get, scalar, delete) pre-configured.  The
    mock does not interact with any database.
    """
    session = AsyncMock()
    session.execute = AsyncMock(return_value=MagicMock())
    session.commit = AsyncMock(return_value=None)
    session.rollback = AsyncMock(return_value=None)
    session.close = AsyncMock(return_value=None)
    session.add = MagicMock(return_value=None)
    session.flush = AsyncMock(return_value=None)
    session.get = AsyncMock(return_value=None)
    session.scalar = AsyncMock(return_value=None)
    session.delete = AsyncMock(return_value=None)
    session.__aenter__ = AsyncMock(return_value=session)
    session.__aexit__ = AsyncMock(return_value=False)
    yield session


# ---------------------------------------------------------------------------
# FastAPI TestClient over a real (in-memory) database
# ---------------------------------------------------------------------------


@pytest.fixture
def client() -> Iterator[TestClient]:
    """Provide a FastAPI TestClient with the application lifespan running.

    Every lifespan builds a new engine on a new in-memory SQLite connection,
    so each test starts from empty tables.

    Yields:
        A ``starlette.testclient.TestClient`` bound to the FastAPI app.
    """
    from src.main import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_client(client: TestClient) -> TestClient:
    """``client`` authenticated as a freshly registered user.

    The session token is sent as a Bearer header; the registered user's id is
    available as ``auth_client.user_id``.
    """
    body = register_user(client, name="Ada Admin", email="ada@example.com")
    client.headers["Authorization"] = f"Bearer {body['token']}"
    client.user_id = body["user"]["id"]  # type: ignore[attr-defined]
    return client

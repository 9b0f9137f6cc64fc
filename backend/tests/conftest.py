"""
NoteShelf Backend — Test Configuration (conftest.py)
======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Every test gets a freshly created SQLite database (aiosqlite, foreign
       keys on), and API tests get a freshly created app driven through
       httpx's ASGITransport. No server process, no PostgreSQL.

Fixture Hierarchy (all function-scoped):
    ├── db_tables:        drop + create all tables, dispose engine afterwards
    │   ├── db_session:   AsyncSession for service-level tests
    │   └── test_client:  HTTPX AsyncClient bound to a new app
    ├── auth_service:     AuthService with cheap bcrypt rounds
    ├── app:              create_app() with get_auth_service overridden
    ├── login_as:         coroutine factory → Authorization headers
    ├── auth_headers:     headers for a default registered user
    └── mock_db_session:  AsyncMock session for failure-path tests
"""

import os
import tempfile
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient


# ══════════════════════════════════════════════════════════════════════════
# Environment Setup
# ══════════════════════════════════════════════════════════════════════════

# Must run BEFORE any noteshelf import: settings and the engine are built at import
_TEST_DB_DIR = tempfile.mkdtemp(prefix="noteshelf_test_")
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///" + os.path.join(_TEST_DB_DIR, "test.db")
os.environ["JWT_SECRET"] = "test-secret-not-for-production"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["RATE_LIMIT_REQUESTS"] = "100000"
os.environ["DB_AUTO_CREATE"] = "false"

from noteshelf import models  # noqa: E402,F401
from noteshelf.database import Base, async_session_factory, engine  # noqa: E402
from noteshelf.security import (  # noqa: E402
    AuthService,
    PasswordHasher,
    TokenService,
    get_auth_service,
)

TEST_SECRET = "test-secret-not-for-production"
DEFAULT_PASSWORD = "wonderland-42"


# ══════════════════════════════════════════════════════════════════════════
# Database Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_tables():
    """Recreates the schema so each test starts from empty tables."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_tables):
    """
    A real AsyncSession over the test database.

    Service methods only flush; the session is rolled back at teardown.
    """
    async with async_session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    Usage:
        mock_db_session.execute.side_effect = OperationalError("SELECT", {}, Exception())
        with pytest.raises(DatabaseError):
            await note_service.list_notes(mock_db_session)
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.refresh = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.get = AsyncMock()
    session.add = MagicMock()
    return session


# ══════════════════════════════════════════════════════════════════════════
# Auth & API Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def auth_service():
    """bcrypt at the minimum cost factor keeps the suite fast."""
    return AuthService(
        hasher=PasswordHasher(rounds=4),
        tokens=TokenService(secret=TEST_SECRET, expires_in=timedelta(hours=1)),
    )


@pytest.fixture
def app(auth_service):
    from noteshelf.main import create_app

    application = create_app()
    application.dependency_overrides[get_auth_service] = lambda: auth_service
    return application


@pytest_asyncio.fixture
async def test_client(app, db_tables):
    """
    Provides an async HTTP test client for endpoint testing.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def login_as(test_client):
    """Registers (if needed) and logs in a user, returning auth headers."""

    async def _login(username: str = "alice", password: str = DEFAULT_PASSWORD) -> dict:
        await test_client.post(
            "/api/auth/register", json={"username": username, "password": password}
        )
        response = await test_client.post(
            "/api/auth/login", json={"username": username, "password": password}
        )
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['token']}"}

    return _login


@pytest_asyncio.fixture
async def auth_headers(login_as):
    return await login_as()

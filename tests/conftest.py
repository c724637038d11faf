"""
Pytest configuration and shared fixtures.

This file provides common fixtures for all tests.

Tests run against an in-memory SQLite database (aiosqlite). The schema is
created from SQLModel metadata for every test and dropped afterwards, so each
test starts from empty tables.
"""

import os

# Settings are read when app.config is first imported, so the test environment
# has to be in place before any app module is loaded.
os.environ.setdefault("JWT_ACCESS_SECRET", "test-access-secret-0123456789abcdefghij")
os.environ.setdefault("JWT_REFRESH_SECRET", "test-refresh-secret-0123456789abcdefghij")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("TOKEN_BLACKLIST_BACKEND", "memory")
os.environ.setdefault("ENVIRONMENT", "development")

from collections.abc import AsyncGenerator, Awaitable, Callable  # noqa: E402
from unittest.mock import AsyncMock, patch  # noqa: E402

import pytest  # noqa: E402
from fastapi import FastAPI  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import SQLModel  # noqa: E402

import app.models  # noqa: E402, F401  (registers every table on SQLModel.metadata)
from app.config import UserRole, UserStatus  # noqa: E402
from app.core.database import get_db  # noqa: E402
from app.core.security import create_access_token  # noqa: E402
from app.main import app as main_app  # noqa: E402
from app.models.user import Users  # noqa: E402
from app.services import users as user_store  # noqa: E402
from app.services.token_blacklist import MemoryTokenBlacklist, get_token_blacklist  # noqa: E402

TEST_PASSWORD = "Abcd123!@"

# Point at another database (e.g. a MariaDB test schema) with TEST_DATABASE_URL
TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite+aiosqlite:///:memory:")

UserFactory = Callable[..., Awaitable[Users]]


@pytest.fixture(scope="session")
def anyio_backend():
    """Use asyncio backend for async tests."""
    return "asyncio"


@pytest.fixture(scope="function")
async def engine():
    """
    Create a fresh in-memory database for each test function.

    StaticPool keeps a single connection, so every session sees the same
    in-memory database for the lifetime of the engine.
    """
    if TEST_DATABASE_URL.startswith("sqlite"):
        test_engine = create_async_engine(
            TEST_DATABASE_URL,
            echo=False,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    else:
        test_engine = create_async_engine(TEST_DATABASE_URL, echo=False)

    async with test_engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield test_engine

    async with test_engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)

    await test_engine.dispose()


@pytest.fixture(scope="function")
async def db_session(engine) -> AsyncGenerator[AsyncSession, None]:
    """
    Create a new database session for each test.

    The same session is handed to the app through the get_db override, so
    objects created here are visible to request handlers and vice versa.
    """
    async_session_maker = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session_maker() as session:
        yield session
        await session.rollback()


@pytest.fixture
def blacklist() -> MemoryTokenBlacklist:
    """A private revocation list per test."""
    return MemoryTokenBlacklist()


@pytest.fixture
def enqueue_mock():
    """
    Stand-in for the arq queue used by the auth routes.

    Tests never need a running Redis; jobs are recorded on the mock instead.
    """
    with patch("app.api.v1.auth.enqueue_job", new_callable=AsyncMock) as mock:
        mock.return_value = "test-job-id"
        yield mock


@pytest.fixture(scope="function")
def app(
    db_session: AsyncSession, blacklist: MemoryTokenBlacklist, enqueue_mock: AsyncMock
) -> FastAPI:
    """
    Create FastAPI app with test database session.

    This overrides the database dependency to use the test session and the
    blacklist dependency to use the per-test in-memory list.
    """

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    main_app.dependency_overrides[get_db] = override_get_db
    main_app.dependency_overrides[get_token_blacklist] = lambda: blacklist

    yield main_app

    main_app.dependency_overrides.clear()


@pytest.fixture(scope="function")
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """
    Create async HTTP client for testing API endpoints.

    Usage:
        async def test_endpoint(client):
            response = await client.get("/api/faqs")
            assert response.status_code == 200
    """
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


# =============================================================================
# Test Data Fixtures
# =============================================================================


@pytest.fixture
def make_user(db_session: AsyncSession) -> UserFactory:
    """
    Factory for committed users.

    Usage:
        async def test_something(make_user):
            user = await make_user(phone="01812345678", email="a@example.com")
    """

    async def _make_user(
        phone: str = "01712345678",
        email: str | None = "user@example.com",
        password: str = TEST_PASSWORD,
        role: UserRole = UserRole.USER,
        status: UserStatus = UserStatus.ACTIVE,
        first_name: str = "Test",
        last_name: str = "User",
    ) -> Users:
        user = await user_store.create_user(
            db_session,
            phone=phone,
            first_name=first_name,
            last_name=last_name,
            password=password,
            email=email,
            role=role,
        )
        user.status = status
        await db_session.commit()
        return user

    return _make_user


@pytest.fixture
async def test_user(make_user: UserFactory) -> Users:
    return await make_user()


@pytest.fixture
async def admin_user(make_user: UserFactory) -> Users:
    return await make_user(
        phone="01812345678", email="admin@example.com", role=UserRole.ADMIN, first_name="Admin"
    )


@pytest.fixture
async def super_admin_user(make_user: UserFactory) -> Users:
    return await make_user(
        phone="01912345678",
        email="root@example.com",
        role=UserRole.SUPER_ADMIN,
        first_name="Root",
    )


def auth_headers(user: Users) -> dict[str, str]:
    """Authorization header carrying a freshly minted access token for user."""
    return {"Authorization": f"Bearer {create_access_token(user)}"}


@pytest.fixture
def headers_for() -> Callable[[Users], dict[str, str]]:
    return auth_headers


@pytest.fixture
def user_headers(test_user: Users) -> dict[str, str]:
    return auth_headers(test_user)


@pytest.fixture
def admin_headers(admin_user: Users) -> dict[str, str]:
    return auth_headers(admin_user)


@pytest.fixture
def super_admin_headers(super_admin_user: Users) -> dict[str, str]:
    return auth_headers(super_admin_user)

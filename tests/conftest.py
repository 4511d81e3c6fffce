"""Pytest configuration and shared fixtures.

Store-level tests run against an in-memory SQLite database built from
the ORM metadata, so they need no running PostgreSQL.
"""

import os
from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

# Set testing mode BEFORE importing app to use NullPool and disable rate limits
os.environ["TESTING"] = "true"

from src.config import settings

# Override settings for testing
settings.testing = True

from src.core.security import create_access_token
from src.database import get_db
from src.main import app
from src.models import Base, User


@pytest_asyncio.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Provide an async HTTP client for testing the API."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest_asyncio.fixture
async def sqlite_engine() -> AsyncGenerator[AsyncEngine, None]:
    """In-memory SQLite engine with all tables created."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(sqlite_engine) -> async_sessionmaker[AsyncSession]:
    """Session maker bound to the SQLite engine.

    Tests open a fresh session per step, the way each request gets its
    own session in the app.
    """
    return async_sessionmaker(
        sqlite_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest_asyncio.fixture
async def db_client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client whose requests use the SQLite database."""

    async def _get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _get_db
    try:
        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
        ) as ac:
            yield ac
    finally:
        app.dependency_overrides.pop(get_db, None)


@pytest_asyncio.fixture
async def driver(session_factory) -> User:
    """A stored user with a display name."""
    async with session_factory() as db:
        user = User(email="driver@example.com", display_name="Trucker Tom")
        db.add(user)
        await db.commit()
    return user


@pytest.fixture
def session_headers(driver) -> dict[str, str]:
    """Authorization header carrying a web session JWT for ``driver``."""
    return {"Authorization": f"Bearer {create_access_token(driver.id)}"}

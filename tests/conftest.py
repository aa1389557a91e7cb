import os
from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from dotenv import load_dotenv

# Settings are read at import time; give the test run safe defaults
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./carebook_test.db")
os.environ.setdefault("REDIS_HOST", "localhost")
os.environ.setdefault("REDIS_PORT", "6379")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")  # pragma: allowlist secret
os.environ.setdefault("LOG_FORMAT", "console")
load_dotenv()

from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool  # noqa: E402

from app.database import get_db  # noqa: E402
from app.dependencies import get_cache_manager  # noqa: E402
from app.main import app  # noqa: E402
from app.models import metadata  # noqa: E402
from tests.helpers import create_user  # noqa: E402

# Point TEST_DATABASE_URL at a disposable PostgreSQL database to run the
# suite against the production dialect; otherwise each test gets its own
# SQLite file.
TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL")


@pytest_asyncio.fixture
async def test_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """Create a fresh schema for one test."""
    if TEST_DATABASE_URL:
        url = TEST_DATABASE_URL.replace("postgresql://", "postgresql+asyncpg://")
        engine = create_async_engine(url, poolclass=NullPool)
        async with engine.begin() as conn:
            await conn.run_sync(metadata.drop_all)
    else:
        engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'carebook.db'}")

    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)

    yield engine

    if TEST_DATABASE_URL:
        async with engine.begin() as conn:
            await conn.run_sync(metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the test database."""
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client; every request gets its own session, as in production."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_cache_manager] = lambda: None

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def doctor(db_session) -> dict:
    return await create_user(db_session, "doctor", "Dr. Ada Grey")


@pytest_asyncio.fixture
async def other_doctor(db_session) -> dict:
    return await create_user(db_session, "doctor", "Dr. Ben Okafor")


@pytest_asyncio.fixture
async def patient(db_session) -> dict:
    return await create_user(db_session, "patient", "Carla Mendes")


@pytest_asyncio.fixture
async def other_patient(db_session) -> dict:
    return await create_user(db_session, "patient", "Dev Patel")


@pytest_asyncio.fixture
async def admin(db_session) -> dict:
    return await create_user(db_session, "admin", "Admin User")

"""Pytest configuration and fixtures for keystone.

HTTP tests run app.main:app through httpx's ASGI transport against an
in-memory SQLite database (aiosqlite). Environment is set before the app is
imported because create_app() reads settings at import time.
"""

import os

os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["TELEMETRY_ENABLED"] = "false"
os.environ["IDENTITY_PROVIDER"] = "local"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ.pop("EMAIL_PROVIDER_API_KEY", None)

from collections.abc import AsyncIterator  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.core.config import get_settings  # noqa: E402

get_settings.cache_clear()

from app.api.v1.dependencies import get_email_dispatcher  # noqa: E402
from app.infrastructure.persistence import models  # noqa: E402,F401
from app.infrastructure.persistence.database import Base, get_db  # noqa: E402
from app.main import app  # noqa: E402
from tests.fakes import RecordingEmailDispatcher  # noqa: E402


@pytest.fixture
async def engine() -> AsyncIterator[AsyncEngine]:
    """Fresh in-memory database per test, schema created from the ORM metadata."""
    eng = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )


@pytest.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncSession]:
    """Session for repository tests. Repositories commit their own writes."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def outbox() -> RecordingEmailDispatcher:
    """Emails the API tried to send during the test."""
    return RecordingEmailDispatcher()


@pytest.fixture
async def client(
    session_factory: async_sessionmaker[AsyncSession],
    outbox: RecordingEmailDispatcher,
) -> AsyncIterator[AsyncClient]:
    """Async HTTP client against the FastAPI app (ASGI) with DB and email overridden."""

    async def _get_db() -> AsyncIterator[AsyncSession]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_email_dispatcher] = lambda: outbox
    transport = ASGITransport(app=app)
    try:
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()

"""Shared test fixtures for flight-compliance.

Fixtures:
  - database_url: URL of a fresh SQLite file database under tmp_path
  - session_factory: Async session factory with every table created
  - app: FastAPI application bound to the test database
  - client: HTTPX async client configured against the test application

Service tests use AsyncMock repositories instead of the database.
"""

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from flight_compliance.core import models  # noqa: F401  registers tables
from flight_compliance.core.services import wait_for_pending_writes
from flight_compliance.database import Base, create_engine, create_session_factory
from flight_compliance.main import create_app
from flight_compliance.settings import Settings


@pytest.fixture
def database_url(tmp_path: Path) -> str:
    """Return the URL of a per-test SQLite database file.

    Args:
        tmp_path: Pytest temporary directory.

    Returns:
        SQLAlchemy aiosqlite URL.
    """
    return f"sqlite+aiosqlite:///{tmp_path / 'flight_compliance.db'}"


@pytest_asyncio.fixture
async def session_factory(
    database_url: str,
) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Session factory over a freshly created schema.

    Args:
        database_url: Test database URL.

    Yields:
        An async_sessionmaker bound to the test database.
    """
    engine = create_engine(database_url)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield create_session_factory(engine)
    await wait_for_pending_writes()
    await engine.dispose()


@pytest.fixture
def app(database_url: str) -> FastAPI:
    """FastAPI application bound to the test database.

    Args:
        database_url: Test database URL.

    Returns:
        A freshly created application.
    """
    return create_app(Settings(database_url=database_url))


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client for the test application.

    Args:
        app: The test application.

    Yields:
        Configured HTTPX AsyncClient for test requests.
    """
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as async_client:
        yield async_client
    app.dependency_overrides.clear()
    await wait_for_pending_writes()
    await app.state.engine.dispose()

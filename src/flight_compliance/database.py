"""Database engine, session factory and declarative base for flight-compliance.

All tables extend FlightComplianceModel which provides:
  - id: UUID primary key
  - created_at: datetime
  - updated_at: datetime

Repositories receive the async_sessionmaker and open one short session per
call, so concurrent lookups never share a session.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Uuid, func, text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from flight_compliance.observability import get_logger

logger = get_logger(__name__)


class Base(DeclarativeBase):
    """Declarative base holding the shared metadata."""


class FlightComplianceModel(Base):
    """Abstract base for every flight-compliance table."""

    __abstract__ = True

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )


def create_engine(
    database_url: str,
    echo: bool = False,
    pool_size: int | None = None,
) -> AsyncEngine:
    """Create the async engine for the configured database.

    Args:
        database_url: SQLAlchemy async database URL.
        echo: Log every SQL statement.
        pool_size: Connection pool size; ignored for SQLite.

    Returns:
        The configured AsyncEngine.
    """
    kwargs: dict = {"echo": echo}
    if pool_size is not None and not database_url.startswith("sqlite"):
        kwargs["pool_size"] = pool_size
    return create_async_engine(database_url, **kwargs)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Build the session factory shared by all repositories.

    Args:
        engine: The async engine.

    Returns:
        An async_sessionmaker that keeps loaded attributes after commit.
    """
    return async_sessionmaker(engine, expire_on_commit=False)


async def check_database(session_factory: async_sessionmaker[AsyncSession]) -> bool:
    """Return True if the database answers a trivial query.

    Args:
        session_factory: Session factory bound to the engine to probe.

    Returns:
        Whether ``SELECT 1`` succeeded.
    """
    try:
        async with session_factory() as session:
            await session.execute(text("SELECT 1"))
    except Exception as exc:  # noqa: BLE001
        logger.warning("Database readiness check failed", error=str(exc))
        return False
    return True


__all__ = [
    "Base",
    "FlightComplianceModel",
    "check_database",
    "create_engine",
    "create_session_factory",
]

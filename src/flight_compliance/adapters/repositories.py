"""SQLAlchemy repository implementations for flight-compliance.

Each repository holds the shared async_sessionmaker and opens one session
per call. The context resolver runs several lookups concurrently, and an
AsyncSession must not be used by more than one task at a time.

Errors are not caught here: callers decide whether a failure is absorbed
(identity resolution) or propagated (catalog reads).
"""

import uuid

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from flight_compliance.core.context import JurisdictionEntry
from flight_compliance.core.interfaces import (
    IAircraftRepository,
    IAirportRepository,
    IJurisdictionRepository,
    IOperatorRepository,
    IRegulationCatalog,
)
from flight_compliance.core.models import (
    Aircraft,
    Airport,
    Jurisdiction,
    Operator,
    Regulation,
    RegulationStatus,
)


class _SessionFactoryRepository:
    """Shared constructor for repositories bound to a session factory.

    Args:
        session_factory: Factory producing async SQLAlchemy sessions.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory


class JurisdictionRepository(_SessionFactoryRepository, IJurisdictionRepository):
    """Repository for Jurisdiction reference data."""

    async def list_all(self) -> list[JurisdictionEntry]:
        """Load every jurisdiction as a detached, immutable entry.

        Returns:
            All jurisdictions ordered by code.
        """
        async with self._session_factory() as session:
            result = await session.execute(
                select(Jurisdiction).order_by(Jurisdiction.code.asc())
            )
            return [JurisdictionEntry.from_model(j) for j in result.scalars().all()]


class OperatorRepository(_SessionFactoryRepository, IOperatorRepository):
    """Repository for Operator lookups."""

    async def list_by_name(self, name: str, limit: int = 1) -> list[Operator]:
        """List operators whose name equals ``name`` ignoring case.

        The comparison is exact, not a substring or pattern match. Results
        are ordered by creation time so "first match" is stable.

        Args:
            name: Trimmed operator name.
            limit: Maximum number of rows to return.

        Returns:
            Matching operators, oldest first.
        """
        async with self._session_factory() as session:
            result = await session.execute(
                select(Operator)
                .where(func.lower(Operator.name) == name.lower())
                .order_by(Operator.created_at.asc(), Operator.id.asc())
                .limit(limit)
            )
            return list(result.scalars().all())


class AirportRepository(_SessionFactoryRepository, IAirportRepository):
    """Repository for Airport lookups (country projection only)."""

    async def get_country(self, icao: str) -> str | None:
        """Return the recorded country text for an airport.

        Args:
            icao: Normalised ICAO code.

        Returns:
            The airport's country string, or None if the airport is unknown.
        """
        async with self._session_factory() as session:
            result = await session.execute(
                select(Airport.country).where(Airport.icao == icao)
            )
            return result.scalar_one_or_none()


class AircraftRepository(_SessionFactoryRepository, IAircraftRepository):
    """Repository for Aircraft persistence."""

    async def get_by_tail_number(self, tail_number: str) -> Aircraft | None:
        """Retrieve an aircraft by its normalised tail number.

        Args:
            tail_number: Normalised registration mark.

        Returns:
            The Aircraft or None if not recorded.
        """
        async with self._session_factory() as session:
            result = await session.execute(
                select(Aircraft).where(Aircraft.tail_number == tail_number)
            )
            return result.scalar_one_or_none()

    async def upsert_operator_link(
        self,
        tail_number: str,
        operator_id: uuid.UUID | None,
        operator_name: str | None,
        registry_country_code: str | None,
    ) -> Aircraft:
        """Record the latest operator and registry state for a tail number.

        Updates the existing record, or inserts a new one with empty
        manufacturer, model, MTOW and equipment.

        Args:
            tail_number: Normalised registration mark.
            operator_id: Resolved operator UUID, if any.
            operator_name: Operator name for display.
            registry_country_code: Registry state derived from the tail number.

        Returns:
            The inserted or updated Aircraft.
        """
        async with self._session_factory.begin() as session:
            result = await session.execute(
                select(Aircraft).where(Aircraft.tail_number == tail_number)
            )
            aircraft = result.scalar_one_or_none()
            if aircraft is None:
                aircraft = Aircraft(
                    tail_number=tail_number,
                    manufacturer=None,
                    model=None,
                    mtow_kg=None,
                    equipment={},
                )
                session.add(aircraft)
            aircraft.operator_id = operator_id
            aircraft.operator_name = operator_name
            aircraft.registry_country_code = registry_country_code
            await session.flush()
            return aircraft


class RegulationCatalogRepository(_SessionFactoryRepository, IRegulationCatalog):
    """Read-only access to the regulation catalog."""

    async def list_active(self) -> list[Regulation]:
        """Load every active regulation with its four child collections.

        Returns:
            Active regulations ordered by title, children eagerly loaded.
        """
        async with self._session_factory() as session:
            result = await session.execute(
                select(Regulation)
                .where(Regulation.status == RegulationStatus.ACTIVE)
                .options(
                    selectinload(Regulation.scopes),
                    selectinload(Regulation.jurisdictions),
                    selectinload(Regulation.operator_profiles),
                    selectinload(Regulation.aircraft_profiles),
                )
                .order_by(Regulation.title.asc())
            )
            return list(result.scalars().all())


__all__ = [
    "AircraftRepository",
    "AirportRepository",
    "JurisdictionRepository",
    "OperatorRepository",
    "RegulationCatalogRepository",
]

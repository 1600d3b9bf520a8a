"""Abstract interfaces (Protocol classes) for flight-compliance.

Defining interfaces as Protocol classes enables:
  - Dependency injection in services
  - Easy mocking in tests
  - Clear contracts between layers

Services depend on interfaces, not concrete implementations.
"""

import uuid
from typing import Protocol, runtime_checkable

from flight_compliance.core.context import JurisdictionEntry, RegistryDescription
from flight_compliance.core.models import Aircraft, Operator, Regulation


@runtime_checkable
class IJurisdictionRepository(Protocol):
    """Repository interface for Jurisdiction reference data."""

    async def list_all(self) -> list[JurisdictionEntry]: ...


@runtime_checkable
class IOperatorRepository(Protocol):
    """Repository interface for Operator."""

    async def list_by_name(self, name: str, limit: int) -> list[Operator]: ...


@runtime_checkable
class IAirportRepository(Protocol):
    """Repository interface for Airport."""

    async def get_country(self, icao: str) -> str | None: ...


@runtime_checkable
class IAircraftRepository(Protocol):
    """Repository interface for Aircraft."""

    async def get_by_tail_number(self, tail_number: str) -> Aircraft | None: ...

    async def upsert_operator_link(
        self,
        tail_number: str,
        operator_id: uuid.UUID | None,
        operator_name: str | None,
        registry_country_code: str | None,
    ) -> Aircraft: ...


@runtime_checkable
class IRegulationCatalog(Protocol):
    """Read access to the active regulation catalog with all child records."""

    async def list_active(self) -> list[Regulation]: ...


@runtime_checkable
class IJurisdictionDirectory(Protocol):
    """Free-text to jurisdiction code lookup."""

    async def resolve(self, raw_text: str | None) -> str | None: ...

    def invalidate(self) -> None: ...


@runtime_checkable
class IRegistryResolver(Protocol):
    """Tail number to registry state resolution."""

    def describe(self, tail_number: str | None) -> RegistryDescription: ...


__all__ = [
    "IAircraftRepository",
    "IAirportRepository",
    "IJurisdictionDirectory",
    "IJurisdictionRepository",
    "IOperatorRepository",
    "IRegistryResolver",
    "IRegulationCatalog",
]

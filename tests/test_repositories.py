"""Repository tests against a SQLite database.

Each test gets a fresh schema from the session_factory fixture in conftest.py.
"""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from flight_compliance.adapters.aircraft_registry import AircraftRegistryResolver
from flight_compliance.adapters.jurisdiction_directory import JurisdictionDirectory
from flight_compliance.adapters.repositories import (
    AircraftRepository,
    AirportRepository,
    JurisdictionRepository,
    OperatorRepository,
    RegulationCatalogRepository,
)
from flight_compliance.core.context import ComplianceQueryContext
from flight_compliance.core.models import (
    Airport,
    ComplianceScope,
    Jurisdiction,
    Operator,
    OperatorType,
    Regulation,
    RegulationAircraftProfile,
    RegulationJurisdiction,
    RegulationOperatorProfile,
    RegulationScope,
    RegulationStatus,
)
from flight_compliance.core.services import (
    ApplicabilityService,
    ContextResolverService,
    IdentityResolverService,
    wait_for_pending_writes,
)


async def _seed(session_factory: async_sessionmaker[AsyncSession], *rows: object) -> None:
    """Insert rows in one committed transaction."""
    async with session_factory.begin() as session:
        session.add_all(rows)


async def _seed_reference_data(session_factory: async_sessionmaker[AsyncSession]) -> None:
    await _seed(
        session_factory,
        Jurisdiction(code="US", name="United States", alt_names=["USA"]),
        Jurisdiction(code="GB", name="United Kingdom", alt_names=["UK", "Great Britain"]),
        Jurisdiction(code="FR", name="France", alt_names=[]),
        Operator(
            name="Acme Jets",
            jurisdiction_code="US",
            country_code="US",
            operator_type=OperatorType.CHARTER,
        ),
        Airport(icao="EGLL", name="London Heathrow", country="United Kingdom"),
        Airport(icao="LFPG", name="Paris Charles de Gaulle", country="France"),
    )


@pytest.mark.asyncio
async def test_jurisdiction_repository_lists_detached_entries(
    session_factory: async_sessionmaker[AsyncSession],
) -> None:
    """Jurisdictions load as immutable entries with their aliases."""
    await _seed_reference_data(session_factory)

    entries = await JurisdictionRepository(session_factory).list_all()

    assert [entry.code for entry in entries] == ["FR", "GB", "US"]
    assert entries[1].alt_names == ("UK", "Great Britain")


@pytest.mark.asyncio
async def test_operator_lookup_is_case_insensitive_and_exact(
    session_factory: async_sessionmaker[AsyncSession],
) -> None:
    """Names match ignoring case but never as substrings."""
    await _seed_reference_data(session_factory)
    repo = OperatorRepository(session_factory)

    found = await repo.list_by_name("ACME JETS")

    assert [operator.name for operator in found] == ["Acme Jets"]
    assert await repo.list_by_name("Acme") == []
    assert await repo.list_by_name("Acme Jets International") == []


@pytest.mark.asyncio
async def test_operator_lookup_respects_limit(
    session_factory: async_sessionmaker[AsyncSession],
) -> None:
    """Duplicate names return at most ``limit`` rows."""
    await _seed(
        session_factory,
        Operator(name="Skyways", jurisdiction_code="US"),
        Operator(name="SKYWAYS", jurisdiction_code="GB"),
    )
    repo = OperatorRepository(session_factory)

    assert len(await repo.list_by_name("skyways", limit=1)) == 1
    assert len(await repo.list_by_name("skyways", limit=2)) == 2


@pytest.mark.asyncio
async def test_airport_country_projection(
    session_factory: async_sessionmaker[AsyncSession],
) -> None:
    """The airport's recorded country text is returned, None when unknown."""
    await _seed_reference_data(session_factory)
    repo = AirportRepository(session_factory)

    assert await repo.get_country("EGLL") == "United Kingdom"
    assert await repo.get_country("KJFK") is None


@pytest.mark.asyncio
async def test_aircraft_upsert_inserts_then_updates(
    session_factory: async_sessionmaker[AsyncSession],
) -> None:
    """The first upsert inserts with empty placeholders; the next one updates."""
    repo = AircraftRepository(session_factory)

    await repo.upsert_operator_link(
        tail_number="N123AB",
        operator_id=None,
        operator_name="Acme Jets",
        registry_country_code="US",
    )
    inserted = await repo.get_by_tail_number("N123AB")
    assert inserted is not None
    assert inserted.operator_name == "Acme Jets"
    assert inserted.manufacturer is None
    assert inserted.mtow_kg is None
    assert inserted.equipment == {}

    await repo.upsert_operator_link(
        tail_number="N123AB",
        operator_id=None,
        operator_name="Beta Charter",
        registry_country_code="US",
    )
    updated = await repo.get_by_tail_number("N123AB")
    assert updated is not None
    assert updated.id == inserted.id
    assert updated.operator_name == "Beta Charter"


@pytest.mark.asyncio
async def test_catalog_loads_active_regulations_with_children(
    session_factory: async_sessionmaker[AsyncSession],
) -> None:
    """Only active regulations are returned, with all four child sets loaded."""
    await _seed(
        session_factory,
        Regulation(
            title="Active",
            status=RegulationStatus.ACTIVE,
            scopes=[RegulationScope(scope=ComplianceScope.ARRIVAL, trigger_notes="On arrival")],
            jurisdictions=[
                RegulationJurisdiction(scope=ComplianceScope.ARRIVAL, jurisdiction_code="FR")
            ],
            operator_profiles=[RegulationOperatorProfile(operator_type=OperatorType.CHARTER)],
            aircraft_profiles=[
                RegulationAircraftProfile(mtow_min_kg=5700, required_equipment=["TCAS"])
            ],
        ),
        Regulation(
            title="Retired",
            status=RegulationStatus.INACTIVE,
            scopes=[RegulationScope(scope=ComplianceScope.ARRIVAL)],
        ),
    )

    regulations = await RegulationCatalogRepository(session_factory).list_active()

    assert [regulation.title for regulation in regulations] == ["Active"]
    regulation = regulations[0]
    assert regulation.scopes[0].scope == ComplianceScope.ARRIVAL
    assert regulation.scopes[0].trigger_notes == "On arrival"
    assert regulation.jurisdictions[0].jurisdiction_code == "FR"
    assert regulation.operator_profiles[0].operator_type == OperatorType.CHARTER
    assert regulation.aircraft_profiles[0].required_equipment == ["TCAS"]


@pytest.mark.asyncio
async def test_end_to_end_against_database(
    session_factory: async_sessionmaker[AsyncSession],
) -> None:
    """Context derivation and matching over real repositories."""
    await _seed_reference_data(session_factory)
    await _seed(
        session_factory,
        Regulation(
            title="A",
            scopes=[RegulationScope(scope=ComplianceScope.ARRIVAL)],
            jurisdictions=[
                RegulationJurisdiction(scope=ComplianceScope.ARRIVAL, jurisdiction_code="FR")
            ],
        ),
        Regulation(
            title="B",
            scopes=[RegulationScope(scope=ComplianceScope.DEPARTURE)],
        ),
    )
    identity = IdentityResolverService(
        operator_repo=OperatorRepository(session_factory),
        airport_repo=AirportRepository(session_factory),
        directory=JurisdictionDirectory(JurisdictionRepository(session_factory)),
        registry_resolver=AircraftRegistryResolver(),
    )
    resolver = ContextResolverService(
        identity=identity, aircraft_repo=AircraftRepository(session_factory)
    )

    flight = await resolver.build_flight_compliance_context(
        operator_name="acme jets",
        tail_number="N123AB",
        origin_icao="EGLL",
        destination_icao="LFPG",
        persist_aircraft=True,
    )
    grouped = await ApplicabilityService(
        RegulationCatalogRepository(session_factory)
    ).fetch_applicable_regulations(
        ComplianceQueryContext().with_derived(flight),
        [ComplianceScope.ARRIVAL, ComplianceScope.DEPARTURE],
    )

    assert flight.operator_country_code == "US"
    assert flight.origin_country_code == "GB"
    assert flight.destination_country_code == "FR"
    assert [r.title for r in grouped[ComplianceScope.ARRIVAL]] == ["A"]
    assert [r.title for r in grouped[ComplianceScope.DEPARTURE]] == ["B"]

    await wait_for_pending_writes()
    aircraft = await AircraftRepository(session_factory).get_by_tail_number("N123AB")
    assert aircraft is not None
    assert aircraft.operator_name == "Acme Jets"
    assert aircraft.registry_country_code == "US"
    assert str(aircraft.operator_id) == flight.operator_id

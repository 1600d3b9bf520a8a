"""API router for flight-compliance.

All endpoints are registered here and included in main.py under /api/v1.
Routes delegate all logic to service layer, no business logic in routes.

Endpoints:
  GET    /compliance/regulations               Applicable regulations by scope
  POST   /compliance/context                   Derive a flight's compliance context
  GET    /compliance/jurisdictions/resolve     Resolve free text to a jurisdiction code
"""

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from flight_compliance.adapters.aircraft_registry import AircraftRegistryResolver
from flight_compliance.adapters.repositories import (
    AircraftRepository,
    AirportRepository,
    OperatorRepository,
    RegulationCatalogRepository,
)
from flight_compliance.api.schemas import (
    ApplicableRegulation,
    ApplicableRegulationsResponse,
    FlightContextRequest,
    FlightContextResponse,
    JurisdictionResolveResponse,
    ResolvedQueryContext,
)
from flight_compliance.core.context import ComplianceQueryContext
from flight_compliance.core.interfaces import IJurisdictionDirectory
from flight_compliance.core.models import ALL_SCOPES, ComplianceScope, Regulation
from flight_compliance.core.services import (
    ApplicabilityService,
    ContextResolverService,
    IdentityResolverService,
    scope_notes,
)
from flight_compliance.errors import RegulationsUnavailableError
from flight_compliance.observability import get_logger
from flight_compliance.settings import Settings

logger = get_logger(__name__)

router = APIRouter(tags=["compliance"])

_VALID_SCOPES = {scope.value for scope in ComplianceScope}


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


def get_settings(request: Request) -> Settings:
    """Return the settings the application was started with."""
    return request.app.state.settings


def get_session_factory(request: Request) -> async_sessionmaker[AsyncSession]:
    """Return the application's session factory."""
    return request.app.state.session_factory


def get_jurisdiction_directory(request: Request) -> IJurisdictionDirectory:
    """Return the process-wide jurisdiction directory."""
    return request.app.state.jurisdiction_directory


def get_identity_resolver(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    directory: IJurisdictionDirectory = Depends(get_jurisdiction_directory),
    settings: Settings = Depends(get_settings),
) -> IdentityResolverService:
    """Build the identity resolver for a request."""
    return IdentityResolverService(
        operator_repo=OperatorRepository(session_factory),
        airport_repo=AirportRepository(session_factory),
        directory=directory,
        registry_resolver=AircraftRegistryResolver(),
        strict_operator_match=settings.operator_match_mode == "strict",
    )


def get_context_resolver(
    identity: IdentityResolverService = Depends(get_identity_resolver),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    settings: Settings = Depends(get_settings),
) -> ContextResolverService:
    """Build the context resolver for a request."""
    return ContextResolverService(
        identity=identity,
        aircraft_repo=AircraftRepository(session_factory),
        default_operator_type=settings.default_operator_type,
    )


def get_applicability_service(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    settings: Settings = Depends(get_settings),
) -> ApplicabilityService:
    """Build the applicability engine for a request."""
    return ApplicabilityService(
        catalog=RegulationCatalogRepository(session_factory),
        default_operator_type=settings.default_operator_type,
    )


# ---------------------------------------------------------------------------
# Query parsing
# ---------------------------------------------------------------------------


def parse_scopes(value: str | None) -> list[ComplianceScope]:
    """Parse a comma-separated scope list; unknown scopes are dropped.

    An absent value means every scope.
    """
    if not value:
        return list(ALL_SCOPES)
    scopes: list[ComplianceScope] = []
    for raw in value.split(","):
        item = raw.strip()
        if item in _VALID_SCOPES and ComplianceScope(item) not in scopes:
            scopes.append(ComplianceScope(item))
    return scopes


def parse_csv(value: str | None) -> tuple[str, ...]:
    """Split a comma-separated list, dropping blanks."""
    if not value:
        return ()
    return tuple(item.strip() for item in value.split(",") if item.strip())


def _serialize(regulation: Regulation, scope: ComplianceScope) -> ApplicableRegulation:
    return ApplicableRegulation(
        id=str(regulation.id),
        title=regulation.title,
        regulator=regulation.regulator,
        reference=regulation.reference,
        summary=regulation.summary,
        compliance_action=regulation.compliance_action,
        risk_level=regulation.risk_level,
        citation_url=regulation.citation_url,
        scope_notes=scope_notes(regulation, scope),
    )


# ---------------------------------------------------------------------------
# Regulations
# ---------------------------------------------------------------------------


@router.get(
    "/compliance/regulations",
    response_model=ApplicableRegulationsResponse,
    summary="List applicable regulations",
    description=(
        "Return the active regulations that apply to a flight, grouped by scope. "
        "Missing country codes are derived from operator, tail number and airports. "
        "Answers 503 if the regulation catalog cannot be read."
    ),
)
async def list_applicable_regulations(
    scopes: str | None = Query(default=None, description="Comma-separated scopes"),
    destination_country: str | None = Query(default=None, alias="destinationCountry"),
    origin_country: str | None = Query(default=None, alias="originCountry"),
    operator_country: str | None = Query(default=None, alias="operatorCountry"),
    registry_country: str | None = Query(default=None, alias="registryCountry"),
    operator_type: str | None = Query(default=None, alias="operatorType"),
    mtow_kg: float | None = Query(default=None, alias="mtowKg", ge=0),
    equipment: str | None = Query(default=None, description="Comma-separated equipment codes"),
    aircraft_class: str | None = Query(default=None, alias="aircraftClass"),
    operator: str | None = Query(default=None, description="Operator name"),
    tail_number: str | None = Query(default=None, alias="tailNumber"),
    origin_icao: str | None = Query(default=None, alias="originIcao"),
    destination_icao: str | None = Query(default=None, alias="destinationIcao"),
    context_resolver: ContextResolverService = Depends(get_context_resolver),
    applicability: ApplicabilityService = Depends(get_applicability_service),
) -> ApplicableRegulationsResponse:
    """List the regulations applicable to a flight.

    Args:
        scopes: Scopes to evaluate; unknown values are ignored.
        destination_country: Arrival country override.
        origin_country: Departure country override.
        operator_country: State-of-operator override.
        registry_country: State-of-registry override.
        operator_type: Operator type override.
        mtow_kg: Aircraft maximum take-off weight.
        equipment: Aircraft equipment codes.
        aircraft_class: Aircraft class.
        operator: Operator name for derivation.
        tail_number: Tail number for derivation.
        origin_icao: Departure airport for derivation.
        destination_icao: Arrival airport for derivation.
        context_resolver: Context derivation service.
        applicability: Applicability engine.

    Returns:
        Applicable regulations keyed by every requested scope.
    """
    requested_scopes = parse_scopes(scopes)
    query = ComplianceQueryContext(
        destination_country_code=destination_country or None,
        origin_country_code=origin_country or None,
        operator_country_code=operator_country or None,
        registry_country_code=registry_country or None,
        operator_type=operator_type or None,
        aircraft_class=aircraft_class or None,
        aircraft_mtow_kg=mtow_kg,
        aircraft_equipment=parse_csv(equipment),
    )

    derived_payload = None
    has_identity = any((operator, tail_number, origin_icao, destination_icao))
    if not query.is_complete or has_identity:
        derived = await context_resolver.build_flight_compliance_context(
            operator_name=operator,
            tail_number=tail_number,
            origin_icao=origin_icao,
            destination_icao=destination_icao,
            persist_aircraft=False,
        )
        query = query.with_derived(derived)
        derived_payload = derived.context_payload

    try:
        grouped = await applicability.fetch_applicable_regulations(query, requested_scopes)
    except (SQLAlchemyError, OSError) as exc:
        logger.error(
            "Regulation catalog fetch failed",
            error=str(exc),
            error_type=type(exc).__name__,
        )
        raise RegulationsUnavailableError(
            "Compliance regulations are temporarily unavailable"
        ) from exc

    return ApplicableRegulationsResponse(
        scopes=[scope.value for scope in requested_scopes],
        context=ResolvedQueryContext(
            destination_country_code=query.destination_country_code,
            origin_country_code=query.origin_country_code,
            operator_country_code=query.operator_country_code,
            registry_country_code=query.registry_country_code,
            operator_type=query.operator_type,
        ),
        derived=derived_payload,
        regulations={
            scope.value: [_serialize(regulation, scope) for regulation in grouped[scope]]
            for scope in requested_scopes
        },
    )


# ---------------------------------------------------------------------------
# Flight Context
# ---------------------------------------------------------------------------


@router.post(
    "/compliance/context",
    response_model=FlightContextResponse,
    summary="Derive a flight's compliance context",
    description=(
        "Resolve operator, registry state and airport countries for a flight. "
        "By default the aircraft's latest operator is recorded."
    ),
)
async def derive_flight_context(
    request: FlightContextRequest,
    context_resolver: ContextResolverService = Depends(get_context_resolver),
) -> FlightContextResponse:
    """Derive the jurisdictional context of a flight.

    Args:
        request: Flight identifiers.
        context_resolver: Context derivation service.

    Returns:
        The resolved flight compliance context.
    """
    context = await context_resolver.build_flight_compliance_context(
        operator_name=request.operator_name,
        tail_number=request.tail_number,
        origin_icao=request.origin_icao,
        destination_icao=request.destination_icao,
        persist_aircraft=request.persist_aircraft,
    )
    return FlightContextResponse.from_context(context)


# ---------------------------------------------------------------------------
# Jurisdictions
# ---------------------------------------------------------------------------


@router.get(
    "/compliance/jurisdictions/resolve",
    response_model=JurisdictionResolveResponse,
    summary="Resolve a jurisdiction",
    description="Resolve a country name, code or alias to its canonical jurisdiction code.",
)
async def resolve_jurisdiction(
    q: str = Query(description="Country name, code or alias"),
    directory: IJurisdictionDirectory = Depends(get_jurisdiction_directory),
) -> JurisdictionResolveResponse:
    """Resolve free text to a jurisdiction code.

    Args:
        q: Text to resolve.
        directory: Jurisdiction directory.

    Returns:
        The query and its resolved code (null if unknown).
    """
    return JurisdictionResolveResponse(query=q, code=await directory.resolve(q))

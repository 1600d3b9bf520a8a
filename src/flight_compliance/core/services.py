"""Business logic services for flight-compliance.

Services contain all domain logic. They:
  - Accept dependencies via constructor injection (repositories, resolvers)
  - Absorb identity-resolution failures as unknown (None) values
  - Let regulation catalog failures propagate unmodified
  - Are framework-agnostic (no FastAPI, no direct DB access)

Three services compose the request path:
  IdentityResolverService -> ContextResolverService -> ApplicabilityService
"""

import asyncio
import enum
from collections.abc import Awaitable, Iterable, Sequence
from typing import Any, TypeVar

from flight_compliance.core.context import (
    ComplianceQueryContext,
    FlightComplianceContext,
    RegistryDescription,
)
from flight_compliance.core.interfaces import (
    IAircraftRepository,
    IAirportRepository,
    IJurisdictionDirectory,
    IOperatorRepository,
    IRegistryResolver,
    IRegulationCatalog,
)
from flight_compliance.core.models import (
    ALL_SCOPES,
    ComplianceScope,
    Operator,
    OperatorType,
    Regulation,
    RegulationAircraftProfile,
    RegulationJurisdiction,
    RegulationOperatorProfile,
)
from flight_compliance.errors import AmbiguousOperatorError
from flight_compliance.observability import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

GLOBAL_JURISDICTION_CODE = "GLOBAL"
DEFAULT_OPERATOR_TYPE = OperatorType.CHARTER.value

# Strong references to scheduled aircraft writes until they finish
_pending_writes: set[asyncio.Task[None]] = set()


def _normalize(text: str | None) -> str | None:
    if not text:
        return None
    trimmed = text.strip()
    return trimmed or None


def _value(member: Any) -> Any:
    return member.value if isinstance(member, enum.Enum) else member


async def wait_for_pending_writes() -> None:
    """Wait for aircraft writes scheduled on the running event loop."""
    loop = asyncio.get_running_loop()
    pending = [task for task in _pending_writes if task.get_loop() is loop]
    if pending:
        await asyncio.gather(*pending)


# ---------------------------------------------------------------------------
# Identity resolution
# ---------------------------------------------------------------------------


class IdentityResolverService:
    """Resolves operators, registry states and airport countries.

    Args:
        operator_repo: Operator lookups.
        airport_repo: Airport country lookups.
        directory: Jurisdiction directory for free-text country resolution.
        registry_resolver: Tail number to registry state resolver.
        strict_operator_match: Reject operator names shared by several
            operators instead of picking the first match.
    """

    def __init__(
        self,
        operator_repo: IOperatorRepository,
        airport_repo: IAirportRepository,
        directory: IJurisdictionDirectory,
        registry_resolver: IRegistryResolver,
        strict_operator_match: bool = False,
    ) -> None:
        self._operator_repo = operator_repo
        self._airport_repo = airport_repo
        self._directory = directory
        self._registry_resolver = registry_resolver
        self._strict_operator_match = strict_operator_match

    async def find_operator_by_name(self, name: str | None) -> Operator | None:
        """Find an operator by case-insensitive exact name.

        Never creates operators. In lenient mode the oldest match wins.

        Args:
            name: Operator display name.

        Returns:
            The matching Operator, or None.

        Raises:
            AmbiguousOperatorError: In strict mode, if more than one operator
                has this name.
        """
        normalized = _normalize(name)
        if normalized is None:
            return None

        limit = 2 if self._strict_operator_match else 1
        matches = await self._operator_repo.list_by_name(normalized, limit=limit)
        if not matches:
            return None
        if self._strict_operator_match and len(matches) > 1:
            raise AmbiguousOperatorError(normalized, len(matches))
        return matches[0]

    def describe_registry(self, tail_number: str | None) -> RegistryDescription:
        """Normalise a tail number and derive its registry state."""
        return self._registry_resolver.describe(tail_number)

    async def get_airport_country_code(self, icao: str | None) -> str | None:
        """Resolve an airport's jurisdiction code from its recorded country.

        Args:
            icao: Airport ICAO code.

        Returns:
            The jurisdiction code, or None if the airport or its country is unknown.
        """
        normalized = _normalize(icao)
        if normalized is None:
            return None

        country = await self._airport_repo.get_country(normalized.upper())
        if not country:
            return None
        return await self._directory.resolve(country)


# ---------------------------------------------------------------------------
# Context resolution
# ---------------------------------------------------------------------------


class ContextResolverService:
    """Builds a FlightComplianceContext from partial flight identifiers.

    Lookups that do not depend on each other run concurrently. Any lookup
    failure is logged and treated as an unknown value. The optional aircraft
    upsert runs as a background task; it is logged on failure and never
    affects or delays the returned context.

    Args:
        identity: Identity resolver for operators, registries and airports.
        aircraft_repo: Aircraft persistence for the optional upsert.
        default_operator_type: Operator type assumed when none is known.
    """

    def __init__(
        self,
        identity: IdentityResolverService,
        aircraft_repo: IAircraftRepository,
        default_operator_type: str = DEFAULT_OPERATOR_TYPE,
    ) -> None:
        self._identity = identity
        self._aircraft_repo = aircraft_repo
        self._default_operator_type = default_operator_type

    async def _absorb(self, lookup: str, awaitable: Awaitable[T]) -> T | None:
        try:
            return await awaitable
        except AmbiguousOperatorError as exc:
            logger.warning(
                "Operator name is ambiguous; treating operator as unresolved",
                lookup=lookup,
                operator_name=exc.name,
                match_count=exc.match_count,
            )
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "Lookup failed; treating value as unresolved",
                lookup=lookup,
                error=str(exc),
                error_type=type(exc).__name__,
            )
        return None

    def _describe_registry(self, tail_number: str | None) -> RegistryDescription:
        try:
            return self._identity.describe_registry(tail_number)
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "Lookup failed; treating value as unresolved",
                lookup="registry",
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return RegistryDescription()

    async def _persist_aircraft(
        self,
        tail: str,
        registry_country_code: str | None,
        operator: Operator | None,
        operator_name: str | None,
    ) -> None:
        try:
            await self._aircraft_repo.upsert_operator_link(
                tail_number=tail,
                operator_id=operator.id if operator else None,
                operator_name=operator.name if operator else operator_name,
                registry_country_code=registry_country_code,
            )
        except Exception as exc:  # noqa: BLE001
            logger.error(
                "Aircraft upsert failed; context is unaffected",
                tail_number=tail,
                error=str(exc),
                error_type=type(exc).__name__,
            )
        else:
            logger.debug("Aircraft record upserted", tail_number=tail)

    async def build_flight_compliance_context(
        self,
        operator_name: str | None = None,
        tail_number: str | None = None,
        origin_icao: str | None = None,
        destination_icao: str | None = None,
        persist_aircraft: bool = True,
    ) -> FlightComplianceContext:
        """Resolve the jurisdictional facts of a flight.

        Args:
            operator_name: Operator display name.
            tail_number: Aircraft registration.
            origin_icao: Departure airport ICAO code.
            destination_icao: Arrival airport ICAO code.
            persist_aircraft: Schedule a write of the tail number's operator and
                registry state; see :func:`wait_for_pending_writes`.

        Returns:
            The resolved context with an audit snapshot in ``context_payload``.
        """
        registry = self._describe_registry(tail_number)

        operator, origin_country_code, destination_country_code = await asyncio.gather(
            self._absorb("operator", self._identity.find_operator_by_name(operator_name)),
            self._absorb("origin_airport", self._identity.get_airport_country_code(origin_icao)),
            self._absorb(
                "destination_airport",
                self._identity.get_airport_country_code(destination_icao),
            ),
        )

        normalized_operator_name = _normalize(operator_name)
        operator_country_code = (
            (operator.jurisdiction_code or operator.country_code) if operator else None
        )
        operator_type = (
            _value(operator.operator_type)
            if operator is not None and operator.operator_type
            else self._default_operator_type
        )
        operator_id = str(operator.id) if operator is not None else None

        if registry.tail and persist_aircraft:
            task = asyncio.create_task(
                self._persist_aircraft(
                    registry.tail,
                    registry.registry_country_code,
                    operator,
                    normalized_operator_name,
                )
            )
            _pending_writes.add(task)
            task.add_done_callback(_pending_writes.discard)

        context_payload: dict[str, Any] = {
            "operatorName": normalized_operator_name,
            "operatorId": operator_id,
            "operatorCountryCode": operator_country_code,
            "operatorType": operator_type,
            "tailNumber": registry.tail,
            "aircraftRegistryCode": registry.registry_country_code,
            "originIcao": _normalize(origin_icao),
            "destinationIcao": _normalize(destination_icao),
            "originCountryCode": origin_country_code,
            "destinationCountryCode": destination_country_code,
        }

        logger.info(
            "Flight compliance context resolved",
            operator_id=operator_id,
            operator_country_code=operator_country_code,
            registry_country_code=registry.registry_country_code,
            origin_country_code=origin_country_code,
            destination_country_code=destination_country_code,
        )

        return FlightComplianceContext(
            operator_id=operator_id,
            operator_country_code=operator_country_code,
            operator_type=operator_type,
            aircraft_tail_number=registry.tail,
            aircraft_registry_code=registry.registry_country_code,
            origin_country_code=origin_country_code,
            destination_country_code=destination_country_code,
            context_payload=context_payload,
        )


# ---------------------------------------------------------------------------
# Applicability matching
# ---------------------------------------------------------------------------


def allowed_jurisdiction_codes(
    scope: ComplianceScope, context: ComplianceQueryContext
) -> set[str]:
    """GLOBAL plus the context's country code for the scope, if known."""
    codes = {GLOBAL_JURISDICTION_CODE}
    country_code = context.country_code_for(scope)
    if country_code:
        codes.add(country_code.upper())
    return codes


def jurisdiction_matches(
    scope: ComplianceScope,
    jurisdictions: Iterable[RegulationJurisdiction],
    context: ComplianceQueryContext,
) -> bool:
    """Check a regulation's jurisdiction rows for one scope.

    No rows for the scope means the regulation is unrestricted there. A row
    with a null code never matches.
    """
    entries = [entry for entry in jurisdictions if entry.scope == scope]
    if not entries:
        return True
    allowed = allowed_jurisdiction_codes(scope, context)
    return any(
        entry.jurisdiction_code is not None
        and entry.jurisdiction_code.upper() in allowed
        for entry in entries
    )


def operator_matches(
    profiles: Sequence[RegulationOperatorProfile],
    operator_type: str | None,
    default_operator_type: str = DEFAULT_OPERATOR_TYPE,
) -> bool:
    """No profiles match every operator; otherwise one must name the type."""
    if not profiles:
        return True
    current = _value(operator_type) or default_operator_type
    return any(_value(profile.operator_type) == current for profile in profiles)


def _aircraft_profile_matches(
    profile: RegulationAircraftProfile, context: ComplianceQueryContext
) -> bool:
    if (
        profile.aircraft_class
        and context.aircraft_class
        and profile.aircraft_class != context.aircraft_class
    ):
        return False

    # An unknown MTOW never disqualifies a profile
    mtow = context.aircraft_mtow_kg
    if mtow is not None:
        if profile.mtow_min_kg is not None and mtow < profile.mtow_min_kg:
            return False
        if profile.mtow_max_kg is not None and mtow > profile.mtow_max_kg:
            return False

    required = profile.required_equipment or []
    equipment = set(context.aircraft_equipment)
    return all(item in equipment for item in required)


def aircraft_matches(
    profiles: Sequence[RegulationAircraftProfile], context: ComplianceQueryContext
) -> bool:
    """No profiles match every aircraft; otherwise one profile must fit."""
    if not profiles:
        return True
    return any(_aircraft_profile_matches(profile, context) for profile in profiles)


def scope_notes(regulation: Regulation, scope: ComplianceScope) -> list[str]:
    """Collect the non-empty trigger notes recorded for a regulation under a scope."""
    notes: list[str] = []
    rows: list[Any] = [*regulation.scopes, *regulation.jurisdictions]
    for row in rows:
        if row.scope == scope and row.trigger_notes and row.trigger_notes not in notes:
            notes.append(row.trigger_notes)
    return notes


class ApplicabilityService:
    """Selects the regulations that apply to a flight, grouped by scope.

    The catalog is fetched on every call; caching, if any, belongs to the
    caller. A catalog failure propagates unmodified.

    Args:
        catalog: Source of active regulations with their child records.
        default_operator_type: Operator type assumed when the context has none.
    """

    def __init__(
        self,
        catalog: IRegulationCatalog,
        default_operator_type: str = DEFAULT_OPERATOR_TYPE,
    ) -> None:
        self._catalog = catalog
        self._default_operator_type = default_operator_type

    def regulation_applies(
        self,
        regulation: Regulation,
        scope: ComplianceScope,
        context: ComplianceQueryContext,
    ) -> bool:
        """Return True if the regulation declares the scope and passes every filter.

        Args:
            regulation: Catalog entry with its child records loaded.
            scope: Scope being evaluated.
            context: Query context with uppercased country codes.
        """
        if not any(entry.scope == scope for entry in regulation.scopes):
            return False
        if not jurisdiction_matches(scope, regulation.jurisdictions, context):
            return False
        if not operator_matches(
            regulation.operator_profiles,
            context.operator_type,
            self._default_operator_type,
        ):
            return False
        return aircraft_matches(regulation.aircraft_profiles, context)

    async def fetch_applicable_regulations(
        self,
        context: ComplianceQueryContext,
        scopes: Sequence[ComplianceScope | str] = ALL_SCOPES,
    ) -> dict[ComplianceScope, list[Regulation]]:
        """Group the applicable active regulations by requested scope.

        Every requested scope is a key of the result, possibly with an
        empty list. A regulation may appear under several scopes.

        Args:
            context: Flight context to match against.
            scopes: Scopes to evaluate.

        Returns:
            Mapping of scope to applicable regulations, in catalog order.
        """
        requested = [ComplianceScope(scope) for scope in scopes]
        regulations = await self._catalog.list_active()
        normalized = context.normalized()

        grouped: dict[ComplianceScope, list[Regulation]] = {
            scope: [] for scope in requested
        }
        for regulation in regulations:
            for scope in grouped:
                if self.regulation_applies(regulation, scope, normalized):
                    grouped[scope].append(regulation)

        logger.info(
            "Applicable regulations resolved",
            catalog_size=len(regulations),
            counts={scope.value: len(items) for scope, items in grouped.items()},
        )
        return grouped


__all__ = [
    "ApplicabilityService",
    "ContextResolverService",
    "GLOBAL_JURISDICTION_CODE",
    "IdentityResolverService",
    "aircraft_matches",
    "allowed_jurisdiction_codes",
    "jurisdiction_matches",
    "operator_matches",
    "scope_notes",
    "wait_for_pending_writes",
]

"""Value objects passed between resolvers and the applicability engine.

None of these are persisted. A None field always means "unknown".
"""

from dataclasses import dataclass, field, replace
from typing import Any

from flight_compliance.core.models import ComplianceScope, Jurisdiction


@dataclass(frozen=True)
class JurisdictionEntry:
    """Detached, immutable copy of a jurisdiction row held by the directory cache."""

    code: str
    name: str
    alt_names: tuple[str, ...] = ()

    @classmethod
    def from_model(cls, jurisdiction: Jurisdiction) -> "JurisdictionEntry":
        return cls(
            code=jurisdiction.code,
            name=jurisdiction.name,
            alt_names=tuple(jurisdiction.alt_names or ()),
        )

    def matches(self, target: str) -> bool:
        """Case-insensitive match against name, code and every alias.

        Args:
            target: Lowercased, trimmed text.
        """
        if self.name.lower() == target or self.code.lower() == target:
            return True
        return any(alias.lower() == target for alias in self.alt_names)


@dataclass(frozen=True)
class RegistryDescription:
    """Normalised tail number and the registry state derived from its prefix."""

    tail: str | None = None
    registry_country_code: str | None = None


@dataclass(frozen=True)
class FlightComplianceContext:
    """Jurisdictional facts resolved for one flight."""

    operator_id: str | None = None
    operator_country_code: str | None = None
    operator_type: str | None = None
    aircraft_tail_number: str | None = None
    aircraft_registry_code: str | None = None
    origin_country_code: str | None = None
    destination_country_code: str | None = None
    context_payload: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ComplianceQueryContext:
    """Everything the applicability engine matches a regulation against."""

    destination_country_code: str | None = None
    origin_country_code: str | None = None
    operator_country_code: str | None = None
    registry_country_code: str | None = None
    operator_type: str | None = None
    aircraft_class: str | None = None
    aircraft_mtow_kg: float | None = None
    aircraft_equipment: tuple[str, ...] = ()

    @property
    def is_complete(self) -> bool:
        """True when all four country codes are known."""
        return all(
            (
                self.destination_country_code,
                self.origin_country_code,
                self.operator_country_code,
                self.registry_country_code,
            )
        )

    def country_code_for(self, scope: ComplianceScope) -> str | None:
        """Return the single country code relevant to a scope."""
        if scope == ComplianceScope.ARRIVAL:
            return self.destination_country_code
        if scope == ComplianceScope.DEPARTURE:
            return self.origin_country_code
        if scope == ComplianceScope.STATE_OF_OPERATOR:
            return self.operator_country_code
        if scope == ComplianceScope.STATE_OF_REGISTRY:
            return self.registry_country_code
        return None

    def normalized(self) -> "ComplianceQueryContext":
        """Return a copy with every country code uppercased."""

        def _upper(code: str | None) -> str | None:
            return code.upper() if code else None

        return replace(
            self,
            destination_country_code=_upper(self.destination_country_code),
            origin_country_code=_upper(self.origin_country_code),
            operator_country_code=_upper(self.operator_country_code),
            registry_country_code=_upper(self.registry_country_code),
        )

    def with_derived(self, derived: FlightComplianceContext) -> "ComplianceQueryContext":
        """Fill fields this context leaves unknown from a derived flight context.

        Values already present take precedence over derived ones.
        """
        return replace(
            self,
            destination_country_code=(
                self.destination_country_code or derived.destination_country_code
            ),
            origin_country_code=self.origin_country_code or derived.origin_country_code,
            operator_country_code=(
                self.operator_country_code or derived.operator_country_code
            ),
            registry_country_code=(
                self.registry_country_code or derived.aircraft_registry_code
            ),
            operator_type=self.operator_type or derived.operator_type,
        )

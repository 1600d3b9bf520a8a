"""Pydantic request and response schemas for flight-compliance API.

All API inputs and outputs use Pydantic models, never raw dicts.
Schemas are grouped by resource domain.
"""

from typing import Any

from pydantic import BaseModel, Field

from flight_compliance.core.context import FlightComplianceContext


# ---------------------------------------------------------------------------
# Regulation Applicability Schemas
# ---------------------------------------------------------------------------


class ApplicableRegulation(BaseModel):
    """A regulation trimmed to the fields callers act on."""

    id: str = Field(description="Regulation identifier")
    title: str = Field(description="Regulation title")
    regulator: str | None = Field(default=None, description="Issuing authority")
    reference: str | None = Field(default=None, description="Citation string")
    summary: str | None = Field(default=None, description="Plain-language summary")
    compliance_action: str | None = Field(
        default=None, description="What the operator must do to comply"
    )
    risk_level: str | None = Field(default=None, description="Risk level if not complied with")
    citation_url: str | None = Field(default=None, description="Link to the source text")
    scope_notes: list[str] = Field(
        default_factory=list,
        description="Trigger notes recorded for the matched scope",
    )


class ResolvedQueryContext(BaseModel):
    """Country codes and operator type the regulations were matched against."""

    destination_country_code: str | None = Field(
        default=None, serialization_alias="destinationCountryCode"
    )
    origin_country_code: str | None = Field(
        default=None, serialization_alias="originCountryCode"
    )
    operator_country_code: str | None = Field(
        default=None, serialization_alias="operatorCountryCode"
    )
    registry_country_code: str | None = Field(
        default=None, serialization_alias="registryCountryCode"
    )
    operator_type: str | None = Field(default=None, serialization_alias="operatorType")


class ApplicableRegulationsResponse(BaseModel):
    """Applicable regulations grouped by scope."""

    scopes: list[str] = Field(description="Scopes evaluated, in request order")
    context: ResolvedQueryContext = Field(description="Context used for matching")
    derived: dict[str, Any] | None = Field(
        default=None,
        description="Snapshot of the derived flight context, if derivation ran",
    )
    regulations: dict[str, list[ApplicableRegulation]] = Field(
        description="Applicable regulations keyed by scope; every requested scope is present"
    )


# ---------------------------------------------------------------------------
# Flight Context Schemas
# ---------------------------------------------------------------------------


class FlightContextRequest(BaseModel):
    """Request body for deriving a flight's compliance context."""

    operator_name: str | None = Field(default=None, description="Operator display name")
    tail_number: str | None = Field(
        default=None,
        max_length=20,
        description="Aircraft registration (e.g., N123AB, G-ABCD)",
    )
    origin_icao: str | None = Field(
        default=None, max_length=4, description="Departure airport ICAO code"
    )
    destination_icao: str | None = Field(
        default=None, max_length=4, description="Arrival airport ICAO code"
    )
    persist_aircraft: bool = Field(
        default=True,
        description="Record the aircraft's latest operator and registry state",
    )


class FlightContextResponse(BaseModel):
    """Resolved jurisdictional facts of a flight."""

    operator_id: str | None = Field(default=None)
    operator_country_code: str | None = Field(default=None)
    operator_type: str | None = Field(default=None)
    aircraft_tail_number: str | None = Field(default=None)
    aircraft_registry_code: str | None = Field(default=None)
    origin_country_code: str | None = Field(default=None)
    destination_country_code: str | None = Field(default=None)
    context_payload: dict[str, Any] = Field(
        default_factory=dict,
        description="Resolved fields and trimmed raw inputs, for audit display",
    )

    @classmethod
    def from_context(cls, context: FlightComplianceContext) -> "FlightContextResponse":
        return cls(
            operator_id=context.operator_id,
            operator_country_code=context.operator_country_code,
            operator_type=context.operator_type,
            aircraft_tail_number=context.aircraft_tail_number,
            aircraft_registry_code=context.aircraft_registry_code,
            origin_country_code=context.origin_country_code,
            destination_country_code=context.destination_country_code,
            context_payload=context.context_payload,
        )


# ---------------------------------------------------------------------------
# Jurisdiction Schemas
# ---------------------------------------------------------------------------


class JurisdictionResolveResponse(BaseModel):
    """Result of resolving free text to a jurisdiction code."""

    query: str = Field(description="Text as received")
    code: str | None = Field(default=None, description="Resolved code, or null if unknown")

"""SQLAlchemy ORM models for flight-compliance.

All tables extend FlightComplianceModel which provides:
  - id: UUID primary key
  - created_at: datetime
  - updated_at: datetime

Reference data (jurisdictions, operators, airports) and the regulation
catalog are read-only here; only the aircraft table is written, by the
context resolver's upsert.
"""

import enum
import uuid

from sqlalchemy import JSON, Enum, Float, ForeignKey, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from flight_compliance.database import FlightComplianceModel

JSONType = JSON().with_variant(JSONB(), "postgresql")


def _enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    return [member.value for member in enum_cls]


class ComplianceScope(str, enum.Enum):
    """Jurisdictional lens under which a regulation is evaluated."""

    ARRIVAL = "arrival"
    DEPARTURE = "departure"
    STATE_OF_OPERATOR = "state_of_operator"
    STATE_OF_REGISTRY = "state_of_registry"


ALL_SCOPES: tuple[ComplianceScope, ...] = tuple(ComplianceScope)


class OperatorType(str, enum.Enum):
    """Kind of aviation operator."""

    CHARTER = "charter"
    PRIVATE = "private"
    CARGO = "cargo"
    AIR_AMBULANCE = "air_ambulance"
    MILITARY = "military"
    UNKNOWN = "unknown"


class RegulationStatus(str, enum.Enum):
    """Catalog lifecycle status of a regulation."""

    ACTIVE = "active"
    INACTIVE = "inactive"


class Jurisdiction(FlightComplianceModel):
    """Canonical jurisdiction with its accepted aliases.

    Table: jurisdictions
    """

    __tablename__ = "jurisdictions"

    code: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
        unique=True,
        comment="Canonical short code (ISO 3166-1 alpha-2 or region code)",
    )
    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Canonical display name",
    )
    alt_names: Mapped[list[str]] = mapped_column(
        JSONType,
        nullable=False,
        default=list,
        comment="Accepted aliases, matched case-insensitively",
    )


class Operator(FlightComplianceModel):
    """Aviation operator.

    Table: operators
    """

    __tablename__ = "operators"

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
    )
    jurisdiction_code: Mapped[str | None] = mapped_column(
        String(10),
        nullable=True,
        comment="Preferred state-of-operator code",
    )
    country_code: Mapped[str | None] = mapped_column(
        String(10),
        nullable=True,
        comment="Fallback state-of-operator code",
    )
    operator_type: Mapped[OperatorType | None] = mapped_column(
        Enum(OperatorType, name="operator_type", values_callable=_enum_values),
        nullable=True,
    )


class Airport(FlightComplianceModel):
    """Airport reference record; only the country is read here.

    Table: airports
    """

    __tablename__ = "airports"

    icao: Mapped[str] = mapped_column(
        String(4),
        nullable=False,
        unique=True,
    )
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    country: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        comment="Country as recorded by the airport source (free text)",
    )


class Aircraft(FlightComplianceModel):
    """Aircraft keyed by tail number, with its last known operator.

    Table: aircraft
    """

    __tablename__ = "aircraft"

    tail_number: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        unique=True,
        comment="Normalised registration mark",
    )
    operator_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("operators.id", ondelete="SET NULL"),
        nullable=True,
    )
    operator_name: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        comment="Denormalised operator name for display",
    )
    registry_country_code: Mapped[str | None] = mapped_column(
        String(10),
        nullable=True,
        comment="Registry state derived from the registration prefix",
    )
    manufacturer: Mapped[str | None] = mapped_column(String(255), nullable=True)
    model: Mapped[str | None] = mapped_column(String(255), nullable=True)
    mtow_kg: Mapped[float | None] = mapped_column(Float, nullable=True)
    equipment: Mapped[dict] = mapped_column(
        JSONType,
        nullable=False,
        default=dict,
    )


class Regulation(FlightComplianceModel):
    """Regulation catalog entry.

    Table: compliance_regulations
    """

    __tablename__ = "compliance_regulations"

    title: Mapped[str] = mapped_column(String(500), nullable=False)
    regulator: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        comment="Issuing authority (e.g., FAA, EASA, UK CAA)",
    )
    reference: Mapped[str | None] = mapped_column(
        String(500),
        nullable=True,
        comment="Citation string",
    )
    summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    compliance_action: Mapped[str | None] = mapped_column(Text, nullable=True)
    risk_level: Mapped[str | None] = mapped_column(String(20), nullable=True)
    citation_url: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    status: Mapped[RegulationStatus] = mapped_column(
        Enum(RegulationStatus, name="regulation_status", values_callable=_enum_values),
        nullable=False,
        default=RegulationStatus.ACTIVE,
        index=True,
    )

    scopes: Mapped[list["RegulationScope"]] = relationship(
        back_populates="regulation",
        cascade="all, delete-orphan",
    )
    jurisdictions: Mapped[list["RegulationJurisdiction"]] = relationship(
        back_populates="regulation",
        cascade="all, delete-orphan",
    )
    operator_profiles: Mapped[list["RegulationOperatorProfile"]] = relationship(
        back_populates="regulation",
        cascade="all, delete-orphan",
    )
    aircraft_profiles: Mapped[list["RegulationAircraftProfile"]] = relationship(
        back_populates="regulation",
        cascade="all, delete-orphan",
    )


class RegulationScope(FlightComplianceModel):
    """One scope a regulation is relevant under.

    Table: compliance_regulation_scopes
    """

    __tablename__ = "compliance_regulation_scopes"

    regulation_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("compliance_regulations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    scope: Mapped[ComplianceScope] = mapped_column(
        Enum(ComplianceScope, name="compliance_scope", values_callable=_enum_values),
        nullable=False,
    )
    trigger_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    regulation: Mapped[Regulation] = relationship(back_populates="scopes")


class RegulationJurisdiction(FlightComplianceModel):
    """Jurisdictional restriction of a regulation under one scope.

    A null jurisdiction_code never matches; global intent is written as
    the literal code GLOBAL.

    Table: compliance_regulation_jurisdictions
    """

    __tablename__ = "compliance_regulation_jurisdictions"

    regulation_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("compliance_regulations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    scope: Mapped[ComplianceScope] = mapped_column(
        Enum(ComplianceScope, name="compliance_scope", values_callable=_enum_values),
        nullable=False,
    )
    jurisdiction_code: Mapped[str | None] = mapped_column(String(10), nullable=True)
    trigger_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    regulation: Mapped[Regulation] = relationship(back_populates="jurisdictions")


class RegulationOperatorProfile(FlightComplianceModel):
    """Operator type a regulation is restricted to.

    Table: compliance_regulation_operator_profiles
    """

    __tablename__ = "compliance_regulation_operator_profiles"

    regulation_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("compliance_regulations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    operator_type: Mapped[OperatorType] = mapped_column(
        Enum(OperatorType, name="operator_type", values_callable=_enum_values),
        nullable=False,
    )

    regulation: Mapped[Regulation] = relationship(back_populates="operator_profiles")


class RegulationAircraftProfile(FlightComplianceModel):
    """Aircraft profile a regulation is restricted to.

    Table: compliance_regulation_aircraft_profiles
    """

    __tablename__ = "compliance_regulation_aircraft_profiles"

    regulation_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("compliance_regulations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    aircraft_class: Mapped[str | None] = mapped_column(String(50), nullable=True)
    mtow_min_kg: Mapped[float | None] = mapped_column(Float, nullable=True)
    mtow_max_kg: Mapped[float | None] = mapped_column(Float, nullable=True)
    required_equipment: Mapped[list[str]] = mapped_column(
        JSONType,
        nullable=False,
        default=list,
    )

    regulation: Mapped[Regulation] = relationship(back_populates="aircraft_profiles")


__all__ = [
    "ALL_SCOPES",
    "Aircraft",
    "Airport",
    "ComplianceScope",
    "Jurisdiction",
    "Operator",
    "OperatorType",
    "Regulation",
    "RegulationAircraftProfile",
    "RegulationJurisdiction",
    "RegulationOperatorProfile",
    "RegulationScope",
    "RegulationStatus",
]

"""Tests for tail number normalisation and registry state derivation."""

import pytest

from flight_compliance.adapters.aircraft_registry import (
    AircraftRegistryResolver,
    describe_registry,
    normalize_tail_number,
)
from flight_compliance.core.context import RegistryDescription


@pytest.mark.parametrize(
    ("raw", "tail", "country"),
    [
        ("N123AB", "N123AB", "US"),
        (" n123ab ", "N123AB", "US"),
        ("G-ABCD", "G-ABCD", "GB"),
        ("F-HBCD", "F-HBCD", "FR"),
        ("D-AIBC", "D-AIBC", "DE"),
        ("VH-XYZ", "VH-XYZ", "AU"),
        ("C-GABC", "C-GABC", "CA"),
        ("9H-ABC", "9H-ABC", "MT"),
        ("VP-CAB", "VP-CAB", "KY"),
        ("VP-BAB", "VP-BAB", "BM"),
        ("JA8089", "JA8089", "JP"),
        ("HL7611", "HL7611", "KR"),
        ("GABCD", "GABCD", "GB"),
    ],
)
def test_describe_registry_known_marks(raw: str, tail: str, country: str) -> None:
    """Known nationality marks resolve to their registry state."""
    assert describe_registry(raw) == RegistryDescription(tail=tail, registry_country_code=country)


def test_unknown_mark_keeps_tail() -> None:
    """A valid tail with an unrecognised mark keeps the tail and no state."""
    assert describe_registry("QQ-ABC") == RegistryDescription(tail="QQ-ABC")


@pytest.mark.parametrize("raw", [None, "", "   ", "N 123", "G_ABCD", "-GABC", "G-"])
def test_invalid_input_yields_empty_description(raw: str | None) -> None:
    """Empty or malformed input resolves to neither a tail nor a state."""
    assert describe_registry(raw) == RegistryDescription()


def test_normalize_tail_number() -> None:
    """Normalisation trims and uppercases."""
    assert normalize_tail_number("  ei-abc ") == "EI-ABC"
    assert normalize_tail_number("G-ABC-") is None


def test_custom_prefix_table() -> None:
    """The prefix table can be replaced."""
    resolver = AircraftRegistryResolver({"X-": "XX"})

    assert resolver.describe("X-ONE").registry_country_code == "XX"
    assert resolver.describe("N123AB").registry_country_code is None

"""Aircraft registry adapter for flight-compliance.

Derives the state of registry from a tail number using ICAO nationality
and common marks. Longest prefix wins, so VP-C (Cayman Islands) beats a
shorter mark that happens to share its first letters.
"""

import re

from flight_compliance.core.context import RegistryDescription
from flight_compliance.core.interfaces import IRegistryResolver

# Nationality mark -> ISO 3166-1 alpha-2 registry state
REGISTRATION_PREFIX_MAP: dict[str, str] = {
    # Americas
    "N": "US",
    "C-": "CA",
    "XA-": "MX",
    "XB-": "MX",
    "XC-": "MX",
    "PP-": "BR",
    "PR-": "BR",
    "PS-": "BR",
    "PT-": "BR",
    "PU-": "BR",
    "LV-": "AR",
    "CC-": "CL",
    "HK-": "CO",
    "OB-": "PE",
    "YV-": "VE",
    "HP-": "PA",
    "TI-": "CR",
    "HI-": "DO",
    "6Y-": "JM",
    "C6-": "BS",
    "8P-": "BB",
    "VP-A": "AI",
    "VP-B": "BM",
    "VQ-B": "BM",
    "VP-C": "KY",
    "VP-L": "VG",
    "VQ-T": "TC",
    # Europe
    "G-": "GB",
    "M-": "IM",
    "2-": "GG",
    "ZJ-": "JE",
    "EI-": "IE",
    "F-": "FR",
    "D-": "DE",
    "I-": "IT",
    "EC-": "ES",
    "CS-": "PT",
    "PH-": "NL",
    "OO-": "BE",
    "LX-": "LU",
    "HB-": "CH",
    "OE-": "AT",
    "9H-": "MT",
    "5B-": "CY",
    "SX-": "GR",
    "SE-": "SE",
    "LN-": "NO",
    "OY-": "DK",
    "OH-": "FI",
    "TF-": "IS",
    "SP-": "PL",
    "OK-": "CZ",
    "OM-": "SK",
    "HA-": "HU",
    "YR-": "RO",
    "LZ-": "BG",
    "S5-": "SI",
    "9A-": "HR",
    "YU-": "RS",
    "ES-": "EE",
    "YL-": "LV",
    "LY-": "LT",
    "UR-": "UA",
    "EW-": "BY",
    "ER-": "MD",
    "RA-": "RU",
    "TC-": "TR",
    "T7-": "SM",
    "3A-": "MC",
    # Middle East and Africa
    "4X-": "IL",
    "A6-": "AE",
    "A7-": "QA",
    "A9C-": "BH",
    "A4O-": "OM",
    "9K-": "KW",
    "HZ-": "SA",
    "JY-": "JO",
    "OD-": "LB",
    "YI-": "IQ",
    "EP-": "IR",
    "SU-": "EG",
    "CN-": "MA",
    "7T-": "DZ",
    "TS-": "TN",
    "5A-": "LY",
    "ST-": "SD",
    "ET-": "ET",
    "5Y-": "KE",
    "5H-": "TZ",
    "5N-": "NG",
    "9G-": "GH",
    "ZS-": "ZA",
    "V5-": "NA",
    "A2-": "BW",
    # Asia-Pacific
    "VT-": "IN",
    "AP-": "PK",
    "S2-": "BD",
    "4R-": "LK",
    "9N-": "NP",
    "UP-": "KZ",
    "4K-": "AZ",
    "4L-": "GE",
    "EK-": "AM",
    "B-": "CN",
    "JA": "JP",
    "HL": "KR",
    "9V-": "SG",
    "9M-": "MY",
    "HS-": "TH",
    "PK-": "ID",
    "RP-": "PH",
    "VN-": "VN",
    "VH-": "AU",
    "ZK-": "NZ",
    "DQ-": "FJ",
    "P2-": "PG",
}

_VALID_TAIL = re.compile(r"^[A-Z0-9-]+$")


def normalize_tail_number(tail_number: str | None) -> str | None:
    """Trim and uppercase a tail number.

    Args:
        tail_number: Raw registration as entered by the caller.

    Returns:
        The normalised tail number, or None if empty or malformed.
    """
    if not tail_number:
        return None
    tail = tail_number.strip().upper()
    if not tail or not _VALID_TAIL.match(tail) or tail.strip("-") != tail:
        return None
    return tail


class AircraftRegistryResolver(IRegistryResolver):
    """Resolves registry states from tail numbers with a prefix table.

    Args:
        prefix_map: Nationality mark to country code table. Defaults to
            REGISTRATION_PREFIX_MAP.
    """

    def __init__(self, prefix_map: dict[str, str] | None = None) -> None:
        self._prefix_map = prefix_map or REGISTRATION_PREFIX_MAP
        self._prefixes = sorted(self._prefix_map, key=len, reverse=True)
        # Marks without their hyphen, for tails written as GABCD
        compact: dict[str, str] = {}
        for prefix in self._prefixes:
            compact.setdefault(prefix.replace("-", ""), self._prefix_map[prefix])
        self._compact_map = compact
        self._compact_prefixes = sorted(compact, key=len, reverse=True)

    def registry_country_code(self, tail: str) -> str | None:
        """Return the registry state for a normalised tail, if the mark is known."""
        for prefix in self._prefixes:
            if tail.startswith(prefix) and len(tail) > len(prefix):
                return self._prefix_map[prefix]
        if "-" in tail:
            return None
        for prefix in self._compact_prefixes:
            if tail.startswith(prefix) and len(tail) > len(prefix):
                return self._compact_map[prefix]
        return None

    def describe(self, tail_number: str | None) -> RegistryDescription:
        """Normalise a tail number and derive its registry state.

        Args:
            tail_number: Raw registration.

        Returns:
            RegistryDescription; both fields are None for invalid input,
            and only the code is None for an unknown mark.
        """
        tail = normalize_tail_number(tail_number)
        if tail is None:
            return RegistryDescription()
        return RegistryDescription(
            tail=tail,
            registry_country_code=self.registry_country_code(tail),
        )


def describe_registry(tail_number: str | None) -> RegistryDescription:
    """Describe a tail number with the default prefix table."""
    return _default_resolver.describe(tail_number)


_default_resolver = AircraftRegistryResolver()


__all__ = [
    "REGISTRATION_PREFIX_MAP",
    "AircraftRegistryResolver",
    "describe_registry",
    "normalize_tail_number",
]

"""Domain errors for flight-compliance.

Every error carries an HTTP status code and a short machine-readable code.
main.py renders them as ``{"error": code, "detail": message}``.
"""


class FlightComplianceError(Exception):
    """Base class for all flight-compliance domain errors."""

    status_code: int = 500
    code: str = "internal_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class AmbiguousOperatorError(FlightComplianceError):
    """More than one operator shares the requested name (strict mode only)."""

    status_code = 409
    code = "ambiguous_operator"

    def __init__(self, name: str, match_count: int) -> None:
        super().__init__(f"{match_count} operators match the name {name!r}")
        self.name = name
        self.match_count = match_count


class RegulationsUnavailableError(FlightComplianceError):
    """The regulation catalog could not be read.

    Never answered as an empty result: an empty rule set would read as
    "no applicable regulations".
    """

    status_code = 503
    code = "regulations_unavailable"


__all__ = [
    "AmbiguousOperatorError",
    "FlightComplianceError",
    "RegulationsUnavailableError",
]

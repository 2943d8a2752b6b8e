"""
Custom Exception Hierarchy

Provides specific exception types for the scoring and analytics services,
each carrying a stable error code and structured details so the API layer can
translate them into HTTP responses without string matching.
"""
from typing import Any, Dict, Optional


class OutcomesError(Exception):
    """Base exception for all clinic outcomes errors."""

    def __init__(
        self,
        message: str,
        code: str = "OUTCOMES_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details
        }


class UnknownInstrumentError(OutcomesError):
    """Raised when an instrument code is not present in the registry."""

    def __init__(
        self,
        instrument_code: Any,
        message: Optional[str] = None,
        code: str = "UNKNOWN_INSTRUMENT",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message or f"Unknown outcome instrument: {instrument_code!r}",
            code=code,
            details={"instrument_code": str(instrument_code), **(details or {})}
        )
        self.instrument_code = instrument_code


class InstrumentNotScorableError(UnknownInstrumentError):
    """
    Raised when an instrument is registered by code and MCID only.

    NDI and RPQ are referenced by routing and threshold tables but carry no
    item definitions here, so there is nothing to score against.
    """

    def __init__(self, instrument_code: Any):
        super().__init__(
            instrument_code,
            message=(
                f"Instrument {instrument_code!s} has no item definitions "
                "and cannot be scored"
            ),
            code="INSTRUMENT_NOT_SCORABLE",
        )


class InvalidResponseError(OutcomesError):
    """Raised when item responses do not fit the instrument's item table."""

    def __init__(
        self,
        message: str,
        instrument_code: Any,
        item_number: Any = None,
        value: Any = None
    ):
        super().__init__(
            message=message,
            code="INVALID_RESPONSE",
            details={
                "instrument_code": str(instrument_code),
                "item_number": item_number,
                "value": value,
            }
        )
        self.instrument_code = instrument_code
        self.item_number = item_number


class ScoreRecordInvariantError(OutcomesError):
    """
    Raised when a score record set breaks the per-(episode, instrument) rules.

    A set may hold at most one baseline and one discharge record, and every
    record must belong to the same episode and instrument.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            code="SCORE_RECORD_INVARIANT",
            details=details
        )


class RegistryIntegrityError(OutcomesError):
    """Raised at import time when an instrument code has no registry entry."""

    def __init__(self, missing_codes):
        super().__init__(
            message=f"Instrument registry is missing entries for: {sorted(missing_codes)}",
            code="REGISTRY_INTEGRITY",
            details={"missing_codes": sorted(missing_codes)}
        )

# backend/fundmonitor/services/exceptions.py
"""
Service layer exceptions.

These exceptions represent domain-specific errors and contain NO HTTP knowledge.
The router layer is responsible for mapping these to appropriate HTTP responses.

Exception Hierarchy:
    ServiceError (base)
    ├── ValidationError
    │   ├── InvalidPeriodTypeError
    │   ├── InvalidDateRangeError
    │   └── InvalidQueryError
    └── RecordSourceError

Undefined metrics (MOIC with no cost, ITD with no anchor) are NOT errors:
they are reported as None on the result.
"""

from datetime import date


class ServiceError(Exception):
    """
    Base exception for all service layer errors.

    Attributes:
        message: Human-readable error description
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class ValidationError(ServiceError):
    """
    Raised when a caller passes parameters the engine cannot work with.

    Attributes:
        field: The parameter that failed validation (optional)
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)


class InvalidPeriodTypeError(ValidationError):
    """
    Raised when an unknown period cadence is requested.

    Valid cadences are: Yearly, Half-Yearly, Quarterly
    """

    VALID_OPTIONS = ("Yearly", "Half-Yearly", "Quarterly")

    def __init__(self, period_type: str) -> None:
        self.period_type = period_type
        super().__init__(
            f"Invalid period type: '{period_type}'. "
            f"Valid options: {', '.join(self.VALID_OPTIONS)}",
            field="period_type",
        )


class InvalidDateRangeError(ValidationError):
    """Raised when a date range ends before it starts."""

    def __init__(self, start_date: date, end_date: date) -> None:
        self.start_date = start_date
        self.end_date = end_date
        super().__init__(
            f"Invalid date range: start {start_date.isoformat()} "
            f"is after end {end_date.isoformat()}",
            field="date_range",
        )


class InvalidQueryError(ValidationError):
    """Raised when a record query is built with contradictory filters."""

    def __init__(self, message: str) -> None:
        super().__init__(message, field="query")


# =============================================================================
# UPSTREAM ERRORS
# =============================================================================


class RecordSourceError(ServiceError):
    """
    Raised by a record source when records cannot be retrieved.

    Distinct from an empty result: the service turns it into an
    UPSTREAM_ERROR status instead of reporting zeros.

    Attributes:
        record_kind: Which collection failed (e.g. "ownership", "flows")
    """

    def __init__(self, message: str, record_kind: str | None = None) -> None:
        self.record_kind = record_kind
        super().__init__(message)

# backend/fundmonitor/schemas/errors.py
"""
Error bodies returned by the Fund Monitor API.

Every failure a client can see, from a bad query parameter to a record
source outage, is serialized through these models by the handlers in
main.py. Each body echoes the request's correlation ID so a report can be
matched to the server log lines of the same request.
"""

from pydantic import BaseModel, Field

from fundmonitor.utils.context import get_correlation_id


class ErrorDetail(BaseModel):
    """
    Body of every 4xx / 5xx response except parameter validation.

    `error` is the service exception class name (InvalidPeriodTypeError,
    RecordSourceError, ...) or an HTTP error name for routing failures.
    """

    error: str = Field(
        ...,
        description="Error type (e.g., 'InvalidDateRangeError', 'RecordSourceError')"
    )
    message: str = Field(..., description="Human-readable error message")
    details: dict | None = Field(
        default=None,
        description="Offending field, period type, date range or record kind"
    )
    correlation_id: str | None = Field(
        default_factory=get_correlation_id,
        description="X-Correlation-ID of the failed request"
    )


class ValidationIssue(BaseModel):
    """One rejected request parameter."""

    field: str = Field(..., description="Parameter location (e.g., 'query.date')")
    message: str
    type: str = Field(..., description="Pydantic error type (e.g., 'date_from_datetime_parsing')")


class ValidationErrorDetail(BaseModel):
    """Body of a 422 response: one issue per rejected parameter."""

    error: str = Field(default="ValidationError")
    message: str = Field(default="Request validation failed")
    details: list[ValidationIssue]
    correlation_id: str | None = Field(
        default_factory=get_correlation_id,
        description="X-Correlation-ID of the failed request"
    )

# backend/fundmonitor/main.py
"""
FastAPI application entry point.

This file:
- Configures application-wide logging
- Creates the FastAPI application
- Registers global exception handlers
- Registers all routers
- Defines global endpoints (health checks)
"""

import logging

from fastapi import FastAPI, Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from fundmonitor.config import settings
from fundmonitor.database import get_db, check_database_health
from fundmonitor.middleware import CorrelationIdMiddleware
from fundmonitor.routers import (
    soi_router,
    monitoring_router,
    historical_router,
)
from fundmonitor.schemas.errors import ErrorDetail, ValidationErrorDetail, ValidationIssue
from fundmonitor.services.exceptions import (
    ServiceError,
    ValidationError,
    InvalidPeriodTypeError,
    InvalidDateRangeError,
    RecordSourceError,
)
from fundmonitor.utils import setup_logging

logger = logging.getLogger(__name__)

# =============================================================================
# LOGGING SETUP (must be before app creation)
# =============================================================================

setup_logging()

# =============================================================================
# APPLICATION SETUP
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description="Fund performance aggregation API: schedule of investments, "
                "monitoring tables and historical rollups",
    version="0.1.0",
)


# =============================================================================
# CORS MIDDLEWARE
# =============================================================================
# Origins are configured via CORS_ORIGINS environment variable

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)


# =============================================================================
# MIDDLEWARE (order matters: last added = first executed)
# =============================================================================

# Extracts/generates correlation IDs and adds them to response headers
app.add_middleware(CorrelationIdMiddleware)


# =============================================================================
# GLOBAL EXCEPTION HANDLERS
# =============================================================================
# These handlers catch service-layer exceptions and convert them to
# consistent HTTP responses. Handlers are matched on the most specific
# exception class first.
# =============================================================================

@app.exception_handler(InvalidPeriodTypeError)
async def invalid_period_type_handler(
    request: Request, exc: InvalidPeriodTypeError
) -> JSONResponse:
    """Handle unknown period cadence (400)."""
    logger.warning(f"Invalid period type: {exc.period_type}")
    return JSONResponse(
        status_code=400,
        content=ErrorDetail(
            error="InvalidPeriodTypeError",
            message=str(exc),
            details={
                "period_type": exc.period_type,
                "valid_options": list(InvalidPeriodTypeError.VALID_OPTIONS),
            },
        ).model_dump(),
    )


@app.exception_handler(InvalidDateRangeError)
async def invalid_date_range_handler(
    request: Request, exc: InvalidDateRangeError
) -> JSONResponse:
    """Handle inverted date ranges (400)."""
    logger.warning(f"Invalid date range: {exc.start_date} > {exc.end_date}")
    return JSONResponse(
        status_code=400,
        content=ErrorDetail(
            error="InvalidDateRangeError",
            message=str(exc),
            details={
                "start_date": exc.start_date.isoformat(),
                "end_date": exc.end_date.isoformat(),
            },
        ).model_dump(),
    )


@app.exception_handler(ValidationError)
async def validation_error_handler(
    request: Request, exc: ValidationError
) -> JSONResponse:
    """Handle validation errors (400)."""
    logger.warning(f"Validation error: {exc}")
    return JSONResponse(
        status_code=400,
        content=ErrorDetail(
            error="ValidationError",
            message=str(exc),
            details={"field": exc.field} if exc.field else None,
        ).model_dump(),
    )


@app.exception_handler(RecordSourceError)
async def record_source_error_handler(
    request: Request, exc: RecordSourceError
) -> JSONResponse:
    """Handle record source failures that escaped the service (503)."""
    logger.error(f"Record source error: {exc}")
    return JSONResponse(
        status_code=503,
        content=ErrorDetail(
            error="RecordSourceError",
            message=str(exc),
            details={"record_kind": exc.record_kind} if exc.record_kind else None,
        ).model_dump(),
    )


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    """Handle generic service errors (500)."""
    logger.error(f"Service error: {exc}")
    return JSONResponse(
        status_code=500,
        content=ErrorDetail(
            error="ServiceError",
            message=str(exc),
            details=None,
        ).model_dump(),
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """
    Handle all HTTPExceptions with consistent error format.

    Converts FastAPI's default {"detail": "..."} format to our standard
    ErrorDetail format for API consistency.
    """
    error_types = {
        400: "BadRequestError",
        404: "NotFoundError",
        405: "MethodNotAllowedError",
        422: "ValidationError",
        500: "InternalServerError",
        503: "ServiceUnavailableError",
    }
    error_type = error_types.get(exc.status_code, "HTTPError")

    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorDetail(
            error=error_type,
            message=str(exc.detail) if exc.detail else "An error occurred",
            details=None,
        ).model_dump(),
        headers=exc.headers,
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """
    Handle Pydantic validation errors with consistent format.

    Converts the default 422 validation error to our ValidationErrorDetail format.
    """
    errors = [
        ValidationIssue(
            field=".".join(str(loc) for loc in error["loc"]),
            message=error["msg"],
            type=error["type"],
        )
        for error in exc.errors()
    ]

    return JSONResponse(
        status_code=422,
        content=ValidationErrorDetail(
            error="ValidationError",
            message="Request validation failed",
            details=errors,
        ).model_dump(),
    )


# =============================================================================
# ROUTER REGISTRATION
# =============================================================================

app.include_router(soi_router)  # /vehicles/{id}/soi, /moic-buckets
app.include_router(monitoring_router)  # /vehicles/{id}/top-*, /new-investments
app.include_router(historical_router)  # /vehicles/{id}/historical-performance


# =============================================================================
# GLOBAL ENDPOINTS
# =============================================================================

@app.get("/", tags=["Health"])
def root():
    """
    API root - returns basic application info.
    """
    return {
        "message": f"Welcome to {settings.app_name}!",
        "docs": "/docs",
        "redoc": "/redoc",
    }


@app.get("/health", tags=["Health"])
def health_check(db: Session = Depends(get_db)):
    """
    Health check endpoint.

    Returns HTTP 503 if the database is unreachable, so load balancers
    stop routing traffic to this instance.
    """
    try:
        db.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return JSONResponse(
            status_code=503,
            content={
                "status": "unhealthy",
                "checks": {"database": {"status": "unhealthy", "error": str(e)}},
            },
        )

    return {
        "status": "healthy",
        "checks": {"database": {"status": "healthy"}},
    }


@app.get("/health/ready", tags=["Health"])
def readiness_check():
    """
    Readiness check endpoint.

    Checks connectivity through the application's own engine and reports
    the connection pool status.
    """
    health = check_database_health()
    if health["status"] != "healthy":
        return JSONResponse(status_code=503, content=health)
    return health

# backend/fundmonitor/services/__init__.py
"""
Service layer for business logic.

This package contains the service layer which encapsulates business logic
separate from the API (router) layer. Services:
- Have NO knowledge of HTTP (no HTTPException, no status codes)
- Raise domain-specific exceptions
- Receive their record source as a parameter (not via Depends)
- Are easily testable via dependency injection

Usage:
    from fundmonitor.services import PerformanceService
    from fundmonitor.services import SqlRecordSource, RecordQuery
    from fundmonitor.services import (
        ValidationError,
        InvalidPeriodTypeError,
        RecordSourceError,
    )

Architecture:
    services/
    ├── __init__.py                  # This file - main exports
    ├── exceptions.py                # Domain exceptions
    ├── constants.py                 # Business constants and exclusions
    ├── protocols.py                 # RecordSource interface (Protocol)
    ├── records/                     # Raw records and retrieval
    │   ├── types.py                 # Immutable record types
    │   ├── query.py                 # RecordQuery builder
    │   └── sql_source.py            # SQLAlchemy record source
    └── performance/                 # Performance engine
        ├── service.py               # Main performance orchestrator
        ├── types.py                 # Result data types
        ├── returns.py               # Ratio primitives
        ├── calculators.py           # Cost basis and MV join
        ├── metrics.py               # Returns, summaries, MOIC buckets
        ├── bucketing.py             # Top N and long tail
        ├── periods.py               # Period spine
        └── rollup.py                # Period rollups
"""

# Exceptions
from fundmonitor.services.exceptions import (
    ServiceError,
    ValidationError,
    InvalidPeriodTypeError,
    InvalidDateRangeError,
    InvalidQueryError,
    RecordSourceError,
)
# Record retrieval
from fundmonitor.services.protocols import RecordSource
from fundmonitor.services.records import RecordQuery, SqlRecordSource
# Performance engine
from fundmonitor.services.performance import PerformanceService

__all__ = [
    # ==========================================================================
    # Services
    # ==========================================================================
    "PerformanceService",
    "RecordSource",
    "RecordQuery",
    "SqlRecordSource",

    # ==========================================================================
    # Exceptions
    # ==========================================================================
    "ServiceError",
    "ValidationError",
    "InvalidPeriodTypeError",
    "InvalidDateRangeError",
    "InvalidQueryError",
    "RecordSourceError",
]

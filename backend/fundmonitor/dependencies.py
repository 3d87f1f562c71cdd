# backend/fundmonitor/dependencies.py
"""
Dependency injection module for FastAPI services.

The PerformanceService is a singleton shared across all requests; it holds
no per-request state. The record source is built per request from the
request's database session.

Services are lazily initialized on first use to avoid import-time side effects.

Usage in routers:
    from fundmonitor.dependencies import get_performance_service, get_record_source

    @router.get("/{vehicle_id}/soi")
    def get_soi(
        service: PerformanceService = Depends(get_performance_service),
        source: RecordSource = Depends(get_record_source),
    ):
        ...
"""

import logging
from functools import lru_cache

from fastapi import Depends
from sqlalchemy.orm import Session

from fundmonitor.config import settings
from fundmonitor.database import get_db
from fundmonitor.services.performance.service import PerformanceService
from fundmonitor.services.protocols import RecordSource
from fundmonitor.services.records.sql_source import SqlRecordSource

logger = logging.getLogger(__name__)


# =============================================================================
# SINGLETON SERVICE INSTANCES
# =============================================================================

@lru_cache(maxsize=1)
def get_performance_service() -> PerformanceService:
    """
    Get the singleton PerformanceService instance.

    Configured from settings (high-MOIC threshold, fund worker pool size).
    """
    logger.debug("Initializing singleton PerformanceService")
    return PerformanceService(
        high_moic_threshold=settings.high_moic_threshold,
        max_fund_workers=settings.max_fund_workers,
    )


# =============================================================================
# PER-REQUEST DEPENDENCIES
# =============================================================================

def get_record_source(db: Session = Depends(get_db)) -> RecordSource:
    """Record source bound to the request's database session."""
    return SqlRecordSource(db)


def clear_service_caches() -> None:
    """
    Clear all service caches.

    Useful for testing or when you need to reset state.
    """
    get_performance_service.cache_clear()
    logger.info("Cleared all service singleton caches")

# backend/fundmonitor/routers/historical.py
"""
Historical performance endpoints.

- GET /vehicles/{vehicle_id}/historical-performance - Rollup for one TBV fund
- GET /vehicles/{vehicle_id}/historical-performance/funds - Rollups for every TBV fund

Rollups are calendar-aligned (Yearly, Half-Yearly, Quarterly) and end with
a TOTAL row.
"""

from datetime import date

from fastapi import APIRouter, Depends, Query, Response, status

from fundmonitor.dependencies import get_performance_service, get_record_source
from fundmonitor.schemas.historical import (
    PerformanceRowResponse,
    HistoricalPerformanceResponse,
    FundsPerformanceResponse,
)
from fundmonitor.services.performance import PerformanceService, PeriodType, ResultStatus
from fundmonitor.services.protocols import RecordSource

# =============================================================================
# ROUTER SETUP
# =============================================================================

router = APIRouter(
    prefix="/vehicles",
    tags=["Historical Performance"],
)


# =============================================================================
# MAPPER FUNCTIONS (Internal Types -> Pydantic Schemas)
# =============================================================================

def _map_performance(performance) -> HistoricalPerformanceResponse:
    """Map internal HistoricalPerformance to Pydantic schema."""
    return HistoricalPerformanceResponse(
        vehicle_id=performance.vehicle_id,
        tbv_vehicle_id=performance.tbv_vehicle_id,
        tbv_fund=performance.tbv_fund,
        period_type=performance.period_type.value,
        start_date=performance.start_date,
        end_date=performance.end_date,
        rows=[PerformanceRowResponse.model_validate(row) for row in performance.rows],
        status=performance.status.value,
        error=performance.error,
    )


def _apply_result_status(response: Response, result_status: ResultStatus) -> None:
    if result_status is ResultStatus.UPSTREAM_ERROR:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.get(
    "/{vehicle_id}/historical-performance",
    response_model=HistoricalPerformanceResponse,
    summary="Get historical performance of one TBV fund",
)
def get_historical_performance(
        vehicle_id: str,
        response: Response,
        tbv_vehicle_id: str = Query(..., description="TBV vehicle providing flows, NAV and multiples"),
        from_date: date = Query(..., description="Range start (inclusive)"),
        to_date: date = Query(..., description="Range end (inclusive)"),
        period_type: str = Query(
            default=PeriodType.QUARTERLY.value,
            description="Yearly, Half-Yearly or Quarterly",
        ),
        source: RecordSource = Depends(get_record_source),
        service: PerformanceService = Depends(get_performance_service),
) -> HistoricalPerformanceResponse:
    """
    Period rollup of deployment, capital calls, distributions, NAV, TVPI and DPI.

    The TOTAL row carries the latest NAV and the highest TVPI / DPI seen.

    Raises **400** for an unknown period_type or if from_date > to_date.
    """
    performance = service.get_historical_performance(
        source=source,
        vehicle_id=vehicle_id,
        tbv_vehicle_id=tbv_vehicle_id,
        start_date=from_date,
        end_date=to_date,
        period_type=period_type,
    )
    _apply_result_status(response, performance.status)
    return _map_performance(performance)


@router.get(
    "/{vehicle_id}/historical-performance/funds",
    response_model=FundsPerformanceResponse,
    summary="Get historical performance of every TBV fund",
)
def get_all_funds_performance(
        vehicle_id: str,
        response: Response,
        from_date: date = Query(..., description="Range start (inclusive)"),
        to_date: date = Query(..., description="Range end (inclusive, extended to the latest record)"),
        period_type: str = Query(
            default=PeriodType.QUARTERLY.value,
            description="Yearly, Half-Yearly or Quarterly",
        ),
        source: RecordSource = Depends(get_record_source),
        service: PerformanceService = Depends(get_performance_service),
) -> FundsPerformanceResponse:
    """Rollups for every TBV fund linked to the vehicle, in fund name order."""
    result = service.get_all_funds_performance(
        source=source,
        vehicle_id=vehicle_id,
        start_date=from_date,
        end_date=to_date,
        period_type=period_type,
    )
    _apply_result_status(response, result.status)
    return FundsPerformanceResponse(
        vehicle_id=result.vehicle_id,
        period_type=result.period_type.value,
        start_date=result.start_date,
        end_date=result.end_date,
        funds=[_map_performance(p) for p in result.funds],
        status=result.status.value,
        error=result.error,
    )

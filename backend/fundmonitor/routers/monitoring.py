# backend/fundmonitor/routers/monitoring.py
"""
Portfolio monitoring endpoints.

- GET /vehicles/{vehicle_id}/top-market-value - MV-ranked positions, windowed cost
- GET /vehicles/{vehicle_id}/top-cost - Largest windowed cost, by ownership type
- GET /vehicles/{vehicle_id}/new-investments - Cost deployed per project in a window
- GET /vehicles/{vehicle_id}/top-market-value/{project_id}/assets - Top MV row by asset class
- GET /vehicles/{vehicle_id}/top-cost/{project_id}/entries - Ownership rows behind a top cost row
- GET /vehicles/{vehicle_id}/new-investments/chart - Entry cost per outcome type
- GET /vehicles/{vehicle_id}/new-investments/{project_id}/assets - New investment by asset class
- GET /vehicles/{vehicle_id}/investment-dates - Dates with new investment activity
"""

from datetime import date

from fastapi import APIRouter, Depends, Query, Response, status

from fundmonitor.config import settings
from fundmonitor.dependencies import get_performance_service, get_record_source
from fundmonitor.routers.soi import map_asset_breakdown, map_position_table
from fundmonitor.schemas.monitoring import (
    CostPositionResponse,
    TopCostTableResponse,
    NewInvestmentResponse,
    NewInvestmentsResponse,
    InvestmentDatesResponse,
    CostEntryResponse,
    CostEntriesResponse,
    NewInvestmentAssetResponse,
    NewInvestmentBreakdownResponse,
    OutcomeCostResponse,
    NewInvestmentChartResponse,
)
from fundmonitor.schemas.soi import AssetBreakdownResponse, PositionTableResponse
from fundmonitor.services.constants import OWNERSHIP_ALL
from fundmonitor.services.performance import PerformanceService, ResultStatus
from fundmonitor.services.protocols import RecordSource

# =============================================================================
# ROUTER SETUP
# =============================================================================

router = APIRouter(
    prefix="/vehicles",
    tags=["Monitoring"],
)


# =============================================================================
# MAPPER FUNCTIONS (Internal Types -> Pydantic Schemas)
# =============================================================================

def _map_new_investment(row) -> NewInvestmentResponse:
    """Map internal NewInvestment to Pydantic schema."""
    return NewInvestmentResponse(
        project_id=row.project_id,
        cost=row.cost,
        first_entry=row.first_entry,
        weighted_valuation=row.weighted_valuation,
        asset_classes=list(row.asset_classes),
        has_multiple_asset_classes=row.has_multiple_asset_classes,
    )


def _apply_result_status(response: Response, result_status: ResultStatus) -> None:
    if result_status is ResultStatus.UPSTREAM_ERROR:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.get(
    "/{vehicle_id}/top-market-value",
    response_model=PositionTableResponse,
    summary="Get top positions by market value",
)
def get_top_market_value(
        vehicle_id: str,
        response: Response,
        portfolio_date: date = Query(
            ...,
            description="Date the market value is taken at",
            alias="date",
        ),
        from_date: date = Query(..., description="Cost window start (inclusive)"),
        to_date: date = Query(..., description="Cost window end (inclusive)"),
        top_n: int = Query(
            default=settings.default_monitoring_top_n,
            description="Rows before the long tail (0 = show all)",
        ),
        source: RecordSource = Depends(get_record_source),
        service: PerformanceService = Depends(get_performance_service),
) -> PositionTableResponse:
    """
    Positions ranked by total market value at `date`.

    Cost is the sum of ownership deltas reported between `from_date` and
    `to_date`. Positions holding market value but no cost in the window
    are kept with zero cost.

    Raises **400** if from_date > to_date or top_n is negative.
    """
    table = service.get_top_market_value_positions(
        source=source,
        vehicle_id=vehicle_id,
        portfolio_date=portfolio_date,
        date_start=from_date,
        date_end=to_date,
        top_n=top_n,
    )
    _apply_result_status(response, table.status)
    return map_position_table(table)


@router.get(
    "/{vehicle_id}/top-cost",
    response_model=TopCostTableResponse,
    summary="Get top positions by cost deployed",
)
def get_top_cost(
        vehicle_id: str,
        response: Response,
        from_date: date = Query(..., description="Window start (inclusive)"),
        to_date: date = Query(..., description="Window end (inclusive)"),
        top_n: int = Query(
            default=settings.default_monitoring_top_n,
            description="Rows to return (0 = all)",
        ),
        source: RecordSource = Depends(get_record_source),
        service: PerformanceService = Depends(get_performance_service),
) -> TopCostTableResponse:
    """
    Projects with the most cost deployed in the window.

    Each row splits its cost into Established, Top Up and divested amounts.
    """
    table = service.get_top_cost_positions(
        source=source,
        vehicle_id=vehicle_id,
        date_start=from_date,
        date_end=to_date,
        top_n=top_n,
    )
    _apply_result_status(response, table.status)
    return TopCostTableResponse(
        vehicle_id=table.vehicle_id,
        date_start=table.date_start,
        date_end=table.date_end,
        top_n=table.top_n,
        rows=[CostPositionResponse.model_validate(row) for row in table.rows],
        status=table.status.value,
        error=table.error,
    )


@router.get(
    "/{vehicle_id}/new-investments",
    response_model=NewInvestmentsResponse,
    summary="Get new investments in a window",
)
def get_new_investments(
        vehicle_id: str,
        response: Response,
        from_date: date = Query(..., description="Window start (inclusive)"),
        to_date: date = Query(..., description="Window end (inclusive)"),
        ownership_type: str = Query(
            default=OWNERSHIP_ALL,
            description="Established, Top Up or All",
        ),
        source: RecordSource = Depends(get_record_source),
        service: PerformanceService = Depends(get_performance_service),
) -> NewInvestmentsResponse:
    """
    Cost deployed per project by new entries (Established / Top Up).

    Raises **400** for an unknown ownership_type.
    """
    table = service.get_new_investments(
        source=source,
        vehicle_id=vehicle_id,
        date_start=from_date,
        date_end=to_date,
        ownership_type=ownership_type,
    )
    _apply_result_status(response, table.status)
    return NewInvestmentsResponse(
        vehicle_id=table.vehicle_id,
        date_start=table.date_start,
        date_end=table.date_end,
        ownership_type=table.ownership_type,
        rows=[_map_new_investment(row) for row in table.rows],
        total_cost=table.total_cost,
        status=table.status.value,
        error=table.error,
    )


@router.get(
    "/{vehicle_id}/investment-dates",
    response_model=InvestmentDatesResponse,
    summary="Get dates with investment activity",
)
def get_investment_dates(
        vehicle_id: str,
        response: Response,
        source: RecordSource = Depends(get_record_source),
        service: PerformanceService = Depends(get_performance_service),
) -> InvestmentDatesResponse:
    """Distinct dates with Established / Top Up activity, newest first."""
    result = service.get_available_investment_dates(source=source, vehicle_id=vehicle_id)
    _apply_result_status(response, result.status)
    return InvestmentDatesResponse(
        vehicle_id=result.vehicle_id,
        dates=result.dates,
        status=result.status.value,
        error=result.error,
    )


# =============================================================================
# DRILL-DOWN ENDPOINTS
# =============================================================================

@router.get(
    "/{vehicle_id}/top-market-value/{project_id}/assets",
    response_model=AssetBreakdownResponse,
    summary="Get a top market value row by asset class",
)
def get_top_market_value_details(
        vehicle_id: str,
        project_id: str,
        response: Response,
        portfolio_date: date = Query(
            ...,
            description="Date the market value is taken at",
            alias="date",
        ),
        from_date: date = Query(..., description="Cost window start (inclusive)"),
        to_date: date = Query(..., description="Cost window end (inclusive)"),
        source: RecordSource = Depends(get_record_source),
        service: PerformanceService = Depends(get_performance_service),
) -> AssetBreakdownResponse:
    """One project of the top market value table, one row per asset class."""
    breakdown = service.get_top_market_value_details(
        source=source,
        vehicle_id=vehicle_id,
        project_id=project_id,
        portfolio_date=portfolio_date,
        date_start=from_date,
        date_end=to_date,
    )
    _apply_result_status(response, breakdown.status)
    return map_asset_breakdown(breakdown)


@router.get(
    "/{vehicle_id}/top-cost/{project_id}/entries",
    response_model=CostEntriesResponse,
    summary="Get the ownership rows behind a top cost row",
)
def get_top_cost_details(
        vehicle_id: str,
        project_id: str,
        response: Response,
        from_date: date = Query(..., description="Window start (inclusive)"),
        to_date: date = Query(..., description="Window end (inclusive)"),
        source: RecordSource = Depends(get_record_source),
        service: PerformanceService = Depends(get_performance_service),
) -> CostEntriesResponse:
    table = service.get_top_cost_details(
        source=source,
        vehicle_id=vehicle_id,
        project_id=project_id,
        date_start=from_date,
        date_end=to_date,
    )
    _apply_result_status(response, table.status)
    return CostEntriesResponse(
        vehicle_id=table.vehicle_id,
        project_id=table.project_id,
        date_start=table.date_start,
        date_end=table.date_end,
        rows=[CostEntryResponse.model_validate(row) for row in table.rows],
        total_cost=table.total_cost,
        status=table.status.value,
        error=table.error,
    )


@router.get(
    "/{vehicle_id}/new-investments/chart",
    response_model=NewInvestmentChartResponse,
    summary="Get new investment cost per outcome type",
)
def get_new_investment_chart(
        vehicle_id: str,
        response: Response,
        from_date: date = Query(..., description="Window start (inclusive)"),
        to_date: date = Query(..., description="Window end (inclusive)"),
        source: RecordSource = Depends(get_record_source),
        service: PerformanceService = Depends(get_performance_service),
) -> NewInvestmentChartResponse:
    """
    Established and Top Up cost per outcome type.

    A row without an outcome type is reported under 'Unknown'.
    """
    chart = service.get_new_investment_chart(
        source=source,
        vehicle_id=vehicle_id,
        date_start=from_date,
        date_end=to_date,
    )
    _apply_result_status(response, chart.status)
    return NewInvestmentChartResponse(
        vehicle_id=chart.vehicle_id,
        date_start=chart.date_start,
        date_end=chart.date_end,
        rows=[OutcomeCostResponse.model_validate(row) for row in chart.rows],
        status=chart.status.value,
        error=chart.error,
    )


@router.get(
    "/{vehicle_id}/new-investments/{project_id}/assets",
    response_model=NewInvestmentBreakdownResponse,
    summary="Get a new investment by asset class",
)
def get_new_investment_breakdown(
        vehicle_id: str,
        project_id: str,
        response: Response,
        from_date: date = Query(..., description="Window start (inclusive)"),
        to_date: date = Query(..., description="Window end (inclusive)"),
        ownership_type: str = Query(
            default=OWNERSHIP_ALL,
            description="Established, Top Up or All",
        ),
        source: RecordSource = Depends(get_record_source),
        service: PerformanceService = Depends(get_performance_service),
) -> NewInvestmentBreakdownResponse:
    breakdown = service.get_new_investment_breakdown(
        source=source,
        vehicle_id=vehicle_id,
        project_id=project_id,
        date_start=from_date,
        date_end=to_date,
        ownership_type=ownership_type,
    )
    _apply_result_status(response, breakdown.status)
    return NewInvestmentBreakdownResponse(
        vehicle_id=breakdown.vehicle_id,
        project_id=breakdown.project_id,
        date_start=breakdown.date_start,
        date_end=breakdown.date_end,
        ownership_type=breakdown.ownership_type,
        rows=[NewInvestmentAssetResponse.model_validate(row) for row in breakdown.rows],
        status=breakdown.status.value,
        error=breakdown.error,
    )

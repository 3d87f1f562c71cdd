# backend/fundmonitor/routers/soi.py
"""
Schedule of Investments endpoints.

- GET /vehicles/{vehicle_id}/soi - Cost-ranked positions with long tail
- GET /vehicles/{vehicle_id}/soi/{project_id}/assets - One project by asset class
- GET /vehicles/{vehicle_id}/moic-buckets - Project distribution by MOIC

A result whose record source failed is returned with HTTP 503 and the same
(empty) body shape, so clients can tell it apart from "no data".
"""

from datetime import date

from fastapi import APIRouter, Depends, Query, Response, status

from fundmonitor.config import settings
from fundmonitor.dependencies import get_performance_service, get_record_source
from fundmonitor.schemas.soi import (
    PositionResponse,
    PortfolioSummaryResponse,
    PositionTableResponse,
    AssetBreakdownResponse,
    MoicBucketResponse,
    MoicBucketTableResponse,
)
from fundmonitor.services.performance import PerformanceService, ResultStatus
from fundmonitor.services.protocols import RecordSource

# =============================================================================
# ROUTER SETUP
# =============================================================================

router = APIRouter(
    prefix="/vehicles",
    tags=["Schedule of Investments"],
)


# =============================================================================
# MAPPER FUNCTIONS (Internal Types -> Pydantic Schemas)
# =============================================================================

def _map_position(position) -> PositionResponse:
    """Map internal Position to Pydantic schema."""
    return PositionResponse(
        project_id=position.project_id,
        asset_class=position.asset_class,
        cost=position.cost,
        realized_mv=position.realized_mv,
        unrealized_mv=position.unrealized_mv,
        total_mv=position.total_mv,
        first_entry=position.first_entry,
        weighted_valuation=position.weighted_valuation,
        moic=position.moic,
        itd=position.itd,
        qtd=position.qtd,
        cost_percentage=position.cost_percentage,
        realized_percentage=position.realized_percentage,
        unrealized_percentage=position.unrealized_percentage,
        mv_percentage=position.mv_percentage,
        is_long_tail=position.is_long_tail,
        is_high_moic_exception=position.is_high_moic_exception,
        has_asset_breakdown=position.has_asset_breakdown,
        is_expandable=position.is_expandable,
        position_count=position.position_count,
    )


def map_position_table(table) -> PositionTableResponse:
    """Map internal PositionTable to Pydantic schema."""
    return PositionTableResponse(
        vehicle_id=table.vehicle_id,
        as_of_date=table.as_of_date,
        date_start=table.date_start,
        date_end=table.date_end,
        top_n=table.top_n,
        rows=[_map_position(p) for p in table.rows],
        long_tail=_map_position(table.long_tail) if table.long_tail is not None else None,
        summary=PortfolioSummaryResponse.model_validate(table.summary),
        status=table.status.value,
        error=table.error,
    )


def map_asset_breakdown(breakdown) -> AssetBreakdownResponse:
    """Map internal AssetBreakdown to Pydantic schema."""
    return AssetBreakdownResponse(
        vehicle_id=breakdown.vehicle_id,
        project_id=breakdown.project_id,
        as_of_date=breakdown.as_of_date,
        date_start=breakdown.date_start,
        date_end=breakdown.date_end,
        rows=[_map_position(p) for p in breakdown.rows],
        status=breakdown.status.value,
        error=breakdown.error,
    )


def _map_moic_bucket(row) -> MoicBucketResponse:
    """Map internal MoicBucketRow to Pydantic schema."""
    return MoicBucketResponse(
        bucket=row.bucket,
        project_count=row.project_count,
        project_percentage=row.project_percentage,
        cost=row.cost,
        equity_cost=row.equity_cost,
        tokens_cost=row.tokens_cost,
        others_cost=row.others_cost,
        realized_mv=row.realized_mv,
        unrealized_mv=row.unrealized_mv,
        total_mv=row.total_mv,
        moic=row.moic,
        project_ids=list(row.project_ids),
    )


def _apply_result_status(response: Response, result_status: ResultStatus) -> None:
    if result_status is ResultStatus.UPSTREAM_ERROR:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.get(
    "/{vehicle_id}/soi",
    response_model=PositionTableResponse,
    summary="Get schedule of investments",
    response_description="Cost-ranked positions with long tail and summary",
)
def get_schedule_of_investments(
        vehicle_id: str,
        response: Response,
        portfolio_date: date = Query(
            ...,
            description="Portfolio (valuation) date",
            alias="date",
        ),
        top_n: int = Query(
            default=settings.default_soi_top_n,
            description="Rows before the long tail (0 = show all)",
        ),
        source: RecordSource = Depends(get_record_source),
        service: PerformanceService = Depends(get_performance_service),
) -> PositionTableResponse:
    """
    Get the schedule of investments of a vehicle.

    Returns:
    - **rows**: Top N positions by cost, plus any position beyond N whose
      MOIC meets the high-MOIC threshold
    - **long_tail**: Every other position aggregated into one row
    - **summary**: Totals, portfolio MOIC / ITD / QTD, asset class split

    Raises **400** if top_n is negative.
    Returns **503** with an empty table if the record source failed.
    """
    table = service.get_schedule_of_investments(
        source=source,
        vehicle_id=vehicle_id,
        portfolio_date=portfolio_date,
        top_n=top_n,
    )
    _apply_result_status(response, table.status)
    return map_position_table(table)


@router.get(
    "/{vehicle_id}/soi/{project_id}/assets",
    response_model=AssetBreakdownResponse,
    summary="Get asset class breakdown of a project",
)
def get_asset_breakdown(
        vehicle_id: str,
        project_id: str,
        response: Response,
        portfolio_date: date = Query(
            ...,
            description="Portfolio (valuation) date",
            alias="date",
        ),
        source: RecordSource = Depends(get_record_source),
        service: PerformanceService = Depends(get_performance_service),
) -> AssetBreakdownResponse:
    """Positions of one project, one row per asset class."""
    breakdown = service.get_asset_breakdown(
        source=source,
        vehicle_id=vehicle_id,
        project_id=project_id,
        portfolio_date=portfolio_date,
    )
    _apply_result_status(response, breakdown.status)
    return map_asset_breakdown(breakdown)


@router.get(
    "/{vehicle_id}/moic-buckets",
    response_model=MoicBucketTableResponse,
    summary="Get MOIC bucket distribution",
)
def get_moic_buckets(
        vehicle_id: str,
        response: Response,
        portfolio_date: date = Query(
            ...,
            description="Portfolio (valuation) date",
            alias="date",
        ),
        source: RecordSource = Depends(get_record_source),
        service: PerformanceService = Depends(get_performance_service),
) -> MoicBucketTableResponse:
    """
    Group the vehicle's projects by MOIC.

    Buckets, in order: Grand Slams (>=10x), Home Run (>=5x),
    Doubles/Triples (>=2x), Base Hit (>1x), Cost (>=0.95x), Loss,
    Write Off (no market value) and Fully Divested / No Cost Basis.
    Empty buckets are omitted.
    """
    table = service.get_moic_buckets(
        source=source,
        vehicle_id=vehicle_id,
        portfolio_date=portfolio_date,
    )
    _apply_result_status(response, table.status)
    return MoicBucketTableResponse(
        vehicle_id=table.vehicle_id,
        as_of_date=table.as_of_date,
        buckets=[_map_moic_bucket(row) for row in table.rows],
        status=table.status.value,
        error=table.error,
    )

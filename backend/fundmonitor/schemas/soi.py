# backend/fundmonitor/schemas/soi.py
"""
Pydantic schemas for the Schedule of Investments.

These schemas handle:
- Position rows (project level and asset-class level)
- The long-tail row and portfolio summary
- MOIC bucket distribution

The same position table shape is returned by the top market value
monitoring endpoint.

Conventions:
- Money and ratios are Decimals, serialized as strings
- `_percentage` fields are on a 0-100 scale
- itd / qtd / moic are fractions or multiples, null when undefined
"""

from datetime import date
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

ResultStatusLiteral = Literal["ok", "empty", "upstream_error"]


# =============================================================================
# POSITION SCHEMAS
# =============================================================================

class PositionResponse(BaseModel):
    """One row of a position table."""

    model_config = ConfigDict(from_attributes=True)

    project_id: str = Field(
        ...,
        description="Project identifier (the display label for a long-tail row)"
    )
    asset_class: str | None = Field(
        None,
        description="Asset class (asset breakdown rows only)"
    )

    # Amounts
    cost: Decimal = Field(..., description="Cost basis")
    realized_mv: Decimal = Field(..., description="Realized market value")
    unrealized_mv: Decimal = Field(..., description="Unrealized market value")
    total_mv: Decimal = Field(..., description="Realized + unrealized market value")

    # Entry valuations
    first_entry: Decimal | None = Field(
        None,
        description="Lowest positive entry valuation"
    )
    weighted_valuation: Decimal | None = Field(
        None,
        description="Cost-weighted entry valuation"
    )

    # Returns
    moic: Decimal | None = Field(
        None,
        description="total_mv / cost (null when cost <= 0)"
    )
    itd: Decimal | None = Field(
        None,
        description="Inception-to-date return (0.25 = 25%)"
    )
    qtd: Decimal | None = Field(
        None,
        description="Quarter-to-date return (0.20 = 20%)"
    )

    # Shares of the table totals
    cost_percentage: Decimal | None = Field(None, description="Share of total cost (0-100)")
    realized_percentage: Decimal | None = Field(None, description="Share of realized MV (0-100)")
    unrealized_percentage: Decimal | None = Field(None, description="Share of unrealized MV (0-100)")
    mv_percentage: Decimal | None = Field(None, description="Share of total MV (0-100)")

    # Flags
    is_long_tail: bool = Field(False, description="Row aggregates the long tail")
    is_high_moic_exception: bool = Field(
        False,
        description="Shown beyond top N because its MOIC meets the threshold"
    )
    has_asset_breakdown: bool = Field(
        False,
        description="Project holds more than one asset class"
    )
    is_expandable: bool = Field(
        False,
        description="More than one ownership row sits behind the cost"
    )
    position_count: int = Field(1, description="Positions aggregated in this row")


class PortfolioSummaryResponse(BaseModel):
    """Totals over every position in scope, displayed or not."""

    model_config = ConfigDict(from_attributes=True)

    total_positions: int
    total_cost: Decimal
    total_realized_mv: Decimal
    total_unrealized_mv: Decimal
    total_mv: Decimal
    portfolio_moic: Decimal | None = Field(None, description="Null when total cost <= 0")
    portfolio_itd: Decimal | None = Field(None, description="MV-weighted ITD")
    portfolio_qtd: Decimal | None = Field(None, description="MV-weighted QTD")

    # Asset class split of cost
    equity_cost: Decimal
    equity_cost_percentage: Decimal
    tokens_cost: Decimal
    tokens_cost_percentage: Decimal
    others_cost: Decimal
    others_cost_percentage: Decimal


class PositionTableResponse(BaseModel):
    """
    Ranked positions with long tail and summary.

    `rows` holds the top N plus any high-MOIC exceptions; everything else is
    aggregated in `long_tail`.
    """

    vehicle_id: str
    as_of_date: date = Field(..., description="Portfolio (valuation) date")
    date_start: date | None = Field(None, description="Cost window start (monitoring only)")
    date_end: date | None = Field(None, description="Cost window end (monitoring only)")
    top_n: int = Field(..., description="Requested rows (0 = all)")
    rows: list[PositionResponse]
    long_tail: PositionResponse | None = None
    summary: PortfolioSummaryResponse
    status: ResultStatusLiteral = Field(..., description="ok, empty or upstream_error")
    error: str | None = Field(None, description="Upstream failure message")


class AssetBreakdownResponse(BaseModel):
    """Positions of one project split by asset class."""

    vehicle_id: str
    project_id: str
    as_of_date: date
    date_start: date | None = Field(None, description="Cost window start (top market value only)")
    date_end: date | None = Field(None, description="Cost window end (top market value only)")
    rows: list[PositionResponse]
    status: ResultStatusLiteral
    error: str | None = None


# =============================================================================
# MOIC BUCKET SCHEMAS
# =============================================================================

class MoicBucketResponse(BaseModel):
    """Projects falling into one MOIC bucket."""

    model_config = ConfigDict(from_attributes=True)

    bucket: str = Field(..., description="Bucket label (e.g., 'Home Run')")
    project_count: int
    project_percentage: Decimal = Field(..., description="Share of projects (0-100)")
    cost: Decimal
    equity_cost: Decimal
    tokens_cost: Decimal
    others_cost: Decimal
    realized_mv: Decimal
    unrealized_mv: Decimal
    total_mv: Decimal
    moic: Decimal | None = None
    project_ids: list[str]


class MoicBucketTableResponse(BaseModel):
    vehicle_id: str
    as_of_date: date
    buckets: list[MoicBucketResponse]
    status: ResultStatusLiteral
    error: str | None = None

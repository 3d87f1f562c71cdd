# backend/fundmonitor/schemas/monitoring.py
"""
Pydantic schemas for portfolio monitoring tables.

The top market value table reuses PositionTableResponse from schemas.soi.
"""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from fundmonitor.schemas.soi import ResultStatusLiteral


# =============================================================================
# TOP COST
# =============================================================================

class CostPositionResponse(BaseModel):
    """
    Windowed cost of one project, split by ownership type.

    cost_percentage is relative to the table total; the split percentages
    are relative to the row's own cost. All on a 0-100 scale.
    """

    model_config = ConfigDict(from_attributes=True)

    project_id: str
    cost: Decimal
    cost_percentage: Decimal
    established_cost: Decimal
    established_percentage: Decimal
    top_up_cost: Decimal
    top_up_percentage: Decimal
    divested_cost: Decimal
    divested_percentage: Decimal
    is_expandable: bool = Field(False, description="More than one ownership row in the window")

class TopCostTableResponse(BaseModel):
    vehicle_id: str
    date_start: date
    date_end: date
    top_n: int = Field(..., description="Requested rows (0 = all)")
    rows: list[CostPositionResponse]
    status: ResultStatusLiteral
    error: str | None = None


# =============================================================================
# NEW INVESTMENTS
# =============================================================================

class NewInvestmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    project_id: str
    cost: Decimal = Field(..., description="Cost deployed in the window")
    first_entry: Decimal | None = Field(None, description="Lowest positive entry valuation")
    weighted_valuation: Decimal | None = Field(None, description="Cost-weighted entry valuation")
    asset_classes: list[str]
    has_multiple_asset_classes: bool


class NewInvestmentsResponse(BaseModel):
    vehicle_id: str
    date_start: date
    date_end: date
    ownership_type: str = Field(..., description="Established, Top Up or All")
    rows: list[NewInvestmentResponse]
    total_cost: Decimal
    status: ResultStatusLiteral
    error: str | None = None


class InvestmentDatesResponse(BaseModel):
    """Dates with Established / Top Up activity, newest first."""

    vehicle_id: str
    dates: list[date]
    status: ResultStatusLiteral
    error: str | None = None


# =============================================================================
# DRILL-DOWNS
# =============================================================================

class CostEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    ownership_id: str | None = None
    asset_class: str
    ownership_type: str
    cost: Decimal
    date_reported: date


class CostEntriesResponse(BaseModel):
    """Ownership rows behind one top cost position, oldest first."""

    vehicle_id: str
    project_id: str
    date_start: date
    date_end: date
    rows: list[CostEntryResponse]
    total_cost: Decimal
    status: ResultStatusLiteral
    error: str | None = None


class NewInvestmentAssetResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    asset_class: str
    cost: Decimal
    outcome_type: str | None = Field(None, description="Greatest outcome type reported")


class NewInvestmentBreakdownResponse(BaseModel):
    vehicle_id: str
    project_id: str
    date_start: date
    date_end: date
    ownership_type: str
    rows: list[NewInvestmentAssetResponse]
    status: ResultStatusLiteral
    error: str | None = None


class OutcomeCostResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    outcome_type: str
    established_cost: Decimal
    top_up_cost: Decimal
    total_cost: Decimal


class NewInvestmentChartResponse(BaseModel):
    """Entry cost per outcome type, largest Established cost first."""

    vehicle_id: str
    date_start: date
    date_end: date
    rows: list[OutcomeCostResponse]
    status: ResultStatusLiteral
    error: str | None = None

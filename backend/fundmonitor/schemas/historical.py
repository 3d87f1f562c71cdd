# backend/fundmonitor/schemas/historical.py
"""
Pydantic schemas for historical performance rollups.

Rollup ratios (`_pct`, tvpi, dpi) are fractions, not 0-100 percentages.
"""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from fundmonitor.schemas.soi import ResultStatusLiteral


class PerformanceRowResponse(BaseModel):
    """One period of a rollup, or the TOTAL row."""

    model_config = ConfigDict(from_attributes=True)

    period: str = Field(..., description="Period label (e.g., 'Q3 2025', '2025 H1', 'TOTAL')")
    period_start: date
    period_end: date

    # Deployment
    deployment: Decimal = Field(..., description="Net cost deployed in the period")
    cumulative_deployment: Decimal = Field(..., description="Running deployment total")
    deployment_pct: Decimal = Field(..., description="Share of total deployment (fraction)")

    # Flows
    capital_calls: Decimal
    capital_calls_pct: Decimal
    distributions: Decimal
    distributions_pct: Decimal

    # Fund metrics
    nav: Decimal | None = Field(None, description="Latest NAV reported in the period")
    tvpi: Decimal | None = Field(None, description="Latest TVPI (maximum on the TOTAL row)")
    dpi: Decimal | None = Field(None, description="Latest DPI (maximum on the TOTAL row)")

    explanation: str = ""
    is_total: bool = False


class HistoricalPerformanceResponse(BaseModel):
    vehicle_id: str
    tbv_vehicle_id: str
    tbv_fund: str | None = None
    period_type: str = Field(..., description="Yearly, Half-Yearly or Quarterly")
    start_date: date
    end_date: date
    rows: list[PerformanceRowResponse]
    status: ResultStatusLiteral
    error: str | None = None


class FundsPerformanceResponse(BaseModel):
    """Rollups for every TBV fund of a vehicle, in fund order."""

    vehicle_id: str
    period_type: str
    start_date: date
    end_date: date
    funds: list[HistoricalPerformanceResponse]
    status: ResultStatusLiteral
    error: str | None = None

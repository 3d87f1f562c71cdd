# backend/fundmonitor/services/performance/types.py
"""
Internal data types for the Performance Engine.

These dataclasses are used internally by the performance calculators.
They are NOT Pydantic schemas - those are defined in fundmonitor/schemas/
for API serialization.

Design Principles:
- Immutable where possible (frozen=True for value objects)
- Use Decimal for ALL financial values (never float)
- Undefined metrics are None, never 0
- `_percentage` fields are on a 0-100 scale, `_pct` fields are fractions
- Every report result carries a status so "no data" and "source failed"
  can be told apart

Type Hierarchy:
    PeriodType / ResultStatus   - Enums
    Period                      - One calendar bucket of the spine
    CostBasisGroup              - Aggregated cost deltas for one key
    Position                    - Cost + market value + metrics for one key
    PortfolioSummary            - Totals and portfolio-level returns
    PositionTable               - (rows, long tail, summary) report
    AssetBreakdown              - Positions of one project by asset class
    CostPosition / TopCostTable - Windowed cost with ownership-type split
    NewInvestment / NewInvestmentsTable
    InvestmentDates
    MoicBucketRow / MoicBucketTable
    PerformanceRow              - One rollup period (or the TOTAL row)
    HistoricalPerformance       - Rollup for one vehicle/TBV fund pair
    FundsPerformance            - Rollups for every TBV fund of a vehicle
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from fundmonitor.services.constants import ZERO
from fundmonitor.services.exceptions import InvalidPeriodTypeError
from fundmonitor.services.performance.returns import calculate_moic


# =============================================================================
# ENUMS
# =============================================================================

class PeriodType(str, enum.Enum):
    YEARLY = "Yearly"
    HALF_YEARLY = "Half-Yearly"
    QUARTERLY = "Quarterly"

    @classmethod
    def parse(cls, value: str | PeriodType) -> PeriodType:
        """
        Resolve a cadence name, case-insensitively.

        "Half Yearly" (with a space) is accepted as an alias of Half-Yearly.

        Raises:
            InvalidPeriodTypeError: If the value names no known cadence
        """
        if isinstance(value, cls):
            return value

        normalized = str(value).strip().lower().replace(" ", "-")
        for member in cls:
            if member.value.lower() == normalized:
                return member
        raise InvalidPeriodTypeError(str(value))


class ResultStatus(str, enum.Enum):
    """
    Outcome of a report computation.

    OK              - Records found and metrics computed
    EMPTY           - No records in scope; zero-valued result
    UPSTREAM_ERROR  - The record source failed; result is empty and must
                      not be read as "no data"
    """
    OK = "ok"
    EMPTY = "empty"
    UPSTREAM_ERROR = "upstream_error"


# =============================================================================
# PERIODS
# =============================================================================

@dataclass(frozen=True)
class Period:
    """One calendar bucket, inclusive on both ends."""

    label: str
    start_date: date
    end_date: date

    def contains(self, value: date) -> bool:
        return self.start_date <= value <= self.end_date


# =============================================================================
# COST BASIS
# =============================================================================

@dataclass(frozen=True)
class CostBasisGroup:
    """
    Cost deltas aggregated for one project (or project + asset class).

    Attributes:
        project_id: Project key
        asset_class: Asset class key, or None when grouped by project only
        cost: Σ delta_cost
        first_entry: Lowest positive entry valuation seen (None if none)
        weighted_valuation: Cost-weighted entry valuation over Established /
            Top Up rows with a positive valuation (None if their cost <= 0)
        established_cost: Σ delta_cost of Established rows
        top_up_cost: Σ delta_cost of Top Up rows
        divested_cost: Σ delta_cost of rows whose type mentions "divested"
        asset_classes: Distinct reported asset classes, sorted (missing ones
            are not counted)
        outcome_types: Distinct reported outcome types, sorted
        record_count: Number of contributing ownership rows
    """

    project_id: str
    asset_class: str | None
    cost: Decimal
    first_entry: Decimal | None = None
    weighted_valuation: Decimal | None = None
    established_cost: Decimal = ZERO
    top_up_cost: Decimal = ZERO
    divested_cost: Decimal = ZERO
    asset_classes: tuple[str, ...] = ()
    outcome_types: tuple[str, ...] = ()
    record_count: int = 0


# =============================================================================
# POSITIONS
# =============================================================================

@dataclass
class Position:
    """
    Cost and market value of one project (optionally one asset class).

    Mutable: return metrics and percentage columns are filled in after the
    join. A long-tail row is a Position with is_long_tail=True whose
    project_id holds its display label.
    """

    project_id: str
    asset_class: str | None = None
    cost: Decimal = ZERO
    realized_mv: Decimal = ZERO
    unrealized_mv: Decimal = ZERO
    first_entry: Decimal | None = None
    weighted_valuation: Decimal | None = None

    itd: Decimal | None = None
    qtd: Decimal | None = None

    cost_percentage: Decimal | None = None
    realized_percentage: Decimal | None = None
    unrealized_percentage: Decimal | None = None
    mv_percentage: Decimal | None = None

    is_long_tail: bool = False
    is_high_moic_exception: bool = False
    has_asset_breakdown: bool = False
    position_count: int = 1
    record_count: int = 0

    @property
    def total_mv(self) -> Decimal:
        return self.realized_mv + self.unrealized_mv

    @property
    def is_expandable(self) -> bool:
        """More than one ownership row sits behind the cost."""
        return self.record_count > 1

    @property
    def moic(self) -> Decimal | None:
        """None when cost <= 0."""
        return calculate_moic(self.total_mv, self.cost)


@dataclass(frozen=True)
class PortfolioSummary:
    """
    Totals over every position in scope (displayed or in the long tail).

    portfolio_itd / portfolio_qtd are MV-weighted averages of the position
    values; ITD falls back to (total_mv - total_cost) / total_cost.
    """

    total_positions: int = 0
    total_cost: Decimal = ZERO
    total_realized_mv: Decimal = ZERO
    total_unrealized_mv: Decimal = ZERO
    total_mv: Decimal = ZERO
    portfolio_moic: Decimal | None = None
    portfolio_itd: Decimal | None = None
    portfolio_qtd: Decimal | None = None
    equity_cost: Decimal = ZERO
    equity_cost_percentage: Decimal = ZERO
    tokens_cost: Decimal = ZERO
    tokens_cost_percentage: Decimal = ZERO
    others_cost: Decimal = ZERO
    others_cost_percentage: Decimal = ZERO


@dataclass
class PositionTable:
    """
    Ranked positions with the long-tail row and summary.

    Used by the schedule of investments (cost-ranked, cumulative cost) and by
    the Top-MV monitoring table (MV-ranked, windowed cost).
    """

    vehicle_id: str
    as_of_date: date
    top_n: int
    rows: list[Position] = field(default_factory=list)
    long_tail: Position | None = None
    summary: PortfolioSummary = field(default_factory=PortfolioSummary)
    date_start: date | None = None
    date_end: date | None = None
    status: ResultStatus = ResultStatus.OK
    error: str | None = None


@dataclass
class AssetBreakdown:
    """
    Positions of one project, one per asset class.

    date_start / date_end are set when the cost is windowed (Top-MV
    drill-down) and left None for cumulative cost (schedule of investments).
    """

    vehicle_id: str
    project_id: str
    as_of_date: date
    rows: list[Position] = field(default_factory=list)
    date_start: date | None = None
    date_end: date | None = None
    status: ResultStatus = ResultStatus.OK
    error: str | None = None


# =============================================================================
# MONITORING TABLES
# =============================================================================

@dataclass(frozen=True)
class CostPosition:
    """
    Windowed cost of one project split by ownership type.

    cost_percentage is relative to the table total; the other percentages
    are relative to the row's own cost.
    """

    project_id: str
    cost: Decimal
    cost_percentage: Decimal
    established_cost: Decimal
    established_percentage: Decimal
    top_up_cost: Decimal
    top_up_percentage: Decimal
    divested_cost: Decimal
    divested_percentage: Decimal
    record_count: int = 0

    @property
    def is_expandable(self) -> bool:
        return self.record_count > 1


@dataclass
class TopCostTable:
    vehicle_id: str
    date_start: date
    date_end: date
    top_n: int
    rows: list[CostPosition] = field(default_factory=list)
    status: ResultStatus = ResultStatus.OK
    error: str | None = None


@dataclass(frozen=True)
class NewInvestment:
    project_id: str
    cost: Decimal
    first_entry: Decimal | None
    weighted_valuation: Decimal | None
    asset_classes: tuple[str, ...]

    @property
    def has_multiple_asset_classes(self) -> bool:
        return len(self.asset_classes) > 1


@dataclass
class NewInvestmentsTable:
    vehicle_id: str
    date_start: date
    date_end: date
    ownership_type: str
    rows: list[NewInvestment] = field(default_factory=list)
    total_cost: Decimal = ZERO
    status: ResultStatus = ResultStatus.OK
    error: str | None = None


@dataclass
class InvestmentDates:
    vehicle_id: str
    dates: list[date] = field(default_factory=list)
    status: ResultStatus = ResultStatus.OK
    error: str | None = None


@dataclass(frozen=True)
class CostEntry:
    """One ownership row behind a Top-Cost position."""

    ownership_id: str | None
    asset_class: str
    ownership_type: str
    cost: Decimal
    date_reported: date


@dataclass
class CostEntriesTable:
    """Ownership rows of one project inside a window, oldest first."""

    vehicle_id: str
    project_id: str
    date_start: date
    date_end: date
    rows: list[CostEntry] = field(default_factory=list)
    total_cost: Decimal = ZERO
    status: ResultStatus = ResultStatus.OK
    error: str | None = None


@dataclass(frozen=True)
class NewInvestmentAsset:
    asset_class: str
    cost: Decimal
    outcome_type: str | None = None


@dataclass
class NewInvestmentBreakdown:
    vehicle_id: str
    project_id: str
    date_start: date
    date_end: date
    ownership_type: str
    rows: list[NewInvestmentAsset] = field(default_factory=list)
    status: ResultStatus = ResultStatus.OK
    error: str | None = None


@dataclass(frozen=True)
class OutcomeCost:
    """Entry cost of one outcome type, split into Established and Top Up."""

    outcome_type: str
    established_cost: Decimal = ZERO
    top_up_cost: Decimal = ZERO

    @property
    def total_cost(self) -> Decimal:
        return self.established_cost + self.top_up_cost


@dataclass
class NewInvestmentChart:
    vehicle_id: str
    date_start: date
    date_end: date
    rows: list[OutcomeCost] = field(default_factory=list)
    status: ResultStatus = ResultStatus.OK
    error: str | None = None


@dataclass
class MoicBucketRow:
    """Projects sharing a MOIC bucket, with asset-class cost split."""

    bucket: str
    project_count: int = 0
    project_percentage: Decimal = ZERO
    cost: Decimal = ZERO
    equity_cost: Decimal = ZERO
    tokens_cost: Decimal = ZERO
    others_cost: Decimal = ZERO
    realized_mv: Decimal = ZERO
    unrealized_mv: Decimal = ZERO
    project_ids: list[str] = field(default_factory=list)

    @property
    def total_mv(self) -> Decimal:
        return self.realized_mv + self.unrealized_mv

    @property
    def moic(self) -> Decimal | None:
        return calculate_moic(self.total_mv, self.cost)


@dataclass
class MoicBucketTable:
    vehicle_id: str
    as_of_date: date
    rows: list[MoicBucketRow] = field(default_factory=list)
    status: ResultStatus = ResultStatus.OK
    error: str | None = None


# =============================================================================
# PERIOD ROLLUPS
# =============================================================================

@dataclass(frozen=True)
class PerformanceRow:
    """
    One period of the rollup, or the synthetic TOTAL row (is_total=True).

    deployment is the period's own net deployment; cumulative_deployment is
    the running sum in spine order. `_pct` fields are fractions of the grand
    total and are all 1 on the TOTAL row.
    """

    period: str
    period_start: date
    period_end: date
    deployment: Decimal
    cumulative_deployment: Decimal
    deployment_pct: Decimal
    capital_calls: Decimal
    capital_calls_pct: Decimal
    distributions: Decimal
    distributions_pct: Decimal
    nav: Decimal | None = None
    tvpi: Decimal | None = None
    dpi: Decimal | None = None
    explanation: str = ""
    is_total: bool = False


@dataclass
class HistoricalPerformance:
    vehicle_id: str
    tbv_vehicle_id: str
    period_type: PeriodType
    start_date: date
    end_date: date
    rows: list[PerformanceRow] = field(default_factory=list)
    tbv_fund: str | None = None
    status: ResultStatus = ResultStatus.OK
    error: str | None = None


@dataclass
class FundsPerformance:
    vehicle_id: str
    period_type: PeriodType
    start_date: date
    end_date: date
    funds: list[HistoricalPerformance] = field(default_factory=list)
    status: ResultStatus = ResultStatus.OK
    error: str | None = None

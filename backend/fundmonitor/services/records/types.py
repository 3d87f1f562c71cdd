# backend/fundmonitor/services/records/types.py
"""
Raw record types delivered by a RecordSource.

These are immutable facts, NOT ORM models and NOT API schemas. A source maps
its storage rows into these before the engine sees them.

Design Principles:
- frozen=True: records are never modified after retrieval
- Decimal for ALL money values and multiples
- None means "not reported", never zero

Type Hierarchy:
    OwnershipDelta       - Signed cost movement for a project
    MarketValueSnapshot  - Point-in-time realized/unrealized MV
    FlowEvent            - Capital call / distribution of a TBV vehicle
    NavPoint             - Reported NAV of a TBV vehicle
    PerformancePoint     - Reported TVPI/DPI of a TBV vehicle
    TbvFund              - Vehicle -> TBV fund link
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from fundmonitor.services.constants import (
    ZERO,
    EXCLUDED_OUTCOME_TYPE,
    EXCLUDED_PROJECT_ID,
    EXCLUDED_MV_ASSET_CLASSES,
)


@dataclass(frozen=True)
class OwnershipDelta:
    """
    One signed cost movement.

    Attributes:
        vehicle_id: Investing vehicle
        project_id: Portfolio company / project
        date_reported: Date the movement was booked
        delta_cost: Signed cost change (negative for divestments)
        asset_class: "Equity", "Tokens", ... (None if unknown)
        ownership_type: "Established", "Top Up", "Divested", ...
        outcome_type: Outcome tag; "Cash" rows are not investments
        overall_valuation: Round valuation at entry, if reported
        ownership_id: Source row identifier, if any
    """

    vehicle_id: str
    project_id: str
    date_reported: date
    delta_cost: Decimal
    asset_class: str | None = None
    ownership_type: str | None = None
    outcome_type: str | None = None
    overall_valuation: Decimal | None = None
    ownership_id: str | None = None

    @property
    def is_cost_eligible(self) -> bool:
        """False for cash sweeps and the residual 'Other Assets' project."""
        return (
            self.outcome_type != EXCLUDED_OUTCOME_TYPE
            and self.project_id != EXCLUDED_PROJECT_ID
        )


@dataclass(frozen=True)
class MarketValueSnapshot:
    """Market value of a project/asset class as of portfolio_date."""

    vehicle_id: str
    project_id: str
    portfolio_date: date
    asset_class: str | None = None
    unrealized_market_value: Decimal | None = None
    realized_market_value: Decimal | None = None

    @property
    def unrealized_mv(self) -> Decimal:
        return self.unrealized_market_value if self.unrealized_market_value is not None else ZERO

    @property
    def realized_mv(self) -> Decimal:
        return self.realized_market_value if self.realized_market_value is not None else ZERO

    @property
    def total_mv(self) -> Decimal:
        return self.unrealized_mv + self.realized_mv

    @property
    def is_valuation_eligible(self) -> bool:
        """False for flow, NAV adjustment and cash bookkeeping rows."""
        return (
            self.asset_class not in EXCLUDED_MV_ASSET_CLASSES
            and self.project_id != EXCLUDED_PROJECT_ID
        )


@dataclass(frozen=True)
class FlowEvent:
    tbv_vehicle_id: str
    flow_date: date
    flow_type: str
    flow_amount: Decimal


@dataclass(frozen=True)
class NavPoint:
    tbv_vehicle_id: str
    date_reported: date
    nav: Decimal | None = None


@dataclass(frozen=True)
class PerformancePoint:
    tbv_vehicle_id: str
    date_reported: date
    tvpi: Decimal | None = None
    dpi: Decimal | None = None


@dataclass(frozen=True)
class TbvFund:
    tbv_fund: str
    tbv_vehicle_id: str

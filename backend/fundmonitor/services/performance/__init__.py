# backend/fundmonitor/services/performance/__init__.py
"""
Performance Engine Package.

This package turns raw ownership, market value, flow and NAV records into
investment reports:
- Schedule of investments (cost basis, MOIC, ITD, QTD, long tail)
- Monitoring tables (top market value, top cost, new investments) and
  their per-project drill-downs
- MOIC bucket distribution
- Historical period rollups (deployment, capital calls, distributions,
  NAV, TVPI, DPI)

Architecture:
    performance/
    ├── __init__.py              # This file - package exports
    ├── types.py                 # Data classes for results
    ├── returns.py               # Ratio primitives (MOIC, ITD, QTD, averages)
    ├── calculators.py           # CostBasisAggregator, MarketValueJoiner
    ├── metrics.py               # PerformanceMetricsCalculator, MOIC buckets
    ├── bucketing.py             # TopNBucketizer (top N + long tail)
    ├── periods.py               # PeriodSpineGenerator
    ├── rollup.py                # PeriodRollupCalculator
    └── service.py               # PerformanceService (orchestrator)

Usage:
    from fundmonitor.services.performance import PerformanceService

    service = PerformanceService()

    table = service.get_schedule_of_investments(
        source=source,
        vehicle_id="V1",
        portfolio_date=date(2025, 3, 31),
        top_n=50,
    )
    print(f"MOIC: {table.summary.portfolio_moic}")

    history = service.get_historical_performance(
        source, "V1", "TBV-1", date(2024, 1, 1), date(2024, 12, 31), "Quarterly"
    )

Data Flow:
    RecordSource (ownership deltas, MV snapshots, flows, NAV, TVPI/DPI)
        ↓
    ┌──────────────────────────────────────────────┐
    │              PerformanceService              │
    │  ┌──────────────────┐  ┌──────────────────┐  │
    │  │ CostBasis        │  │ PeriodSpine      │  │
    │  │ Aggregator       │  │ Generator        │  │
    │  │       ↓          │  │       ↓          │  │
    │  │ MarketValue      │  │ PeriodRollup     │  │
    │  │ Joiner           │  │ Calculator       │  │
    │  │       ↓          │  └──────────────────┘  │
    │  │ Metrics → TopN   │                        │
    │  └──────────────────┘                        │
    └──────────────────────────────────────────────┘
        ↓
    PositionTable / HistoricalPerformance / ...
"""

from fundmonitor.services.performance.bucketing import TopNBucketizer
# Calculators (for testing / direct usage)
from fundmonitor.services.performance.calculators import (
    CostBasisAggregator,
    MarketValueJoiner,
)
from fundmonitor.services.performance.metrics import (
    PerformanceMetricsCalculator,
    classify_moic_bucket,
    MOIC_BUCKET_ORDER,
)
from fundmonitor.services.performance.periods import (
    PeriodSpineGenerator,
    format_period_label,
)
from fundmonitor.services.performance.returns import (
    calculate_moic,
    calculate_itd,
    calculate_qtd,
)
from fundmonitor.services.performance.rollup import PeriodRollupCalculator
# Main service
from fundmonitor.services.performance.service import PerformanceService
# Types
from fundmonitor.services.performance.types import (
    PeriodType,
    ResultStatus,
    Period,
    CostBasisGroup,
    Position,
    PortfolioSummary,
    PositionTable,
    AssetBreakdown,
    CostPosition,
    TopCostTable,
    NewInvestment,
    NewInvestmentsTable,
    InvestmentDates,
    CostEntry,
    CostEntriesTable,
    NewInvestmentAsset,
    NewInvestmentBreakdown,
    OutcomeCost,
    NewInvestmentChart,
    MoicBucketRow,
    MoicBucketTable,
    PerformanceRow,
    HistoricalPerformance,
    FundsPerformance,
)

__all__ = [
    # Service
    "PerformanceService",
    # Calculators
    "CostBasisAggregator",
    "MarketValueJoiner",
    "PerformanceMetricsCalculator",
    "TopNBucketizer",
    "PeriodSpineGenerator",
    "PeriodRollupCalculator",
    # Functions
    "classify_moic_bucket",
    "format_period_label",
    "calculate_moic",
    "calculate_itd",
    "calculate_qtd",
    "MOIC_BUCKET_ORDER",
    # Types
    "PeriodType",
    "ResultStatus",
    "Period",
    "CostBasisGroup",
    "Position",
    "PortfolioSummary",
    "PositionTable",
    "AssetBreakdown",
    "CostPosition",
    "TopCostTable",
    "NewInvestment",
    "NewInvestmentsTable",
    "InvestmentDates",
    "CostEntry",
    "CostEntriesTable",
    "NewInvestmentAsset",
    "NewInvestmentBreakdown",
    "OutcomeCost",
    "NewInvestmentChart",
    "MoicBucketRow",
    "MoicBucketTable",
    "PerformanceRow",
    "HistoricalPerformance",
    "FundsPerformance",
]

# backend/fundmonitor/schemas/__init__.py
"""
Pydantic schemas for API responses.

This package contains all Pydantic schemas organized by domain:
- errors: Error response formats
- soi: Schedule of investments, asset breakdown, MOIC buckets
- monitoring: Top cost, new investments, investment dates, drill-downs
- historical: Period rollups per TBV fund

Usage:
    from fundmonitor.schemas import PositionTableResponse
    from fundmonitor.schemas import HistoricalPerformanceResponse
    from fundmonitor.schemas import ErrorDetail
"""

from fundmonitor.schemas.errors import (
    ErrorDetail,
    ValidationErrorDetail,
    ValidationIssue,
)
from fundmonitor.schemas.historical import (
    PerformanceRowResponse,
    HistoricalPerformanceResponse,
    FundsPerformanceResponse,
)
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
from fundmonitor.schemas.soi import (
    PositionResponse,
    PortfolioSummaryResponse,
    PositionTableResponse,
    AssetBreakdownResponse,
    MoicBucketResponse,
    MoicBucketTableResponse,
)

__all__ = [
    # Errors
    "ErrorDetail",
    "ValidationErrorDetail",
    "ValidationIssue",
    # Schedule of investments
    "PositionResponse",
    "PortfolioSummaryResponse",
    "PositionTableResponse",
    "AssetBreakdownResponse",
    "MoicBucketResponse",
    "MoicBucketTableResponse",
    # Monitoring
    "CostPositionResponse",
    "TopCostTableResponse",
    "NewInvestmentResponse",
    "NewInvestmentsResponse",
    "InvestmentDatesResponse",
    "CostEntryResponse",
    "CostEntriesResponse",
    "NewInvestmentAssetResponse",
    "NewInvestmentBreakdownResponse",
    "OutcomeCostResponse",
    "NewInvestmentChartResponse",
    # Historical
    "PerformanceRowResponse",
    "HistoricalPerformanceResponse",
    "FundsPerformanceResponse",
]

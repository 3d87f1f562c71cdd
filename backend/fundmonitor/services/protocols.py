# backend/fundmonitor/services/protocols.py
"""
Protocol interfaces for service dependency injection.

Using typing.Protocol enables structural subtyping:
- SqlRecordSource satisfies RecordSource without inheriting from it
- Test doubles (in-memory, failing) work without explicit inheritance
- The engine never depends on how records are stored
"""

from __future__ import annotations

from typing import Protocol, TYPE_CHECKING

if TYPE_CHECKING:
    from fundmonitor.services.records.query import RecordQuery
    from fundmonitor.services.records.types import (
        OwnershipDelta,
        MarketValueSnapshot,
        FlowEvent,
        NavPoint,
        PerformancePoint,
        TbvFund,
    )


class RecordSource(Protocol):
    """
    Read-only access to the raw record collections.

    Each fetch applies the query's filters and returns immutable records in
    no particular order. Implementations raise RecordSourceError when the
    underlying store cannot be read; an empty list always means "no data".

    For flow, NAV and performance records, `query.vehicle_id` is matched
    against the TBV vehicle id.
    """

    def fetch_ownership_deltas(self, query: RecordQuery) -> list[OwnershipDelta]:
        ...

    def fetch_market_values(self, query: RecordQuery) -> list[MarketValueSnapshot]:
        ...

    def fetch_flows(self, query: RecordQuery) -> list[FlowEvent]:
        ...

    def fetch_nav_points(self, query: RecordQuery) -> list[NavPoint]:
        ...

    def fetch_fund_performance(self, query: RecordQuery) -> list[PerformancePoint]:
        ...

    def fetch_tbv_funds(self, vehicle_id: str) -> list[TbvFund]:
        ...

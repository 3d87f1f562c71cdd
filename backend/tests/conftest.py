# backend/tests/conftest.py
"""
Pytest configuration and fixtures.

This module provides shared fixtures for all tests:
- Database session fixtures (in-memory SQLite)
- In-memory and failing record sources
- Sample record factories
"""

import os

# Settings are read at import time; tests always run against SQLite
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

from datetime import date
from decimal import Decimal
from typing import Iterator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from fundmonitor.models import Base
from fundmonitor.services.exceptions import RecordSourceError
from fundmonitor.services.performance import PerformanceService
from fundmonitor.services.records import (
    RecordQuery,
    OwnershipDelta,
    MarketValueSnapshot,
    FlowEvent,
    NavPoint,
    PerformancePoint,
    TbvFund,
)


# =============================================================================
# DATABASE FIXTURES
# =============================================================================

@pytest.fixture(scope="function")
def db_engine():
    """Create an in-memory SQLite database engine for testing."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)


@pytest.fixture(scope="function")
def db(db_engine) -> Iterator[Session]:
    """Create a database session for testing."""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


# =============================================================================
# RECORD SOURCES
# =============================================================================

class InMemoryRecordSource:
    """
    RecordSource over plain lists, filtering with the RecordQuery predicates.

    Records queries it receives so tests can assert on what was fetched.
    """

    def __init__(
        self,
        deltas: list[OwnershipDelta] | None = None,
        snapshots: list[MarketValueSnapshot] | None = None,
        flows: list[FlowEvent] | None = None,
        nav_points: list[NavPoint] | None = None,
        performance_points: list[PerformancePoint] | None = None,
        funds: dict[str, list[TbvFund]] | None = None,
    ):
        self.deltas = list(deltas or [])
        self.snapshots = list(snapshots or [])
        self.flows = list(flows or [])
        self.nav_points = list(nav_points or [])
        self.performance_points = list(performance_points or [])
        self.funds = dict(funds or {})
        self.queries: list[tuple[str, RecordQuery | str]] = []

    def fetch_ownership_deltas(self, query: RecordQuery) -> list[OwnershipDelta]:
        self.queries.append(("ownership", query))
        return [
            d for d in self.deltas
            if d.vehicle_id == query.vehicle_id
            and query.matches_date(d.date_reported)
            and query.matches_project(d.project_id)
            and query.matches_ownership_type(d.ownership_type)
        ]

    def fetch_market_values(self, query: RecordQuery) -> list[MarketValueSnapshot]:
        self.queries.append(("market_values", query))
        return [
            s for s in self.snapshots
            if s.vehicle_id == query.vehicle_id
            and query.matches_date(s.portfolio_date)
            and query.matches_project(s.project_id)
        ]

    def fetch_flows(self, query: RecordQuery) -> list[FlowEvent]:
        self.queries.append(("flows", query))
        return [
            f for f in self.flows
            if f.tbv_vehicle_id == query.vehicle_id and query.matches_date(f.flow_date)
        ]

    def fetch_nav_points(self, query: RecordQuery) -> list[NavPoint]:
        self.queries.append(("nav", query))
        return [
            p for p in self.nav_points
            if p.tbv_vehicle_id == query.vehicle_id and query.matches_date(p.date_reported)
        ]

    def fetch_fund_performance(self, query: RecordQuery) -> list[PerformancePoint]:
        self.queries.append(("performance", query))
        return [
            p for p in self.performance_points
            if p.tbv_vehicle_id == query.vehicle_id and query.matches_date(p.date_reported)
        ]

    def fetch_tbv_funds(self, vehicle_id: str) -> list[TbvFund]:
        self.queries.append(("tbv_funds", vehicle_id))
        return list(self.funds.get(vehicle_id, []))


class FailingRecordSource(InMemoryRecordSource):
    """
    Record source whose fetches raise RecordSourceError.

    Pass record kinds to fail only those ("ownership", "market_values",
    "flows", "nav", "performance", "tbv_funds"); by default all fail.
    """

    ALL_KINDS = ("ownership", "market_values", "flows", "nav", "performance", "tbv_funds")

    def __init__(self, *fail_kinds: str, **records):
        super().__init__(**records)
        self.fail_kinds = set(fail_kinds or self.ALL_KINDS)

    def _maybe_fail(self, kind: str) -> None:
        if kind in self.fail_kinds:
            raise RecordSourceError(f"Could not read {kind} records", record_kind=kind)

    def fetch_ownership_deltas(self, query):
        self._maybe_fail("ownership")
        return super().fetch_ownership_deltas(query)

    def fetch_market_values(self, query):
        self._maybe_fail("market_values")
        return super().fetch_market_values(query)

    def fetch_flows(self, query):
        self._maybe_fail("flows")
        return super().fetch_flows(query)

    def fetch_nav_points(self, query):
        self._maybe_fail("nav")
        return super().fetch_nav_points(query)

    def fetch_fund_performance(self, query):
        self._maybe_fail("performance")
        return super().fetch_fund_performance(query)

    def fetch_tbv_funds(self, vehicle_id):
        self._maybe_fail("tbv_funds")
        return super().fetch_tbv_funds(vehicle_id)


@pytest.fixture
def service() -> PerformanceService:
    """A PerformanceService with default settings."""
    return PerformanceService()


# =============================================================================
# SAMPLE DATA FACTORIES
# =============================================================================

VEHICLE = "V1"
TBV_VEHICLE = "TBV-1"


def make_delta(
    project_id: str,
    date_reported: date,
    cost: str | Decimal,
    vehicle_id: str = VEHICLE,
    asset_class: str | None = "Equity",
    ownership_type: str | None = "Established",
    outcome_type: str | None = None,
    overall_valuation: str | Decimal | None = None,
    ownership_id: str | None = None,
) -> OwnershipDelta:
    """Create an OwnershipDelta with sensible defaults."""
    return OwnershipDelta(
        vehicle_id=vehicle_id,
        project_id=project_id,
        date_reported=date_reported,
        delta_cost=Decimal(cost),
        asset_class=asset_class,
        ownership_type=ownership_type,
        outcome_type=outcome_type,
        overall_valuation=Decimal(overall_valuation) if overall_valuation is not None else None,
        ownership_id=ownership_id,
    )


def make_snapshot(
    project_id: str,
    portfolio_date: date,
    unrealized: str | Decimal | None = "0",
    realized: str | Decimal | None = "0",
    vehicle_id: str = VEHICLE,
    asset_class: str | None = "Equity",
) -> MarketValueSnapshot:
    """Create a MarketValueSnapshot with sensible defaults."""
    return MarketValueSnapshot(
        vehicle_id=vehicle_id,
        project_id=project_id,
        portfolio_date=portfolio_date,
        asset_class=asset_class,
        unrealized_market_value=Decimal(unrealized) if unrealized is not None else None,
        realized_market_value=Decimal(realized) if realized is not None else None,
    )


def make_flow(
    flow_date: date,
    flow_type: str,
    amount: str | Decimal,
    tbv_vehicle_id: str = TBV_VEHICLE,
) -> FlowEvent:
    return FlowEvent(
        tbv_vehicle_id=tbv_vehicle_id,
        flow_date=flow_date,
        flow_type=flow_type,
        flow_amount=Decimal(amount),
    )


def make_nav(
    date_reported: date,
    nav: str | Decimal | None,
    tbv_vehicle_id: str = TBV_VEHICLE,
) -> NavPoint:
    return NavPoint(
        tbv_vehicle_id=tbv_vehicle_id,
        date_reported=date_reported,
        nav=Decimal(nav) if nav is not None else None,
    )


def make_performance(
    date_reported: date,
    tvpi: str | Decimal | None = None,
    dpi: str | Decimal | None = None,
    tbv_vehicle_id: str = TBV_VEHICLE,
) -> PerformancePoint:
    return PerformancePoint(
        tbv_vehicle_id=tbv_vehicle_id,
        date_reported=date_reported,
        tvpi=Decimal(tvpi) if tvpi is not None else None,
        dpi=Decimal(dpi) if dpi is not None else None,
    )

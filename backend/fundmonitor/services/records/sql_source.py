# backend/fundmonitor/services/records/sql_source.py
"""
SQLAlchemy-backed RecordSource.

Translates a RecordQuery into bound select() clauses against the ORM models
and maps rows into immutable record types. No SQL text is ever assembled from
caller input.

Usage:
    source = SqlRecordSource(db)
    deltas = source.fetch_ownership_deltas(
        RecordQuery.for_vehicle("V1").as_of(date(2025, 3, 31))
    )

Errors:
    Any SQLAlchemyError is re-raised as RecordSourceError so the service can
    report an upstream failure instead of an empty result.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import select, and_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fundmonitor.models import (
    OwnershipEntry,
    FundMarketValue,
    FundFlow,
    FundLedgerEntry,
    VehiclePerformance,
    FundClosing,
)
from fundmonitor.services.exceptions import RecordSourceError
from fundmonitor.services.records.query import RecordQuery
from fundmonitor.services.records.types import (
    OwnershipDelta,
    MarketValueSnapshot,
    FlowEvent,
    NavPoint,
    PerformancePoint,
    TbvFund,
)
from fundmonitor.services.constants import ZERO

logger = logging.getLogger(__name__)


def _date_conditions(query: RecordQuery, column: Any) -> list:
    """Inclusive date bounds as column comparisons."""
    if query.exact_date is not None:
        return [column == query.exact_date]

    conditions = []
    if query.start_date is not None:
        conditions.append(column >= query.start_date)
    if query.end_date is not None:
        conditions.append(column <= query.end_date)
    return conditions


class SqlRecordSource:
    """
    RecordSource over the fundmonitor ORM tables.

    One instance per request: it holds the request's session.
    """

    def __init__(self, db: Session) -> None:
        self._db = db

    # =========================================================================
    # FETCHES
    # =========================================================================

    def fetch_ownership_deltas(self, query: RecordQuery) -> list[OwnershipDelta]:
        conditions = [OwnershipEntry.vehicle_id == query.vehicle_id]
        conditions.extend(_date_conditions(query, OwnershipEntry.date_reported))
        if query.project_id is not None:
            conditions.append(OwnershipEntry.project_id == query.project_id)
        if query.ownership_types:
            conditions.append(OwnershipEntry.ownership_type.in_(query.ownership_types))

        stmt = select(OwnershipEntry).where(and_(*conditions))
        rows = self._scalars(stmt, "ownership")

        return [
            OwnershipDelta(
                vehicle_id=row.vehicle_id,
                project_id=row.project_id,
                date_reported=row.date_reported,
                delta_cost=row.delta_cost if row.delta_cost is not None else ZERO,
                asset_class=row.asset_class,
                ownership_type=row.ownership_type,
                outcome_type=row.outcome_type,
                overall_valuation=row.overall_valuation,
                ownership_id=row.ownership_id,
            )
            for row in rows
        ]

    def fetch_market_values(self, query: RecordQuery) -> list[MarketValueSnapshot]:
        conditions = [FundMarketValue.vehicle_id == query.vehicle_id]
        conditions.extend(_date_conditions(query, FundMarketValue.portfolio_date))
        if query.project_id is not None:
            conditions.append(FundMarketValue.project_id == query.project_id)

        stmt = select(FundMarketValue).where(and_(*conditions))
        rows = self._scalars(stmt, "market_values")

        return [
            MarketValueSnapshot(
                vehicle_id=row.vehicle_id,
                project_id=row.project_id,
                portfolio_date=row.portfolio_date,
                asset_class=row.asset_class,
                unrealized_market_value=row.unrealized_market_value,
                realized_market_value=row.realized_market_value,
            )
            for row in rows
        ]

    def fetch_flows(self, query: RecordQuery) -> list[FlowEvent]:
        conditions = [FundFlow.tbv_vehicle_id == query.vehicle_id]
        conditions.extend(_date_conditions(query, FundFlow.flow_date))

        stmt = select(FundFlow).where(and_(*conditions)).order_by(FundFlow.flow_date)
        rows = self._scalars(stmt, "flows")

        return [
            FlowEvent(
                tbv_vehicle_id=row.tbv_vehicle_id,
                flow_date=row.flow_date,
                flow_type=row.flow_type,
                flow_amount=row.flow_amount,
            )
            for row in rows
        ]

    def fetch_nav_points(self, query: RecordQuery) -> list[NavPoint]:
        conditions = [FundLedgerEntry.tbv_vehicle_id == query.vehicle_id]
        conditions.extend(_date_conditions(query, FundLedgerEntry.date_reported))

        stmt = (
            select(FundLedgerEntry)
            .where(and_(*conditions))
            .order_by(FundLedgerEntry.date_reported, FundLedgerEntry.id)
        )
        rows = self._scalars(stmt, "nav")

        return [
            NavPoint(
                tbv_vehicle_id=row.tbv_vehicle_id,
                date_reported=row.date_reported,
                nav=row.nav,
            )
            for row in rows
        ]

    def fetch_fund_performance(self, query: RecordQuery) -> list[PerformancePoint]:
        conditions = [VehiclePerformance.tbv_vehicle_id == query.vehicle_id]
        conditions.extend(_date_conditions(query, VehiclePerformance.date_reported))

        stmt = (
            select(VehiclePerformance)
            .where(and_(*conditions))
            .order_by(VehiclePerformance.date_reported, VehiclePerformance.id)
        )
        rows = self._scalars(stmt, "performance")

        return [
            PerformancePoint(
                tbv_vehicle_id=row.tbv_vehicle_id,
                date_reported=row.date_reported,
                tvpi=row.tvpi,
                dpi=row.dpi,
            )
            for row in rows
        ]

    def fetch_tbv_funds(self, vehicle_id: str) -> list[TbvFund]:
        stmt = (
            select(FundClosing.tbv_fund, FundClosing.tbv_vehicle_id)
            .where(
                and_(
                    FundClosing.vehicle_id == vehicle_id,
                    FundClosing.tbv_fund.is_not(None),
                    FundClosing.tbv_vehicle_id.is_not(None),
                )
            )
            .distinct()
            .order_by(FundClosing.tbv_fund)
        )
        try:
            rows = self._db.execute(stmt).all()
        except SQLAlchemyError as e:
            logger.error(f"Failed to read TBV funds for vehicle {vehicle_id}: {e}")
            raise RecordSourceError(
                f"Could not read TBV funds for vehicle {vehicle_id}",
                record_kind="tbv_funds",
            ) from e

        return [TbvFund(tbv_fund=row.tbv_fund, tbv_vehicle_id=row.tbv_vehicle_id) for row in rows]

    # =========================================================================
    # PRIVATE HELPERS
    # =========================================================================

    def _scalars(self, stmt, record_kind: str) -> list:
        try:
            rows = list(self._db.scalars(stmt).all())
        except SQLAlchemyError as e:
            logger.error(f"Failed to read {record_kind} records: {e}")
            raise RecordSourceError(
                f"Could not read {record_kind} records",
                record_kind=record_kind,
            ) from e

        logger.debug(f"Fetched {len(rows)} {record_kind} records")
        return rows

# backend/fundmonitor/services/performance/calculators.py
"""
Position-building calculators.

- CostBasisAggregator: Sums ownership deltas into cost groups, lists the
  rows behind a group and splits entry cost by outcome type
- MarketValueJoiner: Full-outer-joins cost groups with market value snapshots

Design Principles:
- Stateless (no instance state, pure functions of their inputs)
- Eligibility rules applied here, never by the caller: cash sweeps and the
  'Other Assets' project never reach a cost sum, bookkeeping MV rows never
  reach a join
- Empty input gives empty output; zero or negative cost never raises

Usage:
    aggregator = CostBasisAggregator()
    groups = aggregator.cumulative(deltas, as_of=date(2025, 3, 31))

    joiner = MarketValueJoiner()
    positions = joiner.join(groups, snapshots, portfolio_date=date(2025, 3, 31))
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from fundmonitor.services.constants import (
    ZERO,
    UNKNOWN_ASSET_CLASS,
    UNKNOWN_OUTCOME_TYPE,
    UNKNOWN_OWNERSHIP_TYPE,
    ENTRY_OWNERSHIP_TYPES,
    OWNERSHIP_ESTABLISHED,
    OWNERSHIP_TOP_UP,
    DIVESTED_MARKER,
)
from fundmonitor.services.records.types import OwnershipDelta, MarketValueSnapshot
from fundmonitor.services.performance.types import (
    CostBasisGroup,
    CostEntry,
    OutcomeCost,
    Position,
)

logger = logging.getLogger(__name__)


def asset_class_key(asset_class: str | None) -> str:
    """Asset class as reported, 'Unknown' when missing."""
    return asset_class if asset_class else UNKNOWN_ASSET_CLASS


# =============================================================================
# COST BASIS AGGREGATOR
# =============================================================================

@dataclass
class _CostAccumulator:
    cost: Decimal = ZERO
    established_cost: Decimal = ZERO
    top_up_cost: Decimal = ZERO
    divested_cost: Decimal = ZERO
    first_entry: Decimal | None = None
    valuation_weighted_sum: Decimal = ZERO
    valuation_weight: Decimal = ZERO
    asset_classes: set[str] = field(default_factory=set)
    outcome_types: set[str] = field(default_factory=set)
    record_count: int = 0

    def add(self, delta: OwnershipDelta) -> None:
        cost = delta.delta_cost
        self.cost += cost
        self.record_count += 1
        if delta.asset_class:
            self.asset_classes.add(delta.asset_class)
        if delta.outcome_type:
            self.outcome_types.add(delta.outcome_type)

        ownership_type = delta.ownership_type or ""
        if ownership_type == OWNERSHIP_ESTABLISHED:
            self.established_cost += cost
        elif ownership_type == OWNERSHIP_TOP_UP:
            self.top_up_cost += cost
        if DIVESTED_MARKER in ownership_type.lower():
            self.divested_cost += cost

        valuation = delta.overall_valuation
        if valuation is None or valuation <= ZERO:
            return

        if self.first_entry is None or valuation < self.first_entry:
            self.first_entry = valuation

        # Rows outside entry types are left out of both sides of the average
        if ownership_type in ENTRY_OWNERSHIP_TYPES:
            self.valuation_weighted_sum += valuation * cost
            self.valuation_weight += cost

    @property
    def weighted_valuation(self) -> Decimal | None:
        if self.valuation_weight <= ZERO:
            return None
        return self.valuation_weighted_sum / self.valuation_weight


class CostBasisAggregator:
    """
    Aggregates ownership deltas into cost groups.

    Two modes:
    - cumulative: Σ delta_cost with date_reported <= as_of (cost basis)
    - windowed:   Σ delta_cost with date_start <= date_reported <= date_end,
                  optionally restricted to some ownership types

    Groups are keyed by project_id, or by (project_id, asset_class) with a
    missing asset class reported as 'Unknown'. Output is sorted by cost
    descending, ties by project_id.
    """

    def cumulative(
            self,
            deltas: Iterable[OwnershipDelta],
            as_of: date,
            by_asset_class: bool = False,
    ) -> list[CostBasisGroup]:
        eligible = (
            delta for delta in deltas
            if delta.is_cost_eligible and delta.date_reported <= as_of
        )
        return self._aggregate(eligible, by_asset_class)

    def windowed(
            self,
            deltas: Iterable[OwnershipDelta],
            date_start: date,
            date_end: date,
            ownership_types: tuple[str, ...] = (),
            by_asset_class: bool = False,
    ) -> list[CostBasisGroup]:
        eligible = (
            delta for delta in deltas
            if delta.is_cost_eligible
            and date_start <= delta.date_reported <= date_end
            and (not ownership_types or delta.ownership_type in ownership_types)
        )
        return self._aggregate(eligible, by_asset_class)

    def total_by_asset_class(
            self,
            deltas: Iterable[OwnershipDelta],
            as_of: date,
            since: date | None = None,
    ) -> dict[str, Decimal]:
        """
        Eligible cost per asset class ('Unknown' when missing).

        Cumulative up to as_of, or windowed when `since` is given.
        """
        totals: dict[str, Decimal] = {}
        for delta in deltas:
            if not delta.is_cost_eligible or delta.date_reported > as_of:
                continue
            if since is not None and delta.date_reported < since:
                continue
            key = asset_class_key(delta.asset_class)
            totals[key] = totals.get(key, ZERO) + delta.delta_cost
        return totals

    def entries(
            self,
            deltas: Iterable[OwnershipDelta],
            date_start: date,
            date_end: date,
    ) -> list[CostEntry]:
        """Eligible ownership rows inside the window, oldest first."""
        rows = [
            CostEntry(
                ownership_id=delta.ownership_id,
                asset_class=asset_class_key(delta.asset_class),
                ownership_type=delta.ownership_type or UNKNOWN_OWNERSHIP_TYPE,
                cost=delta.delta_cost,
                date_reported=delta.date_reported,
            )
            for delta in deltas
            if delta.is_cost_eligible and date_start <= delta.date_reported <= date_end
        ]
        rows.sort(key=lambda r: r.date_reported)
        return rows

    def by_outcome_type(
            self,
            deltas: Iterable[OwnershipDelta],
            date_start: date,
            date_end: date,
    ) -> list[OutcomeCost]:
        """
        Windowed Established / Top Up cost per outcome type.

        A missing outcome type is reported as 'Unknown'. Rows are sorted by
        established cost, then top-up cost, both descending.
        """
        established: dict[str, Decimal] = {}
        top_up: dict[str, Decimal] = {}

        for delta in deltas:
            if not delta.is_cost_eligible or not date_start <= delta.date_reported <= date_end:
                continue
            if delta.ownership_type == OWNERSHIP_ESTABLISHED:
                bucket = established
            elif delta.ownership_type == OWNERSHIP_TOP_UP:
                bucket = top_up
            else:
                continue
            key = delta.outcome_type or UNKNOWN_OUTCOME_TYPE
            bucket[key] = bucket.get(key, ZERO) + delta.delta_cost

        rows = [
            OutcomeCost(
                outcome_type=key,
                established_cost=established.get(key, ZERO),
                top_up_cost=top_up.get(key, ZERO),
            )
            for key in established.keys() | top_up.keys()
        ]
        rows.sort(key=lambda r: (-r.established_cost, -r.top_up_cost, r.outcome_type))
        return rows

    def _aggregate(
            self,
            deltas: Iterable[OwnershipDelta],
            by_asset_class: bool,
    ) -> list[CostBasisGroup]:
        accumulators: dict[tuple[str, str | None], _CostAccumulator] = {}

        for delta in deltas:
            key = (
                delta.project_id,
                asset_class_key(delta.asset_class) if by_asset_class else None,
            )
            accumulators.setdefault(key, _CostAccumulator()).add(delta)

        groups = [
            CostBasisGroup(
                project_id=project_id,
                asset_class=asset_class,
                cost=acc.cost,
                first_entry=acc.first_entry,
                weighted_valuation=acc.weighted_valuation,
                established_cost=acc.established_cost,
                top_up_cost=acc.top_up_cost,
                divested_cost=acc.divested_cost,
                asset_classes=tuple(sorted(acc.asset_classes)),
                outcome_types=tuple(sorted(acc.outcome_types)),
                record_count=acc.record_count,
            )
            for (project_id, asset_class), acc in accumulators.items()
        ]
        groups.sort(key=lambda g: (-g.cost, g.project_id, g.asset_class or ""))
        return groups


# =============================================================================
# MARKET VALUE JOINER
# =============================================================================

class MarketValueJoiner:
    """
    Full outer join of cost groups with market value snapshots.

    Only snapshots at exactly `portfolio_date` take part, after dropping
    Flows / NAV Adjustment / Cash rows and the 'Other Assets' project.

    - Cost but no snapshot -> zero market value
    - Snapshot but no cost -> zero cost (kept: divested or lagging data)

    The join key must match the grouping of the cost groups: pass
    by_asset_class=True only with groups aggregated by asset class.
    """

    def join(
            self,
            groups: Iterable[CostBasisGroup],
            snapshots: Iterable[MarketValueSnapshot],
            portfolio_date: date,
            by_asset_class: bool = False,
    ) -> list[Position]:
        positions: dict[tuple[str, str | None], Position] = {}
        asset_classes: dict[str, set[str]] = {}

        for group in groups:
            key = (group.project_id, group.asset_class if by_asset_class else None)
            positions[key] = Position(
                project_id=group.project_id,
                asset_class=key[1],
                cost=group.cost,
                first_entry=group.first_entry,
                weighted_valuation=group.weighted_valuation,
                record_count=group.record_count,
            )
            asset_classes.setdefault(group.project_id, set()).update(group.asset_classes)

        skipped = 0
        for snapshot in snapshots:
            if snapshot.portfolio_date != portfolio_date or not snapshot.is_valuation_eligible:
                skipped += 1
                continue

            asset_class = asset_class_key(snapshot.asset_class)
            key = (snapshot.project_id, asset_class if by_asset_class else None)
            position = positions.get(key)
            if position is None:
                position = Position(project_id=snapshot.project_id, asset_class=key[1])
                positions[key] = position

            position.realized_mv += snapshot.realized_mv
            position.unrealized_mv += snapshot.unrealized_mv
            if snapshot.asset_class:
                asset_classes.setdefault(snapshot.project_id, set()).add(snapshot.asset_class)

        if skipped:
            logger.debug(f"Skipped {skipped} snapshots outside {portfolio_date} or ineligible")

        result = list(positions.values())
        for position in result:
            position.has_asset_breakdown = len(asset_classes.get(position.project_id, ())) > 1

        result.sort(key=lambda p: (-p.cost, p.project_id, p.asset_class or ""))
        return result

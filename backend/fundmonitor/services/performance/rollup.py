# backend/fundmonitor/services/performance/rollup.py
"""
Period rollups over a spine.

Maps each record onto the spine period containing its date and accumulates:
- deployment      += delta_cost            (eligible deltas adding capital)
- capital_calls   += |flow_amount|         (flow_type == 'Capital Called')
- distributions   += |flow_amount|         (flow_type == 'Distribution')
- nav, tvpi, dpi  =  latest non-null value in the period (last write wins)

Divestments (negative deltas) lower cost basis but are not deployment, so
the running cumulative deployment never decreases and every period share
stays within [0, 1].

Then derives the running cumulative deployment and each period's share of
the grand totals, and appends a TOTAL row:
- cumulative_deployment = grand total, every `_pct` = 1
- nav = latest non-null NAV across periods
- tvpi / dpi = MAXIMUM observed across periods (not the latest)

Periods are held in an ordered list built once from the spine; records are
located by binary search on period start dates. Records outside the spine
are ignored.
"""

from __future__ import annotations

import logging
from bisect import bisect_right
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from fundmonitor.services.constants import (
    ZERO,
    ONE,
    FLOW_CAPITAL_CALLED,
    FLOW_DISTRIBUTION,
    TOTAL_ROW_LABEL,
)
from fundmonitor.services.records.types import (
    OwnershipDelta,
    FlowEvent,
    NavPoint,
    PerformancePoint,
)
from fundmonitor.services.performance.returns import calculate_share
from fundmonitor.services.performance.types import Period, PerformanceRow

logger = logging.getLogger(__name__)


@dataclass
class PeriodAccumulator:
    """Running totals for one spine period."""

    deployment: Decimal = ZERO
    capital_calls: Decimal = ZERO
    distributions: Decimal = ZERO
    nav: Decimal | None = None
    tvpi: Decimal | None = None
    dpi: Decimal | None = None


class PeriodBuckets:
    """
    Ordered association from spine periods to their accumulators.

    Built once per rollup; iteration order is the spine order.
    """

    def __init__(self, spine: Sequence[Period]) -> None:
        self._entries: list[tuple[Period, PeriodAccumulator]] = [
            (period, PeriodAccumulator()) for period in spine
        ]
        self._starts: list[date] = [period.start_date for period in spine]

    def __iter__(self):
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def find(self, value: date) -> PeriodAccumulator | None:
        """Accumulator of the period containing the date, or None."""
        index = bisect_right(self._starts, value) - 1
        if index < 0:
            return None
        period, accumulator = self._entries[index]
        if not period.contains(value):
            return None
        return accumulator


class PeriodRollupCalculator:
    """Builds PerformanceRows for a spine from raw records."""

    def calculate(
            self,
            spine: Sequence[Period],
            deltas: Iterable[OwnershipDelta] = (),
            flows: Iterable[FlowEvent] = (),
            nav_points: Iterable[NavPoint] = (),
            performance_points: Iterable[PerformancePoint] = (),
            range_start: date | None = None,
            range_end: date | None = None,
    ) -> list[PerformanceRow]:
        """
        Roll records up onto the spine.

        Args:
            spine: Periods in chronological order
            deltas: Ownership deltas (ineligible and non-positive rows are skipped)
            flows: Flow events of the TBV vehicle
            nav_points: NAV records of the TBV vehicle
            performance_points: TVPI/DPI records of the TBV vehicle
            range_start: period_start of the TOTAL row (default: spine start)
            range_end: period_end of the TOTAL row (default: spine end)

        Returns:
            One row per period plus the TOTAL row; empty for an empty spine
        """
        if not spine:
            return []

        buckets = PeriodBuckets(spine)
        self._accumulate(buckets, deltas, flows, nav_points, performance_points)

        total_deployment = sum((acc.deployment for _, acc in buckets), ZERO)
        total_calls = sum((acc.capital_calls for _, acc in buckets), ZERO)
        total_distributions = sum((acc.distributions for _, acc in buckets), ZERO)

        rows: list[PerformanceRow] = []
        cumulative = ZERO
        latest_nav: Decimal | None = None
        max_tvpi: Decimal | None = None
        max_dpi: Decimal | None = None

        for period, acc in buckets:
            cumulative += acc.deployment

            if acc.nav is not None:
                latest_nav = acc.nav
            if acc.tvpi is not None:
                max_tvpi = acc.tvpi if max_tvpi is None else max(max_tvpi, acc.tvpi)
            if acc.dpi is not None:
                max_dpi = acc.dpi if max_dpi is None else max(max_dpi, acc.dpi)

            rows.append(
                PerformanceRow(
                    period=period.label,
                    period_start=period.start_date,
                    period_end=period.end_date,
                    deployment=acc.deployment,
                    cumulative_deployment=cumulative,
                    deployment_pct=calculate_share(acc.deployment, total_deployment),
                    capital_calls=acc.capital_calls,
                    capital_calls_pct=calculate_share(acc.capital_calls, total_calls),
                    distributions=acc.distributions,
                    distributions_pct=calculate_share(acc.distributions, total_distributions),
                    nav=acc.nav,
                    tvpi=acc.tvpi,
                    dpi=acc.dpi,
                )
            )

        rows.append(
            PerformanceRow(
                period=TOTAL_ROW_LABEL,
                period_start=range_start or spine[0].start_date,
                period_end=range_end or spine[-1].end_date,
                deployment=total_deployment,
                cumulative_deployment=total_deployment,
                deployment_pct=ONE,
                capital_calls=total_calls,
                capital_calls_pct=ONE,
                distributions=total_distributions,
                distributions_pct=ONE,
                nav=latest_nav,
                tvpi=max_tvpi,
                dpi=max_dpi,
                is_total=True,
            )
        )
        return rows

    def _accumulate(
            self,
            buckets: PeriodBuckets,
            deltas: Iterable[OwnershipDelta],
            flows: Iterable[FlowEvent],
            nav_points: Iterable[NavPoint],
            performance_points: Iterable[PerformancePoint],
    ) -> None:
        ignored = 0
        divestments = 0

        for delta in deltas:
            if not delta.is_cost_eligible:
                continue
            if delta.delta_cost <= ZERO:
                divestments += 1
                continue
            acc = buckets.find(delta.date_reported)
            if acc is None:
                ignored += 1
                continue
            acc.deployment += delta.delta_cost

        for flow in flows:
            acc = buckets.find(flow.flow_date)
            if acc is None:
                ignored += 1
                continue
            if flow.flow_type == FLOW_CAPITAL_CALLED:
                acc.capital_calls += abs(flow.flow_amount)
            elif flow.flow_type == FLOW_DISTRIBUTION:
                acc.distributions += abs(flow.flow_amount)

        # Chronological so the latest record in each period wins;
        # sorted() is stable, keeping source order within a day
        for point in sorted(nav_points, key=lambda p: p.date_reported):
            acc = buckets.find(point.date_reported)
            if acc is None:
                ignored += 1
                continue
            if point.nav is not None:
                acc.nav = point.nav

        for point in sorted(performance_points, key=lambda p: p.date_reported):
            acc = buckets.find(point.date_reported)
            if acc is None:
                ignored += 1
                continue
            if point.tvpi is not None:
                acc.tvpi = point.tvpi
            if point.dpi is not None:
                acc.dpi = point.dpi

        if ignored:
            logger.debug(f"Ignored {ignored} records outside the period spine")
        if divestments:
            logger.debug(f"Left {divestments} non-positive cost deltas out of deployment")

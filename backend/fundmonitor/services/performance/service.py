# backend/fundmonitor/services/performance/service.py
"""
Performance Service - Orchestrates the performance engine.

This is the main entry point for every report the engine produces.
It coordinates:
- Record retrieval through a RecordSource (all reads happen first)
- CostBasisAggregator / MarketValueJoiner for positions
- PerformanceMetricsCalculator for MOIC, ITD, QTD and summaries
- TopNBucketizer for the display rows and the long-tail row
- PeriodSpineGenerator / PeriodRollupCalculator for historical rollups

Design Principles:
- Single Responsibility: Orchestration only, calculations delegated
- Dependency Injection: The record source is passed per call
- No HTTP knowledge: validation problems raise ValidationError subclasses,
  upstream failures become an UPSTREAM_ERROR status on the result

Usage:
    service = PerformanceService()
    table = service.get_schedule_of_investments(
        source, vehicle_id="V1", portfolio_date=date(2025, 3, 31)
    )
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import date
from decimal import Decimal

from fundmonitor.services.constants import (
    ZERO,
    HUNDRED,
    DEFAULT_HIGH_MOIC_THRESHOLD,
    ENTRY_OWNERSHIP_TYPES,
    OWNERSHIP_ALL,
)
from fundmonitor.services.exceptions import (
    InvalidDateRangeError,
    RecordSourceError,
    ValidationError,
)
from fundmonitor.services.protocols import RecordSource
from fundmonitor.services.records.query import RecordQuery
from fundmonitor.services.records.types import (
    FlowEvent,
    NavPoint,
    OwnershipDelta,
    PerformancePoint,
    TbvFund,
)
from fundmonitor.services.performance.bucketing import TopNBucketizer
from fundmonitor.services.performance.calculators import (
    CostBasisAggregator,
    MarketValueJoiner,
)
from fundmonitor.services.performance.metrics import PerformanceMetricsCalculator
from fundmonitor.services.performance.periods import PeriodSpineGenerator
from fundmonitor.services.performance.returns import calculate_share
from fundmonitor.services.performance.rollup import PeriodRollupCalculator
from fundmonitor.services.performance.types import (
    AssetBreakdown,
    CostEntriesTable,
    CostPosition,
    FundsPerformance,
    HistoricalPerformance,
    InvestmentDates,
    MoicBucketTable,
    NewInvestment,
    NewInvestmentAsset,
    NewInvestmentBreakdown,
    NewInvestmentChart,
    NewInvestmentsTable,
    PeriodType,
    PositionTable,
    ResultStatus,
    TopCostTable,
)

logger = logging.getLogger(__name__)


class PerformanceService:
    """
    Builds the investment reports of a vehicle from raw records.

    Stateless apart from its calculators, so one instance can serve
    concurrent requests. Each call receives the record source to read from.
    """

    def __init__(
            self,
            high_moic_threshold: Decimal = DEFAULT_HIGH_MOIC_THRESHOLD,
            max_fund_workers: int = 4,
    ) -> None:
        """
        Initialize the service.

        Args:
            high_moic_threshold: MOIC at which a position escapes the long tail
            max_fund_workers: Thread pool size for multi-fund rollups
        """
        if max_fund_workers < 1:
            raise ValueError(f"max_fund_workers must be >= 1, got {max_fund_workers}")

        self._high_moic_threshold = high_moic_threshold
        self._max_fund_workers = max_fund_workers

        self._cost_aggregator = CostBasisAggregator()
        self._joiner = MarketValueJoiner()
        self._metrics = PerformanceMetricsCalculator()
        self._bucketizer = TopNBucketizer()
        self._spine_generator = PeriodSpineGenerator()
        self._rollup = PeriodRollupCalculator()

        logger.info(
            f"PerformanceService initialized "
            f"(high_moic_threshold={high_moic_threshold}, max_fund_workers={max_fund_workers})"
        )

    # =========================================================================
    # SCHEDULE OF INVESTMENTS
    # =========================================================================

    def get_schedule_of_investments(
            self,
            source: RecordSource,
            vehicle_id: str,
            portfolio_date: date,
            top_n: int = 50,
    ) -> PositionTable:
        """
        Cost-ranked positions of a vehicle as of a portfolio date.

        Cost is cumulative up to portfolio_date; market value is taken from
        snapshots dated exactly portfolio_date.

        Args:
            source: Record source to read from
            vehicle_id: Vehicle to report on
            portfolio_date: Valuation date
            top_n: Rows to display before the long tail (0 = all)

        Returns:
            PositionTable with rows, long-tail row and summary

        Raises:
            ValidationError: If top_n is negative
        """
        self._validate_top_n(top_n)
        logger.info(
            f"Building schedule of investments for {vehicle_id} "
            f"as of {portfolio_date} (top_n={top_n})"
        )

        table = PositionTable(vehicle_id=vehicle_id, as_of_date=portfolio_date, top_n=top_n)
        query = RecordQuery.for_vehicle(vehicle_id).as_of(portfolio_date)

        try:
            deltas = source.fetch_ownership_deltas(query)
            snapshots = source.fetch_market_values(query)
        except RecordSourceError as e:
            return self._upstream_failure(table, "schedule of investments", vehicle_id, e)

        groups = self._cost_aggregator.cumulative(deltas, as_of=portfolio_date)
        positions = self._joiner.join(groups, snapshots, portfolio_date)
        if not positions:
            table.status = ResultStatus.EMPTY
            logger.info(f"No positions for {vehicle_id} as of {portfolio_date}")
            return table

        self._metrics.apply_returns(positions, deltas, snapshots, portfolio_date)
        table.summary = self._metrics.summarize(
            positions,
            self._cost_aggregator.total_by_asset_class(deltas, as_of=portfolio_date),
        )
        self._fill_display_rows(table, positions, top_n)

        logger.info(
            f"Schedule of investments for {vehicle_id}: {len(positions)} positions, "
            f"{len(table.rows)} displayed"
        )
        return table

    def get_asset_breakdown(
            self,
            source: RecordSource,
            vehicle_id: str,
            project_id: str,
            portfolio_date: date,
    ) -> AssetBreakdown:
        """Positions of one project split by asset class, as of portfolio_date."""
        logger.info(f"Building asset breakdown for {vehicle_id}/{project_id} as of {portfolio_date}")

        breakdown = AssetBreakdown(
            vehicle_id=vehicle_id,
            project_id=project_id,
            as_of_date=portfolio_date,
        )
        query = (
            RecordQuery.for_vehicle(vehicle_id)
            .for_project(project_id)
            .as_of(portfolio_date)
        )

        try:
            deltas = source.fetch_ownership_deltas(query)
            snapshots = source.fetch_market_values(query)
        except RecordSourceError as e:
            return self._upstream_failure(breakdown, "asset breakdown", vehicle_id, e)

        groups = self._cost_aggregator.cumulative(deltas, as_of=portfolio_date, by_asset_class=True)
        positions = self._joiner.join(groups, snapshots, portfolio_date, by_asset_class=True)
        if not positions:
            breakdown.status = ResultStatus.EMPTY
            return breakdown

        self._metrics.apply_returns(
            positions, deltas, snapshots, portfolio_date, by_asset_class=True
        )
        self._metrics.apply_percentages(positions, positions)
        breakdown.rows = positions
        return breakdown

    # =========================================================================
    # MONITORING TABLES
    # =========================================================================

    def get_top_market_value_positions(
            self,
            source: RecordSource,
            vehicle_id: str,
            portfolio_date: date,
            date_start: date,
            date_end: date,
            top_n: int = 10,
    ) -> PositionTable:
        """
        MV-ranked positions with cost deployed inside a window.

        Cost is the sum of deltas with date_start <= date_reported <=
        date_end; market value is taken at portfolio_date. Positions with
        market value but no cost in the window are kept with zero cost.

        Raises:
            ValidationError: If top_n is negative or the window is inverted
        """
        self._validate_top_n(top_n)
        self._validate_range(date_start, date_end)
        logger.info(
            f"Building top market value table for {vehicle_id} at {portfolio_date}, "
            f"cost window {date_start} to {date_end} (top_n={top_n})"
        )

        table = PositionTable(
            vehicle_id=vehicle_id,
            as_of_date=portfolio_date,
            top_n=top_n,
            date_start=date_start,
            date_end=date_end,
        )
        vehicle = RecordQuery.for_vehicle(vehicle_id)

        try:
            deltas = source.fetch_ownership_deltas(vehicle.as_of(max(portfolio_date, date_end)))
            snapshots = source.fetch_market_values(vehicle.as_of(portfolio_date))
        except RecordSourceError as e:
            return self._upstream_failure(table, "top market value table", vehicle_id, e)

        groups = self._cost_aggregator.windowed(deltas, date_start, date_end)
        positions = self._joiner.join(groups, snapshots, portfolio_date)
        if not positions:
            table.status = ResultStatus.EMPTY
            return table

        self._metrics.apply_returns(positions, deltas, snapshots, portfolio_date)
        positions.sort(key=lambda p: (-p.total_mv, p.project_id))

        table.summary = self._metrics.summarize(
            positions,
            self._cost_aggregator.total_by_asset_class(deltas, as_of=date_end, since=date_start),
        )
        self._fill_display_rows(table, positions, top_n)
        return table

    def get_top_cost_positions(
            self,
            source: RecordSource,
            vehicle_id: str,
            date_start: date,
            date_end: date,
            top_n: int = 10,
    ) -> TopCostTable:
        """
        Largest windowed cost positions, split by ownership type.

        The table is truncated to top_n rows (0 = all) with no long tail.
        cost_percentage is relative to the displayed rows; the ownership
        split percentages are relative to each row's own cost.
        """
        self._validate_top_n(top_n)
        self._validate_range(date_start, date_end)
        logger.info(
            f"Building top cost table for {vehicle_id}, {date_start} to {date_end} (top_n={top_n})"
        )

        table = TopCostTable(
            vehicle_id=vehicle_id,
            date_start=date_start,
            date_end=date_end,
            top_n=top_n,
        )
        query = RecordQuery.for_vehicle(vehicle_id).between(date_start, date_end)

        try:
            deltas = source.fetch_ownership_deltas(query)
        except RecordSourceError as e:
            return self._upstream_failure(table, "top cost table", vehicle_id, e)

        groups = self._cost_aggregator.windowed(deltas, date_start, date_end)
        if top_n > 0:
            groups = groups[:top_n]
        if not groups:
            table.status = ResultStatus.EMPTY
            return table

        displayed_cost = sum((g.cost for g in groups), ZERO)
        table.rows = [
            CostPosition(
                project_id=g.project_id,
                cost=g.cost,
                cost_percentage=calculate_share(g.cost, displayed_cost, HUNDRED),
                established_cost=g.established_cost,
                established_percentage=calculate_share(g.established_cost, g.cost, HUNDRED),
                top_up_cost=g.top_up_cost,
                top_up_percentage=calculate_share(g.top_up_cost, g.cost, HUNDRED),
                divested_cost=g.divested_cost,
                divested_percentage=calculate_share(g.divested_cost, g.cost, HUNDRED),
                record_count=g.record_count,
            )
            for g in groups
        ]
        return table

    def get_new_investments(
            self,
            source: RecordSource,
            vehicle_id: str,
            date_start: date,
            date_end: date,
            ownership_type: str = OWNERSHIP_ALL,
    ) -> NewInvestmentsTable:
        """
        Cost deployed per project inside a window by entry type.

        Args:
            ownership_type: "Established", "Top Up" or "All" (both)

        Raises:
            ValidationError: If ownership_type is not one of the above
        """
        self._validate_range(date_start, date_end)
        ownership_types = self._resolve_entry_types(ownership_type)
        logger.info(
            f"Building new investments for {vehicle_id}, {date_start} to {date_end} "
            f"(ownership_type={ownership_type})"
        )

        table = NewInvestmentsTable(
            vehicle_id=vehicle_id,
            date_start=date_start,
            date_end=date_end,
            ownership_type=ownership_type,
        )
        query = (
            RecordQuery.for_vehicle(vehicle_id)
            .between(date_start, date_end)
            .with_ownership_types(*ownership_types)
        )

        try:
            deltas = source.fetch_ownership_deltas(query)
        except RecordSourceError as e:
            return self._upstream_failure(table, "new investments", vehicle_id, e)

        groups = self._cost_aggregator.windowed(
            deltas, date_start, date_end, ownership_types=ownership_types
        )
        if not groups:
            table.status = ResultStatus.EMPTY
            return table

        table.rows = [
            NewInvestment(
                project_id=g.project_id,
                cost=g.cost,
                first_entry=g.first_entry,
                weighted_valuation=g.weighted_valuation,
                asset_classes=g.asset_classes,
            )
            for g in groups
        ]
        table.total_cost = sum((row.cost for row in table.rows), ZERO)
        return table

    def get_available_investment_dates(
            self,
            source: RecordSource,
            vehicle_id: str,
    ) -> InvestmentDates:
        """Distinct dates with an eligible Established / Top Up row, newest first."""
        result = InvestmentDates(vehicle_id=vehicle_id)
        query = RecordQuery.for_vehicle(vehicle_id).with_ownership_types(*ENTRY_OWNERSHIP_TYPES)

        try:
            deltas = source.fetch_ownership_deltas(query)
        except RecordSourceError as e:
            return self._upstream_failure(result, "investment dates", vehicle_id, e)

        result.dates = sorted(
            {
                d.date_reported for d in deltas
                if d.is_cost_eligible and d.ownership_type in ENTRY_OWNERSHIP_TYPES
            },
            reverse=True,
        )
        if not result.dates:
            result.status = ResultStatus.EMPTY
        return result

    def get_moic_buckets(
            self,
            source: RecordSource,
            vehicle_id: str,
            portfolio_date: date,
    ) -> MoicBucketTable:
        """Projects grouped by MOIC bucket as of portfolio_date."""
        logger.info(f"Building MOIC buckets for {vehicle_id} as of {portfolio_date}")

        table = MoicBucketTable(vehicle_id=vehicle_id, as_of_date=portfolio_date)
        query = RecordQuery.for_vehicle(vehicle_id).as_of(portfolio_date)

        try:
            deltas = source.fetch_ownership_deltas(query)
            snapshots = source.fetch_market_values(query)
        except RecordSourceError as e:
            return self._upstream_failure(table, "MOIC buckets", vehicle_id, e)

        groups = self._cost_aggregator.cumulative(deltas, as_of=portfolio_date, by_asset_class=True)
        positions = self._joiner.join(groups, snapshots, portfolio_date, by_asset_class=True)
        table.rows = self._metrics.bucket_positions(positions)
        if not table.rows:
            table.status = ResultStatus.EMPTY
        return table

    # =========================================================================
    # MONITORING DRILL-DOWNS
    # =========================================================================

    def get_top_market_value_details(
            self,
            source: RecordSource,
            vehicle_id: str,
            project_id: str,
            portfolio_date: date,
            date_start: date,
            date_end: date,
    ) -> AssetBreakdown:
        """
        Top-MV row of one project split by asset class.

        Same join as get_top_market_value_positions, keyed by asset class:
        windowed cost, market value at portfolio_date, ordered by total
        market value descending.

        Raises:
            InvalidDateRangeError: If date_start > date_end
        """
        self._validate_range(date_start, date_end)
        logger.info(
            f"Building top market value details for {vehicle_id}/{project_id} at "
            f"{portfolio_date}, cost window {date_start} to {date_end}"
        )

        breakdown = AssetBreakdown(
            vehicle_id=vehicle_id,
            project_id=project_id,
            as_of_date=portfolio_date,
            date_start=date_start,
            date_end=date_end,
        )
        project = RecordQuery.for_vehicle(vehicle_id).for_project(project_id)

        try:
            deltas = source.fetch_ownership_deltas(project.as_of(max(portfolio_date, date_end)))
            snapshots = source.fetch_market_values(project.as_of(portfolio_date))
        except RecordSourceError as e:
            return self._upstream_failure(breakdown, "top market value details", vehicle_id, e)

        groups = self._cost_aggregator.windowed(deltas, date_start, date_end, by_asset_class=True)
        positions = self._joiner.join(groups, snapshots, portfolio_date, by_asset_class=True)
        if not positions:
            breakdown.status = ResultStatus.EMPTY
            return breakdown

        self._metrics.apply_returns(
            positions, deltas, snapshots, portfolio_date, by_asset_class=True
        )
        self._metrics.apply_percentages(positions, positions)
        positions.sort(key=lambda p: (-p.total_mv, p.asset_class or ""))
        breakdown.rows = positions
        return breakdown

    def get_top_cost_details(
            self,
            source: RecordSource,
            vehicle_id: str,
            project_id: str,
            date_start: date,
            date_end: date,
    ) -> CostEntriesTable:
        """Ownership rows behind one Top-Cost position, oldest first."""
        self._validate_range(date_start, date_end)
        logger.info(
            f"Building top cost details for {vehicle_id}/{project_id}, {date_start} to {date_end}"
        )

        table = CostEntriesTable(
            vehicle_id=vehicle_id,
            project_id=project_id,
            date_start=date_start,
            date_end=date_end,
        )
        query = (
            RecordQuery.for_vehicle(vehicle_id)
            .for_project(project_id)
            .between(date_start, date_end)
        )

        try:
            deltas = source.fetch_ownership_deltas(query)
        except RecordSourceError as e:
            return self._upstream_failure(table, "top cost details", vehicle_id, e)

        table.rows = self._cost_aggregator.entries(deltas, date_start, date_end)
        if not table.rows:
            table.status = ResultStatus.EMPTY
            return table

        table.total_cost = sum((row.cost for row in table.rows), ZERO)
        return table

    def get_new_investment_breakdown(
            self,
            source: RecordSource,
            vehicle_id: str,
            project_id: str,
            date_start: date,
            date_end: date,
            ownership_type: str = OWNERSHIP_ALL,
    ) -> NewInvestmentBreakdown:
        """
        Entry cost of one project per asset class inside a window.

        Each row carries the greatest outcome type reported for that asset
        class, or None when no row reports one. Rows are ordered by cost
        descending.

        Raises:
            ValidationError: If ownership_type is not Established, Top Up or All
        """
        self._validate_range(date_start, date_end)
        ownership_types = self._resolve_entry_types(ownership_type)
        logger.info(
            f"Building new investment breakdown for {vehicle_id}/{project_id}, "
            f"{date_start} to {date_end} (ownership_type={ownership_type})"
        )

        breakdown = NewInvestmentBreakdown(
            vehicle_id=vehicle_id,
            project_id=project_id,
            date_start=date_start,
            date_end=date_end,
            ownership_type=ownership_type,
        )
        query = (
            RecordQuery.for_vehicle(vehicle_id)
            .for_project(project_id)
            .between(date_start, date_end)
            .with_ownership_types(*ownership_types)
        )

        try:
            deltas = source.fetch_ownership_deltas(query)
        except RecordSourceError as e:
            return self._upstream_failure(breakdown, "new investment breakdown", vehicle_id, e)

        groups = self._cost_aggregator.windowed(
            deltas, date_start, date_end, ownership_types=ownership_types, by_asset_class=True
        )
        if not groups:
            breakdown.status = ResultStatus.EMPTY
            return breakdown

        breakdown.rows = [
            NewInvestmentAsset(
                asset_class=g.asset_class,
                cost=g.cost,
                outcome_type=g.outcome_types[-1] if g.outcome_types else None,
            )
            for g in groups
        ]
        return breakdown

    def get_new_investment_chart(
            self,
            source: RecordSource,
            vehicle_id: str,
            date_start: date,
            date_end: date,
    ) -> NewInvestmentChart:
        """Established and Top Up cost per outcome type inside a window."""
        self._validate_range(date_start, date_end)
        logger.info(f"Building new investment chart for {vehicle_id}, {date_start} to {date_end}")

        chart = NewInvestmentChart(vehicle_id=vehicle_id, date_start=date_start, date_end=date_end)
        query = (
            RecordQuery.for_vehicle(vehicle_id)
            .between(date_start, date_end)
            .with_ownership_types(*ENTRY_OWNERSHIP_TYPES)
        )

        try:
            deltas = source.fetch_ownership_deltas(query)
        except RecordSourceError as e:
            return self._upstream_failure(chart, "new investment chart", vehicle_id, e)

        chart.rows = self._cost_aggregator.by_outcome_type(deltas, date_start, date_end)
        if not chart.rows:
            chart.status = ResultStatus.EMPTY
        return chart

    # =========================================================================
    # HISTORICAL PERFORMANCE
    # =========================================================================

    def get_historical_performance(
            self,
            source: RecordSource,
            vehicle_id: str,
            tbv_vehicle_id: str,
            start_date: date,
            end_date: date,
            period_type: PeriodType | str,
    ) -> HistoricalPerformance:
        """
        Period rollup of deployment, flows, NAV and multiples.

        Deployment comes from the vehicle's ownership deltas; flows, NAV and
        TVPI/DPI from the TBV vehicle. Only records inside
        [start_date, end_date] are read.

        Raises:
            InvalidPeriodTypeError: If period_type is unknown
            InvalidDateRangeError: If start_date > end_date
        """
        period_type = PeriodType.parse(period_type)
        self._validate_range(start_date, end_date)
        logger.info(
            f"Building {period_type.value} performance for {vehicle_id}/{tbv_vehicle_id}, "
            f"{start_date} to {end_date}"
        )

        result = HistoricalPerformance(
            vehicle_id=vehicle_id,
            tbv_vehicle_id=tbv_vehicle_id,
            period_type=period_type,
            start_date=start_date,
            end_date=end_date,
        )

        try:
            deltas = source.fetch_ownership_deltas(
                RecordQuery.for_vehicle(vehicle_id).between(start_date, end_date)
            )
            flows, nav_points, performance_points = self._fetch_fund_records(
                source, RecordQuery.for_vehicle(tbv_vehicle_id).between(start_date, end_date)
            )
        except RecordSourceError as e:
            return self._upstream_failure(result, "historical performance", vehicle_id, e)

        spine = self._spine_generator.generate(start_date, end_date, period_type)
        result.rows = self._rollup.calculate(
            spine,
            deltas=deltas,
            flows=flows,
            nav_points=nav_points,
            performance_points=performance_points,
            range_start=start_date,
            range_end=end_date,
        )
        if not (deltas or flows or nav_points or performance_points):
            result.status = ResultStatus.EMPTY
        return result

    def get_all_funds_performance(
            self,
            source: RecordSource,
            vehicle_id: str,
            start_date: date,
            end_date: date,
            period_type: PeriodType | str,
    ) -> FundsPerformance:
        """
        Historical performance for every TBV fund linked to a vehicle.

        Each fund's range is extended past end_date to the latest ownership
        or NAV record, so recent data is never cut off. Records are fetched
        fund by fund; the rollups then run in parallel and are merged back
        in fund order.

        Raises:
            InvalidPeriodTypeError: If period_type is unknown
            InvalidDateRangeError: If start_date > end_date
        """
        period_type = PeriodType.parse(period_type)
        self._validate_range(start_date, end_date)
        logger.info(
            f"Building {period_type.value} performance for all funds of {vehicle_id}, "
            f"{start_date} to {end_date}"
        )

        result = FundsPerformance(
            vehicle_id=vehicle_id,
            period_type=period_type,
            start_date=start_date,
            end_date=end_date,
        )

        try:
            funds = source.fetch_tbv_funds(vehicle_id)
            if not funds:
                logger.info(f"No TBV funds linked to {vehicle_id}")
                result.status = ResultStatus.EMPTY
                return result

            deltas = source.fetch_ownership_deltas(
                RecordQuery.for_vehicle(vehicle_id).since(start_date)
            )
            fund_records = [
                self._fetch_fund_records(
                    source, RecordQuery.for_vehicle(fund.tbv_vehicle_id).since(start_date)
                )
                for fund in funds
            ]
        except RecordSourceError as e:
            return self._upstream_failure(result, "all funds performance", vehicle_id, e)

        latest_delta = max((d.date_reported for d in deltas), default=None)
        performances: list[HistoricalPerformance | None] = [None] * len(funds)

        with ThreadPoolExecutor(max_workers=self._max_fund_workers) as ex:
            futures = {
                ex.submit(
                    self._fund_rollup,
                    vehicle_id,
                    fund,
                    start_date,
                    end_date,
                    period_type,
                    deltas,
                    latest_delta,
                    *records,
                ): index
                for index, (fund, records) in enumerate(zip(funds, fund_records))
            }
            for fut in as_completed(futures):
                performances[futures[fut]] = fut.result()

        result.funds = [p for p in performances if p is not None]
        logger.info(f"Performance built for {len(result.funds)} funds of {vehicle_id}")
        return result

    # =========================================================================
    # PRIVATE HELPERS
    # =========================================================================

    def _fund_rollup(
            self,
            vehicle_id: str,
            fund: TbvFund,
            start_date: date,
            end_date: date,
            period_type: PeriodType,
            deltas: list[OwnershipDelta],
            latest_delta: date | None,
            flows: list[FlowEvent],
            nav_points: list[NavPoint],
            performance_points: list[PerformancePoint],
    ) -> HistoricalPerformance:
        """Rollup of one fund over its effective range. Pure computation."""
        latest_nav = max((p.date_reported for p in nav_points), default=None)
        effective_end = max(
            d for d in (end_date, latest_delta, latest_nav) if d is not None
        )

        def in_range(value: date) -> bool:
            return start_date <= value <= effective_end

        fund_deltas = [d for d in deltas if in_range(d.date_reported)]
        fund_flows = [f for f in flows if in_range(f.flow_date)]
        fund_navs = [p for p in nav_points if in_range(p.date_reported)]
        fund_points = [p for p in performance_points if in_range(p.date_reported)]

        spine = self._spine_generator.generate(start_date, effective_end, period_type)
        rows = self._rollup.calculate(
            spine,
            deltas=fund_deltas,
            flows=fund_flows,
            nav_points=fund_navs,
            performance_points=fund_points,
            range_start=start_date,
            range_end=effective_end,
        )

        has_records = bool(fund_deltas or fund_flows or fund_navs or fund_points)
        return HistoricalPerformance(
            vehicle_id=vehicle_id,
            tbv_vehicle_id=fund.tbv_vehicle_id,
            period_type=period_type,
            start_date=start_date,
            end_date=effective_end,
            rows=rows,
            tbv_fund=fund.tbv_fund,
            status=ResultStatus.OK if has_records else ResultStatus.EMPTY,
        )

    @staticmethod
    def _fetch_fund_records(
            source: RecordSource,
            query: RecordQuery,
    ) -> tuple[list[FlowEvent], list[NavPoint], list[PerformancePoint]]:
        return (
            source.fetch_flows(query),
            source.fetch_nav_points(query),
            source.fetch_fund_performance(query),
        )

    def _fill_display_rows(self, table: PositionTable, positions, top_n: int) -> None:
        rows, long_tail = self._bucketizer.bucketize(
            positions, top_n, self._high_moic_threshold
        )
        displayed = rows + ([long_tail] if long_tail is not None else [])
        self._metrics.apply_percentages(displayed, positions)
        table.rows = rows
        table.long_tail = long_tail

    @staticmethod
    def _upstream_failure(result, report: str, vehicle_id: str, error: RecordSourceError):
        logger.error(f"Record source failed while building {report} for {vehicle_id}: {error}")
        result.status = ResultStatus.UPSTREAM_ERROR
        result.error = str(error)
        return result

    @staticmethod
    def _validate_top_n(top_n: int) -> None:
        if top_n < 0:
            raise ValidationError(f"top_n must be >= 0, got {top_n}", field="top_n")

    @staticmethod
    def _validate_range(start_date: date, end_date: date) -> None:
        if start_date > end_date:
            raise InvalidDateRangeError(start_date, end_date)

    @staticmethod
    def _resolve_entry_types(ownership_type: str) -> tuple[str, ...]:
        if ownership_type == OWNERSHIP_ALL:
            return ENTRY_OWNERSHIP_TYPES
        if ownership_type in ENTRY_OWNERSHIP_TYPES:
            return (ownership_type,)
        raise ValidationError(
            f"Invalid ownership type: '{ownership_type}'. "
            f"Valid options: {', '.join((*ENTRY_OWNERSHIP_TYPES, OWNERSHIP_ALL))}",
            field="ownership_type",
        )

# backend/fundmonitor/services/performance/metrics.py
"""
Performance metrics over joined positions.

PerformanceMetricsCalculator turns positions plus their record history into:
- MOIC per position (via Position.moic) and per bucket
- ITD / QTD per position, anchored on market value history
- Portfolio ITD / QTD as MV-weighted averages
- Percentage columns and the portfolio summary
- MOIC bucket distribution

Anchors:
    ITD  anchor = earliest portfolio_date <= evaluation date with MV > 0
         extra cost = deltas after the anchor, up to the evaluation date
    QTD  anchor = MV at the previous quarter end (0 if no snapshot)
         cost change = deltas after that quarter end, up to the evaluation date

Only eligible records count: the same exclusions as the cost basis and the
market value join.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from datetime import date
from decimal import Decimal

from fundmonitor.services.constants import (
    ZERO,
    HUNDRED,
    ASSET_CLASS_EQUITY,
    ASSET_CLASS_TOKENS,
)
from fundmonitor.services.records.types import OwnershipDelta, MarketValueSnapshot
from fundmonitor.services.performance.calculators import asset_class_key
from fundmonitor.services.performance.returns import (
    calculate_moic,
    calculate_itd,
    calculate_qtd,
    calculate_share,
    weighted_average,
)
from fundmonitor.services.performance.types import (
    Position,
    PortfolioSummary,
    MoicBucketRow,
)
from fundmonitor.utils.date_utils import previous_quarter_end

logger = logging.getLogger(__name__)

PositionKey = tuple[str, str | None]


# =============================================================================
# MOIC BUCKETS
# =============================================================================

BUCKET_GRAND_SLAMS = "Grand Slams"
BUCKET_HOME_RUN = "Home Run"
BUCKET_DOUBLES_TRIPLES = "Doubles/Triples"
BUCKET_BASE_HIT = "Base Hit"
BUCKET_COST = "Cost"
BUCKET_LOSS = "Loss"
BUCKET_WRITE_OFF = "Write Off"
BUCKET_NO_COST_BASIS = "Fully Divested / No Cost Basis"

# Display order
MOIC_BUCKET_ORDER: tuple[str, ...] = (
    BUCKET_GRAND_SLAMS,
    BUCKET_HOME_RUN,
    BUCKET_DOUBLES_TRIPLES,
    BUCKET_BASE_HIT,
    BUCKET_COST,
    BUCKET_LOSS,
    BUCKET_WRITE_OFF,
    BUCKET_NO_COST_BASIS,
)

# (lower bound, inclusive?, bucket), checked top-down
_MOIC_THRESHOLDS: tuple[tuple[Decimal, bool, str], ...] = (
    (Decimal("10"), True, BUCKET_GRAND_SLAMS),
    (Decimal("5"), True, BUCKET_HOME_RUN),
    (Decimal("2"), True, BUCKET_DOUBLES_TRIPLES),
    (Decimal("1"), False, BUCKET_BASE_HIT),
    (Decimal("0.95"), True, BUCKET_COST),
)


def classify_moic_bucket(cost: Decimal, total_mv: Decimal) -> str:
    """
    Bucket of a project by its MOIC.

    cost <= 0 -> "Fully Divested / No Cost Basis"; zero market value ->
    "Write Off"; otherwise by MOIC: >=10, >=5, >=2, >1, >=0.95, else "Loss".
    """
    moic = calculate_moic(total_mv, cost)
    if moic is None:
        return BUCKET_NO_COST_BASIS
    if total_mv == ZERO:
        return BUCKET_WRITE_OFF

    for bound, inclusive, bucket in _MOIC_THRESHOLDS:
        if moic > bound or (inclusive and moic == bound):
            return bucket
    return BUCKET_LOSS


class PerformanceMetricsCalculator:
    """
    Computes return metrics, percentages and summaries for positions.

    Stateless: all history is passed in per call.
    """

    # =========================================================================
    # PER-POSITION RETURNS
    # =========================================================================

    def position_returns(
            self,
            current_mv: Decimal,
            mv_history: dict[date, Decimal],
            cost_deltas: Sequence[tuple[date, Decimal]],
            evaluation_date: date,
    ) -> tuple[Decimal | None, Decimal | None]:
        """
        ITD and QTD for one position.

        Args:
            current_mv: Total market value at the evaluation date
            mv_history: Total market value per portfolio date
            cost_deltas: (date_reported, delta_cost) pairs
            evaluation_date: Date the returns are measured at

        Returns:
            (itd, qtd), each None when undefined
        """
        anchor_dates = sorted(
            d for d, mv in mv_history.items()
            if d <= evaluation_date and mv > ZERO
        )
        if anchor_dates:
            anchor = anchor_dates[0]
            extra_cost = sum(
                (cost for d, cost in cost_deltas if anchor < d <= evaluation_date),
                ZERO,
            )
            itd = calculate_itd(current_mv, mv_history[anchor], extra_cost)
        else:
            itd = None

        quarter_anchor = previous_quarter_end(evaluation_date)
        prev_quarter_mv = mv_history.get(quarter_anchor, ZERO)
        quarter_cost_change = sum(
            (cost for d, cost in cost_deltas if quarter_anchor < d <= evaluation_date),
            ZERO,
        )
        qtd = calculate_qtd(current_mv, prev_quarter_mv, quarter_cost_change)

        return itd, qtd

    def apply_returns(
            self,
            positions: Iterable[Position],
            deltas: Iterable[OwnershipDelta],
            snapshots: Iterable[MarketValueSnapshot],
            evaluation_date: date,
            by_asset_class: bool = False,
    ) -> None:
        """
        Set itd / qtd on each position from its record history.

        Positions are matched to records by project_id, plus asset class when
        by_asset_class is set.
        """
        mv_history: dict[PositionKey, dict[date, Decimal]] = {}
        for snapshot in snapshots:
            if not snapshot.is_valuation_eligible or snapshot.portfolio_date > evaluation_date:
                continue
            key = self._key(snapshot.project_id, snapshot.asset_class, by_asset_class)
            history = mv_history.setdefault(key, {})
            history[snapshot.portfolio_date] = (
                history.get(snapshot.portfolio_date, ZERO) + snapshot.total_mv
            )

        cost_history: dict[PositionKey, list[tuple[date, Decimal]]] = {}
        for delta in deltas:
            if not delta.is_cost_eligible or delta.date_reported > evaluation_date:
                continue
            key = self._key(delta.project_id, delta.asset_class, by_asset_class)
            cost_history.setdefault(key, []).append((delta.date_reported, delta.delta_cost))

        for position in positions:
            key = (position.project_id, position.asset_class if by_asset_class else None)
            position.itd, position.qtd = self.position_returns(
                current_mv=position.total_mv,
                mv_history=mv_history.get(key, {}),
                cost_deltas=cost_history.get(key, []),
                evaluation_date=evaluation_date,
            )

    # =========================================================================
    # PORTFOLIO AGGREGATES
    # =========================================================================

    def aggregate_itd(self, positions: Sequence[Position]) -> Decimal | None:
        """
        MV-weighted ITD over positions with a defined ITD.

        Falls back to (total_mv - total_cost) / total_cost when no position
        has one; None if total cost is not positive either.
        """
        weighted = weighted_average((p.itd, p.total_mv) for p in positions)
        if weighted is not None:
            return weighted

        total_cost = sum((p.cost for p in positions), ZERO)
        total_mv = sum((p.total_mv for p in positions), ZERO)
        if total_cost <= ZERO:
            return None
        return (total_mv - total_cost) / total_cost

    def aggregate_qtd(self, positions: Sequence[Position]) -> Decimal | None:
        """MV-weighted QTD over positions with a defined QTD; no fallback."""
        return weighted_average((p.qtd, p.total_mv) for p in positions)

    # =========================================================================
    # PERCENTAGES & SUMMARY
    # =========================================================================

    def apply_percentages(
            self,
            rows: Iterable[Position],
            universe: Sequence[Position],
    ) -> None:
        """
        Set the 0-100 percentage columns of `rows` against `universe` totals.

        Passing every position as the universe makes the displayed rows plus
        the long-tail row add up to 100.
        """
        total_cost = sum((p.cost for p in universe), ZERO)
        total_realized = sum((p.realized_mv for p in universe), ZERO)
        total_unrealized = sum((p.unrealized_mv for p in universe), ZERO)
        total_mv = total_realized + total_unrealized

        for row in rows:
            row.cost_percentage = calculate_share(row.cost, total_cost, HUNDRED)
            row.realized_percentage = calculate_share(row.realized_mv, total_realized, HUNDRED)
            row.unrealized_percentage = calculate_share(row.unrealized_mv, total_unrealized, HUNDRED)
            row.mv_percentage = calculate_share(row.total_mv, total_mv, HUNDRED)

    def summarize(
            self,
            positions: Sequence[Position],
            cost_by_asset_class: dict[str, Decimal] | None = None,
    ) -> PortfolioSummary:
        """
        Portfolio totals, multiples and the equity / tokens / others split.

        Args:
            positions: Every position in scope (not only displayed ones)
            cost_by_asset_class: Cost per asset class for the split
        """
        total_cost = sum((p.cost for p in positions), ZERO)
        total_realized = sum((p.realized_mv for p in positions), ZERO)
        total_unrealized = sum((p.unrealized_mv for p in positions), ZERO)
        total_mv = total_realized + total_unrealized

        split = cost_by_asset_class or {}
        equity_cost = split.get(ASSET_CLASS_EQUITY, ZERO)
        tokens_cost = split.get(ASSET_CLASS_TOKENS, ZERO)
        others_cost = sum(
            (cost for asset_class, cost in split.items()
             if asset_class not in (ASSET_CLASS_EQUITY, ASSET_CLASS_TOKENS)),
            ZERO,
        )
        split_total = equity_cost + tokens_cost + others_cost

        return PortfolioSummary(
            total_positions=len(positions),
            total_cost=total_cost,
            total_realized_mv=total_realized,
            total_unrealized_mv=total_unrealized,
            total_mv=total_mv,
            portfolio_moic=calculate_moic(total_mv, total_cost),
            portfolio_itd=self.aggregate_itd(positions) if positions else None,
            portfolio_qtd=self.aggregate_qtd(positions),
            equity_cost=equity_cost,
            equity_cost_percentage=calculate_share(equity_cost, split_total, HUNDRED),
            tokens_cost=tokens_cost,
            tokens_cost_percentage=calculate_share(tokens_cost, split_total, HUNDRED),
            others_cost=others_cost,
            others_cost_percentage=calculate_share(others_cost, split_total, HUNDRED),
        )

    # =========================================================================
    # MOIC BUCKETS
    # =========================================================================

    def bucket_positions(self, asset_positions: Iterable[Position]) -> list[MoicBucketRow]:
        """
        Group projects into MOIC buckets.

        Args:
            asset_positions: Positions keyed by (project_id, asset_class);
                they are rolled up to project level before classification

        Returns:
            Non-empty buckets in display order, with project_percentage
            relative to the number of projects
        """
        projects: dict[str, list[Position]] = {}
        for position in asset_positions:
            projects.setdefault(position.project_id, []).append(position)

        rows: dict[str, MoicBucketRow] = {}
        for project_id in sorted(projects):
            parts = projects[project_id]
            cost = sum((p.cost for p in parts), ZERO)
            realized = sum((p.realized_mv for p in parts), ZERO)
            unrealized = sum((p.unrealized_mv for p in parts), ZERO)

            bucket = classify_moic_bucket(cost, realized + unrealized)
            row = rows.setdefault(bucket, MoicBucketRow(bucket=bucket))
            row.project_count += 1
            row.project_ids.append(project_id)
            row.cost += cost
            row.realized_mv += realized
            row.unrealized_mv += unrealized

            for part in parts:
                asset_class = asset_class_key(part.asset_class)
                if asset_class == ASSET_CLASS_EQUITY:
                    row.equity_cost += part.cost
                elif asset_class == ASSET_CLASS_TOKENS:
                    row.tokens_cost += part.cost
                else:
                    row.others_cost += part.cost

        total_projects = Decimal(len(projects))
        ordered = [rows[bucket] for bucket in MOIC_BUCKET_ORDER if bucket in rows]
        for row in ordered:
            row.project_percentage = calculate_share(Decimal(row.project_count), total_projects, HUNDRED)
        return ordered

    @staticmethod
    def _key(project_id: str, asset_class: str | None, by_asset_class: bool) -> PositionKey:
        return (project_id, asset_class_key(asset_class) if by_asset_class else None)

# backend/tests/services/performance/test_calculators.py
"""
Unit tests for CostBasisAggregator and MarketValueJoiner.

Test Coverage:
- Cumulative and windowed cost sums
- Cash / 'Other Assets' exclusion
- Entry valuation (first entry and cost-weighted)
- Ownership type split
- Ownership rows behind a group and cost per outcome type
- Full outer join with market value snapshots
"""

from datetime import date
from decimal import Decimal

import pytest

from fundmonitor.services.performance.calculators import (
    CostBasisAggregator,
    MarketValueJoiner,
)
from tests.conftest import make_delta, make_snapshot


@pytest.fixture
def aggregator() -> CostBasisAggregator:
    return CostBasisAggregator()


@pytest.fixture
def joiner() -> MarketValueJoiner:
    return MarketValueJoiner()


# =============================================================================
# COST BASIS AGGREGATOR
# =============================================================================

class TestCumulativeCost:
    """Tests for CostBasisAggregator.cumulative."""

    def test_sums_deltas_up_to_as_of(self, aggregator):
        """Deltas after the as-of date are not part of the cost basis."""
        deltas = [
            make_delta("A", date(2024, 1, 10), "100"),
            make_delta("A", date(2024, 6, 10), "50"),
            make_delta("A", date(2024, 9, 10), "25"),
        ]

        groups = aggregator.cumulative(deltas, as_of=date(2024, 6, 30))

        assert len(groups) == 1
        assert groups[0].project_id == "A"
        assert groups[0].cost == Decimal("150")
        assert groups[0].record_count == 2

    def test_as_of_is_inclusive(self, aggregator):
        deltas = [make_delta("A", date(2024, 6, 30), "100")]

        groups = aggregator.cumulative(deltas, as_of=date(2024, 6, 30))

        assert groups[0].cost == Decimal("100")

    def test_cash_and_other_assets_excluded(self, aggregator):
        """Cash outcome rows and the 'Other Assets' project never count."""
        deltas = [
            make_delta("A", date(2024, 1, 10), "100"),
            make_delta("A", date(2024, 1, 11), "999", outcome_type="Cash"),
            make_delta("Other Assets", date(2024, 1, 12), "500"),
        ]

        groups = aggregator.cumulative(deltas, as_of=date(2024, 12, 31))

        assert [g.project_id for g in groups] == ["A"]
        assert groups[0].cost == Decimal("100")

    def test_divested_position_has_negative_cost(self, aggregator):
        """Net divested projects keep their negative sum; nothing raises."""
        deltas = [
            make_delta("A", date(2024, 1, 10), "100"),
            make_delta("A", date(2024, 3, 10), "-150", ownership_type="Divested"),
        ]

        groups = aggregator.cumulative(deltas, as_of=date(2024, 12, 31))

        assert groups[0].cost == Decimal("-50")
        assert groups[0].divested_cost == Decimal("-150")

    def test_sorted_by_cost_descending(self, aggregator):
        deltas = [
            make_delta("B", date(2024, 1, 10), "50"),
            make_delta("C", date(2024, 1, 10), "300"),
            make_delta("A", date(2024, 1, 10), "50"),
        ]

        groups = aggregator.cumulative(deltas, as_of=date(2024, 12, 31))

        assert [g.project_id for g in groups] == ["C", "A", "B"]

    def test_by_asset_class_with_unknown(self, aggregator):
        """Missing asset class is grouped as 'Unknown'."""
        deltas = [
            make_delta("A", date(2024, 1, 10), "100", asset_class="Equity"),
            make_delta("A", date(2024, 1, 10), "40", asset_class="Tokens"),
            make_delta("A", date(2024, 1, 10), "10", asset_class=None),
        ]

        groups = aggregator.cumulative(deltas, as_of=date(2024, 12, 31), by_asset_class=True)

        by_class = {g.asset_class: g.cost for g in groups}
        assert by_class == {
            "Equity": Decimal("100"),
            "Tokens": Decimal("40"),
            "Unknown": Decimal("10"),
        }

    def test_empty_input(self, aggregator):
        assert aggregator.cumulative([], as_of=date(2024, 12, 31)) == []


class TestEntryValuation:
    """Tests for first_entry and weighted_valuation."""

    def test_first_entry_is_lowest_positive_valuation(self, aggregator):
        deltas = [
            make_delta("A", date(2024, 1, 10), "100", overall_valuation="20000000"),
            make_delta("A", date(2024, 3, 10), "50", overall_valuation="10000000",
                       ownership_type="Top Up"),
            make_delta("A", date(2024, 4, 10), "10", overall_valuation="0"),
        ]

        groups = aggregator.cumulative(deltas, as_of=date(2024, 12, 31))

        assert groups[0].first_entry == Decimal("10000000")

    def test_weighted_valuation_uses_entry_rows_only(self, aggregator):
        """(100*10 + 300*20) / 400 = 17.5; the Divested row is ignored."""
        deltas = [
            make_delta("A", date(2024, 1, 10), "100", overall_valuation="10"),
            make_delta("A", date(2024, 2, 10), "300", overall_valuation="20",
                       ownership_type="Top Up"),
            make_delta("A", date(2024, 3, 10), "-50", overall_valuation="99",
                       ownership_type="Divested"),
        ]

        groups = aggregator.cumulative(deltas, as_of=date(2024, 12, 31))

        assert groups[0].weighted_valuation == Decimal("17.5")

    def test_no_valuation_is_none(self, aggregator):
        deltas = [make_delta("A", date(2024, 1, 10), "100")]

        groups = aggregator.cumulative(deltas, as_of=date(2024, 12, 31))

        assert groups[0].first_entry is None
        assert groups[0].weighted_valuation is None


class TestWindowedCost:
    """Tests for CostBasisAggregator.windowed."""

    def test_window_is_inclusive(self, aggregator):
        deltas = [
            make_delta("A", date(2024, 1, 1), "10"),
            make_delta("A", date(2024, 3, 31), "20"),
            make_delta("A", date(2023, 12, 31), "1000"),
            make_delta("A", date(2024, 4, 1), "1000"),
        ]

        groups = aggregator.windowed(deltas, date(2024, 1, 1), date(2024, 3, 31))

        assert groups[0].cost == Decimal("30")

    def test_ownership_type_filter(self, aggregator):
        deltas = [
            make_delta("A", date(2024, 1, 10), "100", ownership_type="Established"),
            make_delta("A", date(2024, 2, 10), "40", ownership_type="Top Up"),
            make_delta("A", date(2024, 3, 10), "-30", ownership_type="Divested"),
        ]

        groups = aggregator.windowed(
            deltas, date(2024, 1, 1), date(2024, 12, 31),
            ownership_types=("Established", "Top Up"),
        )

        assert groups[0].cost == Decimal("140")

    def test_ownership_split(self, aggregator):
        deltas = [
            make_delta("A", date(2024, 1, 10), "100", ownership_type="Established"),
            make_delta("A", date(2024, 2, 10), "40", ownership_type="Top Up"),
            make_delta("A", date(2024, 3, 10), "-30", ownership_type="Partially Divested"),
        ]

        group = aggregator.windowed(deltas, date(2024, 1, 1), date(2024, 12, 31))[0]

        assert group.cost == Decimal("110")
        assert group.established_cost == Decimal("100")
        assert group.top_up_cost == Decimal("40")
        assert group.divested_cost == Decimal("-30")


class TestTotalByAssetClass:
    def test_cumulative_totals(self, aggregator):
        deltas = [
            make_delta("A", date(2024, 1, 10), "100", asset_class="Equity"),
            make_delta("B", date(2024, 1, 10), "60", asset_class="Tokens"),
            make_delta("C", date(2024, 1, 10), "40", asset_class="Equity"),
            make_delta("D", date(2025, 1, 10), "500", asset_class="Equity"),
        ]

        totals = aggregator.total_by_asset_class(deltas, as_of=date(2024, 12, 31))

        assert totals == {"Equity": Decimal("140"), "Tokens": Decimal("60")}

    def test_since_restricts_window(self, aggregator):
        deltas = [
            make_delta("A", date(2024, 1, 10), "100"),
            make_delta("A", date(2024, 7, 10), "30"),
        ]

        totals = aggregator.total_by_asset_class(
            deltas, as_of=date(2024, 12, 31), since=date(2024, 7, 1)
        )

        assert totals == {"Equity": Decimal("30")}


class TestCostEntries:
    """Tests for CostBasisAggregator.entries."""

    def test_rows_oldest_first_with_defaults(self, aggregator):
        deltas = [
            make_delta("A", date(2024, 5, 1), "40", ownership_type="Top Up", ownership_id="o-2"),
            make_delta("A", date(2024, 2, 1), "100", asset_class=None, ownership_type=None,
                       ownership_id="o-1"),
            make_delta("A", date(2024, 3, 1), "999", outcome_type="Cash", ownership_id="o-3"),
            make_delta("A", date(2024, 8, 1), "10", ownership_id="o-4"),
        ]

        rows = aggregator.entries(deltas, date(2024, 1, 1), date(2024, 6, 30))

        assert [r.ownership_id for r in rows] == ["o-1", "o-2"]
        assert rows[0].asset_class == "Unknown"
        assert rows[0].ownership_type == "Unknown"
        assert rows[1].ownership_type == "Top Up"
        assert rows[1].cost == Decimal("40")


class TestCostByOutcomeType:
    """Tests for CostBasisAggregator.by_outcome_type."""

    def test_split_and_order(self, aggregator):
        deltas = [
            make_delta("A", date(2024, 2, 1), "100", outcome_type="Seed"),
            make_delta("B", date(2024, 3, 1), "30", ownership_type="Top Up", outcome_type="Seed"),
            make_delta("C", date(2024, 3, 1), "250", outcome_type="Series A"),
            make_delta("D", date(2024, 4, 1), "60", ownership_type="Top Up"),
            make_delta("E", date(2024, 4, 1), "-20", ownership_type="Divested", outcome_type="Seed"),
            make_delta("F", date(2024, 4, 1), "500", outcome_type="Cash"),
        ]

        rows = aggregator.by_outcome_type(deltas, date(2024, 1, 1), date(2024, 6, 30))

        assert [r.outcome_type for r in rows] == ["Series A", "Seed", "Unknown"]
        assert rows[1].established_cost == Decimal("100")
        assert rows[1].top_up_cost == Decimal("30")
        assert rows[1].total_cost == Decimal("130")
        assert rows[2].established_cost == Decimal("0")
        assert rows[2].top_up_cost == Decimal("60")

    def test_window_bounds(self, aggregator):
        deltas = [
            make_delta("A", date(2023, 12, 31), "100"),
            make_delta("A", date(2024, 1, 1), "10"),
        ]

        rows = aggregator.by_outcome_type(deltas, date(2024, 1, 1), date(2024, 6, 30))

        assert len(rows) == 1
        assert rows[0].established_cost == Decimal("10")

    def test_groups_collect_outcome_types(self, aggregator):
        deltas = [
            make_delta("A", date(2024, 2, 1), "100", outcome_type="Seed"),
            make_delta("A", date(2024, 3, 1), "50", outcome_type="Series A"),
            make_delta("A", date(2024, 4, 1), "50"),
        ]

        groups = aggregator.windowed(deltas, date(2024, 1, 1), date(2024, 6, 30))

        assert groups[0].outcome_types == ("Seed", "Series A")


# =============================================================================
# MARKET VALUE JOINER
# =============================================================================

class TestMarketValueJoiner:
    """Tests for MarketValueJoiner.join."""

    def test_full_outer_join(self, aggregator, joiner):
        """Cost-only and MV-only projects are both kept."""
        portfolio_date = date(2024, 6, 30)
        groups = aggregator.cumulative(
            [
                make_delta("A", date(2024, 1, 10), "100"),
                make_delta("B", date(2024, 1, 10), "200"),
            ],
            as_of=portfolio_date,
        )
        snapshots = [
            make_snapshot("A", portfolio_date, unrealized="150", realized="10"),
            make_snapshot("C", portfolio_date, unrealized="75"),
        ]

        positions = {p.project_id: p for p in joiner.join(groups, snapshots, portfolio_date)}

        assert positions["A"].total_mv == Decimal("160")
        assert positions["A"].realized_mv == Decimal("10")
        assert positions["B"].total_mv == Decimal("0")
        assert positions["B"].cost == Decimal("200")
        assert positions["C"].cost == Decimal("0")
        assert positions["C"].moic is None

    def test_only_exact_portfolio_date(self, aggregator, joiner):
        portfolio_date = date(2024, 6, 30)
        groups = aggregator.cumulative(
            [make_delta("A", date(2024, 1, 10), "100")], as_of=portfolio_date
        )
        snapshots = [
            make_snapshot("A", date(2024, 3, 31), unrealized="999"),
            make_snapshot("A", portfolio_date, unrealized="150"),
        ]

        positions = joiner.join(groups, snapshots, portfolio_date)

        assert positions[0].total_mv == Decimal("150")

    def test_bookkeeping_rows_excluded(self, joiner):
        """Flows, NAV Adjustment and Cash MV rows never reach a position."""
        portfolio_date = date(2024, 6, 30)
        snapshots = [
            make_snapshot("A", portfolio_date, unrealized="100"),
            make_snapshot("A", portfolio_date, unrealized="50", asset_class="Flows"),
            make_snapshot("A", portfolio_date, unrealized="50", asset_class="NAV Adjustment"),
            make_snapshot("A", portfolio_date, unrealized="50", asset_class="Cash"),
            make_snapshot("Other Assets", portfolio_date, unrealized="1000"),
        ]

        positions = joiner.join([], snapshots, portfolio_date)

        assert len(positions) == 1
        assert positions[0].total_mv == Decimal("100")

    def test_null_market_values_are_zero(self, joiner):
        portfolio_date = date(2024, 6, 30)
        snapshots = [make_snapshot("A", portfolio_date, unrealized=None, realized=None)]

        positions = joiner.join([], snapshots, portfolio_date)

        assert positions[0].total_mv == Decimal("0")

    def test_asset_breakdown_flag(self, aggregator, joiner):
        """Projects spanning more than one asset class are flagged."""
        portfolio_date = date(2024, 6, 30)
        groups = aggregator.cumulative(
            [
                make_delta("A", date(2024, 1, 10), "100", asset_class="Equity"),
                make_delta("A", date(2024, 1, 10), "50", asset_class="Tokens"),
                make_delta("B", date(2024, 1, 10), "80"),
            ],
            as_of=portfolio_date,
        )

        positions = {p.project_id: p for p in joiner.join(groups, [], portfolio_date)}

        assert positions["A"].has_asset_breakdown is True
        assert positions["B"].has_asset_breakdown is False

    def test_missing_asset_class_is_not_a_second_class(self, aggregator, joiner):
        """Rows without an asset class never make a project expandable by class."""
        portfolio_date = date(2024, 6, 30)
        groups = aggregator.cumulative(
            [
                make_delta("A", date(2024, 1, 10), "100", asset_class="Equity"),
                make_delta("A", date(2024, 2, 10), "50", asset_class=None),
            ],
            as_of=portfolio_date,
        )
        snapshots = [make_snapshot("A", portfolio_date, unrealized="20", asset_class=None)]

        position = joiner.join(groups, snapshots, portfolio_date)[0]

        assert groups[0].asset_classes == ("Equity",)
        assert position.has_asset_breakdown is False
        assert position.is_expandable is True
        assert position.total_mv == Decimal("20")

    def test_record_count_reaches_positions(self, aggregator, joiner):
        portfolio_date = date(2024, 6, 30)
        groups = aggregator.cumulative(
            [
                make_delta("A", date(2024, 1, 10), "100"),
                make_delta("A", date(2024, 3, 10), "40"),
                make_delta("B", date(2024, 1, 10), "80"),
            ],
            as_of=portfolio_date,
        )
        snapshots = [make_snapshot("C", portfolio_date, unrealized="10")]

        positions = {p.project_id: p for p in joiner.join(groups, snapshots, portfolio_date)}

        assert positions["A"].record_count == 2
        assert positions["A"].is_expandable is True
        assert positions["B"].is_expandable is False
        assert positions["C"].record_count == 0
        assert positions["C"].is_expandable is False

    def test_join_by_asset_class(self, aggregator, joiner):
        portfolio_date = date(2024, 6, 30)
        groups = aggregator.cumulative(
            [
                make_delta("A", date(2024, 1, 10), "100", asset_class="Equity"),
                make_delta("A", date(2024, 1, 10), "50", asset_class="Tokens"),
            ],
            as_of=portfolio_date,
            by_asset_class=True,
        )
        snapshots = [
            make_snapshot("A", portfolio_date, unrealized="300", asset_class="Tokens"),
        ]

        positions = joiner.join(groups, snapshots, portfolio_date, by_asset_class=True)

        by_class = {p.asset_class: p for p in positions}
        assert by_class["Tokens"].moic == Decimal("6")
        assert by_class["Equity"].total_mv == Decimal("0")

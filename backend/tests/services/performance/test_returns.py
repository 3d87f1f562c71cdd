# backend/tests/services/performance/test_returns.py
"""
Unit tests for the ratio primitives.

These tests verify the pure calculation logic WITHOUT database dependencies.
All tests use known values that can be verified by hand.

Test Coverage:
- calculate_moic: total_mv / cost, undefined for cost <= 0
- calculate_itd / calculate_qtd: anchored returns net of capital movements
- weighted_average / simple_average: None-aware aggregation
- calculate_share: percentage and fraction columns
"""

from decimal import Decimal

from fundmonitor.services.performance.returns import (
    calculate_moic,
    calculate_anchored_return,
    calculate_itd,
    calculate_qtd,
    weighted_average,
    simple_average,
    calculate_share,
)


# =============================================================================
# MOIC TESTS
# =============================================================================

class TestMoic:
    """Tests for calculate_moic function."""

    def test_basic_multiple(self):
        """Test MOIC of a 2x position."""
        assert calculate_moic(Decimal("200"), Decimal("100")) == Decimal("2")

    def test_zero_cost_is_undefined(self):
        """MOIC(cost=0, mv=500) is undefined, not 0 or infinity."""
        assert calculate_moic(Decimal("500"), Decimal("0")) is None

    def test_negative_cost_is_undefined(self):
        """Net divested positions have no multiple."""
        assert calculate_moic(Decimal("500"), Decimal("-10")) is None

    def test_zero_market_value(self):
        """A written-off position has MOIC 0."""
        assert calculate_moic(Decimal("0"), Decimal("100")) == Decimal("0")


# =============================================================================
# ANCHORED RETURN TESTS
# =============================================================================

class TestItd:
    """Tests for calculate_itd function."""

    def test_itd_with_later_contribution(self):
        """firstMV=100, extraCost=20, current=150 -> 150/120 - 1 = 0.25."""
        result = calculate_itd(Decimal("150"), Decimal("100"), Decimal("20"))
        assert result == Decimal("0.25")

    def test_no_anchor_is_undefined(self):
        """A position that never had market value has no ITD."""
        assert calculate_itd(Decimal("150"), None, Decimal("20")) is None

    def test_non_positive_anchor_is_undefined(self):
        assert calculate_itd(Decimal("150"), Decimal("0"), Decimal("20")) is None

    def test_non_positive_base_is_undefined(self):
        """Divestments larger than the anchor leave no base."""
        assert calculate_itd(Decimal("10"), Decimal("100"), Decimal("-100")) is None


class TestQtd:
    """Tests for calculate_qtd function."""

    def test_qtd_with_partial_divestment(self):
        """prevQuarterMV=200, change=-50, current=180 -> 180/150 - 1 = 0.20."""
        result = calculate_qtd(Decimal("180"), Decimal("200"), Decimal("-50"))
        assert result == Decimal("0.2")

    def test_new_position_this_quarter(self):
        """No MV at quarter end, but capital moved: base is the new cost."""
        result = calculate_qtd(Decimal("120"), Decimal("0"), Decimal("100"))
        assert result == Decimal("0.2")

    def test_untouched_position_is_undefined(self):
        """No MV at quarter end and no capital movement -> undefined."""
        assert calculate_qtd(Decimal("50"), Decimal("0"), Decimal("0")) is None

    def test_negative_base_is_undefined(self):
        assert calculate_qtd(Decimal("50"), Decimal("0"), Decimal("-20")) is None


class TestAnchoredReturn:
    def test_no_change(self):
        assert calculate_anchored_return(Decimal("100"), Decimal("100"), Decimal("0")) == Decimal("0")


# =============================================================================
# AGGREGATION TESTS
# =============================================================================

class TestWeightedAverage:
    """Tests for weighted_average function."""

    def test_mv_weighted(self):
        """(100*0.10 + 300*0.30) / 400 = 0.25."""
        pairs = [(Decimal("0.10"), Decimal("100")), (Decimal("0.30"), Decimal("300"))]
        assert weighted_average(pairs) == Decimal("0.25")

    def test_undefined_values_are_skipped(self):
        """None values are excluded from both numerator and weights."""
        pairs = [
            (Decimal("0.10"), Decimal("100")),
            (None, Decimal("1000")),
            (Decimal("0.30"), Decimal("300")),
        ]
        assert weighted_average(pairs) == Decimal("0.25")

    def test_all_undefined(self):
        assert weighted_average([(None, Decimal("100"))]) is None

    def test_zero_weight(self):
        assert weighted_average([(Decimal("0.5"), Decimal("0"))]) is None

    def test_empty(self):
        assert weighted_average([]) is None


class TestSimpleAverage:
    def test_skips_missing_values(self):
        """Missing values are not counted as zero."""
        assert simple_average([Decimal("10"), None, Decimal("20")]) == Decimal("15")

    def test_all_missing(self):
        assert simple_average([None, None]) is None


class TestShare:
    """Tests for calculate_share function."""

    def test_fraction(self):
        assert calculate_share(Decimal("25"), Decimal("100")) == Decimal("0.25")

    def test_percentage_scale(self):
        assert calculate_share(Decimal("25"), Decimal("100"), Decimal("100")) == Decimal("25")

    def test_zero_whole(self):
        """Share of a zero total is 0, never a division error."""
        assert calculate_share(Decimal("25"), Decimal("0")) == Decimal("0")

# backend/fundmonitor/services/performance/returns.py
"""
Pure return and multiple functions for the Performance Engine.

Every function is stateless and works on Decimal. A ratio whose denominator is
not positive is UNDEFINED and returned as None; it is never 0 and never
infinity, and it is excluded from any weighted average built on top of it.

Formulas:
    MOIC = total_mv / cost                              (cost > 0)

    Anchored return (ITD and QTD share it):
        R = current_mv / (anchor_mv + cost_change) - 1  (base > 0)

    ITD: anchor = first portfolio date with MV > 0, cost_change = deltas after it
    QTD: anchor = previous quarter end MV,          cost_change = deltas after it

    Weighted average = Σ(value_i · weight_i) / Σ weight_i   over defined values

Example:
    >>> calculate_anchored_return(Decimal("150"), Decimal("100"), Decimal("20"))
    Decimal('0.25')
"""

from decimal import Decimal
from collections.abc import Iterable

from fundmonitor.services.constants import ZERO, ONE


# =============================================================================
# MULTIPLES
# =============================================================================

def calculate_moic(total_mv: Decimal, cost: Decimal) -> Decimal | None:
    """
    Multiple on invested capital.

    Args:
        total_mv: Realized + unrealized market value
        cost: Cost basis

    Returns:
        total_mv / cost, or None when cost <= 0
    """
    if cost <= ZERO:
        return None
    return total_mv / cost


# =============================================================================
# ANCHORED RETURNS
# =============================================================================

def calculate_anchored_return(
        current_mv: Decimal,
        anchor_mv: Decimal,
        cost_change: Decimal,
) -> Decimal | None:
    """
    Return measured against an anchor value plus later capital movements.

    Contributions after the anchor raise the base and divestments lower it, so
    the result reflects market movement only.

    Args:
        current_mv: Market value at the evaluation date
        anchor_mv: Market value at the anchor date
        cost_change: Net cost deltas after the anchor, up to the evaluation date

    Returns:
        current_mv / (anchor_mv + cost_change) - 1, or None if the base <= 0
    """
    base = anchor_mv + cost_change
    if base <= ZERO:
        return None
    return current_mv / base - ONE


def calculate_itd(
        current_mv: Decimal,
        first_mv: Decimal | None,
        extra_cost: Decimal,
) -> Decimal | None:
    """
    Inception-to-date return.

    Undefined when the position never had a positive market value
    (first_mv is None or not positive) or when the anchored base is not positive.
    """
    if first_mv is None or first_mv <= ZERO:
        return None
    return calculate_anchored_return(current_mv, first_mv, extra_cost)


def calculate_qtd(
        current_mv: Decimal,
        prev_quarter_mv: Decimal,
        quarter_cost_change: Decimal,
) -> Decimal | None:
    """
    Quarter-to-date return.

    Computed only for positions that existed at the previous quarter end or
    moved capital during the quarter; otherwise undefined.
    """
    if prev_quarter_mv <= ZERO and quarter_cost_change == ZERO:
        return None
    return calculate_anchored_return(current_mv, prev_quarter_mv, quarter_cost_change)


# =============================================================================
# AGGREGATION
# =============================================================================

def weighted_average(pairs: Iterable[tuple[Decimal | None, Decimal]]) -> Decimal | None:
    """
    Weighted average over (value, weight) pairs, skipping undefined values.

    Returns:
        The weighted mean, or None if no value is defined or the total
        weight of the defined values is not positive
    """
    numerator = ZERO
    total_weight = ZERO
    for value, weight in pairs:
        if value is None:
            continue
        numerator += value * weight
        total_weight += weight

    if total_weight <= ZERO:
        return None
    return numerator / total_weight


def simple_average(values: Iterable[Decimal | None]) -> Decimal | None:
    """Arithmetic mean of the defined values; None when there are none."""
    present = [value for value in values if value is not None]
    if not present:
        return None
    return sum(present, ZERO) / len(present)


def calculate_share(part: Decimal, whole: Decimal, scale: Decimal = ONE) -> Decimal:
    """
    part / whole · scale, or 0 when whole is not positive.

    Used for percentage columns: scale=100 for `_percentage` fields,
    scale=1 for `_pct` fractions.
    """
    if whole <= ZERO:
        return ZERO
    return part / whole * scale

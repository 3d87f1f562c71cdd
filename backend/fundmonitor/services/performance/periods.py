# backend/fundmonitor/services/performance/periods.py
"""
Period spine generation.

The spine is the fixed, calendar-aligned sequence of periods covering a date
range. It does not depend on which dates have data: a period without records
still appears in a rollup with zero-valued metrics.

Alignment:
    Yearly       -> Jan 1
    Half-Yearly  -> Jan 1 or Jul 1
    Quarterly    -> first day of the enclosing quarter

Labels:
    Yearly       "2025"
    Half-Yearly  "2025 H1" / "2025 H2"   (month <= 6 -> H1)
    Quarterly    "Q3 2025"               (quarter = ceil(month / 3))

Example:
    >>> spine = PeriodSpineGenerator().generate(
    ...     date(2024, 2, 15), date(2024, 11, 1), PeriodType.QUARTERLY
    ... )
    >>> [p.label for p in spine]
    ['Q1 2024', 'Q2 2024', 'Q3 2024', 'Q4 2024']
    >>> spine[0]
    Period(label='Q1 2024', start_date=datetime.date(2024, 1, 1), end_date=datetime.date(2024, 3, 31))
"""

from __future__ import annotations

from datetime import date, timedelta

from fundmonitor.services.performance.types import Period, PeriodType
from fundmonitor.utils.date_utils import (
    add_months,
    half_of,
    half_year_start,
    quarter_of,
    quarter_start,
    year_start,
)

_MONTHS_PER_PERIOD = {
    PeriodType.YEARLY: 12,
    PeriodType.HALF_YEARLY: 6,
    PeriodType.QUARTERLY: 3,
}


def format_period_label(value: date, period_type: PeriodType) -> str:
    """Label of the period of the given cadence that contains the date."""
    period_type = PeriodType.parse(period_type)
    if period_type is PeriodType.YEARLY:
        return f"{value.year}"
    if period_type is PeriodType.HALF_YEARLY:
        return f"{value.year} H{half_of(value)}"
    return f"Q{quarter_of(value)} {value.year}"


def period_start_for(value: date, period_type: PeriodType) -> date:
    """First day of the period of the given cadence that contains the date."""
    period_type = PeriodType.parse(period_type)
    if period_type is PeriodType.YEARLY:
        return year_start(value)
    if period_type is PeriodType.HALF_YEARLY:
        return half_year_start(value)
    return quarter_start(value)


class PeriodSpineGenerator:
    """
    Builds the ordered, non-overlapping period sequence for a date range.

    Stateless and deterministic: identical arguments always produce identical
    periods. A range whose start is after its end yields no periods.
    """

    def generate(
            self,
            start_date: date,
            end_date: date,
            period_type: PeriodType | str,
    ) -> list[Period]:
        """
        Generate the spine.

        Args:
            start_date: First date that must be covered
            end_date: Last date that must be covered
            period_type: Cadence (name or PeriodType)

        Returns:
            Periods in chronological order; the first may start before
            start_date and the last may end after end_date

        Raises:
            InvalidPeriodTypeError: If period_type names no known cadence
        """
        period_type = PeriodType.parse(period_type)
        months = _MONTHS_PER_PERIOD[period_type]

        periods: list[Period] = []
        current = period_start_for(start_date, period_type)
        while current <= end_date:
            next_start = add_months(current, months)
            periods.append(
                Period(
                    label=format_period_label(current, period_type),
                    start_date=current,
                    end_date=next_start - timedelta(days=1),
                )
            )
            current = next_start

        return periods

    def label_for(self, value: date, period_type: PeriodType | str) -> str:
        return format_period_label(value, PeriodType.parse(period_type))

# backend/fundmonitor/utils/date_utils.py
"""
Calendar helpers shared by the performance calculators.

Quarters are calendar quarters (Q1 = Jan-Mar). Half-years split at July 1.

Usage:
    from fundmonitor.utils.date_utils import previous_quarter_end

    previous_quarter_end(date(2025, 5, 14))  # date(2025, 3, 31)
"""

from datetime import date, timedelta


def quarter_of(d: date) -> int:
    """Calendar quarter (1-4) containing the date."""
    return (d.month - 1) // 3 + 1


def half_of(d: date) -> int:
    """Half-year (1 or 2) containing the date."""
    return 1 if d.month <= 6 else 2


def quarter_start(d: date) -> date:
    """
    First day of the quarter containing the date.

    Example:
        >>> quarter_start(date(2024, 2, 15))
        datetime.date(2024, 1, 1)
    """
    return date(d.year, 3 * (quarter_of(d) - 1) + 1, 1)


def half_year_start(d: date) -> date:
    """First day of the half-year containing the date (Jan 1 or Jul 1)."""
    return date(d.year, 1 if d.month <= 6 else 7, 1)


def year_start(d: date) -> date:
    """January 1st of the date's year."""
    return date(d.year, 1, 1)


def add_months(d: date, months: int) -> date:
    """
    Shift a first-of-month date by a whole number of months.

    Only used on period boundaries, which always fall on day 1, so no
    end-of-month clamping is needed.
    """
    month_index = d.year * 12 + (d.month - 1) + months
    return date(month_index // 12, month_index % 12 + 1, d.day)


def previous_quarter_end(d: date) -> date:
    """
    Last day of the quarter before the one containing the date.

    Q1 -> Dec 31 of the previous year, Q2 -> Mar 31, Q3 -> Jun 30, Q4 -> Sep 30.
    A quarter-end date itself maps to the end of the quarter before it.

    Example:
        >>> previous_quarter_end(date(2025, 1, 10))
        datetime.date(2024, 12, 31)
        >>> previous_quarter_end(date(2025, 6, 30))
        datetime.date(2025, 3, 31)
    """
    return quarter_start(d) - timedelta(days=1)

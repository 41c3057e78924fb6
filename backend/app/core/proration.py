"""
Temporal proration: the share of a recurring amount that falls in one calendar year.
"""
from datetime import date
from decimal import Decimal

from app.core.records import Frequency


def _year_bounds(target_year: int) -> tuple[date, date]:
    return date(target_year, 1, 1), date(target_year, 12, 31)


def occurrences(
    frequency: Frequency,
    start: date | None,
    end: date | None,
    target_year: int,
) -> int:
    """
    Count how many times an amount recurs inside target_year.
    Missing bounds default to the first / last day of the year.
    """
    year_start, year_end = _year_bounds(target_year)
    start = start or year_start
    end = end or year_end

    if end < year_start or start > year_end:
        return 0

    effective_start = max(start, year_start)
    effective_end = min(end, year_end)
    if effective_end < effective_start:
        return 0

    if frequency == Frequency.ONE_TIME:
        return 1 if start.year == target_year else 0

    if frequency == Frequency.ANNUAL:
        return 1

    if frequency == Frequency.WEEKLY:
        return (effective_end - effective_start).days // 7 + 1

    months = (
        (effective_end.year - effective_start.year) * 12
        + effective_end.month
        - effective_start.month
        + 1
    )
    if frequency == Frequency.MONTHLY:
        return months
    if frequency == Frequency.QUARTERLY:
        return max(1, round(months / 3))
    return 0


def prorated_amount(
    amount: Decimal,
    frequency: Frequency,
    start: date | None,
    end: date | None,
    target_year: int,
) -> Decimal:
    """Annualize a recurring amount for target_year (full precision, unrounded)."""
    if amount == 0:
        return Decimal("0")
    return amount * occurrences(frequency, start, end, target_year)

"""Mid-period proration from hire and termination dates."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

ZERO = Decimal("0")
ONE = Decimal("1")


def _inclusive_days(start: date, end: date) -> int:
    return (end - start).days + 1


class ProrationCalculator:
    """Fraction of a pay period during which an employee was active.

    Counts inclusive calendar days. The result is exact (not rounded);
    a factor of 0 means the employee gets no record for the period.
    """

    @staticmethod
    def factor(
        period_start: date,
        period_end: date,
        hire_date: date,
        termination_date: date | None = None,
    ) -> Decimal:
        if period_end < period_start:
            return ZERO
        if hire_date > period_end:
            return ZERO
        if termination_date is not None and termination_date < period_start:
            return ZERO

        active_start = max(period_start, hire_date)
        active_end = period_end
        if termination_date is not None:
            active_end = min(period_end, termination_date)
        if active_start > active_end:
            return ZERO

        period_days = _inclusive_days(period_start, period_end)
        active_days = _inclusive_days(active_start, active_end)
        if active_days >= period_days:
            return ONE
        return Decimal(active_days) / Decimal(period_days)

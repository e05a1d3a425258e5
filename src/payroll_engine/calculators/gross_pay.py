"""Gross pay from compensation, proration and reported run inputs."""

from __future__ import annotations

from decimal import Decimal

from payroll_engine.calculators.types import GrossPay
from payroll_engine.tax.types import ZERO, round_money

# 40 hours x 52 weeks
STANDARD_ANNUAL_HOURS = Decimal("2080")
OVERTIME_MULTIPLIER = Decimal("1.5")


def standard_period_hours(pay_periods_per_year: int) -> Decimal:
    """Scheduled hours in one pay period (80 for biweekly)."""
    return STANDARD_ANNUAL_HOURS / pay_periods_per_year


def compute_gross_pay(
    compensation_type: str,
    pay_rate: Decimal,
    pay_periods_per_year: int,
    proration_factor: Decimal,
    hours_worked: Decimal | None = None,
    overtime_hours: Decimal | None = None,
    bonus: Decimal | None = None,
) -> GrossPay:
    """Compute gross pay for one employee and period.

    SALARY pays the annual rate per period, prorated. HOURLY pays reported
    hours as given, or the standard period hours prorated, plus overtime at
    1.5x. A bonus is added unprorated for either type.
    """
    overtime_hours = max(overtime_hours or ZERO, ZERO)
    bonus = max(bonus or ZERO, ZERO)
    standard_hours = standard_period_hours(pay_periods_per_year)

    if compensation_type == "HOURLY":
        hours = hours_worked if hours_worked is not None else standard_hours * proration_factor
        hours = max(hours, ZERO)
        regular_pay = round_money(pay_rate * hours)
        overtime_pay = round_money(pay_rate * OVERTIME_MULTIPLIER * overtime_hours)
    else:
        hours = standard_hours * proration_factor
        regular_pay = round_money(pay_rate / pay_periods_per_year * proration_factor)
        overtime_pay = ZERO
        overtime_hours = ZERO

    return GrossPay(
        regular_pay=regular_pay,
        overtime_pay=overtime_pay,
        bonus=round_money(bonus),
        regular_hours=round_money(hours),
        overtime_hours=round_money(overtime_hours),
    )

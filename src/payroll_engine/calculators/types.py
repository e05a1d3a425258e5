"""Type definitions for the per-employee calculation pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from payroll_engine.tax.types import ZERO


@dataclass(frozen=True)
class GarnishmentOrder:
    """A garnishment as seen by the calculator.

    Exactly one of amount/percent is the deduction basis. percent is a
    fraction of disposable earnings (0.10 = 10%).
    """

    garnishment_id: UUID
    garnishment_type: str
    priority: int
    amount: Decimal | None = None
    percent: Decimal | None = None
    is_active: bool = True
    total_owed: Decimal | None = None
    total_paid: Decimal = ZERO

    @property
    def remaining_balance(self) -> Decimal | None:
        """Balance still owed, or None when the order has no tracked total."""
        if self.total_owed is None:
            return None
        return self.total_owed - (self.total_paid or ZERO)

    def requested_amount(self, disposable_earnings: Decimal) -> Decimal:
        if self.amount is not None and self.amount > 0:
            return self.amount
        if self.percent is not None and self.percent > 0:
            return disposable_earnings * self.percent
        return ZERO


@dataclass(frozen=True)
class GarnishmentLine:
    """One accepted garnishment deduction."""

    garnishment_id: UUID
    garnishment_type: str
    amount: Decimal


@dataclass(frozen=True)
class GarnishmentResult:
    """Total garnishment deduction and the accepted lines, in priority order."""

    total_deduction: Decimal
    ceiling: Decimal
    lines: tuple[GarnishmentLine, ...] = ()


@dataclass(frozen=True)
class GrossPay:
    """Gross pay breakdown for one employee and period."""

    regular_pay: Decimal
    overtime_pay: Decimal
    bonus: Decimal
    regular_hours: Decimal
    overtime_hours: Decimal

    @property
    def total(self) -> Decimal:
        return self.regular_pay + self.overtime_pay + self.bonus


@dataclass(frozen=True)
class RetirementElection:
    """An employee's 401(k) deferral election with the employer's match terms.

    rate, match_rate and match_limit are fractions (0.05 = 5%); match_limit
    caps the deferral eligible for matching as a fraction of gross pay.
    """

    contribution_type: str | None = None
    rate: Decimal | None = None
    amount: Decimal | None = None
    match_rate: Decimal | None = None
    match_limit: Decimal | None = None


@dataclass(frozen=True)
class RetirementContribution:
    """Per-period 401(k) deferral and the employer match it earns."""

    employee_deferral: Decimal = ZERO
    employer_match: Decimal = ZERO

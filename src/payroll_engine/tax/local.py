"""City and county income taxes.

A local rule is looked up by the employee's work state and work city. The
rate depends on whether the employee resides in that locality; most
localities tax nonresidents who work there at a lower rate, some (NYC,
Baltimore) not at all. Local taxes apply to gross wages; 401(k) deferrals
do not reduce them.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from payroll_engine.tax.types import (
    HUNDRED,
    ZERO,
    ByFilingStatus,
    TaxInput,
    TaxResult,
    find_bracket,
    round_money,
)


def normalize_city(city: str) -> str:
    """Canonical lookup form of a city name: upper case, single spaces."""
    return " ".join(city.replace(".", " ").upper().split())


@dataclass(frozen=True)
class LocalRate:
    """Either a flat rate on gross wages or brackets on annualized wages."""

    rate: Decimal = ZERO
    brackets: ByFilingStatus | None = None

    def period_tax(self, tax_input: TaxInput) -> tuple[Decimal, Decimal]:
        """Return (unrounded period tax, marginal rate)."""
        gross = max(ZERO, tax_input.gross_pay)
        if self.brackets is None:
            return gross * self.rate, self.rate
        annual = gross * tax_input.pay_periods_per_year
        bracket = find_bracket(self.brackets.get(tax_input.filing_status), annual)
        if bracket is None:
            return ZERO, ZERO
        return bracket.annual_tax(annual) / tax_input.pay_periods_per_year, bracket.rate


@dataclass(frozen=True)
class ServicesTax:
    """Flat annual head tax (Pennsylvania LST) spread over pay periods."""

    annual_amount: Decimal
    min_annual_wages: Decimal = ZERO

    def per_period(self, tax_input: TaxInput) -> Decimal:
        if tax_input.annualized_income <= self.min_annual_wages:
            return ZERO
        return round_money(self.annual_amount / tax_input.pay_periods_per_year)


@dataclass(frozen=True)
class LocalTaxRule:
    """Income tax levied by a city or county on wages earned there."""

    jurisdiction: str
    year: int
    state: str
    cities: tuple[str, ...]
    resident: LocalRate
    nonresident: LocalRate
    services_tax: ServicesTax | None = None
    name: str = ""

    def compute(self, tax_input: TaxInput) -> TaxResult:
        rate = self.resident if tax_input.local_resident else self.nonresident
        tax, marginal_rate = rate.period_tax(tax_input)
        income_tax = round_money(max(ZERO, tax))
        if self.services_tax is not None:
            income_tax += self.services_tax.per_period(tax_input)
        return TaxResult(
            jurisdiction=self.jurisdiction,
            year=self.year,
            income_tax=income_tax,
            sdi=ZERO,
            sui=ZERO,
            taxable_wages=round_money(max(ZERO, tax_input.gross_pay)),
            marginal_rate_percent=marginal_rate * HUNDRED,
        )

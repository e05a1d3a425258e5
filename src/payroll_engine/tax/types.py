"""Value types shared by the tax engine."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Generic, Mapping, TypeVar

ZERO = Decimal("0")
CENT = Decimal("0.01")
HUNDRED = Decimal("100")

T = TypeVar("T")


def round_money(value: Decimal) -> Decimal:
    """Round to cents, half up. Every monetary output goes through this."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def clamp(value: Decimal, low: Decimal, high: Decimal) -> Decimal:
    """Clamp value into [low, high]."""
    return max(low, min(value, high))


class FilingStatus(str, Enum):
    """Filing status values (W-4 step 1(c))."""

    SINGLE = "SINGLE"
    MARRIED_FILING_JOINTLY = "MARRIED_FILING_JOINTLY"
    MARRIED_FILING_SEPARATELY = "MARRIED_FILING_SEPARATELY"
    HEAD_OF_HOUSEHOLD = "HEAD_OF_HOUSEHOLD"


@dataclass(frozen=True)
class ByFilingStatus(Generic[T]):
    """Per-filing-status values; any status absent from the table uses SINGLE."""

    values: Mapping[str, T]

    def get(self, filing_status: str) -> T:
        if filing_status in self.values:
            return self.values[filing_status]
        return self.values[FilingStatus.SINGLE.value]


@dataclass(frozen=True)
class TaxBracket:
    """One bracket of an annual progressive table.

    Covers the half-open interval (min_amount, max_amount]; a max_amount of
    None means unbounded. base_amount is the cumulative tax at min_amount.
    """

    min_amount: Decimal
    max_amount: Decimal | None
    rate: Decimal
    base_amount: Decimal = ZERO

    def contains(self, annual_wages: Decimal) -> bool:
        if annual_wages <= self.min_amount:
            return False
        return self.max_amount is None or annual_wages <= self.max_amount

    def annual_tax(self, annual_wages: Decimal) -> Decimal:
        return self.base_amount + (annual_wages - self.min_amount) * self.rate


def find_bracket(brackets: tuple[TaxBracket, ...], annual_wages: Decimal) -> TaxBracket | None:
    """Locate the marginal bracket for annualized wages.

    Above the top bracket's minimum the top bracket always applies. Returns
    None for wages at or below zero.
    """
    if not brackets:
        return None
    top = brackets[-1]
    if annual_wages > top.min_amount:
        return top
    for bracket in brackets:
        if bracket.contains(annual_wages):
            return bracket
    return None


@dataclass(frozen=True)
class TaxInput:
    """Per-period inputs to a jurisdiction rule.

    Amounts are per pay period unless named annual/ytd. The W-4 fields and
    pre_tax_deductions are only read by the federal rule; local_resident only
    by local rules.
    """

    gross_pay: Decimal
    filing_status: str
    pay_periods_per_year: int
    allowances: int = 0
    ytd_gross_wages: Decimal = ZERO
    ytd_jurisdiction_taxable_wages: Decimal | None = None
    additional_withholding: Decimal = ZERO
    other_income: Decimal = ZERO
    deductions: Decimal = ZERO
    pre_tax_deductions: Decimal = ZERO
    local_resident: bool = True

    @property
    def annualized_income(self) -> Decimal:
        return self.gross_pay * self.pay_periods_per_year

    @property
    def ytd_for_caps(self) -> Decimal:
        """YTD wages used for jurisdiction wage-base caps."""
        if self.ytd_jurisdiction_taxable_wages is not None:
            return self.ytd_jurisdiction_taxable_wages
        return self.ytd_gross_wages


@dataclass(frozen=True)
class ContributionAmount:
    """A wage-based employee contribution (SDI, PFML, UI, ...)."""

    name: str
    kind: str  # "sdi" or "sui"
    subject_wages: Decimal
    amount: Decimal


@dataclass(frozen=True)
class TaxResult:
    """Uniform per-period result of a jurisdiction rule."""

    jurisdiction: str
    year: int
    income_tax: Decimal
    sdi: Decimal
    sui: Decimal
    taxable_wages: Decimal
    marginal_rate_percent: Decimal
    contributions: tuple[ContributionAmount, ...] = ()

    @property
    def total(self) -> Decimal:
        return round_money(self.income_tax + self.sdi + self.sui)


@dataclass(frozen=True)
class FederalTaxResult:
    """Federal withholding, FICA and the details that produced them."""

    year: int
    income_tax: Decimal
    social_security: Decimal
    medicare: Decimal
    additional_medicare: Decimal
    taxable_wages: Decimal
    standard_deduction: Decimal
    dependent_credit: Decimal
    marginal_rate_percent: Decimal

    @property
    def total(self) -> Decimal:
        return round_money(
            self.income_tax + self.social_security + self.medicare + self.additional_medicare
        )


@dataclass(frozen=True)
class EmployerTaxInput:
    """Inputs for employer-side payroll taxes."""

    gross_pay: Decimal
    ytd_gross_wages: Decimal = ZERO
    ytd_jurisdiction_wages: Decimal | None = None
    suta_rate: Decimal | None = None


@dataclass(frozen=True)
class EmployerTaxResult:
    """Employer payroll taxes for one employee and period."""

    futa: Decimal
    suta: Decimal
    social_security: Decimal
    medicare: Decimal
    futa_wages: Decimal
    suta_wages: Decimal
    suta_rate: Decimal

    @property
    def total(self) -> Decimal:
        return round_money(self.futa + self.suta + self.social_security + self.medicare)

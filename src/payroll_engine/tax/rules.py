"""Jurisdiction tax rules.

A rule is an immutable object built once from configuration and exposing a
single ``compute(tax_input) -> TaxResult`` capability. State rules share the
same pipeline and differ only in how the annual income tax is derived:

1. Subtract the annual standard deduction and personal exemption, divided by
   pay periods, from the period gross; floor at zero.
2. Derive the period tax (brackets on annualized wages, or a flat rate).
3. Add the surtax, subtract the annual credit (per period), floor at zero.
4. Compute wage-base capped contributions (SDI/SUI) from YTD wages.

All money outputs are rounded half up to cents; negative intermediate values
are clamped to zero so no input combination raises.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol, runtime_checkable

from payroll_engine.tax.types import (
    HUNDRED,
    ZERO,
    ByFilingStatus,
    ContributionAmount,
    TaxBracket,
    TaxInput,
    TaxResult,
    clamp,
    find_bracket,
    round_money,
)


@runtime_checkable
class TaxRule(Protocol):
    """Capability implemented by every jurisdiction rule variant."""

    jurisdiction: str
    year: int

    def compute(self, tax_input: TaxInput) -> TaxResult: ...


# ===== Rule components =====


@dataclass(frozen=True)
class AnnualAmount:
    """Fixed annual deduction/exemption/credit amount."""

    amount: Decimal

    def annual(self, annual_wages: Decimal) -> Decimal:
        return self.amount


@dataclass(frozen=True)
class PercentOfWages:
    """Annual deduction as a percent of annual wages, bounded by min/max."""

    percent: Decimal
    minimum: Decimal
    maximum: Decimal

    def annual(self, annual_wages: Decimal) -> Decimal:
        return clamp(annual_wages * self.percent, self.minimum, self.maximum)


NO_AMOUNT = ByFilingStatus({"SINGLE": AnnualAmount(ZERO)})


@dataclass(frozen=True)
class Surtax:
    """Secondary marginal tax on annual taxable income above a threshold."""

    threshold: Decimal
    rate: Decimal

    def annual(self, annual_wages: Decimal) -> Decimal:
        if annual_wages <= self.threshold:
            return ZERO
        return (annual_wages - self.threshold) * self.rate

    def applies(self, annual_wages: Decimal) -> bool:
        return annual_wages > self.threshold


@dataclass(frozen=True)
class WageBaseContribution:
    """Employee contribution on wages, optionally capped at an annual wage base."""

    name: str
    kind: str
    rate: Decimal
    wage_base: Decimal | None = None

    def subject_wages(self, gross_pay: Decimal, ytd_wages: Decimal) -> Decimal:
        """Portion of this period's wages subject to the contribution."""
        if gross_pay <= 0:
            return ZERO
        if self.wage_base is None:
            return gross_pay
        return clamp(self.wage_base - ytd_wages, ZERO, gross_pay)

    def compute(self, gross_pay: Decimal, ytd_wages: Decimal) -> ContributionAmount:
        subject = self.subject_wages(gross_pay, ytd_wages)
        return ContributionAmount(
            name=self.name,
            kind=self.kind,
            subject_wages=round_money(subject),
            amount=round_money(subject * self.rate),
        )


def compute_contributions(
    contributions: tuple[WageBaseContribution, ...], tax_input: TaxInput
) -> tuple[tuple[ContributionAmount, ...], Decimal, Decimal]:
    """Compute all contributions, returning (lines, sdi total, sui total)."""
    lines = tuple(c.compute(tax_input.gross_pay, tax_input.ytd_for_caps) for c in contributions)
    sdi = sum((line.amount for line in lines if line.kind == "sdi"), ZERO)
    sui = sum((line.amount for line in lines if line.kind == "sui"), ZERO)
    return lines, sdi, sui


# ===== Rule variants =====


@dataclass(frozen=True)
class StateTaxRule:
    """Shared pipeline for state income tax rules."""

    jurisdiction: str
    year: int
    name: str = ""
    standard_deduction: ByFilingStatus = NO_AMOUNT
    personal_exemption: ByFilingStatus = NO_AMOUNT
    annual_credit: ByFilingStatus = NO_AMOUNT
    surtax: Surtax | None = None
    contributions: tuple[WageBaseContribution, ...] = ()
    filing_status_aliases: tuple[tuple[str, str], ...] = ()

    def resolve_filing_status(self, filing_status: str) -> str:
        return dict(self.filing_status_aliases).get(filing_status, filing_status)

    def taxable_wages(self, tax_input: TaxInput, filing_status: str) -> Decimal:
        periods = tax_input.pay_periods_per_year
        annual_income = tax_input.annualized_income
        annual_reduction = self.standard_deduction.get(filing_status).annual(
            annual_income
        ) + self.personal_exemption.get(filing_status).annual(annual_income)
        return max(ZERO, tax_input.gross_pay - annual_reduction / periods)

    def period_tax(
        self, taxable: Decimal, tax_input: TaxInput, filing_status: str
    ) -> tuple[Decimal, Decimal]:
        """Return (unrounded period tax before surtax/credit, marginal rate)."""
        raise NotImplementedError

    def compute(self, tax_input: TaxInput) -> TaxResult:
        periods = tax_input.pay_periods_per_year
        filing_status = self.resolve_filing_status(tax_input.filing_status)
        taxable = self.taxable_wages(tax_input, filing_status)
        annual_taxable = taxable * periods

        tax, marginal_rate = self.period_tax(taxable, tax_input, filing_status)
        if self.surtax is not None and self.surtax.applies(annual_taxable):
            tax += self.surtax.annual(annual_taxable) / periods
            marginal_rate += self.surtax.rate
        credit = self.annual_credit.get(filing_status).annual(annual_taxable)
        tax = max(ZERO, tax - credit / periods)

        lines, sdi, sui = compute_contributions(self.contributions, tax_input)
        return TaxResult(
            jurisdiction=self.jurisdiction,
            year=self.year,
            income_tax=round_money(tax),
            sdi=sdi,
            sui=sui,
            taxable_wages=round_money(taxable),
            marginal_rate_percent=marginal_rate * HUNDRED,
            contributions=lines,
        )


@dataclass(frozen=True)
class ProgressiveTaxRule(StateTaxRule):
    """Bracket-based income tax on annualized taxable wages."""

    brackets: ByFilingStatus = ByFilingStatus({"SINGLE": ()})

    def period_tax(
        self, taxable: Decimal, tax_input: TaxInput, filing_status: str
    ) -> tuple[Decimal, Decimal]:
        periods = tax_input.pay_periods_per_year
        annual_taxable = taxable * periods
        table: tuple[TaxBracket, ...] = self.brackets.get(filing_status)
        bracket = find_bracket(table, annual_taxable)
        if bracket is None:
            return ZERO, ZERO
        return bracket.annual_tax(annual_taxable) / periods, bracket.rate


@dataclass(frozen=True)
class FlatTaxRule(StateTaxRule):
    """Single rate applied directly to period taxable wages."""

    rate: Decimal = ZERO

    def period_tax(
        self, taxable: Decimal, tax_input: TaxInput, filing_status: str
    ) -> tuple[Decimal, Decimal]:
        return taxable * self.rate, self.rate


@dataclass(frozen=True)
class NoIncomeTaxRule(StateTaxRule):
    """Jurisdiction without a wage income tax; contributions still apply."""

    def taxable_wages(self, tax_input: TaxInput, filing_status: str) -> Decimal:
        return max(ZERO, tax_input.gross_pay)

    def period_tax(
        self, taxable: Decimal, tax_input: TaxInput, filing_status: str
    ) -> tuple[Decimal, Decimal]:
        return ZERO, ZERO


@dataclass(frozen=True)
class SutaConfig:
    """State unemployment (employer) parameters."""

    wage_base: Decimal
    new_employer_rate: Decimal
    min_rate: Decimal
    max_rate: Decimal

    def applied_rate(self, experience_rate: Decimal | None) -> Decimal:
        """Employer's experience rate clamped to the state range, else the new employer rate."""
        if experience_rate is None:
            return self.new_employer_rate
        return clamp(experience_rate, self.min_rate, self.max_rate)

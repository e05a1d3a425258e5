"""Federal income tax withholding and FICA (IRS Pub. 15-T percentage method)."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from payroll_engine.tax.rules import SutaConfig, WageBaseContribution
from payroll_engine.tax.types import (
    HUNDRED,
    ZERO,
    ByFilingStatus,
    FederalTaxResult,
    TaxInput,
    TaxResult,
    clamp,
    find_bracket,
    round_money,
)


@dataclass(frozen=True)
class MedicareConfig:
    """Medicare rates; the additional rate applies to YTD wages above the threshold."""

    rate: Decimal
    additional_rate: Decimal
    additional_threshold: Decimal


@dataclass(frozen=True)
class FederalTaxRule:
    """Federal withholding rule for one tax year.

    Income tax uses the adjusted annual wage method:
    taxable = gross - pre-tax deductions + other income/P
    - standard deduction/P - deductions/P,
    annualized for the bracket lookup; the dependent credit
    (allowances x credit per allowance) is subtracted per period and W-4
    additional withholding added after it.
    """

    jurisdiction: str
    year: int
    brackets: ByFilingStatus
    standard_deduction: ByFilingStatus
    dependent_credit_per_allowance: Decimal
    social_security: WageBaseContribution
    medicare: MedicareConfig
    futa: WageBaseContribution
    default_suta: SutaConfig
    name: str = "Federal"

    def compute(self, tax_input: TaxInput) -> TaxResult:
        """Income tax only, in the shape shared with state rules."""
        detail = self.compute_detailed(tax_input)
        return TaxResult(
            jurisdiction=self.jurisdiction,
            year=self.year,
            income_tax=detail.income_tax,
            sdi=ZERO,
            sui=ZERO,
            taxable_wages=detail.taxable_wages,
            marginal_rate_percent=detail.marginal_rate_percent,
        )

    def compute_detailed(self, tax_input: TaxInput) -> FederalTaxResult:
        periods = tax_input.pay_periods_per_year
        gross = tax_input.gross_pay
        status = tax_input.filing_status

        deduction_per_period = self.standard_deduction.get(status) / periods
        taxable = (
            gross
            - max(ZERO, tax_input.pre_tax_deductions)
            + tax_input.other_income / periods
            - deduction_per_period
            - tax_input.deductions / periods
        )
        taxable = max(ZERO, taxable)

        annual_taxable = taxable * periods
        bracket = find_bracket(self.brackets.get(status), annual_taxable)
        annual_tax = bracket.annual_tax(annual_taxable) if bracket else ZERO

        dependent_credit = (
            Decimal(max(tax_input.allowances, 0)) * self.dependent_credit_per_allowance / periods
        )
        income_tax = max(ZERO, annual_tax / periods - dependent_credit)
        income_tax += max(ZERO, tax_input.additional_withholding)

        # FICA wages are not reduced by 401(k) deferrals
        ytd = tax_input.ytd_gross_wages
        social_security = self.social_security.compute(gross, ytd).amount
        medicare = round_money(max(ZERO, gross) * self.medicare.rate)

        # Additional Medicare: fixed withholding threshold regardless of filing status
        over_threshold = clamp(
            ytd + gross - self.medicare.additional_threshold, ZERO, max(ZERO, gross)
        )
        additional_medicare = round_money(over_threshold * self.medicare.additional_rate)

        return FederalTaxResult(
            year=self.year,
            income_tax=round_money(income_tax),
            social_security=social_security,
            medicare=medicare,
            additional_medicare=additional_medicare,
            taxable_wages=round_money(taxable),
            standard_deduction=round_money(deduction_per_period),
            dependent_credit=round_money(dependent_credit),
            marginal_rate_percent=(bracket.rate if bracket else ZERO) * HUNDRED,
        )

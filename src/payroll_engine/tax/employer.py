"""Employer-side payroll taxes: FUTA, SUTA and the FICA match."""

from __future__ import annotations

from payroll_engine.tax.federal import FederalTaxRule
from payroll_engine.tax.rules import SutaConfig, WageBaseContribution
from payroll_engine.tax.types import ZERO, EmployerTaxInput, EmployerTaxResult, round_money


def compute_employer_taxes(
    federal: FederalTaxRule,
    suta: SutaConfig,
    employer_input: EmployerTaxInput,
) -> EmployerTaxResult:
    """Compute employer taxes for one employee and period.

    FUTA and the employer social security match cap on YTD gross; SUTA caps on
    YTD wages in the state when known.
    """
    gross = employer_input.gross_pay
    ytd = employer_input.ytd_gross_wages
    ytd_state = (
        employer_input.ytd_jurisdiction_wages
        if employer_input.ytd_jurisdiction_wages is not None
        else ytd
    )

    futa = federal.futa.compute(gross, ytd)

    suta_rate = suta.applied_rate(employer_input.suta_rate)
    suta_line = WageBaseContribution(
        name="SUTA", kind="sui", rate=suta_rate, wage_base=suta.wage_base
    ).compute(gross, ytd_state)

    social_security = federal.social_security.compute(gross, ytd)
    medicare = round_money(max(ZERO, gross) * federal.medicare.rate)

    return EmployerTaxResult(
        futa=futa.amount,
        suta=suta_line.amount,
        social_security=social_security.amount,
        medicare=medicare,
        futa_wages=futa.subject_wages,
        suta_wages=suta_line.subject_wages,
        suta_rate=suta_rate,
    )

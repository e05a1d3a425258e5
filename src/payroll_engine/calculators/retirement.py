"""401(k) salary deferrals and employer matching."""

from __future__ import annotations

from decimal import Decimal

from payroll_engine.calculators.types import RetirementContribution, RetirementElection
from payroll_engine.tax.types import ZERO, clamp, round_money


def employee_deferral(gross_pay: Decimal, election: RetirementElection) -> Decimal:
    """Deferral for the period, never more than gross pay."""
    if gross_pay <= 0:
        return ZERO
    if election.contribution_type == "PERCENT":
        requested = gross_pay * (election.rate or ZERO)
    elif election.contribution_type == "FIXED":
        requested = election.amount or ZERO
    else:
        return ZERO
    return round_money(clamp(requested, ZERO, gross_pay))


def employer_match(gross_pay: Decimal, deferral: Decimal, election: RetirementElection) -> Decimal:
    """Match on the deferral, counting at most match_limit of gross pay."""
    match_rate = election.match_rate or ZERO
    if match_rate <= 0 or deferral <= 0 or gross_pay <= 0:
        return ZERO
    eligible = deferral
    if election.match_limit is not None:
        eligible = min(deferral, gross_pay * election.match_limit)
    return round_money(clamp(eligible * match_rate, ZERO, gross_pay))


def compute_401k(gross_pay: Decimal, election: RetirementElection) -> RetirementContribution:
    deferral = employee_deferral(gross_pay, election)
    return RetirementContribution(
        employee_deferral=deferral,
        employer_match=employer_match(gross_pay, deferral, election),
    )

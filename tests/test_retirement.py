"""Tests for 401(k) deferrals and employer matching."""

from decimal import Decimal

from payroll_engine.calculators import RetirementElection, compute_401k
from payroll_engine.calculators.retirement import employee_deferral, employer_match

GROSS = Decimal("4000.00")


class TestEmployeeDeferral:
    """Test the employee's salary deferral."""

    def test_percent_of_gross(self):
        election = RetirementElection(contribution_type="PERCENT", rate=Decimal("0.05"))

        assert employee_deferral(GROSS, election) == Decimal("200.00")

    def test_fixed_amount(self):
        election = RetirementElection(contribution_type="FIXED", amount=Decimal("150"))

        assert employee_deferral(GROSS, election) == Decimal("150.00")

    def test_fixed_amount_capped_at_gross(self):
        election = RetirementElection(contribution_type="FIXED", amount=Decimal("5000"))

        assert employee_deferral(GROSS, election) == GROSS

    def test_no_election(self):
        assert employee_deferral(GROSS, RetirementElection()) == Decimal("0")
        assert employee_deferral(
            GROSS, RetirementElection(contribution_type="PERCENT")
        ) == Decimal("0.00")

    def test_nothing_deferred_without_pay(self):
        election = RetirementElection(contribution_type="FIXED", amount=Decimal("150"))

        assert employee_deferral(Decimal("0"), election) == Decimal("0")


class TestEmployerMatch:
    """Test the employer's matching contribution."""

    def test_match_within_limit(self):
        election = RetirementElection(
            contribution_type="PERCENT",
            rate=Decimal("0.05"),
            match_rate=Decimal("0.5"),
            match_limit=Decimal("0.06"),
        )

        result = compute_401k(GROSS, election)

        assert result.employee_deferral == Decimal("200.00")
        assert result.employer_match == Decimal("100.00")

    def test_match_counts_deferral_up_to_limit(self):
        election = RetirementElection(
            contribution_type="PERCENT",
            rate=Decimal("0.10"),
            match_rate=Decimal("0.5"),
            match_limit=Decimal("0.06"),
        )

        result = compute_401k(GROSS, election)

        # Only 6% of gross (240.00) is eligible for the 50% match
        assert result.employee_deferral == Decimal("400.00")
        assert result.employer_match == Decimal("120.00")

    def test_no_limit_matches_whole_deferral(self):
        election = RetirementElection(match_rate=Decimal("1"))

        assert employer_match(GROSS, Decimal("400.00"), election) == Decimal("400.00")

    def test_no_match_without_rate_or_deferral(self):
        assert employer_match(GROSS, Decimal("200.00"), RetirementElection()) == Decimal("0")
        assert employer_match(
            GROSS, Decimal("0"), RetirementElection(match_rate=Decimal("0.5"))
        ) == Decimal("0")

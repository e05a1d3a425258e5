"""Tests for employer FUTA, SUTA and the FICA match."""

from decimal import Decimal

from payroll_engine.tax import EmployerTaxInput


def employer_input(gross: str = "4000.00", **kwargs) -> EmployerTaxInput:
    return EmployerTaxInput(gross_pay=Decimal(gross), **kwargs)


class TestEmployerTaxes:
    """Test employer-side taxes against the bundled tables."""

    def test_first_period_of_the_year(self, tax_engine):
        result = tax_engine.compute_employer("TX", 2024, employer_input())

        assert result.futa == Decimal("24.00")
        assert result.suta == Decimal("108.00")
        assert result.suta_rate == Decimal("0.027")
        assert result.social_security == Decimal("248.00")
        assert result.medicare == Decimal("58.00")
        assert result.total == Decimal("438.00")

    def test_futa_wage_base(self, tax_engine):
        result = tax_engine.compute_employer(
            "TX", 2024, employer_input(ytd_gross_wages=Decimal("5000"))
        )

        assert result.futa_wages == Decimal("2000.00")
        assert result.futa == Decimal("12.00")

    def test_suta_wage_base_uses_state_wages(self, tax_engine):
        result = tax_engine.compute_employer(
            "TX",
            2024,
            employer_input(ytd_gross_wages=Decimal("30000"), ytd_jurisdiction_wages=Decimal("8000")),
        )

        assert result.futa == Decimal("0.00")
        assert result.suta_wages == Decimal("1000.00")
        assert result.suta == Decimal("27.00")

    def test_experience_rate_clamped_to_state_range(self, tax_engine):
        within = tax_engine.compute_employer(
            "TX", 2024, employer_input(suta_rate=Decimal("0.05"))
        )
        above = tax_engine.compute_employer(
            "TX", 2024, employer_input(suta_rate=Decimal("0.10"))
        )

        assert within.suta == Decimal("200.00")
        assert above.suta_rate == Decimal("0.063")
        assert above.suta == Decimal("252.00")

    def test_zero_gross(self, tax_engine):
        result = tax_engine.compute_employer("TX", 2024, employer_input("0"))

        assert result.total == Decimal("0.00")

"""Tests for federal withholding and employee FICA."""

from decimal import Decimal

import pytest

from payroll_engine.tax import TaxInput


@pytest.fixture
def federal(tax_engine):
    return tax_engine.federal_rule(2024)


def biweekly(gross: str = "4000.00", **kwargs) -> TaxInput:
    kwargs.setdefault("filing_status", "SINGLE")
    return TaxInput(gross_pay=Decimal(gross), pay_periods_per_year=26, **kwargs)


class TestIncomeTax:
    """Test the percentage method withholding."""

    def test_single_biweekly(self, federal):
        result = federal.compute_detailed(biweekly())

        # 89,400 annual taxable: 5,426 + 42,250 x 22% = 14,721 a year
        assert result.income_tax == Decimal("566.19")
        assert result.taxable_wages == Decimal("3438.46")
        assert result.standard_deduction == Decimal("561.54")
        assert result.marginal_rate_percent == Decimal("22.00")

    def test_dependent_credit(self, federal):
        result = federal.compute_detailed(biweekly(allowances=2))

        assert result.dependent_credit == Decimal("153.85")
        assert result.income_tax == Decimal("412.35")

    def test_additional_withholding_added_after_credit(self, federal):
        base = federal.compute_detailed(biweekly())
        extra = federal.compute_detailed(biweekly(additional_withholding=Decimal("50")))

        assert extra.income_tax == base.income_tax + Decimal("50.00")

    def test_married_jointly_uses_larger_deduction(self, federal):
        single = federal.compute_detailed(biweekly())
        joint = federal.compute_detailed(biweekly(filing_status="MARRIED_FILING_JOINTLY"))

        assert joint.income_tax < single.income_tax

    def test_low_wages_withhold_nothing(self, federal):
        result = federal.compute_detailed(biweekly("400.00"))

        assert result.income_tax == Decimal("0.00")
        assert result.taxable_wages == Decimal("0.00")

    def test_pre_tax_deductions_lower_taxable_wages(self, federal):
        result = federal.compute_detailed(biweekly(pre_tax_deductions=Decimal("200.00")))

        # 84,200 annual taxable: 5,426 + 37,050 x 22% = 13,577 a year
        assert result.taxable_wages == Decimal("3238.46")
        assert result.income_tax == Decimal("522.19")

    def test_compute_returns_income_tax_only(self, federal):
        result = federal.compute(biweekly())

        assert result.jurisdiction == "FED"
        assert result.income_tax == Decimal("566.19")
        assert result.total == Decimal("566.19")


class TestFica:
    """Test social security and medicare."""

    def test_rates(self, federal):
        result = federal.compute_detailed(biweekly())

        assert result.social_security == Decimal("248.00")
        assert result.medicare == Decimal("58.00")
        assert result.additional_medicare == Decimal("0.00")
        assert result.total == Decimal("872.19")

    def test_social_security_wage_base(self, federal):
        crossing = federal.compute_detailed(biweekly(ytd_gross_wages=Decimal("166600")))
        above = federal.compute_detailed(biweekly(ytd_gross_wages=Decimal("170000")))

        assert crossing.social_security == Decimal("124.00")
        assert above.social_security == Decimal("0.00")
        assert above.medicare == Decimal("58.00")

    def test_additional_medicare_above_threshold(self, federal):
        crossing = federal.compute_detailed(biweekly(ytd_gross_wages=Decimal("198000")))
        above = federal.compute_detailed(biweekly(ytd_gross_wages=Decimal("250000")))

        assert crossing.additional_medicare == Decimal("18.00")
        assert above.additional_medicare == Decimal("36.00")

    def test_pre_tax_deductions_do_not_reduce_fica(self, federal):
        result = federal.compute_detailed(biweekly(pre_tax_deductions=Decimal("200.00")))

        assert result.social_security == Decimal("248.00")
        assert result.medicare == Decimal("58.00")

"""Tests for garnishment ceilings and priority."""

from decimal import Decimal
from uuid import uuid4

from payroll_engine.calculators import GarnishmentCalculator, GarnishmentOrder
from payroll_engine.config import GarnishmentPolicy


def order(priority: int = 1, garnishment_type: str = "CREDITOR", **kwargs) -> GarnishmentOrder:
    return GarnishmentOrder(
        garnishment_id=uuid4(),
        garnishment_type=garnishment_type,
        priority=priority,
        **kwargs,
    )


class TestGarnishmentCalculator:
    """Test garnishment deductions."""

    def test_fixed_amount_within_ceiling(self):
        result = GarnishmentCalculator().apply(Decimal("3000"), [order(amount=Decimal("500"))])

        assert result.ceiling == Decimal("750.00")
        assert result.total_deduction == Decimal("500")

    def test_fixed_amount_capped_at_ceiling(self):
        result = GarnishmentCalculator().apply(Decimal("3000"), [order(amount=Decimal("1000"))])
        assert result.total_deduction == Decimal("750.00")

    def test_percent_of_disposable_earnings(self):
        result = GarnishmentCalculator().apply(Decimal("3000"), [order(percent=Decimal("0.10"))])
        assert result.total_deduction == Decimal("300.00")

    def test_priority_order(self):
        first = order(priority=1, amount=Decimal("600"))
        second = order(priority=2, amount=Decimal("400"))

        result = GarnishmentCalculator().apply(Decimal("3000"), [second, first])

        assert [line.garnishment_id for line in result.lines] == [
            first.garnishment_id,
            second.garnishment_id,
        ]
        assert [line.amount for line in result.lines] == [Decimal("600"), Decimal("150.00")]
        assert result.total_deduction == Decimal("750.00")

    def test_ceiling_exhausted_skips_later_orders(self):
        result = GarnishmentCalculator().apply(
            Decimal("3000"),
            [order(priority=1, amount=Decimal("750")), order(priority=2, amount=Decimal("10"))],
        )

        assert len(result.lines) == 1
        assert result.total_deduction == Decimal("750")

    def test_remaining_balance_limits_deduction(self):
        result = GarnishmentCalculator().apply(
            Decimal("3000"),
            [order(amount=Decimal("500"), total_owed=Decimal("300"), total_paid=Decimal("200"))],
        )
        assert result.total_deduction == Decimal("100")

    def test_paid_off_order_is_skipped(self):
        result = GarnishmentCalculator().apply(
            Decimal("3000"),
            [order(amount=Decimal("500"), total_owed=Decimal("300"), total_paid=Decimal("300"))],
        )

        assert result.total_deduction == Decimal("0")
        assert result.lines == ()

    def test_inactive_order_is_skipped(self):
        result = GarnishmentCalculator().apply(
            Decimal("3000"), [order(amount=Decimal("500"), is_active=False)]
        )
        assert result.total_deduction == Decimal("0")

    def test_no_disposable_earnings(self):
        result = GarnishmentCalculator().apply(Decimal("0"), [order(amount=Decimal("500"))])

        assert result.total_deduction == Decimal("0")
        assert result.ceiling == Decimal("0")

    def test_ceiling_rounds_down_to_cents(self):
        result = GarnishmentCalculator().apply(Decimal("3000.03"), [order(amount=Decimal("1000"))])

        assert result.ceiling == Decimal("750.00")
        assert result.total_deduction <= Decimal("3000.03") * Decimal("0.25")

    def test_total_never_exceeds_quarter_of_disposable(self):
        orders = [order(priority=p, percent=Decimal("0.2")) for p in range(1, 6)]

        for disposable in ("0.01", "99.99", "1234.57", "3000", "98765.43"):
            result = GarnishmentCalculator().apply(Decimal(disposable), orders)
            assert result.total_deduction <= Decimal(disposable) * Decimal("0.25")

    def test_per_type_ceiling(self):
        policy = GarnishmentPolicy(ceilings_by_type={"CHILD_SUPPORT": Decimal("0.50")})
        support = order(priority=1, garnishment_type="CHILD_SUPPORT", amount=Decimal("1200"))
        creditor = order(priority=2, amount=Decimal("500"))

        result = GarnishmentCalculator(policy).apply(Decimal("3000"), [support, creditor])

        # Child support already exceeds the 25% creditor ceiling
        assert result.ceiling == Decimal("1500.00")
        assert result.total_deduction == Decimal("1200")
        assert len(result.lines) == 1

    def test_per_type_ceiling_counts_earlier_orders(self):
        policy = GarnishmentPolicy(ceilings_by_type={"CHILD_SUPPORT": Decimal("0.50")})
        creditor = order(priority=1, amount=Decimal("500"))
        support = order(priority=2, garnishment_type="CHILD_SUPPORT", amount=Decimal("1200"))

        result = GarnishmentCalculator(policy).apply(Decimal("3000"), [support, creditor])

        assert [line.amount for line in result.lines] == [Decimal("500"), Decimal("1000.00")]
        assert result.total_deduction == Decimal("1500.00")

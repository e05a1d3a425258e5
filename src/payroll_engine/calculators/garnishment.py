"""Garnishment deductions against disposable earnings."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_DOWN, Decimal
from functools import reduce
from typing import Iterable

from payroll_engine.calculators.types import GarnishmentLine, GarnishmentOrder, GarnishmentResult
from payroll_engine.config import GarnishmentPolicy
from payroll_engine.tax.types import CENT, ZERO, round_money


def _floor_cents(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_DOWN)


@dataclass(frozen=True)
class _Accumulator:
    remaining: Decimal
    deducted: Decimal
    lines: tuple[GarnishmentLine, ...]


class GarnishmentCalculator:
    """Applies active garnishments in priority order under ceiling limits.

    The overall ceiling is disposable earnings times the highest ceiling
    among the types present; each order is further limited by its own type's
    ceiling less what earlier orders already took. With the default policy
    every type is capped at 25%, so the total never exceeds 25% of
    disposable earnings.
    """

    def __init__(self, policy: GarnishmentPolicy | None = None):
        self.policy = policy or GarnishmentPolicy()

    def _type_ceiling(self, disposable_earnings: Decimal, garnishment_type: str) -> Decimal:
        return _floor_cents(disposable_earnings * self.policy.ceiling_for(garnishment_type))

    def apply(
        self,
        disposable_earnings: Decimal,
        garnishments: Iterable[GarnishmentOrder],
    ) -> GarnishmentResult:
        active = sorted(
            (g for g in garnishments if g.is_active),
            key=lambda g: g.priority,
        )
        if disposable_earnings <= 0 or not active:
            return GarnishmentResult(total_deduction=ZERO, ceiling=ZERO)

        ceiling = max(self._type_ceiling(disposable_earnings, g.garnishment_type) for g in active)

        def step(acc: _Accumulator, order: GarnishmentOrder) -> _Accumulator:
            if acc.remaining <= 0:
                return acc
            amount = round_money(order.requested_amount(disposable_earnings))

            balance = order.remaining_balance
            if balance is not None:
                if balance <= 0:
                    return acc
                amount = min(amount, balance)

            type_room = self._type_ceiling(disposable_earnings, order.garnishment_type) - acc.deducted
            amount = min(amount, acc.remaining, type_room)
            if amount <= 0:
                return acc

            line = GarnishmentLine(
                garnishment_id=order.garnishment_id,
                garnishment_type=order.garnishment_type,
                amount=amount,
            )
            return _Accumulator(
                remaining=acc.remaining - amount,
                deducted=acc.deducted + amount,
                lines=acc.lines + (line,),
            )

        result = reduce(step, active, _Accumulator(remaining=ceiling, deducted=ZERO, lines=()))
        return GarnishmentResult(
            total_deduction=result.deducted,
            ceiling=ceiling,
            lines=result.lines,
        )

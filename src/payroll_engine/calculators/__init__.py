"""Per-employee payroll calculators."""

from payroll_engine.calculators.garnishment import GarnishmentCalculator
from payroll_engine.calculators.gross_pay import compute_gross_pay, standard_period_hours
from payroll_engine.calculators.proration import ProrationCalculator
from payroll_engine.calculators.retirement import compute_401k
from payroll_engine.calculators.types import (
    GarnishmentLine,
    GarnishmentOrder,
    GarnishmentResult,
    GrossPay,
    RetirementContribution,
    RetirementElection,
)

__all__ = [
    "GarnishmentCalculator",
    "ProrationCalculator",
    "compute_gross_pay",
    "standard_period_hours",
    "compute_401k",
    "GarnishmentLine",
    "GarnishmentOrder",
    "GarnishmentResult",
    "GrossPay",
    "RetirementContribution",
    "RetirementElection",
]

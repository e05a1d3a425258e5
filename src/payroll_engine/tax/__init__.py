"""Federal, state and employer payroll tax computation."""

from payroll_engine.tax.engine import TaxEngine, get_tax_engine
from payroll_engine.tax.local import LocalTaxRule
from payroll_engine.tax.registry import FEDERAL, TaxRuleRegistry, parse_rule
from payroll_engine.tax.sources import InMemoryConfigSource, JsonConfigSource
from payroll_engine.tax.types import (
    EmployerTaxInput,
    EmployerTaxResult,
    FederalTaxResult,
    FilingStatus,
    TaxInput,
    TaxResult,
)

__all__ = [
    "FEDERAL",
    "TaxEngine",
    "get_tax_engine",
    "LocalTaxRule",
    "TaxRuleRegistry",
    "parse_rule",
    "InMemoryConfigSource",
    "JsonConfigSource",
    "EmployerTaxInput",
    "EmployerTaxResult",
    "FederalTaxResult",
    "FilingStatus",
    "TaxInput",
    "TaxResult",
]

"""Pytest fixtures for payroll engine tests."""

from __future__ import annotations

from decimal import Decimal
from typing import Any

import pytest

from payroll_engine.config import DEFAULT_TAX_CONFIG_DIR
from payroll_engine.tax import (
    InMemoryConfigSource,
    JsonConfigSource,
    TaxEngine,
    TaxRuleRegistry,
)


@pytest.fixture(scope="session")
def bundled_registry() -> TaxRuleRegistry:
    """Registry parsed from the tax tables shipped with the package."""
    return TaxRuleRegistry.from_source(JsonConfigSource(DEFAULT_TAX_CONFIG_DIR))


@pytest.fixture(scope="session")
def tax_engine(bundled_registry: TaxRuleRegistry) -> TaxEngine:
    """Engine over the bundled tables."""
    return TaxEngine(bundled_registry)


@pytest.fixture(scope="session")
def federal_payload() -> dict[str, Any]:
    payload = JsonConfigSource(DEFAULT_TAX_CONFIG_DIR).load("FED", 2024)
    assert payload is not None
    return payload


@pytest.fixture(scope="session")
def flat_state_payload() -> dict[str, Any]:
    """A fictional state: 5% flat after a $14,600 annual standard deduction."""
    return {
        "kind": "flat",
        "name": "Flatland",
        "rate": Decimal("0.05"),
        "standard_deduction": 14600,
    }


@pytest.fixture(scope="session")
def flat_state_engine(
    federal_payload: dict[str, Any], flat_state_payload: dict[str, Any]
) -> TaxEngine:
    """Engine with 2024 federal tables and the fictional flat-tax state ZZ.

    ZZ-CAPITAL taxes wages earned in Capital City at 1% for residents and
    0.5% for nonresidents.
    """
    source = InMemoryConfigSource(
        {
            ("FED", 2024): federal_payload,
            ("ZZ", 2024): flat_state_payload,
            ("ZZ-CAPITAL", 2024): {
                "kind": "local",
                "name": "Capital City",
                "state": "ZZ",
                "cities": ["Capital City"],
                "resident": {"rate": Decimal("0.01")},
                "nonresident": {"rate": Decimal("0.005")},
            },
        }
    )
    return TaxEngine(TaxRuleRegistry.from_source(source))

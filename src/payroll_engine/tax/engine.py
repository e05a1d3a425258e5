"""Tax engine facade: resolves rules per jurisdiction/year and computes taxes."""

from __future__ import annotations

import logging
from functools import lru_cache

from payroll_engine.config import Settings, TaxEngineConfig, get_settings
from payroll_engine.errors import ConfigurationError
from payroll_engine.tax.employer import compute_employer_taxes
from payroll_engine.tax.federal import FederalTaxRule
from payroll_engine.tax.local import LocalTaxRule
from payroll_engine.tax.registry import FEDERAL, TaxRuleRegistry
from payroll_engine.tax.rules import SutaConfig, TaxRule
from payroll_engine.tax.sources import JsonConfigSource
from payroll_engine.tax.types import (
    EmployerTaxInput,
    EmployerTaxResult,
    FederalTaxResult,
    TaxInput,
    TaxResult,
)

logger = logging.getLogger(__name__)


class TaxEngine:
    """Computes federal, state and employer taxes from a rule registry.

    The engine holds no mutable state; a single instance is shared by every
    payroll run in the process.
    """

    def __init__(self, registry: TaxRuleRegistry, config: TaxEngineConfig | None = None):
        self.registry = registry
        self.config = config or TaxEngineConfig()

    @classmethod
    def from_settings(cls, settings: Settings) -> TaxEngine:
        """Build an engine from the configured tax data directory."""
        registry = TaxRuleRegistry.from_source(JsonConfigSource(settings.tax_config_dir))
        return cls(registry, settings.tax_engine_config())

    def _resolve_year(self, jurisdiction: str, year: int, years: list[int] | None = None) -> int:
        if years is None:
            years = self.registry.years(jurisdiction)
        if year in years:
            return year
        if self.config.allow_year_fallback:
            earlier = [y for y in years if y < year]
            if earlier:
                logger.warning(
                    "No %s tax configuration for %d, falling back to %d",
                    jurisdiction, year, earlier[-1],
                )
                return earlier[-1]
        if not years:
            raise ConfigurationError(jurisdiction, year, "jurisdiction not supported")
        raise ConfigurationError(jurisdiction, year, "tax year not configured")

    def rule_for(self, jurisdiction: str, year: int) -> TaxRule:
        """Get the rule for a jurisdiction, honoring year fallback."""
        code = jurisdiction.upper()
        rule = self.registry.get(code, self._resolve_year(code, year))
        if rule is None:
            raise ConfigurationError(code, year)
        return rule

    def federal_rule(self, year: int) -> FederalTaxRule:
        rule = self.rule_for(FEDERAL, year)
        if not isinstance(rule, FederalTaxRule):
            raise ConfigurationError(FEDERAL, year, "federal payload has the wrong kind")
        return rule

    def suta_for(self, jurisdiction: str, year: int) -> SutaConfig:
        """State SUTA parameters, or the federal default for unlisted states."""
        code = jurisdiction.upper()
        if self.registry.years(code):
            suta = self.registry.suta(code, self._resolve_year(code, year))
            if suta is not None:
                return suta
        return self.federal_rule(year).default_suta

    def compute(self, jurisdiction: str, year: int, tax_input: TaxInput) -> TaxResult:
        """Compute per-period tax for a jurisdiction.

        Raises:
            ConfigurationError: Jurisdiction or year is not configured.
        """
        return self.rule_for(jurisdiction, year).compute(tax_input)

    def compute_federal(self, year: int, tax_input: TaxInput) -> FederalTaxResult:
        """Compute federal income tax withholding and employee FICA."""
        return self.federal_rule(year).compute_detailed(tax_input)

    def compute_employer(
        self, jurisdiction: str, year: int, employer_input: EmployerTaxInput
    ) -> EmployerTaxResult:
        """Compute employer FUTA, SUTA and FICA match for a work state."""
        return compute_employer_taxes(
            self.federal_rule(year), self.suta_for(jurisdiction, year), employer_input
        )

    def local_rule_for(self, state: str, city: str, year: int) -> LocalTaxRule | None:
        """Local rule for a work city, or None when the city levies no local tax.

        Raises:
            ConfigurationError: The city is configured, but not for this year.
        """
        code = self.registry.local_code(state, city)
        if code is None:
            return None
        resolved = self._resolve_year(code, year, self.registry.local_years(code))
        rule = self.registry.local(code, resolved)
        if rule is None:
            raise ConfigurationError(code, year)
        return rule

    def compute_local(
        self, state: str, city: str, year: int, tax_input: TaxInput
    ) -> TaxResult | None:
        """Compute city or county tax for wages earned in a work city."""
        rule = self.local_rule_for(state, city, year)
        if rule is None:
            return None
        return rule.compute(tax_input)

    def supports(self, jurisdiction: str, year: int) -> bool:
        try:
            self.rule_for(jurisdiction, year)
        except ConfigurationError:
            return False
        return True

    def tax_years(self) -> list[int]:
        """Years with federal tables, oldest first."""
        return self.registry.years(FEDERAL)

    def supported_jurisdictions(self, year: int) -> list[str]:
        """State jurisdictions computable for a year (federal excluded)."""
        return [c for c in self.registry.codes() if c != FEDERAL and self.supports(c, year)]

    def supports_local(self, state: str, city: str, year: int) -> bool:
        """False only for a configured city with no usable rule for the year."""
        try:
            self.local_rule_for(state, city, year)
        except ConfigurationError:
            return False
        return True

    def supported_localities(self, year: int) -> list[str]:
        """Local tax codes computable for a year."""
        supported = []
        for code in self.registry.local_codes():
            try:
                self._resolve_year(code, year, self.registry.local_years(code))
            except ConfigurationError:
                continue
            supported.append(code)
        return supported


@lru_cache(maxsize=1)
def get_tax_engine() -> TaxEngine:
    """Get the process-wide engine built from settings."""
    return TaxEngine.from_settings(get_settings())

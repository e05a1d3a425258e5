"""Tests for the tax engine facade and configuration sources."""

import json
from decimal import Decimal

import pytest

from payroll_engine.config import TaxEngineConfig
from payroll_engine.errors import ConfigurationError
from payroll_engine.tax import (
    InMemoryConfigSource,
    JsonConfigSource,
    TaxEngine,
    TaxInput,
    TaxRuleRegistry,
)



def biweekly(gross: str, filing_status: str = "SINGLE") -> TaxInput:
    return TaxInput(gross_pay=Decimal(gross), filing_status=filing_status, pay_periods_per_year=26)


class TestBundledTables:
    """Test the tax tables shipped with the package."""

    def test_every_state_and_dc_configured(self, tax_engine):
        jurisdictions = tax_engine.supported_jurisdictions(2024)

        assert len(jurisdictions) == 51
        assert "DC" in jurisdictions
        assert "FED" not in jurisdictions

    def test_no_income_tax_state(self, tax_engine):
        result = tax_engine.compute("TX", 2024, biweekly("4000.00"))

        assert result.income_tax == Decimal("0.00")
        assert result.total == Decimal("0.00")

    def test_flat_state_with_unemployment_contribution(self, tax_engine):
        result = tax_engine.compute("PA", 2024, biweekly("4000.00"))

        assert result.income_tax == Decimal("122.80")
        assert result.sui == Decimal("2.40")

    def test_california_brackets_credit_and_sdi(self, tax_engine):
        result = tax_engine.compute("CA", 2024, biweekly("4000.00"))

        # (3,009.40 + (98,637 - 68,350) x 9.3%) / 26 - 144 / 26
        assert result.income_tax == Decimal("218.54")
        assert result.sdi == Decimal("36.00")

    def test_california_married_separately_uses_single_table(self, tax_engine):
        single = tax_engine.compute("CA", 2024, biweekly("4000.00"))
        separate = tax_engine.compute("CA", 2024, biweekly("4000.00", "MARRIED_FILING_SEPARATELY"))

        assert separate.income_tax == single.income_tax

    def test_jurisdiction_code_is_case_insensitive(self, tax_engine):
        assert tax_engine.compute("pa", 2024, biweekly("4000.00")).jurisdiction == "PA"


class TestResolution:
    """Test jurisdiction and year resolution."""

    def test_unknown_jurisdiction(self, tax_engine):
        with pytest.raises(ConfigurationError) as exc_info:
            tax_engine.compute("QQ", 2024, biweekly("1000.00"))

        assert exc_info.value.reason == "jurisdiction not supported"
        assert not tax_engine.supports("QQ", 2024)

    def test_missing_year_without_fallback(self, tax_engine):
        with pytest.raises(ConfigurationError) as exc_info:
            tax_engine.compute("CA", 2031, biweekly("1000.00"))

        assert exc_info.value.reason == "tax year not configured"
        assert exc_info.value.year == 2031

    def test_missing_year_with_fallback(self, bundled_registry):
        engine = TaxEngine(bundled_registry, TaxEngineConfig(allow_year_fallback=True))

        assert engine.rule_for("CA", 2031).year == 2024
        assert engine.supports("CA", 2031)

    def test_fallback_never_uses_a_later_year(self, bundled_registry):
        engine = TaxEngine(bundled_registry, TaxEngineConfig(allow_year_fallback=True))

        with pytest.raises(ConfigurationError):
            engine.rule_for("CA", 2019)

    def test_state_without_suta_uses_federal_default(self, federal_payload, flat_state_payload):
        source = InMemoryConfigSource(
            {("FED", 2024): federal_payload, ("ZZ", 2024): flat_state_payload}
        )
        engine = TaxEngine(TaxRuleRegistry.from_source(source))

        suta = engine.suta_for("ZZ", 2024)

        assert suta.wage_base == Decimal("7000")
        assert suta.new_employer_rate == Decimal("0.027")

    def test_federal_rule_must_have_federal_kind(self, flat_state_payload):
        source = InMemoryConfigSource({("FED", 2024): flat_state_payload})
        engine = TaxEngine(TaxRuleRegistry.from_source(source))

        with pytest.raises(ConfigurationError):
            engine.federal_rule(2024)


class TestJsonConfigSource:
    """Test reading payloads from a directory tree."""

    def test_lists_year_directories_only(self, tmp_path):
        (tmp_path / "2023").mkdir()
        (tmp_path / "2023" / "ZZ.json").write_text(json.dumps({"kind": "none"}))
        (tmp_path / "drafts").mkdir()
        (tmp_path / "drafts" / "YY.json").write_text(json.dumps({"kind": "none"}))

        source = JsonConfigSource(tmp_path)

        assert source.available() == [("ZZ", 2023)]
        assert source.load("ZZ", 2023) == {"kind": "none"}
        assert source.load("ZZ", 2024) is None

    def test_lists_local_rules(self, tmp_path):
        (tmp_path / "2024" / "local").mkdir(parents=True)
        (tmp_path / "2024" / "ZZ.json").write_text(json.dumps({"kind": "none"}))
        (tmp_path / "2024" / "local" / "ZZ-CAPITAL.json").write_text(json.dumps({"kind": "local"}))

        source = JsonConfigSource(tmp_path)

        assert source.available() == [("ZZ", 2024), ("ZZ-CAPITAL", 2024)]
        assert source.load("zz-capital", 2024) == {"kind": "local"}

    def test_floats_load_as_decimals(self, tmp_path):
        (tmp_path / "2024").mkdir()
        (tmp_path / "2024" / "ZZ.json").write_text('{"kind": "flat", "rate": 0.0145}')

        payload = JsonConfigSource(tmp_path).load("ZZ", 2024)

        assert payload["rate"] == Decimal("0.0145")

    def test_missing_directory_is_empty(self, tmp_path):
        assert JsonConfigSource(tmp_path / "nowhere").available() == []

    def test_malformed_payload_fails_registry_load(self, tmp_path):
        (tmp_path / "2024").mkdir()
        (tmp_path / "2024" / "ZZ.json").write_text('{"kind": "progressive"}')

        with pytest.raises(ConfigurationError):
            TaxRuleRegistry.from_source(JsonConfigSource(tmp_path))

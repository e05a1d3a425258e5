"""Registry of parsed jurisdiction rules, resolved once at load time."""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping

from payroll_engine.errors import ConfigurationError
from payroll_engine.tax.federal import FederalTaxRule, MedicareConfig
from payroll_engine.tax.local import LocalRate, LocalTaxRule, ServicesTax, normalize_city
from payroll_engine.tax.rules import (
    NO_AMOUNT,
    AnnualAmount,
    FlatTaxRule,
    NoIncomeTaxRule,
    PercentOfWages,
    ProgressiveTaxRule,
    Surtax,
    SutaConfig,
    TaxRule,
    WageBaseContribution,
)
from payroll_engine.tax.sources import ConfigSource
from payroll_engine.tax.types import ByFilingStatus, FilingStatus, TaxBracket

logger = logging.getLogger(__name__)

FEDERAL = "FED"


def _dec(value: Any) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


def _optional_dec(value: Any) -> Decimal | None:
    return None if value is None else _dec(value)


def _by_status(value: Any, parse: Any) -> ByFilingStatus:
    """Parse a value that is either shared by all statuses or keyed by status."""
    if isinstance(value, dict) and set(value) <= {s.value for s in FilingStatus}:
        if FilingStatus.SINGLE.value not in value:
            raise ValueError("per-status table must include SINGLE")
        return ByFilingStatus({status: parse(v) for status, v in value.items()})
    return ByFilingStatus({FilingStatus.SINGLE.value: parse(value)})


def _amount(value: Any) -> AnnualAmount | PercentOfWages:
    if isinstance(value, dict):
        return PercentOfWages(
            percent=_dec(value["percent"]),
            minimum=_dec(value.get("min", 0)),
            maximum=_dec(value["max"]),
        )
    return AnnualAmount(_dec(value))


def _amounts(value: Any) -> ByFilingStatus:
    if value is None:
        return NO_AMOUNT
    return _by_status(value, _amount)


def _brackets(rows: list[dict[str, Any]]) -> tuple[TaxBracket, ...]:
    brackets = [
        TaxBracket(
            min_amount=_dec(row["min"]),
            max_amount=_optional_dec(row.get("max")),
            rate=_dec(row["rate"]),
            base_amount=_dec(row.get("base", 0)),
        )
        for row in rows
    ]
    return tuple(sorted(brackets, key=lambda b: b.min_amount))


def _contribution(row: dict[str, Any]) -> WageBaseContribution:
    kind = row["kind"]
    if kind not in ("sdi", "sui"):
        raise ValueError(f"unknown contribution kind {kind!r}")
    return WageBaseContribution(
        name=row["name"],
        kind=kind,
        rate=_dec(row["rate"]),
        wage_base=_optional_dec(row.get("wage_base")),
    )


def _suta(value: dict[str, Any]) -> SutaConfig:
    return SutaConfig(
        wage_base=_dec(value["wage_base"]),
        new_employer_rate=_dec(value["new_employer_rate"]),
        min_rate=_dec(value["min_rate"]),
        max_rate=_dec(value["max_rate"]),
    )


def _parse_federal(code: str, year: int, payload: dict[str, Any]) -> FederalTaxRule:
    ss = payload["social_security"]
    medicare = payload["medicare"]
    futa = payload["futa"]
    return FederalTaxRule(
        jurisdiction=code,
        year=year,
        name=payload.get("name", "Federal"),
        brackets=_by_status(payload["brackets"], _brackets),
        standard_deduction=_by_status(payload["standard_deduction"], _dec),
        dependent_credit_per_allowance=_dec(payload["dependent_credit_per_allowance"]),
        social_security=WageBaseContribution(
            name="Social Security", kind="fica", rate=_dec(ss["rate"]),
            wage_base=_optional_dec(ss.get("wage_base")),
        ),
        medicare=MedicareConfig(
            rate=_dec(medicare["rate"]),
            additional_rate=_dec(medicare["additional_rate"]),
            additional_threshold=_dec(medicare["additional_threshold"]),
        ),
        futa=WageBaseContribution(
            name="FUTA", kind="futa", rate=_dec(futa["rate"]),
            wage_base=_optional_dec(futa.get("wage_base")),
        ),
        default_suta=_suta(payload["default_suta"]),
    )


def _local_rate(value: dict[str, Any]) -> LocalRate:
    if "brackets" in value:
        return LocalRate(brackets=_by_status(value["brackets"], _brackets))
    return LocalRate(rate=_dec(value["rate"]))


def _parse_local(code: str, year: int, payload: dict[str, Any]) -> LocalTaxRule:
    services = payload.get("services_tax")
    cities = tuple(normalize_city(c) for c in payload["cities"])
    if not cities:
        raise ValueError("local rule must name at least one city")
    return LocalTaxRule(
        jurisdiction=code,
        year=year,
        name=payload.get("name", code),
        state=payload["state"].upper(),
        cities=cities,
        resident=_local_rate(payload["resident"]),
        nonresident=_local_rate(payload.get("nonresident", {"rate": 0})),
        services_tax=(
            ServicesTax(
                annual_amount=_dec(services["annual_amount"]),
                min_annual_wages=_dec(services.get("min_annual_wages", 0)),
            )
            if services
            else None
        ),
    )


def parse_rule(code: str, year: int, payload: dict[str, Any]) -> TaxRule:
    """Build the rule variant named by the payload's ``kind``.

    Raises ConfigurationError for unknown kinds or malformed payloads.
    """
    kind = payload.get("kind")
    try:
        if kind == "federal":
            return _parse_federal(code, year, payload)
        if kind == "local":
            return _parse_local(code, year, payload)

        common: dict[str, Any] = {
            "jurisdiction": code,
            "year": year,
            "name": payload.get("name", code),
            "standard_deduction": _amounts(payload.get("standard_deduction")),
            "personal_exemption": _amounts(payload.get("personal_exemption")),
            "annual_credit": _amounts(payload.get("annual_credit")),
            "surtax": (
                Surtax(
                    threshold=_dec(payload["surtax"]["threshold"]),
                    rate=_dec(payload["surtax"]["rate"]),
                )
                if payload.get("surtax")
                else None
            ),
            "contributions": tuple(_contribution(c) for c in payload.get("contributions", [])),
            "filing_status_aliases": tuple(
                sorted(payload.get("filing_status_aliases", {}).items())
            ),
        }
        if kind == "progressive":
            return ProgressiveTaxRule(**common, brackets=_by_status(payload["brackets"], _brackets))
        if kind == "flat":
            return FlatTaxRule(**common, rate=_dec(payload["rate"]))
        if kind == "none":
            return NoIncomeTaxRule(**common)
    except (KeyError, TypeError, ValueError, InvalidOperation) as exc:
        raise ConfigurationError(code, year, f"malformed payload ({exc!r})") from exc

    raise ConfigurationError(code, year, f"unknown rule kind {kind!r}")


class TaxRuleRegistry:
    """Maps (jurisdiction, year) to a parsed rule and its SUTA parameters.

    Local rules are kept apart from state rules and indexed by
    (state, city) so they never show up as jurisdictions of their own.
    """

    def __init__(
        self,
        rules: Mapping[tuple[str, int], TaxRule],
        suta: Mapping[tuple[str, int], SutaConfig] | None = None,
        local: Mapping[tuple[str, int], LocalTaxRule] | None = None,
    ):
        self._rules = dict(rules)
        self._suta = dict(suta or {})
        self._local = dict(local or {})
        self._cities: dict[tuple[str, str], str] = {}
        for (code, year), rule in sorted(self._local.items()):
            for city in rule.cities:
                existing = self._cities.setdefault((rule.state, city), code)
                if existing != code:
                    raise ConfigurationError(
                        code, year, f"city {city!r} already belongs to {existing}"
                    )

    @classmethod
    def from_source(cls, source: ConfigSource) -> TaxRuleRegistry:
        """Parse every payload the source offers."""
        rules: dict[tuple[str, int], TaxRule] = {}
        suta: dict[tuple[str, int], SutaConfig] = {}
        local: dict[tuple[str, int], LocalTaxRule] = {}
        for code, year in source.available():
            payload = source.load(code, year)
            if payload is None:
                continue
            rule = parse_rule(code, year, payload)
            if isinstance(rule, LocalTaxRule):
                local[(code, year)] = rule
                continue
            rules[(code, year)] = rule
            employer = payload.get("employer") or {}
            if "suta" in employer:
                try:
                    suta[(code, year)] = _suta(employer["suta"])
                except (KeyError, ValueError, InvalidOperation) as exc:
                    raise ConfigurationError(code, year, f"malformed SUTA ({exc!r})") from exc
        logger.info("Loaded %d jurisdiction rules and %d local rules", len(rules), len(local))
        return cls(rules, suta, local)

    def get(self, jurisdiction: str, year: int) -> TaxRule | None:
        return self._rules.get((jurisdiction.upper(), year))

    def suta(self, jurisdiction: str, year: int) -> SutaConfig | None:
        return self._suta.get((jurisdiction.upper(), year))

    def years(self, jurisdiction: str) -> list[int]:
        code = jurisdiction.upper()
        return sorted(year for (c, year) in self._rules if c == code)

    def jurisdictions(self, year: int) -> list[str]:
        return sorted(code for (code, y) in self._rules if y == year)

    def codes(self) -> list[str]:
        return sorted({code for (code, _) in self._rules})

    def local_code(self, state: str, city: str) -> str | None:
        """Code of the locality taxing work in a city, or None if it has no local tax."""
        return self._cities.get((state.upper(), normalize_city(city)))

    def local(self, code: str, year: int) -> LocalTaxRule | None:
        return self._local.get((code.upper(), year))

    def local_years(self, code: str) -> list[int]:
        code = code.upper()
        return sorted(year for (c, year) in self._local if c == code)

    def local_codes(self) -> list[str]:
        return sorted({code for (code, _) in self._local})

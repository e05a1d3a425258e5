"""Payroll run orchestrator: proration, gross pay, taxes, garnishments, net pay."""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Mapping
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from payroll_engine.calculators import (
    GarnishmentCalculator,
    GarnishmentOrder,
    ProrationCalculator,
    RetirementElection,
    compute_401k,
    compute_gross_pay,
)
from payroll_engine.errors import DataError, NotFoundError, ValidationError
from payroll_engine.models import (
    Company,
    Employee,
    Garnishment,
    PayPeriod,
    PayrollRecord,
    PayrollRecordGarnishment,
    RetirementContributionType,
)
from payroll_engine.services.pay_period_service import PayPeriodService, validate_period_dates
from payroll_engine.services.state_machine import PayPeriodStateMachine
from payroll_engine.tax import EmployerTaxInput, FilingStatus, TaxEngine, TaxInput
from payroll_engine.tax.types import ZERO, round_money

logger = logging.getLogger(__name__)

FACTOR_PRECISION = Decimal("0.000001")
FILING_STATUSES = {s.value for s in FilingStatus}
RETIREMENT_TYPES = {t.value for t in RetirementContributionType}


@dataclass(frozen=True)
class EmployeeRunInput:
    """Per-employee inputs reported for a run."""

    hours_worked: Decimal | None = None
    overtime_hours: Decimal | None = None
    bonus: Decimal | None = None


@dataclass(frozen=True)
class _YtdWages:
    gross: Decimal
    by_state: Mapping[str, Decimal]

    def in_state(self, work_state: str) -> Decimal:
        return self.by_state.get(work_state, ZERO)


class PayrollRunOrchestrator:
    """Computes and persists one payroll record per eligible employee.

    The caller must hold the run lock for the company and period, and owns
    the transaction: records are only added and flushed here, so a failure
    leaves nothing committed.
    """

    def __init__(
        self,
        session: AsyncSession,
        tax_engine: TaxEngine,
        garnishment_calculator: GarnishmentCalculator | None = None,
    ):
        self.session = session
        self.tax_engine = tax_engine
        self.garnishment_calculator = garnishment_calculator or GarnishmentCalculator()
        self.pay_periods = PayPeriodService(session)

    async def run(
        self,
        company_id: UUID,
        period_start: date,
        period_end: date,
        pay_date: date,
        employee_inputs: Mapping[UUID, EmployeeRunInput] | None = None,
    ) -> list[PayrollRecord]:
        """Run payroll for every eligible employee of a company.

        Returns the new records, all belonging to the (DRAFT) pay period for
        these dates, which is created if missing.

        Raises:
            ValidationError: Bad period bounds, employee data, or a period
                that is no longer DRAFT.
            NotFoundError: Unknown company.
            DataError: No eligible employees, a work state or city without tax
                configuration, or deductions that exceed an employee's gross pay.
            ConfigurationError: Federal configuration missing for the year.
        """
        validate_period_dates(period_start, period_end, pay_date)
        employee_inputs = employee_inputs or {}

        company = await self.session.get(Company, company_id)
        if company is None:
            raise NotFoundError("Company", company_id)

        pay_period = await self.pay_periods.create_or_update(
            company_id, period_start, period_end, pay_date
        )
        if not PayPeriodStateMachine.can_run_payroll(pay_period.status):
            raise ValidationError(
                f"Pay period is {pay_period.status}; payroll can only run on a DRAFT period",
                field="pay_period",
            )

        employees = await self._load_employees(company_id)
        eligible: list[tuple[Employee, Decimal]] = []
        for employee in employees:
            factor = ProrationCalculator.factor(
                period_start, period_end, employee.hire_date, employee.termination_date
            )
            if factor > 0:
                eligible.append((employee, factor))
            else:
                logger.debug("Employee %s not active in period, skipped", employee.employee_id)

        if not eligible:
            raise DataError("No eligible employees for this pay period")

        self._validate_employees([e for e, _ in eligible])
        year = pay_date.year
        self._check_jurisdictions([e for e, _ in eligible], year)

        ytd = await self._ytd_wages([e.employee_id for e, _ in eligible], pay_date)
        periods = company.pay_periods_per_year

        records: list[PayrollRecord] = []
        for employee, factor in eligible:
            record = self._compute_record(
                company=company,
                employee=employee,
                pay_period=pay_period,
                factor=factor,
                periods=periods,
                year=year,
                ytd=ytd.get(employee.employee_id, _YtdWages(ZERO, {})),
                run_input=employee_inputs.get(employee.employee_id, EmployeeRunInput()),
            )
            self.session.add(record)
            records.append(record)

        await self.session.flush()
        logger.info(
            "Computed %d payroll records for company %s period %s..%s",
            len(records), company_id, period_start, period_end,
        )
        return records

    async def _load_employees(self, company_id: UUID) -> list[Employee]:
        result = await self.session.execute(
            select(Employee)
            .where(Employee.company_id == company_id, Employee.is_active.is_(True))
            .options(selectinload(Employee.garnishments))
            .order_by(Employee.last_name, Employee.first_name)
        )
        return list(result.scalars().all())

    def _validate_employees(self, employees: list[Employee]) -> None:
        for employee in employees:
            if employee.pay_rate is None or employee.pay_rate <= 0:
                raise ValidationError(
                    f"Employee {employee.employee_id} has no positive pay rate",
                    field="pay_rate",
                )
            if employee.filing_status not in FILING_STATUSES:
                raise ValidationError(
                    f"Employee {employee.employee_id} has invalid filing status "
                    f"'{employee.filing_status}'",
                    field="filing_status",
                )
            if not employee.work_state:
                raise ValidationError(
                    f"Employee {employee.employee_id} has no work state",
                    field="work_state",
                )
            if employee.retirement_401k_type is not None and (
                employee.retirement_401k_type not in RETIREMENT_TYPES
            ):
                raise ValidationError(
                    f"Employee {employee.employee_id} has invalid 401(k) type "
                    f"'{employee.retirement_401k_type}'",
                    field="retirement_401k_type",
                )

    def _check_jurisdictions(self, employees: list[Employee], year: int) -> None:
        unsupported = [
            e.employee_id for e in employees if not self.tax_engine.supports(e.work_state, year)
        ]
        if unsupported:
            states = sorted({e.work_state for e in employees if e.employee_id in unsupported})
            raise DataError(
                f"No tax configuration for work state(s) {', '.join(states)} in {year}",
                employee_ids=unsupported,
            )
        unsupported_local = [
            e
            for e in employees
            if e.work_city and not self.tax_engine.supports_local(e.work_state, e.work_city, year)
        ]
        if unsupported_local:
            cities = sorted({e.work_city for e in unsupported_local})
            raise DataError(
                f"No local tax configuration for work city(s) {', '.join(cities)} in {year}",
                employee_ids=[e.employee_id for e in unsupported_local],
            )

    async def _ytd_wages(self, employee_ids: list[UUID], pay_date: date) -> dict[UUID, _YtdWages]:
        """Gross wages paid earlier in the pay date's calendar year, by work state."""
        result = await self.session.execute(
            select(
                PayrollRecord.employee_id,
                PayrollRecord.work_state,
                func.sum(PayrollRecord.gross_pay),
            )
            .where(
                PayrollRecord.employee_id.in_(employee_ids),
                PayrollRecord.pay_date >= date(pay_date.year, 1, 1),
                PayrollRecord.pay_date < pay_date,
            )
            .group_by(PayrollRecord.employee_id, PayrollRecord.work_state)
        )
        by_state: dict[UUID, dict[str, Decimal]] = defaultdict(dict)
        for employee_id, work_state, total in result.all():
            by_state[employee_id][work_state] = Decimal(str(total or 0))
        return {
            employee_id: _YtdWages(gross=sum(states.values(), ZERO), by_state=states)
            for employee_id, states in by_state.items()
        }

    def _compute_record(
        self,
        company: Company,
        employee: Employee,
        pay_period: PayPeriod,
        factor: Decimal,
        periods: int,
        year: int,
        ytd: _YtdWages,
        run_input: EmployeeRunInput,
    ) -> PayrollRecord:
        work_state = employee.work_state.upper()
        gross_pay = compute_gross_pay(
            employee.compensation_type,
            employee.pay_rate,
            periods,
            factor,
            hours_worked=run_input.hours_worked,
            overtime_hours=run_input.overtime_hours,
            bonus=run_input.bonus,
        )
        gross = round_money(gross_pay.total)
        ytd_state = ytd.in_state(work_state)
        retirement = compute_401k(
            gross,
            RetirementElection(
                contribution_type=employee.retirement_401k_type,
                rate=employee.retirement_401k_rate,
                amount=employee.retirement_401k_amount,
                match_rate=company.retirement_401k_match_rate,
                match_limit=company.retirement_401k_match_limit_percent,
            ),
        )

        tax_input = TaxInput(
            gross_pay=gross,
            filing_status=employee.filing_status,
            pay_periods_per_year=periods,
            allowances=employee.allowances,
            ytd_gross_wages=ytd.gross,
            ytd_jurisdiction_taxable_wages=ytd_state,
            additional_withholding=employee.additional_withholding or ZERO,
            other_income=employee.other_income or ZERO,
            deductions=employee.deductions or ZERO,
            pre_tax_deductions=retirement.employee_deferral,
            local_resident=employee.local_resident,
        )
        federal = self.tax_engine.compute_federal(year, tax_input)
        state = self.tax_engine.compute(work_state, year, tax_input)
        local = (
            self.tax_engine.compute_local(work_state, employee.work_city, year, tax_input)
            if employee.work_city
            else None
        )
        local_tax = local.total if local is not None else ZERO
        employer = self.tax_engine.compute_employer(
            work_state,
            year,
            EmployerTaxInput(
                gross_pay=gross,
                ytd_gross_wages=ytd.gross,
                ytd_jurisdiction_wages=ytd_state,
                suta_rate=company.suta_rate,
            ),
        )

        total_tax = round_money(federal.total + state.total + local_tax)
        # Disposable earnings: gross less mandatory taxes; 401(k) is voluntary
        disposable = max(ZERO, gross - total_tax)

        garnishments = self.garnishment_calculator.apply(
            disposable, [_garnishment_order(g) for g in employee.garnishments]
        )
        net_pay = disposable - garnishments.total_deduction - retirement.employee_deferral
        if net_pay < 0:
            raise DataError(
                f"Deductions exceed gross pay for employee {employee.employee_id}",
                employee_ids=[employee.employee_id],
            )

        by_id = {g.garnishment_id: g for g in employee.garnishments}
        garnishment_lines = []
        for line in garnishments.lines:
            garnishment = by_id[line.garnishment_id]
            garnishment.total_paid = (garnishment.total_paid or ZERO) + line.amount
            garnishment_lines.append(
                PayrollRecordGarnishment(
                    garnishment_id=line.garnishment_id,
                    garnishment_type=line.garnishment_type,
                    amount=line.amount,
                )
            )

        logger.debug(
            "Employee %s: gross=%s tax=%s 401k=%s garnishments=%s net=%s",
            employee.employee_id, gross, total_tax, retirement.employee_deferral,
            garnishments.total_deduction, net_pay,
        )

        return PayrollRecord(
            company_id=company.company_id,
            employee_id=employee.employee_id,
            pay_period_id=pay_period.pay_period_id,
            period_start=pay_period.start_date,
            period_end=pay_period.end_date,
            pay_date=pay_period.pay_date,
            work_state=work_state,
            local_jurisdiction=local.jurisdiction if local is not None else None,
            proration_factor=factor.quantize(FACTOR_PRECISION),
            regular_hours=gross_pay.regular_hours,
            overtime_hours=gross_pay.overtime_hours,
            gross_pay=gross,
            federal_withholding=federal.income_tax,
            social_security=federal.social_security,
            medicare=federal.medicare,
            additional_medicare=federal.additional_medicare,
            state_withholding=state.income_tax,
            state_disability=state.sdi,
            state_unemployment=state.sui,
            local_withholding=local_tax,
            total_tax=total_tax,
            retirement_401k=retirement.employee_deferral,
            garnishment_total=garnishments.total_deduction,
            net_pay=net_pay,
            employer_futa=employer.futa,
            employer_suta=employer.suta,
            employer_social_security=employer.social_security,
            employer_medicare=employer.medicare,
            employer_401k_match=retirement.employer_match,
            garnishment_lines=garnishment_lines,
        )


def _garnishment_order(garnishment: Garnishment) -> GarnishmentOrder:
    return GarnishmentOrder(
        garnishment_id=garnishment.garnishment_id,
        garnishment_type=garnishment.garnishment_type,
        priority=garnishment.priority,
        amount=garnishment.amount,
        percent=garnishment.percent,
        is_active=garnishment.is_active,
        total_owed=garnishment.total_owed,
        total_paid=garnishment.total_paid or ZERO,
    )

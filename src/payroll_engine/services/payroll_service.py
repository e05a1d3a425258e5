"""Payroll run service: lock, run in one transaction, release."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Mapping
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from payroll_engine.calculators import GarnishmentCalculator
from payroll_engine.config import GarnishmentPolicy, RunLockConfig
from payroll_engine.errors import PayrollEngineError, StorageError
from payroll_engine.models import PayrollRecord
from payroll_engine.services.pay_period_service import validate_period_dates
from payroll_engine.services.payroll_run import EmployeeRunInput, PayrollRunOrchestrator
from payroll_engine.services.run_lock_service import RunLockService
from payroll_engine.tax import TaxEngine
from payroll_engine.tax.types import ZERO

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PayrollRunSummary:
    """Result of a completed payroll run."""

    lock_id: UUID
    idempotency_key: str
    company_id: UUID
    pay_period_id: UUID
    period_start: date
    period_end: date
    pay_date: date
    records: tuple[PayrollRecord, ...]

    @property
    def employee_count(self) -> int:
        return len(self.records)

    def _sum(self, attribute: str) -> Decimal:
        return sum((getattr(r, attribute) for r in self.records), ZERO)

    @property
    def total_gross(self) -> Decimal:
        return self._sum("gross_pay")

    @property
    def total_tax(self) -> Decimal:
        return self._sum("total_tax")

    @property
    def total_garnishments(self) -> Decimal:
        return self._sum("garnishment_total")

    @property
    def total_retirement_401k(self) -> Decimal:
        return self._sum("retirement_401k")

    @property
    def total_net(self) -> Decimal:
        return self._sum("net_pay")

    @property
    def total_employer_tax(self) -> Decimal:
        return sum(
            (
                r.employer_futa + r.employer_suta + r.employer_social_security + r.employer_medicare
                for r in self.records
            ),
            ZERO,
        )


class PayrollRunService:
    """Executes payroll runs exactly once per company and period.

    The run lock is acquired before any computation and always released in
    a finally block: COMPLETED when the transaction committed, FAILED
    otherwise. Records are all-or-nothing: the first failing employee aborts
    the run and nothing is committed.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        tax_engine: TaxEngine,
        lock_config: RunLockConfig | None = None,
        garnishment_policy: GarnishmentPolicy | None = None,
    ):
        self.session_factory = session_factory
        self.tax_engine = tax_engine
        self.lock_service = RunLockService(session_factory, lock_config)
        self.garnishment_calculator = GarnishmentCalculator(garnishment_policy)

    async def execute(
        self,
        company_id: UUID,
        period_start: date,
        period_end: date,
        pay_date: date,
        requested_by: str,
        idempotency_key: str | None = None,
        employee_inputs: Mapping[UUID, EmployeeRunInput] | None = None,
    ) -> PayrollRunSummary:
        """Run payroll for a company and period.

        Raises:
            ValidationError: Malformed request (before the lock is taken).
            ConcurrencyError: The run lock was not granted.
            NotFoundError, DataError, ConfigurationError: Run aborted.
            StorageError: The database failed; the run was rolled back.
        """
        validate_period_dates(period_start, period_end, pay_date)

        lock = await self.lock_service.acquire(
            company_id,
            period_start,
            period_end,
            requested_by,
            pay_date=pay_date,
            idempotency_key=idempotency_key,
        )
        lock_id, key = lock.raise_for_conflict()

        success = False
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    orchestrator = PayrollRunOrchestrator(
                        session, self.tax_engine, self.garnishment_calculator
                    )
                    records = await orchestrator.run(
                        company_id, period_start, period_end, pay_date, employee_inputs
                    )
            success = True
        except PayrollEngineError as exc:
            logger.warning("Payroll run aborted (lock %s): %s", lock_id, exc)
            raise
        except SQLAlchemyError as exc:
            logger.exception("Storage failure during payroll run (lock %s)", lock_id)
            raise StorageError(f"Storage failure during payroll run: {exc}") from exc
        finally:
            await self.lock_service.release(lock_id, success=success)

        return PayrollRunSummary(
            lock_id=lock_id,
            idempotency_key=key,
            company_id=company_id,
            pay_period_id=records[0].pay_period_id,
            period_start=period_start,
            period_end=period_end,
            pay_date=pay_date,
            records=tuple(records),
        )

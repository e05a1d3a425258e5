"""Pay period service: period lookup and the submit/approve/reject workflow."""

from __future__ import annotations

import logging
from datetime import date
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from payroll_engine.errors import InvalidTransitionError, NotFoundError, ValidationError
from payroll_engine.models import PayPeriod, PayrollRecord, utcnow
from payroll_engine.services.state_machine import PayPeriodStateMachine, PayPeriodStatus

logger = logging.getLogger(__name__)


def validate_period_dates(period_start: date, period_end: date, pay_date: date) -> None:
    """Require start < end <= pay date."""
    if period_start >= period_end:
        raise ValidationError("Pay period start must be before its end", field="period_start")
    if period_end > pay_date:
        raise ValidationError("Pay date cannot be before the pay period end", field="pay_date")


class PayPeriodService:
    """Service for pay periods.

    Operations:
    - create_or_update: find or create the period for a company and dates
    - submit: DRAFT/REJECTED → SUBMITTED (requires payroll records)
    - approve: SUBMITTED → APPROVED (by someone other than the submitter)
    - reject: SUBMITTED → REJECTED with a reason

    Works within the caller's session; the caller commits.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, pay_period_id: UUID, load_records: bool = False) -> PayPeriod:
        """Load a pay period, raising NotFoundError if it does not exist."""
        query = select(PayPeriod).where(PayPeriod.pay_period_id == pay_period_id)
        if load_records:
            query = query.options(
                selectinload(PayPeriod.records).selectinload(PayrollRecord.garnishment_lines)
            )
        result = await self.session.execute(query)
        pay_period = result.scalar_one_or_none()
        if pay_period is None:
            raise NotFoundError("Pay period", pay_period_id)
        return pay_period

    async def find(
        self, company_id: UUID, period_start: date, period_end: date
    ) -> PayPeriod | None:
        result = await self.session.execute(
            select(PayPeriod).where(
                PayPeriod.company_id == company_id,
                PayPeriod.start_date == period_start,
                PayPeriod.end_date == period_end,
            )
        )
        return result.scalar_one_or_none()

    async def create_or_update(
        self,
        company_id: UUID,
        period_start: date,
        period_end: date,
        pay_date: date,
    ) -> PayPeriod:
        """Get the DRAFT period for these dates, creating it if missing.

        The pay date of an existing DRAFT period is updated; a period past
        DRAFT cannot be changed.
        """
        validate_period_dates(period_start, period_end, pay_date)

        pay_period = await self.find(company_id, period_start, period_end)
        if pay_period is None:
            pay_period = PayPeriod(
                company_id=company_id,
                start_date=period_start,
                end_date=period_end,
                pay_date=pay_date,
                status=PayPeriodStatus.DRAFT.value,
            )
            self.session.add(pay_period)
            await self.session.flush()
            logger.info(
                "Created pay period %s for company %s (%s..%s)",
                pay_period.pay_period_id, company_id, period_start, period_end,
            )
            return pay_period

        if pay_period.pay_date != pay_date:
            if pay_period.status != PayPeriodStatus.DRAFT:
                raise ValidationError(
                    f"Pay period is {pay_period.status} and cannot be modified",
                    field="pay_date",
                )
            pay_period.pay_date = pay_date
            await self.session.flush()
        return pay_period

    async def record_count(self, pay_period_id: UUID) -> int:
        result = await self.session.execute(
            select(func.count())
            .select_from(PayrollRecord)
            .where(PayrollRecord.pay_period_id == pay_period_id)
        )
        return result.scalar_one()

    async def _transition(
        self, pay_period: PayPeriod, to_status: PayPeriodStatus, actor: str
    ) -> None:
        from_status = pay_period.status
        record_count = await self.record_count(pay_period.pay_period_id)
        errors = PayPeriodStateMachine.validate_pay_period_for_transition(
            pay_period, to_status.value, record_count, actor
        )
        if errors:
            raise InvalidTransitionError(from_status, to_status.value, "; ".join(errors))
        pay_period.status = to_status.value
        logger.info(
            "Pay period %s: %s -> %s by %s",
            pay_period.pay_period_id, from_status, to_status.value, actor,
        )

    async def submit(self, pay_period_id: UUID, submitted_by: str) -> PayPeriod:
        """Submit a period for approval."""
        pay_period = await self.get(pay_period_id)
        await self._transition(pay_period, PayPeriodStatus.SUBMITTED, submitted_by)
        pay_period.submitted_by = submitted_by
        pay_period.submitted_at = utcnow()
        pay_period.rejected_by = None
        pay_period.rejected_at = None
        pay_period.rejection_reason = None
        await self.session.flush()
        return pay_period

    async def approve(self, pay_period_id: UUID, approved_by: str) -> PayPeriod:
        """Approve a submitted period."""
        pay_period = await self.get(pay_period_id)
        await self._transition(pay_period, PayPeriodStatus.APPROVED, approved_by)
        pay_period.approved_by = approved_by
        pay_period.approved_at = utcnow()
        await self.session.flush()
        return pay_period

    async def reject(self, pay_period_id: UUID, rejected_by: str, reason: str) -> PayPeriod:
        """Send a submitted period back with a reason."""
        if not reason or not reason.strip():
            raise ValidationError("Rejection requires a reason", field="reason")
        pay_period = await self.get(pay_period_id)
        await self._transition(pay_period, PayPeriodStatus.REJECTED, rejected_by)
        pay_period.rejected_by = rejected_by
        pay_period.rejected_at = utcnow()
        pay_period.rejection_reason = reason.strip()
        await self.session.flush()
        return pay_period

"""Integration tests for the pay period approval workflow."""

from datetime import date
from uuid import uuid4

import pytest

from payroll_engine.errors import InvalidTransitionError, NotFoundError, ValidationError
from payroll_engine.services import PayPeriodService

PERIOD_START = date(2024, 1, 1)
PERIOD_END = date(2024, 1, 14)
PAY_DATE = date(2024, 1, 19)


@pytest.fixture
async def processed_period_id(run_service, company, salaried_employee):
    """ID of a DRAFT pay period with one payroll record."""
    summary = await run_service.execute(
        company.company_id, PERIOD_START, PERIOD_END, PAY_DATE, requested_by="alice"
    )
    return summary.pay_period_id


async def transition(session_factory, action: str, *args):
    async with session_factory() as session:
        service = PayPeriodService(session)
        pay_period = await getattr(service, action)(*args)
        await session.commit()
        return pay_period


class TestCreateOrUpdate:
    """Test pay period lookup and creation."""

    async def test_creates_draft_then_reuses_it(self, session_factory, company):
        async with session_factory() as session:
            service = PayPeriodService(session)
            created = await service.create_or_update(
                company.company_id, PERIOD_START, PERIOD_END, PAY_DATE
            )
            again = await service.create_or_update(
                company.company_id, PERIOD_START, PERIOD_END, date(2024, 1, 20)
            )

        assert created.status == "DRAFT"
        assert again.pay_period_id == created.pay_period_id
        assert again.pay_date == date(2024, 1, 20)

    async def test_submitted_period_pay_date_is_frozen(
        self, session_factory, company, processed_period_id
    ):
        await transition(session_factory, "submit", processed_period_id, "alice")

        async with session_factory() as session:
            with pytest.raises(ValidationError) as exc_info:
                await PayPeriodService(session).create_or_update(
                    company.company_id, PERIOD_START, PERIOD_END, date(2024, 1, 20)
                )

        assert exc_info.value.field == "pay_date"

    async def test_get_unknown_period(self, session_factory):
        async with session_factory() as session:
            with pytest.raises(NotFoundError):
                await PayPeriodService(session).get(uuid4())

    async def test_get_with_records(self, session_factory, processed_period_id):
        async with session_factory() as session:
            pay_period = await PayPeriodService(session).get(processed_period_id, load_records=True)

        assert len(pay_period.records) == 1


class TestApprovalWorkflow:
    """Test submit, approve and reject."""

    async def test_submit_requires_records(self, session_factory, company):
        async with session_factory() as session:
            service = PayPeriodService(session)
            pay_period = await service.create_or_update(
                company.company_id, PERIOD_START, PERIOD_END, PAY_DATE
            )
            with pytest.raises(InvalidTransitionError) as exc_info:
                await service.submit(pay_period.pay_period_id, "alice")

        assert "no payroll records" in str(exc_info.value)

    async def test_submit_and_approve(self, session_factory, processed_period_id):
        submitted = await transition(session_factory, "submit", processed_period_id, "alice")
        approved = await transition(session_factory, "approve", processed_period_id, "bob")

        assert submitted.status == "SUBMITTED"
        assert submitted.submitted_by == "alice"
        assert submitted.submitted_at is not None
        assert approved.status == "APPROVED"
        assert approved.approved_by == "bob"
        assert approved.approved_at is not None

    async def test_submitter_cannot_approve(self, session_factory, processed_period_id):
        await transition(session_factory, "submit", processed_period_id, "alice")

        with pytest.raises(InvalidTransitionError) as exc_info:
            await transition(session_factory, "approve", processed_period_id, "alice")

        assert "Submitter cannot approve" in str(exc_info.value)

    async def test_cannot_approve_draft(self, session_factory, processed_period_id):
        with pytest.raises(InvalidTransitionError):
            await transition(session_factory, "approve", processed_period_id, "bob")

    async def test_reject_and_resubmit(self, session_factory, processed_period_id):
        await transition(session_factory, "submit", processed_period_id, "alice")
        rejected = await transition(
            session_factory, "reject", processed_period_id, "bob", "  Wrong pay date  "
        )

        assert rejected.status == "REJECTED"
        assert rejected.rejected_by == "bob"
        assert rejected.rejection_reason == "Wrong pay date"

        resubmitted = await transition(session_factory, "submit", processed_period_id, "alice")

        assert resubmitted.status == "SUBMITTED"
        assert resubmitted.rejection_reason is None
        assert resubmitted.rejected_by is None

    async def test_reject_requires_reason(self, session_factory, processed_period_id):
        await transition(session_factory, "submit", processed_period_id, "alice")

        with pytest.raises(ValidationError) as exc_info:
            await transition(session_factory, "reject", processed_period_id, "bob", "   ")

        assert exc_info.value.field == "reason"

    async def test_approved_period_is_final(self, session_factory, processed_period_id):
        await transition(session_factory, "submit", processed_period_id, "alice")
        await transition(session_factory, "approve", processed_period_id, "bob")

        with pytest.raises(InvalidTransitionError):
            await transition(session_factory, "reject", processed_period_id, "carol", "Too late")

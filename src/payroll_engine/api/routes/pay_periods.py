"""Pay period approval API endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path

from payroll_engine.api.dependencies import DbSession
from payroll_engine.api.schemas import (
    ApprovalRequest,
    ErrorResponse,
    PayPeriodDetailResponse,
    PayPeriodResponse,
    RejectRequest,
)
from payroll_engine.services import PayPeriodService

router = APIRouter(prefix="/pay-periods", tags=["pay-periods"])

_errors = {400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}}


@router.get("/{pay_period_id}", response_model=PayPeriodDetailResponse, responses=_errors)
async def get_pay_period(
    db: DbSession,
    pay_period_id: Annotated[UUID, Path()],
) -> PayPeriodDetailResponse:
    """Get a pay period with its payroll records."""
    pay_period = await PayPeriodService(db).get(pay_period_id, load_records=True)
    return PayPeriodDetailResponse.model_validate(pay_period)


@router.post("/{pay_period_id}/submit", response_model=PayPeriodResponse, responses=_errors)
async def submit_pay_period(
    db: DbSession,
    pay_period_id: Annotated[UUID, Path()],
    payload: ApprovalRequest,
) -> PayPeriodResponse:
    """Submit a pay period for approval."""
    pay_period = await PayPeriodService(db).submit(pay_period_id, payload.user)
    await db.commit()
    return PayPeriodResponse.model_validate(pay_period)


@router.post("/{pay_period_id}/approve", response_model=PayPeriodResponse, responses=_errors)
async def approve_pay_period(
    db: DbSession,
    pay_period_id: Annotated[UUID, Path()],
    payload: ApprovalRequest,
) -> PayPeriodResponse:
    """Approve a submitted pay period."""
    pay_period = await PayPeriodService(db).approve(pay_period_id, payload.user)
    await db.commit()
    return PayPeriodResponse.model_validate(pay_period)


@router.post("/{pay_period_id}/reject", response_model=PayPeriodResponse, responses=_errors)
async def reject_pay_period(
    db: DbSession,
    pay_period_id: Annotated[UUID, Path()],
    payload: RejectRequest,
) -> PayPeriodResponse:
    """Reject a submitted pay period with a reason."""
    pay_period = await PayPeriodService(db).reject(pay_period_id, payload.user, payload.reason)
    await db.commit()
    return PayPeriodResponse.model_validate(pay_period)

"""Payroll run API endpoints."""

from datetime import date
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query, status

from payroll_engine.api.dependencies import PayrollRuns, RunLocks
from payroll_engine.api.schemas import (
    ErrorResponse,
    LockStatusResponse,
    PayrollRunRequest,
    PayrollRunResponse,
)
from payroll_engine.services import EmployeeRunInput

router = APIRouter(prefix="/payroll-runs", tags=["payroll-runs"])


@router.post(
    "",
    response_model=PayrollRunResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
        423: {"model": ErrorResponse},
    },
)
async def run_payroll(service: PayrollRuns, payload: PayrollRunRequest) -> PayrollRunResponse:
    """Run payroll for a company and pay period, exactly once."""
    employee_inputs = {
        item.employee_id: EmployeeRunInput(
            hours_worked=item.hours_worked,
            overtime_hours=item.overtime_hours,
            bonus=item.bonus,
        )
        for item in payload.employee_inputs
    }
    summary = await service.execute(
        company_id=payload.company_id,
        period_start=payload.period_start,
        period_end=payload.period_end,
        pay_date=payload.pay_date,
        requested_by=payload.requested_by,
        idempotency_key=payload.idempotency_key,
        employee_inputs=employee_inputs,
    )
    return PayrollRunResponse.model_validate(summary)


@router.get("/lock-status", response_model=LockStatusResponse)
async def get_lock_status(
    service: RunLocks,
    company_id: Annotated[UUID, Query()],
    period_start: Annotated[date, Query()],
    period_end: Annotated[date, Query()],
) -> LockStatusResponse:
    """Report whether a company and period is locked or already processed."""
    lock_status = await service.status(company_id, period_start, period_end)
    return LockStatusResponse.model_validate(lock_status)

"""Pydantic schemas for API request/response models."""

from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


# ============================================================================
# Payroll run schemas
# ============================================================================


class EmployeeRunInputRequest(BaseModel):
    """Reported hours and bonus for one employee in a run."""

    employee_id: UUID
    hours_worked: Decimal | None = Field(default=None, ge=0)
    overtime_hours: Decimal | None = Field(default=None, ge=0)
    bonus: Decimal | None = Field(default=None, ge=0)


class PayrollRunRequest(BaseModel):
    """Schema for requesting a payroll run."""

    company_id: UUID
    period_start: date
    period_end: date
    pay_date: date
    requested_by: str = Field(min_length=1)
    idempotency_key: str | None = Field(default=None, min_length=1, max_length=64)
    employee_inputs: list[EmployeeRunInputRequest] = Field(default_factory=list)


class GarnishmentLineResponse(BaseModel):
    """Schema for an accepted garnishment deduction."""

    model_config = ConfigDict(from_attributes=True)

    garnishment_id: UUID
    garnishment_type: str
    amount: Decimal


class PayrollRecordResponse(BaseModel):
    """Schema for one employee's payroll record."""

    model_config = ConfigDict(from_attributes=True)

    payroll_record_id: UUID
    employee_id: UUID
    pay_period_id: UUID
    work_state: str
    local_jurisdiction: str | None = None
    proration_factor: Decimal
    regular_hours: Decimal
    overtime_hours: Decimal
    gross_pay: Decimal
    federal_withholding: Decimal
    social_security: Decimal
    medicare: Decimal
    additional_medicare: Decimal
    state_withholding: Decimal
    state_disability: Decimal
    state_unemployment: Decimal
    local_withholding: Decimal
    total_tax: Decimal
    retirement_401k: Decimal
    garnishment_total: Decimal
    net_pay: Decimal
    employer_futa: Decimal
    employer_suta: Decimal
    employer_social_security: Decimal
    employer_medicare: Decimal
    employer_401k_match: Decimal
    garnishment_lines: list[GarnishmentLineResponse] = []


class PayrollRunResponse(BaseModel):
    """Schema for a completed payroll run."""

    model_config = ConfigDict(from_attributes=True)

    lock_id: UUID
    idempotency_key: str
    company_id: UUID
    pay_period_id: UUID
    period_start: date
    period_end: date
    pay_date: date
    employee_count: int
    total_gross: Decimal
    total_tax: Decimal
    total_garnishments: Decimal
    total_retirement_401k: Decimal
    total_net: Decimal
    total_employer_tax: Decimal
    records: list[PayrollRecordResponse]


# ============================================================================
# Run lock schemas
# ============================================================================


class LockInfoResponse(BaseModel):
    """Schema for run lock metadata."""

    model_config = ConfigDict(from_attributes=True)

    lock_id: UUID
    locked_by: str
    locked_at: datetime
    expires_at: datetime
    status: str


class LockStatusResponse(BaseModel):
    """Schema for the lock status of a company and period."""

    model_config = ConfigDict(from_attributes=True)

    is_locked: bool
    is_processed: bool
    lock: LockInfoResponse | None = None


# ============================================================================
# Pay period schemas
# ============================================================================


class PayPeriodResponse(BaseModel):
    """Schema for pay period response."""

    model_config = ConfigDict(from_attributes=True)

    pay_period_id: UUID
    company_id: UUID
    start_date: date
    end_date: date
    pay_date: date
    status: str
    submitted_by: str | None = None
    submitted_at: datetime | None = None
    approved_by: str | None = None
    approved_at: datetime | None = None
    rejected_by: str | None = None
    rejected_at: datetime | None = None
    rejection_reason: str | None = None


class PayPeriodDetailResponse(PayPeriodResponse):
    """Schema for a pay period with its payroll records."""

    records: list[PayrollRecordResponse] = []


class ApprovalRequest(BaseModel):
    """Schema for submit/approve actions."""

    user: str = Field(min_length=1)


class RejectRequest(BaseModel):
    """Schema for rejecting a submitted pay period."""

    user: str = Field(min_length=1)
    reason: str = Field(min_length=1)


# ============================================================================
# Jurisdictions
# ============================================================================


class JurisdictionListResponse(BaseModel):
    """Schema for supported jurisdictions in a tax year."""

    year: int
    jurisdictions: list[str]
    localities: list[str] = []


# ============================================================================
# Error schemas
# ============================================================================


class ErrorResponse(BaseModel):
    """Schema for error response."""

    detail: str
    code: str | None = None
    field: str | None = None
    employee_ids: list[UUID] | None = None
    existing_lock: dict[str, Any] | None = None

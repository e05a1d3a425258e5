"""Pay period, payroll record, and run lock models."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import (
    CheckConstraint,
    Date,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from payroll_engine.models.base import Base, TimestampMixin, UTCDateTime

if TYPE_CHECKING:
    from payroll_engine.models.company import Company
    from payroll_engine.models.employee import Employee


# ===== Pay Periods =====


class PayPeriod(Base, TimestampMixin):
    """Pay period with its approval workflow status."""

    __tablename__ = "pay_period"

    pay_period_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    company_id: Mapped[UUID] = mapped_column(
        ForeignKey("company.company_id", ondelete="CASCADE"),
        nullable=False,
    )
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    pay_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="DRAFT")
    submitted_by: Mapped[str | None] = mapped_column(String, nullable=True)
    submitted_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    approved_by: Mapped[str | None] = mapped_column(String, nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    rejected_by: Mapped[str | None] = mapped_column(String, nullable=True)
    rejected_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint(
            "company_id", "start_date", "end_date", name="pay_period_company_dates_unique"
        ),
        CheckConstraint(
            "start_date < end_date AND end_date <= pay_date",
            name="pay_period_dates_check",
        ),
        CheckConstraint(
            "status IN ('DRAFT', 'SUBMITTED', 'APPROVED', 'REJECTED')",
            name="pay_period_status_check",
        ),
    )

    # Relationships
    company: Mapped[Company] = relationship(back_populates="pay_periods")
    records: Mapped[list[PayrollRecord]] = relationship(back_populates="pay_period")


# ===== Results =====


class PayrollRecord(Base, TimestampMixin):
    """Gross-to-net result for one employee in one pay period.

    Immutable once created; corrections go through a new period.
    """

    __tablename__ = "payroll_record"

    payroll_record_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    company_id: Mapped[UUID] = mapped_column(
        ForeignKey("company.company_id", ondelete="CASCADE"),
        nullable=False,
    )
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employee.employee_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    pay_period_id: Mapped[UUID] = mapped_column(
        ForeignKey("pay_period.pay_period_id", ondelete="CASCADE"),
        nullable=False,
    )
    period_start: Mapped[date] = mapped_column(Date, nullable=False)
    period_end: Mapped[date] = mapped_column(Date, nullable=False)
    pay_date: Mapped[date] = mapped_column(Date, nullable=False)
    work_state: Mapped[str] = mapped_column(String(2), nullable=False)
    local_jurisdiction: Mapped[str | None] = mapped_column(String, nullable=True)
    proration_factor: Mapped[Decimal] = mapped_column(Numeric(9, 6), nullable=False)
    regular_hours: Mapped[Decimal] = mapped_column(Numeric(9, 2), nullable=False, default=0)
    overtime_hours: Mapped[Decimal] = mapped_column(Numeric(9, 2), nullable=False, default=0)

    # Earnings
    gross_pay: Mapped[Decimal] = mapped_column(nullable=False)

    # Employee taxes
    federal_withholding: Mapped[Decimal] = mapped_column(nullable=False)
    social_security: Mapped[Decimal] = mapped_column(nullable=False)
    medicare: Mapped[Decimal] = mapped_column(nullable=False)
    additional_medicare: Mapped[Decimal] = mapped_column(nullable=False)
    state_withholding: Mapped[Decimal] = mapped_column(nullable=False)
    state_disability: Mapped[Decimal] = mapped_column(nullable=False)
    state_unemployment: Mapped[Decimal] = mapped_column(nullable=False)
    local_withholding: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    total_tax: Mapped[Decimal] = mapped_column(nullable=False)

    # Deductions and net
    retirement_401k: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    garnishment_total: Mapped[Decimal] = mapped_column(nullable=False)
    net_pay: Mapped[Decimal] = mapped_column(nullable=False)

    # Employer taxes and contributions
    employer_futa: Mapped[Decimal] = mapped_column(nullable=False)
    employer_suta: Mapped[Decimal] = mapped_column(nullable=False)
    employer_social_security: Mapped[Decimal] = mapped_column(nullable=False)
    employer_medicare: Mapped[Decimal] = mapped_column(nullable=False)
    employer_401k_match: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))

    __table_args__ = (
        UniqueConstraint("employee_id", "pay_period_id", name="payroll_record_employee_period_unique"),
        CheckConstraint("net_pay >= 0", name="payroll_record_net_pay_check"),
    )

    # Relationships
    employee: Mapped[Employee] = relationship()
    pay_period: Mapped[PayPeriod] = relationship(back_populates="records")
    garnishment_lines: Mapped[list[PayrollRecordGarnishment]] = relationship(
        back_populates="payroll_record",
        cascade="all, delete-orphan",
    )


class PayrollRecordGarnishment(Base):
    """One accepted garnishment deduction on a payroll record."""

    __tablename__ = "payroll_record_garnishment"

    payroll_record_garnishment_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    payroll_record_id: Mapped[UUID] = mapped_column(
        ForeignKey("payroll_record.payroll_record_id", ondelete="CASCADE"),
        nullable=False,
    )
    garnishment_id: Mapped[UUID] = mapped_column(
        ForeignKey("garnishment.garnishment_id", ondelete="CASCADE"),
        nullable=False,
    )
    garnishment_type: Mapped[str] = mapped_column(String, nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)

    # Relationships
    payroll_record: Mapped[PayrollRecord] = relationship(back_populates="garnishment_lines")


# ===== Run Coordination =====


class RunLock(Base):
    """Persistent lock guarding one payroll run per (company, period).

    An idempotency key is unique among ACTIVE and COMPLETED locks, so a
    FAILED or EXPIRED attempt can be retried with the same key. A second
    partial unique index allows only one ACTIVE lock per company and period.
    """

    __tablename__ = "run_lock"

    run_lock_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    company_id: Mapped[UUID] = mapped_column(nullable=False)
    period_start: Mapped[date] = mapped_column(Date, nullable=False)
    period_end: Mapped[date] = mapped_column(Date, nullable=False)
    pay_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    idempotency_key: Mapped[str] = mapped_column(String(64), nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="ACTIVE")
    locked_by: Mapped[str] = mapped_column(String, nullable=False)
    locked_at: Mapped[datetime] = mapped_column(nullable=False)
    expires_at: Mapped[datetime] = mapped_column(nullable=False)
    released_at: Mapped[datetime | None] = mapped_column(nullable=True)

    __table_args__ = (
        CheckConstraint(
            "status IN ('ACTIVE', 'COMPLETED', 'FAILED', 'EXPIRED')",
            name="run_lock_status_check",
        ),
        Index(
            "run_lock_one_active_per_period",
            "company_id",
            "period_start",
            "period_end",
            unique=True,
            postgresql_where=text("status = 'ACTIVE'"),
            sqlite_where=text("status = 'ACTIVE'"),
        ),
        Index(
            "run_lock_idempotency_key_unique",
            "idempotency_key",
            unique=True,
            postgresql_where=text("status IN ('ACTIVE', 'COMPLETED')"),
            sqlite_where=text("status IN ('ACTIVE', 'COMPLETED')"),
        ),
        Index("run_lock_company_period_idx", "company_id", "period_start", "period_end"),
    )

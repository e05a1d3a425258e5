"""Employee and garnishment models."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    ForeignKey,
    Integer,
    Numeric,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from payroll_engine.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from payroll_engine.models.company import Company


class CompensationType(str, Enum):
    """How an employee's pay rate is expressed."""

    SALARY = "SALARY"  # annual amount
    HOURLY = "HOURLY"  # per hour


class RetirementContributionType(str, Enum):
    """How a 401(k) salary deferral election is expressed."""

    PERCENT = "PERCENT"  # fraction of gross pay
    FIXED = "FIXED"  # amount per pay period


class Employee(Base, TimestampMixin):
    """Employee record with compensation and W-4 withholding inputs."""

    __tablename__ = "employee"

    employee_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    company_id: Mapped[UUID] = mapped_column(
        ForeignKey("company.company_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    first_name: Mapped[str] = mapped_column(String, nullable=False)
    last_name: Mapped[str] = mapped_column(String, nullable=False)
    compensation_type: Mapped[str] = mapped_column(String, nullable=False)
    pay_rate: Mapped[Decimal] = mapped_column(Numeric(12, 4), nullable=False)
    filing_status: Mapped[str] = mapped_column(String, nullable=False, default="SINGLE")
    allowances: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # W-4 step 4(c), 4(a) and 4(b)
    additional_withholding: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0")
    )
    other_income: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0")
    )
    deductions: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0")
    )
    hire_date: Mapped[date] = mapped_column(Date, nullable=False)
    termination_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    work_state: Mapped[str] = mapped_column(String(2), nullable=False)
    # City whose local income tax applies; local_resident picks the resident rate
    work_city: Mapped[str | None] = mapped_column(String, nullable=True)
    local_resident: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    retirement_401k_type: Mapped[str | None] = mapped_column(String, nullable=True)
    retirement_401k_rate: Mapped[Decimal | None] = mapped_column(Numeric(7, 4), nullable=True)
    retirement_401k_amount: Mapped[Decimal | None] = mapped_column(
        Numeric(12, 2), nullable=True
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (
        CheckConstraint(
            "compensation_type IN ('SALARY', 'HOURLY')",
            name="employee_compensation_type_check",
        ),
        CheckConstraint(
            "termination_date IS NULL OR termination_date >= hire_date",
            name="employee_dates_check",
        ),
        CheckConstraint("allowances >= 0", name="employee_allowances_check"),
        CheckConstraint(
            "retirement_401k_rate IS NULL OR "
            "(retirement_401k_rate >= 0 AND retirement_401k_rate <= 1)",
            name="employee_retirement_401k_rate_check",
        ),
    )

    # Relationships
    company: Mapped[Company] = relationship(back_populates="employees")
    garnishments: Mapped[list[Garnishment]] = relationship(
        back_populates="employee",
        order_by="Garnishment.priority",
    )

    @property
    def full_name(self) -> str:
        """Get full name."""
        return f"{self.first_name} {self.last_name}"


class Garnishment(Base, TimestampMixin):
    """Garnishment order against an employee.

    Exactly one of ``amount`` (fixed per period) or ``percent`` (fraction of
    disposable earnings) is the deduction basis. When ``total_owed`` is set
    the order stops deducting once ``total_paid`` reaches it.
    """

    __tablename__ = "garnishment"

    garnishment_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employee.employee_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    garnishment_type: Mapped[str] = mapped_column(String, nullable=False)
    amount: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    percent: Mapped[Decimal | None] = mapped_column(Numeric(7, 4), nullable=True)
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=100)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    total_owed: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    total_paid: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0")
    )
    case_number: Mapped[str | None] = mapped_column(String, nullable=True)

    __table_args__ = (
        CheckConstraint(
            "(amount IS NULL) <> (percent IS NULL)",
            name="garnishment_basis_check",
        ),
        CheckConstraint(
            "percent IS NULL OR (percent > 0 AND percent <= 1)",
            name="garnishment_percent_check",
        ),
    )

    # Relationships
    employee: Mapped[Employee] = relationship(back_populates="garnishments")

"""Company model."""

from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from payroll_engine.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from payroll_engine.models.employee import Employee
    from payroll_engine.models.payroll import PayPeriod


class PayFrequency(str, Enum):
    """Pay frequency values."""

    WEEKLY = "WEEKLY"
    BIWEEKLY = "BIWEEKLY"
    SEMIMONTHLY = "SEMIMONTHLY"
    MONTHLY = "MONTHLY"


PAY_PERIODS_PER_YEAR: dict[str, int] = {
    PayFrequency.WEEKLY.value: 52,
    PayFrequency.BIWEEKLY.value: 26,
    PayFrequency.SEMIMONTHLY.value: 24,
    PayFrequency.MONTHLY.value: 12,
}


class DepositSchedule(str, Enum):
    """Federal tax deposit schedule."""

    MONTHLY = "MONTHLY"
    SEMIWEEKLY = "SEMIWEEKLY"


class Company(Base, TimestampMixin):
    """Employer of record."""

    __tablename__ = "company"

    company_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(String, nullable=False)
    ein: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    state: Mapped[str] = mapped_column(String(2), nullable=False)
    pay_frequency: Mapped[str] = mapped_column(
        String, nullable=False, default=PayFrequency.BIWEEKLY.value
    )
    deposit_schedule: Mapped[str] = mapped_column(
        String, nullable=False, default=DepositSchedule.MONTHLY.value
    )
    # Experience-rated SUTA rate; None means the state's new employer rate
    suta_rate: Mapped[Decimal | None] = mapped_column(Numeric(7, 5), nullable=True)
    # 401(k) match: fraction of the employee deferral, on deferrals up to a fraction of gross
    retirement_401k_match_rate: Mapped[Decimal | None] = mapped_column(
        Numeric(7, 4), nullable=True
    )
    retirement_401k_match_limit_percent: Mapped[Decimal | None] = mapped_column(
        Numeric(7, 4), nullable=True
    )

    __table_args__ = (
        CheckConstraint(
            "pay_frequency IN ('WEEKLY', 'BIWEEKLY', 'SEMIMONTHLY', 'MONTHLY')",
            name="company_pay_frequency_check",
        ),
        CheckConstraint(
            "deposit_schedule IN ('MONTHLY', 'SEMIWEEKLY')",
            name="company_deposit_schedule_check",
        ),
    )

    # Relationships
    employees: Mapped[list[Employee]] = relationship(back_populates="company")
    pay_periods: Mapped[list[PayPeriod]] = relationship(back_populates="company")

    @property
    def pay_periods_per_year(self) -> int:
        """Number of pay periods per year for this company's frequency."""
        return PAY_PERIODS_PER_YEAR[self.pay_frequency]

"""ORM models."""

from payroll_engine.models.base import Base, TimestampMixin, utcnow
from payroll_engine.models.company import (
    PAY_PERIODS_PER_YEAR,
    Company,
    DepositSchedule,
    PayFrequency,
)
from payroll_engine.models.employee import (
    CompensationType,
    Employee,
    Garnishment,
    RetirementContributionType,
)
from payroll_engine.models.payroll import (
    PayPeriod,
    PayrollRecord,
    PayrollRecordGarnishment,
    RunLock,
)

__all__ = [
    "Base",
    "TimestampMixin",
    "utcnow",
    "PAY_PERIODS_PER_YEAR",
    "Company",
    "DepositSchedule",
    "PayFrequency",
    "CompensationType",
    "Employee",
    "Garnishment",
    "RetirementContributionType",
    "PayPeriod",
    "PayrollRecord",
    "PayrollRecordGarnishment",
    "RunLock",
]

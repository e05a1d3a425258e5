"""Payroll engine services."""

from payroll_engine.services.pay_period_service import PayPeriodService
from payroll_engine.services.payroll_run import EmployeeRunInput, PayrollRunOrchestrator
from payroll_engine.services.payroll_service import PayrollRunService, PayrollRunSummary
from payroll_engine.services.run_lock_service import (
    LockResult,
    LockStatus,
    RunLockService,
    idempotency_key,
)
from payroll_engine.services.state_machine import (
    PayPeriodStateMachine,
    PayPeriodStatus,
    RunLockStateMachine,
    RunLockStatus,
)

__all__ = [
    "PayPeriodService",
    "EmployeeRunInput",
    "PayrollRunOrchestrator",
    "PayrollRunService",
    "PayrollRunSummary",
    "LockResult",
    "LockStatus",
    "RunLockService",
    "idempotency_key",
    "PayPeriodStateMachine",
    "PayPeriodStatus",
    "RunLockStateMachine",
    "RunLockStatus",
]

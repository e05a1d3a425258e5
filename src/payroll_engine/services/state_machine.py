"""Run lock and pay period state machines with transition validation."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from payroll_engine.errors import InvalidTransitionError

if TYPE_CHECKING:
    from payroll_engine.models import PayPeriod


class RunLockStatus(str, Enum):
    """Run lock status values."""

    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    EXPIRED = "EXPIRED"


class PayPeriodStatus(str, Enum):
    """Pay period approval status values."""

    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class _StateMachine:
    VALID_TRANSITIONS: dict[str, list[str]] = {}

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        """Check if a transition is valid."""
        allowed = cls.VALID_TRANSITIONS.get(from_status, [])
        return to_status in allowed

    @classmethod
    def validate_transition(cls, from_status: str, to_status: str) -> None:
        """Validate a transition, raising InvalidTransitionError if invalid."""
        if not cls.can_transition(from_status, to_status):
            raise InvalidTransitionError(from_status, to_status)

    @classmethod
    def get_next_statuses(cls, current_status: str) -> list[str]:
        """Get list of valid next statuses from current status."""
        return cls.VALID_TRANSITIONS.get(current_status, [])

    @classmethod
    def is_terminal(cls, status: str) -> bool:
        return not cls.VALID_TRANSITIONS.get(status)


class RunLockStateMachine(_StateMachine):
    """State machine for run lock status transitions.

    Allowed transitions:
    - ACTIVE → COMPLETED (run succeeded)
    - ACTIVE → FAILED (run raised)
    - ACTIVE → EXPIRED (time-driven)
    """

    VALID_TRANSITIONS: dict[str, list[str]] = {
        RunLockStatus.ACTIVE: [
            RunLockStatus.COMPLETED,
            RunLockStatus.FAILED,
            RunLockStatus.EXPIRED,
        ],
        RunLockStatus.COMPLETED: [],
        RunLockStatus.FAILED: [],
        RunLockStatus.EXPIRED: [],
    }


class PayPeriodStateMachine(_StateMachine):
    """State machine for pay period approval.

    Allowed transitions:
    - DRAFT → SUBMITTED
    - SUBMITTED → APPROVED
    - SUBMITTED → REJECTED
    - REJECTED → SUBMITTED (resubmit)
    """

    VALID_TRANSITIONS: dict[str, list[str]] = {
        PayPeriodStatus.DRAFT: [PayPeriodStatus.SUBMITTED],
        PayPeriodStatus.SUBMITTED: [PayPeriodStatus.APPROVED, PayPeriodStatus.REJECTED],
        PayPeriodStatus.REJECTED: [PayPeriodStatus.SUBMITTED],
        PayPeriodStatus.APPROVED: [],  # Terminal state
    }

    # Statuses where a payroll run may create records
    RUN_ALLOWED = {PayPeriodStatus.DRAFT}

    @classmethod
    def can_run_payroll(cls, status: str) -> bool:
        """Check if a payroll run is allowed against a period in this status."""
        return status in cls.RUN_ALLOWED

    @classmethod
    def validate_pay_period_for_transition(
        cls,
        pay_period: PayPeriod,
        to_status: str,
        record_count: int,
        actor: str,
    ) -> list[str]:
        """Validate a pay period for a specific transition, returning any errors.

        Returns list of error messages (empty if valid).
        """
        errors: list[str] = []
        from_status = pay_period.status

        if not cls.can_transition(from_status, to_status):
            errors.append(f"Cannot transition from '{from_status}' to '{to_status}'")
            return errors

        if to_status == PayPeriodStatus.SUBMITTED:
            if record_count == 0:
                errors.append("Pay period has no payroll records")

        elif to_status == PayPeriodStatus.APPROVED:
            if pay_period.submitted_by and pay_period.submitted_by == actor:
                errors.append("Submitter cannot approve their own submission")

        return errors

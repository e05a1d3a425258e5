"""Error taxonomy for payroll computation and run coordination.

Every error carries a stable ``code`` so adapters (API, CLI) can map it to a
response without inspecting the message.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any
from uuid import UUID


class PayrollEngineError(Exception):
    """Base class for payroll engine errors."""

    code = "PAYROLL_ENGINE_ERROR"

    def to_dict(self) -> dict[str, Any]:
        """Serialize for API error bodies."""
        return {"detail": str(self), "code": self.code}


class ConfigurationError(PayrollEngineError):
    """Raised when a jurisdiction/year has no usable tax configuration.

    Not retryable: the configuration data has to be fixed.
    """

    code = "CONFIGURATION_ERROR"

    def __init__(self, jurisdiction: str, year: int | None = None, reason: str | None = None):
        self.jurisdiction = jurisdiction
        self.year = year
        self.reason = reason
        msg = f"No tax configuration for jurisdiction '{jurisdiction}'"
        if year is not None:
            msg += f" in {year}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class ValidationError(PayrollEngineError):
    """Raised when a request is malformed, before any computation starts."""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        if self.field:
            data["field"] = self.field
        return data


class InvalidTransitionError(ValidationError):
    """Raised when an invalid state transition is attempted."""

    code = "INVALID_TRANSITION"

    def __init__(self, from_status: str, to_status: str, reason: str | None = None):
        self.from_status = from_status
        self.to_status = to_status
        self.reason = reason
        msg = f"Invalid transition from '{from_status}' to '{to_status}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg, field="status")


@dataclass(frozen=True)
class LockInfo:
    """Metadata of a run lock, reported to callers on conflicts."""

    lock_id: UUID
    locked_by: str
    locked_at: datetime
    expires_at: datetime
    status: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "lock_id": str(self.lock_id),
            "locked_by": self.locked_by,
            "locked_at": self.locked_at.isoformat(),
            "expires_at": self.expires_at.isoformat(),
            "status": self.status,
        }


class ConcurrencyError(PayrollEngineError):
    """Raised when a payroll run is rejected by the run lock.

    Expected and non-fatal. ``code`` is one of ALREADY_RUNNING,
    ALREADY_PROCESSED or DUPLICATE_REQUEST.
    """

    def __init__(self, code: str, message: str, existing_lock: LockInfo | None = None):
        self.code = code
        self.existing_lock = existing_lock
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["existing_lock"] = self.existing_lock.to_dict() if self.existing_lock else None
        return data


class DataError(PayrollEngineError):
    """Raised when stored data makes a run impossible (aborts the run)."""

    code = "DATA_ERROR"

    def __init__(self, message: str, employee_ids: list[UUID] | None = None):
        self.employee_ids = employee_ids or []
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        if self.employee_ids:
            data["employee_ids"] = [str(e) for e in self.employee_ids]
        return data


class StorageError(PayrollEngineError):
    """Raised when the storage layer fails; wraps the driver exception."""

    code = "STORAGE_ERROR"


class NotFoundError(PayrollEngineError):
    """Raised when a referenced company or pay period does not exist."""

    code = "NOT_FOUND"

    def __init__(self, resource: str, identifier: Any):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} '{identifier}' not found")

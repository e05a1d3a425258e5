"""Run lock service: at most one in-flight or completed run per company and period."""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from datetime import date, datetime
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from payroll_engine.config import RunLockConfig
from payroll_engine.errors import ConcurrencyError, LockInfo
from payroll_engine.models import RunLock, utcnow
from payroll_engine.services.state_machine import RunLockStateMachine, RunLockStatus

logger = logging.getLogger(__name__)

ALREADY_RUNNING = "ALREADY_RUNNING"
ALREADY_PROCESSED = "ALREADY_PROCESSED"
DUPLICATE_REQUEST = "DUPLICATE_REQUEST"


def idempotency_key(
    company_id: UUID,
    period_start: date,
    period_end: date,
    pay_date: date,
) -> str:
    """Derive a deterministic key for a logical payroll run request."""
    data = f"{company_id}:{period_start.isoformat()}:{period_end.isoformat()}:{pay_date.isoformat()}"
    return hashlib.sha256(data.encode()).hexdigest()[:32]


def _lock_info(lock: RunLock, status: str | None = None) -> LockInfo:
    return LockInfo(
        lock_id=lock.run_lock_id,
        locked_by=lock.locked_by,
        locked_at=lock.locked_at,
        expires_at=lock.expires_at,
        status=status or lock.status,
    )


@dataclass(frozen=True)
class LockResult:
    """Outcome of a lock acquisition attempt."""

    success: bool
    lock_id: UUID | None = None
    idempotency_key: str | None = None
    error: str | None = None
    message: str | None = None
    existing_lock: LockInfo | None = None

    def raise_for_conflict(self) -> tuple[UUID, str]:
        """Return the granted lock's id and idempotency key.

        Raises:
            ConcurrencyError: The lock was not granted.
        """
        if not self.success or self.lock_id is None or self.idempotency_key is None:
            raise ConcurrencyError(
                self.error or ALREADY_RUNNING,
                self.message or "Payroll run lock not granted",
                self.existing_lock,
            )
        return self.lock_id, self.idempotency_key


@dataclass(frozen=True)
class LockStatus:
    """Current lock state of a company and period."""

    is_locked: bool
    is_processed: bool
    lock: LockInfo | None = None


class RunLockService:
    """Persistent lock around payroll runs.

    Coordination happens only through the run_lock table: every operation
    runs in its own short transaction, so concurrent service instances see
    each other's locks. The partial unique indexes are what make acquisition
    safe under races; the lookups before the insert only give better errors.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        config: RunLockConfig | None = None,
    ):
        self.session_factory = session_factory
        self.config = config or RunLockConfig()

    async def acquire(
        self,
        company_id: UUID,
        period_start: date,
        period_end: date,
        requested_by: str,
        pay_date: date | None = None,
        idempotency_key: str | None = None,
    ) -> LockResult:
        """Try to acquire the run lock for a company and period.

        Without an explicit key one is derived from the company, the period
        and the pay date (period end when no pay date is given).

        Returns:
            LockResult; on rejection ``error`` is ALREADY_RUNNING,
            ALREADY_PROCESSED or DUPLICATE_REQUEST.
        """
        key = idempotency_key or _derive_key(company_id, period_start, period_end, pay_date)
        now = utcnow()

        async with self.session_factory() as session:
            try:
                async with session.begin():
                    by_key = await self._find_by_key(session, key)
                    if by_key is not None:
                        if by_key.status == RunLockStatus.COMPLETED:
                            return self._reject(
                                DUPLICATE_REQUEST,
                                "This payroll run has already been processed",
                                by_key,
                                key,
                            )
                        if by_key.expires_at > now:
                            return self._reject(
                                ALREADY_RUNNING,
                                "A payroll run for this period is already in progress",
                                by_key,
                                key,
                            )
                        self._transition(by_key, RunLockStatus.EXPIRED, now)
                        await session.flush()
                        logger.warning("Taking over expired run lock %s", by_key.run_lock_id)

                    await self._expire_stale(session, company_id, period_start, period_end, now)

                    active = await self._find_for_period(
                        session, company_id, period_start, period_end, RunLockStatus.ACTIVE
                    )
                    if active is not None:
                        return self._reject(
                            ALREADY_RUNNING,
                            "A payroll run for this period is already in progress",
                            active,
                            key,
                        )

                    completed = await self._find_for_period(
                        session, company_id, period_start, period_end, RunLockStatus.COMPLETED
                    )
                    if completed is not None:
                        return self._reject(
                            ALREADY_PROCESSED,
                            "Payroll for this period has already been processed",
                            completed,
                            key,
                        )

                    lock = RunLock(
                        company_id=company_id,
                        period_start=period_start,
                        period_end=period_end,
                        pay_date=pay_date,
                        idempotency_key=key,
                        status=RunLockStatus.ACTIVE.value,
                        locked_by=requested_by,
                        locked_at=now,
                        expires_at=now + self.config.ttl,
                    )
                    session.add(lock)
                    await session.flush()
                    lock_id = lock.run_lock_id
            except IntegrityError:
                # Lost the race against a concurrent acquirer
                logger.warning(
                    "Concurrent run lock request for company %s period %s..%s",
                    company_id, period_start, period_end,
                )
                return LockResult(
                    success=False,
                    idempotency_key=key,
                    error=ALREADY_RUNNING,
                    message="A concurrent payroll run request was detected",
                )

        logger.info(
            "Acquired run lock %s for company %s period %s..%s (by %s)",
            lock_id, company_id, period_start, period_end, requested_by,
        )
        return LockResult(success=True, lock_id=lock_id, idempotency_key=key)

    async def release(self, lock_id: UUID, success: bool = True) -> None:
        """Release a lock as COMPLETED (success) or FAILED.

        A lock that is no longer ACTIVE (e.g. it expired and was cleaned up)
        is left unchanged.
        """
        to_status = RunLockStatus.COMPLETED if success else RunLockStatus.FAILED
        async with self.session_factory() as session:
            async with session.begin():
                lock = await session.get(RunLock, lock_id, with_for_update=True)
                if lock is None:
                    logger.warning("Release of unknown run lock %s", lock_id)
                    return
                if not RunLockStateMachine.can_transition(lock.status, to_status):
                    logger.warning(
                        "Run lock %s is %s, not releasing as %s",
                        lock_id, lock.status, to_status.value,
                    )
                    return
                self._transition(lock, to_status, utcnow())

        logger.info("Released run lock %s as %s", lock_id, to_status.value)

    async def status(
        self,
        company_id: UUID,
        period_start: date,
        period_end: date,
    ) -> LockStatus:
        """Report whether a company and period is locked or already processed."""
        async with self.session_factory() as session:
            result = await session.execute(
                select(RunLock)
                .where(
                    RunLock.company_id == company_id,
                    RunLock.period_start == period_start,
                    RunLock.period_end == period_end,
                    RunLock.status.in_([RunLockStatus.ACTIVE.value, RunLockStatus.COMPLETED.value]),
                )
                .order_by(RunLock.locked_at.desc())
                .limit(1)
            )
            lock = result.scalar_one_or_none()

        if lock is None:
            return LockStatus(is_locked=False, is_processed=False)

        expired = lock.status == RunLockStatus.ACTIVE and lock.expires_at < utcnow()
        return LockStatus(
            is_locked=lock.status == RunLockStatus.ACTIVE and not expired,
            is_processed=lock.status == RunLockStatus.COMPLETED,
            lock=_lock_info(lock, RunLockStatus.EXPIRED.value if expired else None),
        )

    async def cleanup_expired_locks(self) -> int:
        """Mark every ACTIVE lock past its expiry as EXPIRED.

        Idempotent and safe to run alongside acquisitions.

        Returns:
            Number of locks transitioned.
        """
        now = utcnow()
        async with self.session_factory() as session:
            async with session.begin():
                result = await session.execute(
                    update(RunLock)
                    .where(
                        RunLock.status == RunLockStatus.ACTIVE.value,
                        RunLock.expires_at < now,
                    )
                    .values(status=RunLockStatus.EXPIRED.value, released_at=now)
                )
        count = result.rowcount or 0
        if count:
            logger.info("Expired %d stale run locks", count)
        return count

    # ===== Internals =====

    def _reject(self, error: str, message: str, lock: RunLock, key: str) -> LockResult:
        logger.warning("Run lock rejected (%s): held by %s since %s", error, lock.locked_by, lock.locked_at)
        return LockResult(
            success=False,
            idempotency_key=key,
            error=error,
            message=message,
            existing_lock=_lock_info(lock),
        )

    def _transition(self, lock: RunLock, to_status: RunLockStatus, now: datetime) -> None:
        RunLockStateMachine.validate_transition(lock.status, to_status.value)
        lock.status = to_status.value
        lock.released_at = now

    async def _find_by_key(self, session: AsyncSession, key: str) -> RunLock | None:
        result = await session.execute(
            select(RunLock).where(
                RunLock.idempotency_key == key,
                RunLock.status.in_([RunLockStatus.ACTIVE.value, RunLockStatus.COMPLETED.value]),
            )
        )
        return result.scalars().first()

    async def _find_for_period(
        self,
        session: AsyncSession,
        company_id: UUID,
        period_start: date,
        period_end: date,
        status: RunLockStatus,
    ) -> RunLock | None:
        result = await session.execute(
            select(RunLock)
            .where(
                RunLock.company_id == company_id,
                RunLock.period_start == period_start,
                RunLock.period_end == period_end,
                RunLock.status == status.value,
            )
            .order_by(RunLock.locked_at.desc())
        )
        return result.scalars().first()

    async def _expire_stale(
        self,
        session: AsyncSession,
        company_id: UUID,
        period_start: date,
        period_end: date,
        now: datetime,
    ) -> None:
        await session.execute(
            update(RunLock)
            .where(
                RunLock.company_id == company_id,
                RunLock.period_start == period_start,
                RunLock.period_end == period_end,
                RunLock.status == RunLockStatus.ACTIVE.value,
                RunLock.expires_at < now,
            )
            .values(status=RunLockStatus.EXPIRED.value, released_at=now)
        )


def _derive_key(
    company_id: UUID, period_start: date, period_end: date, pay_date: date | None
) -> str:
    return idempotency_key(company_id, period_start, period_end, pay_date or period_end)

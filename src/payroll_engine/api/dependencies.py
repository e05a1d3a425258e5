"""FastAPI dependencies for dependency injection."""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from payroll_engine.config import get_settings
from payroll_engine.database import get_session_factory
from payroll_engine.services import PayrollRunService, RunLockService
from payroll_engine.tax import TaxEngine, get_tax_engine

SessionFactory = Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)]
Engine = Annotated[TaxEngine, Depends(get_tax_engine)]


async def get_db_session(factory: SessionFactory) -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency."""
    async with factory() as session:
        yield session


def get_payroll_run_service(factory: SessionFactory, engine: Engine) -> PayrollRunService:
    """Build the payroll run service from settings."""
    settings = get_settings()
    return PayrollRunService(
        factory,
        engine,
        lock_config=settings.run_lock_config(),
        garnishment_policy=settings.garnishment_policy(),
    )


def get_run_lock_service(factory: SessionFactory) -> RunLockService:
    """Build the run lock service from settings."""
    return RunLockService(factory, get_settings().run_lock_config())


# Type aliases for cleaner dependency injection
DbSession = Annotated[AsyncSession, Depends(get_db_session)]
PayrollRuns = Annotated[PayrollRunService, Depends(get_payroll_run_service)]
RunLocks = Annotated[RunLockService, Depends(get_run_lock_service)]

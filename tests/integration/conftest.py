"""Integration test fixtures with a real database."""

from collections.abc import AsyncGenerator
from datetime import date
from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from payroll_engine.api.app import create_app
from payroll_engine.database import create_session_factory, get_session_factory
from payroll_engine.models import Base, Company, Employee, Garnishment
from payroll_engine.services import PayrollRunService
from payroll_engine.tax import TaxEngine, get_tax_engine


@pytest_asyncio.fixture
async def test_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """Create a file-backed SQLite engine with the schema applied."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'payroll.db'}", echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return create_session_factory(test_engine)


@pytest.fixture
def run_service(
    session_factory: async_sessionmaker[AsyncSession], flat_state_engine: TaxEngine
) -> PayrollRunService:
    return PayrollRunService(session_factory, flat_state_engine)


@pytest_asyncio.fixture
async def company(session_factory: async_sessionmaker[AsyncSession]) -> Company:
    """A biweekly company."""
    async with session_factory() as session:
        company = Company(name="Acme Corp", ein="12-3456789", state="ZZ", pay_frequency="BIWEEKLY")
        session.add(company)
        await session.commit()
    return company


@pytest_asyncio.fixture
async def salaried_employee(
    session_factory: async_sessionmaker[AsyncSession], company: Company
) -> Employee:
    """SINGLE filer earning $104,000 a year in the flat-tax state."""
    async with session_factory() as session:
        employee = Employee(
            company_id=company.company_id,
            first_name="Alice",
            last_name="Smith",
            compensation_type="SALARY",
            pay_rate=Decimal("104000"),
            filing_status="SINGLE",
            hire_date=date(2023, 1, 1),
            work_state="ZZ",
        )
        session.add(employee)
        await session.commit()
    return employee


@pytest_asyncio.fixture
async def garnishment(
    session_factory: async_sessionmaker[AsyncSession], salaried_employee: Employee
) -> Garnishment:
    """A fixed $500 creditor garnishment."""
    async with session_factory() as session:
        garnishment = Garnishment(
            employee_id=salaried_employee.employee_id,
            garnishment_type="CREDITOR",
            amount=Decimal("500"),
            priority=1,
        )
        session.add(garnishment)
        await session.commit()
    return garnishment


@pytest_asyncio.fixture
async def client(
    session_factory: async_sessionmaker[AsyncSession], flat_state_engine: TaxEngine
) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client for API testing."""
    app = create_app()
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_tax_engine] = lambda: flat_state_engine
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

"""API routes."""

from payroll_engine.api.routes.health import router as health_router
from payroll_engine.api.routes.jurisdictions import router as jurisdictions_router
from payroll_engine.api.routes.pay_periods import router as pay_periods_router
from payroll_engine.api.routes.payroll_runs import router as payroll_runs_router

__all__ = ["health_router", "jurisdictions_router", "pay_periods_router", "payroll_runs_router"]

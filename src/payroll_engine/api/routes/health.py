"""Health, readiness and liveness endpoints.

Readiness requires federal tax tables: without them no payroll can run.
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Response, status
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from payroll_engine.api.dependencies import DbSession, Engine

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    timestamp: datetime
    database: str
    tax_tables: str


class ReadinessResponse(BaseModel):
    """Tax tables available to payroll runs."""

    status: str
    tax_years: list[int]
    latest_year: int | None = None
    jurisdictions: int = 0
    localities: int = 0


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
)
async def health_check(db: DbSession, engine: Engine) -> HealthResponse:
    """Check database connectivity and that federal tax tables are loaded."""
    db_status = "unhealthy"
    try:
        await db.execute(text("SELECT 1"))
        db_status = "healthy"
    except SQLAlchemyError:
        logger.warning("Database health check failed", exc_info=True)

    tax_status = "loaded" if engine.tax_years() else "missing"
    healthy = db_status == "healthy" and tax_status == "loaded"
    return HealthResponse(
        status="healthy" if healthy else "degraded",
        timestamp=datetime.now(timezone.utc),
        database=db_status,
        tax_tables=tax_status,
    )


@router.get("/ready", response_model=ReadinessResponse)
async def readiness_check(engine: Engine, response: Response) -> ReadinessResponse:
    """Report the configured tax years; 503 until federal tables are loaded."""
    years = engine.tax_years()
    if not years:
        logger.warning("Not ready: no federal tax tables loaded")
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return ReadinessResponse(status="not_ready", tax_years=[])

    latest = years[-1]
    return ReadinessResponse(
        status="ready",
        tax_years=years,
        latest_year=latest,
        jurisdictions=len(engine.supported_jurisdictions(latest)),
        localities=len(engine.supported_localities(latest)),
    )


@router.get("/live", status_code=status.HTTP_200_OK)
async def liveness_check() -> dict[str, str]:
    """Liveness check for container orchestration."""
    return {"status": "alive"}

"""Tax jurisdiction endpoints."""

from typing import Annotated

from fastapi import APIRouter, Query

from payroll_engine.api.dependencies import Engine
from payroll_engine.api.schemas import JurisdictionListResponse

router = APIRouter(prefix="/jurisdictions", tags=["jurisdictions"])


@router.get("", response_model=JurisdictionListResponse)
async def list_jurisdictions(
    engine: Engine,
    year: Annotated[int, Query(ge=2000, le=2100)],
) -> JurisdictionListResponse:
    """List state jurisdictions and local tax codes with configuration for a year."""
    return JurisdictionListResponse(
        year=year,
        jurisdictions=engine.supported_jurisdictions(year),
        localities=engine.supported_localities(year),
    )

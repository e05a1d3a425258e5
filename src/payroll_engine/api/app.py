"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from payroll_engine.api.routes import (
    health_router,
    jurisdictions_router,
    pay_periods_router,
    payroll_runs_router,
)
from payroll_engine.config import get_settings
from payroll_engine.database import dispose_db, init_db
from payroll_engine.errors import (
    ConcurrencyError,
    ConfigurationError,
    DataError,
    NotFoundError,
    PayrollEngineError,
    StorageError,
    ValidationError,
)
from payroll_engine.logging_config import configure_logging
from payroll_engine.services.run_lock_service import ALREADY_RUNNING

logger = logging.getLogger(__name__)


def status_for_error(exc: PayrollEngineError) -> int:
    """Map a payroll engine error to an HTTP status code."""
    if isinstance(exc, ConcurrencyError):
        if exc.code == ALREADY_RUNNING:
            return status.HTTP_423_LOCKED
        return status.HTTP_409_CONFLICT
    if isinstance(exc, NotFoundError):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, ValidationError):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(exc, (ConfigurationError, DataError)):
        return 422
    if isinstance(exc, StorageError):
        return status.HTTP_503_SERVICE_UNAVAILABLE
    return status.HTTP_500_INTERNAL_SERVER_ERROR


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    # Startup
    configure_logging(get_settings().log_level)
    init_db()
    yield
    # Shutdown
    await dispose_db()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Payroll Engine API",
        description="U.S. gross-to-net payroll with exactly-once runs",
        version="0.1.0",
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    @app.exception_handler(PayrollEngineError)
    async def payroll_error_handler(
        request: Request, exc: PayrollEngineError
    ) -> JSONResponse:
        """Handle domain errors with their stable codes."""
        return JSONResponse(status_code=status_for_error(exc), content=exc.to_dict())

    @app.exception_handler(SQLAlchemyError)
    async def storage_error_handler(
        request: Request, exc: SQLAlchemyError
    ) -> JSONResponse:
        """Handle database failures outside the payroll run service."""
        logger.exception("Storage failure on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": "Storage is unavailable", "code": StorageError.code},
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": "An unexpected error occurred",
                "code": "INTERNAL_ERROR",
            },
        )

    # Include routers
    app.include_router(health_router)
    app.include_router(payroll_runs_router, prefix="/api/v1")
    app.include_router(pay_periods_router, prefix="/api/v1")
    app.include_router(jurisdictions_router, prefix="/api/v1")

    return app


# Default app instance for uvicorn
app = create_app()

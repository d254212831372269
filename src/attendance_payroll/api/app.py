"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from attendance_payroll.api.routes import (
    attendance_router,
    health_router,
    ledger_router,
    payroll_router,
)
from attendance_payroll.config import Settings, get_settings
from attendance_payroll.database import dispose_db, init_db
from attendance_payroll.errors import (
    AlreadyGeneratedError,
    ConcurrentModificationError,
    ConfigError,
    ImmutableEntryError,
    InvalidTransitionError,
    NotFoundError,
    PayrollComputationError,
    PayrollEngineError,
    ValidationError,
)
from attendance_payroll.events import EventEmitter, log_event
from attendance_payroll.log import configure_logging
from attendance_payroll.services import LeaveProvider, NoLeaveProvider

logger = logging.getLogger(__name__)

ERROR_STATUS: dict[type[PayrollEngineError], int] = {
    ValidationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ImmutableEntryError: status.HTTP_409_CONFLICT,
    InvalidTransitionError: status.HTTP_409_CONFLICT,
    AlreadyGeneratedError: status.HTTP_409_CONFLICT,
    ConfigError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ConcurrentModificationError: status.HTTP_409_CONFLICT,
    PayrollComputationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
}


def status_for(exc: PayrollEngineError) -> int:
    """HTTP status for a core error, most specific class first."""
    for cls in type(exc).__mro__:
        if cls in ERROR_STATUS:
            return ERROR_STATUS[cls]
    return status.HTTP_400_BAD_REQUEST


def create_app(
    settings: Settings | None = None,
    leave_provider: LeaveProvider | None = None,
    emitter: EventEmitter | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Business configuration is built once here; malformed values raise
    ConfigError at startup rather than on the first request.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan handler."""
        init_db(settings.database_url)
        logger.info("Attendance payroll API started")
        yield
        await dispose_db()

    app = FastAPI(
        title="Attendance Payroll API",
        description="Attendance tracking, adjustment ledger and monthly payroll",
        version="0.1.0",
        lifespan=lifespan,
        debug=settings.debug,
    )

    if emitter is None:
        emitter = EventEmitter()
        emitter.on_all(log_event)
    app.state.emitter = emitter
    app.state.payroll_config = settings.payroll_config()
    app.state.schedule_config = settings.schedule_config()
    app.state.leave_provider = leave_provider or NoLeaveProvider()

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    @app.exception_handler(PayrollEngineError)
    async def engine_error_handler(request: Request, exc: PayrollEngineError) -> JSONResponse:
        """Map core errors to structured JSON."""
        code = status_for(exc)
        if code >= 500:
            logger.error("%s on %s %s: %s", exc.code, request.method, request.url.path, exc)
        return JSONResponse(status_code=code, content=exc.to_dict())

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
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
    app.include_router(attendance_router, prefix="/api/v1")
    app.include_router(ledger_router, prefix="/api/v1")
    app.include_router(payroll_router, prefix="/api/v1")

    return app

"""Health check endpoints."""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Annotated

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from attendance_payroll import __version__
from attendance_payroll.api.dependencies import DbSession, get_payroll_config, get_schedule_config
from attendance_payroll.config import PayrollConfig, ScheduleConfig

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Service status plus the business configuration in effect."""

    status: str
    version: str
    checked_at: datetime
    database: str
    tax_rate: Decimal
    attendance_timezone: str


@router.get("/health", response_model=HealthResponse)
async def health_check(
    db: DbSession,
    payroll_config: Annotated[PayrollConfig, Depends(get_payroll_config)],
    schedule_config: Annotated[ScheduleConfig, Depends(get_schedule_config)],
) -> HealthResponse:
    """Ping the database; a failure degrades the status instead of erroring."""
    try:
        await db.execute(text("SELECT 1"))
        database = "healthy"
    except SQLAlchemyError:
        logger.warning("Database health check failed", exc_info=True)
        database = "unhealthy"

    return HealthResponse(
        status="healthy" if database == "healthy" else "degraded",
        version=__version__,
        checked_at=datetime.now(timezone.utc),
        database=database,
        tax_rate=payroll_config.tax_rate,
        attendance_timezone=schedule_config.timezone,
    )


@router.get("/live", status_code=status.HTTP_200_OK)
async def liveness_check() -> dict[str, str]:
    return {"status": "alive"}

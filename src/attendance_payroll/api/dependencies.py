"""FastAPI dependencies for dependency injection."""

from collections.abc import AsyncGenerator
from typing import Annotated
from uuid import UUID

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from attendance_payroll.config import PayrollConfig, ScheduleConfig
from attendance_payroll.database import init_db
from attendance_payroll.events import EventEmitter
from attendance_payroll.services import (
    AttendanceService,
    LeaveProvider,
    LedgerService,
    PayrollGenerator,
    PayrollLifecycleManager,
    ScheduleResolver,
    SummaryService,
)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency. Routes commit explicitly."""
    _, factory = init_db()
    async with factory() as session:
        yield session


async def get_actor_id(
    x_actor_id: Annotated[str | None, Header()] = None
) -> UUID | None:
    """Extract the acting user from header. Absent means a system action."""
    if not x_actor_id:
        return None
    try:
        return UUID(x_actor_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid X-Actor-ID format",
        )


def get_emitter(request: Request) -> EventEmitter:
    """Per-request emitter sharing the application's handlers."""
    return request.app.state.emitter.scoped()


def get_payroll_config(request: Request) -> PayrollConfig:
    return request.app.state.payroll_config


def get_schedule_config(request: Request) -> ScheduleConfig:
    return request.app.state.schedule_config


def get_leave_provider(request: Request) -> LeaveProvider:
    return request.app.state.leave_provider


# Type aliases for cleaner dependency injection
DbSession = Annotated[AsyncSession, Depends(get_db_session)]
ActorId = Annotated[UUID | None, Depends(get_actor_id)]
Emitter = Annotated[EventEmitter, Depends(get_emitter)]
Leave = Annotated[LeaveProvider, Depends(get_leave_provider)]


def get_attendance_service(
    db: DbSession,
    emitter: Emitter,
    leave: Leave,
    config: Annotated[ScheduleConfig, Depends(get_schedule_config)],
) -> AttendanceService:
    return AttendanceService(db, ScheduleResolver(db, config), leave, emitter)


def get_ledger_service(db: DbSession, emitter: Emitter) -> LedgerService:
    return LedgerService(db, emitter)


def get_payroll_generator(
    db: DbSession,
    emitter: Emitter,
    config: Annotated[PayrollConfig, Depends(get_payroll_config)],
) -> PayrollGenerator:
    return PayrollGenerator(db, config, emitter)


def get_lifecycle_manager(db: DbSession, emitter: Emitter) -> PayrollLifecycleManager:
    return PayrollLifecycleManager(db, emitter)


def get_summary_service(db: DbSession, leave: Leave) -> SummaryService:
    return SummaryService(db, leave)


Attendance = Annotated[AttendanceService, Depends(get_attendance_service)]
Ledger = Annotated[LedgerService, Depends(get_ledger_service)]
Generator = Annotated[PayrollGenerator, Depends(get_payroll_generator)]
Lifecycle = Annotated[PayrollLifecycleManager, Depends(get_lifecycle_manager)]
Summary = Annotated[SummaryService, Depends(get_summary_service)]

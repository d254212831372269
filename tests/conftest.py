"""Pytest fixtures for attendance payroll tests."""

from __future__ import annotations

from datetime import date, time
from decimal import Decimal
from typing import AsyncGenerator, Awaitable, Callable
from uuid import UUID, uuid4

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from attendance_payroll.config import PayrollConfig, ScheduleConfig
from attendance_payroll.database import create_schema, make_session_factory
from attendance_payroll.events import DomainEvent, EventEmitter
from attendance_payroll.models import Employee, ScheduleAssignment
from attendance_payroll.services import (
    AttendanceService,
    LedgerService,
    PayrollGenerator,
    PayrollLifecycleManager,
    ScheduleResolver,
    StaticLeaveProvider,
)

# In-memory SQLite shared across sessions of one test via StaticPool
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

DEPARTMENT_ID = UUID("00000000-0000-0000-0000-00000000d001")


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create a fresh test database per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    await create_schema(engine)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine):
    return make_session_factory(engine)


@pytest.fixture
async def session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for each test."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def payroll_config() -> PayrollConfig:
    """10% tax, 160-hour month, straight-time overtime."""
    return PayrollConfig(
        tax_rate=Decimal("0.10"),
        standard_monthly_minutes=9600,
        overtime_multiplier=Decimal("1"),
    )


@pytest.fixture
def schedule_config() -> ScheduleConfig:
    """09:00-17:00 UTC default shift."""
    return ScheduleConfig(default_start=time(9, 0), default_end=time(17, 0), timezone="UTC")


@pytest.fixture
def captured_events() -> list[DomainEvent]:
    return []


@pytest.fixture
def emitter(captured_events: list[DomainEvent]) -> EventEmitter:
    """Emitter that records every event it delivers."""
    emitter = EventEmitter()
    emitter.on_all(captured_events.append)
    return emitter


@pytest.fixture
def leave_provider() -> StaticLeaveProvider:
    return StaticLeaveProvider()


@pytest.fixture
def make_employee(session: AsyncSession) -> Callable[..., Awaitable[Employee]]:
    """Factory for persisted employees."""

    async def _make(
        base_salary: int = 3000,
        department_id: UUID | None = DEPARTMENT_ID,
        status: str = "active",
        full_name: str = "Test Employee",
        employee_id: UUID | None = None,
    ) -> Employee:
        employee = Employee(
            employee_id=employee_id or uuid4(),
            full_name=full_name,
            department_id=department_id,
            base_salary=base_salary,
            status=status,
        )
        session.add(employee)
        await session.flush()
        return employee

    return _make


@pytest.fixture
async def employee(make_employee) -> Employee:
    """Active employee with a base salary of 3000."""
    return await make_employee()


@pytest.fixture
def make_assignment(session: AsyncSession):
    """Factory for shift assignments."""

    async def _make(
        employee_id: UUID,
        start: time,
        end: time,
        effective_from: date = date(2000, 1, 1),
        effective_to: date | None = None,
        shift_name: str = "custom",
    ) -> ScheduleAssignment:
        assignment = ScheduleAssignment(
            employee_id=employee_id,
            shift_name=shift_name,
            expected_start=start,
            expected_end=end,
            effective_from=effective_from,
            effective_to=effective_to,
        )
        session.add(assignment)
        await session.flush()
        return assignment

    return _make


@pytest.fixture
def resolver(session: AsyncSession, schedule_config: ScheduleConfig) -> ScheduleResolver:
    return ScheduleResolver(session, schedule_config)


@pytest.fixture
def attendance(
    session: AsyncSession,
    resolver: ScheduleResolver,
    leave_provider: StaticLeaveProvider,
    emitter: EventEmitter,
) -> AttendanceService:
    return AttendanceService(session, resolver, leave_provider, emitter)


@pytest.fixture
def ledger(session: AsyncSession, emitter: EventEmitter) -> LedgerService:
    return LedgerService(session, emitter)


@pytest.fixture
def generator(
    session: AsyncSession, payroll_config: PayrollConfig, emitter: EventEmitter
) -> PayrollGenerator:
    return PayrollGenerator(session, payroll_config, emitter)


@pytest.fixture
def lifecycle(session: AsyncSession, emitter: EventEmitter) -> PayrollLifecycleManager:
    return PayrollLifecycleManager(session, emitter)

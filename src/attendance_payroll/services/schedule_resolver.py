"""Expected working schedule resolution."""

from __future__ import annotations

from datetime import date
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from attendance_payroll.calculators.attendance_rules import expected_window
from attendance_payroll.calculators.types import ExpectedWindow, ResolvedSchedule
from attendance_payroll.config import ScheduleConfig
from attendance_payroll.errors import ConfigError
from attendance_payroll.models import ScheduleAssignment


class ScheduleResolver:
    """Resolves the expected check-in/check-out window for an employee.

    Resolution order:
    1. The assignment covering the date with the latest effective_from
    2. The process-wide default from ScheduleConfig

    Side-effect free. Malformed stored configuration raises ConfigError.
    """

    def __init__(self, session: AsyncSession, config: ScheduleConfig):
        self.session = session
        self.config = config

    async def resolve(self, employee_id: UUID, on_date: date) -> ResolvedSchedule:
        """Return the expected start/end for an employee on a date."""
        result = await self.session.execute(
            select(ScheduleAssignment)
            .where(
                ScheduleAssignment.employee_id == employee_id,
                ScheduleAssignment.effective_from <= on_date,
                or_(
                    ScheduleAssignment.effective_to.is_(None),
                    ScheduleAssignment.effective_to >= on_date,
                ),
            )
            .order_by(ScheduleAssignment.effective_from.desc())
            .limit(1)
        )
        assignment = result.scalar_one_or_none()

        if assignment is None:
            return ResolvedSchedule(
                expected_start=self.config.default_start,
                expected_end=self.config.default_end,
                source="default",
            )

        if assignment.expected_end <= assignment.expected_start:
            raise ConfigError(
                "Shift assignment ends before it starts",
                schedule_assignment_id=assignment.schedule_assignment_id,
                employee_id=employee_id,
            )

        return ResolvedSchedule(
            expected_start=assignment.expected_start,
            expected_end=assignment.expected_end,
            source="assignment",
            schedule_assignment_id=assignment.schedule_assignment_id,
        )

    async def expected_window(self, employee_id: UUID, on_date: date) -> ExpectedWindow:
        """Resolve and pin the schedule to timezone-aware instants."""
        schedule = await self.resolve(employee_id, on_date)
        return expected_window(schedule, on_date, self.config.tzinfo)

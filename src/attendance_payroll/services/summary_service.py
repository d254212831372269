"""Monthly attendance summary read projection."""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import timedelta
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from attendance_payroll.calculators.attendance_rules import effective_status
from attendance_payroll.errors import NotFoundError, ValidationError
from attendance_payroll.models import AttendanceOutcome, AttendanceStatus, Employee
from attendance_payroll.services.leave import LeaveProvider, NoLeaveProvider
from attendance_payroll.services.payroll_generator import month_bounds


@dataclass(frozen=True)
class MonthlyAttendanceSummary:
    """Attendance counts for one employee and one month."""

    employee_id: UUID
    month: int
    year: int
    present_days: int  # present + late
    late_days: int
    absent_days: int
    leave_days: int
    total_working_minutes: int
    total_overtime_minutes: int
    approved_overtime_minutes: int
    total_late_minutes: int


class SummaryService:
    """Builds the monthly summary used to review attendance before payroll.

    Leave approvals are applied with reporting precedence only: a day on
    approved leave counts as leave instead of absent, the stored outcome is
    left untouched.
    """

    def __init__(self, session: AsyncSession, leave_provider: LeaveProvider | None = None):
        self.session = session
        self.leave_provider = leave_provider or NoLeaveProvider()

    async def summarize_month(
        self, employee_id: UUID, month: int, year: int
    ) -> MonthlyAttendanceSummary:
        if not 1 <= month <= 12:
            raise ValidationError("month must be between 1 and 12", month=month)
        if await self.session.get(Employee, employee_id) is None:
            raise NotFoundError("Employee", employee_id)

        first, last = month_bounds(month, year)
        result = await self.session.execute(
            select(AttendanceOutcome).where(
                AttendanceOutcome.employee_id == employee_id,
                AttendanceOutcome.work_date >= first,
                AttendanceOutcome.work_date <= last,
            )
        )
        outcomes = {o.work_date: o for o in result.scalars().all()}

        present = late = absent = leave = 0
        working = overtime = approved_overtime = late_minutes = 0

        day = first
        while day <= last:
            outcome = outcomes.get(day)
            stored = outcome.status if outcome else AttendanceStatus.NOT_MARKED.value
            override = await self.leave_provider.approved_leave(employee_id, day)
            status = effective_status(stored, override.is_on_leave)

            if status in (AttendanceStatus.PRESENT.value, AttendanceStatus.LATE.value):
                present += 1
            if status == AttendanceStatus.LATE.value:
                late += 1
            elif status == AttendanceStatus.ABSENT.value:
                absent += 1
            elif status == AttendanceStatus.ON_LEAVE.value:
                leave += 1

            if outcome is not None:
                working += outcome.working_minutes
                overtime += outcome.overtime_minutes
                approved_overtime += outcome.approved_overtime_minutes
                late_minutes += outcome.late_minutes
            day += timedelta(days=1)

        return MonthlyAttendanceSummary(
            employee_id=employee_id,
            month=month,
            year=year,
            present_days=present,
            late_days=late,
            absent_days=absent,
            leave_days=leave,
            total_working_minutes=working,
            total_overtime_minutes=overtime,
            approved_overtime_minutes=approved_overtime,
            total_late_minutes=late_minutes,
        )


def suggested_deduction_reason(summary: MonthlyAttendanceSummary, kind: str) -> str:
    """Pre-filled deduction reason for absences, lateness or leave.

    ``kind`` is one of 'absent', 'late' or 'leave'.
    """
    period = f"{calendar.month_name[summary.month]} {summary.year}"
    if kind == "absent":
        return f"Deduction for {summary.absent_days} days absent in {period}"
    if kind == "late":
        return f"Deduction for late arrival {summary.late_days} times in {period}"
    if kind == "leave":
        return f"Deduction for {summary.leave_days} days leave/permission in {period}"
    raise ValidationError(f"Unknown deduction reason kind '{kind}'")

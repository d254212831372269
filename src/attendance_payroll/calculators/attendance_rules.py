"""Pure attendance derivation rules.

All minute counts are whole minutes, floored, and never negative:

* late minutes     = max(0, check_in - expected_start)
* early departure  = max(0, expected_end - check_out)
* overtime         = max(0, check_out - expected_end)
* working minutes  = max(0, (check_out - check_in) - break_minutes)

Early departure and overtime are mutually exclusive by construction.
A check-out earlier than the check-in is accepted; working minutes clamp to 0.
"""

from __future__ import annotations

from datetime import date, datetime, time
from zoneinfo import ZoneInfo

from attendance_payroll.calculators.types import (
    CheckInResult,
    CheckOutResult,
    ExpectedWindow,
    ResolvedSchedule,
)
from attendance_payroll.models.attendance import AttendanceStatus


def minutes_between(start: datetime, end: datetime) -> int:
    """Whole minutes from start to end, floored (negative if end < start)."""
    return int((end - start).total_seconds() // 60)


def expected_window(
    schedule: ResolvedSchedule, work_date: date, tz: ZoneInfo
) -> ExpectedWindow:
    """Pin a schedule's times of day to the work date in the given zone."""
    return ExpectedWindow(
        start=_at(work_date, schedule.expected_start, tz),
        end=_at(work_date, schedule.expected_end, tz),
    )


def _at(work_date: date, tod: time, tz: ZoneInfo) -> datetime:
    return datetime.combine(work_date, tod.replace(tzinfo=None), tzinfo=tz)


def derive_check_in(observed_at: datetime, window: ExpectedWindow) -> CheckInResult:
    """Lateness of a check-in against the expected start."""
    late_minutes = max(0, minutes_between(window.start, observed_at))
    is_late = late_minutes > 0
    return CheckInResult(
        late_minutes=late_minutes,
        is_late=is_late,
        status=AttendanceStatus.LATE.value if is_late else AttendanceStatus.PRESENT.value,
    )


def compute_working_minutes(
    check_in_at: datetime | None,
    check_out_at: datetime | None,
    break_minutes: int,
) -> int:
    """Worked minutes net of breaks; 0 unless both timestamps are present."""
    if check_in_at is None or check_out_at is None:
        return 0
    return max(0, minutes_between(check_in_at, check_out_at) - break_minutes)


def derive_check_out(
    check_in_at: datetime,
    observed_at: datetime,
    window: ExpectedWindow,
    break_minutes: int = 0,
) -> CheckOutResult:
    """Early departure, overtime and worked time for a check-out."""
    early = max(0, minutes_between(observed_at, window.end))
    overtime = max(0, minutes_between(window.end, observed_at))
    return CheckOutResult(
        early_departure_minutes=early,
        is_early_departure=early > 0,
        overtime_minutes=overtime,
        working_minutes=compute_working_minutes(check_in_at, observed_at, break_minutes),
    )


def effective_status(stored_status: str, on_approved_leave: bool) -> str:
    """Status shown in reporting once leave approvals are taken into account.

    An approved leave suppresses 'absent' and 'not_marked'; any recorded
    presence wins over the leave.
    """
    if on_approved_leave and stored_status in (
        AttendanceStatus.ABSENT.value,
        AttendanceStatus.NOT_MARKED.value,
    ):
        return AttendanceStatus.ON_LEAVE.value
    return stored_status

"""Attendance and payroll services."""

from attendance_payroll.services.state_machine import PayrollStateMachine, PayrollStatus
from attendance_payroll.services.schedule_resolver import ScheduleResolver
from attendance_payroll.services.leave import (
    LeaveOverride,
    LeaveProvider,
    LeaveSpan,
    NoLeaveProvider,
    StaticLeaveProvider,
)
from attendance_payroll.services.attendance_service import AttendanceService
from attendance_payroll.services.ledger_service import LedgerService
from attendance_payroll.services.scope import PayrollScope
from attendance_payroll.services.payroll_generator import PayrollGenerator
from attendance_payroll.services.payroll_lifecycle import (
    PayrollLifecycleManager,
    PayrollListing,
    PayrollTotals,
)
from attendance_payroll.services.summary_service import (
    MonthlyAttendanceSummary,
    SummaryService,
    suggested_deduction_reason,
)

__all__ = [
    "PayrollStateMachine",
    "PayrollStatus",
    "ScheduleResolver",
    "LeaveOverride",
    "LeaveProvider",
    "LeaveSpan",
    "NoLeaveProvider",
    "StaticLeaveProvider",
    "AttendanceService",
    "LedgerService",
    "PayrollScope",
    "PayrollGenerator",
    "PayrollLifecycleManager",
    "PayrollListing",
    "PayrollTotals",
    "MonthlyAttendanceSummary",
    "SummaryService",
    "suggested_deduction_reason",
]

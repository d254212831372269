"""Attendance and salary calculation rules."""

from attendance_payroll.calculators.attendance_rules import (
    compute_working_minutes,
    derive_check_in,
    derive_check_out,
    effective_status,
    expected_window,
    minutes_between,
)
from attendance_payroll.calculators.salary_calculator import (
    SalaryCalculator,
    fold_ledger,
    round_minor,
)
from attendance_payroll.calculators.types import (
    CheckInResult,
    CheckOutResult,
    ExpectedWindow,
    LedgerTotals,
    ResolvedSchedule,
    SalaryBreakdown,
    SalaryInputs,
)

__all__ = [
    "compute_working_minutes",
    "derive_check_in",
    "derive_check_out",
    "effective_status",
    "expected_window",
    "minutes_between",
    "SalaryCalculator",
    "fold_ledger",
    "round_minor",
    "CheckInResult",
    "CheckOutResult",
    "ExpectedWindow",
    "LedgerTotals",
    "ResolvedSchedule",
    "SalaryBreakdown",
    "SalaryInputs",
]

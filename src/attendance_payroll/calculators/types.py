"""Type definitions for the attendance and salary calculation pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, time
from decimal import Decimal
from uuid import UUID


@dataclass(frozen=True)
class ResolvedSchedule:
    """Expected working window for one employee on one date."""

    expected_start: time
    expected_end: time
    source: str  # 'assignment' or 'default'
    schedule_assignment_id: UUID | None = None

    @property
    def standard_minutes(self) -> int:
        start = self.expected_start.hour * 60 + self.expected_start.minute
        end = self.expected_end.hour * 60 + self.expected_end.minute
        return end - start


@dataclass(frozen=True)
class CheckInResult:
    """Lateness derived from a check-in."""

    late_minutes: int
    is_late: bool
    status: str


@dataclass(frozen=True)
class CheckOutResult:
    """Early departure / overtime derived from a check-out."""

    early_departure_minutes: int
    is_early_departure: bool
    overtime_minutes: int
    working_minutes: int


@dataclass(frozen=True)
class ExpectedWindow:
    """A resolved schedule pinned to concrete, timezone-aware instants."""

    start: datetime
    end: datetime


@dataclass
class LedgerTotals:
    """Ledger entries for one employee-period, folded by type."""

    bonuses: int = 0
    deductions: int = 0
    corrections: int = 0  # signed
    overtime_amount: int = 0
    overtime_hours: Decimal = Decimal("0")
    entry_ids: list[UUID] = field(default_factory=list)

    @property
    def adjustments(self) -> int:
        """Signed corrections minus deductions."""
        return self.corrections - self.deductions


@dataclass(frozen=True)
class SalaryInputs:
    """Everything the salary calculator needs for one employee-period."""

    employee_id: UUID
    base_salary: int
    approved_overtime_minutes: int
    ledger: LedgerTotals


@dataclass(frozen=True)
class SalaryBreakdown:
    """Computed figures for one payroll record, integer minor units."""

    employee_id: UUID
    base_salary: int
    overtime_hours: Decimal
    overtime_pay: int
    bonuses: int
    deductions: int
    adjustments: int
    gross_salary: int
    tax_rate: Decimal
    tax_deduction: int
    net_salary: int
    consumed_entry_ids: tuple[UUID, ...] = ()

    def is_consistent(self) -> bool:
        """Check the gross and net identities."""
        return (
            self.gross_salary
            == self.base_salary + self.overtime_pay + self.bonuses + self.adjustments
            and self.net_salary == self.gross_salary - self.tax_deduction
        )

"""Monthly salary calculation.

Pipeline (stable order per employee):
1) Fold the period's ledger entries by type
2) Price approved attendance overtime at base_salary / standard_monthly_minutes
3) gross = base + overtime_pay + bonuses + adjustments
4) tax = round_half_up(gross * tax_rate)
5) net = gross - tax

Every currency conversion uses ROUND_HALF_UP to whole minor units. Overtime
is rounded once per employee on the monthly total, never per day.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal

from attendance_payroll.calculators.types import LedgerTotals, SalaryBreakdown, SalaryInputs
from attendance_payroll.config import PayrollConfig
from attendance_payroll.errors import PayrollComputationError
from attendance_payroll.models.ledger import LedgerEntry, LedgerEntryType

HOURS_QUANTUM = Decimal("0.01")


def round_minor(value: Decimal) -> int:
    """Round a currency amount half-up to whole minor units."""
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def fold_ledger(entries: Iterable[LedgerEntry]) -> LedgerTotals:
    """Sum ledger entries by type."""
    totals = LedgerTotals()
    for entry in entries:
        if entry.entry_type == LedgerEntryType.BONUS.value:
            totals.bonuses += entry.amount
        elif entry.entry_type == LedgerEntryType.DEDUCTION.value:
            totals.deductions += entry.amount
        elif entry.entry_type == LedgerEntryType.CORRECTION.value:
            totals.corrections += entry.signed_amount
        elif entry.entry_type == LedgerEntryType.OVERTIME.value:
            totals.overtime_amount += entry.amount
            totals.overtime_hours += Decimal(entry.hours or 0)
        else:
            raise PayrollComputationError(
                entry.employee_id, f"unknown ledger entry type '{entry.entry_type}'"
            )
        totals.entry_ids.append(entry.entry_id)
    return totals


class SalaryCalculator:
    """Computes one employee's payroll figures from attendance and ledger totals."""

    def __init__(self, config: PayrollConfig):
        self.config = config

    def overtime_pay(self, base_salary: int, approved_minutes: int) -> int:
        """Pay for approved attendance overtime, rounded once."""
        if approved_minutes <= 0:
            return 0
        raw = (
            Decimal(approved_minutes)
            * Decimal(base_salary)
            * self.config.overtime_multiplier
            / Decimal(self.config.standard_monthly_minutes)
        )
        return round_minor(raw)

    def tax(self, gross_salary: int) -> int:
        return max(0, round_minor(Decimal(gross_salary) * self.config.tax_rate))

    def calculate(self, inputs: SalaryInputs) -> SalaryBreakdown:
        """Compute the breakdown, raising PayrollComputationError on bad data."""
        if inputs.base_salary < 0:
            raise PayrollComputationError(inputs.employee_id, "base salary is negative")
        if inputs.approved_overtime_minutes < 0:
            raise PayrollComputationError(
                inputs.employee_id, "approved overtime minutes are negative"
            )

        ledger = inputs.ledger
        overtime_pay = (
            self.overtime_pay(inputs.base_salary, inputs.approved_overtime_minutes)
            + ledger.overtime_amount
        )
        overtime_hours = (
            Decimal(inputs.approved_overtime_minutes) / Decimal(60) + ledger.overtime_hours
        ).quantize(HOURS_QUANTUM, rounding=ROUND_HALF_UP)

        adjustments = ledger.adjustments
        gross = inputs.base_salary + overtime_pay + ledger.bonuses + adjustments
        if gross < 0:
            raise PayrollComputationError(
                inputs.employee_id,
                f"gross salary would be negative ({gross}); review deductions",
            )

        tax_deduction = self.tax(gross)
        return SalaryBreakdown(
            employee_id=inputs.employee_id,
            base_salary=inputs.base_salary,
            overtime_hours=overtime_hours,
            overtime_pay=overtime_pay,
            bonuses=ledger.bonuses,
            deductions=ledger.deductions,
            adjustments=adjustments,
            gross_salary=gross,
            tax_rate=self.config.tax_rate,
            tax_deduction=tax_deduction,
            net_salary=gross - tax_deduction,
            consumed_entry_ids=tuple(ledger.entry_ids),
        )

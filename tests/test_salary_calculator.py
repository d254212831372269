"""Tests for the monthly salary calculator."""

from decimal import Decimal
from types import SimpleNamespace
from uuid import uuid4

import pytest
from hypothesis import given, strategies as st

from attendance_payroll.calculators import (
    LedgerTotals,
    SalaryCalculator,
    SalaryInputs,
    fold_ledger,
    round_minor,
)
from attendance_payroll.config import PayrollConfig
from attendance_payroll.errors import PayrollComputationError


def make_entry(entry_type: str, amount: int, direction: str = "increase", hours=None):
    """Stand-in for a LedgerEntry row."""
    sign = -1 if entry_type == "deduction" or (
        entry_type == "correction" and direction == "decrease"
    ) else 1
    return SimpleNamespace(
        entry_id=uuid4(),
        employee_id=uuid4(),
        entry_type=entry_type,
        amount=amount,
        direction=direction,
        hours=hours,
        signed_amount=sign * amount,
    )


@pytest.fixture
def calculator() -> SalaryCalculator:
    return SalaryCalculator(PayrollConfig())


class TestRounding:
    def test_half_up(self):
        assert round_minor(Decimal("187.5")) == 188
        assert round_minor(Decimal("333.8")) == 334
        assert round_minor(Decimal("2.4999")) == 2
        assert round_minor(Decimal("0.5")) == 1


class TestFoldLedger:
    def test_folds_by_type(self):
        totals = fold_ledger(
            [
                make_entry("bonus", 200),
                make_entry("bonus", 50),
                make_entry("deduction", 50),
                make_entry("correction", 30),
                make_entry("correction", 10, direction="decrease"),
                make_entry("overtime", 40, hours=Decimal("2")),
            ]
        )
        assert totals.bonuses == 250
        assert totals.deductions == 50
        assert totals.corrections == 20
        assert totals.adjustments == -30
        assert totals.overtime_amount == 40
        assert totals.overtime_hours == Decimal("2")
        assert len(totals.entry_ids) == 6

    def test_unknown_type_fails(self):
        with pytest.raises(PayrollComputationError):
            fold_ledger([make_entry("gift", 10)])


class TestCalculate:
    def test_worked_example(self, calculator: SalaryCalculator):
        """3000 base, 10 h approved overtime, bonus 200, deduction 50, 10% tax."""
        ledger = fold_ledger([make_entry("bonus", 200), make_entry("deduction", 50)])
        result = calculator.calculate(
            SalaryInputs(
                employee_id=uuid4(),
                base_salary=3000,
                approved_overtime_minutes=600,
                ledger=ledger,
            )
        )

        assert result.overtime_hours == Decimal("10.00")
        assert result.overtime_pay == 188
        assert result.bonuses == 200
        assert result.deductions == 50
        assert result.adjustments == -50
        assert result.gross_salary == 3338
        assert result.tax_deduction == 334
        assert result.net_salary == 3004
        assert result.tax_rate == Decimal("0.10")
        assert result.is_consistent()

    def test_no_activity_is_base_only(self, calculator: SalaryCalculator):
        result = calculator.calculate(
            SalaryInputs(uuid4(), base_salary=3000, approved_overtime_minutes=0, ledger=LedgerTotals())
        )
        assert result.overtime_pay == 0
        assert result.gross_salary == 3000
        assert result.tax_deduction == 300
        assert result.net_salary == 2700

    def test_overtime_rounded_once_on_monthly_total(self, calculator: SalaryCalculator):
        # Five 1-minute days at 0.3125/min: per-day rounding would give 0, total gives 2
        result = calculator.calculate(
            SalaryInputs(uuid4(), base_salary=3000, approved_overtime_minutes=5, ledger=LedgerTotals())
        )
        assert result.overtime_pay == 2

    def test_overtime_ledger_entries_add_to_overtime(self, calculator: SalaryCalculator):
        ledger = fold_ledger([make_entry("overtime", 75, hours=Decimal("4"))])
        result = calculator.calculate(
            SalaryInputs(uuid4(), base_salary=3000, approved_overtime_minutes=120, ledger=ledger)
        )
        assert result.overtime_pay == 38 + 75
        assert result.overtime_hours == Decimal("6.00")

    def test_multiplier(self):
        calculator = SalaryCalculator(PayrollConfig(overtime_multiplier=Decimal("1.5")))
        assert calculator.overtime_pay(3000, 600) == 281

    def test_negative_gross_aborts(self, calculator: SalaryCalculator):
        ledger = fold_ledger([make_entry("deduction", 5000)])
        with pytest.raises(PayrollComputationError) as exc_info:
            calculator.calculate(
                SalaryInputs(uuid4(), base_salary=3000, approved_overtime_minutes=0, ledger=ledger)
            )
        assert "negative" in exc_info.value.reason

    def test_negative_base_aborts(self, calculator: SalaryCalculator):
        with pytest.raises(PayrollComputationError):
            calculator.calculate(
                SalaryInputs(uuid4(), base_salary=-1, approved_overtime_minutes=0, ledger=LedgerTotals())
            )


class TestProperties:
    @given(
        base=st.integers(min_value=0, max_value=10_000_000),
        minutes=st.integers(min_value=0, max_value=20_000),
        bonus=st.integers(min_value=0, max_value=1_000_000),
        rate=st.decimals(min_value=Decimal("0"), max_value=Decimal("0.99"), places=2),
    )
    def test_identities_hold(self, base: int, minutes: int, bonus: int, rate: Decimal):
        calculator = SalaryCalculator(PayrollConfig(tax_rate=rate))
        ledger = LedgerTotals(bonuses=bonus)
        result = calculator.calculate(SalaryInputs(uuid4(), base, minutes, ledger))
        assert result.is_consistent()
        assert result.gross_salary == base + result.overtime_pay + bonus
        assert 0 <= result.tax_deduction <= result.gross_salary

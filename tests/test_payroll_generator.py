"""Tests for monthly payroll generation."""

from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import func, select

from attendance_payroll.errors import AlreadyGeneratedError, PayrollComputationError, ValidationError
from attendance_payroll.events import PayrollGenerated
from attendance_payroll.models import LedgerEntry, PayrollAuditEvent, PayrollRecord
from attendance_payroll.services import PayrollScope


async def work_overtime_days(attendance, employee_id, days, until_hour=19, approve=True):
    """Record 09:00 check-ins with late check-outs on the given March 2026 days."""
    for day in days:
        work_date = date(2026, 3, day)
        await attendance.record_check_in(
            employee_id, work_date, datetime(2026, 3, day, 9, 0, tzinfo=timezone.utc)
        )
        await attendance.record_check_out(
            employee_id, work_date, datetime(2026, 3, day, until_hour, 0, tzinfo=timezone.utc)
        )
        if approve:
            await attendance.approve_overtime(employee_id, work_date)


async def count_records(session) -> int:
    return await session.scalar(select(func.count()).select_from(PayrollRecord))


class TestGenerate:
    async def test_worked_example(self, generator, attendance, ledger, employee, captured_events):
        """3000 base, 10 h approved overtime, bonus 200, deduction 50, 10% tax."""
        await work_overtime_days(attendance, employee.employee_id, [2, 3, 4, 5, 6])
        await ledger.add_bonus(employee.employee_id, 200, "performance", 3, 2026)
        await ledger.add_deduction(employee.employee_id, 50, "equipment", 3, 2026)

        actor = uuid4()
        [record] = await generator.generate(3, 2026, generated_by=actor)

        assert record.status == "pending"
        assert record.base_salary == 3000
        assert record.overtime_hours == Decimal("10.00")
        assert record.overtime_pay == 188
        assert record.bonuses == 200
        assert record.deductions == 50
        assert record.adjustments == -50
        assert record.gross_salary == 3338
        assert record.tax_deduction == 334
        assert record.net_salary == 3004
        assert record.generated_by == actor

        generated = [e for e in captured_events if isinstance(e, PayrollGenerated)]
        assert [e.payroll_record_id for e in generated] == [record.payroll_record_id]

    async def test_unapproved_overtime_is_not_paid(self, generator, attendance, employee):
        await work_overtime_days(attendance, employee.employee_id, [2, 3], approve=False)
        [record] = await generator.generate(3, 2026)
        assert record.overtime_pay == 0
        assert record.gross_salary == 3000

    async def test_other_months_are_ignored(self, generator, attendance, ledger, employee):
        await work_overtime_days(attendance, employee.employee_id, [31])
        await ledger.add_bonus(employee.employee_id, 999, "april bonus", 4, 2026)

        [record] = await generator.generate(2, 2026)
        assert record.overtime_pay == 0
        assert record.bonuses == 0

    async def test_only_active_employees(self, generator, make_employee):
        active = await make_employee()
        await make_employee(status="terminated")
        records = await generator.generate(3, 2026)
        assert [r.employee_id for r in records] == [active.employee_id]

    async def test_identities_hold_for_every_record(self, generator, ledger, make_employee):
        for salary in (1000, 2500, 7777):
            emp = await make_employee(base_salary=salary)
            await ledger.add_bonus(emp.employee_id, salary // 3, "bonus", 3, 2026)
            await ledger.add_entry(
                emp.employee_id, "correction", 17, "fix", 3, 2026, direction="decrease"
            )

        for record in await generator.generate(3, 2026):
            assert record.gross_salary == (
                record.base_salary + record.overtime_pay + record.bonuses + record.adjustments
            )
            assert record.net_salary == record.gross_salary - record.tax_deduction

    async def test_records_audit_event(self, session, generator, employee):
        await generator.generate(3, 2026)
        audit = (await session.execute(select(PayrollAuditEvent))).scalars().all()
        assert len(audit) == 1
        assert audit[0].action == "generated"
        assert audit[0].details_json["record_count"] == 1


class TestAtMostOnce:
    async def test_second_run_rejected(self, session, generator, employee):
        await generator.generate(3, 2026)
        before = await count_records(session)

        with pytest.raises(AlreadyGeneratedError) as exc_info:
            await generator.generate(3, 2026)

        assert exc_info.value.existing_count == 1
        assert await count_records(session) == before

    async def test_unique_constraint_backstop(
        self, monkeypatch, session, generator, ledger, employee, captured_events
    ):
        """A run that slips past the count check still loses on the insert."""
        await generator.generate(3, 2026)
        # The losing run rolls back the whole session, so keep the winner
        await session.commit()
        entry = await ledger.add_bonus(employee.employee_id, 100, "late bonus", 3, 2026)
        await session.commit()

        async def no_existing(month, year, scope):
            return 0

        monkeypatch.setattr(generator, "_count_existing", no_existing)

        with pytest.raises(AlreadyGeneratedError):
            await generator.generate(3, 2026)

        assert await count_records(session) == 1
        assert (await ledger.get_entry(entry.entry_id)).applied is False
        generated = [e for e in captured_events if isinstance(e, PayrollGenerated)]
        assert len(generated) == 1

    async def test_scopes_are_independent(self, session, generator, make_employee):
        dept_a, dept_b = uuid4(), uuid4()
        emp_a = await make_employee(department_id=dept_a)
        emp_b = await make_employee(department_id=dept_b)

        first = await generator.generate(3, 2026, PayrollScope.department(dept_a))
        assert [r.employee_id for r in first] == [emp_a.employee_id]

        second = await generator.generate(3, 2026, PayrollScope.employees([emp_b.employee_id]))
        assert [r.employee_id for r in second] == [emp_b.employee_id]

        with pytest.raises(AlreadyGeneratedError):
            await generator.generate(3, 2026, PayrollScope.all())

    async def test_ledger_entry_consumed_once(self, generator, ledger, employee):
        entry = await ledger.add_bonus(employee.employee_id, 200, "bonus", 3, 2026)
        [march] = await generator.generate(3, 2026)

        [april] = await generator.generate(4, 2026)
        assert march.bonuses == 200
        assert april.bonuses == 0
        assert (await ledger.get_entry(entry.entry_id)).payroll_record_id == march.payroll_record_id


class TestAllOrNothing:
    async def test_failure_writes_nothing(self, session, generator, ledger, make_employee):
        healthy = await make_employee(base_salary=3000)
        broken = await make_employee(base_salary=100)
        await ledger.add_bonus(healthy.employee_id, 100, "bonus", 3, 2026)
        await ledger.add_deduction(broken.employee_id, 500, "more than salary", 3, 2026)

        with pytest.raises(PayrollComputationError) as exc_info:
            await generator.generate(3, 2026)

        assert exc_info.value.employee_id == broken.employee_id
        assert await count_records(session) == 0
        applied = await session.scalar(
            select(func.count()).select_from(LedgerEntry).where(LedgerEntry.applied.is_(True))
        )
        assert applied == 0


class TestPreview:
    async def test_preview_writes_nothing(self, session, generator, ledger, employee):
        await ledger.add_bonus(employee.employee_id, 200, "bonus", 3, 2026)
        [breakdown] = await generator.preview(3, 2026)

        assert breakdown.gross_salary == 3200
        assert breakdown.net_salary == 2880
        assert await count_records(session) == 0
        assert (await ledger.list_entries(employee.employee_id, 3, 2026))[0].applied is False


class TestValidation:
    @pytest.mark.parametrize("month,year", [(0, 2026), (13, 2026), (3, 1999)])
    async def test_bad_period(self, generator, month, year):
        with pytest.raises(ValidationError):
            await generator.generate(month, year)

    async def test_empty_employee_scope_rejected(self):
        with pytest.raises(ValidationError):
            PayrollScope.employees([])

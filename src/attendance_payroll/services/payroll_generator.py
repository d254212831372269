"""Monthly payroll generation."""

from __future__ import annotations

import calendar
import logging
from collections import defaultdict
from datetime import date
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from attendance_payroll.calculators import SalaryCalculator, fold_ledger
from attendance_payroll.calculators.types import SalaryBreakdown, SalaryInputs
from attendance_payroll.config import PayrollConfig
from attendance_payroll.database import acquire_period_lock
from attendance_payroll.errors import AlreadyGeneratedError, ValidationError
from attendance_payroll.events import EventEmitter, EventMetadata, PayrollGenerated
from attendance_payroll.models import (
    AttendanceOutcome,
    Employee,
    LedgerEntry,
    PayrollAuditEvent,
    PayrollRecord,
)
from attendance_payroll.services.ledger_service import MAX_YEAR, MIN_YEAR, LedgerService
from attendance_payroll.services.scope import PayrollScope
from attendance_payroll.services.state_machine import PayrollStatus

logger = logging.getLogger(__name__)


def month_bounds(month: int, year: int) -> tuple[date, date]:
    """First and last calendar day of a month."""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


class PayrollGenerator:
    """Produces one PayrollRecord per active in-scope employee for a month.

    Generation is all-or-nothing:
    1. Everything is computed in memory first; any failure aborts before a write
    2. Records are inserted, then the consumed ledger entries are flipped to
       applied with the id of the record that consumed them
    3. Both happen in the caller's transaction, so a rollback undoes both

    Concurrent runs for the same period are serialized by an advisory lock on
    PostgreSQL. On every backend the (employee, month, year) unique constraint
    makes the loser fail with AlreadyGeneratedError.
    """

    def __init__(
        self,
        session: AsyncSession,
        config: PayrollConfig,
        emitter: EventEmitter | None = None,
    ):
        self.session = session
        self.config = config
        self.calculator = SalaryCalculator(config)
        self.emitter = emitter or EventEmitter()
        self.ledger = LedgerService(session, self.emitter)

    async def generate(
        self,
        month: int,
        year: int,
        scope: PayrollScope | None = None,
        generated_by: UUID | None = None,
    ) -> list[PayrollRecord]:
        """Generate pending payroll records for the period.

        Raises:
            ValidationError: month/year out of range
            AlreadyGeneratedError: a record already exists in scope for the period
            PayrollComputationError: one employee failed; nothing was written
        """
        scope = scope or PayrollScope.all()
        _validate_period(month, year)

        await acquire_period_lock(self.session, f"payroll:{year:04d}-{month:02d}")

        existing = await self._count_existing(month, year, scope)
        if existing:
            raise AlreadyGeneratedError(month, year, existing_count=existing)

        employees = await self._load_employees(scope)
        breakdowns = await self._compute(employees, month, year)

        records: list[PayrollRecord] = []
        for employee, breakdown in zip(employees, breakdowns):
            record = PayrollRecord(
                employee_id=employee.employee_id,
                department_id=employee.department_id,
                month=month,
                year=year,
                base_salary=breakdown.base_salary,
                overtime_hours=breakdown.overtime_hours,
                overtime_pay=breakdown.overtime_pay,
                bonuses=breakdown.bonuses,
                deductions=breakdown.deductions,
                adjustments=breakdown.adjustments,
                gross_salary=breakdown.gross_salary,
                tax_rate=breakdown.tax_rate,
                tax_deduction=breakdown.tax_deduction,
                net_salary=breakdown.net_salary,
                status=PayrollStatus.PENDING.value,
                generated_by=generated_by,
            )
            self.session.add(record)
            records.append(record)

        try:
            await self.session.flush()
        except IntegrityError as e:
            await self.session.rollback()
            logger.warning(
                "Concurrent payroll generation detected for %04d-%02d", year, month
            )
            raise AlreadyGeneratedError(month, year) from e

        entry_ids: list[UUID] = []
        record_ids: list[UUID] = []
        for record, breakdown in zip(records, breakdowns):
            entry_ids.extend(breakdown.consumed_entry_ids)
            record_ids.extend([record.payroll_record_id] * len(breakdown.consumed_entry_ids))
        applied = await self.ledger.mark_applied(entry_ids, record_ids)

        self.session.add(
            PayrollAuditEvent(
                entity_type="payroll_period",
                action="generated",
                actor_id=generated_by,
                details_json={
                    "month": month,
                    "year": year,
                    "scope": scope.describe(),
                    "record_count": len(records),
                    "ledger_entries_applied": applied,
                    "total_net": sum(r.net_salary for r in records),
                },
            )
        )
        await self.session.flush()

        logger.info(
            "Generated %d payroll record(s) for %04d-%02d, %d ledger entries applied",
            len(records),
            year,
            month,
            applied,
        )

        metadata = EventMetadata.create(actor_id=generated_by)
        for record in records:
            self.emitter.emit(
                PayrollGenerated(
                    metadata=metadata,
                    payroll_record_id=record.payroll_record_id,
                    employee_id=record.employee_id,
                    month=month,
                    year=year,
                    gross_salary=record.gross_salary,
                    net_salary=record.net_salary,
                )
            )
        return records

    async def preview(
        self,
        month: int,
        year: int,
        scope: PayrollScope | None = None,
    ) -> list[SalaryBreakdown]:
        """Compute the period's figures without writing anything."""
        scope = scope or PayrollScope.all()
        _validate_period(month, year)
        employees = await self._load_employees(scope)
        return await self._compute(employees, month, year)

    async def _count_existing(self, month: int, year: int, scope: PayrollScope) -> int:
        query = (
            select(func.count())
            .select_from(PayrollRecord)
            .join(Employee, Employee.employee_id == PayrollRecord.employee_id)
            .where(PayrollRecord.month == month, PayrollRecord.year == year)
        )
        query = scope.apply(query, Employee.employee_id, Employee.department_id)
        result = await self.session.execute(query)
        return result.scalar_one()

    async def _load_employees(self, scope: PayrollScope) -> list[Employee]:
        query = select(Employee).where(Employee.status == "active")
        query = scope.apply(query, Employee.employee_id, Employee.department_id)
        result = await self.session.execute(query.order_by(Employee.employee_id))
        return list(result.scalars().all())

    async def _compute(
        self, employees: list[Employee], month: int, year: int
    ) -> list[SalaryBreakdown]:
        if not employees:
            return []
        employee_ids = [e.employee_id for e in employees]
        overtime = await self._approved_overtime_minutes(employee_ids, month, year)
        entries = await self._unapplied_entries(employee_ids, month, year)

        breakdowns = []
        for employee in employees:
            inputs = SalaryInputs(
                employee_id=employee.employee_id,
                base_salary=employee.base_salary,
                approved_overtime_minutes=overtime.get(employee.employee_id, 0),
                ledger=fold_ledger(entries.get(employee.employee_id, [])),
            )
            breakdowns.append(self.calculator.calculate(inputs))
        return breakdowns

    async def _approved_overtime_minutes(
        self, employee_ids: list[UUID], month: int, year: int
    ) -> dict[UUID, int]:
        first, last = month_bounds(month, year)
        result = await self.session.execute(
            select(
                AttendanceOutcome.employee_id,
                func.coalesce(func.sum(AttendanceOutcome.overtime_minutes), 0),
            )
            .where(
                AttendanceOutcome.employee_id.in_(employee_ids),
                AttendanceOutcome.work_date >= first,
                AttendanceOutcome.work_date <= last,
                AttendanceOutcome.overtime_approved.is_(True),
            )
            .group_by(AttendanceOutcome.employee_id)
        )
        return {employee_id: int(minutes) for employee_id, minutes in result.all()}

    async def _unapplied_entries(
        self, employee_ids: list[UUID], month: int, year: int
    ) -> dict[UUID, list[LedgerEntry]]:
        result = await self.session.execute(
            select(LedgerEntry)
            .where(
                LedgerEntry.employee_id.in_(employee_ids),
                LedgerEntry.month == month,
                LedgerEntry.year == year,
                LedgerEntry.applied.is_(False),
            )
            .order_by(LedgerEntry.created_at, LedgerEntry.entry_id)
        )
        grouped: dict[UUID, list[LedgerEntry]] = defaultdict(list)
        for entry in result.scalars().all():
            grouped[entry.employee_id].append(entry)
        return grouped


def _validate_period(month: int, year: int) -> None:
    if not 1 <= month <= 12:
        raise ValidationError("month must be between 1 and 12", month=month)
    if not MIN_YEAR <= year <= MAX_YEAR:
        raise ValidationError(f"year must be between {MIN_YEAR} and {MAX_YEAR}", year=year)

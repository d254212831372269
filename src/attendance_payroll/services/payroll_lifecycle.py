"""Payroll record lifecycle - approval and payment."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from attendance_payroll.errors import InvalidTransitionError, NotFoundError, ValidationError
from attendance_payroll.events import (
    EventEmitter,
    EventMetadata,
    PayrollApproved,
    PayrollPaid,
)
from attendance_payroll.models import Employee, PayrollAuditEvent, PayrollRecord, utcnow
from attendance_payroll.services.scope import PayrollScope
from attendance_payroll.services.state_machine import PayrollStateMachine, PayrollStatus

logger = logging.getLogger(__name__)


@dataclass
class PayrollTotals:
    """Summary figures over a list of payroll records."""

    record_count: int = 0
    total_base: int = 0
    total_overtime_pay: int = 0
    total_bonuses: int = 0
    total_deductions: int = 0
    total_gross: int = 0
    total_tax: int = 0
    total_net: int = 0
    by_status: dict[str, int] = field(default_factory=dict)

    @classmethod
    def of(cls, records: list[PayrollRecord]) -> PayrollTotals:
        totals = cls()
        for record in records:
            totals.record_count += 1
            totals.total_base += record.base_salary
            totals.total_overtime_pay += record.overtime_pay
            totals.total_bonuses += record.bonuses
            totals.total_deductions += record.deductions
            totals.total_gross += record.gross_salary
            totals.total_tax += record.tax_deduction
            totals.total_net += record.net_salary
            totals.by_status[record.status] = totals.by_status.get(record.status, 0) + 1
        return totals


@dataclass
class PayrollListing:
    records: list[PayrollRecord]
    totals: PayrollTotals


class PayrollLifecycleManager:
    """Moves payroll records through pending → approved → paid.

    Each transition is a conditional UPDATE on the expected source status,
    so of two concurrent approvals exactly one succeeds and the other gets
    InvalidTransitionError. Every transition writes an audit event.
    """

    def __init__(self, session: AsyncSession, emitter: EventEmitter | None = None):
        self.session = session
        self.emitter = emitter or EventEmitter()

    async def get_record(self, record_id: UUID) -> PayrollRecord:
        record = await self.session.get(PayrollRecord, record_id)
        if record is None:
            raise NotFoundError("PayrollRecord", record_id)
        return record

    async def list_records(
        self,
        month: int,
        year: int,
        scope: PayrollScope | None = None,
        status: str | None = None,
    ) -> PayrollListing:
        """Records for a period with totals, ordered by employee."""
        query = (
            select(PayrollRecord)
            .join(Employee, Employee.employee_id == PayrollRecord.employee_id)
            .where(PayrollRecord.month == month, PayrollRecord.year == year)
        )
        if scope is not None:
            query = scope.apply(query, Employee.employee_id, Employee.department_id)
        if status is not None:
            if status not in {s.value for s in PayrollStatus}:
                raise ValidationError(f"Unknown payroll status '{status}'")
            query = query.where(PayrollRecord.status == status)
        result = await self.session.execute(query.order_by(PayrollRecord.employee_id))
        records = list(result.scalars().all())
        return PayrollListing(records=records, totals=PayrollTotals.of(records))

    async def approve(self, record_id: UUID, approver_id: UUID | None = None) -> PayrollRecord:
        """Approve a pending record."""
        record = await self.get_record(record_id)
        PayrollStateMachine.validate_transition(
            record.status, PayrollStatus.APPROVED, record_id=record_id
        )

        approved_at = utcnow()
        await self._conditional_update(
            record,
            PayrollStatus.PENDING,
            PayrollStatus.APPROVED,
            approved_at=approved_at,
            approved_by=approver_id,
        )
        await self._record_audit(record, "approved", approver_id)
        logger.info("Payroll record %s approved by %s", record_id, approver_id)

        self.emitter.emit(
            PayrollApproved(
                metadata=EventMetadata.create(actor_id=approver_id),
                payroll_record_id=record.payroll_record_id,
                employee_id=record.employee_id,
                month=record.month,
                year=record.year,
                approved_by=approver_id,
            )
        )
        return record

    async def approve_many(
        self, record_ids: list[UUID], approver_id: UUID | None = None
    ) -> list[PayrollRecord]:
        """Approve several records; all must be pending or none is touched."""
        unique_ids = list(dict.fromkeys(record_ids))
        records = [await self.get_record(record_id) for record_id in unique_ids]
        for record in records:
            PayrollStateMachine.validate_transition(
                record.status, PayrollStatus.APPROVED, record_id=record.payroll_record_id
            )
        return [await self.approve(record.payroll_record_id, approver_id) for record in records]

    async def mark_paid(
        self,
        record_id: UUID,
        payment_method: str,
        payment_reference: str | None = None,
        paid_by: UUID | None = None,
    ) -> PayrollRecord:
        """Mark an approved record paid."""
        if not payment_method or not payment_method.strip():
            raise ValidationError("payment_method must not be empty")
        payment_method = payment_method.strip()

        record = await self.get_record(record_id)
        PayrollStateMachine.validate_transition(
            record.status, PayrollStatus.PAID, record_id=record_id
        )

        paid_at = utcnow()
        await self._conditional_update(
            record,
            PayrollStatus.APPROVED,
            PayrollStatus.PAID,
            paid_at=paid_at,
            paid_by=paid_by,
            payment_method=payment_method,
            payment_reference=payment_reference,
        )
        await self._record_audit(
            record,
            "paid",
            paid_by,
            details={"payment_method": payment_method, "payment_reference": payment_reference},
        )
        logger.info("Payroll record %s marked paid via %s", record_id, payment_method)

        self.emitter.emit(
            PayrollPaid(
                metadata=EventMetadata.create(actor_id=paid_by),
                payroll_record_id=record.payroll_record_id,
                employee_id=record.employee_id,
                month=record.month,
                year=record.year,
                net_salary=record.net_salary,
                payment_method=payment_method,
                payment_reference=payment_reference,
            )
        )
        return record

    async def _conditional_update(
        self,
        record: PayrollRecord,
        from_status: PayrollStatus,
        to_status: PayrollStatus,
        **values: Any,
    ) -> None:
        result = await self.session.execute(
            update(PayrollRecord)
            .where(
                PayrollRecord.payroll_record_id == record.payroll_record_id,
                PayrollRecord.status == from_status.value,
            )
            .values(status=to_status.value, **values)
            .execution_options(synchronize_session="fetch")
        )
        if (result.rowcount or 0) == 0:
            # Another transaction moved the record first
            await self.session.refresh(record)
            raise InvalidTransitionError(
                record.status,
                to_status.value,
                "status changed concurrently",
                record_id=record.payroll_record_id,
            )
        # Fetch-sync only touches attributes already loaded on the instance
        await self.session.refresh(record)

    async def _record_audit(
        self,
        record: PayrollRecord,
        action: str,
        actor_id: UUID | None,
        details: dict | None = None,
    ) -> None:
        self.session.add(
            PayrollAuditEvent(
                entity_type="payroll_record",
                entity_id=record.payroll_record_id,
                action=action,
                actor_id=actor_id,
                details_json=details,
            )
        )
        await self.session.flush()

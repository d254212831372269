"""Adjustment ledger service - bonuses, deductions, overtime and corrections."""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Sequence
from decimal import Decimal, InvalidOperation
from typing import Any
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from attendance_payroll.errors import ImmutableEntryError, NotFoundError, ValidationError
from attendance_payroll.events import EventEmitter, EventMetadata, LedgerEntryAdded
from attendance_payroll.models import (
    CorrectionDirection,
    Employee,
    LedgerEntry,
    LedgerEntryType,
    utcnow,
)

logger = logging.getLogger(__name__)

MIN_YEAR = 2000
MAX_YEAR = 2100


class LedgerService:
    """Service for the append-mostly adjustment ledger.

    Entries stay editable until a payroll run folds them in. From then on
    they are immutable: update and delete are conditional on
    ``applied = false`` so a concurrent generation cannot be raced.
    """

    def __init__(self, session: AsyncSession, emitter: EventEmitter | None = None):
        self.session = session
        self.emitter = emitter or EventEmitter()

    async def add_entry(
        self,
        employee_id: UUID,
        entry_type: str,
        amount: int,
        reason: str,
        month: int,
        year: int,
        hours: Decimal | float | str | None = None,
        created_by: UUID | None = None,
        direction: str = CorrectionDirection.INCREASE.value,
    ) -> LedgerEntry:
        """Record a new unapplied entry for an employee-period."""
        entry_type = _validate_entry_type(entry_type)
        direction = _validate_direction(entry_type, direction)
        _validate_amount(amount)
        reason = _validate_reason(reason)
        _validate_period(month, year)
        hours_value = _validate_hours(entry_type, hours)

        employee = await self.session.get(Employee, employee_id)
        if employee is None:
            raise NotFoundError("Employee", employee_id)

        entry = LedgerEntry(
            employee_id=employee_id,
            entry_type=entry_type,
            amount=amount,
            direction=direction,
            hours=hours_value,
            reason=reason,
            month=month,
            year=year,
            applied=False,
            created_by=created_by,
        )
        self.session.add(entry)
        await self.session.flush()

        logger.info(
            "Ledger %s of %d added for employee %s (%04d-%02d)",
            entry_type,
            amount,
            employee_id,
            year,
            month,
        )
        self.emitter.emit(
            LedgerEntryAdded(
                metadata=EventMetadata.create(actor_id=created_by),
                entry_id=entry.entry_id,
                employee_id=employee_id,
                entry_type=entry_type,
                amount=amount,
                reason=reason,
                month=month,
                year=year,
            )
        )
        return entry

    async def add_bonus(
        self,
        employee_id: UUID,
        amount: int,
        reason: str,
        month: int,
        year: int,
        created_by: UUID | None = None,
    ) -> LedgerEntry:
        return await self.add_entry(
            employee_id,
            LedgerEntryType.BONUS.value,
            amount,
            reason,
            month,
            year,
            created_by=created_by,
        )

    async def add_deduction(
        self,
        employee_id: UUID,
        amount: int,
        reason: str,
        month: int,
        year: int,
        created_by: UUID | None = None,
    ) -> LedgerEntry:
        return await self.add_entry(
            employee_id,
            LedgerEntryType.DEDUCTION.value,
            amount,
            reason,
            month,
            year,
            created_by=created_by,
        )

    async def get_entry(self, entry_id: UUID) -> LedgerEntry:
        entry = await self.session.get(LedgerEntry, entry_id)
        if entry is None:
            raise NotFoundError("LedgerEntry", entry_id)
        return entry

    async def update_entry(
        self,
        entry_id: UUID,
        amount: int | None = None,
        reason: str | None = None,
        hours: Decimal | float | str | None = None,
    ) -> LedgerEntry:
        """Edit an unapplied entry. Only the given fields change."""
        entry = await self.get_entry(entry_id)
        if entry.applied:
            raise ImmutableEntryError(entry_id, entry.payroll_record_id)

        values: dict[str, Any] = {}
        if amount is not None:
            _validate_amount(amount)
            values["amount"] = amount
        if reason is not None:
            values["reason"] = _validate_reason(reason)
        if hours is not None:
            values["hours"] = _validate_hours(entry.entry_type, hours)
        if not values:
            return entry
        values["updated_at"] = utcnow()

        result = await self.session.execute(
            update(LedgerEntry)
            .where(
                LedgerEntry.entry_id == entry_id,
                LedgerEntry.applied.is_(False),
            )
            .values(**values)
            .execution_options(synchronize_session="fetch")
        )
        if (result.rowcount or 0) == 0:
            # Folded into payroll between our read and the write
            await self.session.refresh(entry)
            raise ImmutableEntryError(entry_id, entry.payroll_record_id)

        await self.session.refresh(entry)
        return entry

    async def delete_entry(self, entry_id: UUID) -> None:
        """Remove an unapplied entry."""
        entry = await self.get_entry(entry_id)
        if entry.applied:
            raise ImmutableEntryError(entry_id, entry.payroll_record_id)

        result = await self.session.execute(
            delete(LedgerEntry)
            .where(
                LedgerEntry.entry_id == entry_id,
                LedgerEntry.applied.is_(False),
            )
            .execution_options(synchronize_session="fetch")
        )
        if (result.rowcount or 0) == 0:
            await self.session.refresh(entry)
            raise ImmutableEntryError(entry_id, entry.payroll_record_id)
        logger.info("Ledger entry %s deleted", entry_id)

    async def list_entries(
        self,
        employee_id: UUID,
        month: int,
        year: int,
        entry_type: str | None = None,
        include_applied: bool = True,
    ) -> list[LedgerEntry]:
        """Entries for an employee-period, oldest first."""
        query = select(LedgerEntry).where(
            LedgerEntry.employee_id == employee_id,
            LedgerEntry.month == month,
            LedgerEntry.year == year,
        )
        if entry_type is not None:
            query = query.where(LedgerEntry.entry_type == _validate_entry_type(entry_type))
        if not include_applied:
            query = query.where(LedgerEntry.applied.is_(False))
        result = await self.session.execute(
            query.order_by(LedgerEntry.created_at, LedgerEntry.entry_id)
        )
        return list(result.scalars().all())

    async def mark_applied(
        self,
        entry_ids: Sequence[UUID],
        payroll_record_ids: Sequence[UUID],
    ) -> int:
        """Flip entries to applied, pairing each with the record that consumed it.

        Only the payroll generator calls this, inside its own transaction.
        Re-applying an entry to the same record is a no-op; an entry already
        applied to a different record raises ImmutableEntryError.

        Returns count of newly applied entries.
        """
        if len(entry_ids) != len(payroll_record_ids):
            raise ValidationError(
                "entry_ids and payroll_record_ids must be the same length",
                entries=len(entry_ids),
                records=len(payroll_record_ids),
            )
        if not entry_ids:
            return 0

        by_record: dict[UUID, list[UUID]] = defaultdict(list)
        for entry_id, record_id in zip(entry_ids, payroll_record_ids):
            by_record[record_id].append(entry_id)

        applied_at = utcnow()
        applied_count = 0
        for record_id, ids in by_record.items():
            result = await self.session.execute(
                update(LedgerEntry)
                .where(
                    LedgerEntry.entry_id.in_(ids),
                    LedgerEntry.applied.is_(False),
                )
                .values(
                    applied=True,
                    applied_at=applied_at,
                    payroll_record_id=record_id,
                    updated_at=applied_at,
                )
                .execution_options(synchronize_session="fetch")
            )
            updated = result.rowcount or 0
            applied_count += updated
            if updated != len(ids):
                await self._check_applied_to(ids, record_id)

        return applied_count

    async def _check_applied_to(self, entry_ids: list[UUID], record_id: UUID) -> None:
        result = await self.session.execute(
            select(LedgerEntry.entry_id, LedgerEntry.payroll_record_id).where(
                LedgerEntry.entry_id.in_(entry_ids)
            )
        )
        found = {row.entry_id: row.payroll_record_id for row in result}
        for entry_id in entry_ids:
            if entry_id not in found:
                raise NotFoundError("LedgerEntry", entry_id)
            if found[entry_id] != record_id:
                raise ImmutableEntryError(entry_id, found[entry_id])


def _validate_entry_type(entry_type: str) -> str:
    value = entry_type.value if isinstance(entry_type, LedgerEntryType) else entry_type
    if value not in {t.value for t in LedgerEntryType}:
        raise ValidationError(f"Unknown ledger entry type '{entry_type}'")
    return value


def _validate_direction(entry_type: str, direction: str) -> str:
    value = direction.value if isinstance(direction, CorrectionDirection) else direction
    if value not in {d.value for d in CorrectionDirection}:
        raise ValidationError(f"Unknown correction direction '{direction}'")
    if (
        value == CorrectionDirection.DECREASE.value
        and entry_type != LedgerEntryType.CORRECTION.value
    ):
        raise ValidationError("Only correction entries may decrease pay; use a deduction")
    return value


def _validate_amount(amount: int) -> None:
    if not isinstance(amount, int) or isinstance(amount, bool):
        raise ValidationError("amount must be an integer number of minor units")
    if amount <= 0:
        raise ValidationError("amount must be greater than zero", amount=amount)


def _validate_reason(reason: str | None) -> str:
    if reason is None or not reason.strip():
        raise ValidationError("reason must not be empty")
    return reason.strip()


def _validate_period(month: int, year: int) -> None:
    if not 1 <= month <= 12:
        raise ValidationError("month must be between 1 and 12", month=month)
    if not MIN_YEAR <= year <= MAX_YEAR:
        raise ValidationError(f"year must be between {MIN_YEAR} and {MAX_YEAR}", year=year)


def _validate_hours(entry_type: str, hours: Decimal | float | str | None) -> Decimal | None:
    if hours is None:
        return None
    if entry_type != LedgerEntryType.OVERTIME.value:
        raise ValidationError("hours may only be recorded on overtime entries")
    try:
        value = Decimal(str(hours))
    except InvalidOperation as e:
        raise ValidationError("hours must be a number", hours=hours) from e
    if not value.is_finite() or value < 0:
        raise ValidationError("hours must not be negative", hours=hours)
    return value

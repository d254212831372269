"""Attendance service - derives and stores per-day attendance outcomes."""

from __future__ import annotations

import logging
from datetime import date, datetime
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from attendance_payroll.calculators.attendance_rules import (
    compute_working_minutes,
    derive_check_in,
    derive_check_out,
    effective_status,
)
from attendance_payroll.errors import (
    ConcurrentModificationError,
    NotFoundError,
    ValidationError,
)
from attendance_payroll.events import CheckedIn, EventEmitter, EventMetadata
from attendance_payroll.models import (
    AttendanceOutcome,
    AttendanceStatus,
    Employee,
    PayrollRecord,
    utcnow,
)
from attendance_payroll.services.commands import (
    AddBreak,
    AddEarlyDeparture,
    AddLatency,
    ApproveOvertime,
    AttendanceCommand,
    CheckIn,
    CheckOut,
    MarkAbsent,
    RejectOvertime,
)
from attendance_payroll.services.leave import LeaveOverride, LeaveProvider, NoLeaveProvider
from attendance_payroll.services.schedule_resolver import ScheduleResolver

logger = logging.getLogger(__name__)

# Statuses a manual latency correction does not override
_LATENCY_PRESERVES = {AttendanceStatus.ABSENT.value, AttendanceStatus.ON_LEAVE.value}


class AttendanceService:
    """Service for attendance outcome mutations.

    Operations:
    - record_check_in: create/overwrite the day with lateness derived
    - record_check_out: early departure, overtime and worked minutes
    - mark_absent: overwrite the day as absent (last write wins)
    - add_latency / add_early_departure / add_break: additive corrections
    - approve_overtime / reject_overtime: release or withhold the day's overtime
    - check_leave_override: read-only leave query for reporting

    Writes for the same (employee, date) are last-write-wins. Callers that
    pass ``expected_version`` get ConcurrentModificationError instead of a
    silent overwrite when the day changed underneath them.
    """

    def __init__(
        self,
        session: AsyncSession,
        resolver: ScheduleResolver,
        leave_provider: LeaveProvider | None = None,
        emitter: EventEmitter | None = None,
    ):
        self.session = session
        self.resolver = resolver
        self.leave_provider = leave_provider or NoLeaveProvider()
        self.emitter = emitter or EventEmitter()

    async def apply(self, command: AttendanceCommand) -> AttendanceOutcome:
        """Dispatch a command to its handler."""
        if isinstance(command, CheckIn):
            return await self.record_check_in(
                command.employee_id,
                command.work_date,
                command.observed_at,
                location=command.location,
                notes=command.notes,
                actor_id=command.actor_id,
                expected_version=command.expected_version,
            )
        if isinstance(command, CheckOut):
            return await self.record_check_out(
                command.employee_id,
                command.work_date,
                command.observed_at,
                notes=command.notes,
                expected_version=command.expected_version,
            )
        if isinstance(command, MarkAbsent):
            return await self.mark_absent(
                command.employee_id,
                command.work_date,
                command.reason,
                expected_version=command.expected_version,
            )
        if isinstance(command, AddLatency):
            return await self.add_latency(
                command.employee_id,
                command.work_date,
                command.minutes,
                command.reason,
                expected_version=command.expected_version,
            )
        if isinstance(command, AddEarlyDeparture):
            return await self.add_early_departure(
                command.employee_id,
                command.work_date,
                command.minutes,
                command.reason,
                expected_version=command.expected_version,
            )
        if isinstance(command, AddBreak):
            return await self.add_break(
                command.employee_id,
                command.work_date,
                command.minutes,
                command.reason,
                expected_version=command.expected_version,
            )
        if isinstance(command, ApproveOvertime):
            return await self.approve_overtime(
                command.employee_id,
                command.work_date,
                approver_id=command.actor_id,
                expected_version=command.expected_version,
            )
        if isinstance(command, RejectOvertime):
            return await self.reject_overtime(
                command.employee_id,
                command.work_date,
                reason=command.reason,
                rejected_by=command.actor_id,
                expected_version=command.expected_version,
            )
        raise ValidationError(f"Unsupported attendance command {type(command).__name__}")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_outcome(self, employee_id: UUID, work_date: date) -> AttendanceOutcome | None:
        """Load the stored outcome for one employee-day, if any."""
        result = await self.session.execute(
            select(AttendanceOutcome).where(
                AttendanceOutcome.employee_id == employee_id,
                AttendanceOutcome.work_date == work_date,
            )
        )
        return result.scalar_one_or_none()

    async def check_leave_override(self, employee_id: UUID, work_date: date) -> LeaveOverride:
        """Ask the leave subsystem whether the day is covered by approved leave."""
        return await self.leave_provider.approved_leave(employee_id, work_date)

    async def reported_status(self, employee_id: UUID, work_date: date) -> str:
        """Status as shown in reporting, with leave precedence applied."""
        outcome = await self.get_outcome(employee_id, work_date)
        stored = outcome.status if outcome else AttendanceStatus.NOT_MARKED.value
        leave = await self.check_leave_override(employee_id, work_date)
        return effective_status(stored, leave.is_on_leave)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def record_check_in(
        self,
        employee_id: UUID,
        work_date: date,
        observed_at: datetime,
        location: str | None = None,
        notes: str | None = None,
        actor_id: UUID | None = None,
        expected_version: int | None = None,
    ) -> AttendanceOutcome:
        """Record a check-in and derive lateness."""
        _require_aware(observed_at, "observed_at")
        employee = await self._require_employee(employee_id)
        if employee.status != "active":
            raise ValidationError(
                f"Employee is {employee.status}; only active employees can check in",
                employee_id=employee_id,
                employee_status=employee.status,
            )

        outcome = await self._load(employee_id, work_date, expected_version)
        if outcome is not None and outcome.check_in_at is not None:
            raise ValidationError(
                "Employee has already checked in for this date",
                employee_id=employee_id,
                work_date=work_date,
                attendance_outcome_id=outcome.attendance_outcome_id,
            )

        window = await self.resolver.expected_window(employee_id, work_date)
        derived = derive_check_in(observed_at, window)

        if outcome is None:
            outcome = AttendanceOutcome(employee_id=employee_id, work_date=work_date)
            self.session.add(outcome)

        _reset(outcome)
        outcome.check_in_at = observed_at
        outcome.status = derived.status
        outcome.is_late = derived.is_late
        outcome.late_minutes = derived.late_minutes
        outcome.location = location
        outcome.notes = notes

        await self._flush(outcome, expected_version)

        self.emitter.emit(
            CheckedIn(
                metadata=EventMetadata.create(actor_id=actor_id),
                employee_id=employee_id,
                work_date=work_date,
                check_in_at=observed_at,
                is_late=derived.is_late,
                late_minutes=derived.late_minutes,
            )
        )
        return outcome

    async def record_check_out(
        self,
        employee_id: UUID,
        work_date: date,
        observed_at: datetime,
        notes: str | None = None,
        expected_version: int | None = None,
    ) -> AttendanceOutcome:
        """Record a check-out and derive early departure, overtime and worked time."""
        _require_aware(observed_at, "observed_at")
        outcome = await self._load(employee_id, work_date, expected_version)
        if outcome is None or outcome.check_in_at is None:
            raise ValidationError(
                "No check-in recorded for this date; check in first",
                employee_id=employee_id,
                work_date=work_date,
            )
        if outcome.check_out_at is not None:
            raise ValidationError(
                "Employee has already checked out for this date",
                employee_id=employee_id,
                work_date=work_date,
                attendance_outcome_id=outcome.attendance_outcome_id,
            )

        window = await self.resolver.expected_window(employee_id, work_date)
        derived = derive_check_out(
            outcome.check_in_at, observed_at, window, outcome.break_minutes
        )

        outcome.check_out_at = observed_at
        outcome.early_departure_minutes = derived.early_departure_minutes
        outcome.is_early_departure = derived.is_early_departure
        outcome.overtime_minutes = derived.overtime_minutes
        outcome.working_minutes = derived.working_minutes
        if notes:
            outcome.notes = notes

        await self._flush(outcome, expected_version)
        return outcome

    async def mark_absent(
        self,
        employee_id: UUID,
        work_date: date,
        reason: str,
        expected_version: int | None = None,
    ) -> AttendanceOutcome:
        """Overwrite the day as absent, clearing timestamps and derived minutes."""
        reason = _require_reason(reason)
        await self._require_employee(employee_id)

        outcome = await self._load(employee_id, work_date, expected_version)
        if outcome is None:
            outcome = AttendanceOutcome(employee_id=employee_id, work_date=work_date)
            self.session.add(outcome)

        _reset(outcome)
        outcome.check_in_at = None
        outcome.check_out_at = None
        outcome.location = None
        outcome.status = AttendanceStatus.ABSENT.value
        outcome.notes = reason
        outcome.is_manual_entry = True

        await self._flush(outcome, expected_version)
        logger.info("Marked employee %s absent on %s", employee_id, work_date)
        return outcome

    async def add_latency(
        self,
        employee_id: UUID,
        work_date: date,
        minutes: int,
        reason: str,
        expected_version: int | None = None,
    ) -> AttendanceOutcome:
        """Add manual late minutes, creating the day as late when unrecorded."""
        outcome = await self._load_for_correction(
            employee_id, work_date, minutes, reason, expected_version, AttendanceStatus.LATE
        )
        outcome.late_minutes += minutes
        outcome.is_late = True
        if outcome.status not in _LATENCY_PRESERVES:
            outcome.status = AttendanceStatus.LATE.value
        return await self._finish_correction(outcome, reason, expected_version)

    async def add_early_departure(
        self,
        employee_id: UUID,
        work_date: date,
        minutes: int,
        reason: str,
        expected_version: int | None = None,
    ) -> AttendanceOutcome:
        """Add manual early-departure minutes, creating the day when unrecorded.

        Early departure and overtime never coexist, so any recorded overtime
        (and its approval) is cleared.
        """
        outcome = await self._load_for_correction(
            employee_id, work_date, minutes, reason, expected_version, AttendanceStatus.PRESENT
        )
        outcome.early_departure_minutes += minutes
        outcome.is_early_departure = True
        if outcome.overtime_minutes:
            logger.info(
                "Clearing %d overtime minutes for employee %s on %s after early departure",
                outcome.overtime_minutes,
                employee_id,
                work_date,
            )
        _clear_overtime(outcome)
        return await self._finish_correction(outcome, reason, expected_version)

    async def add_break(
        self,
        employee_id: UUID,
        work_date: date,
        minutes: int,
        reason: str,
        expected_version: int | None = None,
    ) -> AttendanceOutcome:
        """Add break minutes, creating the day when unrecorded."""
        outcome = await self._load_for_correction(
            employee_id, work_date, minutes, reason, expected_version, AttendanceStatus.PRESENT
        )
        outcome.break_minutes += minutes
        return await self._finish_correction(outcome, reason, expected_version)

    async def approve_overtime(
        self,
        employee_id: UUID,
        work_date: date,
        approver_id: UUID | None = None,
        expected_version: int | None = None,
    ) -> AttendanceOutcome:
        """Release the day's overtime minutes to payroll."""
        outcome = await self._load_overtime(employee_id, work_date, expected_version)
        outcome.overtime_approved = True
        outcome.overtime_approved_by = approver_id
        outcome.overtime_approved_at = utcnow()
        await self._flush(outcome, expected_version)
        return outcome

    async def reject_overtime(
        self,
        employee_id: UUID,
        work_date: date,
        reason: str | None = None,
        rejected_by: UUID | None = None,
        expected_version: int | None = None,
    ) -> AttendanceOutcome:
        """Withhold the day's overtime from payroll.

        The worked overtime minutes stay on record; only the approval is
        cleared, so a later approve_overtime can still release them.
        """
        outcome = await self._load_overtime(employee_id, work_date, expected_version)
        outcome.overtime_approved = False
        outcome.overtime_approved_by = None
        outcome.overtime_approved_at = None
        if reason and reason.strip():
            outcome.notes = _append_note(outcome.notes, f"Overtime rejected: {reason.strip()}")
        await self._flush(outcome, expected_version)
        logger.info(
            "Overtime for employee %s on %s rejected by %s", employee_id, work_date, rejected_by
        )
        return outcome

    async def delete_outcome(self, employee_id: UUID, work_date: date) -> bool:
        """Administrative delete. Returns False when nothing was stored."""
        result = await self.session.execute(
            delete(AttendanceOutcome).where(
                AttendanceOutcome.employee_id == employee_id,
                AttendanceOutcome.work_date == work_date,
            )
        )
        deleted = (result.rowcount or 0) > 0
        if deleted:
            logger.info("Deleted attendance for employee %s on %s", employee_id, work_date)
        return deleted

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _require_employee(self, employee_id: UUID) -> Employee:
        employee = await self.session.get(Employee, employee_id)
        if employee is None:
            raise NotFoundError("Employee", employee_id)
        return employee

    async def _load(
        self, employee_id: UUID, work_date: date, expected_version: int | None
    ) -> AttendanceOutcome | None:
        outcome = await self.get_outcome(employee_id, work_date)
        if expected_version is not None:
            actual = outcome.version if outcome is not None else None
            if actual != expected_version:
                raise ConcurrentModificationError(
                    outcome.attendance_outcome_id if outcome else f"{employee_id}/{work_date}",
                    expected_version,
                    actual,
                )
        return outcome

    async def _load_for_correction(
        self,
        employee_id: UUID,
        work_date: date,
        minutes: int,
        reason: str,
        expected_version: int | None,
        new_status: AttendanceStatus,
    ) -> AttendanceOutcome:
        if not isinstance(minutes, int) or isinstance(minutes, bool) or minutes <= 0:
            raise ValidationError("minutes must be a positive integer", minutes=minutes)
        _require_reason(reason)
        outcome = await self._load(employee_id, work_date, expected_version)
        if outcome is None:
            await self._require_employee(employee_id)
            outcome = AttendanceOutcome(
                employee_id=employee_id, work_date=work_date, status=new_status.value
            )
            _reset(outcome)
            self.session.add(outcome)
            logger.info(
                "Created %s attendance for employee %s on %s from a manual correction",
                new_status.value,
                employee_id,
                work_date,
            )
        return outcome

    async def _load_overtime(
        self, employee_id: UUID, work_date: date, expected_version: int | None
    ) -> AttendanceOutcome:
        outcome = await self._load(employee_id, work_date, expected_version)
        if outcome is None:
            raise NotFoundError("AttendanceOutcome", f"{employee_id}/{work_date}")
        if outcome.overtime_minutes <= 0:
            raise ValidationError(
                "No overtime recorded for this date",
                attendance_outcome_id=outcome.attendance_outcome_id,
            )
        # Generation reads overtime once; later changes would go unpaid
        record_id = await self.session.scalar(
            select(PayrollRecord.payroll_record_id).where(
                PayrollRecord.employee_id == employee_id,
                PayrollRecord.month == work_date.month,
                PayrollRecord.year == work_date.year,
            )
        )
        if record_id is not None:
            raise ValidationError(
                "Payroll for this month has already been generated; overtime is closed",
                attendance_outcome_id=outcome.attendance_outcome_id,
                payroll_record_id=record_id,
            )
        return outcome

    async def _finish_correction(
        self, outcome: AttendanceOutcome, reason: str, expected_version: int | None
    ) -> AttendanceOutcome:
        outcome.working_minutes = compute_working_minutes(
            outcome.check_in_at, outcome.check_out_at, outcome.break_minutes
        )
        outcome.notes = _append_note(outcome.notes, reason.strip())
        outcome.is_manual_entry = True
        await self._flush(outcome, expected_version)
        return outcome

    async def _flush(self, outcome: AttendanceOutcome, expected_version: int | None) -> None:
        try:
            await self.session.flush()
        except StaleDataError as e:
            raise ConcurrentModificationError(
                outcome.attendance_outcome_id, expected_version, None
            ) from e
        except IntegrityError as e:
            # Another writer created the same (employee, date) row first
            raise ConcurrentModificationError(
                f"{outcome.employee_id}/{outcome.work_date}", expected_version, None
            ) from e


def _reset(outcome: AttendanceOutcome) -> None:
    outcome.is_late = False
    outcome.late_minutes = 0
    outcome.is_early_departure = False
    outcome.early_departure_minutes = 0
    outcome.break_minutes = 0
    outcome.working_minutes = 0
    outcome.is_manual_entry = False
    _clear_overtime(outcome)


def _clear_overtime(outcome: AttendanceOutcome) -> None:
    outcome.overtime_minutes = 0
    outcome.overtime_approved = False
    outcome.overtime_approved_by = None
    outcome.overtime_approved_at = None


def _append_note(existing: str | None, note: str) -> str:
    return f"{existing}\n{note}" if existing else note


def _require_reason(reason: str | None) -> str:
    if reason is None or not reason.strip():
        raise ValidationError("reason must not be empty")
    return reason.strip()


def _require_aware(value: datetime, field_name: str) -> None:
    if not isinstance(value, datetime):
        raise ValidationError(f"{field_name} must be a datetime")
    if value.tzinfo is None or value.utcoffset() is None:
        raise ValidationError(f"{field_name} must be timezone-aware")

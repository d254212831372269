"""ORM models."""

from attendance_payroll.models.base import Base, TimestampMixin, UTCDateTime, utcnow
from attendance_payroll.models.employee import Employee, ScheduleAssignment
from attendance_payroll.models.attendance import AttendanceOutcome, AttendanceStatus
from attendance_payroll.models.ledger import CorrectionDirection, LedgerEntry, LedgerEntryType
from attendance_payroll.models.payroll import PayrollAuditEvent, PayrollRecord

__all__ = [
    "Base",
    "TimestampMixin",
    "UTCDateTime",
    "utcnow",
    "Employee",
    "ScheduleAssignment",
    "AttendanceOutcome",
    "AttendanceStatus",
    "LedgerEntry",
    "LedgerEntryType",
    "CorrectionDirection",
    "PayrollRecord",
    "PayrollAuditEvent",
]

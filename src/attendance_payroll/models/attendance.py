"""Per-day attendance outcome model."""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from attendance_payroll.models.base import Base, TimestampMixin, UTCDateTime, utcnow

if TYPE_CHECKING:
    from attendance_payroll.models.employee import Employee


class AttendanceStatus(str, Enum):
    """Attendance outcome status values."""

    NOT_MARKED = "not_marked"
    PRESENT = "present"
    LATE = "late"
    ABSENT = "absent"
    ON_LEAVE = "on_leave"


class AttendanceOutcome(Base, TimestampMixin):
    """Computed attendance for one employee on one calendar date.

    Exactly one row per (employee, work_date); later writes overwrite.
    ``version`` is bumped by every UPDATE and doubles as the optimistic
    concurrency token handed to callers.
    """

    __tablename__ = "attendance_outcome"

    attendance_outcome_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employee.employee_id", ondelete="CASCADE"),
        nullable=False,
    )
    work_date: Mapped[date] = mapped_column(Date, nullable=False)
    check_in_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    check_out_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    status: Mapped[str] = mapped_column(
        String, nullable=False, default=AttendanceStatus.NOT_MARKED.value
    )

    is_late: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    late_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_early_departure: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    early_departure_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    overtime_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    break_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    working_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    overtime_approved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    overtime_approved_by: Mapped[UUID | None] = mapped_column(nullable=True)
    overtime_approved_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    location: Mapped[str | None] = mapped_column(String, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_manual_entry: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), nullable=False, default=utcnow, onupdate=utcnow
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        UniqueConstraint("employee_id", "work_date", name="attendance_outcome_employee_date_unique"),
        CheckConstraint(
            "status IN ('not_marked', 'present', 'late', 'absent', 'on_leave')",
            name="attendance_outcome_status_check",
        ),
        CheckConstraint(
            "late_minutes >= 0 AND early_departure_minutes >= 0 AND overtime_minutes >= 0 "
            "AND break_minutes >= 0 AND working_minutes >= 0",
            name="attendance_outcome_minutes_nonnegative",
        ),
        CheckConstraint(
            "early_departure_minutes = 0 OR overtime_minutes = 0",
            name="attendance_outcome_early_xor_overtime",
        ),
    )

    # Relationships
    employee: Mapped[Employee] = relationship(back_populates="attendance_outcomes")

    @property
    def approved_overtime_minutes(self) -> int:
        return self.overtime_minutes if self.overtime_approved else 0

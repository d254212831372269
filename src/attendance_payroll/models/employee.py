"""Employee and schedule assignment models (read-only to the core)."""

from __future__ import annotations

from datetime import date, time
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Date,
    ForeignKey,
    String,
    Time,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from attendance_payroll.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from attendance_payroll.models.attendance import AttendanceOutcome


class Employee(Base, TimestampMixin):
    """Employee record as far as payroll needs it."""

    __tablename__ = "employee"

    employee_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    full_name: Mapped[str] = mapped_column(String, nullable=False)
    department_id: Mapped[UUID | None] = mapped_column(nullable=True, index=True)
    # Monthly base salary in minor currency units
    base_salary: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    status: Mapped[str] = mapped_column(String, nullable=False, default="active")

    __table_args__ = (
        CheckConstraint("base_salary >= 0", name="employee_base_salary_nonnegative"),
        CheckConstraint(
            "status IN ('active', 'inactive', 'terminated')",
            name="employee_status_check",
        ),
    )

    # Relationships
    schedule_assignments: Mapped[list[ScheduleAssignment]] = relationship(
        back_populates="employee"
    )
    attendance_outcomes: Mapped[list[AttendanceOutcome]] = relationship(
        back_populates="employee"
    )

class ScheduleAssignment(Base, TimestampMixin):
    """Shift assigned to an employee over an effective date range."""

    __tablename__ = "schedule_assignment"

    schedule_assignment_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employee.employee_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    shift_name: Mapped[str | None] = mapped_column(String, nullable=True)
    expected_start: Mapped[time] = mapped_column(Time, nullable=False)
    expected_end: Mapped[time] = mapped_column(Time, nullable=False)
    effective_from: Mapped[date] = mapped_column(Date, nullable=False)
    effective_to: Mapped[date | None] = mapped_column(Date, nullable=True)

    __table_args__ = (
        CheckConstraint(
            "effective_to IS NULL OR effective_to >= effective_from",
            name="schedule_assignment_dates_check",
        ),
    )

    # Relationships
    employee: Mapped[Employee] = relationship(back_populates="schedule_assignments")

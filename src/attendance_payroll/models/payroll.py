"""Payroll record and audit models."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import (
    JSON,
    BigInteger,
    CheckConstraint,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from attendance_payroll.models.base import Base, TimestampMixin, UTCDateTime
from attendance_payroll.models.employee import Employee


class PayrollRecord(Base, TimestampMixin):
    """Salary computation for one employee and one month.

    Created only by the payroll generator. Afterwards only the status,
    transition timestamps and payment fields change; rows are never deleted.
    All money columns are integer minor currency units.
    """

    __tablename__ = "payroll_record"

    payroll_record_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employee.employee_id", ondelete="RESTRICT"),
        nullable=False,
    )
    department_id: Mapped[UUID | None] = mapped_column(nullable=True)
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)

    base_salary: Mapped[int] = mapped_column(BigInteger, nullable=False)
    overtime_hours: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    overtime_pay: Mapped[int] = mapped_column(BigInteger, nullable=False)
    bonuses: Mapped[int] = mapped_column(BigInteger, nullable=False)
    deductions: Mapped[int] = mapped_column(BigInteger, nullable=False)
    adjustments: Mapped[int] = mapped_column(BigInteger, nullable=False)
    gross_salary: Mapped[int] = mapped_column(BigInteger, nullable=False)
    tax_rate: Mapped[Decimal] = mapped_column(Numeric(6, 4), nullable=False)
    tax_deduction: Mapped[int] = mapped_column(BigInteger, nullable=False)
    net_salary: Mapped[int] = mapped_column(BigInteger, nullable=False)

    status: Mapped[str] = mapped_column(String, nullable=False, default="pending")
    generated_by: Mapped[UUID | None] = mapped_column(nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    approved_by: Mapped[UUID | None] = mapped_column(nullable=True)
    paid_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    paid_by: Mapped[UUID | None] = mapped_column(nullable=True)
    payment_method: Mapped[str | None] = mapped_column(String, nullable=True)
    payment_reference: Mapped[str | None] = mapped_column(String, nullable=True)

    __table_args__ = (
        UniqueConstraint("employee_id", "month", "year", name="payroll_record_employee_period_unique"),
        CheckConstraint(
            "status IN ('pending', 'approved', 'paid')",
            name="payroll_record_status_check",
        ),
        CheckConstraint("month BETWEEN 1 AND 12", name="payroll_record_month_check"),
        CheckConstraint(
            "gross_salary = base_salary + overtime_pay + bonuses + adjustments",
            name="payroll_record_gross_check",
        ),
        CheckConstraint(
            "net_salary = gross_salary - tax_deduction",
            name="payroll_record_net_check",
        ),
    )

    # Relationships
    employee: Mapped[Employee] = relationship()

    @property
    def generated_at(self) -> datetime:
        return self.created_at


class PayrollAuditEvent(Base, TimestampMixin):
    """Audit trail entry for payroll generation and lifecycle transitions."""

    __tablename__ = "payroll_audit_event"

    audit_event_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    entity_type: Mapped[str] = mapped_column(String, nullable=False)
    entity_id: Mapped[UUID | None] = mapped_column(nullable=True)
    action: Mapped[str] = mapped_column(String, nullable=False)
    actor_id: Mapped[UUID | None] = mapped_column(nullable=True)
    details_json: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)

"""Adjustment ledger entry model."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID, uuid4

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from attendance_payroll.models.base import Base, TimestampMixin, UTCDateTime, utcnow


class LedgerEntryType(str, Enum):
    """Ledger entry types."""

    BONUS = "bonus"
    DEDUCTION = "deduction"
    OVERTIME = "overtime"
    CORRECTION = "correction"


class CorrectionDirection(str, Enum):
    """Sign of a correction entry; the stored amount is always a magnitude."""

    INCREASE = "increase"
    DECREASE = "decrease"


class LedgerEntry(Base, TimestampMixin):
    """Bonus, deduction, overtime or correction awaiting a payroll run.

    Editable and deletable only while ``applied`` is false. The payroll
    generator flips ``applied`` in the same transaction that creates the
    payroll record; nothing ever flips it back.
    """

    __tablename__ = "ledger_entry"

    entry_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employee.employee_id", ondelete="RESTRICT"),
        nullable=False,
    )
    entry_type: Mapped[str] = mapped_column(String, nullable=False)
    # Minor currency units, always a positive magnitude
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    direction: Mapped[str] = mapped_column(
        String, nullable=False, default=CorrectionDirection.INCREASE.value
    )
    hours: Mapped[Decimal | None] = mapped_column(Numeric(8, 2), nullable=True)
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)

    applied: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    applied_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    payroll_record_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("payroll_record.payroll_record_id"),
        nullable=True,
    )

    created_by: Mapped[UUID | None] = mapped_column(nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), nullable=False, default=utcnow, onupdate=utcnow
    )

    __table_args__ = (
        CheckConstraint(
            "entry_type IN ('bonus', 'deduction', 'overtime', 'correction')",
            name="ledger_entry_type_check",
        ),
        CheckConstraint("amount > 0", name="ledger_entry_amount_positive"),
        CheckConstraint("month BETWEEN 1 AND 12", name="ledger_entry_month_check"),
        CheckConstraint(
            "direction IN ('increase', 'decrease')",
            name="ledger_entry_direction_check",
        ),
        Index("ledger_entry_period_idx", "employee_id", "year", "month"),
    )

    @property
    def signed_amount(self) -> int:
        """Amount with the sign it contributes to gross pay."""
        if self.entry_type == LedgerEntryType.DEDUCTION.value:
            return -self.amount
        if (
            self.entry_type == LedgerEntryType.CORRECTION.value
            and self.direction == CorrectionDirection.DECREASE.value
        ):
            return -self.amount
        return self.amount

"""Pydantic schemas for API request/response models."""

from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


# ============================================================================
# Attendance schemas
# ============================================================================


class CheckInRequest(BaseModel):
    """Schema for recording a check-in."""

    employee_id: UUID
    work_date: date
    observed_at: datetime
    location: str | None = None
    notes: str | None = None
    expected_version: int | None = None


class CheckOutRequest(BaseModel):
    """Schema for recording a check-out."""

    employee_id: UUID
    work_date: date
    observed_at: datetime
    notes: str | None = None
    expected_version: int | None = None


class MarkAbsentRequest(BaseModel):
    employee_id: UUID
    work_date: date
    reason: str
    expected_version: int | None = None


class AttendanceCorrectionRequest(BaseModel):
    """Manual latency, early departure or break minutes."""

    employee_id: UUID
    work_date: date
    minutes: int
    reason: str
    expected_version: int | None = None


class ApproveOvertimeRequest(BaseModel):
    employee_id: UUID
    work_date: date
    expected_version: int | None = None


class RejectOvertimeRequest(BaseModel):
    employee_id: UUID
    work_date: date
    reason: str | None = None
    expected_version: int | None = None


class AttendanceOutcomeResponse(BaseModel):
    """Schema for an attendance outcome."""

    model_config = ConfigDict(from_attributes=True)

    attendance_outcome_id: UUID
    employee_id: UUID
    work_date: date
    check_in_at: datetime | None = None
    check_out_at: datetime | None = None
    status: str
    is_late: bool
    late_minutes: int
    is_early_departure: bool
    early_departure_minutes: int
    overtime_minutes: int
    overtime_approved: bool
    break_minutes: int
    working_minutes: int
    location: str | None = None
    notes: str | None = None
    is_manual_entry: bool
    version: int
    updated_at: datetime


class AttendanceDayResponse(BaseModel):
    """Stored outcome plus the status shown in reporting."""

    outcome: AttendanceOutcomeResponse | None
    effective_status: str
    on_leave: bool
    leave_type: str | None = None


class MonthlySummaryResponse(BaseModel):
    """Schema for the monthly attendance summary."""

    model_config = ConfigDict(from_attributes=True)

    employee_id: UUID
    month: int
    year: int
    present_days: int
    late_days: int
    absent_days: int
    leave_days: int
    total_working_minutes: int
    total_overtime_minutes: int
    approved_overtime_minutes: int
    total_late_minutes: int
    suggested_reasons: dict[str, str] = Field(default_factory=dict)


# ============================================================================
# Ledger schemas
# ============================================================================


class LedgerEntryCreate(BaseModel):
    """Schema for adding a ledger entry."""

    employee_id: UUID
    entry_type: str
    amount: int
    reason: str
    month: int
    year: int
    hours: Decimal | None = None
    direction: str = "increase"


class LedgerEntryUpdate(BaseModel):
    """Schema for editing an unapplied ledger entry."""

    amount: int | None = None
    reason: str | None = None
    hours: Decimal | None = None


class LedgerEntryResponse(BaseModel):
    """Schema for a ledger entry."""

    model_config = ConfigDict(from_attributes=True)

    entry_id: UUID
    employee_id: UUID
    entry_type: str
    amount: int
    direction: str
    hours: Decimal | None = None
    reason: str
    month: int
    year: int
    applied: bool
    applied_at: datetime | None = None
    payroll_record_id: UUID | None = None
    created_by: UUID | None = None
    created_at: datetime


class LedgerEntryListResponse(BaseModel):
    items: list[LedgerEntryResponse]
    total: int


# ============================================================================
# Payroll schemas
# ============================================================================


class PayrollScopeRequest(BaseModel):
    """Scope selector. Omit both fields for every active employee."""

    department_id: UUID | None = None
    employee_ids: list[UUID] | None = None


class PayrollGenerateRequest(PayrollScopeRequest):
    month: int
    year: int


class SalaryBreakdownResponse(BaseModel):
    """Schema for a previewed salary computation."""

    model_config = ConfigDict(from_attributes=True)

    employee_id: UUID
    base_salary: int
    overtime_hours: Decimal
    overtime_pay: int
    bonuses: int
    deductions: int
    adjustments: int
    gross_salary: int
    tax_rate: Decimal
    tax_deduction: int
    net_salary: int


class PayrollPreviewResponse(BaseModel):
    month: int
    year: int
    employees: list[SalaryBreakdownResponse]
    total_gross: int
    total_net: int
    computed_at: datetime


class PayrollRecordResponse(BaseModel):
    """Schema for a payroll record."""

    model_config = ConfigDict(from_attributes=True)

    payroll_record_id: UUID
    employee_id: UUID
    department_id: UUID | None = None
    month: int
    year: int
    base_salary: int
    overtime_hours: Decimal
    overtime_pay: int
    bonuses: int
    deductions: int
    adjustments: int
    gross_salary: int
    tax_rate: Decimal
    tax_deduction: int
    net_salary: int
    status: str
    generated_by: UUID | None = None
    generated_at: datetime
    approved_at: datetime | None = None
    approved_by: UUID | None = None
    paid_at: datetime | None = None
    paid_by: UUID | None = None
    payment_method: str | None = None
    payment_reference: str | None = None


class PayrollTotalsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    record_count: int
    total_base: int
    total_overtime_pay: int
    total_bonuses: int
    total_deductions: int
    total_gross: int
    total_tax: int
    total_net: int
    by_status: dict[str, int]


class PayrollListResponse(BaseModel):
    items: list[PayrollRecordResponse]
    totals: PayrollTotalsResponse


class PayrollGenerateResponse(BaseModel):
    month: int
    year: int
    generated: int
    items: list[PayrollRecordResponse]


class ApproveManyRequest(BaseModel):
    record_ids: list[UUID] = Field(min_length=1)


class MarkPaidRequest(BaseModel):
    payment_method: str
    payment_reference: str | None = None


# ============================================================================
# Error schemas
# ============================================================================


class ErrorResponse(BaseModel):
    """Schema for error response."""

    detail: str
    code: str | None = None
    context: dict[str, Any] | None = None

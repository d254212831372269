"""Attendance API endpoints."""

from dataclasses import asdict
from datetime import date
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query, status

from attendance_payroll.api.dependencies import ActorId, Attendance, DbSession, Emitter, Summary
from attendance_payroll.api.schemas import (
    ApproveOvertimeRequest,
    AttendanceCorrectionRequest,
    AttendanceDayResponse,
    AttendanceOutcomeResponse,
    CheckInRequest,
    CheckOutRequest,
    ErrorResponse,
    MarkAbsentRequest,
    MonthlySummaryResponse,
    RejectOvertimeRequest,
)
from attendance_payroll.calculators import effective_status
from attendance_payroll.errors import NotFoundError
from attendance_payroll.services import suggested_deduction_reason
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

router = APIRouter(prefix="/attendance", tags=["attendance"])

ERRORS = {
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    422: {"model": ErrorResponse},
}


async def _apply(
    db: DbSession,
    emitter: Emitter,
    service: Attendance,
    command: AttendanceCommand,
) -> AttendanceOutcomeResponse:
    with emitter.batch():
        outcome = await service.apply(command)
        await db.commit()
    return AttendanceOutcomeResponse.model_validate(outcome)


@router.post("/check-in", response_model=AttendanceOutcomeResponse, responses=ERRORS)
async def check_in(
    db: DbSession,
    emitter: Emitter,
    service: Attendance,
    actor_id: ActorId,
    payload: CheckInRequest,
) -> AttendanceOutcomeResponse:
    """Record a check-in; lateness is derived from the expected schedule."""
    return await _apply(
        db,
        emitter,
        service,
        CheckIn(
            employee_id=payload.employee_id,
            work_date=payload.work_date,
            observed_at=payload.observed_at,
            location=payload.location,
            notes=payload.notes,
            actor_id=actor_id,
            expected_version=payload.expected_version,
        ),
    )


@router.post("/check-out", response_model=AttendanceOutcomeResponse, responses=ERRORS)
async def check_out(
    db: DbSession,
    emitter: Emitter,
    service: Attendance,
    actor_id: ActorId,
    payload: CheckOutRequest,
) -> AttendanceOutcomeResponse:
    """Record a check-out; early departure, overtime and worked time are derived."""
    return await _apply(
        db,
        emitter,
        service,
        CheckOut(
            employee_id=payload.employee_id,
            work_date=payload.work_date,
            observed_at=payload.observed_at,
            notes=payload.notes,
            actor_id=actor_id,
            expected_version=payload.expected_version,
        ),
    )


@router.post("/absent", response_model=AttendanceOutcomeResponse, responses=ERRORS)
async def mark_absent(
    db: DbSession,
    emitter: Emitter,
    service: Attendance,
    actor_id: ActorId,
    payload: MarkAbsentRequest,
) -> AttendanceOutcomeResponse:
    return await _apply(
        db,
        emitter,
        service,
        MarkAbsent(
            employee_id=payload.employee_id,
            work_date=payload.work_date,
            reason=payload.reason,
            actor_id=actor_id,
            expected_version=payload.expected_version,
        ),
    )


@router.post("/latency", response_model=AttendanceOutcomeResponse, responses=ERRORS)
async def add_latency(
    db: DbSession,
    emitter: Emitter,
    service: Attendance,
    actor_id: ActorId,
    payload: AttendanceCorrectionRequest,
) -> AttendanceOutcomeResponse:
    return await _apply(
        db,
        emitter,
        service,
        AddLatency(actor_id=actor_id, **payload.model_dump()),
    )


@router.post("/early-departure", response_model=AttendanceOutcomeResponse, responses=ERRORS)
async def add_early_departure(
    db: DbSession,
    emitter: Emitter,
    service: Attendance,
    actor_id: ActorId,
    payload: AttendanceCorrectionRequest,
) -> AttendanceOutcomeResponse:
    return await _apply(
        db,
        emitter,
        service,
        AddEarlyDeparture(actor_id=actor_id, **payload.model_dump()),
    )


@router.post("/breaks", response_model=AttendanceOutcomeResponse, responses=ERRORS)
async def add_break(
    db: DbSession,
    emitter: Emitter,
    service: Attendance,
    actor_id: ActorId,
    payload: AttendanceCorrectionRequest,
) -> AttendanceOutcomeResponse:
    return await _apply(
        db,
        emitter,
        service,
        AddBreak(actor_id=actor_id, **payload.model_dump()),
    )


@router.post("/overtime-approval", response_model=AttendanceOutcomeResponse, responses=ERRORS)
async def approve_overtime(
    db: DbSession,
    emitter: Emitter,
    service: Attendance,
    actor_id: ActorId,
    payload: ApproveOvertimeRequest,
) -> AttendanceOutcomeResponse:
    """Release a day's overtime to payroll."""
    return await _apply(
        db,
        emitter,
        service,
        ApproveOvertime(actor_id=actor_id, **payload.model_dump()),
    )


@router.post("/overtime-rejection", response_model=AttendanceOutcomeResponse, responses=ERRORS)
async def reject_overtime(
    db: DbSession,
    emitter: Emitter,
    service: Attendance,
    actor_id: ActorId,
    payload: RejectOvertimeRequest,
) -> AttendanceOutcomeResponse:
    """Withhold a day's overtime from payroll; the worked minutes stay recorded."""
    return await _apply(
        db,
        emitter,
        service,
        RejectOvertime(actor_id=actor_id, **payload.model_dump()),
    )


@router.get(
    "/summary/{employee_id}",
    response_model=MonthlySummaryResponse,
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def monthly_summary(
    summary_service: Summary,
    employee_id: Annotated[UUID, Path()],
    month: Annotated[int, Query(ge=1, le=12)],
    year: Annotated[int, Query(ge=2000, le=2100)],
) -> MonthlySummaryResponse:
    """Monthly attendance counts with pre-filled deduction reasons."""
    summary = await summary_service.summarize_month(employee_id, month, year)
    reasons = {
        kind: suggested_deduction_reason(summary, kind)
        for kind, count in (
            ("absent", summary.absent_days),
            ("late", summary.late_days),
            ("leave", summary.leave_days),
        )
        if count
    }
    return MonthlySummaryResponse(**asdict(summary), suggested_reasons=reasons)


@router.get(
    "/{employee_id}/{work_date}",
    response_model=AttendanceDayResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_attendance_day(
    service: Attendance,
    employee_id: Annotated[UUID, Path()],
    work_date: Annotated[date, Path()],
) -> AttendanceDayResponse:
    """Stored outcome for a day plus its reporting status (leave applied)."""
    outcome = await service.get_outcome(employee_id, work_date)
    leave = await service.check_leave_override(employee_id, work_date)
    if outcome is None and not leave.is_on_leave:
        raise NotFoundError("AttendanceOutcome", f"{employee_id}/{work_date}")
    stored = outcome.status if outcome else "not_marked"
    return AttendanceDayResponse(
        outcome=AttendanceOutcomeResponse.model_validate(outcome) if outcome else None,
        effective_status=effective_status(stored, leave.is_on_leave),
        on_leave=leave.is_on_leave,
        leave_type=leave.leave_type,
    )


@router.delete(
    "/{employee_id}/{work_date}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}},
)
async def delete_attendance_day(
    db: DbSession,
    service: Attendance,
    employee_id: Annotated[UUID, Path()],
    work_date: Annotated[date, Path()],
) -> None:
    """Administrative delete of a stored outcome."""
    if not await service.delete_outcome(employee_id, work_date):
        raise NotFoundError("AttendanceOutcome", f"{employee_id}/{work_date}")
    await db.commit()


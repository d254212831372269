"""Payroll API endpoints."""

from datetime import datetime, timezone
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query, status

from attendance_payroll.api.dependencies import ActorId, DbSession, Emitter, Generator, Lifecycle
from attendance_payroll.api.schemas import (
    ApproveManyRequest,
    ErrorResponse,
    MarkPaidRequest,
    PayrollGenerateRequest,
    PayrollGenerateResponse,
    PayrollListResponse,
    PayrollPreviewResponse,
    PayrollRecordResponse,
    PayrollScopeRequest,
    PayrollTotalsResponse,
    SalaryBreakdownResponse,
)
from attendance_payroll.services import PayrollScope

router = APIRouter(prefix="/payroll", tags=["payroll"])


def _scope(payload: PayrollScopeRequest) -> PayrollScope:
    if payload.employee_ids:
        return PayrollScope.employees(payload.employee_ids)
    if payload.department_id is not None:
        return PayrollScope.department(payload.department_id)
    return PayrollScope.all()


# ============================================================================
# Generation
# ============================================================================


@router.post(
    "/generate",
    response_model=PayrollGenerateResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def generate_payroll(
    db: DbSession,
    emitter: Emitter,
    generator: Generator,
    actor_id: ActorId,
    payload: PayrollGenerateRequest,
) -> PayrollGenerateResponse:
    """Generate pending payroll records for a month. All-or-nothing."""
    with emitter.batch():
        records = await generator.generate(
            payload.month, payload.year, _scope(payload), generated_by=actor_id
        )
        await db.commit()
    return PayrollGenerateResponse(
        month=payload.month,
        year=payload.year,
        generated=len(records),
        items=[PayrollRecordResponse.model_validate(r) for r in records],
    )


@router.post(
    "/preview",
    response_model=PayrollPreviewResponse,
    responses={422: {"model": ErrorResponse}},
)
async def preview_payroll(
    generator: Generator,
    payload: PayrollGenerateRequest,
) -> PayrollPreviewResponse:
    """Compute the month's figures without writing anything."""
    breakdowns = await generator.preview(payload.month, payload.year, _scope(payload))
    return PayrollPreviewResponse(
        month=payload.month,
        year=payload.year,
        employees=[SalaryBreakdownResponse.model_validate(b) for b in breakdowns],
        total_gross=sum(b.gross_salary for b in breakdowns),
        total_net=sum(b.net_salary for b in breakdowns),
        computed_at=datetime.now(timezone.utc),
    )


# ============================================================================
# Records
# ============================================================================


@router.get("", response_model=PayrollListResponse)
async def list_payroll(
    lifecycle: Lifecycle,
    month: Annotated[int, Query(ge=1, le=12)],
    year: Annotated[int, Query(ge=2000, le=2100)],
    department_id: UUID | None = None,
    status_filter: Annotated[str | None, Query(alias="status")] = None,
) -> PayrollListResponse:
    """List a month's payroll records with totals."""
    scope = PayrollScope.department(department_id) if department_id else None
    listing = await lifecycle.list_records(month, year, scope=scope, status=status_filter)
    return PayrollListResponse(
        items=[PayrollRecordResponse.model_validate(r) for r in listing.records],
        totals=PayrollTotalsResponse.model_validate(listing.totals),
    )


@router.get(
    "/{record_id}",
    response_model=PayrollRecordResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_payroll_record(
    lifecycle: Lifecycle,
    record_id: Annotated[UUID, Path()],
) -> PayrollRecordResponse:
    return PayrollRecordResponse.model_validate(await lifecycle.get_record(record_id))


# ============================================================================
# Lifecycle
# ============================================================================


@router.post(
    "/approve",
    response_model=list[PayrollRecordResponse],
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def approve_many(
    db: DbSession,
    emitter: Emitter,
    lifecycle: Lifecycle,
    actor_id: ActorId,
    payload: ApproveManyRequest,
) -> list[PayrollRecordResponse]:
    """Approve several pending records at once; any failure approves none."""
    with emitter.batch():
        records = await lifecycle.approve_many(payload.record_ids, approver_id=actor_id)
        await db.commit()
    return [PayrollRecordResponse.model_validate(r) for r in records]


@router.post(
    "/{record_id}/approve",
    response_model=PayrollRecordResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def approve_record(
    db: DbSession,
    emitter: Emitter,
    lifecycle: Lifecycle,
    actor_id: ActorId,
    record_id: Annotated[UUID, Path()],
) -> PayrollRecordResponse:
    """Move a pending record to approved."""
    with emitter.batch():
        record = await lifecycle.approve(record_id, approver_id=actor_id)
        await db.commit()
    return PayrollRecordResponse.model_validate(record)


@router.post(
    "/{record_id}/pay",
    response_model=PayrollRecordResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def mark_paid(
    db: DbSession,
    emitter: Emitter,
    lifecycle: Lifecycle,
    actor_id: ActorId,
    record_id: Annotated[UUID, Path()],
    payload: MarkPaidRequest,
) -> PayrollRecordResponse:
    """Move an approved record to paid."""
    with emitter.batch():
        record = await lifecycle.mark_paid(
            record_id,
            payment_method=payload.payment_method,
            payment_reference=payload.payment_reference,
            paid_by=actor_id,
        )
        await db.commit()
    return PayrollRecordResponse.model_validate(record)

"""Adjustment ledger API endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query, status

from attendance_payroll.api.dependencies import ActorId, DbSession, Emitter, Ledger
from attendance_payroll.api.schemas import (
    ErrorResponse,
    LedgerEntryCreate,
    LedgerEntryListResponse,
    LedgerEntryResponse,
    LedgerEntryUpdate,
)

router = APIRouter(prefix="/ledger", tags=["ledger"])


@router.post(
    "",
    response_model=LedgerEntryResponse,
    status_code=status.HTTP_201_CREATED,
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def add_entry(
    db: DbSession,
    emitter: Emitter,
    ledger: Ledger,
    actor_id: ActorId,
    payload: LedgerEntryCreate,
) -> LedgerEntryResponse:
    """Add a bonus, deduction, overtime or correction entry."""
    with emitter.batch():
        entry = await ledger.add_entry(
            employee_id=payload.employee_id,
            entry_type=payload.entry_type,
            amount=payload.amount,
            reason=payload.reason,
            month=payload.month,
            year=payload.year,
            hours=payload.hours,
            created_by=actor_id,
            direction=payload.direction,
        )
        await db.commit()
    return LedgerEntryResponse.model_validate(entry)


@router.get("", response_model=LedgerEntryListResponse)
async def list_entries(
    ledger: Ledger,
    employee_id: UUID,
    month: Annotated[int, Query(ge=1, le=12)],
    year: Annotated[int, Query(ge=2000, le=2100)],
    entry_type: str | None = None,
    include_applied: bool = True,
) -> LedgerEntryListResponse:
    """List an employee's entries for a period."""
    entries = await ledger.list_entries(
        employee_id, month, year, entry_type=entry_type, include_applied=include_applied
    )
    return LedgerEntryListResponse(
        items=[LedgerEntryResponse.model_validate(e) for e in entries],
        total=len(entries),
    )


@router.get(
    "/{entry_id}",
    response_model=LedgerEntryResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_entry(
    ledger: Ledger,
    entry_id: Annotated[UUID, Path()],
) -> LedgerEntryResponse:
    return LedgerEntryResponse.model_validate(await ledger.get_entry(entry_id))


@router.patch(
    "/{entry_id}",
    response_model=LedgerEntryResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def update_entry(
    db: DbSession,
    ledger: Ledger,
    entry_id: Annotated[UUID, Path()],
    payload: LedgerEntryUpdate,
) -> LedgerEntryResponse:
    """Edit an entry that has not yet been applied to payroll."""
    entry = await ledger.update_entry(
        entry_id,
        amount=payload.amount,
        reason=payload.reason,
        hours=payload.hours,
    )
    await db.commit()
    return LedgerEntryResponse.model_validate(entry)


@router.delete(
    "/{entry_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def delete_entry(
    db: DbSession,
    ledger: Ledger,
    entry_id: Annotated[UUID, Path()],
) -> None:
    """Delete an entry that has not yet been applied to payroll."""
    await ledger.delete_entry(entry_id)
    await db.commit()

"""Leave-approval collaborator.

Leave is reporting precedence, not stored attendance state: an approved
leave is consulted when presenting a day but never written onto the
attendance outcome by this core.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Protocol, runtime_checkable
from uuid import UUID


@dataclass(frozen=True)
class LeaveOverride:
    """Answer from the leave subsystem for one employee-day."""

    is_on_leave: bool
    leave_type: str | None = None
    leave_reference: str | None = None


NO_LEAVE = LeaveOverride(is_on_leave=False)


@runtime_checkable
class LeaveProvider(Protocol):
    """Read-only query against the leave-approval subsystem."""

    async def approved_leave(self, employee_id: UUID, on_date: date) -> LeaveOverride:
        ...


class NoLeaveProvider:
    """Provider used when no leave subsystem is wired in."""

    async def approved_leave(self, employee_id: UUID, on_date: date) -> LeaveOverride:
        return NO_LEAVE


@dataclass
class LeaveSpan:
    employee_id: UUID
    start_date: date
    end_date: date
    leave_type: str = "annual"
    reference: str | None = None

    def covers(self, employee_id: UUID, on_date: date) -> bool:
        return (
            self.employee_id == employee_id
            and self.start_date <= on_date <= self.end_date
        )


@dataclass
class StaticLeaveProvider:
    """In-memory provider over a fixed list of approved leave spans."""

    spans: list[LeaveSpan] = field(default_factory=list)

    def add(self, span: LeaveSpan) -> None:
        self.spans.append(span)

    async def approved_leave(self, employee_id: UUID, on_date: date) -> LeaveOverride:
        for span in self.spans:
            if span.covers(employee_id, on_date):
                return LeaveOverride(
                    is_on_leave=True,
                    leave_type=span.leave_type,
                    leave_reference=span.reference,
                )
        return NO_LEAVE

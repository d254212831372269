"""Attendance commands.

Each mutation of an attendance outcome is a closed, typed command. Any
command may carry ``expected_version``; when set, the command is rejected
with ConcurrentModificationError if the stored outcome has moved on.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from uuid import UUID


@dataclass(frozen=True)
class CheckIn:
    employee_id: UUID
    work_date: date
    observed_at: datetime
    location: str | None = None
    notes: str | None = None
    actor_id: UUID | None = None
    expected_version: int | None = None


@dataclass(frozen=True)
class CheckOut:
    employee_id: UUID
    work_date: date
    observed_at: datetime
    notes: str | None = None
    actor_id: UUID | None = None
    expected_version: int | None = None


@dataclass(frozen=True)
class MarkAbsent:
    employee_id: UUID
    work_date: date
    reason: str
    actor_id: UUID | None = None
    expected_version: int | None = None


@dataclass(frozen=True)
class AddLatency:
    employee_id: UUID
    work_date: date
    minutes: int
    reason: str
    actor_id: UUID | None = None
    expected_version: int | None = None


@dataclass(frozen=True)
class AddEarlyDeparture:
    employee_id: UUID
    work_date: date
    minutes: int
    reason: str
    actor_id: UUID | None = None
    expected_version: int | None = None


@dataclass(frozen=True)
class AddBreak:
    employee_id: UUID
    work_date: date
    minutes: int
    reason: str
    actor_id: UUID | None = None
    expected_version: int | None = None


@dataclass(frozen=True)
class ApproveOvertime:
    employee_id: UUID
    work_date: date
    actor_id: UUID | None = None
    expected_version: int | None = None


@dataclass(frozen=True)
class RejectOvertime:
    employee_id: UUID
    work_date: date
    reason: str | None = None
    actor_id: UUID | None = None
    expected_version: int | None = None


AttendanceCommand = (
    CheckIn
    | CheckOut
    | MarkAbsent
    | AddLatency
    | AddEarlyDeparture
    | AddBreak
    | ApproveOvertime
    | RejectOvertime
)

"""Domain event types for attendance and payroll operations.

All events are:
- Immutable (frozen dataclasses)
- Typed with explicit payloads
- Traceable via metadata
- Serializable for delivery by the notification collaborator
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID, uuid4


class EventCategory(str, Enum):
    """Event categories for routing and filtering."""

    ATTENDANCE = "attendance"
    LEDGER = "ledger"
    PAYROLL = "payroll"


@dataclass(frozen=True)
class EventMetadata:
    """Metadata attached to every domain event."""

    event_id: UUID
    timestamp: datetime
    correlation_id: UUID  # Links events from one operation
    actor_id: UUID | None  # User that triggered, None for system
    source_service: str
    version: int = 1

    @classmethod
    def create(
        cls,
        actor_id: UUID | None = None,
        correlation_id: UUID | None = None,
        source_service: str = "attendance_payroll",
    ) -> EventMetadata:
        """Create metadata with auto-generated fields."""
        return cls(
            event_id=uuid4(),
            timestamp=datetime.now(timezone.utc),
            correlation_id=correlation_id or uuid4(),
            actor_id=actor_id,
            source_service=source_service,
        )


@dataclass(frozen=True)
class DomainEvent:
    """Base class for all domain events."""

    metadata: EventMetadata

    @property
    def event_type(self) -> str:
        """Event type name for routing."""
        return self.__class__.__name__

    @property
    def category(self) -> EventCategory:
        """Event category for filtering."""
        raise NotImplementedError("Subclasses must define category")

    def to_dict(self) -> dict[str, Any]:
        """Serialize event to dictionary."""
        data = _serialize_dict(asdict(self))
        data["event_type"] = self.event_type
        return data

    def to_json(self) -> str:
        """Serialize event to JSON string."""
        return json.dumps(self.to_dict(), default=str)


def _serialize_dict(obj: Any) -> Any:
    """Recursively serialize objects for JSON compatibility."""
    if isinstance(obj, dict):
        return {k: _serialize_dict(v) for k, v in obj.items()}
    elif isinstance(obj, (list, tuple)):
        return [_serialize_dict(v) for v in obj]
    elif isinstance(obj, UUID):
        return str(obj)
    elif isinstance(obj, (datetime, date)):
        return obj.isoformat()
    elif isinstance(obj, Decimal):
        return str(obj)
    elif isinstance(obj, Enum):
        return obj.value
    return obj


# =============================================================================
# Attendance Events
# =============================================================================


@dataclass(frozen=True)
class CheckedIn(DomainEvent):
    """An employee check-in was recorded."""

    employee_id: UUID
    work_date: date
    check_in_at: datetime
    is_late: bool
    late_minutes: int

    @property
    def category(self) -> EventCategory:
        return EventCategory.ATTENDANCE


# =============================================================================
# Ledger Events
# =============================================================================


@dataclass(frozen=True)
class LedgerEntryAdded(DomainEvent):
    """A bonus, deduction, overtime or correction entry was added."""

    entry_id: UUID
    employee_id: UUID
    entry_type: str
    amount: int
    reason: str
    month: int
    year: int

    @property
    def category(self) -> EventCategory:
        return EventCategory.LEDGER


# =============================================================================
# Payroll Events
# =============================================================================


@dataclass(frozen=True)
class PayrollGenerated(DomainEvent):
    """A payroll record was generated for an employee."""

    payroll_record_id: UUID
    employee_id: UUID
    month: int
    year: int
    gross_salary: int
    net_salary: int

    @property
    def category(self) -> EventCategory:
        return EventCategory.PAYROLL


@dataclass(frozen=True)
class PayrollApproved(DomainEvent):
    """A payroll record moved to approved."""

    payroll_record_id: UUID
    employee_id: UUID
    month: int
    year: int
    approved_by: UUID | None

    @property
    def category(self) -> EventCategory:
        return EventCategory.PAYROLL


@dataclass(frozen=True)
class PayrollPaid(DomainEvent):
    """A payroll record was marked paid."""

    payroll_record_id: UUID
    employee_id: UUID
    month: int
    year: int
    net_salary: int
    payment_method: str
    payment_reference: str | None

    @property
    def category(self) -> EventCategory:
        return EventCategory.PAYROLL

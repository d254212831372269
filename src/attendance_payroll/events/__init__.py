"""Domain events handed to the notification collaborator."""

from attendance_payroll.events.emitter import (
    EventBatch,
    EventEmitter,
    EventHandler,
    log_event,
)
from attendance_payroll.events.types import (
    CheckedIn,
    DomainEvent,
    EventCategory,
    EventMetadata,
    LedgerEntryAdded,
    PayrollApproved,
    PayrollGenerated,
    PayrollPaid,
)

__all__ = [
    "EventBatch",
    "EventEmitter",
    "EventHandler",
    "log_event",
    "CheckedIn",
    "DomainEvent",
    "EventCategory",
    "EventMetadata",
    "LedgerEntryAdded",
    "PayrollApproved",
    "PayrollGenerated",
    "PayrollPaid",
]

"""Event emitter for handing domain events to the notification collaborator.

The emitter provides:
- Handler registration with type filtering
- Category-based routing
- Error isolation (handler failures are logged, never raised)
- Event batching so nothing is delivered for a rolled-back transaction
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Protocol, TypeVar, runtime_checkable

from attendance_payroll.events.types import DomainEvent, EventCategory

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=DomainEvent)


@runtime_checkable
class EventHandler(Protocol):
    """Protocol for event handlers."""

    def __call__(self, event: DomainEvent) -> None:
        """Handle a domain event."""
        ...


@dataclass
class HandlerRegistration:
    """Registration of an event handler."""

    handler: EventHandler | Callable[[DomainEvent], None]
    event_types: set[str] | None  # None = all events
    categories: set[EventCategory] | None  # None = all categories


class EventEmitter:
    """Fire-and-forget event emitter.

    Handlers are isolated - if one fails, the failure is logged and the
    others still receive the event. A failing handler never propagates into
    the caller, so notification problems cannot roll back core writes.

    Usage:
        emitter = EventEmitter()
        emitter.on(PayrollGenerated, notify_employee)
        emitter.on_category(EventCategory.PAYROLL, audit_log)

        with emitter.batch():
            records = await generator.generate(3, 2026)
            await session.commit()
        # Events delivered only if the block exits cleanly
    """

    def __init__(self) -> None:
        self._handlers: list[HandlerRegistration] = []
        self._batching = False
        self._batch: list[DomainEvent] = []

    def scoped(self) -> EventEmitter:
        """Emitter sharing this one's handlers but with its own batch state.

        Used per request so concurrent transactions never share a batch.
        """
        child = EventEmitter()
        child._handlers = list(self._handlers)
        return child

    def on(
        self,
        event_type: type[T] | list[type[T]],
        handler: EventHandler | Callable[[Any], None],
    ) -> None:
        """Register handler for specific event type(s)."""
        if isinstance(event_type, list):
            types = {t.__name__ for t in event_type}
        else:
            types = {event_type.__name__}

        self._handlers.append(
            HandlerRegistration(handler=handler, event_types=types, categories=None)
        )

    def on_category(
        self,
        category: EventCategory | list[EventCategory],
        handler: EventHandler | Callable[[Any], None],
    ) -> None:
        """Register handler for event category(ies)."""
        cats = set(category) if isinstance(category, list) else {category}
        self._handlers.append(
            HandlerRegistration(handler=handler, event_types=None, categories=cats)
        )

    def on_all(self, handler: EventHandler | Callable[[Any], None]) -> None:
        """Register handler for all events."""
        self._handlers.append(
            HandlerRegistration(handler=handler, event_types=None, categories=None)
        )

    def emit(self, event: DomainEvent) -> list[Exception]:
        """Emit an event to all matching handlers.

        Returns list of any exceptions raised by handlers.
        """
        if self._batching:
            self._batch.append(event)
            return []

        return self._dispatch(event)

    def _dispatch(self, event: DomainEvent) -> list[Exception]:
        """Dispatch event to matching handlers."""
        errors: list[Exception] = []
        event_type = event.event_type
        event_category = event.category

        for reg in self._handlers:
            if reg.event_types and event_type not in reg.event_types:
                continue
            if reg.categories and event_category not in reg.categories:
                continue

            try:
                reg.handler(event)
            except Exception as e:
                logger.exception(
                    "Handler %s failed for event %s",
                    reg.handler,
                    event_type,
                )
                errors.append(e)

        return errors

    def batch(self) -> EventBatch:
        """Create a batch context for collecting events.

        Events are held until the context exits cleanly, then emitted
        together. If the block raises, the batch is discarded.
        """
        return EventBatch(self)

    def _start_batch(self) -> None:
        self._batching = True
        self._batch = []

    def _end_batch(self) -> list[Exception]:
        self._batching = False
        events = self._batch
        self._batch = []

        errors: list[Exception] = []
        for event in events:
            errors.extend(self._dispatch(event))
        return errors

    def _discard_batch(self) -> None:
        if self._batch:
            logger.info("Discarding %d undelivered event(s) after failure", len(self._batch))
        self._batching = False
        self._batch = []


class EventBatch:
    """Context manager for batching events."""

    def __init__(self, emitter: EventEmitter) -> None:
        self._emitter = emitter
        self._errors: list[Exception] = []

    def __enter__(self) -> EventBatch:
        self._emitter._start_batch()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if exc_type is None:
            self._errors = self._emitter._end_batch()
        else:
            self._emitter._discard_batch()

    @property
    def errors(self) -> list[Exception]:
        """Errors from handler execution (available after context exits)."""
        return self._errors


def log_event(event: DomainEvent) -> None:
    """Default handler: record every event in the application log."""
    logger.info("event %s %s", event.event_type, event.to_json())

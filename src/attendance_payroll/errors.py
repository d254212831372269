"""Error taxonomy for the attendance and payroll core.

Every error carries a stable ``code`` and a ``context`` dict with the entity
id and current state, so callers can decide whether to retry. Nothing here is
retried automatically.
"""

from __future__ import annotations

from typing import Any


class PayrollEngineError(Exception):
    """Base class for all core errors."""

    code = "PAYROLL_ENGINE_ERROR"

    def __init__(self, message: str, **context: Any):
        self.message = message
        self.context = context
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Structured form used by the HTTP layer."""
        return {
            "detail": self.message,
            "code": self.code,
            "context": {k: _jsonable(v) for k, v in self.context.items()},
        }


class ValidationError(PayrollEngineError):
    """Missing or malformed input, rejected before any write."""

    code = "VALIDATION_ERROR"


class NotFoundError(PayrollEngineError):
    """Unknown employee, attendance outcome, ledger entry or payroll record."""

    code = "NOT_FOUND"

    def __init__(self, entity_type: str, entity_id: Any, message: str | None = None):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(
            message or f"{entity_type} {entity_id} not found",
            entity_type=entity_type,
            entity_id=entity_id,
        )


class ImmutableEntryError(PayrollEngineError):
    """Mutation attempted on a ledger entry already folded into payroll."""

    code = "IMMUTABLE_ENTRY"

    def __init__(self, entry_id: Any, payroll_record_id: Any = None):
        self.entry_id = entry_id
        self.payroll_record_id = payroll_record_id
        super().__init__(
            f"Ledger entry {entry_id} has been applied to payroll and can no longer be changed",
            entry_id=entry_id,
            payroll_record_id=payroll_record_id,
        )


class InvalidTransitionError(PayrollEngineError):
    """Raised when an invalid payroll status transition is attempted."""

    code = "INVALID_TRANSITION"

    def __init__(
        self,
        from_status: str,
        to_status: str,
        reason: str | None = None,
        record_id: Any = None,
    ):
        self.from_status = from_status
        self.to_status = to_status
        self.reason = reason
        self.record_id = record_id
        msg = f"Invalid transition from '{from_status}' to '{to_status}'"
        if reason:
            msg += f": {reason}"
        super().__init__(
            msg,
            from_status=from_status,
            to_status=to_status,
            record_id=record_id,
        )


class AlreadyGeneratedError(PayrollEngineError):
    """Payroll already exists for the period within the requested scope."""

    code = "ALREADY_GENERATED"

    def __init__(self, month: int, year: int, existing_count: int | None = None):
        self.month = month
        self.year = year
        self.existing_count = existing_count
        super().__init__(
            f"Payroll for {year:04d}-{month:02d} has already been generated for this scope",
            month=month,
            year=year,
            existing_count=existing_count,
        )


class ConfigError(PayrollEngineError):
    """Missing or malformed schedule/tax configuration. Fatal."""

    code = "CONFIG_ERROR"


class ConcurrentModificationError(PayrollEngineError):
    """Attendance outcome changed since the caller last read it."""

    code = "CONCURRENT_MODIFICATION"

    def __init__(self, entity_id: Any, expected_version: int | None, actual_version: int | None):
        self.entity_id = entity_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"Attendance outcome {entity_id} is at version {actual_version}, "
            f"expected {expected_version}",
            entity_id=entity_id,
            expected_version=expected_version,
            actual_version=actual_version,
        )


class PayrollComputationError(PayrollEngineError):
    """One employee's computation failed; the whole batch is aborted."""

    code = "PAYROLL_COMPUTATION_FAILED"

    def __init__(self, employee_id: Any, reason: str):
        self.employee_id = employee_id
        self.reason = reason
        super().__init__(
            f"Payroll computation failed for employee {employee_id}: {reason}",
            employee_id=employee_id,
        )


def _jsonable(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return str(value)

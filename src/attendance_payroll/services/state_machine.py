"""Payroll record state machine with transition validation."""

from __future__ import annotations

from enum import Enum

from attendance_payroll.errors import InvalidTransitionError


class PayrollStatus(str, Enum):
    """Payroll record status values."""

    PENDING = "pending"
    APPROVED = "approved"
    PAID = "paid"


class PayrollStateMachine:
    """State machine for payroll record status transitions.

    Allowed transitions:
    - pending → approved
    - approved → paid

    There is no reverse edge and no skipping: paid is terminal.
    """

    VALID_TRANSITIONS: dict[str, list[str]] = {
        PayrollStatus.PENDING.value: [PayrollStatus.APPROVED.value],
        PayrollStatus.APPROVED.value: [PayrollStatus.PAID.value],
        PayrollStatus.PAID.value: [],  # Terminal state
    }

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        """Check if a transition is valid."""
        allowed = cls.VALID_TRANSITIONS.get(_value(from_status), [])
        return _value(to_status) in allowed

    @classmethod
    def validate_transition(
        cls, from_status: str, to_status: str, record_id: object = None
    ) -> None:
        """Validate a transition, raising InvalidTransitionError if invalid."""
        if not cls.can_transition(from_status, to_status):
            reason = None
            if from_status == PayrollStatus.PAID:
                reason = "paid records are final"
            elif from_status == PayrollStatus.PENDING and to_status == PayrollStatus.PAID:
                reason = "record must be approved before it is paid"
            raise InvalidTransitionError(
                _value(from_status), _value(to_status), reason, record_id=record_id
            )

    @classmethod
    def get_next_statuses(cls, current_status: str) -> list[str]:
        """Get list of valid next statuses from current status."""
        return cls.VALID_TRANSITIONS.get(_value(current_status), [])

    @classmethod
    def is_terminal(cls, status: str) -> bool:
        return not cls.VALID_TRANSITIONS.get(_value(status), [])


def _value(status: str) -> str:
    return status.value if isinstance(status, PayrollStatus) else str(status)

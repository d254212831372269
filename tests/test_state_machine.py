"""Tests for payroll record state machine."""

import pytest

from attendance_payroll.errors import InvalidTransitionError
from attendance_payroll.services.state_machine import PayrollStateMachine, PayrollStatus


class TestPayrollStateMachine:
    """Test state machine transitions."""

    def test_valid_transitions(self):
        """Test that valid transitions are allowed."""
        # pending → approved
        assert PayrollStateMachine.can_transition("pending", "approved") is True

        # approved → paid
        assert PayrollStateMachine.can_transition("approved", "paid") is True

    def test_invalid_transitions(self):
        """Test that invalid transitions are blocked."""
        # Can't skip approval
        assert PayrollStateMachine.can_transition("pending", "paid") is False

        # Can't go backwards
        assert PayrollStateMachine.can_transition("approved", "pending") is False
        assert PayrollStateMachine.can_transition("paid", "approved") is False

        # Paid is terminal
        assert PayrollStateMachine.can_transition("paid", "pending") is False
        assert PayrollStateMachine.can_transition("paid", "paid") is False

    def test_validate_transition_raises(self):
        """Test that validate_transition raises for invalid transitions."""
        with pytest.raises(InvalidTransitionError) as exc_info:
            PayrollStateMachine.validate_transition("pending", "paid")

        assert exc_info.value.from_status == "pending"
        assert exc_info.value.to_status == "paid"
        assert exc_info.value.code == "INVALID_TRANSITION"

    def test_validate_transition_accepts_enum_values(self):
        PayrollStateMachine.validate_transition(PayrollStatus.PENDING, PayrollStatus.APPROVED)

        with pytest.raises(InvalidTransitionError) as exc_info:
            PayrollStateMachine.validate_transition(PayrollStatus.PAID, PayrollStatus.APPROVED)
        assert exc_info.value.from_status == "paid"
        assert "final" in str(exc_info.value)

    def test_get_next_statuses(self):
        assert PayrollStateMachine.get_next_statuses("pending") == ["approved"]
        assert PayrollStateMachine.get_next_statuses("approved") == ["paid"]
        assert PayrollStateMachine.get_next_statuses("paid") == []

    def test_paid_is_terminal(self):
        assert PayrollStateMachine.is_terminal("paid") is True
        assert PayrollStateMachine.is_terminal("pending") is False

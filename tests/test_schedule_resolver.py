"""Tests for expected schedule resolution."""

from datetime import date, time

import pytest

from attendance_payroll.errors import ConfigError


class TestScheduleResolver:
    async def test_falls_back_to_default(self, resolver, employee):
        schedule = await resolver.resolve(employee.employee_id, date(2026, 3, 10))
        assert schedule.source == "default"
        assert schedule.expected_start == time(9, 0)
        assert schedule.expected_end == time(17, 0)

    async def test_assignment_wins_over_default(self, resolver, employee, make_assignment):
        await make_assignment(employee.employee_id, time(7, 0), time(15, 0))
        schedule = await resolver.resolve(employee.employee_id, date(2026, 3, 10))
        assert schedule.source == "assignment"
        assert schedule.expected_start == time(7, 0)
        assert schedule.standard_minutes == 480

    async def test_latest_effective_assignment_wins(self, resolver, employee, make_assignment):
        await make_assignment(employee.employee_id, time(7, 0), time(15, 0))
        await make_assignment(
            employee.employee_id, time(10, 0), time(18, 0), effective_from=date(2026, 3, 1)
        )
        early = await resolver.resolve(employee.employee_id, date(2026, 2, 27))
        later = await resolver.resolve(employee.employee_id, date(2026, 3, 10))
        assert early.expected_start == time(7, 0)
        assert later.expected_start == time(10, 0)

    async def test_expired_assignment_is_ignored(self, resolver, employee, make_assignment):
        await make_assignment(
            employee.employee_id,
            time(7, 0),
            time(15, 0),
            effective_to=date(2026, 1, 31),
        )
        schedule = await resolver.resolve(employee.employee_id, date(2026, 3, 10))
        assert schedule.source == "default"

    async def test_malformed_assignment_raises_config_error(
        self, resolver, employee, make_assignment
    ):
        await make_assignment(employee.employee_id, time(17, 0), time(9, 0))
        with pytest.raises(ConfigError):
            await resolver.resolve(employee.employee_id, date(2026, 3, 10))

    async def test_expected_window_is_aware(self, resolver, employee):
        window = await resolver.expected_window(employee.employee_id, date(2026, 3, 10))
        assert window.start.tzinfo is not None
        assert (window.end - window.start).total_seconds() == 8 * 3600

"""Employee scope for payroll generation and listing."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any
from uuid import UUID

from attendance_payroll.errors import ValidationError


class ScopeKind(str, Enum):
    ALL = "all"
    DEPARTMENT = "department"
    EMPLOYEES = "employees"


@dataclass(frozen=True)
class PayrollScope:
    """Which employees a payroll operation covers.

    Whether the caller may pick a given scope is decided upstream.
    """

    kind: ScopeKind = ScopeKind.ALL
    department_id: UUID | None = None
    employee_ids: frozenset[UUID] = frozenset()

    @classmethod
    def all(cls) -> PayrollScope:
        return cls()

    @classmethod
    def department(cls, department_id: UUID) -> PayrollScope:
        return cls(kind=ScopeKind.DEPARTMENT, department_id=department_id)

    @classmethod
    def employees(cls, employee_ids: Iterable[UUID]) -> PayrollScope:
        ids = frozenset(employee_ids)
        if not ids:
            raise ValidationError("Employee scope must name at least one employee")
        return cls(kind=ScopeKind.EMPLOYEES, employee_ids=ids)

    def apply(self, query: Any, employee_id_col: Any, department_id_col: Any) -> Any:
        """Restrict a select() to this scope."""
        if self.kind == ScopeKind.DEPARTMENT:
            return query.where(department_id_col == self.department_id)
        if self.kind == ScopeKind.EMPLOYEES:
            return query.where(employee_id_col.in_(sorted(self.employee_ids)))
        return query

    def describe(self) -> dict[str, Any]:
        """JSON-friendly form for audit details."""
        data: dict[str, Any] = {"kind": self.kind.value}
        if self.department_id is not None:
            data["department_id"] = str(self.department_id)
        if self.employee_ids:
            data["employee_ids"] = sorted(str(e) for e in self.employee_ids)
        return data

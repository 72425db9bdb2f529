"""Company roster storage."""
from __future__ import annotations

from typing import Protocol

from workforce.domain import Employee, Role


class DirectoryRepository(Protocol):
    """Persistence contract for the employee roster."""

    def add_employee(self, company_id: int, full_name: str, email: str, role: Role = Role.EMPLOYEE) -> Employee: ...

    def get_employee(self, user_id: int) -> Employee | None: ...

    def list_employees(self, company_id: int) -> list[Employee]: ...

    def reset(self) -> None: ...


class InMemoryDirectoryRepository:
    def __init__(self) -> None:
        self._employees: dict[int, Employee] = {}
        self._counter = 0

    def add_employee(self, company_id: int, full_name: str, email: str, role: Role = Role.EMPLOYEE) -> Employee:
        self._counter += 1
        employee = Employee(id=self._counter, company_id=company_id, full_name=full_name, email=email, role=role)
        self._employees[employee.id] = employee
        return employee

    def get_employee(self, user_id: int) -> Employee | None:
        return self._employees.get(user_id)

    def list_employees(self, company_id: int) -> list[Employee]:
        return [employee for employee in self._employees.values() if employee.company_id == company_id]

    def reset(self) -> None:
        self._employees.clear()
        self._counter = 0

"""Company roster use cases."""
from __future__ import annotations

from workforce.core.errors import NotFoundError, PermissionDenied
from workforce.domain import DomainEvent, Employee, EventType, Role, SessionContext
from workforce.infrastructure import (
    DirectoryRepository,
    EventPublisher,
    InMemoryDirectoryRepository,
    get_broadcaster,
)


class RosterService:
    def __init__(self, repository: DirectoryRepository, publisher: EventPublisher) -> None:
        self._repository = repository
        self._publisher = publisher

    def add_employee(self, company_id: int, full_name: str, email: str, role: Role = Role.EMPLOYEE) -> Employee:
        return self._repository.add_employee(company_id, full_name.strip(), email.strip().lower(), role)

    def list_employees(self, company_id: int) -> list[Employee]:
        return self._repository.list_employees(company_id)

    def get_employee(self, user_id: int) -> Employee | None:
        return self._repository.get_employee(user_id)

    def require_member(self, company_id: int, user_id: int) -> Employee:
        """Return the employee or raise when it does not belong to the company."""

        employee = self._repository.get_employee(user_id)
        if employee is None or employee.company_id != company_id:
            raise NotFoundError(f"employee {user_id} not found")
        return employee

    def change_role(self, session: SessionContext, user_id: int, role: Role) -> Employee:
        if session.role is not Role.ADMIN:
            raise PermissionDenied("Solo los administradores pueden cambiar roles")
        employee = self.require_member(session.company_id, user_id)
        if employee.role is role:
            return employee
        employee.role = role
        self._publisher.publish(
            DomainEvent(
                EventType.ROLE_CHANGED,
                session.company_id,
                {"userId": user_id, "role": role.value},
                recipient_id=user_id,
            )
        )
        return employee

    def display_name(self, user_id: int) -> str:
        employee = self._repository.get_employee(user_id)
        return employee.full_name if employee else f"Usuario {user_id}"

    def reset(self) -> None:
        self._repository.reset()


_repository = InMemoryDirectoryRepository()
_service = RosterService(_repository, get_broadcaster())


def get_roster_service() -> RosterService:
    return _service

"""Authentication context and roster entities."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    EMPLOYEE = "employee"

    @classmethod
    def parse(cls, value: object) -> "Role | None":
        try:
            return cls(str(value))
        except ValueError:
            return None

    @property
    def is_privileged(self) -> bool:
        return self in (Role.ADMIN, Role.MANAGER)


@dataclass(frozen=True, slots=True)
class SessionContext:
    """The authenticated caller of a request or event channel."""

    user_id: int
    company_id: int
    role: Role

    @property
    def is_privileged(self) -> bool:
        return self.role.is_privileged


@dataclass(slots=True)
class Employee:
    id: int
    company_id: int
    full_name: str
    email: str
    role: Role = Role.EMPLOYEE

"""Entities for time tracking, messaging and requests."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime

from .documents import utcnow


@dataclass(slots=True)
class BreakPeriod:
    id: int
    session_id: int
    start: datetime = field(default_factory=utcnow)
    end: datetime | None = None

    @property
    def is_active(self) -> bool:
        return self.end is None


@dataclass(slots=True)
class WorkSession:
    id: int
    user_id: int
    company_id: int
    clock_in: datetime = field(default_factory=utcnow)
    clock_out: datetime | None = None
    breaks: list[BreakPeriod] = field(default_factory=list)

    @property
    def is_active(self) -> bool:
        return self.clock_out is None

    @property
    def active_break(self) -> BreakPeriod | None:
        return next((item for item in self.breaks if item.is_active), None)


@dataclass(slots=True)
class Message:
    id: int
    company_id: int
    sender_id: int
    receiver_id: int
    content: str
    subject: str | None = None
    is_read: bool = False
    created_at: datetime = field(default_factory=utcnow)


@dataclass(slots=True)
class VacationRequest:
    id: int
    company_id: int
    user_id: int
    start_date: date
    end_date: date
    reason: str | None = None
    status: str = "pending"
    admin_comment: str | None = None
    created_at: datetime = field(default_factory=utcnow)


@dataclass(slots=True)
class ModificationRequest:
    id: int
    company_id: int
    user_id: int
    work_date: date
    requested_clock_in: datetime | None = None
    requested_clock_out: datetime | None = None
    reason: str | None = None
    status: str = "pending"
    created_at: datetime = field(default_factory=utcnow)


@dataclass(slots=True)
class DocumentRequest:
    id: int
    company_id: int
    user_id: int
    document_type: str
    message: str | None = None
    is_completed: bool = False
    created_at: datetime = field(default_factory=utcnow)


@dataclass(slots=True)
class WorkReport:
    id: int
    company_id: int
    user_id: int
    location: str
    description: str
    created_at: datetime = field(default_factory=utcnow)


@dataclass(slots=True)
class Reminder:
    id: int
    company_id: int
    created_by: int
    title: str
    assigned_user_ids: list[int] = field(default_factory=list)
    completed_by: set[int] = field(default_factory=set)

    @property
    def all_completed(self) -> bool:
        return bool(self.assigned_user_ids) and set(self.assigned_user_ids) <= self.completed_by

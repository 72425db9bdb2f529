"""Domain layer definitions."""

from .activity import (
    BreakPeriod,
    DocumentRequest,
    Message,
    ModificationRequest,
    Reminder,
    VacationRequest,
    WorkReport,
    WorkSession,
)
from .documents import Artifact, BatchUndoResult, CircularBatch, Document, RecipientStatus
from .events import DomainEvent, EventType
from .sessions import Employee, Role, SessionContext

__all__ = [
    "Artifact",
    "BatchUndoResult",
    "BreakPeriod",
    "CircularBatch",
    "Document",
    "DocumentRequest",
    "DomainEvent",
    "Employee",
    "EventType",
    "Message",
    "ModificationRequest",
    "RecipientStatus",
    "Reminder",
    "Role",
    "SessionContext",
    "VacationRequest",
    "WorkReport",
    "WorkSession",
]

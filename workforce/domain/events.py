"""Domain events pushed over the event channel."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class EventType(str, Enum):
    WORK_SESSION_CREATED = "work_session_created"
    WORK_SESSION_UPDATED = "work_session_updated"
    WORK_SESSION_DELETED = "work_session_deleted"
    VACATION_REQUEST_CREATED = "vacation_request_created"
    VACATION_REQUEST_UPDATED = "vacation_request_updated"
    MODIFICATION_REQUEST_CREATED = "modification_request_created"
    MODIFICATION_REQUEST_UPDATED = "modification_request_updated"
    DOCUMENT_REQUEST_CREATED = "document_request_created"
    DOCUMENT_UPLOADED = "document_uploaded"
    MESSAGE_RECEIVED = "message_received"
    WORK_REPORT_CREATED = "work_report_created"
    REMINDER_ALL_COMPLETED = "reminder_all_completed"
    ROLE_CHANGED = "role_changed"
    # control frames
    CONNECTED = "connected"
    PONG = "pong"


@dataclass(slots=True)
class DomainEvent:
    """Transient event routed to the open channels of a company.

    Events with a ``recipient_id`` are addressed to one user and only reach
    that user's channels (plus the company's admins and managers when
    ``notify_staff`` is set).  Every other event goes to the admins and
    managers of the company.
    """

    type: EventType
    company_id: int
    data: dict[str, Any] = field(default_factory=dict)
    recipient_id: int | None = None
    notify_staff: bool = False

    def to_message(self) -> dict[str, Any]:
        message: dict[str, Any] = {"type": self.type.value, "companyId": self.company_id}
        if self.data:
            message["data"] = self.data
        return message

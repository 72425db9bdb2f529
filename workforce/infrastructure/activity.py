"""Infrastructure layer for time tracking, messages and requests."""
from __future__ import annotations

from collections import defaultdict
from typing import Protocol

from workforce.domain import (
    DocumentRequest,
    Message,
    ModificationRequest,
    Reminder,
    VacationRequest,
    WorkReport,
    WorkSession,
)


class ActivityRepository(Protocol):
    """Persistence contract for workforce activity records."""

    def next_id(self, kind: str) -> int: ...

    def add_session(self, session: WorkSession) -> None: ...

    def get_session(self, session_id: int) -> WorkSession | None: ...

    def delete_session(self, session_id: int) -> WorkSession | None: ...

    def active_session(self, user_id: int) -> WorkSession | None: ...

    def list_sessions(self, company_id: int, *, user_id: int | None = None) -> list[WorkSession]: ...

    def add_message(self, message: Message) -> None: ...

    def list_messages(self, user_id: int) -> list[Message]: ...

    def get_message(self, message_id: int) -> Message | None: ...

    def add_vacation_request(self, request: VacationRequest) -> None: ...

    def get_vacation_request(self, request_id: int) -> VacationRequest | None: ...

    def list_vacation_requests(self, company_id: int, *, user_id: int | None = None) -> list[VacationRequest]: ...

    def add_modification_request(self, request: ModificationRequest) -> None: ...

    def get_modification_request(self, request_id: int) -> ModificationRequest | None: ...

    def list_modification_requests(self, company_id: int) -> list[ModificationRequest]: ...

    def add_document_request(self, request: DocumentRequest) -> None: ...

    def list_document_requests(self, company_id: int, *, user_id: int | None = None) -> list[DocumentRequest]: ...

    def add_work_report(self, report: WorkReport) -> None: ...

    def list_work_reports(self, company_id: int) -> list[WorkReport]: ...

    def add_reminder(self, reminder: Reminder) -> None: ...

    def get_reminder(self, reminder_id: int) -> Reminder | None: ...

    def reset(self) -> None: ...


class InMemoryActivityRepository:
    """Simple in-memory repository for fast iteration and tests."""

    def __init__(self) -> None:
        self._counters: dict[str, int] = defaultdict(int)
        self._sessions: dict[int, WorkSession] = {}
        self._messages: dict[int, Message] = {}
        self._vacations: dict[int, VacationRequest] = {}
        self._modifications: dict[int, ModificationRequest] = {}
        self._document_requests: dict[int, DocumentRequest] = {}
        self._work_reports: dict[int, WorkReport] = {}
        self._reminders: dict[int, Reminder] = {}

    def next_id(self, kind: str) -> int:
        self._counters[kind] += 1
        return self._counters[kind]

    # ------------------------------------------------------------------
    # work sessions
    # ------------------------------------------------------------------
    def add_session(self, session: WorkSession) -> None:
        self._sessions[session.id] = session

    def get_session(self, session_id: int) -> WorkSession | None:
        return self._sessions.get(session_id)

    def delete_session(self, session_id: int) -> WorkSession | None:
        return self._sessions.pop(session_id, None)

    def active_session(self, user_id: int) -> WorkSession | None:
        return next(
            (session for session in self._sessions.values() if session.user_id == user_id and session.is_active),
            None,
        )

    def list_sessions(self, company_id: int, *, user_id: int | None = None) -> list[WorkSession]:
        sessions = [
            session
            for session in self._sessions.values()
            if session.company_id == company_id and (user_id is None or session.user_id == user_id)
        ]
        sessions.sort(key=lambda session: session.clock_in, reverse=True)
        return sessions

    # ------------------------------------------------------------------
    # messages
    # ------------------------------------------------------------------
    def add_message(self, message: Message) -> None:
        self._messages[message.id] = message

    def get_message(self, message_id: int) -> Message | None:
        return self._messages.get(message_id)

    def list_messages(self, user_id: int) -> list[Message]:
        messages = [msg for msg in self._messages.values() if user_id in (msg.sender_id, msg.receiver_id)]
        messages.sort(key=lambda msg: msg.created_at, reverse=True)
        return messages

    # ------------------------------------------------------------------
    # requests
    # ------------------------------------------------------------------
    def add_vacation_request(self, request: VacationRequest) -> None:
        self._vacations[request.id] = request

    def get_vacation_request(self, request_id: int) -> VacationRequest | None:
        return self._vacations.get(request_id)

    def list_vacation_requests(self, company_id: int, *, user_id: int | None = None) -> list[VacationRequest]:
        return [
            request
            for request in self._vacations.values()
            if request.company_id == company_id and (user_id is None or request.user_id == user_id)
        ]

    def add_modification_request(self, request: ModificationRequest) -> None:
        self._modifications[request.id] = request

    def get_modification_request(self, request_id: int) -> ModificationRequest | None:
        return self._modifications.get(request_id)

    def list_modification_requests(self, company_id: int) -> list[ModificationRequest]:
        return [request for request in self._modifications.values() if request.company_id == company_id]

    def add_document_request(self, request: DocumentRequest) -> None:
        self._document_requests[request.id] = request

    def list_document_requests(self, company_id: int, *, user_id: int | None = None) -> list[DocumentRequest]:
        return [
            request
            for request in self._document_requests.values()
            if request.company_id == company_id and (user_id is None or request.user_id == user_id)
        ]

    # ------------------------------------------------------------------
    # reports & reminders
    # ------------------------------------------------------------------
    def add_work_report(self, report: WorkReport) -> None:
        self._work_reports[report.id] = report

    def list_work_reports(self, company_id: int) -> list[WorkReport]:
        return [report for report in self._work_reports.values() if report.company_id == company_id]

    def add_reminder(self, reminder: Reminder) -> None:
        self._reminders[reminder.id] = reminder

    def get_reminder(self, reminder_id: int) -> Reminder | None:
        return self._reminders.get(reminder_id)

    def reset(self) -> None:
        self._counters.clear()
        for store in (
            self._sessions,
            self._messages,
            self._vacations,
            self._modifications,
            self._document_requests,
            self._work_reports,
            self._reminders,
        ):
            store.clear()

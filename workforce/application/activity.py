"""Time tracking, messaging and request use cases.

These are the collaborators whose mutations feed the event channel: every
state change a dashboard cares about is published as a ``DomainEvent`` for
the caller's company.
"""
from __future__ import annotations

from datetime import date, datetime

from workforce.core.errors import NotFoundError, PermissionDenied, PreconditionFailed
from workforce.domain import (
    BreakPeriod,
    DocumentRequest,
    DomainEvent,
    EventType,
    Message,
    ModificationRequest,
    Reminder,
    SessionContext,
    VacationRequest,
    WorkReport,
    WorkSession,
)
from workforce.domain.documents import utcnow
from workforce.infrastructure import (
    ActivityRepository,
    EventPublisher,
    InMemoryActivityRepository,
    get_broadcaster,
)

from .roster import RosterService, get_roster_service

REVIEW_STATUSES = {"approved", "denied"}


class WorkforceService:
    def __init__(self, repository: ActivityRepository, roster: RosterService, publisher: EventPublisher) -> None:
        self._repository = repository
        self._roster = roster
        self._publisher = publisher

    def _emit(
        self,
        session: SessionContext,
        event_type: EventType,
        data: dict | None = None,
        *,
        recipient_id: int | None = None,
        notify_staff: bool = False,
    ) -> None:
        self._publisher.publish(
            DomainEvent(
                event_type,
                session.company_id,
                data or {},
                recipient_id=recipient_id,
                notify_staff=notify_staff,
            )
        )

    @staticmethod
    def _require_privileged(session: SessionContext) -> None:
        if not session.is_privileged:
            raise PermissionDenied("Solo administradores y managers pueden realizar esta acción")

    # ------------------------------------------------------------------
    # clock in / out and breaks
    # ------------------------------------------------------------------
    def active_session(self, session: SessionContext) -> WorkSession | None:
        return self._repository.active_session(session.user_id)

    def clock_in(self, session: SessionContext) -> WorkSession:
        current = self._repository.active_session(session.user_id)
        if current is not None:
            return current
        work_session = WorkSession(
            id=self._repository.next_id("session"),
            user_id=session.user_id,
            company_id=session.company_id,
        )
        self._repository.add_session(work_session)
        self._emit(session, EventType.WORK_SESSION_CREATED, {"sessionId": work_session.id, "userId": session.user_id})
        return work_session

    def clock_out(self, session: SessionContext) -> WorkSession:
        current = self._repository.active_session(session.user_id)
        if current is None:
            raise PreconditionFailed("No hay ninguna jornada activa")
        now = utcnow()
        active_break = current.active_break
        if active_break is not None:
            active_break.end = now
        current.clock_out = now
        self._emit(session, EventType.WORK_SESSION_UPDATED, {"sessionId": current.id, "userId": session.user_id})
        return current

    def start_break(self, session: SessionContext) -> WorkSession:
        current = self._repository.active_session(session.user_id)
        if current is None:
            raise PreconditionFailed("Debes fichar la entrada antes de iniciar un descanso")
        if current.active_break is None:
            current.breaks.append(BreakPeriod(id=self._repository.next_id("break"), session_id=current.id))
            self._emit(session, EventType.WORK_SESSION_UPDATED, {"sessionId": current.id, "userId": session.user_id})
        return current

    def end_break(self, session: SessionContext) -> WorkSession:
        current = self._repository.active_session(session.user_id)
        if current is None or current.active_break is None:
            raise PreconditionFailed("No hay ningún descanso activo")
        current.active_break.end = utcnow()
        self._emit(session, EventType.WORK_SESSION_UPDATED, {"sessionId": current.id, "userId": session.user_id})
        return current

    def list_sessions(self, session: SessionContext) -> list[WorkSession]:
        if session.is_privileged:
            return self._repository.list_sessions(session.company_id)
        return self._repository.list_sessions(session.company_id, user_id=session.user_id)

    def delete_session(self, session: SessionContext, session_id: int) -> WorkSession:
        self._require_privileged(session)
        work_session = self._repository.get_session(session_id)
        if work_session is None or work_session.company_id != session.company_id:
            raise NotFoundError(f"work session {session_id} not found")
        self._repository.delete_session(session_id)
        self._emit(session, EventType.WORK_SESSION_DELETED, {"sessionId": session_id, "userId": work_session.user_id})
        return work_session

    # ------------------------------------------------------------------
    # messages
    # ------------------------------------------------------------------
    def send_message(self, session: SessionContext, receiver_id: int, content: str, subject: str | None = None) -> Message:
        if not content.strip():
            raise ValueError("content is required")
        self._roster.require_member(session.company_id, receiver_id)
        message = Message(
            id=self._repository.next_id("message"),
            company_id=session.company_id,
            sender_id=session.user_id,
            receiver_id=receiver_id,
            content=content.strip(),
            subject=subject,
        )
        self._repository.add_message(message)
        self._emit(
            session,
            EventType.MESSAGE_RECEIVED,
            {
                "messageId": message.id,
                "senderName": self._roster.display_name(session.user_id),
                "receiverId": receiver_id,
            },
            recipient_id=receiver_id,
        )
        return message

    def list_messages(self, session: SessionContext) -> list[Message]:
        return self._repository.list_messages(session.user_id)

    def unread_count(self, session: SessionContext) -> int:
        return sum(
            1 for message in self._repository.list_messages(session.user_id)
            if message.receiver_id == session.user_id and not message.is_read
        )

    def mark_message_read(self, session: SessionContext, message_id: int) -> Message:
        message = self._repository.get_message(message_id)
        if message is None or session.user_id not in (message.sender_id, message.receiver_id):
            raise NotFoundError(f"message {message_id} not found")
        if message.receiver_id == session.user_id:
            message.is_read = True
        return message

    # ------------------------------------------------------------------
    # vacation & modification requests
    # ------------------------------------------------------------------
    def request_vacation(self, session: SessionContext, start_date: date, end_date: date, reason: str | None = None) -> VacationRequest:
        if end_date < start_date:
            raise ValueError("end_date must not be before start_date")
        request = VacationRequest(
            id=self._repository.next_id("vacation"),
            company_id=session.company_id,
            user_id=session.user_id,
            start_date=start_date,
            end_date=end_date,
            reason=reason,
        )
        self._repository.add_vacation_request(request)
        self._emit(
            session,
            EventType.VACATION_REQUEST_CREATED,
            {
                "requestId": request.id,
                "employeeName": self._roster.display_name(session.user_id),
                "startDate": start_date.isoformat(),
                "endDate": end_date.isoformat(),
            },
        )
        return request

    def review_vacation(self, session: SessionContext, request_id: int, status: str, comment: str | None = None) -> VacationRequest:
        self._require_privileged(session)
        if status not in REVIEW_STATUSES:
            raise ValueError("status must be approved or denied")
        request = self._repository.get_vacation_request(request_id)
        if request is None or request.company_id != session.company_id:
            raise NotFoundError(f"vacation request {request_id} not found")
        request.status = status
        request.admin_comment = comment
        self._emit(session, EventType.VACATION_REQUEST_UPDATED, {"requestId": request.id, "status": status})
        return request

    def list_vacation_requests(self, session: SessionContext) -> list[VacationRequest]:
        if session.is_privileged:
            return self._repository.list_vacation_requests(session.company_id)
        return self._repository.list_vacation_requests(session.company_id, user_id=session.user_id)

    def request_modification(
        self,
        session: SessionContext,
        work_date: date,
        requested_clock_in: datetime | None,
        requested_clock_out: datetime | None,
        reason: str | None = None,
    ) -> ModificationRequest:
        if requested_clock_in is None and requested_clock_out is None:
            raise ValueError("at least one of clock_in or clock_out is required")
        if requested_clock_in and requested_clock_out and requested_clock_out < requested_clock_in:
            raise ValueError("clock_out must not be before clock_in")
        request = ModificationRequest(
            id=self._repository.next_id("modification"),
            company_id=session.company_id,
            user_id=session.user_id,
            work_date=work_date,
            requested_clock_in=requested_clock_in,
            requested_clock_out=requested_clock_out,
            reason=reason,
        )
        self._repository.add_modification_request(request)
        self._emit(
            session,
            EventType.MODIFICATION_REQUEST_CREATED,
            {"requestId": request.id, "employeeName": self._roster.display_name(session.user_id)},
        )
        return request

    def review_modification(self, session: SessionContext, request_id: int, status: str) -> ModificationRequest:
        self._require_privileged(session)
        if status not in REVIEW_STATUSES:
            raise ValueError("status must be approved or denied")
        request = self._repository.get_modification_request(request_id)
        if request is None or request.company_id != session.company_id:
            raise NotFoundError(f"modification request {request_id} not found")
        request.status = status
        self._emit(session, EventType.MODIFICATION_REQUEST_UPDATED, {"requestId": request.id, "status": status})
        return request

    def list_modification_requests(self, session: SessionContext) -> list[ModificationRequest]:
        self._require_privileged(session)
        return self._repository.list_modification_requests(session.company_id)

    # ------------------------------------------------------------------
    # document requests, work reports, reminders
    # ------------------------------------------------------------------
    def request_document(self, session: SessionContext, user_id: int, document_type: str, message: str | None = None) -> DocumentRequest:
        self._require_privileged(session)
        self._roster.require_member(session.company_id, user_id)
        request = DocumentRequest(
            id=self._repository.next_id("document_request"),
            company_id=session.company_id,
            user_id=user_id,
            document_type=document_type,
            message=message,
        )
        self._repository.add_document_request(request)
        self._emit(
            session,
            EventType.DOCUMENT_REQUEST_CREATED,
            {"requestId": request.id, "userId": user_id, "documentType": document_type},
            recipient_id=user_id,
            notify_staff=True,
        )
        return request

    def list_document_requests(self, session: SessionContext) -> list[DocumentRequest]:
        if session.is_privileged:
            return self._repository.list_document_requests(session.company_id)
        return self._repository.list_document_requests(session.company_id, user_id=session.user_id)

    def submit_work_report(self, session: SessionContext, location: str, description: str) -> WorkReport:
        if not location.strip():
            raise ValueError("location is required")
        report = WorkReport(
            id=self._repository.next_id("work_report"),
            company_id=session.company_id,
            user_id=session.user_id,
            location=location.strip(),
            description=description,
        )
        self._repository.add_work_report(report)
        self._emit(
            session,
            EventType.WORK_REPORT_CREATED,
            {"reportId": report.id, "employeeName": self._roster.display_name(session.user_id), "location": report.location},
        )
        return report

    def list_work_reports(self, session: SessionContext) -> list[WorkReport]:
        self._require_privileged(session)
        return self._repository.list_work_reports(session.company_id)

    def create_reminder(self, session: SessionContext, title: str, assigned_user_ids: list[int]) -> Reminder:
        self._require_privileged(session)
        for user_id in assigned_user_ids:
            self._roster.require_member(session.company_id, user_id)
        reminder = Reminder(
            id=self._repository.next_id("reminder"),
            company_id=session.company_id,
            created_by=session.user_id,
            title=title,
            assigned_user_ids=list(dict.fromkeys(assigned_user_ids)),
        )
        self._repository.add_reminder(reminder)
        return reminder

    def complete_reminder(self, session: SessionContext, reminder_id: int) -> Reminder:
        reminder = self._repository.get_reminder(reminder_id)
        if reminder is None or reminder.company_id != session.company_id:
            raise NotFoundError(f"reminder {reminder_id} not found")
        if session.user_id not in reminder.assigned_user_ids:
            raise PermissionDenied("Este recordatorio no está asignado a ti")
        was_completed = reminder.all_completed
        reminder.completed_by.add(session.user_id)
        if reminder.all_completed and not was_completed:
            self._emit(
                session,
                EventType.REMINDER_ALL_COMPLETED,
                {"reminderId": reminder.id, "title": reminder.title, "completedCount": len(reminder.completed_by)},
            )
        return reminder

    def reset(self) -> None:
        self._repository.reset()


_repository = InMemoryActivityRepository()
_service = WorkforceService(_repository, get_roster_service(), get_broadcaster())


def get_workforce_service() -> WorkforceService:
    """Return the singleton workforce service for the process."""

    return _service

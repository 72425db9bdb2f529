import sys
from datetime import date
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from workforce.application.activity import WorkforceService
from workforce.application.roster import RosterService
from workforce.core.errors import NotFoundError, PermissionDenied, PreconditionFailed
from workforce.domain import DomainEvent, EventType, Role, SessionContext
from workforce.infrastructure import InMemoryActivityRepository, InMemoryDirectoryRepository


class RecordingPublisher:
    def __init__(self) -> None:
        self.events: list[DomainEvent] = []

    def publish(self, event: DomainEvent) -> int:
        self.events.append(event)
        return 1

    def types(self) -> list[EventType]:
        return [event.type for event in self.events]


@pytest.fixture()
def publisher():
    return RecordingPublisher()


@pytest.fixture()
def service(publisher):
    roster = RosterService(InMemoryDirectoryRepository(), publisher)
    roster.add_employee(1, "Admin Root", "admin@example.com", Role.ADMIN)
    roster.add_employee(1, "Ana López", "ana@example.com")
    roster.add_employee(1, "Luis Gómez", "luis@example.com")
    roster.add_employee(2, "Other Company", "other@example.com")
    return WorkforceService(InMemoryActivityRepository(), roster, publisher)


ADMIN = SessionContext(user_id=1, company_id=1, role=Role.ADMIN)
ANA = SessionContext(user_id=2, company_id=1, role=Role.EMPLOYEE)
LUIS = SessionContext(user_id=3, company_id=1, role=Role.EMPLOYEE)


def test_clock_in_is_idempotent_and_clock_out_closes_the_break(service, publisher):
    first = service.clock_in(ANA)
    again = service.clock_in(ANA)
    assert first is again

    service.start_break(ANA)
    service.start_break(ANA)
    assert len(first.breaks) == 1

    closed = service.clock_out(ANA)

    assert closed.clock_out is not None
    assert closed.breaks[0].end is not None
    assert service.active_session(ANA) is None
    assert publisher.types() == [
        EventType.WORK_SESSION_CREATED,
        EventType.WORK_SESSION_UPDATED,
        EventType.WORK_SESSION_UPDATED,
    ]
    assert publisher.events[0].data == {"sessionId": first.id, "userId": 2}


def test_break_and_clock_out_require_an_open_session(service):
    with pytest.raises(PreconditionFailed):
        service.start_break(ANA)
    with pytest.raises(PreconditionFailed):
        service.clock_out(ANA)
    service.clock_in(ANA)
    with pytest.raises(PreconditionFailed):
        service.end_break(ANA)


def test_employees_only_see_their_own_sessions(service):
    service.clock_in(ANA)
    service.clock_in(LUIS)

    assert [item.user_id for item in service.list_sessions(ANA)] == [2]
    assert sorted(item.user_id for item in service.list_sessions(ADMIN)) == [2, 3]
    with pytest.raises(PermissionDenied):
        service.delete_session(ANA, 1)


def test_messages_are_counted_and_marked_read(service, publisher):
    message = service.send_message(ANA, 3, "  ¿Mañana a las 8?  ")

    assert message.content == "¿Mañana a las 8?"
    assert service.unread_count(LUIS) == 1
    assert service.unread_count(ANA) == 0
    assert publisher.events[-1].data == {"messageId": message.id, "senderName": "Ana López", "receiverId": 3}
    assert publisher.events[-1].recipient_id == 3

    service.mark_message_read(LUIS, message.id)
    assert service.unread_count(LUIS) == 0
    with pytest.raises(NotFoundError):
        service.mark_message_read(ADMIN, message.id)


def test_message_to_another_company_is_rejected(service):
    with pytest.raises(NotFoundError):
        service.send_message(ANA, 4, "hola")


def test_vacation_request_event_and_review(service, publisher):
    request = service.request_vacation(ANA, date(2025, 8, 1), date(2025, 8, 15), "Verano")

    assert publisher.events[-1].type is EventType.VACATION_REQUEST_CREATED
    assert publisher.events[-1].data["startDate"] == "2025-08-01"
    assert publisher.events[-1].data["employeeName"] == "Ana López"

    with pytest.raises(PermissionDenied):
        service.review_vacation(LUIS, request.id, "approved")
    with pytest.raises(ValueError):
        service.review_vacation(ADMIN, request.id, "maybe")

    reviewed = service.review_vacation(ADMIN, request.id, "approved", "Disfruta")
    assert reviewed.status == "approved"
    assert publisher.events[-1].type is EventType.VACATION_REQUEST_UPDATED
    with pytest.raises(ValueError):
        service.request_vacation(ANA, date(2025, 8, 15), date(2025, 8, 1))


def test_reminder_completion_is_announced_once(service, publisher):
    reminder = service.create_reminder(ADMIN, "Revisar EPIs", [2, 3, 2])
    assert reminder.assigned_user_ids == [2, 3]

    service.complete_reminder(ANA, reminder.id)
    assert EventType.REMINDER_ALL_COMPLETED not in publisher.types()

    service.complete_reminder(LUIS, reminder.id)
    service.complete_reminder(LUIS, reminder.id)

    completed = [event for event in publisher.events if event.type is EventType.REMINDER_ALL_COMPLETED]
    assert len(completed) == 1
    assert completed[0].data == {"reminderId": reminder.id, "title": "Revisar EPIs", "completedCount": 2}

    with pytest.raises(PermissionDenied):
        service.complete_reminder(ADMIN, reminder.id)


def test_work_report_and_document_request(service, publisher):
    report = service.submit_work_report(ANA, " Obra Calle Mayor ", "Instalación terminada")
    assert publisher.events[-1].data == {"reportId": report.id, "employeeName": "Ana López", "location": "Obra Calle Mayor"}

    with pytest.raises(PermissionDenied):
        service.request_document(ANA, 3, "DNI")
    service.request_document(ADMIN, 3, "DNI", "Necesitamos una copia")

    assert publisher.events[-1].type is EventType.DOCUMENT_REQUEST_CREATED
    assert publisher.events[-1].recipient_id == 3
    assert publisher.events[-1].notify_staff is True
    assert [item.user_id for item in service.list_document_requests(LUIS)] == [3]
    assert service.list_document_requests(ANA) == []

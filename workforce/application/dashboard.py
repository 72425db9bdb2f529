"""Consolidated admin dashboard summary."""
from __future__ import annotations

from workforce.core.schema import (
    DashboardSummary,
    DocumentRequestOut,
    EmployeeOut,
    MessageOut,
    VacationRequestOut,
    WorkSessionOut,
)
from workforce.domain import SessionContext

from .activity import WorkforceService, get_workforce_service
from .roster import RosterService, get_roster_service

RECENT_SESSIONS_LIMIT = 10
RECENT_MESSAGES_LIMIT = 20


class DashboardService:
    def __init__(self, roster: RosterService, workforce: WorkforceService) -> None:
        self._roster = roster
        self._workforce = workforce

    def summary(self, session: SessionContext) -> DashboardSummary:
        """Everything the admin dashboard shows, in one object.

        The dashboard reads this single entry instead of polling each list on
        its own; the event channel invalidates it on every relevant change.
        """

        sessions = self._workforce.list_sessions(session)
        vacations = self._workforce.list_vacation_requests(session)
        modifications = self._workforce.list_modification_requests(session)
        messages = self._workforce.list_messages(session)

        return DashboardSummary(
            employees=[EmployeeOut.model_validate(item) for item in self._roster.list_employees(session.company_id)],
            active_sessions=[WorkSessionOut.model_validate(item) for item in sessions if item.is_active],
            recent_sessions=[WorkSessionOut.model_validate(item) for item in sessions[:RECENT_SESSIONS_LIMIT]],
            messages=[MessageOut.model_validate(item) for item in messages[:RECENT_MESSAGES_LIMIT]],
            vacation_requests=[VacationRequestOut.model_validate(item) for item in vacations],
            document_requests=[
                DocumentRequestOut.model_validate(item) for item in self._workforce.list_document_requests(session)
            ],
            unread_messages=self._workforce.unread_count(session),
            pending_vacation_requests=sum(1 for item in vacations if item.status == "pending"),
            pending_modification_requests=sum(1 for item in modifications if item.status == "pending"),
        )


_service = DashboardService(get_roster_service(), get_workforce_service())


def get_dashboard_service() -> DashboardService:
    return _service

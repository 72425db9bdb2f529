"""Application services."""

from .activity import WorkforceService, get_workforce_service
from .dashboard import DashboardService, get_dashboard_service
from .documents import DocumentService, get_document_service
from .roster import RosterService, get_roster_service


def reset_application_state() -> None:
    """Clear every in-memory store; used between tests."""

    get_document_service().reset()
    get_workforce_service().reset()
    get_roster_service().reset()


__all__ = [
    "DashboardService",
    "DocumentService",
    "RosterService",
    "WorkforceService",
    "get_dashboard_service",
    "get_document_service",
    "get_roster_service",
    "get_workforce_service",
    "reset_application_state",
]

"""Identifiers of the cached server queries a client keeps warm."""
from __future__ import annotations

from enum import Enum


class CacheKey(str, Enum):
    COMPANY_WORK_SESSIONS = "work-sessions/company"
    ACTIVE_WORK_SESSION = "work-sessions/active"
    DASHBOARD_SUMMARY = "admin/dashboard/summary"
    VACATION_REQUESTS = "vacation-requests"
    COMPANY_VACATION_REQUESTS = "vacation-requests/company"
    MODIFICATION_REQUESTS = "modification-requests"
    MESSAGES = "messages"
    UNREAD_MESSAGE_COUNT = "messages/unread-count"
    DOCUMENTS = "documents"
    ALL_DOCUMENTS = "documents/all"
    DOCUMENT_NOTIFICATIONS = "document-notifications"
    WORK_REPORTS = "work-reports"
    REMINDERS = "reminders"

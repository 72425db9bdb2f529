"""Routing of inbound event frames to cache invalidations and notifications.

``INVALIDATION_MAP`` is the single place that decides which cached queries
an event makes stale.  It is keyed by ``EventType`` and checked for
completeness when the module is imported, so a new event type cannot be
added without deciding its cache impact (``NOTIFICATION_ONLY`` is the
explicit "none").
"""
from __future__ import annotations

import logging
from datetime import date
from typing import Any, Callable, Hashable, Mapping, Protocol

from pydantic import ValidationError

from workforce.core.errors import MalformedEventError
from workforce.core.schema import EventFrame
from workforce.domain import EventType

from .keys import CacheKey
from .notifications import Notification, NotificationCenter

logger = logging.getLogger(__name__)

NOTIFICATION_ONLY: frozenset[CacheKey] = frozenset()

_WORK_SESSION_KEYS = frozenset(
    {CacheKey.COMPANY_WORK_SESSIONS, CacheKey.ACTIVE_WORK_SESSION, CacheKey.DASHBOARD_SUMMARY}
)
_VACATION_KEYS = frozenset(
    {CacheKey.VACATION_REQUESTS, CacheKey.COMPANY_VACATION_REQUESTS, CacheKey.DASHBOARD_SUMMARY}
)
_MODIFICATION_KEYS = frozenset({CacheKey.MODIFICATION_REQUESTS, CacheKey.DASHBOARD_SUMMARY})

INVALIDATION_MAP: dict[EventType, frozenset[CacheKey]] = {
    EventType.WORK_SESSION_CREATED: _WORK_SESSION_KEYS,
    EventType.WORK_SESSION_UPDATED: _WORK_SESSION_KEYS,
    EventType.WORK_SESSION_DELETED: _WORK_SESSION_KEYS,
    EventType.VACATION_REQUEST_CREATED: _VACATION_KEYS,
    EventType.VACATION_REQUEST_UPDATED: _VACATION_KEYS,
    EventType.MODIFICATION_REQUEST_CREATED: _MODIFICATION_KEYS,
    EventType.MODIFICATION_REQUEST_UPDATED: _MODIFICATION_KEYS,
    EventType.MESSAGE_RECEIVED: frozenset(
        {CacheKey.MESSAGES, CacheKey.UNREAD_MESSAGE_COUNT, CacheKey.DASHBOARD_SUMMARY}
    ),
    EventType.DOCUMENT_UPLOADED: frozenset({CacheKey.DOCUMENTS, CacheKey.ALL_DOCUMENTS, CacheKey.DASHBOARD_SUMMARY}),
    EventType.DOCUMENT_REQUEST_CREATED: frozenset({CacheKey.DOCUMENT_NOTIFICATIONS, CacheKey.DASHBOARD_SUMMARY}),
    EventType.WORK_REPORT_CREATED: frozenset({CacheKey.WORK_REPORTS, CacheKey.DASHBOARD_SUMMARY}),
    EventType.REMINDER_ALL_COMPLETED: frozenset({CacheKey.REMINDERS, CacheKey.DASHBOARD_SUMMARY}),
    EventType.ROLE_CHANGED: NOTIFICATION_ONLY,
    EventType.CONNECTED: NOTIFICATION_ONLY,
    EventType.PONG: NOTIFICATION_ONLY,
}

CONTROL_EVENTS: frozenset[EventType] = frozenset({EventType.CONNECTED, EventType.PONG})

# Event types an employee channel reacts to; everything else is dropped.
EMPLOYEE_EVENTS: frozenset[EventType] = frozenset(
    {EventType.MESSAGE_RECEIVED, EventType.DOCUMENT_REQUEST_CREATED, EventType.ROLE_CHANGED}
)


def _check_exhaustive(table: Mapping[EventType, frozenset[CacheKey]]) -> None:
    missing = [event_type.value for event_type in EventType if event_type not in table]
    if missing:
        raise RuntimeError(f"invalidation map has no entry for: {', '.join(missing)}")


_check_exhaustive(INVALIDATION_MAP)


class Invalidator(Protocol):
    def invalidate(self, key: Hashable) -> bool: ...


# ----------------------------------------------------------------------
# notifications
# ----------------------------------------------------------------------
def _format_day(value: Any) -> str:
    try:
        return date.fromisoformat(str(value)[:10]).strftime("%d/%m/%Y")
    except ValueError:
        return str(value)


def _message_notification(data: dict[str, Any]) -> Notification:
    return Notification("💬 Nuevo mensaje", f"{data.get('senderName')} te ha enviado un mensaje")


def _document_notification(data: dict[str, Any]) -> Notification:
    request_type = data.get("requestType")
    suffix = f" ({request_type})" if request_type else ""
    return Notification("📄 Documento subido", f"{data.get('employeeName')} ha subido un documento{suffix}")


def _work_report_notification(data: dict[str, Any]) -> Notification:
    return Notification(
        "📋 Nuevo parte de trabajo",
        f"{data.get('employeeName')} ha enviado un parte desde {data.get('location')}",
    )


def _reminder_notification(data: dict[str, Any]) -> Notification:
    return Notification(
        "✅ Recordatorio completado",
        f"Todos ({data.get('completedCount')}) han completado: {data.get('title')}",
    )


def _vacation_notification(data: dict[str, Any]) -> Notification:
    employee_name = data.get("employeeName")
    if not employee_name:
        return Notification("📋 Nueva solicitud de vacaciones", "Se ha recibido una nueva solicitud de vacaciones")
    start, end = data.get("startDate"), data.get("endDate")
    period = f" del {_format_day(start)} al {_format_day(end)}" if start and end else ""
    return Notification("📋 Nueva solicitud de vacaciones", f"{employee_name} ha solicitado vacaciones{period}")


NOTIFICATION_BUILDERS: dict[EventType, Callable[[dict[str, Any]], Notification]] = {
    EventType.MESSAGE_RECEIVED: _message_notification,
    EventType.DOCUMENT_UPLOADED: _document_notification,
    EventType.WORK_REPORT_CREATED: _work_report_notification,
    EventType.REMINDER_ALL_COMPLETED: _reminder_notification,
    EventType.VACATION_REQUEST_CREATED: _vacation_notification,
}


# ----------------------------------------------------------------------
# dispatcher
# ----------------------------------------------------------------------
def parse_frame(raw: str | bytes) -> EventFrame:
    try:
        return EventFrame.model_validate_json(raw)
    except ValidationError as exc:
        raise MalformedEventError(f"invalid event frame: {exc.error_count()} error(s)", raw) from exc


class EventDispatcher:
    """Applies inbound frames to a query registry, strictly in arrival order."""

    def __init__(
        self,
        registry: Invalidator,
        notifications: NotificationCenter | None = None,
        *,
        allowed_events: frozenset[EventType] | None = None,
    ) -> None:
        self._registry = registry
        self._notifications = notifications
        self._allowed = allowed_events
        self.dropped = 0

    def dispatch(self, raw: str | bytes) -> EventType | None:
        """Handle one frame; returns the applied event type or ``None`` when dropped."""

        try:
            frame = parse_frame(raw)
        except MalformedEventError as exc:
            self.dropped += 1
            logger.warning("Dropping malformed event frame: %s", exc)
            return None

        try:
            event_type = EventType(frame.type)
        except ValueError:
            self.dropped += 1
            logger.warning("Ignoring unknown event type %r", frame.type)
            return None

        if self._allowed is not None and event_type not in self._allowed:
            logger.debug("Event %s is not delivered to this channel", event_type.value)
            return None

        for key in INVALIDATION_MAP[event_type]:
            try:
                self._registry.invalidate(key)
            except Exception:
                logger.exception("Invalidating %r after %s failed", key, event_type.value)

        builder = NOTIFICATION_BUILDERS.get(event_type)
        if builder is not None and frame.data and self._notifications is not None:
            try:
                self._notifications.notify(builder(frame.data))
            except Exception:
                logger.exception("Notification for %s failed", event_type.value)
        return event_type

"""Client-side synchronisation of cached server state."""

from .api import BatchUndoReport, WorkforceApiClient, register_queries
from .channel import ChannelState, NoOpChannel, ReconnectPolicy, SessionChannel, open_channel
from .dispatch import EMPLOYEE_EVENTS, INVALIDATION_MAP, NOTIFICATION_ONLY, EventDispatcher
from .keys import CacheKey
from .notifications import ExpiringValue, Notification, NotificationCenter
from .registry import EntryHandle, QueryPolicy, QueryRegistry, QuerySnapshot

__all__ = [
    "BatchUndoReport",
    "CacheKey",
    "ChannelState",
    "EMPLOYEE_EVENTS",
    "EntryHandle",
    "EventDispatcher",
    "ExpiringValue",
    "INVALIDATION_MAP",
    "NOTIFICATION_ONLY",
    "NoOpChannel",
    "Notification",
    "NotificationCenter",
    "QueryPolicy",
    "QueryRegistry",
    "QuerySnapshot",
    "ReconnectPolicy",
    "SessionChannel",
    "WorkforceApiClient",
    "open_channel",
    "register_queries",
]

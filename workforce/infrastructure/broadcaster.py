"""Fan-out of domain events to the open event channels.

Every authenticated socket gets its own outbound queue.  Publishing only
enqueues, so application services can emit events from request handlers
without awaiting slow clients; the socket endpoint drains the queue.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

from workforce.domain import DomainEvent, Role

logger = logging.getLogger(__name__)


class EventPublisher(Protocol):
    """Contract used by services to emit domain events."""

    def publish(self, event: DomainEvent) -> int: ...


@dataclass(eq=False)
class ChannelConnection:
    user_id: int
    company_id: int
    role: Role
    queue: asyncio.Queue = field(default_factory=asyncio.Queue)
    closed: bool = False

    def offer(self, payload: dict[str, Any]) -> bool:
        if self.closed:
            return False
        self.queue.put_nowait(payload)
        return True


class EventBroadcaster:
    def __init__(self) -> None:
        self._by_company: dict[int, set[ChannelConnection]] = {}
        self._by_user: dict[int, set[ChannelConnection]] = {}

    def register(self, connection: ChannelConnection) -> None:
        self._by_company.setdefault(connection.company_id, set()).add(connection)
        self._by_user.setdefault(connection.user_id, set()).add(connection)
        logger.info(
            "Event channel connected: user_id=%s company_id=%s role=%s",
            connection.user_id,
            connection.company_id,
            connection.role.value,
        )

    def unregister(self, connection: ChannelConnection) -> None:
        connection.closed = True
        for index, key in ((self._by_company, connection.company_id), (self._by_user, connection.user_id)):
            members = index.get(key)
            if members is None:
                continue
            members.discard(connection)
            if not members:
                del index[key]
        logger.info("Event channel disconnected: user_id=%s company_id=%s", connection.user_id, connection.company_id)

    def broadcast_to_company(self, company_id: int, payload: dict[str, Any], *, staff_only: bool = False) -> int:
        connections = [
            connection
            for connection in self._by_company.get(company_id, ())
            if not staff_only or connection.role.is_privileged
        ]
        sent = sum(1 for connection in connections if connection.offer(payload))
        logger.info("Broadcast to company %s: %s (%s clients)", company_id, payload.get("type"), sent)
        return sent

    def send_to_user(self, user_id: int, payload: dict[str, Any]) -> int:
        connections = list(self._by_user.get(user_id, ()))
        sent = sum(1 for connection in connections if connection.offer(payload))
        if not sent:
            logger.info("No event channel open for user %s", user_id)
        return sent

    def publish(self, event: DomainEvent) -> int:
        payload = event.to_message()
        recipient = event.recipient_id
        if recipient is None:
            return self.broadcast_to_company(event.company_id, payload, staff_only=True)

        sent = self.send_to_user(recipient, payload)
        if event.notify_staff:
            staff = [
                connection
                for connection in self._by_company.get(event.company_id, ())
                if connection.role.is_privileged and connection.user_id != recipient
            ]
            sent += sum(1 for connection in staff if connection.offer(payload))
        return sent

    def company_client_count(self, company_id: int) -> int:
        return len(self._by_company.get(company_id, ()))

    def is_user_connected(self, user_id: int) -> bool:
        return bool(self._by_user.get(user_id))

    def reset(self) -> None:
        for members in list(self._by_company.values()):
            for connection in members:
                connection.closed = True
        self._by_company.clear()
        self._by_user.clear()


_broadcaster = EventBroadcaster()


def get_broadcaster() -> EventBroadcaster:
    """Return the process-wide broadcaster used by the event endpoint."""

    return _broadcaster

"""Authenticated event channel keeping a client's cached queries fresh.

The channel connects to ``/ws/work-sessions?token=...`` and hands every
inbound frame to an ``EventDispatcher``.  A failed or dropped connection is
never reported to the caller: the channel backs off and reconnects while
cached queries keep refreshing on their own polling policy.
"""
from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Protocol
from urllib.parse import urlencode, urlparse, urlunparse

from websockets.asyncio.client import connect
from websockets.exceptions import ConnectionClosed, WebSocketException

from workforce.core.errors import ChannelConnectionError
from workforce.domain import Role

from .dispatch import CONTROL_EVENTS, EMPLOYEE_EVENTS, EventDispatcher
from .notifications import NotificationCenter
from .registry import QueryRegistry

logger = logging.getLogger(__name__)

CHANNEL_PATH = "/ws/work-sessions"

_CONNECT_ERRORS = (OSError, asyncio.TimeoutError, WebSocketException, ChannelConnectionError)
_RECEIVE_ERRORS = (ConnectionClosed, OSError, ChannelConnectionError)


class ChannelState(str, Enum):
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"
    RECONNECTING = "reconnecting"


@dataclass(frozen=True, slots=True)
class ReconnectPolicy:
    initial_delay: float = 1.0
    factor: float = 2.0
    max_delay: float = 30.0
    max_attempts: int | None = None

    def delay(self, attempt: int) -> float:
        """Delay before reconnect ``attempt`` (1-based)."""

        return min(self.max_delay, self.initial_delay * self.factor ** (attempt - 1))


class Connection(Protocol):
    async def send(self, message: str) -> None: ...

    async def recv(self) -> str | bytes: ...

    async def close(self) -> None: ...


Connector = Callable[[str], Awaitable[Connection]]


async def websocket_connector(url: str) -> Connection:
    return await connect(url)


def build_channel_url(base_url: str, token: str) -> str:
    parsed = urlparse(base_url)
    scheme = "wss" if parsed.scheme in {"https", "wss"} else "ws"
    return urlunparse((scheme, parsed.netloc, CHANNEL_PATH, "", urlencode({"token": token}), ""))


class NoOpChannel:
    """Returned when there is no usable session; nothing is ever connected."""

    def __init__(self, user_id: int | None = None, role: Role | None = None) -> None:
        self.user_id = user_id
        self.role = role
        self.state = ChannelState.CLOSED

    def start(self) -> None:
        return None

    async def ping(self) -> bool:
        return False

    async def teardown(self) -> None:
        return None


class SessionChannel:
    def __init__(
        self,
        url: str,
        dispatcher: EventDispatcher,
        *,
        role: Role,
        user_id: int | None = None,
        connector: Connector = websocket_connector,
        reconnect: ReconnectPolicy | None = ReconnectPolicy(),
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.url = url
        self.role = role
        self.user_id = user_id
        self.state = ChannelState.CLOSED
        self.connections_opened = 0
        self._dispatcher = dispatcher
        self._connector = connector
        self._reconnect = reconnect
        self._sleep = sleep
        self._connection: Connection | None = None
        self._task: asyncio.Task | None = None
        self._closing = False

    def start(self) -> asyncio.Task:
        """Begin connecting; calling it again while running reuses the same task."""

        if self._task is not None and not self._task.done():
            return self._task
        self._closing = False
        self.state = ChannelState.CONNECTING
        self._task = asyncio.get_running_loop().create_task(self._run())
        return self._task

    async def ping(self) -> bool:
        connection = self._connection
        if connection is None:
            return False
        await connection.send(json.dumps({"type": "ping"}))
        return True

    async def teardown(self) -> None:
        """Close the socket and stop reconnecting; safe to call repeatedly."""

        self._closing = True
        connection = self._connection
        if connection is not None:
            try:
                await connection.close()
            except _CONNECT_ERRORS as exc:
                logger.info("Error while closing event channel: %s", exc)
        task = self._task
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._connection = None
        self.state = ChannelState.CLOSED

    # ------------------------------------------------------------------
    # connection loop
    # ------------------------------------------------------------------
    async def _run(self) -> None:
        failures = 0
        while not self._closing:
            self.state = ChannelState.CONNECTING
            try:
                connection = await self._connector(self.url)
            except _CONNECT_ERRORS as exc:
                logger.warning("Event channel connection failed: %s", exc)
            else:
                failures = 0
                await self._serve(connection)

            if self._closing:
                break
            policy = self._reconnect
            if policy is None or (policy.max_attempts is not None and failures >= policy.max_attempts):
                logger.info("Event channel closed; falling back to polling only")
                break
            failures += 1
            delay = policy.delay(failures)
            self.state = ChannelState.RECONNECTING
            logger.info("Event channel reconnecting in %.1fs (attempt %s)", delay, failures)
            await self._sleep(delay)
        self.state = ChannelState.CLOSED

    async def _serve(self, connection: Connection) -> None:
        self._connection = connection
        self.connections_opened += 1
        self.state = ChannelState.OPEN
        self._on_open()
        try:
            while True:
                raw = await connection.recv()
                self._dispatcher.dispatch(raw)
        except _RECEIVE_ERRORS as exc:
            self._on_close(exc)
        finally:
            self._connection = None

    def _on_open(self) -> None:
        logger.info("Event channel connected: user_id=%s role=%s", self.user_id, self.role.value)

    def _on_close(self, reason: BaseException) -> None:
        # Reconnection is decided by _run once this handler has returned.
        logger.info("Event channel disconnected: %s", reason)


def open_channel(
    base_url: str,
    token: str | None,
    role: str | Role | None,
    registry: QueryRegistry,
    *,
    notifications: NotificationCenter | None = None,
    user_id: int | None = None,
    connector: Connector = websocket_connector,
    reconnect: ReconnectPolicy | None = ReconnectPolicy(),
) -> SessionChannel | NoOpChannel:
    """Open the event channel for a signed-in session.

    Must be called from a running event loop.  Without a token or with an
    unknown role a ``NoOpChannel`` is returned and nothing is connected.
    Employees only react to the events addressed to them.
    """

    parsed_role = Role.parse(role.value if isinstance(role, Role) else role)
    if not token or parsed_role is None:
        logger.info("Event channel disabled: missing token or unknown role")
        return NoOpChannel(user_id, parsed_role)

    allowed = None if parsed_role.is_privileged else EMPLOYEE_EVENTS | CONTROL_EVENTS
    dispatcher = EventDispatcher(registry, notifications, allowed_events=allowed)
    channel = SessionChannel(
        build_channel_url(base_url, token),
        dispatcher,
        role=parsed_role,
        user_id=user_id,
        connector=connector,
        reconnect=reconnect,
    )
    channel.start()
    return channel

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_DURATION = 8.0


@dataclass(frozen=True, slots=True)
class Notification:
    title: str
    description: str
    duration: float = DEFAULT_DURATION
    variant: str = "default"


class ExpiringValue(Generic[T]):
    """A value that disappears after a delay, backed by at most one timer."""

    def __init__(self, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._value: T | None = None
        self._expires_at: float | None = None
        self._timer: asyncio.TimerHandle | None = None

    @property
    def value(self) -> T | None:
        if self._expires_at is not None and self._clock() >= self._expires_at:
            self.cancel()
        return self._value

    @property
    def has_timer(self) -> bool:
        return self._timer is not None

    def set(self, value: T, ttl: float) -> None:
        self._cancel_timer()
        self._value = value
        self._expires_at = self._clock() + ttl
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        self._timer = loop.call_later(ttl, self._clear)

    def cancel(self) -> None:
        self._cancel_timer()
        self._value = None
        self._expires_at = None

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _clear(self) -> None:
        self._timer = None
        self._value = None
        self._expires_at = None


def _log_sink(notification: Notification) -> None:
    logger.info("%s - %s", notification.title, notification.description)


class NotificationCenter:
    """Delivers notifications to a sink and keeps the current one visible for its duration."""

    def __init__(
        self,
        sink: Callable[[Notification], None] | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._sink = sink or _log_sink
        self.current: ExpiringValue[Notification] = ExpiringValue(clock=clock)

    def notify(self, notification: Notification) -> None:
        self.current.set(notification, notification.duration)
        self._sink(notification)

    def close(self) -> None:
        self.current.cancel()

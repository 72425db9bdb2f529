"""Client-side cache of server queries with freshness policies.

Each entry owns an async fetcher and a ``QueryPolicy``.  Entries become
stale either by age (``stale_time``) or by explicit invalidation coming from
the event channel or from a mutation.  Reads never block and never raise:
they return the last known data together with its state and, when a loop is
running, schedule a refetch for stale entries.
"""
from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Hashable

logger = logging.getLogger(__name__)

Fetcher = Callable[[], Awaitable[Any]]
Listener = Callable[[Hashable, "QuerySnapshot"], None]


@dataclass(frozen=True, slots=True)
class QueryPolicy:
    stale_time: float = 0.0
    refetch_interval: float | None = None
    background_refetch_allowed: bool = False
    depends_on: Hashable | None = None


@dataclass(frozen=True, slots=True)
class QuerySnapshot:
    data: Any = None
    is_stale: bool = True
    is_loading: bool = False
    error: BaseException | None = None


class _Entry:
    __slots__ = (
        "key",
        "fetcher",
        "policy",
        "data",
        "has_data",
        "error",
        "fetched_at",
        "attempted_at",
        "invalidated",
        "generation",
        "task",
        "fetch_count",
    )

    def __init__(self, key: Hashable, fetcher: Fetcher, policy: QueryPolicy) -> None:
        self.key = key
        self.fetcher = fetcher
        self.policy = policy
        self.data: Any = None
        self.has_data = False
        self.error: BaseException | None = None
        self.fetched_at: float | None = None
        self.attempted_at: float | None = None
        self.invalidated = False
        self.generation = 0
        self.task: asyncio.Task | None = None
        self.fetch_count = 0

    @property
    def is_loading(self) -> bool:
        return self.task is not None and not self.task.done()


class EntryHandle:
    """Convenience view over one registered key."""

    def __init__(self, registry: "QueryRegistry", key: Hashable) -> None:
        self._registry = registry
        self.key = key

    def read(self) -> QuerySnapshot:
        return self._registry.read(self.key)

    def invalidate(self) -> bool:
        return self._registry.invalidate(self.key)

    async def refresh(self) -> QuerySnapshot:
        return await self._registry.refresh(self.key)


class QueryRegistry:
    def __init__(self, *, clock: Callable[[], float] = time.monotonic, poll_tick: float = 1.0) -> None:
        self._entries: dict[Hashable, _Entry] = {}
        self._listeners: list[Listener] = []
        self._focused = True
        self._clock = clock
        self._poll_tick = poll_tick
        self._poll_task: asyncio.Task | None = None

    # ------------------------------------------------------------------
    # registration & observers
    # ------------------------------------------------------------------
    def register(self, key: Hashable, fetcher: Fetcher, policy: QueryPolicy | None = None) -> EntryHandle:
        if key in self._entries:
            raise ValueError(f"query {key!r} is already registered")
        self._entries[key] = _Entry(key, fetcher, policy or QueryPolicy())
        return EntryHandle(self, key)

    def is_registered(self, key: Hashable) -> bool:
        return key in self._entries

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener(key, snapshot)`` on every state change; returns the unsubscribe function."""

        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, entry: _Entry) -> None:
        snapshot = self._snapshot(entry)
        for listener in list(self._listeners):
            try:
                listener(entry.key, snapshot)
            except Exception:
                logger.exception("Query listener failed for %r", entry.key)

    # ------------------------------------------------------------------
    # state
    # ------------------------------------------------------------------
    def _is_stale(self, entry: _Entry) -> bool:
        if entry.invalidated or entry.fetched_at is None:
            return True
        return self._clock() - entry.fetched_at >= entry.policy.stale_time

    def _snapshot(self, entry: _Entry) -> QuerySnapshot:
        return QuerySnapshot(
            data=entry.data,
            is_stale=self._is_stale(entry),
            is_loading=entry.is_loading,
            error=entry.error,
        )

    def stale_keys(self) -> frozenset[Hashable]:
        return frozenset(key for key, entry in self._entries.items() if self._is_stale(entry))

    def fetch_count(self, key: Hashable) -> int:
        return self._entries[key].fetch_count

    def read(self, key: Hashable) -> QuerySnapshot:
        entry = self._entries.get(key)
        if entry is None:
            return QuerySnapshot()
        snapshot = self._snapshot(entry)
        if snapshot.is_stale and not snapshot.is_loading:
            self._schedule(entry)
            snapshot = self._snapshot(entry)
        return snapshot

    # ------------------------------------------------------------------
    # invalidation & fetching
    # ------------------------------------------------------------------
    def invalidate(self, key: Hashable) -> bool:
        """Mark ``key`` dirty; returns ``False`` when unknown or already dirty."""

        entry = self._entries.get(key)
        if entry is None:
            return False
        newly_invalidated = not entry.invalidated
        if newly_invalidated or entry.is_loading:
            # an in-flight fetch may predate this event
            entry.generation += 1
        if newly_invalidated:
            entry.invalidated = True
            self._notify(entry)
        if self._focused or entry.policy.background_refetch_allowed:
            self._schedule(entry)
        return newly_invalidated

    async def refresh(self, key: Hashable) -> QuerySnapshot:
        """Fetch ``key`` now (joining an in-flight fetch) and return the result."""

        entry = self._entries[key]
        self._schedule(entry)
        task = entry.task
        if task is not None:
            await task
        return self._snapshot(entry)

    def _dependency_ready(self, entry: _Entry) -> bool:
        prerequisite = entry.policy.depends_on
        if prerequisite is None:
            return True
        other = self._entries.get(prerequisite)
        return other is not None and other.has_data

    def _schedule(self, entry: _Entry) -> None:
        if entry.is_loading or not self._dependency_ready(entry):
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        entry.attempted_at = self._clock()
        entry.task = loop.create_task(self._fetch(entry))
        self._notify(entry)

    async def _fetch(self, entry: _Entry) -> None:
        generation = entry.generation
        entry.fetch_count += 1
        try:
            data = await entry.fetcher()
        except Exception as exc:
            entry.error = exc
            logger.warning("Fetching %r failed: %s", entry.key, exc)
        else:
            entry.data = data
            entry.has_data = True
            entry.error = None
            entry.fetched_at = self._clock()
            if entry.generation == generation:
                entry.invalidated = False
        finally:
            entry.task = None

        self._notify(entry)
        if entry.generation != generation:
            # invalidated while the request was in flight
            self._schedule(entry)
        for dependent in self._entries.values():
            if dependent.policy.depends_on == entry.key and self._is_stale(dependent):
                self._schedule(dependent)

    # ------------------------------------------------------------------
    # focus & polling
    # ------------------------------------------------------------------
    @property
    def focused(self) -> bool:
        return self._focused

    def set_focused(self, focused: bool) -> None:
        was_focused = self._focused
        self._focused = focused
        if focused and not was_focused:
            for entry in self._entries.values():
                if self._is_stale(entry):
                    self._schedule(entry)

    def _poll_once(self) -> None:
        now = self._clock()
        for entry in list(self._entries.values()):
            interval = entry.policy.refetch_interval
            if interval is None:
                continue
            if not self._focused and not entry.policy.background_refetch_allowed:
                continue
            if entry.attempted_at is None or now - entry.attempted_at >= interval:
                self._schedule(entry)

    async def _poll(self) -> None:
        while True:
            self._poll_once()
            await asyncio.sleep(self._poll_tick)

    def start_polling(self) -> asyncio.Task:
        if self._poll_task is None or self._poll_task.done():
            self._poll_task = asyncio.get_running_loop().create_task(self._poll())
        return self._poll_task

    def stop_polling(self) -> None:
        if self._poll_task is not None:
            self._poll_task.cancel()
            self._poll_task = None

    async def aclose(self) -> None:
        self.stop_polling()
        tasks = [entry.task for entry in self._entries.values() if entry.task is not None]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

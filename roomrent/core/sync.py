"""
Live queries: a keyed query cache kept fresh by polling and change-feed pushes.

Every view the service exposes is a ``LiveQuery``: a query key, a fetch
coroutine, a poll interval and the change-feed subscriptions whose events make
the view stale. Mutations invalidate key prefixes on the shared ``QueryCache``;
any live query under an invalidated prefix refetches out of band, sooner than
its next poll tick.
"""
from __future__ import annotations

import asyncio
import inspect
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Generic, List, Optional, Sequence, Tuple, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
QueryKey = Tuple[Any, ...]
InvalidationWatcher = Callable[[Tuple[QueryKey, ...]], None]


def key_matches(key: QueryKey, prefix: QueryKey) -> bool:
    """True when ``prefix`` is a leading slice of ``key``."""
    return tuple(key[:len(prefix)]) == tuple(prefix)


@dataclass
class CacheEntry:
    data: Any
    updated_at: float
    stale: bool = False


@dataclass(frozen=True)
class ChangeFeed:
    """
    A change-feed subscription descriptor.

    Listens to every insert/update/delete on ``table``, optionally narrowed to
    rows where ``column`` equals ``value``, and invalidates ``invalidates``
    key prefixes when an event arrives.
    """
    table: str
    invalidates: Tuple[QueryKey, ...] = ()
    column: Optional[str] = None
    value: Optional[str] = None

    @property
    def filter_expression(self) -> Optional[str]:
        if self.column is None:
            return None
        return f"{self.column}=eq.{self.value}"


class QueryCache:
    """
    Query results keyed by ``(kind, *params)`` tuples.

    One cache per client context; entries for different users never share a
    key because user-scoped keys carry the user id.

    Live queries ``hold`` their key while mounted. When the last holder
    releases a key its entry is dropped, and ``prune`` drops unheld entries
    that have not been written for a while.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self.clock = clock
        self._entries: Dict[QueryKey, CacheEntry] = {}
        self._holders: Dict[QueryKey, int] = {}
        self._watchers: List[InvalidationWatcher] = []

    def get(self, key: QueryKey) -> Optional[CacheEntry]:
        return self._entries.get(key)

    def set(self, key: QueryKey, data: Any) -> None:
        self._entries[key] = CacheEntry(data=data, updated_at=self.clock())

    def keys(self) -> List[QueryKey]:
        return list(self._entries)

    async def fetch(
        self,
        key: QueryKey,
        fetcher: Callable[[], Awaitable[T]],
        max_age: Optional[float] = None,
    ) -> T:
        """
        Return fresh cached data for ``key`` or fetch and store it.

        With ``max_age`` an entry older than that many seconds counts as
        stale; ``max_age=0`` always fetches.
        """
        entry = self._entries.get(key)
        if entry is not None and not entry.stale:
            if max_age is None or self.clock() - entry.updated_at < max_age:
                return entry.data
        data = await fetcher()
        self.set(key, data)
        return data

    def hold(self, key: QueryKey) -> None:
        self._holders[key] = self._holders.get(key, 0) + 1

    def release(self, key: QueryKey) -> None:
        """Drop one hold on ``key``; the entry goes with the last one."""
        remaining = self._holders.get(key, 0) - 1
        if remaining > 0:
            self._holders[key] = remaining
            return
        self._holders.pop(key, None)
        self._entries.pop(key, None)

    def prune(self, max_idle: float) -> int:
        """Drop unheld entries last written more than ``max_idle`` seconds ago."""
        cutoff = self.clock() - max_idle
        doomed = [
            key for key, entry in self._entries.items()
            if key not in self._holders and entry.updated_at < cutoff
        ]
        for key in doomed:
            del self._entries[key]
        return len(doomed)

    def invalidate(self, *prefixes: QueryKey) -> List[QueryKey]:
        """
        Mark every entry under any of ``prefixes`` stale and tell the watchers.

        All prefixes are applied before any watcher runs, so one mutation's
        invalidations land together.
        """
        stale = []
        for key, entry in self._entries.items():
            if any(key_matches(key, prefix) for prefix in prefixes):
                entry.stale = True
                stale.append(key)

        for watcher in list(self._watchers):
            try:
                watcher(prefixes)
            except Exception as e:
                logger.error(f"Invalidation watcher failed: {e}", exc_info=True)

        logger.debug(f"Invalidated {prefixes}: {len(stale)} cached entries stale")
        return stale

    def watch(self, watcher: InvalidationWatcher) -> Callable[[], None]:
        """Register an invalidation watcher; returns the function that removes it."""
        self._watchers.append(watcher)

        def unwatch():
            if watcher in self._watchers:
                self._watchers.remove(watcher)

        return unwatch

    def clear_user(self, user_id: str) -> int:
        """Drop every entry keyed by ``user_id``."""
        doomed = [key for key in self._entries if user_id in key]
        for key in doomed:
            del self._entries[key]
        return len(doomed)

    def clear(self) -> None:
        self._entries.clear()
        self._holders.clear()


UpdateListener = Callable[["LiveQuery"], Any]


class LiveQuery(Generic[T]):
    """
    One cached query kept fresh while it is mounted.

    ``start`` mounts it: the first fetch, the poll loop, the change-feed
    channel and the cache watch. ``stop`` unmounts it and tears all of those
    down; a background fetch still in flight when it stops is cancelled. A disabled
    query (for instance one waiting on an owner id) never fetches and never
    subscribes, and reports ``initial`` as its data.
    """

    def __init__(
        self,
        cache: QueryCache,
        backend,
        key: QueryKey,
        fetcher: Callable[[], Awaitable[T]],
        poll_interval: Optional[float] = None,
        feeds: Sequence[ChangeFeed] = (),
        enabled: bool = True,
        initial: Optional[T] = None,
    ):
        self.cache = cache
        self.backend = backend
        self.key = tuple(key)
        self.fetcher = fetcher
        self.poll_interval = poll_interval
        self.feeds = tuple(feeds)
        self.enabled = enabled
        self.initial = initial

        self.error: Optional[Exception] = None
        self.fetch_count = 0

        self._active = False
        self._listeners: List[UpdateListener] = []
        self._poll_task: Optional[asyncio.Task] = None
        self._inflight: Optional[asyncio.Task] = None
        self._rerun = False
        self._subscription = None
        self._unwatch: Optional[Callable[[], None]] = None

    @property
    def name(self) -> str:
        return "-".join(str(part) for part in self.key if not isinstance(part, tuple))

    @property
    def data(self) -> Optional[T]:
        entry = self.cache.get(self.key)
        if not self.enabled or entry is None:
            return self.initial
        return entry.data

    @property
    def is_active(self) -> bool:
        return self._active

    def on_update(self, listener: UpdateListener) -> None:
        """Call ``listener(query)`` after every completed fetch (success or error)."""
        self._listeners.append(listener)

    async def start(self) -> "LiveQuery[T]":
        if self._active:
            return self
        self._active = True
        if not self.enabled:
            await self._notify()
            return self

        self.cache.hold(self.key)
        self._unwatch = self.cache.watch(self._on_invalidate)
        await self.refetch()

        if self.poll_interval:
            self._poll_task = asyncio.create_task(self._poll_loop())

        if self.feeds:
            try:
                self._subscription = await self.backend.subscribe(self.name, self.feeds, self._on_change)
            except Exception as e:
                # polling keeps the view consistent without the push channel
                logger.warning(f"Change feed unavailable for {self.name}, relying on polling: {e}")

        logger.debug(f"Live query {self.key} started")
        return self

    async def stop(self) -> None:
        if not self._active:
            return
        self._active = False

        if self._unwatch is not None:
            self._unwatch()
            self._unwatch = None
            self.cache.release(self.key)

        for task in (self._poll_task, self._inflight):
            if task is None or task.done() or task is asyncio.current_task():
                continue
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._poll_task = None
        self._inflight = None

        if self._subscription is not None:
            try:
                await self.backend.unsubscribe(self._subscription)
            except Exception as e:
                logger.warning(f"Failed to remove change feed for {self.name}: {e}")
            self._subscription = None

        logger.debug(f"Live query {self.key} stopped")

    async def refetch(self) -> Optional[T]:
        """Run the fetch now and publish the result to the cache and listeners."""
        self.fetch_count += 1
        try:
            data = await self.fetcher()
        except Exception as e:
            if not self._active:
                return None
            self.error = e
            logger.warning(f"Live query {self.key} fetch failed: {e}")
            await self._notify()
            return None

        if not self._active:
            return None

        self.error = None
        self.cache.set(self.key, data)
        await self._notify()
        return data

    def schedule_refetch(self) -> None:
        """Refetch in the background; triggers arriving mid-fetch coalesce into one more run."""
        if not self._active or not self.enabled:
            return
        if self._inflight is not None and not self._inflight.done():
            self._rerun = True
            return
        self._inflight = asyncio.get_running_loop().create_task(self._run_refetch())

    async def _run_refetch(self) -> None:
        while True:
            self._rerun = False
            await self.refetch()
            if not (self._rerun and self._active):
                break

    async def _poll_loop(self) -> None:
        while self._active:
            await asyncio.sleep(self.poll_interval)
            self.schedule_refetch()

    def _on_invalidate(self, prefixes: Tuple[QueryKey, ...]) -> None:
        if any(key_matches(self.key, prefix) for prefix in prefixes):
            self.schedule_refetch()

    def _on_change(self, feed: ChangeFeed, payload: Dict[str, Any]) -> None:
        logger.debug(f"Change on {feed.table} for {self.name}")
        self.cache.invalidate(*feed.invalidates)

    async def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                result = listener(self)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(f"Live query listener failed for {self.key}: {e}", exc_info=True)

    async def __aenter__(self) -> "LiveQuery[T]":
        return await self.start()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

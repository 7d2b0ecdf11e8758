"""Client context: the backend handle and query cache shared by one running instance."""
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional
import asyncio
import logging
import time
import weakref

from roomrent.config.database import BackendClient, create_backend_client
from roomrent.config.settings import Settings
from roomrent.core.sync import QueryCache

logger = logging.getLogger(__name__)


@dataclass
class SessionHandle:
    access_token: str
    backend: BackendClient
    last_used: float


class ClientContext:
    """
    Explicitly constructed ambient state.

    Created once when the application starts (``create``) and closed on
    shutdown. Request handlers and live views receive it by injection; nothing
    reaches for a module-level client.

    Session-scoped clients and unmounted cache entries idle for longer than
    ``SESSION_IDLE_TIMEOUT`` are dropped the next time a session is resolved.
    """

    def __init__(
        self,
        settings: Settings,
        backend: BackendClient,
        cache: Optional[QueryCache] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.settings = settings
        self.backend = backend
        self.clock = clock
        self.cache = cache or QueryCache(clock=clock)
        self._sessions: Dict[str, SessionHandle] = {}
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    @classmethod
    async def create(cls, settings: Settings) -> "ClientContext":
        backend = await create_backend_client(settings)
        logger.info(f"Client context ready for {settings.SUPABASE_URL}")
        return cls(settings, backend)

    @property
    def session_users(self) -> List[str]:
        return list(self._sessions)

    def _lock_for(self, user_id: str) -> asyncio.Lock:
        lock = self._locks.get(user_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[user_id] = lock
        return lock

    async def session_backend(self, user_id: str, access_token: str) -> BackendClient:
        """Backend handle acting as ``user_id``; reused while the token stays the same."""
        await self.expire_idle()

        async with self._lock_for(user_id):
            handle = self._sessions.get(user_id)
            if handle is not None and handle.access_token == access_token:
                handle.last_used = self.clock()
                return handle.backend

            backend = await self.backend.for_session(access_token)
            self._sessions[user_id] = SessionHandle(access_token, backend, self.clock())
            if handle is not None:
                await handle.backend.close()
            return backend

    async def expire_idle(self) -> None:
        """Close session clients and prune cache entries idle past the timeout."""
        timeout = self.settings.SESSION_IDLE_TIMEOUT
        cutoff = self.clock() - timeout
        idle = [user_id for user_id, handle in self._sessions.items() if handle.last_used < cutoff]
        for user_id in idle:
            handle = self._sessions.pop(user_id, None)
            if handle is not None:
                await handle.backend.close()
        pruned = self.cache.prune(timeout)
        if idle or pruned:
            logger.debug(f"Expired {len(idle)} idle sessions and {pruned} cached queries")

    async def logout(self, user_id: str) -> None:
        """Forget the user's session handle and every cached query keyed by them."""
        removed = self.cache.clear_user(user_id)
        handle = self._sessions.pop(user_id, None)
        if handle is not None:
            await handle.backend.close()
        logger.info(f"Logged out {user_id}: dropped {removed} cached queries")

    async def close(self) -> None:
        for handle in list(self._sessions.values()):
            await handle.backend.close()
        self._sessions.clear()
        self.cache.clear()
        await self.backend.close()
        logger.info("Client context closed")

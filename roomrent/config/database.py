"""Supabase client facade: auth, tables, RPC, storage and the change feed."""
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Sequence, TYPE_CHECKING
import logging
import uuid

from supabase import AsyncClient, AsyncClientOptions, acreate_client

from roomrent.config.settings import Settings
from roomrent.core.exceptions import BackendError

if TYPE_CHECKING:
    from roomrent.core.sync import ChangeFeed

logger = logging.getLogger(__name__)


@dataclass
class SessionUser:
    """Authenticated user as reported by Supabase auth."""
    id: str
    email: Optional[str] = None
    user_metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Subscription:
    """Handle for an open change-feed channel."""
    name: str
    channel: Any


ChangeHandler = Callable[["ChangeFeed", Dict[str, Any]], None]


class BackendClient:
    """
    Single configured handle to the Supabase project.

    Access layers only talk to Supabase through this class so that the
    backend can be swapped for an in-memory double in tests.
    """

    def __init__(
        self,
        client: AsyncClient,
        url: str,
        key: str,
        schema: str = "public",
        access_token: Optional[str] = None,
    ):
        self._client = client
        self.url = url
        self.key = key
        self.schema = schema
        self.access_token = access_token

    # Auth

    async def get_user(self, access_token: str) -> Optional[SessionUser]:
        """Resolve an access token to its user, or None if it is not valid."""
        if not access_token:
            return None
        try:
            response = await self._client.auth.get_user(access_token)
        except Exception as e:
            logger.warning(f"Supabase auth failed: {e}")
            return None

        if not response or not response.user:
            return None

        user = response.user
        return SessionUser(
            id=user.id,
            email=user.email,
            user_metadata=getattr(user, "user_metadata", None) or {},
        )

    async def for_session(self, access_token: str) -> "BackendClient":
        """
        Get a client carrying the user's JWT so row-level security applies.
        This creates a client instance for this session only.
        """
        client = await acreate_client(self.url, self.key, options=AsyncClientOptions(schema=self.schema))
        client.options.headers["Authorization"] = f"Bearer {access_token}"
        client.postgrest.auth(access_token)
        await client.realtime.set_auth(access_token)
        logger.debug("Created session-scoped Supabase client")
        return BackendClient(client, self.url, self.key, schema=self.schema, access_token=access_token)

    # Tables and functions

    def table(self, name: str):
        return self._client.table(name)

    def rpc(self, name: str, params: Optional[Dict[str, Any]] = None):
        return self._client.rpc(name, params or {})

    # Storage

    async def upload(self, bucket: str, path: str, content: bytes, content_type: Optional[str] = None) -> None:
        options = {"content-type": content_type} if content_type else None
        try:
            await self._client.storage.from_(bucket).upload(path, content, options)
        except Exception as e:
            logger.error(f"Upload of {path} to {bucket} failed: {e}")
            raise BackendError(getattr(e, "message", None) or str(e) or None) from e

    async def public_url(self, bucket: str, path: str) -> str:
        return await self._client.storage.from_(bucket).get_public_url(path)

    # Change feed

    async def subscribe(self, name: str, feeds: Sequence["ChangeFeed"], handler: ChangeHandler) -> Subscription:
        """Open one channel listening to every insert/update/delete on the feeds' tables."""
        channel = self._client.channel(f"{name}-{uuid.uuid4().hex[:8]}")
        for feed in feeds:
            channel.on_postgres_changes(
                "*",
                schema=self.schema,
                table=feed.table,
                filter=feed.filter_expression,
                callback=lambda payload, feed=feed: handler(feed, payload),
            )
        await channel.subscribe()
        logger.debug(f"Subscribed channel {name} to {[feed.table for feed in feeds]}")
        return Subscription(name=name, channel=channel)

    async def unsubscribe(self, subscription: Subscription) -> None:
        await self._client.remove_channel(subscription.channel)
        logger.debug(f"Removed channel {subscription.name}")

    async def close(self) -> None:
        try:
            await self._client.remove_all_channels()
        except Exception as e:
            logger.warning(f"Failed to close Supabase channels: {e}")


async def create_backend_client(settings: Settings) -> BackendClient:
    """
    Create the Supabase client for anonymous and change-feed access.
    Uses the project URL and the public anon key.
    """
    if not settings.SUPABASE_URL or not settings.SUPABASE_KEY:
        raise ValueError("Supabase credentials missing in .env file")

    try:
        client = await acreate_client(
            settings.SUPABASE_URL,
            settings.SUPABASE_KEY,
            options=AsyncClientOptions(schema=settings.SUPABASE_SCHEMA),
        )
    except Exception as e:
        logger.error(f"Failed to initialize Supabase client: {e}")
        raise

    logger.info("Supabase client (anon) initialized successfully")
    return BackendClient(client, settings.SUPABASE_URL, settings.SUPABASE_KEY, schema=settings.SUPABASE_SCHEMA)

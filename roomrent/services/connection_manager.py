"""WebSocket connection management for live views."""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import logging

from fastapi import WebSocket

from roomrent.core.sync import LiveQuery
from roomrent.services.live_views import ViewDefinition, serialize_view

logger = logging.getLogger(__name__)


@dataclass
class LiveConnection:
    """One open live channel and the views it has mounted."""
    websocket: WebSocket
    user_id: Optional[str] = None
    queries: Dict[str, LiveQuery] = field(default_factory=dict)


class ConnectionManager:
    """
    Manages active WebSocket connections and the live queries mounted on them.

    Every live query belongs to exactly one connection and is stopped when the
    client unsubscribes or the connection goes away.
    """

    def __init__(self):
        self.active_connections: List[LiveConnection] = []

    async def connect(self, websocket: WebSocket, user_id: Optional[str] = None) -> LiveConnection:
        """Accept WebSocket connection and add to active connections."""
        await websocket.accept()
        connection = LiveConnection(websocket=websocket, user_id=user_id)
        self.active_connections.append(connection)
        logger.info(f"New live connection (user {user_id}). Total connections: {len(self.active_connections)}")
        return connection

    async def disconnect(self, connection: LiveConnection) -> None:
        """Stop the connection's live queries and forget it."""
        for subscription_id in list(connection.queries):
            await self.unmount(connection, subscription_id)
        if connection in self.active_connections:
            self.active_connections.remove(connection)
            logger.info(f"Live connection closed. Remaining connections: {len(self.active_connections)}")

    async def disconnect_all(self) -> None:
        for connection in list(self.active_connections):
            await self.disconnect(connection)

    async def mount(
        self,
        connection: LiveConnection,
        subscription_id: str,
        view: str,
        definition: ViewDefinition,
        query: LiveQuery,
    ) -> None:
        """Start ``query`` and push a snapshot to the client after every refresh."""
        if subscription_id in connection.queries:
            await self.unmount(connection, subscription_id)

        async def push(live: LiveQuery) -> None:
            await self.send(connection, {
                "type": "snapshot",
                "id": subscription_id,
                "view": view,
                "data": serialize_view(definition, live.data),
                "error": getattr(live.error, "message", None) or (str(live.error) if live.error else None),
            })

        query.on_update(push)
        connection.queries[subscription_id] = query
        await query.start()

    async def unmount(self, connection: LiveConnection, subscription_id: str) -> bool:
        query = connection.queries.pop(subscription_id, None)
        if query is None:
            return False
        await query.stop()
        return True

    async def send(self, connection: LiveConnection, message: Dict[str, Any]) -> None:
        try:
            await connection.websocket.send_json(message)
        except Exception as e:
            logger.error(f"Error sending live update: {e}")


# Global instance of the connection manager
manager = ConnectionManager()

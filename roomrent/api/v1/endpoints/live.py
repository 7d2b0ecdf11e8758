"""Live view WebSocket: clients mount views and receive a snapshot on every refresh."""
import json
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from roomrent.core.context import ClientContext
from roomrent.core.dependencies import Session
from roomrent.core.exceptions import BackendError
from roomrent.core.gate import GateAction, decide, resolve_auth_state
from roomrent.models.user import Role
from roomrent.services.connection_manager import LiveConnection, manager
from roomrent.services.live_views import VIEWS, LiveViews
from roomrent.services.profile_service import ProfileService

logger = logging.getLogger(__name__)
router = APIRouter()


@router.websocket("/ws/live")
async def live_websocket(websocket: WebSocket):
    """
    Real-time view channel.

    Client messages:
        {"type": "subscribe", "id": "...", "view": "public_rooms", "params": {...}}
        {"type": "unsubscribe", "id": "..."}
        {"type": "ping"}

    The optional "token" query parameter signs the channel in; an invalid
    token closes it with code 4003.
    """
    ctx: ClientContext = websocket.app.state.context
    token = websocket.query_params.get("token")

    session: Optional[Session] = None
    role: Optional[Role] = None
    try:
        if token:
            session = await open_channel_session(ctx, token)
            if session is None:
                await websocket.close(code=4003, reason="Invalid authentication token")
                return
            profiles = ProfileService(session.backend, ctx.cache, ctx.settings.PROFILE_MAX_AGE)
            role = await profiles.resolve_role(session.user.id)
            session.role = role
    except BackendError as e:
        logger.error(f"Live channel session lookup failed: {e.message}")
        if session is not None:
            await session.backend.close()
        await websocket.close(code=1011, reason=e.message)
        return

    views = LiveViews(session.backend if session else ctx.backend, ctx.cache, ctx.settings)
    connection = await manager.connect(websocket, session.user.id if session else None)

    try:
        while True:
            data = await websocket.receive_text()
            try:
                message = json.loads(data)
            except ValueError:
                await manager.send(connection, {"type": "error", "detail": "Messages must be JSON"})
                continue
            if not isinstance(message, dict):
                await manager.send(connection, {"type": "error", "detail": "Messages must be JSON objects"})
                continue

            kind = message.get("type")
            if kind == "ping":
                await manager.send(connection, {"type": "pong"})
            elif kind == "subscribe":
                await handle_subscribe(connection, views, ctx, session, role, message)
            elif kind == "unsubscribe":
                subscription_id = str(message.get("id"))
                removed = await manager.unmount(connection, subscription_id)
                await manager.send(connection, {"type": "unsubscribed", "id": subscription_id, "found": removed})
            else:
                await manager.send(connection, {"type": "error", "detail": f"Unknown message type: {kind}"})
    except WebSocketDisconnect:
        logger.info(f"Live channel disconnected (user {connection.user_id})")
    finally:
        await manager.disconnect(connection)
        if session is not None:
            await session.backend.close()


async def open_channel_session(ctx: ClientContext, token: str) -> Optional[Session]:
    """Session owning its own backend client for as long as the channel is open."""
    user = await ctx.backend.get_user(token)
    if user is None:
        return None
    backend = await ctx.backend.for_session(token)
    return Session(user=user, access_token=token, backend=backend)


async def handle_subscribe(
    connection: LiveConnection,
    views: LiveViews,
    ctx: ClientContext,
    session: Optional[Session],
    role: Optional[Role],
    message: Dict[str, Any],
) -> None:
    """Mount the requested view after checking the caller may see it."""
    view = message.get("view")
    subscription_id = str(message.get("id") or view)
    definition = VIEWS.get(view) if isinstance(view, str) else None
    if definition is None:
        await manager.send(connection, {"type": "error", "id": subscription_id, "detail": f"Unknown view: {view}"})
        return

    if definition.needs_session:
        decision = decide(
            resolve_auth_state(session, role),
            definition.required_role,
            auth_path=ctx.settings.AUTH_REDIRECT_PATH,
            neutral_path=ctx.settings.NEUTRAL_REDIRECT_PATH,
        )
        if decision.action is GateAction.REDIRECT:
            await manager.send(connection, {"type": "redirect", "id": subscription_id, "location": decision.location})
            return

    params = message.get("params") or {}
    if not isinstance(params, dict):
        await manager.send(connection, {"type": "error", "id": subscription_id, "detail": "View parameters must be an object"})
        return
    try:
        query = definition.build(views, params, session.user.id if session else None)
    except (ValidationError, TypeError) as e:
        await manager.send(connection, {"type": "error", "id": subscription_id, "detail": f"Invalid view parameters: {e}"})
        return

    await manager.mount(connection, subscription_id, view, definition, query)

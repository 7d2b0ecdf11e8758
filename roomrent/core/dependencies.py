"""Request dependencies: client context, session resolution and the route gate."""
from dataclasses import dataclass
from typing import Optional
import logging

from fastapi import Depends, Header, Request

from roomrent.config.database import BackendClient, SessionUser
from roomrent.core.context import ClientContext
from roomrent.core.exceptions import RedirectRequired
from roomrent.core.gate import GateAction, decide, resolve_auth_state
from roomrent.models.user import Role
from roomrent.services.profile_service import ProfileService

logger = logging.getLogger(__name__)


@dataclass
class Session:
    """Signed-in caller: their user, token and a backend handle acting as them."""
    user: SessionUser
    access_token: str
    backend: BackendClient
    role: Role = Role.UNKNOWN


def get_context(request: Request) -> ClientContext:
    return request.app.state.context


def parse_bearer(authorization: Optional[str]) -> Optional[str]:
    """Token from an ``Authorization: Bearer <token>`` header, if well formed."""
    if authorization is None or not authorization.startswith("Bearer "):
        return None
    token = authorization.split("Bearer ", 1)[1].strip()
    return token or None


async def resolve_session(ctx: ClientContext, token: Optional[str]) -> Optional[Session]:
    """Session for ``token``, or None when the token is missing or not accepted."""
    if not token:
        return None
    user = await ctx.backend.get_user(token)
    if user is None:
        return None
    backend = await ctx.session_backend(user.id, token)
    return Session(user=user, access_token=token, backend=backend)


async def get_session_optional(
    authorization: Optional[str] = Header(None),
    ctx: ClientContext = Depends(get_context),
) -> Optional[Session]:
    """
    Gets the current session if a Supabase token is provided, but returns None
    instead of raising an error if the token is missing or invalid.
    """
    return await resolve_session(ctx, parse_bearer(authorization))


class RouteGate:
    """
    Dependency guarding a route by session and role.

    Both lookups finish before anything is decided. A caller without a
    session is sent to the auth page; a signed-in caller without the
    required role is sent to the neutral page.
    """

    def __init__(self, required_role: Optional[Role] = None):
        self.required_role = required_role

    async def __call__(
        self,
        session: Optional[Session] = Depends(get_session_optional),
        ctx: ClientContext = Depends(get_context),
    ) -> Session:
        role = None
        if session is not None:
            profiles = ProfileService(session.backend, ctx.cache, ctx.settings.PROFILE_MAX_AGE)
            role = await profiles.resolve_role(session.user.id)
            session.role = role

        decision = decide(
            resolve_auth_state(session, role),
            self.required_role,
            auth_path=ctx.settings.AUTH_REDIRECT_PATH,
            neutral_path=ctx.settings.NEUTRAL_REDIRECT_PATH,
        )
        if decision.action is GateAction.REDIRECT:
            logger.info(f"Route gate redirect to {decision.location} (required role: {self.required_role})")
            raise RedirectRequired(decision.location)
        return session


require_session = RouteGate()
require_manager = RouteGate(Role.MANAGER)

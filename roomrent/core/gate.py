"""
Route authorization gate.

A page is guarded by two lookups: whether there is a session, and which role
the session's user holds. Neither result is acted on until both are known,
since deciding on one of them alone can put a manager on a customer page or
the other way round.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from roomrent.models.user import Role


class AuthState(str, Enum):
    LOADING = "loading"
    UNAUTHENTICATED = "unauthenticated"
    ROLE_UNKNOWN = "authenticated-role-unknown"
    CUSTOMER = "authenticated-customer"
    MANAGER = "authenticated-manager"


class GateAction(str, Enum):
    ALLOW = "allow"
    WAIT = "wait"
    REDIRECT = "redirect"


@dataclass(frozen=True)
class GateDecision:
    action: GateAction
    location: Optional[str] = None

    @classmethod
    def allow(cls) -> "GateDecision":
        return cls(GateAction.ALLOW)

    @classmethod
    def wait(cls) -> "GateDecision":
        return cls(GateAction.WAIT)

    @classmethod
    def redirect(cls, location: str) -> "GateDecision":
        return cls(GateAction.REDIRECT, location)


def resolve_auth_state(
    session,
    role: Optional[Role],
    session_loading: bool = False,
    role_loading: bool = False,
) -> AuthState:
    """Combine the session and role lookups into one state."""
    if session_loading or role_loading:
        return AuthState.LOADING
    if session is None:
        return AuthState.UNAUTHENTICATED
    if role is None or role is Role.UNKNOWN:
        return AuthState.ROLE_UNKNOWN
    if role is Role.CUSTOMER:
        return AuthState.CUSTOMER
    if role is Role.MANAGER:
        return AuthState.MANAGER
    raise ValueError(f"Unhandled role {role!r}")


def decide(
    state: AuthState,
    required_role: Optional[Role],
    auth_path: str = "/auth",
    neutral_path: str = "/",
) -> GateDecision:
    """
    Decide what happens to a request for a page.

    ``required_role`` of None means any signed-in user may enter. Missing
    sessions go to the auth surface; signed-in users without the required
    role go to the neutral page.
    """
    if required_role is Role.UNKNOWN:
        raise ValueError("A route cannot require the unknown role")

    if state is AuthState.LOADING:
        return GateDecision.wait()
    if state is AuthState.UNAUTHENTICATED:
        return GateDecision.redirect(auth_path)
    if required_role is None:
        return GateDecision.allow()
    if state is AuthState.ROLE_UNKNOWN:
        return GateDecision.redirect(neutral_path)
    if state is AuthState.CUSTOMER:
        return GateDecision.allow() if required_role is Role.CUSTOMER else GateDecision.redirect(neutral_path)
    if state is AuthState.MANAGER:
        return GateDecision.allow() if required_role is Role.MANAGER else GateDecision.redirect(neutral_path)
    raise ValueError(f"Unhandled auth state {state!r}")

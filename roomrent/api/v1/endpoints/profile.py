"""Signed-in user, role assignment and logout."""
import logging

from fastapi import APIRouter, Depends, status

from roomrent.core.context import ClientContext
from roomrent.core.dependencies import Session, get_context, require_session
from roomrent.models.user import Role
from roomrent.schemas.profile import MeResponse, ProfileResponse, RoleAssignRequest
from roomrent.services.profile_service import ProfileService

router = APIRouter()
logger = logging.getLogger(__name__)


def session_profiles(
    session: Session = Depends(require_session),
    ctx: ClientContext = Depends(get_context),
) -> ProfileService:
    return ProfileService(session.backend, ctx.cache, ctx.settings.PROFILE_MAX_AGE)


@router.get("/me", response_model=MeResponse)
async def read_me(
    session: Session = Depends(require_session),
    profiles: ProfileService = Depends(session_profiles),
):
    """The signed-in user with their role and display profile."""
    profile = await profiles.get_profile(session.user)
    return MeResponse(
        user_id=session.user.id,
        email=session.user.email,
        role=session.role,
        profile=ProfileResponse.model_validate(profile),
    )


@router.post("/me/role", response_model=MeResponse, status_code=status.HTTP_201_CREATED)
async def assign_role(
    body: RoleAssignRequest,
    session: Session = Depends(require_session),
    profiles: ProfileService = Depends(session_profiles),
):
    """Record the role picked at sign-up."""
    session.role = await profiles.assign_role(session.user.id, Role(body.role))
    return await read_me(session, profiles)


@router.post("/auth/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    session: Session = Depends(require_session),
    ctx: ClientContext = Depends(get_context),
):
    """Drop every cached query that belongs to the signed-in user."""
    await ctx.logout(session.user.id)

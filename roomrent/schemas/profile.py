"""Profile, role and session schemas."""
from typing import Optional

from roomrent.models.user import Role
from roomrent.schemas.base import BaseSchema


class ProfileResponse(BaseSchema):
    id: str
    full_name: Optional[str] = None
    phone: Optional[str] = None
    avatar_url: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class MeResponse(BaseSchema):
    """Signed-in user with their resolved role and display profile."""
    user_id: str
    email: Optional[str] = None
    role: Role
    profile: ProfileResponse


class RoleAssignRequest(BaseSchema):
    role: Role

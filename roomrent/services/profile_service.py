"""
Profile Service - resolves the acting user's role and display profile.
"""
from typing import Optional
import logging

from roomrent.config.database import BackendClient, SessionUser
from roomrent.core.exceptions import BackendError, ValidationFailure
from roomrent.core.sync import QueryCache
from roomrent.models.user import Profile, Role, UserRole
from roomrent.utils.supabase_helpers import select_optional, write_one

logger = logging.getLogger(__name__)


def default_display_name(user: SessionUser) -> str:
    """Name from auth metadata, else the local part of the email."""
    full_name = (user.user_metadata or {}).get("full_name")
    if full_name:
        return full_name
    if user.email:
        return user.email.split("@")[0]
    return "User"


class ProfileService:
    """
    Role and profile lookups backed by the user_roles and profiles tables.

    A user without a user_roles row has an unknown role; the service never
    guesses one. Results are cached per user id and reused for at most
    ``max_age`` seconds, so rows written outside this process are picked up.
    """

    def __init__(self, backend: BackendClient, cache: QueryCache, max_age: float = 0.0):
        self.backend = backend
        self.cache = cache
        self.max_age = max_age

    async def resolve_role(self, user_id: Optional[str]) -> Role:
        """
        Get the user's role.

        Args:
            user_id: Auth user id; None or empty means nobody is signed in

        Returns:
            Role.CUSTOMER, Role.MANAGER, or Role.UNKNOWN when no row exists

        Raises:
            BackendError: If the lookup fails or the stored value is not a role
        """
        if not user_id:
            return Role.UNKNOWN
        return await self.cache.fetch(
            ("user-role", user_id), lambda: self._fetch_role(user_id), max_age=self.max_age
        )

    async def _fetch_role(self, user_id: str) -> Role:
        row = await select_optional(
            self.backend.table(UserRole.table_name).select("role").eq("user_id", user_id),
            "user role lookup",
        )
        if row is None:
            logger.debug(f"No role recorded for user {user_id}")
            return Role.UNKNOWN
        try:
            return Role.from_row(row.get("role"))
        except ValueError as e:
            raise BackendError(f"Unrecognised role {row.get('role')!r} for user {user_id}") from e

    async def assign_role(self, user_id: str, role: Role) -> Role:
        """Record the role a user picked at sign-up."""
        if role not in Role.assignable():
            raise ValidationFailure("role", "Role must be either customer or manager")

        await write_one(
            self.backend.table(UserRole.table_name).insert({"user_id": user_id, "role": role.value}),
            "role assignment",
        )
        self.cache.invalidate(("user-role", user_id))
        logger.info(f"Assigned role {role.value} to user {user_id}")
        return role

    async def get_profile(self, user: SessionUser) -> Profile:
        """
        Get the user's display profile, creating the row on first access.

        A stored profile with a blank name is shown with the auth-derived name;
        that substitution is not written back.
        """
        return await self.cache.fetch(
            ("user-profile", user.id), lambda: self._fetch_profile(user), max_age=self.max_age
        )

    async def _fetch_profile(self, user: SessionUser) -> Profile:
        display_name = default_display_name(user)
        row = await select_optional(
            self.backend.table(Profile.table_name).select("*").eq("id", user.id),
            "profile lookup",
        )

        if row is None:
            created = await write_one(
                self.backend.table(Profile.table_name).insert({"id": user.id, "full_name": display_name}),
                "profile creation",
            )
            logger.info(f"Created profile for user {user.id}")
            return Profile.from_dict(created)

        profile = Profile.from_dict(row)
        if not (profile.full_name or "").strip():
            profile.full_name = display_name
        return profile

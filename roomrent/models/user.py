"""Profile and role models."""
import enum
from typing import Any, Dict, Optional
from roomrent.models.base import SupabaseModel


class Role(str, enum.Enum):
    """
    Role of the acting user.

    UNKNOWN is the absence of a user_roles row; it is never treated as either
    of the two assignable roles.
    """
    UNKNOWN = "unknown"
    CUSTOMER = "customer"  # Browses rooms and sends inquiries
    MANAGER = "manager"  # Lists rooms and answers inquiries

    @classmethod
    def assignable(cls):
        return (cls.CUSTOMER, cls.MANAGER)

    @classmethod
    def from_row(cls, value: Optional[str]) -> "Role":
        if value is None:
            return cls.UNKNOWN
        role = cls(value)
        if role is cls.UNKNOWN:
            raise ValueError("'unknown' is not a stored role")
        return role


class UserRole(SupabaseModel):
    """One row of the user_roles table."""
    table_name = "user_roles"
    columns = ("id", "user_id", "role", "created_at")

    id: str
    user_id: str
    role: str
    created_at: Optional[str] = None


class Profile(SupabaseModel):
    """Display profile of a user; id is the auth user id."""
    table_name = "profiles"
    columns = ("id", "full_name", "phone", "avatar_url", "created_at", "updated_at")

    id: str
    full_name: Optional[str] = None
    phone: Optional[str] = None
    avatar_url: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Profile":
        row = {column: None for column in cls.columns}
        row.update({key: value for key, value in data.items() if key in cls.columns})
        return cls(**row)

    def __repr__(self):
        return f"<Profile {self.id} ({self.full_name})>"

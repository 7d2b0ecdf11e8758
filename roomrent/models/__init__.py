"""
Database models package.

Plain row wrappers for the Supabase tables this service reads and writes.
"""

from .base import SupabaseModel
from .user import Profile, Role, UserRole
from .room import CityCount, PropertyType, PublicRoom, Room, TenantPreference, PUBLIC_ROOM_COLUMNS
from .inquiry import Inquiry, InquiryStatus

__all__ = [
    "SupabaseModel",
    "Profile",
    "Role",
    "UserRole",
    "CityCount",
    "PropertyType",
    "PublicRoom",
    "Room",
    "TenantPreference",
    "PUBLIC_ROOM_COLUMNS",
    "Inquiry",
    "InquiryStatus",
]

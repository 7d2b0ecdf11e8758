"""
Schemas package.

Pydantic models for request/response validation:
- base: Base schema
- room: Room listing and catalog filter schemas
- inquiry: Inquiry schemas
- profile: Profile, role and session schemas
"""

from roomrent.schemas.base import BaseSchema
from roomrent.schemas.room import (
    AvailabilityUpdate,
    CityCountResponse,
    ContactResponse,
    ImageUploadResponse,
    PublicRoomResponse,
    RoomCreate,
    RoomFilters,
    RoomResponse,
    RoomUpdate,
)
from roomrent.schemas.inquiry import InquiryCreate, InquiryResponse, InquiryStatusUpdate
from roomrent.schemas.profile import MeResponse, ProfileResponse, RoleAssignRequest

__all__ = [
    "BaseSchema",
    "AvailabilityUpdate",
    "CityCountResponse",
    "ContactResponse",
    "ImageUploadResponse",
    "PublicRoomResponse",
    "RoomCreate",
    "RoomFilters",
    "RoomResponse",
    "RoomUpdate",
    "InquiryCreate",
    "InquiryResponse",
    "InquiryStatusUpdate",
    "MeResponse",
    "ProfileResponse",
    "RoleAssignRequest",
]

"""Room listing schemas."""
from typing import List, Optional, Tuple
from pydantic import Field, field_validator

from roomrent.config.settings import settings
from roomrent.models.room import PropertyType, TenantPreference
from roomrent.schemas.base import BaseSchema


class RoomFilters(BaseSchema):
    """
    Public catalog filters.

    Every key is optional and absent keys impose no constraint; present keys
    are combined with AND. ``city`` is a case-insensitive substring match.
    """
    city: Optional[str] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    property_type: Optional[PropertyType] = None
    tenant_preference: Optional[TenantPreference] = None

    @field_validator("city")
    @classmethod
    def blank_city_is_no_filter(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            return None
        return value

    def cache_key(self) -> Tuple[Tuple[str, object], ...]:
        """Hashable form used in query keys."""
        return tuple(sorted(self.model_dump(exclude_none=True).items()))


class RoomCreate(BaseSchema):
    """Fields a manager fills in to list a room."""
    title: str = Field(min_length=5)
    description: Optional[str] = None
    location: str = Field(min_length=3)
    city: str = Field(min_length=2)
    rent_price: float = Field(ge=1)
    property_type: PropertyType = PropertyType.ONE_BHK
    tenant_preference: TenantPreference = TenantPreference.ANY
    contact_number: str = Field(min_length=10)
    images: List[str] = Field(default_factory=list, max_length=settings.MAX_ROOM_IMAGES)
    is_available: bool = True

    model_config = {
        "json_schema_extra": {
            "example": {
                "title": "Sunny 1 BHK near the metro",
                "description": "Furnished, with balcony",
                "location": "Koramangala 5th Block",
                "city": "Bangalore",
                "rent_price": 15000,
                "property_type": "1 BHK",
                "tenant_preference": "Working Professionals",
                "contact_number": "+91 98765 43210",
            }
        }
    }


class RoomUpdate(BaseSchema):
    """Partial room update; only the fields sent are changed."""
    title: Optional[str] = Field(default=None, min_length=5)
    description: Optional[str] = None
    location: Optional[str] = Field(default=None, min_length=3)
    city: Optional[str] = Field(default=None, min_length=2)
    rent_price: Optional[float] = Field(default=None, ge=1)
    property_type: Optional[PropertyType] = None
    tenant_preference: Optional[TenantPreference] = None
    contact_number: Optional[str] = Field(default=None, min_length=10)
    images: Optional[List[str]] = None
    is_available: Optional[bool] = None


class AvailabilityUpdate(BaseSchema):
    is_available: bool


class PublicRoomResponse(BaseSchema):
    """Room as listed publicly (no contact number)."""
    id: str
    owner_id: str
    title: str
    description: Optional[str] = None
    location: str
    city: str
    rent_price: float
    property_type: str
    tenant_preference: str
    images: List[str] = []
    is_available: bool
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class RoomResponse(PublicRoomResponse):
    """Room as seen by its owner."""
    contact_number: str


class ContactResponse(BaseSchema):
    room_id: str
    contact_number: Optional[str] = None


class CityCountResponse(BaseSchema):
    city: str
    room_count: int


class ImageUploadResponse(BaseSchema):
    urls: List[str]

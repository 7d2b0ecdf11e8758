"""Room listing models."""
import enum
from typing import List, Optional
from roomrent.models.base import SupabaseModel


class PropertyType(str, enum.Enum):
    """Layout of the listed property."""
    ONE_BHK = "1 BHK"
    TWO_BHK = "2 BHK"
    THREE_BHK = "3 BHK"
    ONE_BED = "1 Bed"
    TWO_BED = "2 Bed"
    THREE_BED = "3 Bed"
    STUDIO = "Studio"


class TenantPreference(str, enum.Enum):
    """Who the owner prefers to rent to."""
    BACHELOR = "Bachelor"
    FAMILY = "Family"
    GIRLS_ONLY = "Girls Only"
    WORKING_PROFESSIONALS = "Working Professionals"
    ANY = "Any"


PUBLIC_ROOM_COLUMNS = (
    "id",
    "title",
    "description",
    "location",
    "city",
    "rent_price",
    "property_type",
    "tenant_preference",
    "images",
    "is_available",
    "owner_id",
    "created_at",
    "updated_at",
)


class PublicRoom(SupabaseModel):
    """
    Room as shown in the public catalog.

    Never carries the contact number; that is only available through the
    authenticated contact lookup.
    """
    table_name = "rooms"
    columns = PUBLIC_ROOM_COLUMNS

    id: str
    owner_id: str
    title: str
    description: Optional[str] = None
    location: str
    city: str
    rent_price: float
    property_type: str
    tenant_preference: str = TenantPreference.ANY.value
    images: List[str] = []
    is_available: bool = True
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    def __repr__(self):
        return f"<Room {self.title} ({self.city})>"


class Room(PublicRoom):
    """Full room row, visible to its owner."""
    columns = PUBLIC_ROOM_COLUMNS + ("contact_number",)

    contact_number: str


class CityCount(SupabaseModel):
    """Row of the get_available_cities aggregate."""
    columns = ("city", "room_count")

    city: str
    room_count: int

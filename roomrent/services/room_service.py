"""
Room Catalog - single source of truth for room listing operations.
"""
from dataclasses import dataclass
from typing import List, Optional, Sequence
import logging
import uuid

from roomrent.config.database import BackendClient
from roomrent.config.settings import Settings
from roomrent.core.exceptions import ImageLimitExceeded, NotAuthenticatedError, ValidationFailure
from roomrent.core.sync import QueryCache
from roomrent.models.room import CityCount, PublicRoom, Room
from roomrent.schemas.room import RoomCreate, RoomFilters, RoomUpdate
from roomrent.utils.supabase_helpers import execute, select_rows, write_one

logger = logging.getLogger(__name__)

# Every cached view a room write can change
ROOM_VIEWS = (("rooms",), ("my-rooms",), ("available-cities",), ("manager-inquiries",))


@dataclass
class ImageFile:
    """An image waiting to be uploaded."""
    filename: str
    content: bytes
    content_type: Optional[str] = None


def unique_image_name(filename: str) -> str:
    """Random object name keeping the original extension."""
    name = str(uuid.uuid4())
    if "." in filename:
        return f"{name}.{filename.rsplit('.', 1)[1]}"
    return name


class RoomCatalog:
    """
    Queries and commands over the rooms table.

    Ownership is not checked here; the backend's access policy decides
    whether a write is accepted and a rejection surfaces as a BackendError.
    """

    def __init__(self, backend: BackendClient, cache: QueryCache, settings: Settings):
        self.backend = backend
        self.cache = cache
        self.settings = settings

    async def list_public_rooms(self, filters: Optional[RoomFilters] = None, limit: Optional[int] = None) -> List[PublicRoom]:
        """
        List available rooms for the public catalog, newest first.

        Args:
            filters: Optional catalog filters, combined with AND
            limit: Optional maximum number of rooms

        Returns:
            Rooms without their contact number
        """
        filters = filters or RoomFilters()
        query = (
            self.backend.table(PublicRoom.table_name)
            .select(PublicRoom.select_list())
            .eq("is_available", True)
        )

        if filters.city:
            query = query.ilike("city", f"%{filters.city}%")
        if filters.min_price is not None:
            query = query.gte("rent_price", filters.min_price)
        if filters.max_price is not None:
            query = query.lte("rent_price", filters.max_price)
        if filters.property_type:
            query = query.eq("property_type", filters.property_type)
        if filters.tenant_preference:
            query = query.eq("tenant_preference", filters.tenant_preference)

        query = query.order("created_at", desc=True)
        if limit:
            query = query.limit(limit)

        rows = await select_rows(query, "public room listing")
        return [PublicRoom.from_dict(row) for row in rows]

    async def list_owned_rooms(self, owner_id: Optional[str]) -> List[Room]:
        """All rooms of one owner, available or not, with contact numbers."""
        if not owner_id:
            return []
        rows = await select_rows(
            self.backend.table(Room.table_name)
            .select("*")
            .eq("owner_id", owner_id)
            .order("created_at", desc=True),
            "owned room listing",
        )
        return [Room.from_dict(row) for row in rows]

    async def get_contact_number(self, room_id: Optional[str], is_authenticated: bool) -> Optional[str]:
        """Contact number of a room through the privileged lookup; only asked for signed-in viewers."""
        if not room_id or not is_authenticated:
            return None
        return await execute(self.backend.rpc("get_room_contact", {"room_id": room_id}), "contact lookup")

    async def list_available_cities_with_counts(self) -> List[CityCount]:
        rows = await select_rows(self.backend.rpc("get_available_cities"), "available cities")
        return [CityCount.from_dict(row) for row in rows]

    async def create_room(self, owner_id: Optional[str], data: RoomCreate) -> Room:
        """
        Create a room listing owned by ``owner_id``.

        Raises:
            NotAuthenticatedError: If there is no owner
            ImageLimitExceeded: If more images than allowed are attached
            BackendError: If the backend rejects the insert
        """
        if not owner_id:
            raise NotAuthenticatedError("Please sign in to add a room")
        self.check_image_count(len(data.images))

        payload = data.model_dump(mode="json")
        payload["owner_id"] = owner_id
        row = await write_one(self.backend.table(Room.table_name).insert(payload), "room creation")
        self.invalidate_room_views()

        logger.info(f"Room {row.get('id')} created by {owner_id}")
        return Room.from_dict(row)

    async def create_room_with_images(self, owner_id: Optional[str], data: RoomCreate, files: Sequence[ImageFile]) -> Room:
        """Upload the listing's images, then create the room carrying their URLs."""
        if not owner_id:
            raise NotAuthenticatedError("Please sign in to add a room")
        self.check_image_count(len(data.images) + len(files))

        urls = await self.upload_images(files) if files else []
        data = data.model_copy(update={"images": list(data.images) + urls})
        return await self.create_room(owner_id, data)

    async def update_room(self, room_id: str, changes: RoomUpdate) -> Room:
        """Apply a partial update; only fields that were set are sent."""
        payload = changes.model_dump(mode="json", exclude_unset=True)
        if not payload:
            raise ValidationFailure("room", "No fields to update")

        row = await write_one(
            self.backend.table(Room.table_name).update(payload).eq("id", room_id),
            "room update",
        )
        self.invalidate_room_views()

        logger.info(f"Room {room_id} updated: {sorted(payload)}")
        return Room.from_dict(row)

    async def set_availability(self, room_id: str, is_available: bool) -> Room:
        """Mark a room as rented or available again."""
        return await self.update_room(room_id, RoomUpdate(is_available=is_available))

    async def delete_room(self, room_id: str) -> None:
        await execute(self.backend.table(Room.table_name).delete().eq("id", room_id), "room deletion")
        self.invalidate_room_views()
        logger.info(f"Room {room_id} deleted")

    async def upload_images(self, files: Sequence[ImageFile]) -> List[str]:
        """
        Upload images to storage and return their public URLs in input order.

        The first failed upload aborts the rest of the batch and fails the
        call. Files already uploaded stay in storage.
        """
        self.check_image_count(len(files))

        bucket = self.settings.ROOM_IMAGES_BUCKET
        urls = []
        for image in files:
            path = unique_image_name(image.filename)
            await self.backend.upload(bucket, path, image.content, image.content_type)
            urls.append(await self.backend.public_url(bucket, path))

        logger.info(f"Uploaded {len(urls)} room images to {bucket}")
        return urls

    def check_image_count(self, count: int) -> None:
        if count > self.settings.MAX_ROOM_IMAGES:
            raise ImageLimitExceeded(self.settings.MAX_ROOM_IMAGES)

    def invalidate_room_views(self) -> None:
        self.cache.invalidate(*ROOM_VIEWS)

"""
Inquiry Service - customer inquiries about rooms and their status.
"""
from typing import List, Optional
import logging

from roomrent.config.database import BackendClient, SessionUser
from roomrent.core.exceptions import NotAuthenticatedError
from roomrent.core.sync import QueryCache
from roomrent.models.inquiry import Inquiry, InquiryStatus
from roomrent.models.room import Room
from roomrent.schemas.inquiry import InquiryCreate
from roomrent.utils.supabase_helpers import select_rows, write_one

logger = logging.getLogger(__name__)


class InquiryService:
    """
    Queries and commands over the room_inquiries table.

    Customers see the inquiries they wrote; managers see the inquiries made
    on rooms they own. Status changes are visible to both sides.
    """

    def __init__(self, backend: BackendClient, cache: QueryCache):
        self.backend = backend
        self.cache = cache

    async def list_my_inquiries(self, customer_id: Optional[str]) -> List[Inquiry]:
        if not customer_id:
            return []
        rows = await select_rows(
            self.backend.table(Inquiry.table_name)
            .select("*")
            .eq("customer_id", customer_id)
            .order("created_at", desc=True),
            "customer inquiry listing",
        )
        return [Inquiry.from_dict(row) for row in rows]

    async def list_manager_inquiries(self, manager_id: Optional[str]) -> List[Inquiry]:
        """
        Inquiries on every room the manager owns, newest first.

        The owned room ids are looked up first; a manager without rooms gets an
        empty list and no inquiry query is made.
        """
        if not manager_id:
            return []

        rooms = await select_rows(
            self.backend.table(Room.table_name).select("id").eq("owner_id", manager_id),
            "manager room ids",
        )
        if not rooms:
            return []

        room_ids = [room["id"] for room in rooms]
        rows = await select_rows(
            self.backend.table(Inquiry.table_name)
            .select("*")
            .in_("room_id", room_ids)
            .order("created_at", desc=True),
            "manager inquiry listing",
        )
        return [Inquiry.from_dict(row) for row in rows]

    async def create_inquiry(self, data: InquiryCreate, actor: Optional[SessionUser]) -> Inquiry:
        """
        Send an inquiry about a room as the signed-in user.

        Args:
            data: Inquiry form fields
            actor: The signed-in user; always recorded as the customer

        Raises:
            NotAuthenticatedError: If nobody is signed in
            BackendError: If the backend rejects the insert
        """
        if actor is None:
            raise NotAuthenticatedError("Please sign in to send an inquiry.")

        payload = data.model_dump(mode="json")
        payload["customer_id"] = actor.id
        row = await write_one(self.backend.table(Inquiry.table_name).insert(payload), "inquiry creation")

        self.cache.invalidate(("my-inquiries", actor.id), ("manager-inquiries",), ("rooms",))
        logger.info(f"Inquiry {row.get('id')} sent by {actor.id} for room {data.room_id}")
        return Inquiry.from_dict(row)

    async def set_inquiry_status(self, inquiry_id: str, status: InquiryStatus) -> Inquiry:
        """Change only the status of an inquiry; setting the current status again is a no-op write."""
        status = InquiryStatus(status)
        row = await write_one(
            self.backend.table(Inquiry.table_name).update({"status": status.value}).eq("id", inquiry_id),
            "inquiry status update",
        )

        self.cache.invalidate(("manager-inquiries",), ("my-inquiries",))
        logger.info(f"Inquiry {inquiry_id} marked {status.value}")
        return Inquiry.from_dict(row)

"""Room inquiry models."""
import enum
from typing import Optional
from roomrent.models.base import SupabaseModel


class InquiryStatus(str, enum.Enum):
    """
    Inquiry lifecycle as stored.

    The booking wording shown to users is a relabeling of these values, not a
    separate state. All three are freely transitionable.
    """
    PENDING = "pending"  # received, not yet confirmed
    CONTACTED = "contacted"  # booked / in progress
    RESOLVED = "resolved"  # cancelled / closed

    @property
    def label(self) -> str:
        return _STATUS_LABELS[self]


_STATUS_LABELS = {
    InquiryStatus.PENDING: "Pending",
    InquiryStatus.CONTACTED: "Booked",
    InquiryStatus.RESOLVED: "Cancelled",
}


class Inquiry(SupabaseModel):
    """A customer's inquiry about a room."""
    table_name = "room_inquiries"
    columns = (
        "id",
        "room_id",
        "customer_id",
        "customer_name",
        "customer_email",
        "customer_phone",
        "message",
        "status",
        "created_at",
        "updated_at",
    )

    id: str
    room_id: str
    customer_id: str
    customer_name: str
    customer_email: str
    customer_phone: Optional[str] = None
    message: str
    status: str = InquiryStatus.PENDING.value
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def status_label(self) -> str:
        return InquiryStatus(self.status).label

    def __repr__(self):
        return f"<Inquiry {self.id} ({self.status})>"

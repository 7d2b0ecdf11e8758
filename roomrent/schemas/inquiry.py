"""Inquiry schemas."""
from typing import Optional
from pydantic import EmailStr, Field

from roomrent.models.inquiry import InquiryStatus
from roomrent.schemas.base import BaseSchema


class InquiryCreate(BaseSchema):
    """Inquiry form; the customer id is always taken from the session."""
    room_id: str
    customer_name: str = Field(min_length=2)
    customer_email: EmailStr
    customer_phone: Optional[str] = None
    message: str = Field(min_length=10)

    model_config = {
        "json_schema_extra": {
            "example": {
                "room_id": "6c1f0b8e-3f51-4a0a-9a55-1f4f8b1e2c11",
                "customer_name": "Asha Rao",
                "customer_email": "asha@example.com",
                "customer_phone": "+91 90000 00000",
                "message": "Hi, I'm interested in this room. Please share more details.",
            }
        }
    }


class InquiryStatusUpdate(BaseSchema):
    status: InquiryStatus


class InquiryResponse(BaseSchema):
    id: str
    room_id: str
    customer_id: str
    customer_name: str
    customer_email: str
    customer_phone: Optional[str] = None
    message: str
    status: InquiryStatus
    status_label: str
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

"""Room inquiry endpoints for customers and managers."""
from typing import List
import logging

from fastapi import APIRouter, Depends, status

from roomrent.core.context import ClientContext
from roomrent.core.dependencies import Session, get_context, require_manager, require_session
from roomrent.schemas.inquiry import InquiryCreate, InquiryResponse, InquiryStatusUpdate
from roomrent.services.inquiry_service import InquiryService

router = APIRouter()
logger = logging.getLogger(__name__)


def session_inquiries(
    session: Session = Depends(require_session),
    ctx: ClientContext = Depends(get_context),
) -> InquiryService:
    return InquiryService(session.backend, ctx.cache)


def manager_inquiries(
    session: Session = Depends(require_manager),
    ctx: ClientContext = Depends(get_context),
) -> InquiryService:
    return InquiryService(session.backend, ctx.cache)


@router.get("/mine", response_model=List[InquiryResponse])
async def list_my_inquiries(
    session: Session = Depends(require_session),
    service: InquiryService = Depends(session_inquiries),
):
    """Inquiries the signed-in user has sent, newest first."""
    inquiries = await service.list_my_inquiries(session.user.id)
    return [InquiryResponse.model_validate(inquiry) for inquiry in inquiries]


@router.get("/received", response_model=List[InquiryResponse])
async def list_received_inquiries(
    session: Session = Depends(require_manager),
    service: InquiryService = Depends(manager_inquiries),
):
    """Inquiries on every room the manager owns."""
    inquiries = await service.list_manager_inquiries(session.user.id)
    return [InquiryResponse.model_validate(inquiry) for inquiry in inquiries]


@router.post("", response_model=InquiryResponse, status_code=status.HTTP_201_CREATED)
async def create_inquiry(
    inquiry_data: InquiryCreate,
    session: Session = Depends(require_session),
    service: InquiryService = Depends(session_inquiries),
):
    inquiry = await service.create_inquiry(inquiry_data, session.user)
    return InquiryResponse.model_validate(inquiry)


@router.patch("/{inquiry_id}/status", response_model=InquiryResponse)
async def update_inquiry_status(
    inquiry_id: str,
    body: InquiryStatusUpdate,
    service: InquiryService = Depends(manager_inquiries),
):
    inquiry = await service.set_inquiry_status(inquiry_id, body.status)
    return InquiryResponse.model_validate(inquiry)

"""Room catalog and room management endpoints."""
from typing import List, Optional
import logging

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from roomrent.core.context import ClientContext
from roomrent.core.dependencies import Session, get_context, get_session_optional, require_manager
from roomrent.core.exceptions import NotAuthenticatedError
from roomrent.models.room import PropertyType, TenantPreference
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
from roomrent.services.room_service import ImageFile, RoomCatalog

router = APIRouter()
logger = logging.getLogger(__name__)


def public_catalog(ctx: ClientContext = Depends(get_context)) -> RoomCatalog:
    return RoomCatalog(ctx.backend, ctx.cache, ctx.settings)


def manager_catalog(
    session: Session = Depends(require_manager),
    ctx: ClientContext = Depends(get_context),
) -> RoomCatalog:
    return RoomCatalog(session.backend, ctx.cache, ctx.settings)


async def read_images(images: Optional[List[UploadFile]]) -> List[ImageFile]:
    files = []
    for upload in images or []:
        files.append(ImageFile(
            filename=upload.filename or "image",
            content=await upload.read(),
            content_type=upload.content_type,
        ))
    return files


@router.get("", response_model=List[PublicRoomResponse])
async def list_rooms(
    city: Optional[str] = Query(None, description="Case-insensitive substring of the city"),
    min_price: Optional[float] = Query(None, ge=0),
    max_price: Optional[float] = Query(None, ge=0),
    property_type: Optional[PropertyType] = Query(None),
    tenant_preference: Optional[TenantPreference] = Query(None),
    limit: Optional[int] = Query(None, ge=1, le=100),
    catalog: RoomCatalog = Depends(public_catalog),
):
    """Available rooms, newest first. Contact numbers are never included."""
    filters = RoomFilters(
        city=city,
        min_price=min_price,
        max_price=max_price,
        property_type=property_type,
        tenant_preference=tenant_preference,
    )
    rooms = await catalog.list_public_rooms(filters, limit=limit)
    return [PublicRoomResponse.model_validate(room) for room in rooms]


@router.get("/cities", response_model=List[CityCountResponse])
async def list_cities(catalog: RoomCatalog = Depends(public_catalog)):
    cities = await catalog.list_available_cities_with_counts()
    return [CityCountResponse.model_validate(city) for city in cities]


@router.get("/mine", response_model=List[RoomResponse])
async def list_my_rooms(
    session: Session = Depends(require_manager),
    catalog: RoomCatalog = Depends(manager_catalog),
):
    rooms = await catalog.list_owned_rooms(session.user.id)
    return [RoomResponse.model_validate(room) for room in rooms]


@router.get("/{room_id}/contact", response_model=ContactResponse)
async def get_room_contact(
    room_id: str,
    session: Optional[Session] = Depends(get_session_optional),
    ctx: ClientContext = Depends(get_context),
):
    """Contact number of a room; only for signed-in users."""
    if session is None:
        raise NotAuthenticatedError("Please sign in to view contact details.")

    catalog = RoomCatalog(session.backend, ctx.cache, ctx.settings)
    contact_number = await catalog.get_contact_number(room_id, is_authenticated=True)
    return ContactResponse(room_id=room_id, contact_number=contact_number)


@router.post("", response_model=RoomResponse, status_code=status.HTTP_201_CREATED)
async def create_room(
    room_data: RoomCreate,
    session: Session = Depends(require_manager),
    catalog: RoomCatalog = Depends(manager_catalog),
):
    room = await catalog.create_room(session.user.id, room_data)
    return RoomResponse.model_validate(room)


@router.post("/with-images", response_model=RoomResponse, status_code=status.HTTP_201_CREATED)
async def create_room_with_images(
    room: str = Form(..., description="Room fields as a JSON object"),
    images: Optional[List[UploadFile]] = File(None),
    session: Session = Depends(require_manager),
    catalog: RoomCatalog = Depends(manager_catalog),
):
    """Create a room and upload its images in one multipart request."""
    try:
        room_data = RoomCreate.model_validate_json(room)
    except ValidationError as e:
        raise RequestValidationError(
            [{**error, "loc": ("body", "room", *error["loc"])}
             for error in e.errors(include_url=False, include_context=False)]
        ) from e

    files = await read_images(images)
    created = await catalog.create_room_with_images(session.user.id, room_data, files)
    return RoomResponse.model_validate(created)


@router.post("/images", response_model=ImageUploadResponse, status_code=status.HTTP_201_CREATED)
async def upload_room_images(
    images: List[UploadFile] = File(...),
    catalog: RoomCatalog = Depends(manager_catalog),
):
    urls = await catalog.upload_images(await read_images(images))
    return ImageUploadResponse(urls=urls)


@router.patch("/{room_id}", response_model=RoomResponse)
async def update_room(
    room_id: str,
    changes: RoomUpdate,
    catalog: RoomCatalog = Depends(manager_catalog),
):
    room = await catalog.update_room(room_id, changes)
    return RoomResponse.model_validate(room)


@router.post("/{room_id}/availability", response_model=RoomResponse)
async def set_room_availability(
    room_id: str,
    body: AvailabilityUpdate,
    catalog: RoomCatalog = Depends(manager_catalog),
):
    room = await catalog.set_availability(room_id, body.is_available)
    return RoomResponse.model_validate(room)


@router.delete("/{room_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_room(
    room_id: str,
    catalog: RoomCatalog = Depends(manager_catalog),
):
    await catalog.delete_room(room_id)

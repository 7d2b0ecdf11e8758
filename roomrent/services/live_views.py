"""
Live views - the refresh policy of every view, declared once.

Each method returns a ``LiveQuery`` that is not yet started; the caller
mounts it (``start`` / ``async with``) for as long as the view is shown.
"""
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Type
import logging

from pydantic import BaseModel

from roomrent.config.database import BackendClient
from roomrent.config.settings import Settings
from roomrent.core.sync import ChangeFeed, LiveQuery, QueryCache
from roomrent.models.user import Role
from roomrent.schemas.inquiry import InquiryResponse
from roomrent.schemas.room import CityCountResponse, PublicRoomResponse, RoomFilters, RoomResponse
from roomrent.services.inquiry_service import InquiryService
from roomrent.services.room_service import RoomCatalog

logger = logging.getLogger(__name__)


class LiveViews:
    """Factory of the live queries behind each page."""

    def __init__(self, backend: BackendClient, cache: QueryCache, settings: Settings):
        self.backend = backend
        self.cache = cache
        self.settings = settings
        self.catalog = RoomCatalog(backend, cache, settings)
        self.inquiries = InquiryService(backend, cache)

    def _live(self, key, fetcher, **kwargs) -> LiveQuery:
        return LiveQuery(self.cache, self.backend, key, fetcher, **kwargs)

    def public_rooms(self, filters: Optional[RoomFilters] = None, limit: Optional[int] = None) -> LiveQuery:
        filters = filters or RoomFilters()
        return self._live(
            ("rooms", filters.cache_key(), limit),
            lambda: self.catalog.list_public_rooms(filters, limit=limit),
            poll_interval=self.settings.ROOMS_POLL_INTERVAL,
            feeds=[ChangeFeed("rooms", invalidates=(("rooms",), ("available-cities",)))],
        )

    def featured_rooms(self) -> LiveQuery:
        return self.public_rooms(limit=self.settings.FEATURED_ROOMS_LIMIT)

    def available_cities(self) -> LiveQuery:
        return self._live(
            ("available-cities",),
            self.catalog.list_available_cities_with_counts,
            poll_interval=self.settings.CITIES_POLL_INTERVAL,
            feeds=[ChangeFeed("rooms", invalidates=(("available-cities",),))],
        )

    def owned_rooms(self, owner_id: Optional[str]) -> LiveQuery:
        return self._live(
            ("my-rooms", owner_id),
            lambda: self.catalog.list_owned_rooms(owner_id),
            poll_interval=self.settings.ROOMS_POLL_INTERVAL,
            feeds=[
                ChangeFeed(
                    "rooms",
                    invalidates=(("my-rooms", owner_id), ("rooms",), ("available-cities",)),
                    column="owner_id",
                    value=owner_id,
                )
            ],
            enabled=bool(owner_id),
            initial=[],
        )

    def room_contact(self, room_id: Optional[str], is_authenticated: bool) -> LiveQuery:
        return self._live(
            ("room-contact", room_id),
            lambda: self.catalog.get_contact_number(room_id, is_authenticated),
            enabled=bool(room_id) and is_authenticated,
        )

    def my_inquiries(self, customer_id: Optional[str]) -> LiveQuery:
        return self._live(
            ("my-inquiries", customer_id),
            lambda: self.inquiries.list_my_inquiries(customer_id),
            poll_interval=self.settings.INQUIRIES_POLL_INTERVAL,
            feeds=[
                ChangeFeed(
                    "room_inquiries",
                    invalidates=(("my-inquiries", customer_id),),
                    column="customer_id",
                    value=customer_id,
                )
            ],
            enabled=bool(customer_id),
            initial=[],
        )

    def manager_inquiries(self, manager_id: Optional[str]) -> LiveQuery:
        own_key = ("manager-inquiries", manager_id)
        return self._live(
            own_key,
            lambda: self.inquiries.list_manager_inquiries(manager_id),
            poll_interval=self.settings.INQUIRIES_POLL_INTERVAL,
            feeds=[
                ChangeFeed("room_inquiries", invalidates=(own_key,)),
                # new rooms may already have inquiries
                ChangeFeed("rooms", invalidates=(own_key,), column="owner_id", value=manager_id),
            ],
            enabled=bool(manager_id),
            initial=[],
        )


@dataclass(frozen=True)
class ViewDefinition:
    """How a named view is built, serialized and guarded on the live channel."""
    build: Callable[[LiveViews, Dict[str, Any], Optional[str]], LiveQuery]
    schema: Optional[Type[BaseModel]]
    needs_session: bool = False
    required_role: Optional[Role] = None


def view_param(params: Dict[str, Any], name: str, kind: type) -> Any:
    """Optional parameter ``name``, which must be a ``kind`` when given."""
    value = params.get(name)
    if value is not None and not isinstance(value, kind):
        raise TypeError(f"{name} must be of type {kind.__name__}")
    return value


VIEWS: Dict[str, ViewDefinition] = {
    "public_rooms": ViewDefinition(
        build=lambda views, params, user_id: views.public_rooms(
            RoomFilters.model_validate(params.get("filters") or {}), limit=view_param(params, "limit", int)
        ),
        schema=PublicRoomResponse,
    ),
    "featured_rooms": ViewDefinition(
        build=lambda views, params, user_id: views.featured_rooms(),
        schema=PublicRoomResponse,
    ),
    "available_cities": ViewDefinition(
        build=lambda views, params, user_id: views.available_cities(),
        schema=CityCountResponse,
    ),
    "room_contact": ViewDefinition(
        build=lambda views, params, user_id: views.room_contact(
            view_param(params, "room_id", str), user_id is not None
        ),
        schema=None,
    ),
    "owned_rooms": ViewDefinition(
        build=lambda views, params, user_id: views.owned_rooms(user_id),
        schema=RoomResponse,
        needs_session=True,
        required_role=Role.MANAGER,
    ),
    "my_inquiries": ViewDefinition(
        build=lambda views, params, user_id: views.my_inquiries(user_id),
        schema=InquiryResponse,
        needs_session=True,
    ),
    "manager_inquiries": ViewDefinition(
        build=lambda views, params, user_id: views.manager_inquiries(user_id),
        schema=InquiryResponse,
        needs_session=True,
        required_role=Role.MANAGER,
    ),
}


def serialize_view(definition: ViewDefinition, data: Any) -> Any:
    """JSON-ready form of a live query's data."""
    if data is None or definition.schema is None:
        return data
    if isinstance(data, list):
        return [definition.schema.model_validate(item).model_dump(mode="json") for item in data]
    return definition.schema.model_validate(data).model_dump(mode="json")

import asyncio

import pytest
from fastapi.testclient import TestClient

from roomrent.config.settings import Settings
from roomrent.core.context import ClientContext
from roomrent.main import create_app
from roomrent.schemas.room import RoomCreate
from roomrent.services.inquiry_service import InquiryService
from roomrent.services.profile_service import ProfileService
from roomrent.services.room_service import RoomCatalog
from tests.fakes import FakeBackend, FakeDatabase

MANAGER = "manager-1"
OTHER_MANAGER = "manager-2"
CUSTOMER = "customer-1"
NEWCOMER = "newcomer-1"


async def wait_for(predicate, timeout=2.0, interval=0.01):
    """Yield to the loop until ``predicate()`` holds."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(interval)


@pytest.fixture
def settings():
    return Settings(
        SUPABASE_URL="https://fake.supabase.co",
        SUPABASE_KEY="anon-key",
        ROOMS_POLL_INTERVAL=0.05,
        INQUIRIES_POLL_INTERVAL=0.05,
        CITIES_POLL_INTERVAL=0.05,
    )


@pytest.fixture
def db():
    database = FakeDatabase()
    database.add_user(MANAGER, role="manager", full_name="Ravi Kumar")
    database.add_user(OTHER_MANAGER, role="manager")
    database.add_user(CUSTOMER, role="customer")
    database.add_user(NEWCOMER)
    return database


@pytest.fixture
def anon(db):
    return FakeBackend(db)


@pytest.fixture
def as_user(db):
    def backend_for(user_id):
        return FakeBackend(db, actor=user_id, access_token=f"token-{user_id}")
    return backend_for


@pytest.fixture
def ctx(settings, anon):
    return ClientContext(settings, anon)


@pytest.fixture
def catalog(ctx, as_user):
    """Room catalog acting as the first manager."""
    return RoomCatalog(as_user(MANAGER), ctx.cache, ctx.settings)


@pytest.fixture
def public_catalog(ctx):
    return RoomCatalog(ctx.backend, ctx.cache, ctx.settings)


@pytest.fixture
def inquiries_for(ctx, as_user):
    def service(user_id):
        return InquiryService(as_user(user_id), ctx.cache)
    return service


@pytest.fixture
def profiles_for(ctx, as_user):
    def service(user_id):
        return ProfileService(as_user(user_id), ctx.cache, ctx.settings.PROFILE_MAX_AGE)
    return service


@pytest.fixture
def api_settings():
    # long intervals keep live queries quiet during HTTP tests
    return Settings(
        SUPABASE_URL="https://fake.supabase.co",
        SUPABASE_KEY="anon-key",
        ROOMS_POLL_INTERVAL=60,
        INQUIRIES_POLL_INTERVAL=60,
        CITIES_POLL_INTERVAL=60,
    )


@pytest.fixture
def client(db, api_settings):
    app = create_app(context=ClientContext(api_settings, FakeBackend(db)))
    with TestClient(app) as test_client:
        yield test_client


def auth(user_id):
    return {"Authorization": f"Bearer token-{user_id}"}


def room_form(**overrides):
    data = {
        "title": "Sunny 1 BHK near the metro",
        "location": "Koramangala",
        "city": "Bangalore",
        "rent_price": 15000,
        "contact_number": "9876543210",
    }
    data.update(overrides)
    return RoomCreate(**data)

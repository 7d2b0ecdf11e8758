"""
Access policy the Supabase project must enforce.

The service never checks ownership itself; these tests pin down the policy
the backend is expected to apply, so a project whose policy differs is
caught here rather than in production.
"""
import pytest
from postgrest.exceptions import APIError

from roomrent.core.exceptions import BackendError
from roomrent.schemas.room import RoomUpdate
from roomrent.services.room_service import RoomCatalog
from roomrent.utils.supabase_helpers import execute, select_optional, write_one
from tests.conftest import CUSTOMER, MANAGER, OTHER_MANAGER, room_form


class TestRoomMutationIsOwnerOnly:

    async def test_owner_can_update(self, db, as_user):
        room = db.add_room(MANAGER)
        rows = await execute(as_user(MANAGER).table("rooms").update({"rent_price": 1}).eq("id", room["id"]), "t")
        assert len(rows) == 1

    @pytest.mark.parametrize("actor", [None, CUSTOMER, OTHER_MANAGER])
    async def test_others_cannot_update_or_delete(self, db, anon, as_user, actor):
        room = db.add_room(MANAGER)
        backend = anon if actor is None else as_user(actor)

        assert await execute(backend.table("rooms").update({"rent_price": 1}).eq("id", room["id"]), "t") == []
        assert await execute(backend.table("rooms").delete().eq("id", room["id"]), "t") == []
        assert db.tables["rooms"][0]["rent_price"] == room["rent_price"]

    async def test_insert_must_be_owned_by_caller(self, anon, as_user):
        with pytest.raises(APIError):
            await as_user(MANAGER).table("rooms").insert({"owner_id": OTHER_MANAGER, "title": "x"}).execute()
        with pytest.raises(APIError):
            await anon.table("rooms").insert({"owner_id": MANAGER, "title": "x"}).execute()

    async def test_rejection_surfaces_as_backend_error(self, ctx, as_user, db):
        room = db.add_room(MANAGER)
        intruder = RoomCatalog(as_user(OTHER_MANAGER), ctx.cache, ctx.settings)
        with pytest.raises(BackendError):
            await intruder.update_room(room["id"], RoomUpdate(title="Hijacked listing"))
        with pytest.raises(BackendError):
            await intruder.create_room(MANAGER, room_form())


class TestContactNumberNeedsAuthentication:

    async def test_anonymous_cannot_select_contact_column(self, db, anon):
        db.add_room(MANAGER)
        with pytest.raises(APIError):
            await anon.table("rooms").select("*").execute()
        with pytest.raises(APIError):
            await anon.table("rooms").select("id, contact_number").execute()

    async def test_anonymous_cannot_call_contact_function(self, db, anon):
        room = db.add_room(MANAGER)
        with pytest.raises(APIError):
            await anon.rpc("get_room_contact", {"room_id": room["id"]}).execute()

    async def test_signed_in_user_can_call_contact_function(self, db, as_user):
        room = db.add_room(MANAGER, contact_number="9111111111")
        response = await as_user(CUSTOMER).rpc("get_room_contact", {"room_id": room["id"]}).execute()
        assert response.data == "9111111111"

    async def test_rented_rooms_hidden_from_public(self, db, anon, as_user):
        db.add_room(MANAGER, is_available=False)
        assert await execute(anon.table("rooms").select("id"), "t") == []
        assert len(await execute(as_user(MANAGER).table("rooms").select("id"), "t")) == 1


class TestInquiryCreationNeedsAuthentication:

    def _row(self, room_id, customer_id):
        return {
            "room_id": room_id,
            "customer_id": customer_id,
            "customer_name": "Asha Rao",
            "customer_email": "asha@example.com",
            "message": "Hi, I'm interested in this room.",
        }

    async def test_anonymous_insert_rejected(self, db, anon):
        room = db.add_room(MANAGER)
        with pytest.raises(BackendError):
            await write_one(anon.table("room_inquiries").insert(self._row(room["id"], CUSTOMER)), "t")

    async def test_customer_cannot_file_for_someone_else(self, db, as_user):
        room = db.add_room(MANAGER)
        with pytest.raises(BackendError):
            await write_one(as_user(CUSTOMER).table("room_inquiries").insert(self._row(room["id"], MANAGER)), "t")

    async def test_inquiries_visible_to_customer_and_owner_only(self, db, as_user):
        room = db.add_room(MANAGER)
        inquiry = db.add_inquiry(room["id"], CUSTOMER)
        query = lambda user: as_user(user).table("room_inquiries").select("id").eq("id", inquiry["id"])  # noqa: E731

        assert await select_optional(query(CUSTOMER), "t") == {"id": inquiry["id"]}
        assert await select_optional(query(MANAGER), "t") == {"id": inquiry["id"]}
        assert await select_optional(query(OTHER_MANAGER), "t") is None

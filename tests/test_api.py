import json

from fastapi.testclient import TestClient

from roomrent.core.context import ClientContext
from roomrent.main import create_app
from tests.conftest import CUSTOMER, MANAGER, NEWCOMER, OTHER_MANAGER, auth
from tests.fakes import FakeBackend

ROOM = {
    "title": "Sunny 1 BHK near the metro",
    "location": "Koramangala",
    "city": "Bangalore",
    "rent_price": 15000,
    "property_type": "1 BHK",
    "tenant_preference": "Any",
    "contact_number": "9876543210",
}


def _create_room(client, **overrides):
    r = client.post("/api/v1/rooms", headers=auth(MANAGER), json={**ROOM, **overrides})
    assert r.status_code == 201, r.text
    return r.json()


def _jpeg(name):
    return ("images", (name, b"\xff\xd8\xff", "image/jpeg"))


def test_root_and_health(client):
    r = client.get("/")
    assert r.status_code == 200
    assert r.json()["name"] == "RoomRent"

    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "healthy"


def test_request_id_is_echoed(client):
    r = client.get("/health", headers={"X-Request-ID": "abc-123"})
    assert r.headers["X-Request-ID"] == "abc-123"
    assert client.get("/health").headers["X-Request-ID"]


def test_public_listing_hides_rented_rooms_and_contacts(client, db):
    db.add_room(MANAGER, city="Pune")
    db.add_room(MANAGER, city="Pune", is_available=False)

    r = client.get("/api/v1/rooms")
    assert r.status_code == 200, r.text
    rooms = r.json()
    assert len(rooms) == 1
    assert "contact_number" not in rooms[0]


def test_public_listing_filters(client, db):
    db.add_room(MANAGER, city="Pune", rent_price=8000, property_type="Studio")
    db.add_room(MANAGER, city="Mumbai", rent_price=25000)

    r = client.get("/api/v1/rooms", params={"city": "pun", "max_price": 10000, "property_type": "Studio"})
    assert r.status_code == 200
    assert [room["city"] for room in r.json()] == ["Pune"]

    r = client.get("/api/v1/rooms", params={"property_type": "Castle"})
    assert r.status_code == 422


def test_available_cities(client, db):
    db.add_room(MANAGER, city="Pune")
    db.add_room(OTHER_MANAGER, city="Pune")
    db.add_room(MANAGER, city="Goa", is_available=False)

    r = client.get("/api/v1/rooms/cities")
    assert r.status_code == 200
    assert r.json() == [{"city": "Pune", "room_count": 2}]


def test_contact_requires_sign_in(client, db):
    room = db.add_room(MANAGER, contact_number="9123456789")

    r = client.get(f"/api/v1/rooms/{room['id']}/contact")
    assert r.status_code == 401
    assert db.called("rpc", "get_room_contact") == 0

    r = client.get(f"/api/v1/rooms/{room['id']}/contact", headers=auth(CUSTOMER))
    assert r.status_code == 200, r.text
    assert r.json() == {"room_id": room["id"], "contact_number": "9123456789"}


def test_manager_pages_are_gated(client):
    r = client.get("/api/v1/rooms/mine", follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/auth"

    r = client.get("/api/v1/rooms/mine", headers=auth(CUSTOMER), follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/"

    # no role recorded: redirected away, never granted
    r = client.get("/api/v1/rooms/mine", headers=auth(NEWCOMER), follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/"

    r = client.get("/api/v1/rooms/mine", headers=auth(MANAGER))
    assert r.status_code == 200
    assert r.json() == []


def test_invalid_token_is_treated_as_signed_out(client):
    r = client.get("/api/v1/rooms/mine", headers={"Authorization": "Bearer nope"}, follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/auth"


def test_room_management_flow(client, db):
    created = _create_room(client)
    assert created["owner_id"] == MANAGER
    assert created["contact_number"] == ROOM["contact_number"]

    r = client.get("/api/v1/rooms/mine", headers=auth(MANAGER))
    assert [room["id"] for room in r.json()] == [created["id"]]

    r = client.patch(f"/api/v1/rooms/{created['id']}", headers=auth(MANAGER), json={"rent_price": 17000})
    assert r.status_code == 200, r.text
    assert r.json()["rent_price"] == 17000
    assert r.json()["title"] == ROOM["title"]

    r = client.post(f"/api/v1/rooms/{created['id']}/availability", headers=auth(MANAGER),
                    json={"is_available": False})
    assert r.status_code == 200
    assert client.get("/api/v1/rooms").json() == []

    r = client.delete(f"/api/v1/rooms/{created['id']}", headers=auth(MANAGER))
    assert r.status_code == 204
    assert db.tables["rooms"] == []


def test_room_validation(client):
    r = client.post("/api/v1/rooms", headers=auth(MANAGER), json={**ROOM, "title": "Tiny"})
    assert r.status_code == 422

    r = client.post("/api/v1/rooms", headers=auth(MANAGER), json={**ROOM, "rent_price": 0})
    assert r.status_code == 422

    created = _create_room(client)
    r = client.patch(f"/api/v1/rooms/{created['id']}", headers=auth(MANAGER), json={})
    assert r.status_code == 422
    assert r.json()["detail"][0]["msg"] == "No fields to update"


def test_other_managers_room_cannot_be_changed(client):
    created = _create_room(client)
    r = client.patch(f"/api/v1/rooms/{created['id']}", headers=auth(OTHER_MANAGER), json={"rent_price": 1})
    assert r.status_code == 502
    assert r.json()["detail"]


def test_backend_failures_map_to_502(client, db):
    db.failures["rooms"] = "upstream timeout"
    r = client.get("/api/v1/rooms")
    assert r.status_code == 502
    assert r.json() == {"detail": "upstream timeout"}

    db.failures["rooms"] = ""
    r = client.get("/api/v1/rooms")
    assert r.status_code == 502
    assert r.json() == {"detail": "Something went wrong. Please try again."}


def test_create_room_with_images(client, db):
    r = client.post(
        "/api/v1/rooms/with-images",
        headers=auth(MANAGER),
        data={"room": json.dumps(ROOM)},
        files=[_jpeg("front.jpg"), _jpeg("kitchen.jpg")],
    )
    assert r.status_code == 201, r.text
    assert len(r.json()["images"]) == 2
    assert len(db.storage) == 2


def test_six_images_rejected_before_upload(client, db):
    r = client.post(
        "/api/v1/rooms/with-images",
        headers=auth(MANAGER),
        data={"room": json.dumps(ROOM)},
        files=[_jpeg(f"{i}.jpg") for i in range(6)],
    )
    assert r.status_code == 422
    assert "maximum of 5" in r.json()["detail"][0]["msg"]
    assert db.uploads == 0


def test_multipart_room_fields_are_validated(client, db):
    r = client.post(
        "/api/v1/rooms/with-images",
        headers=auth(MANAGER),
        data={"room": json.dumps({**ROOM, "city": "X"})},
        files=[_jpeg("a.jpg")],
    )
    assert r.status_code == 422
    assert r.json()["detail"][0]["loc"] == ["body", "room", "city"]
    assert db.uploads == 0


def test_upload_images(client):
    r = client.post("/api/v1/rooms/images", headers=auth(MANAGER), files=[_jpeg("a.jpg"), _jpeg("b.png")])
    assert r.status_code == 201, r.text
    assert len(r.json()["urls"]) == 2

    r = client.post("/api/v1/rooms/images", headers=auth(CUSTOMER), files=[_jpeg("a.jpg")],
                    follow_redirects=False)
    assert r.status_code == 303


def test_inquiry_flow(client):
    room = _create_room(client)
    inquiry = {
        "room_id": room["id"],
        "customer_name": "Asha Rao",
        "customer_email": "asha@example.com",
        "message": "Hi, I'm interested in this room.",
    }

    r = client.post("/api/v1/inquiries", json=inquiry, follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/auth"

    r = client.post("/api/v1/inquiries", headers=auth(CUSTOMER), json=inquiry)
    assert r.status_code == 201, r.text
    created = r.json()
    assert created["customer_id"] == CUSTOMER
    assert created["status"] == "pending"
    assert created["status_label"] == "Pending"

    r = client.get("/api/v1/inquiries/mine", headers=auth(CUSTOMER))
    assert [i["id"] for i in r.json()] == [created["id"]]

    r = client.get("/api/v1/inquiries/received", headers=auth(MANAGER))
    assert [i["id"] for i in r.json()] == [created["id"]]

    r = client.get("/api/v1/inquiries/received", headers=auth(OTHER_MANAGER))
    assert r.json() == []

    for _ in range(2):
        r = client.patch(f"/api/v1/inquiries/{created['id']}/status", headers=auth(MANAGER),
                         json={"status": "contacted"})
        assert r.status_code == 200, r.text
        assert r.json()["status"] == "contacted"
        assert r.json()["status_label"] == "Booked"

    r = client.get("/api/v1/inquiries/mine", headers=auth(CUSTOMER))
    assert r.json()[0]["status"] == "contacted"


def test_inquiry_validation(client, db):
    room = db.add_room(MANAGER)
    r = client.post("/api/v1/inquiries", headers=auth(CUSTOMER), json={
        "room_id": room["id"],
        "customer_name": "A",
        "customer_email": "nope",
        "message": "short",
    })
    assert r.status_code == 422
    fields = {error["loc"][-1] for error in r.json()["detail"]}
    assert fields == {"customer_name", "customer_email", "message"}


def test_status_change_is_manager_only(client, db):
    room = db.add_room(MANAGER)
    inquiry = db.add_inquiry(room["id"], CUSTOMER)
    r = client.patch(f"/api/v1/inquiries/{inquiry['id']}/status", headers=auth(CUSTOMER),
                     json={"status": "resolved"}, follow_redirects=False)
    assert r.status_code == 303
    assert db.tables["room_inquiries"][0]["status"] == "pending"


def test_me_and_role_assignment(client, db):
    r = client.get("/api/v1/me", headers=auth(NEWCOMER))
    assert r.status_code == 200, r.text
    me = r.json()
    assert me["role"] == "unknown"
    assert me["profile"]["full_name"] == "newcomer-1"

    r = client.post("/api/v1/me/role", headers=auth(NEWCOMER), json={"role": "unknown"})
    assert r.status_code == 422

    r = client.post("/api/v1/me/role", headers=auth(NEWCOMER), json={"role": "manager"})
    assert r.status_code == 201, r.text
    assert r.json()["role"] == "manager"

    r = client.get("/api/v1/rooms/mine", headers=auth(NEWCOMER))
    assert r.status_code == 200

    r = client.post("/api/v1/me/role", headers=auth(NEWCOMER), json={"role": "customer"})
    assert r.status_code == 502


def test_me_requires_session(client):
    r = client.get("/api/v1/me", follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/auth"


def test_logout_clears_user_cache(client):
    client.get("/api/v1/me", headers=auth(MANAGER))
    cache = client.app.state.context.cache
    assert ("user-role", MANAGER) in cache.keys()

    r = client.post("/api/v1/auth/logout", headers=auth(MANAGER))
    assert r.status_code == 204
    assert not [key for key in cache.keys() if MANAGER in key]


def test_role_recorded_elsewhere_is_honoured_on_next_request(client, db):
    r = client.get("/api/v1/rooms/mine", headers=auth(NEWCOMER), follow_redirects=False)
    assert r.status_code == 303

    db.tables["user_roles"].append({"id": "from-admin", "user_id": NEWCOMER, "role": "manager"})
    r = client.get("/api/v1/rooms/mine", headers=auth(NEWCOMER))
    assert r.status_code == 200
    assert r.json() == []


def test_security_headers_follow_app_settings(db, api_settings):
    production = api_settings.model_copy(update={"ENVIRONMENT": "production"})
    app = create_app(context=ClientContext(production, FakeBackend(db)))
    with TestClient(app) as test_client:
        r = test_client.get("/health")

    assert r.headers["X-Frame-Options"] == "DENY"
    assert "max-age" in r.headers["Strict-Transport-Security"]
    assert "Content-Security-Policy" not in r.headers

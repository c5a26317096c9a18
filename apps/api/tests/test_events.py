from __future__ import annotations

import io
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from specyf.storage import LocalStorageAdapter, StoredObject
from tests.test_auth import auth_headers, make_admin, make_organizer

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def create_event(client: TestClient, token: str, **overrides):
    payload = {
        "title": "Test Event",
        "location": "Main Hall",
        "starts_at": (datetime.now(timezone.utc) + timedelta(days=7)).isoformat(),
    }
    payload.update(overrides)
    return client.post("/v1/events", json=payload, headers=auth_headers(token))


def test_organizer_can_create_update_cancel(client: TestClient):
    token = make_organizer(client, "org1@example.com")

    create_resp = create_event(client, token)
    assert create_resp.status_code == 201
    body = create_resp.json()
    event_id = body["id"]
    assert body["status"] == "PUBLISHED"
    assert body["invitation_code"]

    patch_resp = client.patch(
        f"/v1/events/{event_id}",
        json={"title": "Updated Title", "max_guests": 10},
        headers=auth_headers(token),
    )
    assert patch_resp.status_code == 200
    assert patch_resp.json()["title"] == "Updated Title"
    assert patch_resp.json()["max_guests"] == 10

    cancel_resp = client.post(f"/v1/events/{event_id}/cancel", headers=auth_headers(token))
    assert cancel_resp.status_code == 200
    assert cancel_resp.json()["status"] == "CANCELLED"
    assert cancel_resp.json()["cancelled_at"] is not None

    again = client.post(f"/v1/events/{event_id}/cancel", headers=auth_headers(token))
    assert again.status_code == 409
    assert again.json()["detail"]["code"] == "EVENT_CANCELLED"


def test_naive_datetime_rejected(client: TestClient):
    token = make_organizer(client, "naive@example.com")
    resp = create_event(client, token, starts_at="2030-01-01T10:00:00")
    assert resp.status_code == 422


def test_ends_before_start_rejected(client: TestClient):
    token = make_organizer(client, "times@example.com")
    start = datetime.now(timezone.utc) + timedelta(days=3)
    resp = create_event(
        client,
        token,
        starts_at=start.isoformat(),
        ends_at=(start - timedelta(hours=1)).isoformat(),
    )
    assert resp.status_code == 422


def test_other_organizer_cannot_manage_event(client: TestClient):
    owner = make_organizer(client, "owner@example.com")
    other = make_organizer(client, "other@example.com")
    event_id = create_event(client, owner).json()["id"]

    resp = client.patch(f"/v1/events/{event_id}", json={"title": "Nope"}, headers=auth_headers(other))
    assert resp.status_code == 403
    assert resp.json()["detail"]["code"] == "NOT_EVENT_ORGANIZER"

    listing = client.get("/v1/events", headers=auth_headers(other))
    assert listing.json()["total"] == 0


def test_admin_can_manage_any_event(client: TestClient, db_session):
    owner = make_organizer(client, "owner2@example.com")
    admin = make_admin(client, db_session, "admin@example.com")
    event_id = create_event(client, owner).json()["id"]

    resp = client.patch(f"/v1/events/{event_id}", json={"title": "Admin Edit"}, headers=auth_headers(admin))
    assert resp.status_code == 200

    listing = client.get("/v1/events", headers=auth_headers(admin))
    assert listing.json()["total"] == 1


def test_list_filters_and_pagination(client: TestClient):
    token = make_organizer(client, "list@example.com")
    create_event(client, token, title="Garden Party")
    create_event(client, token, title="Board Meeting", status="DRAFT")
    create_event(
        client,
        token,
        title="Past Gala",
        starts_at=(datetime.now(timezone.utc) - timedelta(days=2)).isoformat(),
    )

    resp = client.get("/v1/events", params={"q": "garden"}, headers=auth_headers(token))
    assert [e["title"] for e in resp.json()["items"]] == ["Garden Party"]

    resp = client.get("/v1/events", params={"status": "DRAFT"}, headers=auth_headers(token))
    assert resp.json()["total"] == 1

    resp = client.get("/v1/events", params={"upcoming": "true"}, headers=auth_headers(token))
    assert {e["title"] for e in resp.json()["items"]} == {"Garden Party", "Board Meeting"}

    resp = client.get("/v1/events", params={"page": 2, "page_size": 2}, headers=auth_headers(token))
    body = resp.json()
    assert body["total"] == 3
    assert len(body["items"]) == 1


def test_free_plan_event_limit(client: TestClient):
    token = make_organizer(client, "limit@example.com")
    for i in range(3):
        assert create_event(client, token, title=f"Event {i}").status_code == 201

    resp = create_event(client, token, title="One too many")
    assert resp.status_code == 409
    assert resp.json()["detail"]["code"] == "PLAN_LIMIT_REACHED"


def test_invitation_code_must_be_unique(client: TestClient):
    token = make_organizer(client, "codes@example.com")
    assert create_event(client, token, invitation_code="summer-24").status_code == 201

    resp = create_event(client, token, invitation_code="summer-24")
    assert resp.status_code == 409
    assert resp.json()["detail"]["code"] == "INVITATION_CODE_TAKEN"


def test_public_invite_hides_drafts(client: TestClient):
    token = make_organizer(client, "public@example.com")
    published = create_event(client, token, invitation_code="open-house").json()
    create_event(client, token, invitation_code="secret-draft", status="DRAFT")

    resp = client.get("/v1/invite/open-house")
    assert resp.status_code == 200
    assert resp.json()["id"] == published["id"]
    assert resp.json()["organizer_name"] == "Test User"

    # Event id works as a fallback
    assert client.get(f"/v1/invite/{published['id']}").status_code == 200
    assert client.get("/v1/invite/secret-draft").status_code == 404


def test_capacity_cannot_drop_below_confirmed(client: TestClient):
    token = make_organizer(client, "cap@example.com")
    event_id = create_event(client, token).json()["id"]
    for i in range(2):
        client.post(
            f"/v1/events/{event_id}/guests",
            json={"name": f"Guest {i}", "email": f"g{i}@example.com", "status": "confirmed"},
            headers=auth_headers(token),
        )

    resp = client.patch(f"/v1/events/{event_id}", json={"max_guests": 1}, headers=auth_headers(token))
    assert resp.status_code == 409
    assert resp.json()["detail"]["code"] == "EVENT_CAPACITY_BELOW_CONFIRMED"


def test_complete_and_delete_event(client: TestClient):
    token = make_organizer(client, "done@example.com")
    event_id = create_event(client, token).json()["id"]

    resp = client.post(f"/v1/events/{event_id}/complete", headers=auth_headers(token))
    assert resp.status_code == 200
    assert resp.json()["status"] == "COMPLETED"

    assert client.delete(f"/v1/events/{event_id}", headers=auth_headers(token)).status_code == 204
    assert client.get(f"/v1/events/{event_id}", headers=auth_headers(token)).status_code == 404


def test_cover_upload_served_from_media(client: TestClient):
    token = make_organizer(client, "cover@example.com")
    event_id = create_event(client, token).json()["id"]

    resp = client.post(
        f"/v1/events/{event_id}/cover",
        files={"file": ("cover.png", PNG_BYTES, "image/png")},
        headers=auth_headers(token),
    )
    assert resp.status_code == 200
    url = resp.json()["cover_image_url"]
    assert url.startswith("/v1/media/events/")

    media = client.get(url)
    assert media.status_code == 200
    assert media.content == PNG_BYTES
    assert media.headers["Content-Type"] == "image/png"
    assert media.headers["Content-Length"] == str(len(PNG_BYTES))
    assert "sandbox" in media.headers["Content-Security-Policy"]

    assert client.get("/v1/media/events/missing.png").status_code == 404


def test_cover_upload_rejects_other_types(client: TestClient):
    token = make_organizer(client, "badcover@example.com")
    event_id = create_event(client, token).json()["id"]

    resp = client.post(
        f"/v1/events/{event_id}/cover",
        files={"file": ("notes.txt", b"hello", "text/plain")},
        headers=auth_headers(token),
    )
    assert resp.status_code == 422
    assert resp.json()["detail"]["code"] == "INVALID_MIME_TYPE"

    empty = client.post(
        f"/v1/events/{event_id}/cover",
        files={"file": ("cover.png", b"", "image/png")},
        headers=auth_headers(token),
    )
    assert empty.json()["detail"]["code"] == "EMPTY_FILE"


def test_unknown_event_is_404(client: TestClient):
    token = make_organizer(client, "missing@example.com")
    resp = client.get("/v1/events/not-a-uuid", headers=auth_headers(token))
    assert resp.status_code == 404
    assert resp.json()["detail"]["code"] == "EVENT_NOT_FOUND"


def test_local_storage_saves_and_describes_objects(tmp_path):
    storage = LocalStorageAdapter(tmp_path)

    stored = storage.save("/avatars/u1/pic.png", io.BytesIO(b"abc"))
    assert stored == StoredObject(key="avatars/u1/pic.png", size=3, content_type="image/png")
    assert storage.stat("avatars/u1/pic.png") == stored
    assert storage.key_for_uri(storage.uri_for(stored.key)) == stored.key
    assert storage.key_for_uri("s3://bucket/pic.png") is None

    storage.delete(stored.key)
    assert storage.stat(stored.key) is None
    with pytest.raises(ValueError):
        storage.stat("../outside.png")

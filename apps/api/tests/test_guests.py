from __future__ import annotations

from fastapi.testclient import TestClient

from specyf.services.guest_import import parse_bulk_lines, parse_guest_csv
from tests.test_auth import auth_headers, make_organizer
from tests.test_events import create_event


def add_guest(client: TestClient, token: str, event_id: str, email: str, name: str = "Guest", **extra):
    return client.post(
        f"/v1/events/{event_id}/guests",
        json={"name": name, "email": email, **extra},
        headers=auth_headers(token),
    )


def test_add_guest_returns_response_link(client: TestClient):
    token = make_organizer(client, "g-org1@example.com")
    event_id = create_event(client, token).json()["id"]

    resp = add_guest(client, token, event_id, "Alice@Example.com", name="Alice")
    assert resp.status_code == 201
    body = resp.json()
    assert body["email"] == "alice@example.com"
    assert body["status"] == "pending"
    assert body["response_date"] is None
    assert body["response_url"].startswith(f"http://testserver/guest/response/{event_id}/")


def test_duplicate_guest_email_conflicts(client: TestClient):
    token = make_organizer(client, "g-org2@example.com")
    event_id = create_event(client, token).json()["id"]

    add_guest(client, token, event_id, "bob@example.com")
    resp = add_guest(client, token, event_id, "BOB@example.com")
    assert resp.status_code == 409
    assert resp.json()["detail"]["code"] == "GUEST_ALREADY_INVITED"


def test_list_update_delete_guest(client: TestClient):
    token = make_organizer(client, "g-org3@example.com")
    event_id = create_event(client, token).json()["id"]
    carol = add_guest(client, token, event_id, "carol@example.com", name="Carol").json()
    add_guest(client, token, event_id, "dave@example.com", name="Dave", status="declined")

    listing = client.get(f"/v1/events/{event_id}/guests", headers=auth_headers(token)).json()
    assert listing["total"] == 2

    declined = client.get(
        f"/v1/events/{event_id}/guests", params={"status": "declined"}, headers=auth_headers(token)
    ).json()
    assert [g["name"] for g in declined["items"]] == ["Dave"]

    search = client.get(f"/v1/events/{event_id}/guests", params={"q": "caro"}, headers=auth_headers(token))
    assert [g["email"] for g in search.json()["items"]] == ["carol@example.com"]

    patched = client.patch(
        f"/v1/events/{event_id}/guests/{carol['id']}",
        json={"status": "confirmed", "name": "Carol K"},
        headers=auth_headers(token),
    )
    assert patched.status_code == 200
    assert patched.json()["status"] == "confirmed"
    assert patched.json()["response_date"] is not None
    assert patched.json()["name"] == "Carol K"

    deleted = client.delete(f"/v1/events/{event_id}/guests/{carol['id']}", headers=auth_headers(token))
    assert deleted.status_code == 204
    missing = client.get(f"/v1/events/{event_id}/guests/{carol['id']}", headers=auth_headers(token))
    assert missing.status_code == 404
    assert missing.json()["detail"]["code"] == "GUEST_NOT_FOUND"


def test_guest_from_other_event_is_not_found(client: TestClient):
    token = make_organizer(client, "g-org4@example.com")
    first = create_event(client, token, title="First").json()["id"]
    second = create_event(client, token, title="Second").json()["id"]
    guest = add_guest(client, token, first, "erin@example.com").json()

    resp = client.get(f"/v1/events/{second}/guests/{guest['id']}", headers=auth_headers(token))
    assert resp.status_code == 404


def test_bulk_add_across_events_skips_existing(client: TestClient):
    token = make_organizer(client, "g-org5@example.com")
    first = create_event(client, token, title="First").json()["id"]
    second = create_event(client, token, title="Second").json()["id"]
    add_guest(client, token, first, "frank@example.com", name="Frank")

    resp = client.post(
        "/v1/guests/bulk",
        json={
            "event_ids": [first, second],
            "input": "Frank, frank@example.com\nGina, gina@example.com, confirmed\n\nno email line\n",
        },
        headers=auth_headers(token),
    )
    assert resp.status_code == 200
    results = {r["event_id"]: r for r in resp.json()["results"]}
    assert results[first]["added"] == 1
    assert results[first]["skipped"] == 1
    assert results[second]["added"] == 2
    assert results[second]["skipped"] == 0


def test_bulk_add_requires_valid_lines(client: TestClient):
    token = make_organizer(client, "g-org6@example.com")
    event_id = create_event(client, token).json()["id"]

    resp = client.post(
        "/v1/guests/bulk",
        json={"event_ids": [event_id], "input": "just a name"},
        headers=auth_headers(token),
    )
    assert resp.status_code == 422
    assert resp.json()["detail"]["code"] == "CSV_EMPTY"


def test_confirmed_guest_respects_max_guests(client: TestClient):
    token = make_organizer(client, "g-cap1@example.com")
    event_id = create_event(client, token, max_guests=1).json()["id"]

    assert add_guest(client, token, event_id, "first@example.com", status="confirmed").status_code == 201
    full = add_guest(client, token, event_id, "second@example.com", status="confirmed")
    assert full.status_code == 409
    assert full.json()["detail"]["code"] == "EVENT_FULL"

    assert add_guest(client, token, event_id, "third@example.com").status_code == 201
    stats = client.get(f"/v1/events/{event_id}/stats", headers=auth_headers(token)).json()
    assert stats["confirmed"] == 1
    assert stats["total"] == 2


def test_bulk_add_confirms_only_up_to_capacity(client: TestClient):
    token = make_organizer(client, "g-cap2@example.com")
    event_id = create_event(client, token, max_guests=2).json()["id"]
    add_guest(client, token, event_id, "early@example.com", status="confirmed")

    resp = client.post(
        "/v1/guests/bulk",
        json={
            "event_ids": [event_id],
            "input": "Ann, ann@example.com, confirmed\nBen, ben@example.com, confirmed\nCal, cal@example.com, confirmed",
        },
        headers=auth_headers(token),
    )
    result = resp.json()["results"][0]
    assert result["added"] == 3
    assert result["errors"] == ["event is full; 2 confirmed guests added as pending"]

    guests = client.get(f"/v1/events/{event_id}/guests", headers=auth_headers(token)).json()["items"]
    statuses = {g["email"]: g["status"] for g in guests}
    assert statuses == {
        "early@example.com": "confirmed",
        "ann@example.com": "confirmed",
        "ben@example.com": "pending",
        "cal@example.com": "pending",
    }


def test_bulk_add_reports_foreign_event_without_failing_the_rest(client: TestClient):
    mine = make_organizer(client, "g-bulk-mine@example.com")
    theirs = make_organizer(client, "g-bulk-theirs@example.com")
    my_event = create_event(client, mine).json()["id"]
    their_event = create_event(client, theirs).json()["id"]

    resp = client.post(
        "/v1/guests/bulk",
        json={"event_ids": [my_event, their_event], "input": "Dee, dee@example.com"},
        headers=auth_headers(mine),
    )
    assert resp.status_code == 200
    results = {r["event_id"]: r for r in resp.json()["results"]}
    assert results[my_event]["added"] == 1
    assert results[their_event]["added"] == 0
    assert results[their_event]["event_title"] is None
    assert results[their_event]["errors"]

    their_guests = client.get(f"/v1/events/{their_event}/guests", headers=auth_headers(theirs)).json()
    assert their_guests["total"] == 0


def test_free_plan_guest_limit(client: TestClient):
    token = make_organizer(client, "g-org7@example.com")
    event_id = create_event(client, token).json()["id"]
    lines = "\n".join(f"Guest {i}, guest{i}@example.com" for i in range(55))

    resp = client.post(
        "/v1/guests/bulk",
        json={"event_ids": [event_id], "input": lines},
        headers=auth_headers(token),
    )
    result = resp.json()["results"][0]
    assert result["added"] == 50
    assert result["skipped"] == 5
    assert result["errors"]

    over = add_guest(client, token, event_id, "late@example.com")
    assert over.status_code == 409
    assert over.json()["detail"]["code"] == "PLAN_LIMIT_REACHED"


def test_csv_import_preview_then_commit(client: TestClient):
    token = make_organizer(client, "g-org8@example.com")
    event_id = create_event(client, token).json()["id"]
    content = b"Name,Email,Status\nHana,hana@example.com,confirmed\nIvan,ivan@example.com,maybe\n"

    preview = client.post(
        f"/v1/events/{event_id}/guests/import",
        files={"file": ("guests.csv", content, "text/csv")},
        data={"preview": "true"},
        headers=auth_headers(token),
    )
    assert preview.status_code == 200
    body = preview.json()
    assert body["total"] == 2
    assert body["rows"][1]["status"] == "pending"
    assert body["results"] == []
    listing = client.get(f"/v1/events/{event_id}/guests", headers=auth_headers(token)).json()
    assert listing["total"] == 0

    commit = client.post(
        f"/v1/events/{event_id}/guests/import",
        files={"file": ("guests.csv", content, "text/csv")},
        headers=auth_headers(token),
    )
    assert commit.json()["results"][0]["added"] == 2


def test_csv_import_missing_headers(client: TestClient):
    token = make_organizer(client, "g-org9@example.com")
    event_id = create_event(client, token).json()["id"]

    resp = client.post(
        f"/v1/events/{event_id}/guests/import",
        files={"file": ("guests.csv", b"Full Name,Mail\nA,a@example.com\n", "text/csv")},
        headers=auth_headers(token),
    )
    assert resp.status_code == 422
    assert resp.json()["detail"]["code"] == "CSV_MISSING_HEADERS"


def test_export_and_template(client: TestClient):
    token = make_organizer(client, "g-org10@example.com")
    event_id = create_event(client, token).json()["id"]
    add_guest(client, token, event_id, "jules@example.com", name="Jules")

    export = client.get(f"/v1/events/{event_id}/guests/export", headers=auth_headers(token))
    assert export.status_code == 200
    assert export.headers["content-type"].startswith("text/csv")
    lines = export.text.strip().splitlines()
    assert lines[0] == "Name,Email,Status,Responded At,Message"
    assert lines[1].startswith("Jules,jules@example.com,pending")

    template = client.get("/v1/guests/csv-template", headers=auth_headers(token))
    assert template.text.startswith("Name,Email,Status")


def test_event_stats_and_dashboard(client: TestClient):
    token = make_organizer(client, "g-org11@example.com")
    event_id = create_event(client, token, max_guests=5).json()["id"]
    add_guest(client, token, event_id, "k1@example.com", status="confirmed")
    add_guest(client, token, event_id, "k2@example.com", status="declined")
    add_guest(client, token, event_id, "k3@example.com")
    add_guest(client, token, event_id, "k4@example.com")

    stats = client.get(f"/v1/events/{event_id}/stats", headers=auth_headers(token)).json()
    assert stats["total"] == 4
    assert stats["confirmed"] == 1
    assert stats["pending"] == 2
    assert stats["response_rate"] == 0.5
    assert stats["spots_left"] == 4

    dashboard = client.get("/v1/me/dashboard", headers=auth_headers(token)).json()
    assert dashboard["total_events"] == 1
    assert dashboard["upcoming_events"] == 1
    assert dashboard["total_guests"] == 4


def test_parse_bulk_lines_defaults():
    guests = parse_bulk_lines("  Lena , LENA@example.com , declined \nMo, mo@example.com, unknown\n,x@example.com")
    assert [(g.name, g.email, g.status.value) for g in guests] == [
        ("Lena", "lena@example.com", "declined"),
        ("Mo", "mo@example.com", "pending"),
    ]


def test_parse_guest_csv_strips_bom():
    guests = parse_guest_csv("\ufeffemail,name\nnia@example.com,Nia\n")
    assert guests[0].name == "Nia"
    assert guests[0].email == "nia@example.com"

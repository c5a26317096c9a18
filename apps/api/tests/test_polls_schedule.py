from __future__ import annotations

from datetime import datetime, timedelta, timezone

from fastapi.testclient import TestClient

from specyf.auth.jwt import create_guest_access_token
from tests.test_auth import auth_headers, make_organizer
from tests.test_events import create_event
from tests.test_guests import add_guest


def _create_poll(client: TestClient, token: str, event_id: str, options=("Chicken", "Fish", "Veg")):
    return client.post(
        f"/v1/events/{event_id}/polls",
        json={"question": "Dinner choice?", "options": list(options)},
        headers=auth_headers(token),
    )


def test_poll_lifecycle_and_guest_answers(client: TestClient):
    token = make_organizer(client, "poll-org1@example.com")
    event_id = create_event(client, token).json()["id"]
    add_guest(client, token, event_id, "wes@example.com")
    guest_headers = auth_headers(create_guest_access_token("wes@example.com"))

    poll = _create_poll(client, token, event_id).json()
    assert poll["is_active"] is True
    assert [t["votes"] for t in poll["tallies"]] == [0, 0, 0]

    answer_path = f"/v1/guest/events/{event_id}/polls/{poll['id']}/answer"
    first = client.post(answer_path, json={"option": "Fish"}, headers=guest_headers)
    assert first.status_code == 200
    assert first.json()["my_choice"] == "Fish"

    # Answering again replaces the earlier choice
    second = client.post(answer_path, json={"option": "Veg"}, headers=guest_headers).json()
    assert second["total_votes"] == 1
    assert {t["option"]: t["votes"] for t in second["tallies"]} == {"Chicken": 0, "Fish": 0, "Veg": 1}

    guest_view = client.get(f"/v1/guest/events/{event_id}/polls", headers=guest_headers).json()
    assert guest_view[0]["my_choice"] == "Veg"

    invalid = client.post(answer_path, json={"option": "Pizza"}, headers=guest_headers)
    assert invalid.status_code == 422
    assert invalid.json()["detail"]["code"] == "POLL_INVALID_CHOICE"

    closed = client.patch(
        f"/v1/events/{event_id}/polls/{poll['id']}", json={"is_active": False}, headers=auth_headers(token)
    )
    assert closed.json()["is_active"] is False
    late = client.post(answer_path, json={"option": "Fish"}, headers=guest_headers)
    assert late.status_code == 409
    assert late.json()["detail"]["code"] == "POLL_CLOSED"
    assert client.get(f"/v1/guest/events/{event_id}/polls", headers=guest_headers).json() == []

    organizer_view = client.get(f"/v1/events/{event_id}/polls", headers=auth_headers(token)).json()
    assert organizer_view[0]["total_votes"] == 1

    deleted = client.delete(f"/v1/events/{event_id}/polls/{poll['id']}", headers=auth_headers(token))
    assert deleted.status_code == 204
    assert client.get(f"/v1/events/{event_id}/polls", headers=auth_headers(token)).json() == []


def test_poll_needs_two_distinct_options(client: TestClient):
    token = make_organizer(client, "poll-org2@example.com")
    event_id = create_event(client, token).json()["id"]

    resp = _create_poll(client, token, event_id, options=("Yes", " Yes ", ""))
    assert resp.status_code == 422
    assert resp.json()["detail"]["code"] == "POLL_INVALID_OPTIONS"


def test_schedule_crud(client: TestClient):
    token = make_organizer(client, "sched-org@example.com")
    event_id = create_event(client, token).json()["id"]
    start = datetime.now(timezone.utc) + timedelta(days=7)

    lunch = client.post(
        f"/v1/events/{event_id}/schedule",
        json={
            "title": "Lunch",
            "starts_at": (start + timedelta(hours=3)).isoformat(),
            "ends_at": (start + timedelta(hours=4)).isoformat(),
        },
        headers=auth_headers(token),
    ).json()
    client.post(
        f"/v1/events/{event_id}/schedule",
        json={
            "title": "Welcome",
            "starts_at": start.isoformat(),
            "ends_at": (start + timedelta(hours=1)).isoformat(),
        },
        headers=auth_headers(token),
    )

    items = client.get(f"/v1/events/{event_id}/schedule", headers=auth_headers(token)).json()
    assert [i["title"] for i in items] == ["Welcome", "Lunch"]

    bad = client.patch(
        f"/v1/events/{event_id}/schedule/{lunch['id']}",
        json={"ends_at": start.isoformat()},
        headers=auth_headers(token),
    )
    assert bad.status_code == 422
    assert bad.json()["detail"]["code"] == "EVENT_INVALID_TIMES"

    renamed = client.patch(
        f"/v1/events/{event_id}/schedule/{lunch['id']}",
        json={"title": "Long lunch", "location": "Terrace"},
        headers=auth_headers(token),
    )
    assert renamed.json()["title"] == "Long lunch"
    assert renamed.json()["location"] == "Terrace"

    assert client.delete(
        f"/v1/events/{event_id}/schedule/{lunch['id']}", headers=auth_headers(token)
    ).status_code == 204
    missing = client.delete(f"/v1/events/{event_id}/schedule/{lunch['id']}", headers=auth_headers(token))
    assert missing.status_code == 404
    assert missing.json()["detail"]["code"] == "SUB_EVENT_NOT_FOUND"


def test_schedule_rejects_inverted_times(client: TestClient):
    token = make_organizer(client, "sched-org2@example.com")
    event_id = create_event(client, token).json()["id"]
    start = datetime.now(timezone.utc) + timedelta(days=7)

    resp = client.post(
        f"/v1/events/{event_id}/schedule",
        json={
            "title": "Backwards",
            "starts_at": start.isoformat(),
            "ends_at": (start - timedelta(minutes=5)).isoformat(),
        },
        headers=auth_headers(token),
    )
    assert resp.status_code == 422

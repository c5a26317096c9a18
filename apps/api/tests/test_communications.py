from __future__ import annotations

from datetime import datetime, timedelta, timezone

from fastapi.testclient import TestClient

from specyf.mail import get_email_sender
from specyf.services import communications_service
from tests.test_auth import auth_headers, make_organizer
from tests.test_events import create_event
from tests.test_guests import add_guest


def test_send_invitations_to_all_guests(client: TestClient, outbox):
    token = make_organizer(client, "c-org1@example.com")
    event_id = create_event(client, token, title="Spring Gala").json()["id"]
    add_guest(client, token, event_id, "ana@example.com", name="Ana")
    add_guest(client, token, event_id, "bo@example.com", name="Bo", status="confirmed")

    resp = client.post(f"/v1/events/{event_id}/invitations/send", json={}, headers=auth_headers(token))
    assert resp.status_code == 200
    body = resp.json()
    assert body["kind"] == "INVITATION"
    assert body["success_count"] == 2
    assert body["total_count"] == 2

    assert {m.to_email for m in outbox} == {"ana@example.com", "bo@example.com"}
    assert outbox[0].subject == "You're invited: Spring Gala"
    assert f"/guest/response/{event_id}/" in outbox[0].html

    logs = client.get(f"/v1/events/{event_id}/email-logs", headers=auth_headers(token)).json()
    assert len(logs) == 1
    assert logs[0]["recipient_count"] == 2
    assert logs[0]["success_count"] == 2


def test_reminders_default_to_pending_guests(client: TestClient, outbox):
    token = make_organizer(client, "c-org2@example.com")
    event_id = create_event(client, token).json()["id"]
    add_guest(client, token, event_id, "pending@example.com")
    add_guest(client, token, event_id, "yes@example.com", status="confirmed")

    resp = client.post(f"/v1/events/{event_id}/reminders/send", json={}, headers=auth_headers(token))
    assert resp.status_code == 200
    assert [m.to_email for m in outbox] == ["pending@example.com"]


def test_send_to_selected_guests(client: TestClient, outbox):
    token = make_organizer(client, "c-org3@example.com")
    event_id = create_event(client, token).json()["id"]
    chosen = add_guest(client, token, event_id, "chosen@example.com").json()
    add_guest(client, token, event_id, "skipped@example.com")

    resp = client.post(
        f"/v1/events/{event_id}/invitations/send",
        json={"guest_ids": [chosen["id"]]},
        headers=auth_headers(token),
    )
    assert resp.json()["total_count"] == 1
    assert [m.to_email for m in outbox] == ["chosen@example.com"]


def test_failed_recipient_reported_without_stopping_batch(client: TestClient, outbox):
    token = make_organizer(client, "c-org4@example.com")
    event_id = create_event(client, token).json()["id"]
    add_guest(client, token, event_id, "ok@example.com")
    add_guest(client, token, event_id, "bounce@example.com")
    get_email_sender().fail_for.add("bounce@example.com")

    resp = client.post(f"/v1/events/{event_id}/invitations/send", json={}, headers=auth_headers(token))
    body = resp.json()
    assert body["success_count"] == 1
    assert body["total_count"] == 2
    failed = [r for r in body["results"] if not r["success"]]
    assert failed[0]["email"] == "bounce@example.com"
    assert failed[0]["error"]
    assert [m.to_email for m in outbox] == ["ok@example.com"]


def test_no_recipients_is_rejected(client: TestClient):
    token = make_organizer(client, "c-org5@example.com")
    event_id = create_event(client, token).json()["id"]

    resp = client.post(f"/v1/events/{event_id}/invitations/send", json={}, headers=auth_headers(token))
    assert resp.status_code == 422
    assert resp.json()["detail"]["code"] == "NO_RECIPIENTS"


def test_cancelled_event_cannot_send(client: TestClient):
    token = make_organizer(client, "c-org6@example.com")
    event_id = create_event(client, token).json()["id"]
    add_guest(client, token, event_id, "late@example.com")
    client.post(f"/v1/events/{event_id}/cancel", headers=auth_headers(token))

    resp = client.post(f"/v1/events/{event_id}/reminders/send", json={}, headers=auth_headers(token))
    assert resp.status_code == 409


def test_queued_send_runs_worker_task(client: TestClient, outbox):
    token = make_organizer(client, "c-org7@example.com")
    event_id = create_event(client, token).json()["id"]
    add_guest(client, token, event_id, "queued@example.com")

    resp = client.post(
        f"/v1/events/{event_id}/invitations/send",
        json={"queue": True},
        headers=auth_headers(token),
    )
    body = resp.json()
    assert body["queued"] is True
    assert body["task_id"]
    assert body["total_count"] == 1
    # Tasks run eagerly under test settings
    assert [m.to_email for m in outbox] == ["queued@example.com"]


def test_announcement_emails_guests_and_publishes(client: TestClient, outbox, broker):
    token = make_organizer(client, "c-org8@example.com")
    event_id = create_event(client, token, title="Reunion").json()["id"]
    add_guest(client, token, event_id, "uma@example.com")

    resp = client.post(
        f"/v1/events/{event_id}/announcements",
        json={"title": "Venue change", "content": "We moved to the rooftop."},
        headers=auth_headers(token),
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["announcement"]["title"] == "Venue change"
    assert body["delivery"]["success_count"] == 1
    assert outbox[0].subject == "Reunion: Venue change"
    assert "rooftop" in outbox[0].html
    assert any(m["type"] == "announcement_created" for _, m in broker.published)

    listing = client.get(f"/v1/events/{event_id}/announcements", headers=auth_headers(token)).json()
    assert len(listing) == 1

    deleted = client.delete(
        f"/v1/events/{event_id}/announcements/{body['announcement']['id']}",
        headers=auth_headers(token),
    )
    assert deleted.status_code == 204
    assert client.get(f"/v1/events/{event_id}/announcements", headers=auth_headers(token)).json() == []


def test_announcement_without_guests_has_no_delivery(client: TestClient, outbox):
    token = make_organizer(client, "c-org9@example.com")
    event_id = create_event(client, token).json()["id"]

    resp = client.post(
        f"/v1/events/{event_id}/announcements",
        json={"title": "Hello", "content": "Welcome"},
        headers=auth_headers(token),
    )
    assert resp.status_code == 201
    assert resp.json()["delivery"] is None
    assert outbox == []


def test_email_is_escaped(client: TestClient, outbox):
    token = make_organizer(client, "c-org10@example.com")
    event_id = create_event(client, token, title="<b>Bold</b> night").json()["id"]
    add_guest(client, token, event_id, "vic@example.com", name="<script>x</script>")

    client.post(f"/v1/events/{event_id}/invitations/send", json={}, headers=auth_headers(token))
    assert "<script>" not in outbox[0].html
    assert "&lt;script&gt;" in outbox[0].html


def test_due_reminders_cover_events_starting_soon(client: TestClient, db_session, outbox):
    token = make_organizer(client, "c-org11@example.com")
    soon = create_event(
        client,
        token,
        title="Soon",
        starts_at=(datetime.now(timezone.utc) + timedelta(hours=3)).isoformat(),
    ).json()["id"]
    later = create_event(client, token, title="Later").json()["id"]
    add_guest(client, token, soon, "soon@example.com")
    add_guest(client, token, soon, "answered@example.com", status="declined")
    add_guest(client, token, later, "later@example.com")

    attempted = communications_service.send_due_reminders(db_session)
    assert attempted == 1
    assert [m.to_email for m in outbox] == ["soon@example.com"]


def test_due_reminders_are_sent_once_per_event(client: TestClient, db_session, outbox):
    token = make_organizer(client, "c-org12@example.com")
    soon = create_event(
        client,
        token,
        title="Tonight",
        starts_at=(datetime.now(timezone.utc) + timedelta(hours=5)).isoformat(),
    ).json()["id"]
    add_guest(client, token, soon, "once@example.com")

    assert communications_service.send_due_reminders(db_session) == 1
    assert communications_service.send_due_reminders(db_session) == 0
    assert [m.to_email for m in outbox] == ["once@example.com"]

    logs = client.get(f"/v1/events/{soon}/email-logs", headers=auth_headers(token))
    assert [entry["kind"] for entry in logs.json()] == ["REMINDER"]

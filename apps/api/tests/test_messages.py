from __future__ import annotations

import asyncio
import dataclasses
import json

from fastapi.testclient import TestClient
from sqlalchemy import select

from specyf.api.v1 import messages as messages_api
from specyf.core.config import settings
from specyf.models import User
from specyf.realtime import event_channel, publish_event_update
from specyf.realtime.memory import MemoryBroker
from tests.test_auth import auth_headers, make_organizer
from tests.test_events import create_event
from tests.test_guests import add_guest


def test_organizer_conversation_with_guest(client: TestClient, broker):
    token = make_organizer(client, "m-org1@example.com")
    event_id = create_event(client, token).json()["id"]
    guest = add_guest(client, token, event_id, "xena@example.com").json()

    sent = client.post(
        f"/v1/events/{event_id}/messages/{guest['id']}",
        json={"content": "  Looking forward to it!  "},
        headers=auth_headers(token),
    )
    assert sent.status_code == 201
    assert sent.json()["content"] == "Looking forward to it!"
    assert sent.json()["sender_type"] == "ORGANIZER"

    thread = client.get(f"/v1/events/{event_id}/messages/{guest['id']}", headers=auth_headers(token))
    assert [m["id"] for m in thread.json()] == [sent.json()["id"]]

    _, message = broker.published[-1]
    assert message["type"] == "message_created"
    assert message["payload"]["guest_id"] == guest["id"]


def test_blank_message_rejected(client: TestClient):
    token = make_organizer(client, "m-org2@example.com")
    event_id = create_event(client, token).json()["id"]
    guest = add_guest(client, token, event_id, "yuri@example.com").json()

    resp = client.post(
        f"/v1/events/{event_id}/messages/{guest['id']}",
        json={"content": "   "},
        headers=auth_headers(token),
    )
    assert resp.status_code == 422
    assert resp.json()["detail"]["code"] == "MESSAGE_EMPTY"


def test_broadcast_reaches_every_guest(client: TestClient):
    token = make_organizer(client, "m-org3@example.com")
    event_id = create_event(client, token).json()["id"]
    guests = [add_guest(client, token, event_id, f"z{i}@example.com").json() for i in range(3)]

    resp = client.post(
        f"/v1/events/{event_id}/messages/broadcast",
        json={"content": "Doors open at 7"},
        headers=auth_headers(token),
    )
    assert resp.json() == {"sent": 3}
    for guest in guests:
        thread = client.get(f"/v1/events/{event_id}/messages/{guest['id']}", headers=auth_headers(token))
        assert [m["content"] for m in thread.json()] == ["Doors open at 7"]


def test_other_organizer_cannot_read_messages(client: TestClient):
    owner = make_organizer(client, "m-owner@example.com")
    other = make_organizer(client, "m-other@example.com")
    event_id = create_event(client, owner).json()["id"]
    guest = add_guest(client, owner, event_id, "priv@example.com").json()

    resp = client.get(f"/v1/events/{event_id}/messages/{guest['id']}", headers=auth_headers(other))
    assert resp.status_code == 403


def test_stream_requires_event_access(client: TestClient):
    owner = make_organizer(client, "m-owner2@example.com")
    other = make_organizer(client, "m-other2@example.com")
    event_id = create_event(client, owner).json()["id"]

    assert client.get(f"/v1/events/{event_id}/messages/stream").status_code == 401
    assert client.get(
        f"/v1/events/{event_id}/messages/stream", headers=auth_headers(other)
    ).status_code == 403


def test_memory_broker_delivers_to_subscribers():
    broker = MemoryBroker()
    channel = event_channel("abc")

    async def scenario():
        subscription = await broker.subscribe(channel)
        assert broker.subscriber_count(channel) == 1
        assert await subscription.get(timeout=0.01) is None

        broker.publish(channel, {"type": "ping"})
        broker.publish(event_channel("other"), {"type": "ignored"})
        received = await subscription.get(timeout=1)
        await subscription.close()
        return received

    assert asyncio.run(scenario()) == {"type": "ping"}
    assert broker.subscriber_count(channel) == 0
    assert [c for c, _ in broker.published] == [channel, event_channel("other")]


class _ConnectedRequest:
    async def is_disconnected(self) -> bool:
        return False


def test_stream_delivers_messages_after_keepalive(client: TestClient, db_session, broker, monkeypatch):
    token = make_organizer(client, "m-stream@example.com")
    event_id = create_event(client, token).json()["id"]
    user = db_session.scalar(select(User).where(User.email == "m-stream@example.com"))
    monkeypatch.setattr(
        messages_api, "settings", dataclasses.replace(settings, realtime_keepalive_seconds=0.05)
    )

    async def scenario():
        response = await messages_api.stream_event_updates(event_id, _ConnectedRequest(), user, db_session)
        frames = response.body_iterator
        received = [await frames.__anext__()]
        assert broker.subscriber_count(event_channel(event_id)) == 1
        received.append(await asyncio.wait_for(frames.__anext__(), timeout=1))

        publish_event_update(event_id, "message_created", {"guest_id": "g1"})
        received.append(await asyncio.wait_for(frames.__anext__(), timeout=1))
        await frames.aclose()
        return received

    frames = asyncio.run(scenario())
    payloads = [json.loads(frame.removeprefix("data: ")) for frame in frames]
    assert [p["type"] for p in payloads] == ["subscribed", "keepalive", "message_created"]
    assert payloads[2] == {"type": "message_created", "event_id": event_id, "payload": {"guest_id": "g1"}}
    assert all(frame.endswith("\n\n") for frame in frames)
    assert broker.subscriber_count(event_channel(event_id)) == 0


def test_publish_event_update_envelope(broker):
    publish_event_update("evt-1", "poll_created", {"poll_id": "p1"})
    assert broker.published[-1] == (
        "specyf:events:evt-1",
        {"type": "poll_created", "event_id": "evt-1", "payload": {"poll_id": "p1"}},
    )

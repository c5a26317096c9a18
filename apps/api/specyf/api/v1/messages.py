import json
from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from specyf.api.v1.schemas.messages import BroadcastOut, MessageIn, MessageOut
from specyf.auth.deps import CurrentUser
from specyf.core.config import settings
from specyf.db import get_db
from specyf.realtime import event_channel, get_broker
from specyf.services import messaging_service
from specyf.services.access import get_managed_event

router = APIRouter(prefix="/events/{event_id}/messages", tags=["messages"])

DBSession = Annotated[Session, Depends(get_db)]


def _sse(message: dict) -> str:
    return f"data: {json.dumps(message, separators=(',', ':'))}\n\n"


@router.get("/stream", response_class=StreamingResponse)
async def stream_event_updates(event_id: str, request: Request, user: CurrentUser, db: DBSession):
    event = get_managed_event(db, user, event_id)
    event_key = str(event.id)
    db.close()

    keepalive_line = _sse({"type": "keepalive", "event_id": event_key, "payload": {}})
    interval = settings.realtime_keepalive_seconds

    async def event_stream() -> AsyncGenerator[str, None]:
        # registered before the subscribed frame so nothing published after it is missed
        subscription = await get_broker().subscribe(event_channel(event_key))
        try:
            yield _sse({"type": "subscribed", "event_id": event_key, "payload": {}})
            while True:
                if await request.is_disconnected():
                    break
                message = await subscription.get(timeout=interval)
                if message is None:
                    yield keepalive_line
                    continue
                yield _sse(message)
        finally:
            await subscription.close()

    headers = {
        "Cache-Control": "no-cache",
        "X-Accel-Buffering": "no",
    }
    return StreamingResponse(event_stream(), media_type="text/event-stream", headers=headers)


@router.post("/broadcast", response_model=BroadcastOut)
def broadcast(event_id: str, payload: MessageIn, user: CurrentUser, db: DBSession):
    return BroadcastOut(sent=messaging_service.broadcast(db, user, event_id, payload.content))


@router.get("/{guest_id}", response_model=list[MessageOut])
def conversation(event_id: str, guest_id: str, user: CurrentUser, db: DBSession):
    return messaging_service.list_conversation(db, user, event_id, guest_id)


@router.post("/{guest_id}", response_model=MessageOut, status_code=201)
def send_message(event_id: str, guest_id: str, payload: MessageIn, user: CurrentUser, db: DBSession):
    return messaging_service.send_as_organizer(db, user, event_id, guest_id, payload.content)

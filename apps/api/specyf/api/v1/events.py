from typing import Annotated

from fastapi import APIRouter, Depends, File, Query, Response, UploadFile
from sqlalchemy.orm import Session

from specyf.api.v1.schemas.events import (
    EventCreate,
    EventListOut,
    EventOut,
    EventStatsOut,
    EventUpdate,
    PublicEventOut,
)
from specyf.auth.deps import CurrentUser, OrganizerUser
from specyf.db import get_db
from specyf.models.event import EventStatus
from specyf.services import events_service, guests_service, uploads

router = APIRouter(prefix="/events", tags=["events"])
public_router = APIRouter(prefix="/invite", tags=["invite"])

DBSession = Annotated[Session, Depends(get_db)]


@router.post("", response_model=EventOut, status_code=201)
def create_event(payload: EventCreate, user: OrganizerUser, db: DBSession):
    return events_service.create_event(db, user, payload)


@router.get("", response_model=EventListOut)
def list_events(
    user: CurrentUser,
    db: DBSession,
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=20, ge=1, le=100),
    status: EventStatus | None = None,
    q: str | None = Query(default=None, min_length=1, max_length=200),
    upcoming: bool = False,
):
    items, total = events_service.list_events(
        db,
        user,
        page=page,
        page_size=page_size,
        status=status,
        query=q,
        upcoming_only=upcoming,
    )
    return EventListOut(
        items=[EventOut.model_validate(e) for e in items],
        page=page,
        page_size=page_size,
        total=total,
    )


@router.get("/{event_id}", response_model=EventOut)
def get_event(event_id: str, user: CurrentUser, db: DBSession):
    return events_service.get_event(db, user, event_id)


@router.patch("/{event_id}", response_model=EventOut)
def update_event(event_id: str, payload: EventUpdate, user: CurrentUser, db: DBSession):
    return events_service.update_event(db, user, event_id, payload)


@router.post("/{event_id}/cancel", response_model=EventOut)
def cancel_event(event_id: str, user: CurrentUser, db: DBSession):
    return events_service.cancel_event(db, user, event_id)


@router.post("/{event_id}/complete", response_model=EventOut)
def complete_event(event_id: str, user: CurrentUser, db: DBSession):
    return events_service.complete_event(db, user, event_id)


@router.delete("/{event_id}", status_code=204)
def delete_event(event_id: str, user: CurrentUser, db: DBSession):
    event = events_service.get_event(db, user, event_id)
    cover = event.cover_image_uri
    events_service.delete_event(db, user, event_id)
    uploads.discard(cover)
    return Response(status_code=204)


@router.post("/{event_id}/cover", response_model=EventOut)
def upload_cover(event_id: str, user: CurrentUser, db: DBSession, file: UploadFile = File(...)):
    event = events_service.get_event(db, user, event_id)
    previous = event.cover_image_uri
    try:
        uri = uploads.store_image(f"events/{event.id}/cover", file.file, file.content_type)
    finally:
        file.file.close()

    event = events_service.set_cover_image(db, user, event.id, uri)
    uploads.discard(previous)
    return event


@router.get("/{event_id}/stats", response_model=EventStatsOut)
def event_stats(event_id: str, user: CurrentUser, db: DBSession):
    return guests_service.event_stats(db, user, event_id)


@public_router.get("/{code}", response_model=PublicEventOut)
def public_event(code: str, db: DBSession):
    event = events_service.get_public_event(db, code)
    return events_service.public_event_card(db, event)

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from specyf.api.v1.rsvp import rsvp_out
from specyf.api.v1.schemas.communications import AnnouncementOut
from specyf.api.v1.schemas.guests import GuestOut, InvitationOut, RSVPIn, RSVPOut
from specyf.api.v1.schemas.messages import MessageIn, MessageOut
from specyf.api.v1.schemas.polls import PollAnswerIn, PollOut
from specyf.api.v1.schemas.schedule import SubEventOut
from specyf.auth.deps import CurrentGuest
from specyf.db import get_db
from specyf.models.guest import GuestStatus
from specyf.services import (
    communications_service,
    events_service,
    guests_service,
    messaging_service,
    polls_service,
    schedule_service,
)

router = APIRouter(prefix="/guest", tags=["guest-portal"])

DBSession = Annotated[Session, Depends(get_db)]


@router.get("/invitations", response_model=list[InvitationOut])
def list_invitations(guest: CurrentGuest, db: DBSession):
    return [
        InvitationOut(guest=GuestOut.model_validate(g), event=events_service.public_event_card(db, e))
        for g, e in guests_service.invitations_for_email(db, guest.email)
    ]


@router.get("/events/{event_id}", response_model=InvitationOut)
def get_invitation(event_id: str, guest: CurrentGuest, db: DBSession):
    g, e = guests_service.guest_for_event(db, guest.email, event_id)
    return InvitationOut(guest=GuestOut.model_validate(g), event=events_service.public_event_card(db, e))


@router.post("/events/{event_id}/rsvp", response_model=RSVPOut)
def respond(event_id: str, payload: RSVPIn, guest: CurrentGuest, db: DBSession):
    g, _ = guests_service.guest_for_event(db, guest.email, event_id)
    updated = guests_service.record_response(db, g, GuestStatus(payload.status.value), payload.message)
    return rsvp_out(updated)


@router.get("/events/{event_id}/announcements", response_model=list[AnnouncementOut])
def announcements(event_id: str, guest: CurrentGuest, db: DBSession):
    _, e = guests_service.guest_for_event(db, guest.email, event_id)
    return communications_service.announcements_for_event(db, e.id)


@router.get("/events/{event_id}/schedule", response_model=list[SubEventOut])
def schedule(event_id: str, guest: CurrentGuest, db: DBSession):
    _, e = guests_service.guest_for_event(db, guest.email, event_id)
    return schedule_service.schedule_for_event(db, e.id)


@router.get("/events/{event_id}/polls", response_model=list[PollOut])
def polls(event_id: str, guest: CurrentGuest, db: DBSession):
    g, _ = guests_service.guest_for_event(db, guest.email, event_id)
    return polls_service.polls_for_guest(db, g)


@router.post("/events/{event_id}/polls/{poll_id}/answer", response_model=PollOut)
def answer_poll(event_id: str, poll_id: str, payload: PollAnswerIn, guest: CurrentGuest, db: DBSession):
    g, _ = guests_service.guest_for_event(db, guest.email, event_id)
    return polls_service.answer_poll(db, g, poll_id, payload.option)


@router.get("/events/{event_id}/messages", response_model=list[MessageOut])
def messages(event_id: str, guest: CurrentGuest, db: DBSession):
    g, _ = guests_service.guest_for_event(db, guest.email, event_id)
    return messaging_service.conversation(db, g)


@router.post("/events/{event_id}/messages", response_model=MessageOut, status_code=201)
def send_message(event_id: str, payload: MessageIn, guest: CurrentGuest, db: DBSession):
    g, _ = guests_service.guest_for_event(db, guest.email, event_id)
    return messaging_service.send_as_guest(db, g, payload.content)

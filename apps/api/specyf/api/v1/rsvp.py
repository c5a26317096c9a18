from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from specyf.api.v1.schemas.guests import GuestOut, InvitationOut, RSVPIn, RSVPOut
from specyf.db import get_db
from specyf.models.guest import GuestStatus
from specyf.services import events_service, guests_service
from specyf.services.access import get_event_or_404

router = APIRouter(prefix="/rsvp", tags=["rsvp"])

DBSession = Annotated[Session, Depends(get_db)]


def rsvp_out(guest) -> RSVPOut:
    return RSVPOut(
        guest_id=guest.id,
        event_id=guest.event_id,
        status=guest.status,
        response_date=guest.response_date,
        message=guest.message,
    )


@router.get("/{event_id}/{token}", response_model=InvitationOut)
def view_invitation(event_id: str, token: str, db: DBSession):
    guest = guests_service.get_guest_by_token(db, event_id, token)
    event = get_event_or_404(db, guest.event_id)
    return InvitationOut(guest=GuestOut.model_validate(guest), event=events_service.public_event_card(db, event))


@router.post("/{event_id}/{token}", response_model=RSVPOut)
def respond(event_id: str, token: str, payload: RSVPIn, db: DBSession):
    guest = guests_service.respond_by_token(
        db, event_id, token, GuestStatus(payload.status.value), payload.message
    )
    return rsvp_out(guest)

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from specyf.api.v1.schemas.communications import (
    AnnouncementIn,
    AnnouncementOut,
    AnnouncementSentOut,
    EmailBatchOut,
    EmailLogOut,
    SendEmailsIn,
)
from specyf.auth.deps import CurrentUser
from specyf.db import get_db
from specyf.services import communications_service

router = APIRouter(prefix="/events/{event_id}", tags=["communications"])

DBSession = Annotated[Session, Depends(get_db)]


@router.post("/invitations/send", response_model=EmailBatchOut)
def send_invitations(event_id: str, payload: SendEmailsIn, user: CurrentUser, db: DBSession):
    return communications_service.send_invitations(
        db, user, event_id, payload.guest_ids, queue=payload.queue
    )


@router.post("/reminders/send", response_model=EmailBatchOut)
def send_reminders(event_id: str, payload: SendEmailsIn, user: CurrentUser, db: DBSession):
    return communications_service.send_reminders(
        db, user, event_id, payload.guest_ids, queue=payload.queue
    )


@router.get("/announcements", response_model=list[AnnouncementOut])
def list_announcements(event_id: str, user: CurrentUser, db: DBSession):
    return communications_service.list_announcements(db, user, event_id)


@router.post("/announcements", response_model=AnnouncementSentOut, status_code=201)
def create_announcement(
    event_id: str,
    payload: AnnouncementIn,
    user: CurrentUser,
    db: DBSession,
    queue: bool = Query(default=False),
):
    announcement, delivery = communications_service.create_announcement(
        db,
        user,
        event_id,
        payload.title,
        payload.content,
        send_email=payload.send_email,
        queue=queue,
    )
    return AnnouncementSentOut(
        announcement=AnnouncementOut.model_validate(announcement),
        delivery=delivery,
    )


@router.delete("/announcements/{announcement_id}", status_code=204)
def delete_announcement(event_id: str, announcement_id: str, user: CurrentUser, db: DBSession):
    communications_service.delete_announcement(db, user, event_id, announcement_id)
    return Response(status_code=204)


@router.get("/email-logs", response_model=list[EmailLogOut])
def list_email_logs(event_id: str, user: CurrentUser, db: DBSession):
    return communications_service.list_email_logs(db, user, event_id)

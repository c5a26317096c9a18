from typing import Annotated

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from specyf.api.v1.schemas.polls import PollCreate, PollOut, PollUpdate
from specyf.auth.deps import CurrentUser
from specyf.db import get_db
from specyf.services import polls_service

router = APIRouter(prefix="/events/{event_id}/polls", tags=["polls"])

DBSession = Annotated[Session, Depends(get_db)]


@router.get("", response_model=list[PollOut])
def list_polls(event_id: str, user: CurrentUser, db: DBSession):
    return polls_service.list_polls(db, user, event_id)


@router.post("", response_model=PollOut, status_code=201)
def create_poll(event_id: str, payload: PollCreate, user: CurrentUser, db: DBSession):
    return polls_service.create_poll(db, user, event_id, payload.question, payload.options)


@router.patch("/{poll_id}", response_model=PollOut)
def update_poll(event_id: str, poll_id: str, payload: PollUpdate, user: CurrentUser, db: DBSession):
    return polls_service.set_poll_active(db, user, event_id, poll_id, payload.is_active)


@router.delete("/{poll_id}", status_code=204)
def delete_poll(event_id: str, poll_id: str, user: CurrentUser, db: DBSession):
    polls_service.delete_poll(db, user, event_id, poll_id)
    return Response(status_code=204)

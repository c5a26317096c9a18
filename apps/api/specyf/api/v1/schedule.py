from typing import Annotated

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from specyf.api.v1.schemas.schedule import SubEventCreate, SubEventOut, SubEventUpdate
from specyf.auth.deps import CurrentUser
from specyf.db import get_db
from specyf.services import schedule_service

router = APIRouter(prefix="/events/{event_id}/schedule", tags=["schedule"])

DBSession = Annotated[Session, Depends(get_db)]


@router.get("", response_model=list[SubEventOut])
def list_sub_events(event_id: str, user: CurrentUser, db: DBSession):
    return schedule_service.list_sub_events(db, user, event_id)


@router.post("", response_model=SubEventOut, status_code=201)
def create_sub_event(event_id: str, payload: SubEventCreate, user: CurrentUser, db: DBSession):
    return schedule_service.create_sub_event(db, user, event_id, payload)


@router.patch("/{sub_event_id}", response_model=SubEventOut)
def update_sub_event(
    event_id: str, sub_event_id: str, payload: SubEventUpdate, user: CurrentUser, db: DBSession
):
    return schedule_service.update_sub_event(db, user, event_id, sub_event_id, payload)


@router.delete("/{sub_event_id}", status_code=204)
def delete_sub_event(event_id: str, sub_event_id: str, user: CurrentUser, db: DBSession):
    schedule_service.delete_sub_event(db, user, event_id, sub_event_id)
    return Response(status_code=204)

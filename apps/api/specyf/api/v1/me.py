from typing import Annotated

from fastapi import APIRouter, Depends, File, UploadFile
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from specyf.api.v1.schemas.events import DashboardSummaryOut
from specyf.auth.deps import CurrentUser
from specyf.db import get_db
from specyf.services import billing_service, guests_service, uploads
from specyf.storage import media_url

router = APIRouter(prefix="/me", tags=["me"])

DBSession = Annotated[Session, Depends(get_db)]


class MeOut(BaseModel):
    user_id: str
    email: str
    name: str | None
    role: str
    avatar_url: str | None
    plan_id: str


class MeUpdateIn(BaseModel):
    name: str | None = Field(default=None, max_length=200)


def _me_out(db: Session, user) -> MeOut:
    return MeOut(
        user_id=str(user.id),
        email=user.email,
        name=user.name,
        role=user.role.value,
        avatar_url=media_url(user.avatar_uri),
        plan_id=billing_service.current_plan_id(db, user),
    )


@router.get("", response_model=MeOut)
def me(user: CurrentUser, db: DBSession):
    return _me_out(db, user)


@router.patch("", response_model=MeOut)
def update_me(payload: MeUpdateIn, user: CurrentUser, db: DBSession):
    if payload.name is not None:
        user.name = payload.name.strip() or None
        db.add(user)
        db.commit()
        db.refresh(user)
    return _me_out(db, user)


@router.post("/avatar", response_model=MeOut)
def upload_avatar(user: CurrentUser, db: DBSession, file: UploadFile = File(...)):
    try:
        uri = uploads.store_image(f"avatars/{user.id}", file.file, file.content_type)
    finally:
        file.file.close()

    previous = user.avatar_uri
    user.avatar_uri = uri
    db.add(user)
    db.commit()
    db.refresh(user)
    uploads.discard(previous)
    return _me_out(db, user)


@router.get("/dashboard", response_model=DashboardSummaryOut)
def dashboard(user: CurrentUser, db: DBSession):
    return guests_service.dashboard_summary(db, user)

from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile
from sqlalchemy.orm import Session

from specyf.api.v1.schemas.guests import (
    BulkAddIn,
    BulkAddOut,
    CsvImportOut,
    GuestCreate,
    GuestListOut,
    GuestOut,
    GuestUpdate,
    GuestWithLinkOut,
)
from specyf.auth.deps import CurrentUser
from specyf.db import get_db
from specyf.models.guest import GuestStatus
from specyf.services import guests_service
from specyf.services.access import get_managed_event
from specyf.services.error_codes import ErrorCode
from specyf.services.exceptions import ValidationError
from specyf.services.guest_import import CSV_TEMPLATE, parse_bulk_lines, parse_guest_csv

router = APIRouter(prefix="/events/{event_id}/guests", tags=["guests"])
bulk_router = APIRouter(prefix="/guests", tags=["guests"])

DBSession = Annotated[Session, Depends(get_db)]

MAX_CSV_BYTES = 2 * 1024 * 1024


def _with_link(guest) -> GuestWithLinkOut:
    return GuestWithLinkOut(
        **GuestOut.model_validate(guest).model_dump(),
        response_url=guests_service.response_url(guest),
    )


@router.get("", response_model=GuestListOut)
def list_guests(
    event_id: str,
    user: CurrentUser,
    db: DBSession,
    status: GuestStatus | None = None,
    q: str | None = Query(default=None, min_length=1, max_length=200),
):
    guests = guests_service.list_guests(db, user, event_id, status=status, query=q)
    return GuestListOut(items=[GuestOut.model_validate(g) for g in guests], total=len(guests))


@router.post("", response_model=GuestWithLinkOut, status_code=201)
def add_guest(event_id: str, payload: GuestCreate, user: CurrentUser, db: DBSession):
    return _with_link(guests_service.add_guest(db, user, event_id, payload))


@router.get("/export")
def export_guests(event_id: str, user: CurrentUser, db: DBSession):
    event = get_managed_event(db, user, event_id)
    body = guests_service.export_csv(db, user, event.id)
    return Response(
        content=body,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="guests-{event.id}.csv"'},
    )


@router.post("/import", response_model=CsvImportOut)
def import_guests_csv(
    event_id: str,
    user: CurrentUser,
    db: DBSession,
    file: UploadFile = File(...),
    preview: bool = Form(default=False),
):
    event = get_managed_event(db, user, event_id)
    try:
        raw = file.file.read(MAX_CSV_BYTES + 1)
    finally:
        file.file.close()
    if len(raw) > MAX_CSV_BYTES:
        raise ValidationError(ErrorCode.FILE_TOO_LARGE.value, f"file exceeds max size of {MAX_CSV_BYTES} bytes")

    rows = parse_guest_csv(raw.decode("utf-8", errors="replace"))
    results = [] if preview else guests_service.bulk_add(db, user, [event.id], rows)
    return CsvImportOut(
        rows=[{"name": r.name, "email": r.email, "status": r.status} for r in rows],
        total=len(rows),
        results=results,
    )


@router.get("/{guest_id}", response_model=GuestWithLinkOut)
def get_guest(event_id: str, guest_id: str, user: CurrentUser, db: DBSession):
    return _with_link(guests_service.get_guest(db, user, event_id, guest_id))


@router.patch("/{guest_id}", response_model=GuestOut)
def update_guest(event_id: str, guest_id: str, payload: GuestUpdate, user: CurrentUser, db: DBSession):
    return guests_service.update_guest(db, user, event_id, guest_id, payload)


@router.delete("/{guest_id}", status_code=204)
def delete_guest(event_id: str, guest_id: str, user: CurrentUser, db: DBSession):
    guests_service.delete_guest(db, user, event_id, guest_id)
    return Response(status_code=204)


@bulk_router.post("/bulk", response_model=BulkAddOut)
def bulk_add(payload: BulkAddIn, user: CurrentUser, db: DBSession):
    guests = parse_bulk_lines(payload.input)
    if not guests:
        raise ValidationError(ErrorCode.CSV_EMPTY.value, "no valid guest lines found")
    return BulkAddOut(results=guests_service.bulk_add(db, user, payload.event_ids, guests))


@bulk_router.get("/csv-template")
def csv_template(user: CurrentUser):
    return Response(
        content=CSV_TEMPLATE,
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="guest-template.csv"'},
    )

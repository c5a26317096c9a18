from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from specyf.api.v1.schemas.inquiries import ContactMessageIn, DemoRequestIn, SubmittedOut
from specyf.db import get_db
from specyf.services import inquiries_service

router = APIRouter(tags=["inquiries"])

DBSession = Annotated[Session, Depends(get_db)]


@router.post("/contact", response_model=SubmittedOut, status_code=201)
def submit_contact(payload: ContactMessageIn, db: DBSession):
    inquiries_service.submit_contact_message(db, payload)
    return SubmittedOut(message="Thanks for reaching out. We'll get back to you soon.")


@router.post("/demo-requests", response_model=SubmittedOut, status_code=201)
def submit_demo_request(payload: DemoRequestIn, db: DBSession):
    inquiries_service.submit_demo_request(db, payload)
    return SubmittedOut(message="Thanks! Our team will contact you to schedule a demo.")

from fastapi import APIRouter

from specyf.api.v1.admin import router as admin_router
from specyf.api.v1.auth import router as auth_router
from specyf.api.v1.billing import router as billing_router
from specyf.api.v1.communications import router as communications_router
from specyf.api.v1.events import public_router as invite_router
from specyf.api.v1.events import router as events_router
from specyf.api.v1.guest_auth import router as guest_auth_router
from specyf.api.v1.guest_portal import router as guest_portal_router
from specyf.api.v1.guests import bulk_router as guests_bulk_router
from specyf.api.v1.guests import router as guests_router
from specyf.api.v1.inquiries import router as inquiries_router
from specyf.api.v1.me import router as me_router
from specyf.api.v1.media import router as media_router
from specyf.api.v1.messages import router as messages_router
from specyf.api.v1.polls import router as polls_router
from specyf.api.v1.rsvp import router as rsvp_router
from specyf.api.v1.schedule import router as schedule_router

router = APIRouter()
router.include_router(auth_router)
router.include_router(guest_auth_router)
router.include_router(me_router)
router.include_router(events_router)
router.include_router(invite_router)
router.include_router(guests_router)
router.include_router(guests_bulk_router)
router.include_router(communications_router)
router.include_router(polls_router)
router.include_router(messages_router)
router.include_router(schedule_router)
router.include_router(rsvp_router)
router.include_router(guest_portal_router)
router.include_router(billing_router)
router.include_router(inquiries_router)
router.include_router(admin_router)
router.include_router(media_router)

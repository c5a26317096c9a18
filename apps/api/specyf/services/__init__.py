from specyf.services.billing_service import cancel_subscription, create_order, verify_payment
from specyf.services.communications_service import create_announcement, send_invitations, send_reminders
from specyf.services.events_service import cancel_event, create_event, update_event
from specyf.services.guests_service import add_guest, bulk_add, respond_by_token

__all__ = [
    "create_event",
    "update_event",
    "cancel_event",
    "add_guest",
    "bulk_add",
    "respond_by_token",
    "send_invitations",
    "send_reminders",
    "create_announcement",
    "create_order",
    "verify_payment",
    "cancel_subscription",
]

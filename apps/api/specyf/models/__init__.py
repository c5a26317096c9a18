from specyf.models.announcement import Announcement
from specyf.models.base import Base
from specyf.models.billing import Subscription, SubscriptionOrder
from specyf.models.email_log import EmailLog
from specyf.models.event import Event
from specyf.models.guest import Guest
from specyf.models.guest_link import GuestLinkRedemption
from specyf.models.inquiry import ContactMessage, DemoRequest
from specyf.models.message import Message
from specyf.models.poll import Poll, PollResponse
from specyf.models.refresh_token import RefreshToken
from specyf.models.sub_event import SubEvent
from specyf.models.user import User

__all__ = [
    "Base",
    "User",
    "RefreshToken",
    "Event",
    "Guest",
    "GuestLinkRedemption",
    "SubEvent",
    "Announcement",
    "Poll",
    "PollResponse",
    "Message",
    "EmailLog",
    "SubscriptionOrder",
    "Subscription",
    "ContactMessage",
    "DemoRequest",
]

from specyf.mail.base import EmailDeliveryError, EmailSender, OutgoingEmail
from specyf.mail.factory import create_email_sender, get_email_sender
from specyf.mail.templates import render

__all__ = [
    "EmailDeliveryError",
    "EmailSender",
    "OutgoingEmail",
    "create_email_sender",
    "get_email_sender",
    "render",
]

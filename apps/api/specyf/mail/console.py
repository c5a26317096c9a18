from __future__ import annotations

import structlog

from specyf.mail.base import EmailSender, OutgoingEmail

logger = structlog.get_logger(__name__)


class ConsoleEmailSender(EmailSender):
    """Logs messages instead of delivering them."""

    def send(self, message: OutgoingEmail) -> None:
        logger.info(
            "email_logged",
            to=message.to_email,
            subject=message.subject,
            size=len(message.html),
        )

from __future__ import annotations

from specyf.mail.base import EmailDeliveryError, EmailSender, OutgoingEmail


class MemoryEmailSender(EmailSender):
    def __init__(self) -> None:
        self.outbox: list[OutgoingEmail] = []
        self.fail_for: set[str] = set()

    def send(self, message: OutgoingEmail) -> None:
        if message.to_email.lower() in self.fail_for:
            raise EmailDeliveryError(f"mailbox unavailable: {message.to_email}")
        self.outbox.append(message)

    def reset(self) -> None:
        self.outbox.clear()
        self.fail_for.clear()

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


class EmailDeliveryError(Exception):
    pass


@dataclass(frozen=True)
class OutgoingEmail:
    to_email: str
    to_name: str | None
    subject: str
    html: str


class EmailSender(ABC):
    @abstractmethod
    def send(self, message: OutgoingEmail) -> None:
        """Deliver one message or raise EmailDeliveryError."""

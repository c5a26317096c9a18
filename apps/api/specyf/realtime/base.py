from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


def event_channel(event_id: Any) -> str:
    return f"specyf:events:{event_id}"


class Subscription(ABC):
    """A registered listener on one channel. Close it when done."""

    @abstractmethod
    async def get(self, timeout: float | None = None) -> dict[str, Any] | None:
        """Next message, or None if nothing arrived within timeout seconds."""

    @abstractmethod
    async def close(self) -> None:
        ...


class Broker(ABC):
    """Fan-out of small JSON notifications to subscribers of a channel."""

    @abstractmethod
    def publish(self, channel: str, message: dict[str, Any]) -> None:
        """Deliver message to every current subscriber of channel."""

    @abstractmethod
    async def subscribe(self, channel: str) -> Subscription:
        """Register a subscription. Messages published after this returns are delivered."""

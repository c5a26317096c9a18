from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass(frozen=True)
class GatewayOrder:
    id: str
    amount: int
    currency: str
    receipt: str
    notes: dict[str, str] = field(default_factory=dict)


class GatewayError(Exception):
    pass


class PaymentGateway(ABC):
    @property
    @abstractmethod
    def key_id(self) -> str:
        """Public key handed to the checkout widget."""

    @property
    @abstractmethod
    def key_secret(self) -> str:
        """Secret used to sign checkout callbacks."""

    @abstractmethod
    def create_order(
        self,
        amount: int,
        currency: str,
        receipt: str,
        notes: dict[str, str] | None = None,
    ) -> GatewayOrder:
        """Create an order for amount (smallest currency unit) and return it."""

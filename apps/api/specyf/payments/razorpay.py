from __future__ import annotations

import requests
import structlog

from specyf.payments.base import GatewayError, GatewayOrder, PaymentGateway

logger = structlog.get_logger(__name__)


class RazorpayGateway(PaymentGateway):
    """Thin client for the Razorpay Orders API."""

    def __init__(self, key_id: str, key_secret: str, api_base: str, timeout: int = 15) -> None:
        self._key_id = key_id
        self._key_secret = key_secret
        self._api_base = api_base.rstrip("/")
        self._timeout = timeout
        self._session = requests.Session()
        self._session.auth = (key_id, key_secret)

    @property
    def key_id(self) -> str:
        return self._key_id

    @property
    def key_secret(self) -> str:
        return self._key_secret

    def create_order(
        self,
        amount: int,
        currency: str,
        receipt: str,
        notes: dict[str, str] | None = None,
    ) -> GatewayOrder:
        if not self._key_id or not self._key_secret:
            raise GatewayError("payment gateway credentials are not configured")

        body = {"amount": amount, "currency": currency, "receipt": receipt, "notes": notes or {}}
        try:
            resp = self._session.post(f"{self._api_base}/orders", json=body, timeout=self._timeout)
            resp.raise_for_status()
        except requests.RequestException as exc:
            logger.warning("gateway_order_failed", receipt=receipt, error=str(exc))
            raise GatewayError("failed to create gateway order") from exc

        data = resp.json()
        return GatewayOrder(
            id=data["id"],
            amount=int(data["amount"]),
            currency=data["currency"],
            receipt=data.get("receipt") or receipt,
            notes=data.get("notes") or {},
        )

from __future__ import annotations

from specyf.payments.base import GatewayOrder, PaymentGateway
from specyf.payments.signature import compute_payment_signature, verify_payment_signature


def get_payment_gateway() -> PaymentGateway:
    from specyf.payments.factory import get_payment_gateway as _get_payment_gateway

    return _get_payment_gateway()


__all__ = [
    "GatewayOrder",
    "PaymentGateway",
    "compute_payment_signature",
    "verify_payment_signature",
    "get_payment_gateway",
]

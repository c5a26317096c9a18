from __future__ import annotations

from functools import lru_cache

from specyf.core.config import settings
from specyf.payments.base import PaymentGateway
from specyf.payments.razorpay import RazorpayGateway


@lru_cache(maxsize=1)
def get_payment_gateway() -> PaymentGateway:
    return RazorpayGateway(
        key_id=settings.payment_key_id,
        key_secret=settings.payment_key_secret,
        api_base=settings.payment_api_base,
        timeout=settings.payment_timeout_seconds,
    )

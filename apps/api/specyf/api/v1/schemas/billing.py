from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from specyf.api.v1.schemas.events import SchemaBase
from specyf.models.billing import BillingInterval, SubscriptionStatus


class PlanPriceOut(SchemaBase):
    interval: BillingInterval
    amount: int
    currency: str


class PlanOut(SchemaBase):
    plan_id: str
    prices: list[PlanPriceOut]
    max_events: int | None
    max_guests_per_event: int | None


class CreateOrderIn(BaseModel):
    plan_id: str = Field(min_length=1)
    interval: BillingInterval


class CreateOrderOut(SchemaBase):
    order_id: str
    amount: int
    currency: str
    receipt: str
    key_id: str


class VerifyPaymentIn(BaseModel):
    razorpay_order_id: str = Field(min_length=1)
    razorpay_payment_id: str = Field(min_length=1)
    razorpay_signature: str = Field(min_length=1)


class SubscriptionOut(SchemaBase):
    id: UUID
    user_id: UUID
    plan_id: str
    interval: BillingInterval
    status: SubscriptionStatus
    current_period_start: datetime
    current_period_end: datetime
    canceled_at: datetime | None = None


class VerifyPaymentOut(SchemaBase):
    success: bool
    message: str
    subscription: SubscriptionOut


class CurrentSubscriptionOut(SchemaBase):
    subscription: SubscriptionOut | None = None
    plan_id: str
    is_pro: bool
    is_premium: bool
    is_free: bool


class CancelSubscriptionOut(SchemaBase):
    success: bool
    message: str
    end_date: datetime

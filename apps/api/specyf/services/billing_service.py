from __future__ import annotations

import calendar
import uuid
from dataclasses import dataclass
from datetime import datetime

import structlog
from sqlalchemy import select
from sqlalchemy.orm import Session

from specyf.models import Subscription, SubscriptionOrder, User
from specyf.models.base import utcnow
from specyf.models.billing import BillingInterval, OrderStatus, SubscriptionStatus
from specyf.payments.base import GatewayError, PaymentGateway
from specyf.payments.signature import verify_payment_signature
from specyf.services.error_codes import ErrorCode
from specyf.services.exceptions import (
    ConflictError,
    NotFoundError,
    PaymentError,
    ValidationError,
)

logger = structlog.get_logger(__name__)

CURRENCY = "INR"
FREE_PLAN = "free"

# Amounts in paise
PLAN_PRICES: dict[str, dict[BillingInterval, int]] = {
    "pro": {
        BillingInterval.MONTHLY: 29900,
        BillingInterval.YEARLY: 299900,
    },
    "premium": {
        BillingInterval.MONTHLY: 79900,
        BillingInterval.YEARLY: 799900,
    },
}


@dataclass(frozen=True)
class PlanLimits:
    plan_id: str
    max_events: int | None
    max_guests_per_event: int | None


PLAN_LIMITS: dict[str, PlanLimits] = {
    FREE_PLAN: PlanLimits(FREE_PLAN, max_events=3, max_guests_per_event=50),
    "pro": PlanLimits("pro", max_events=25, max_guests_per_event=500),
    "premium": PlanLimits("premium", max_events=None, max_guests_per_event=None),
}


def add_months(value: datetime, months: int) -> datetime:
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def period_end(start: datetime, interval: BillingInterval) -> datetime:
    if interval == BillingInterval.MONTHLY:
        return add_months(start, 1)
    return add_months(start, 12)


def get_active_subscription(db: Session, user: User) -> Subscription | None:
    """Subscription whose benefits currently apply.

    A cancelled subscription keeps its plan until the paid period ends.
    """
    subscription = db.scalar(select(Subscription).where(Subscription.user_id == user.id))
    if subscription is None:
        return None
    if subscription.status == SubscriptionStatus.ACTIVE:
        return subscription
    if subscription.status == SubscriptionStatus.CANCELED and subscription.current_period_end > utcnow():
        return subscription
    return None


def current_plan_id(db: Session, user: User) -> str:
    subscription = get_active_subscription(db, user)
    return subscription.plan_id if subscription else FREE_PLAN


def plan_limits_for(db: Session, user: User) -> PlanLimits:
    return PLAN_LIMITS.get(current_plan_id(db, user), PLAN_LIMITS[FREE_PLAN])


def list_plans() -> list[dict]:
    plans = []
    for plan_id, limits in PLAN_LIMITS.items():
        prices = PLAN_PRICES.get(plan_id, {})
        plans.append(
            {
                "plan_id": plan_id,
                "prices": [
                    {"interval": interval, "amount": amount, "currency": CURRENCY}
                    for interval, amount in prices.items()
                ],
                "max_events": limits.max_events,
                "max_guests_per_event": limits.max_guests_per_event,
            }
        )
    return plans


def create_order(
    db: Session,
    user: User,
    gateway: PaymentGateway,
    plan_id: str,
    interval: BillingInterval,
) -> SubscriptionOrder:
    prices = PLAN_PRICES.get(plan_id)
    if not prices or interval not in prices:
        raise ValidationError(ErrorCode.PLAN_INVALID.value, "invalid plan or interval")

    amount = prices[interval]
    receipt = f"rcpt_{uuid.uuid4().hex}"

    try:
        gateway_order = gateway.create_order(
            amount,
            CURRENCY,
            receipt,
            notes={"plan_id": plan_id, "interval": interval.value, "user_id": str(user.id)},
        )
    except GatewayError as exc:
        raise PaymentError(ErrorCode.GATEWAY_ERROR.value, "failed to create order", upstream=True) from exc

    order = SubscriptionOrder(
        order_id=gateway_order.id,
        user_id=user.id,
        plan_id=plan_id,
        interval=interval,
        amount=amount,
        currency=gateway_order.currency,
        receipt=receipt,
        status=OrderStatus.CREATED,
    )
    db.add(order)
    db.commit()
    db.refresh(order)
    logger.info("order_created", order_id=order.order_id, user_id=str(user.id), plan_id=plan_id)
    return order


def verify_payment(
    db: Session,
    user: User,
    gateway: PaymentGateway,
    order_id: str,
    payment_id: str,
    signature: str,
) -> Subscription:
    if not verify_payment_signature(order_id, payment_id, signature, gateway.key_secret):
        logger.warning("payment_signature_invalid", order_id=order_id, user_id=str(user.id))
        raise PaymentError(ErrorCode.INVALID_SIGNATURE.value, "invalid payment signature")

    order = db.scalar(
        select(SubscriptionOrder).where(SubscriptionOrder.order_id == order_id).with_for_update()
    )
    if order is None or order.user_id != user.id:
        raise NotFoundError(ErrorCode.ORDER_NOT_FOUND.value, "order not found")

    subscription = db.scalar(select(Subscription).where(Subscription.user_id == order.user_id))

    if order.status == OrderStatus.PAID:
        if order.payment_id == payment_id and subscription is not None:
            return subscription
        raise ConflictError(ErrorCode.ORDER_ALREADY_PAID.value, "order is already paid")

    order.status = OrderStatus.PAID
    order.payment_id = payment_id
    db.add(order)

    start = utcnow()
    end = period_end(start, order.interval)
    if subscription is None:
        subscription = Subscription(user_id=order.user_id)
    subscription.plan_id = order.plan_id
    subscription.interval = order.interval
    subscription.status = SubscriptionStatus.ACTIVE
    subscription.current_period_start = start
    subscription.current_period_end = end
    subscription.canceled_at = None
    db.add(subscription)

    db.commit()
    db.refresh(subscription)
    logger.info(
        "payment_verified",
        order_id=order_id,
        payment_id=payment_id,
        plan_id=order.plan_id,
        user_id=str(user.id),
    )
    return subscription


def cancel_subscription(db: Session, user: User) -> Subscription:
    subscription = db.scalar(select(Subscription).where(Subscription.user_id == user.id))
    if subscription is None:
        raise NotFoundError(ErrorCode.SUBSCRIPTION_NOT_FOUND.value, "subscription not found")
    if subscription.status != SubscriptionStatus.ACTIVE:
        raise ValidationError(ErrorCode.SUBSCRIPTION_NOT_ACTIVE.value, "subscription is not active")

    now = utcnow()
    subscription.status = SubscriptionStatus.CANCELED
    subscription.canceled_at = now
    db.add(subscription)
    db.commit()
    db.refresh(subscription)
    logger.info("subscription_cancelled", user_id=str(user.id), plan_id=subscription.plan_id)
    return subscription

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from specyf.api.v1.schemas.billing import (
    CancelSubscriptionOut,
    CreateOrderIn,
    CreateOrderOut,
    CurrentSubscriptionOut,
    PlanOut,
    SubscriptionOut,
    VerifyPaymentIn,
    VerifyPaymentOut,
)
from specyf.auth.deps import CurrentUser
from specyf.db import get_db
from specyf.payments import get_payment_gateway
from specyf.payments.base import PaymentGateway
from specyf.services import billing_service

router = APIRouter(prefix="/billing", tags=["billing"])

DBSession = Annotated[Session, Depends(get_db)]
Gateway = Annotated[PaymentGateway, Depends(get_payment_gateway)]


@router.get("/plans", response_model=list[PlanOut])
def list_plans():
    return billing_service.list_plans()


@router.post("/orders", response_model=CreateOrderOut, status_code=201)
def create_order(payload: CreateOrderIn, user: CurrentUser, db: DBSession, gateway: Gateway):
    order = billing_service.create_order(db, user, gateway, payload.plan_id, payload.interval)
    return CreateOrderOut(
        order_id=order.order_id,
        amount=order.amount,
        currency=order.currency,
        receipt=order.receipt,
        key_id=gateway.key_id,
    )


@router.post("/verify", response_model=VerifyPaymentOut)
def verify_payment(payload: VerifyPaymentIn, user: CurrentUser, db: DBSession, gateway: Gateway):
    subscription = billing_service.verify_payment(
        db,
        user,
        gateway,
        payload.razorpay_order_id,
        payload.razorpay_payment_id,
        payload.razorpay_signature,
    )
    return VerifyPaymentOut(
        success=True,
        message="Payment verified and subscription activated",
        subscription=SubscriptionOut.model_validate(subscription),
    )


@router.get("/subscription", response_model=CurrentSubscriptionOut)
def current_subscription(user: CurrentUser, db: DBSession):
    subscription = billing_service.get_active_subscription(db, user)
    plan_id = subscription.plan_id if subscription else billing_service.FREE_PLAN
    return CurrentSubscriptionOut(
        subscription=SubscriptionOut.model_validate(subscription) if subscription else None,
        plan_id=plan_id,
        is_pro=plan_id == "pro",
        is_premium=plan_id == "premium",
        is_free=plan_id == billing_service.FREE_PLAN,
    )


@router.post("/subscription/cancel", response_model=CancelSubscriptionOut)
def cancel_subscription(user: CurrentUser, db: DBSession):
    subscription = billing_service.cancel_subscription(db, user)
    return CancelSubscriptionOut(
        success=True,
        message="Subscription cancelled; access continues until the end of the billing period",
        end_date=subscription.current_period_end,
    )

# storefront/api/routers/payments.py
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.deps import Actor, get_providers, optional_actor
from storefront.data.database import get_db
from storefront.domain.schemas import (
    OrderRefIn,
    PaymentStatusOut,
    RazorpayOrderOut,
    RazorpayVerifyIn,
    StripeIntentOut,
    StripeResultIn,
    StripeResultOut,
)
from storefront.services.payment_providers import PaymentProviders
from storefront.services.payment_service import PaymentService

router = APIRouter(prefix="/payments", tags=["payments"])


def get_service(
    db: Session = Depends(get_db),
    providers: PaymentProviders = Depends(get_providers),
) -> PaymentService:
    return PaymentService(db, providers)


def _actor_id(actor: Optional[Actor]) -> Optional[str]:
    return actor.id if actor else None


@router.post("/stripe/intent", response_model=StripeIntentOut)
def create_stripe_intent(
    payload: OrderRefIn,
    actor: Optional[Actor] = Depends(optional_actor),
    svc: PaymentService = Depends(get_service),
):
    return svc.create_card_intent(_actor_id(actor), payload.order_id)


@router.post("/stripe/result", response_model=StripeResultOut)
def record_stripe_result(
    payload: StripeResultIn,
    actor: Optional[Actor] = Depends(optional_actor),
    svc: PaymentService = Depends(get_service),
):
    return svc.record_card_result(_actor_id(actor), payload.order_id, payload.intent_id, payload.status)


@router.post("/razorpay/order", response_model=RazorpayOrderOut)
def create_razorpay_order(
    payload: OrderRefIn,
    actor: Optional[Actor] = Depends(optional_actor),
    svc: PaymentService = Depends(get_service),
):
    return svc.create_razorpay_order(_actor_id(actor), payload.order_id)


@router.post("/razorpay/verify", response_model=PaymentStatusOut)
def verify_razorpay_payment(
    payload: RazorpayVerifyIn,
    actor: Optional[Actor] = Depends(optional_actor),
    svc: PaymentService = Depends(get_service),
):
    return svc.verify_razorpay(
        _actor_id(actor),
        payload.order_id,
        payload.provider_order_id,
        payload.payment_id,
        payload.signature,
    )

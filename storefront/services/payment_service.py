# storefront/services/payment_service.py
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from storefront.data.models.order import OrderModel
from storefront.domain.errors import ConflictError, PaymentVerificationError, ValidationError
from storefront.repos.order_repo import OrderRepo
from storefront.services.order_service import load_order_for
from storefront.services.payment_providers import PaymentProviders
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

# status intentu u dostawcy -> (status zamowienia, status platnosci)
INTENT_TRANSITIONS = {
    "succeeded": ("confirmed", "paid"),
    "processing": ("pending", "pending"),
    "requires_action": ("pending", "pending"),
    "canceled": ("cancelled", "failed"),
}
#kazdy inny status = platnosc nieudana, zamowienie czeka na ponowienie
FAILED_TRANSITION = ("pending", "failed")

PROCEED_STATUSES = {"succeeded", "processing"}


class PaymentService:
    """
    Maszyna stanow platnosci zamowienia:
    status: pending -> confirmed | cancelled | failed
    payment_status: pending -> paid | failed

    Bledy dostawcy nie cofaja zamowienia - zostaje pending do ponowienia.
    Zamowienie oznaczane jako paid tylko po weryfikacji u dostawcy / podpisu.
    """

    def __init__(self, db: Session, providers: PaymentProviders):
        self.repo = OrderRepo(db)
        self.providers = providers

    def _order_for_method(self, actor_id: Optional[str], order_id: str, method: str) -> OrderModel:
        order = load_order_for(self.repo, actor_id, order_id, allow_guest=True)
        if order.payment_method != method:
            raise ValidationError(f"Order was not placed with {method} payment", status_code=400)
        return order

    @staticmethod
    def _require_pending(order: OrderModel) -> None:
        if order.payment_status == "paid":
            raise ConflictError("Order already paid")
        if order.status != "pending":
            raise ConflictError(f"Order is {order.status}")

    # =====================================================
    # CARD (intent)
    # =====================================================
    def create_card_intent(self, actor_id: Optional[str], order_id: str) -> Dict[str, Any]:
        order = self._order_for_method(actor_id, order_id, "card")
        self._require_pending(order)

        handle = self.providers.card.create_intent(order.id, order.total, order.currency)
        self.repo.update_order_payment(order.id, order.status, order.payment_status, handle.intent_id)

        return {
            "ok": True,
            "order_id": order.id,
            "intent_id": handle.intent_id,
            "client_secret": handle.client_secret,
            "amount": order.total,
            "currency": order.currency,
        }

    def record_card_result(
        self,
        actor_id: Optional[str],
        order_id: str,
        intent_id: str,
        reported_status: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Klient raportuje wynik potwierdzenia w Stripe; status bierzemy
        z ponownego odczytu intentu u dostawcy, nie z raportu klienta.
        """
        order = self._order_for_method(actor_id, order_id, "card")

        if order.payment_status == "paid":
            if order.payment_ref == intent_id:
                return self._card_outcome(order, "succeeded")
            raise ConflictError("Order already paid")
        if order.status != "pending":
            raise ConflictError(f"Order is {order.status}")

        intent = self.providers.card.retrieve_intent(intent_id)
        if intent.order_id != order.id or (intent.amount is not None and intent.amount != order.total):
            logger.warning(f"Intent {intent_id} does not match order {order.id}")
            raise PaymentVerificationError("Payment intent does not match order")

        if reported_status and reported_status != intent.status:
            logger.warning(
                f"Order {order.id}: client reported {reported_status}, provider says {intent.status}"
            )

        status, payment_status = INTENT_TRANSITIONS.get(intent.status, FAILED_TRANSITION)
        updated = self.repo.update_order_payment(order.id, status, payment_status, intent.intent_id)
        logger.info(f"Order {order.id}: intent {intent.status} -> {status}/{payment_status}")

        return self._card_outcome(updated, intent.status)

    @staticmethod
    def _card_outcome(order: OrderModel, intent_status: str) -> Dict[str, Any]:
        return {
            "ok": True,
            "order_id": order.id,
            "status": order.status,
            "payment_status": order.payment_status,
            "intent_status": intent_status,
            "proceed": intent_status in PROCEED_STATUSES,
            "requires_action": intent_status == "requires_action",
        }

    # =====================================================
    # RAZORPAY (order + podpis)
    # =====================================================
    def create_razorpay_order(self, actor_id: Optional[str], order_id: str) -> Dict[str, Any]:
        order = self._order_for_method(actor_id, order_id, "razorpay")
        self._require_pending(order)

        provider = self.providers.razorpay
        provider_order = provider.create_provider_order(order.id, order.total, order.currency)
        self.repo.update_order_payment(
            order.id, order.status, order.payment_status, provider_order.provider_order_id
        )

        return {
            "ok": True,
            "order_id": order.id,
            "provider_order_id": provider_order.provider_order_id,
            "amount": provider_order.amount,
            "currency": provider_order.currency,
            "key": getattr(provider, "key_id", None),
        }

    def verify_razorpay(
        self,
        actor_id: Optional[str],
        order_id: str,
        provider_order_id: str,
        payment_id: str,
        signature: str,
    ) -> Dict[str, Any]:
        """
        Use Case: potwierdzenie platnosci Razorpay.
        HMAC(secret, provider_order_id|payment_id) musi sie zgadzac z podpisem,
        inaczej zamowienie zostaje nietkniete - "sukces" od klienta nie wystarczy.
        """
        order = self._order_for_method(actor_id, order_id, "razorpay")
        provider = self.providers.razorpay

        if order.payment_status == "paid":
            if order.payment_ref == payment_id and provider.verify_signature(
                provider_order_id, payment_id, signature
            ):
                return {"ok": True, "order_id": order.id, "status": order.status, "payment_status": order.payment_status}
            raise ConflictError("Order already paid")
        if order.status != "pending":
            raise ConflictError(f"Order is {order.status}")

        if not provider.verify_signature(provider_order_id, payment_id, signature):
            logger.warning(f"Order {order.id}: invalid Razorpay signature")
            raise PaymentVerificationError("Invalid payment signature")

        #podpis wiaze tylko provider_order_id z payment_id; z zamowieniem wiaze go payment_ref
        #ustawiony w create_razorpay_order (brak = nie bylo zamowienia u dostawcy dla tego zamowienia)
        if not order.payment_ref or order.payment_ref != provider_order_id:
            logger.warning(f"Order {order.id}: provider order {provider_order_id} != {order.payment_ref}")
            raise PaymentVerificationError("Payment does not belong to this order")

        updated = self.repo.update_order_payment(order.id, "confirmed", "paid", payment_id)
        logger.info(f"Order {order.id} paid via Razorpay ({payment_id})")

        return {
            "ok": True,
            "order_id": updated.id,
            "status": updated.status,
            "payment_status": updated.payment_status,
        }

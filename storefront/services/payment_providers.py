# storefront/services/payment_providers.py
"""
Strategie platnosci, bramki traktowane jak czarne skrzynki:
- cod: nic do zrobienia po utworzeniu zamowienia
- card (Stripe): PaymentIntent, potwierdzenie po stronie klienta, status
  zawsze weryfikowany ponownie u dostawcy
- razorpay: zamowienie u dostawcy + podpis HMAC(secret, order_id|payment_id)
"""
import hashlib
import hmac
from abc import ABC, abstractmethod
from dataclasses import dataclass

import razorpay
import stripe
from razorpay.errors import BadRequestError, GatewayError, ServerError
from requests import RequestException

from storefront.domain.errors import PaymentProviderError
from storefront.utils.settings import (
    RAZORPAY_KEY_ID,
    RAZORPAY_KEY_SECRET,
    STRIPE_SECRET_KEY,
)
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class IntentHandle:
    intent_id: str
    client_secret: str


@dataclass(frozen=True)
class IntentStatus:
    intent_id: str
    status: str
    order_id: str | None
    amount: int | None


@dataclass(frozen=True)
class ProviderOrder:
    provider_order_id: str
    amount: int
    currency: str


class PaymentProvider(ABC):
    method: str = ""


class CashOnDeliveryProvider(PaymentProvider):
    method = "cod"


class IntentPaymentProvider(PaymentProvider):
    method = "card"

    @abstractmethod
    def create_intent(self, order_id: str, amount: int, currency: str) -> IntentHandle:
        ...

    @abstractmethod
    def retrieve_intent(self, intent_id: str) -> IntentStatus:
        ...


class SignaturePaymentProvider(PaymentProvider):
    method = "razorpay"

    def __init__(self, key_secret: str):
        self.key_secret = key_secret

    @abstractmethod
    def create_provider_order(self, order_id: str, amount: int, currency: str) -> ProviderOrder:
        ...

    def expected_signature(self, provider_order_id: str, payment_id: str) -> str:
        message = f"{provider_order_id}|{payment_id}".encode("utf-8")
        return hmac.new(self.key_secret.encode("utf-8"), message, hashlib.sha256).hexdigest()

    def verify_signature(self, provider_order_id: str, payment_id: str, signature: str) -> bool:
        if not self.key_secret:
            raise PaymentProviderError("Razorpay not configured", status_code=503)
        expected = self.expected_signature(provider_order_id, payment_id)
        return hmac.compare_digest(expected.encode("utf-8"), (signature or "").encode("utf-8"))


class StripeProvider(IntentPaymentProvider):
    def __init__(self, secret_key: str | None = None):
        self.secret_key = secret_key if secret_key is not None else STRIPE_SECRET_KEY

    def _require_config(self):
        if not self.secret_key:
            raise PaymentProviderError("Stripe not configured", status_code=503)

    def create_intent(self, order_id: str, amount: int, currency: str) -> IntentHandle:
        self._require_config()
        logger.info(f"Stripe create intent for order {order_id} amount={amount} {currency}")
        try:
            intent = stripe.PaymentIntent.create(
                api_key=self.secret_key,
                amount=amount,
                currency=currency.lower(),
                metadata={"order_id": order_id},
                automatic_payment_methods={"enabled": True},
            )
        except stripe.StripeError as e:
            logger.warning(f"Stripe intent creation failed for order {order_id}: {e}")
            raise PaymentProviderError("Failed to create payment intent") from e
        return IntentHandle(intent_id=intent.id, client_secret=intent.client_secret)

    def retrieve_intent(self, intent_id: str) -> IntentStatus:
        self._require_config()
        try:
            intent = stripe.PaymentIntent.retrieve(intent_id, api_key=self.secret_key)
        except stripe.StripeError as e:
            logger.warning(f"Stripe intent lookup failed for {intent_id}: {e}")
            raise PaymentProviderError("Failed to verify payment intent") from e
        return IntentStatus(
            intent_id=intent.id,
            status=intent.status,
            order_id=getattr(intent.metadata, "order_id", None),
            amount=intent.amount,
        )


class RazorpayProvider(SignaturePaymentProvider):
    def __init__(self, key_id: str | None = None, key_secret: str | None = None):
        super().__init__(key_secret if key_secret is not None else RAZORPAY_KEY_SECRET)
        self.key_id = key_id if key_id is not None else RAZORPAY_KEY_ID

    def _client(self) -> razorpay.Client:
        return razorpay.Client(auth=(self.key_id, self.key_secret))

    def create_provider_order(self, order_id: str, amount: int, currency: str) -> ProviderOrder:
        if not self.key_id or not self.key_secret:
            raise PaymentProviderError("Razorpay not configured", status_code=503)

        logger.info(f"Razorpay create order for order {order_id} amount={amount} {currency}")
        #bez retry: tworzy zasob po stronie dostawcy
        try:
            data = self._client().order.create(
                data={
                    "amount": amount,
                    "currency": currency.upper(),
                    "receipt": order_id,
                    "notes": {"storefront_order_id": order_id},
                }
            )
            return ProviderOrder(
                provider_order_id=str(data["id"]),
                amount=int(data.get("amount", amount)),
                currency=str(data.get("currency", currency.upper())),
            )
        except (BadRequestError, GatewayError, ServerError, RequestException, ValueError, KeyError) as e:
            logger.warning(f"Razorpay order creation failed for order {order_id}: {e}")
            raise PaymentProviderError("Failed to create Razorpay order") from e


@dataclass
class PaymentProviders:
    cod: CashOnDeliveryProvider
    card: IntentPaymentProvider
    razorpay: SignaturePaymentProvider


def default_providers() -> PaymentProviders:
    return PaymentProviders(
        cod=CashOnDeliveryProvider(),
        card=StripeProvider(),
        razorpay=RazorpayProvider(),
    )

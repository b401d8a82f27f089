import hashlib
import hmac

import pytest
import requests
from razorpay.errors import BadRequestError, ServerError

from storefront.domain.errors import (
    ConflictError,
    NotFoundError,
    PaymentProviderError,
    PaymentVerificationError,
    ValidationError,
)
from storefront.domain.schemas import OrderLineIn, ShippingIn
from storefront.services import payment_providers
from storefront.services.order_service import OrderService
from storefront.services.payment_providers import RazorpayProvider, StripeProvider
from storefront.services.payment_service import PaymentService

from conftest import KEYBOARD, MOUSE, RAZORPAY_SECRET, SHIPPING


def sign(provider_order_id: str, payment_id: str, secret: str = RAZORPAY_SECRET) -> str:
    message = f"{provider_order_id}|{payment_id}".encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


@pytest.fixture()
def place_order(db_session, catalog):
    orders = OrderService(db_session, catalog)

    def _place(payment_method: str, actor_id: str | None = "user-1") -> str:
        result = orders.create_order(
            actor_id=actor_id,
            shipping=ShippingIn(**SHIPPING),
            lines=[OrderLineIn(item_id=KEYBOARD, quantity=1), OrderLineIn(item_id=MOUSE, quantity=2)],
            payment_method=payment_method,
        )
        return result["id"]

    return _place


@pytest.fixture()
def payments(db_session, providers) -> PaymentService:
    return PaymentService(db_session, providers)


# =====================================================
# CARD (Stripe intent)
# =====================================================
def test_card_intent_is_created_for_order_total(payments, place_order, stripe_provider):
    order_id = place_order("card")

    result = payments.create_card_intent("user-1", order_id)

    assert result["amount"] == 7997
    assert result["currency"] == "INR"
    assert result["client_secret"].startswith(result["intent_id"])
    assert stripe_provider.intents[result["intent_id"]].order_id == order_id
    assert payments.repo.get_order(order_id).payment_ref == result["intent_id"]


@pytest.mark.parametrize(
    "intent_status, status, payment_status, proceed, requires_action",
    [
        ("succeeded", "confirmed", "paid", True, False),
        ("processing", "pending", "pending", True, False),
        ("requires_action", "pending", "pending", False, True),
        ("canceled", "cancelled", "failed", False, False),
        ("requires_payment_method", "pending", "failed", False, False),
    ],
)
def test_card_result_follows_provider_status(
    payments, place_order, stripe_provider, intent_status, status, payment_status, proceed, requires_action
):
    order_id = place_order("card")
    intent_id = payments.create_card_intent("user-1", order_id)["intent_id"]
    stripe_provider.settle(intent_id, intent_status)

    result = payments.record_card_result("user-1", order_id, intent_id, "succeeded")

    assert result["status"] == status
    assert result["payment_status"] == payment_status
    assert result["intent_status"] == intent_status
    assert result["proceed"] is proceed
    assert result["requires_action"] is requires_action


def test_card_result_is_idempotent_once_paid(payments, place_order, stripe_provider):
    order_id = place_order("card")
    intent_id = payments.create_card_intent("user-1", order_id)["intent_id"]
    stripe_provider.settle(intent_id, "succeeded")
    payments.record_card_result("user-1", order_id, intent_id)

    again = payments.record_card_result("user-1", order_id, intent_id)

    assert again["status"] == "confirmed"
    assert again["payment_status"] == "paid"
    with pytest.raises(ConflictError):
        payments.create_card_intent("user-1", order_id)


def test_card_result_rejects_intent_of_another_order(payments, place_order, stripe_provider):
    first = place_order("card")
    second = place_order("card")
    intent_id = payments.create_card_intent("user-1", first)["intent_id"]
    stripe_provider.settle(intent_id, "succeeded")

    with pytest.raises(PaymentVerificationError):
        payments.record_card_result("user-1", second, intent_id)

    order = payments.repo.get_order(second)
    assert order.status == "pending"
    assert order.payment_status == "pending"


def test_provider_error_leaves_order_pending(payments, place_order):
    order_id = place_order("card")
    with pytest.raises(PaymentProviderError):
        payments.record_card_result("user-1", order_id, "pi_unknown")
    assert payments.repo.get_order(order_id).status == "pending"


def test_cancelled_order_cannot_be_paid_again(payments, place_order, stripe_provider):
    order_id = place_order("card")
    intent_id = payments.create_card_intent("user-1", order_id)["intent_id"]
    stripe_provider.settle(intent_id, "canceled")
    payments.record_card_result("user-1", order_id, intent_id)

    with pytest.raises(ConflictError):
        payments.create_card_intent("user-1", order_id)


def test_failed_card_payment_can_be_retried(payments, place_order, stripe_provider):
    order_id = place_order("card")
    first = payments.create_card_intent("user-1", order_id)["intent_id"]
    stripe_provider.settle(first, "requires_payment_method")
    payments.record_card_result("user-1", order_id, first)

    second = payments.create_card_intent("user-1", order_id)["intent_id"]
    stripe_provider.settle(second, "succeeded")
    result = payments.record_card_result("user-1", order_id, second)

    assert result["payment_status"] == "paid"


def test_payment_method_must_match_order(payments, place_order):
    order_id = place_order("cod")
    with pytest.raises(ValidationError) as exc:
        payments.create_card_intent("user-1", order_id)
    assert exc.value.status_code == 400


def test_other_actors_order_is_not_found(payments, place_order):
    order_id = place_order("card", actor_id="alice")
    with pytest.raises(NotFoundError):
        payments.create_card_intent("bob", order_id)
    with pytest.raises(NotFoundError):
        payments.create_card_intent(None, order_id)


def test_guest_order_is_payable_by_id(payments, place_order):
    order_id = place_order("card", actor_id=None)
    assert payments.create_card_intent(None, order_id)["order_id"] == order_id


# =====================================================
# RAZORPAY (order + signature)
# =====================================================
def test_razorpay_order_uses_total_minor_units(payments, place_order, razorpay_provider):
    order_id = place_order("razorpay")

    result = payments.create_razorpay_order("user-1", order_id)

    assert result["amount"] == 7997
    assert result["key"] == "rzp_test_key"
    assert payments.repo.get_order(order_id).payment_ref == result["provider_order_id"]


def test_razorpay_correct_signature_confirms_and_pays(payments, place_order):
    order_id = place_order("razorpay")
    provider_order_id = payments.create_razorpay_order("user-1", order_id)["provider_order_id"]

    result = payments.verify_razorpay(
        "user-1", order_id, provider_order_id, "pay_00000001", sign(provider_order_id, "pay_00000001")
    )

    assert result["status"] == "confirmed"
    assert result["payment_status"] == "paid"
    assert payments.repo.get_order(order_id).payment_ref == "pay_00000001"


def test_razorpay_any_mutated_signature_byte_is_rejected(payments, place_order):
    order_id = place_order("razorpay")
    provider_order_id = payments.create_razorpay_order("user-1", order_id)["provider_order_id"]
    good = sign(provider_order_id, "pay_00000001")

    for i in range(len(good)):
        flipped = "0" if good[i] != "0" else "1"
        bad = good[:i] + flipped + good[i + 1:]
        with pytest.raises(PaymentVerificationError):
            payments.verify_razorpay("user-1", order_id, provider_order_id, "pay_00000001", bad)

    order = payments.repo.get_order(order_id)
    assert order.status == "pending"
    assert order.payment_status == "pending"


def test_razorpay_signature_for_other_provider_order_is_rejected(payments, place_order):
    order_id = place_order("razorpay")
    payments.create_razorpay_order("user-1", order_id)

    foreign = "order_rzp_9999"
    with pytest.raises(PaymentVerificationError) as exc:
        payments.verify_razorpay("user-1", order_id, foreign, "pay_00000001", sign(foreign, "pay_00000001"))
    assert exc.value.message == "Payment does not belong to this order"


def test_razorpay_payment_of_another_order_cannot_be_replayed(payments, place_order):
    paid_order = place_order("razorpay")
    provider_order_id = payments.create_razorpay_order("user-1", paid_order)["provider_order_id"]
    signature = sign(provider_order_id, "pay_00000001")
    payments.verify_razorpay("user-1", paid_order, provider_order_id, "pay_00000001", signature)

    #drugie zamowienie bez zamowienia u dostawcy
    unpaid_order = place_order("razorpay")
    with pytest.raises(PaymentVerificationError) as exc:
        payments.verify_razorpay("user-1", unpaid_order, provider_order_id, "pay_00000001", signature)
    assert exc.value.message == "Payment does not belong to this order"

    order = payments.repo.get_order(unpaid_order)
    assert order.status == "pending"
    assert order.payment_status == "pending"
    assert order.payment_ref is None


def test_razorpay_payment_cannot_move_to_order_with_own_provider_order(payments, place_order):
    paid_order = place_order("razorpay")
    first_ref = payments.create_razorpay_order("user-1", paid_order)["provider_order_id"]
    payments.verify_razorpay("user-1", paid_order, first_ref, "pay_00000001", sign(first_ref, "pay_00000001"))

    other_order = place_order("razorpay")
    payments.create_razorpay_order("user-1", other_order)
    with pytest.raises(PaymentVerificationError):
        payments.verify_razorpay("user-1", other_order, first_ref, "pay_00000001", sign(first_ref, "pay_00000001"))
    assert payments.repo.get_order(other_order).payment_status == "pending"


def test_razorpay_verify_is_idempotent(payments, place_order):
    order_id = place_order("razorpay")
    provider_order_id = payments.create_razorpay_order("user-1", order_id)["provider_order_id"]
    signature = sign(provider_order_id, "pay_00000001")
    payments.verify_razorpay("user-1", order_id, provider_order_id, "pay_00000001", signature)

    again = payments.verify_razorpay("user-1", order_id, provider_order_id, "pay_00000001", signature)
    assert again["payment_status"] == "paid"

    with pytest.raises(ConflictError):
        payments.verify_razorpay(
            "user-1", order_id, provider_order_id, "pay_00000002", sign(provider_order_id, "pay_00000002")
        )


# =====================================================
# Real providers: configuration and HTTP handling
# =====================================================
def test_stripe_without_key_is_unavailable():
    with pytest.raises(PaymentProviderError) as exc:
        StripeProvider(secret_key="").create_intent("order-1", 100, "INR")
    assert exc.value.status_code == 503


def test_razorpay_without_credentials_is_unavailable():
    provider = RazorpayProvider(key_id="", key_secret="")
    with pytest.raises(PaymentProviderError) as exc:
        provider.create_provider_order("order-1", 100, "INR")
    assert exc.value.status_code == 503
    with pytest.raises(PaymentProviderError):
        provider.verify_signature("order_x", "pay_x", "sig")


class _FakeOrders:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.created = []

    def create(self, data):
        self.created.append(data)
        if self.error:
            raise self.error
        return self.response


@pytest.fixture()
def razorpay_client(monkeypatch):
    """Podmienia razorpay.Client; zwraca (orders, auths) do asercji."""
    orders = _FakeOrders()
    auths = []

    class _FakeClient:
        def __init__(self, auth):
            auths.append(auth)
            self.order = orders

    monkeypatch.setattr(payment_providers.razorpay, "Client", _FakeClient)
    return orders, auths


def test_razorpay_provider_creates_order_through_sdk(razorpay_client):
    orders, auths = razorpay_client
    orders.response = {"id": "order_rzp_abc", "amount": 7997, "currency": "INR"}
    provider = RazorpayProvider(key_id="rzp_key", key_secret="secret")

    result = provider.create_provider_order("order-1", 7997, "inr")

    assert result.provider_order_id == "order_rzp_abc"
    assert result.amount == 7997
    assert result.currency == "INR"
    assert auths == [("rzp_key", "secret")]
    body = orders.created[0]
    assert body["amount"] == 7997
    assert body["currency"] == "INR"
    assert body["receipt"] == "order-1"


@pytest.mark.parametrize(
    "error",
    [ServerError("gateway down"), BadRequestError("bad amount"), requests.ConnectionError("refused")],
)
def test_razorpay_provider_wraps_sdk_errors(razorpay_client, error):
    orders, _ = razorpay_client
    orders.error = error
    provider = RazorpayProvider(key_id="rzp_key", key_secret="secret")

    with pytest.raises(PaymentProviderError) as exc:
        provider.create_provider_order("order-1", 100, "INR")
    assert exc.value.status_code == 502


def test_razorpay_provider_rejects_response_without_id(razorpay_client):
    orders, _ = razorpay_client
    orders.response = {"amount": 1}
    provider = RazorpayProvider(key_id="rzp_key", key_secret="secret")

    with pytest.raises(PaymentProviderError):
        provider.create_provider_order("order-1", 100, "INR")


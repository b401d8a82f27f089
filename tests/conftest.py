"""Shared pytest fixtures: in-memory SQLite, fake Redis, fake catalog and payment providers."""
from __future__ import annotations

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret-key-with-at-least-32-bytes"
os.environ.setdefault("LOG_LEVEL", "WARNING")

from dataclasses import dataclass, field, replace

import jwt
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from storefront.api import deps
from storefront.data.database import Base, get_db, init_db
from storefront.domain.catalog import CatalogItem, CatalogLookup
from storefront.domain.errors import PaymentProviderError, UpstreamError
from storefront.main import create_app
from storefront.services.lock_service import LockService
from storefront.services.payment_providers import (
    CashOnDeliveryProvider,
    IntentHandle,
    IntentPaymentProvider,
    IntentStatus,
    PaymentProviders,
    ProviderOrder,
    SignaturePaymentProvider,
)
from storefront.utils import settings

KEYBOARD = "8f2d6c1e-0b5a-4c51-9d7e-1a2b3c4d5e01"
MOUSE = "8f2d6c1e-0b5a-4c51-9d7e-1a2b3c4d5e02"
CABLE = "8f2d6c1e-0b5a-4c51-9d7e-1a2b3c4d5e03"

CATALOG_ITEMS = [
    CatalogItem(id=KEYBOARD, title="Mechanical Keyboard", price=1999, currency="INR"),
    CatalogItem(id=MOUSE, title="Wireless Mouse", price=2999, currency="INR"),
    CatalogItem(id=CABLE, title="USB-C Cable", price=499, currency="INR"),
]

RAZORPAY_SECRET = "rzp_test_secret"

SHIPPING = {
    "name": "Asha Rao",
    "email": "asha@example.com",
    "phone": "+91 98765 43210",
    "address_line1": "12 MG Road",
    "city": "Bengaluru",
    "state": "Karnataka",
    "postal_code": "560001",
}


@dataclass
class FakeRedisClient:
    data: dict[str, str] = field(default_factory=dict)
    expiry: dict[str, int] = field(default_factory=dict)

    def get(self, key: str):
        return self.data.get(key)

    def set(self, name: str, value: str, nx: bool = False, ex: int | None = None):
        if nx and name in self.data:
            return None
        self.data[name] = value
        if ex is not None:
            self.expiry[name] = ex
        return True

    def delete(self, key: str) -> int:
        existed = 1 if key in self.data else 0
        self.data.pop(key, None)
        self.expiry.pop(key, None)
        return existed

    def eval(self, _script: str, _keys_count: int, key: str, token: str) -> int:
        if self.data.get(key) == token:
            self.delete(key)
            return 1
        return 0


class FakeCatalog:
    def __init__(self, items=CATALOG_ITEMS):
        self.items = {item.id: item for item in items}
        self.available = True
        self.calls: list[list[str]] = []

    def resolve_items(self, ids) -> CatalogLookup:
        wanted = list(dict.fromkeys(str(i) for i in ids if i))
        self.calls.append(wanted)
        if not self.available:
            raise UpstreamError("Catalog unavailable")
        found = {i: self.items[i] for i in wanted if i in self.items}
        return CatalogLookup(found=found, missing=[i for i in wanted if i not in found])

    def get_item(self, item_id: str):
        return self.resolve_items([item_id]).found.get(item_id)


class FakeStripeProvider(IntentPaymentProvider):
    def __init__(self):
        self.intents: dict[str, IntentStatus] = {}

    def create_intent(self, order_id: str, amount: int, currency: str) -> IntentHandle:
        intent_id = f"pi_test_{len(self.intents) + 1}"
        self.intents[intent_id] = IntentStatus(
            intent_id=intent_id,
            status="requires_payment_method",
            order_id=order_id,
            amount=amount,
        )
        return IntentHandle(intent_id=intent_id, client_secret=f"{intent_id}_secret_x")

    def retrieve_intent(self, intent_id: str) -> IntentStatus:
        if intent_id not in self.intents:
            raise PaymentProviderError("Failed to verify payment intent")
        return self.intents[intent_id]

    def settle(self, intent_id: str, status: str) -> None:
        self.intents[intent_id] = replace(self.intents[intent_id], status=status)


class FakeRazorpayProvider(SignaturePaymentProvider):
    key_id = "rzp_test_key"

    def __init__(self):
        super().__init__(RAZORPAY_SECRET)
        self.orders: list[ProviderOrder] = []

    def create_provider_order(self, order_id: str, amount: int, currency: str) -> ProviderOrder:
        provider_order = ProviderOrder(
            provider_order_id=f"order_rzp_{len(self.orders) + 1:04d}",
            amount=amount,
            currency=currency,
        )
        self.orders.append(provider_order)
        return provider_order


def make_token(actor_id: str) -> str:
    return jwt.encode({"sub": actor_id}, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def auth_headers(actor_id: str) -> dict:
    return {"Authorization": f"Bearer {make_token(actor_id)}"}


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def db_session(engine):
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def fake_redis() -> FakeRedisClient:
    return FakeRedisClient()


@pytest.fixture()
def catalog() -> FakeCatalog:
    return FakeCatalog()


@pytest.fixture()
def lock_service(fake_redis) -> LockService:
    return LockService(client=fake_redis)


@pytest.fixture()
def stripe_provider() -> FakeStripeProvider:
    return FakeStripeProvider()


@pytest.fixture()
def razorpay_provider() -> FakeRazorpayProvider:
    return FakeRazorpayProvider()


@pytest.fixture()
def providers(stripe_provider, razorpay_provider) -> PaymentProviders:
    return PaymentProviders(
        cod=CashOnDeliveryProvider(),
        card=stripe_provider,
        razorpay=razorpay_provider,
    )


@pytest.fixture()
def client(db_session, fake_redis, catalog, lock_service, providers):
    app = create_app()
    app.dependency_overrides[get_db] = lambda: db_session
    app.dependency_overrides[deps.get_redis] = lambda: fake_redis
    app.dependency_overrides[deps.get_catalog] = lambda: catalog
    app.dependency_overrides[deps.get_lock_service] = lambda: lock_service
    app.dependency_overrides[deps.get_providers] = lambda: providers
    return TestClient(app)

# storefront/services/cart_service.py
from typing import Any, Dict

from storefront.domain.cart import Cart
from storefront.domain.errors import NotFoundError
from storefront.services.cart_backends import CartBackend
from storefront.services.catalog_client import CatalogClient
from storefront.utils.settings import STORE_CURRENCY
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def cart_snapshot(cart: Cart, mode: str) -> Dict[str, Any]:
    lines = cart.to_payload()
    return {
        "ok": True,
        "mode": mode,
        "lines": lines,
        "subtotal": cart.subtotal(),
        "currency": lines[0]["currency"] if lines else STORE_CURRENCY,
    }


class CartService:
    """
    Prosta implementacja cqrs dla koszyka, niezalezna od trybu (gosc/konto)
    commands (add, set_quantity, remove, clear) modyfikuja stan
    query (snapshot) tylko odczyt
    """

    def __init__(self, backend: CartBackend, catalog: CatalogClient):
        self.backend = backend
        self.catalog = catalog

    #query - odczyt
    def snapshot(self) -> Dict[str, Any]:
        return cart_snapshot(self.backend.load(), self.backend.mode)

    #commands
    def add_item(self, item_id: str, quantity: Any = 1) -> Dict[str, Any]:
        #cena i tytul zawsze z katalogu, nigdy od klienta
        item = self.catalog.get_item(item_id)
        if not item:
            raise NotFoundError("Item not found")

        logger.info(f"Adding {item_id} x{quantity} to {self.backend.mode} cart")
        cart = self.backend.add(item, quantity)
        return cart_snapshot(cart, self.backend.mode)

    def set_quantity(self, item_id: str, quantity: int) -> Dict[str, Any]:
        if quantity > 0 and item_id not in self.backend.quantities():
            raise NotFoundError("Line not found")

        cart = self.backend.set_quantity(item_id, quantity)
        return cart_snapshot(cart, self.backend.mode)

    def remove_item(self, item_id: str) -> Dict[str, Any]:
        #brak linii = sukces (idempotentne)
        cart = self.backend.remove(item_id)
        return cart_snapshot(cart, self.backend.mode)

    def clear(self) -> Dict[str, Any]:
        cart = self.backend.clear()
        return cart_snapshot(cart, self.backend.mode)

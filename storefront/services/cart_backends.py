# storefront/services/cart_backends.py
"""
Dwa tryby koszyka za jednym interfejsem:
- LocalCartBackend: koszyk goscia, dokument JSON w redisie per sesja przegladarki
- ServerCartBackend: koszyk konta, tabela cart_lines (zrodlo prawdy po zalogowaniu)

Call site zalezy tylko od CartBackend, backend wybierany raz na sesje.
"""
import json
from abc import ABC, abstractmethod
from typing import Any, Dict, Tuple

import redis
from sqlalchemy.orm import Session

from storefront.domain.cart import Cart, CartLine, clamp_qty
from storefront.domain.catalog import CatalogItem
from storefront.repos.cart_repo import CartRepo
from storefront.services.catalog_client import CatalogClient
from storefront.utils.retry import redis_retry
from storefront.utils.settings import GUEST_CART_TTL_SECONDS, STORE_CURRENCY
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

UNAVAILABLE_TITLE = "Unavailable item"


class CartBackend(ABC):
    mode: str = ""

    @abstractmethod
    def load(self) -> Cart:
        ...

    @abstractmethod
    def add(self, item: CatalogItem, quantity: Any = 1) -> Cart:
        ...

    @abstractmethod
    def set_quantity(self, item_id: str, quantity: Any) -> Cart:
        ...

    @abstractmethod
    def remove(self, item_id: str) -> Cart:
        ...

    @abstractmethod
    def clear(self) -> Cart:
        ...

    def quantities(self) -> Dict[str, int]:
        return self.load().quantities()


class LocalCartBackend(CartBackend):
    """
    Dokument: {"lines": [...], "synced": {item_id: qty}}
    "synced" to baseline - ilosci skopiowane z serwera przy ostatnim mirrorze.
    Przy nastepnym scalaniu liczy sie tylko to, co gosc dodal ponad baseline.
    """

    mode = "local"

    def __init__(self, session_id: str, client: redis.Redis, ttl: int = GUEST_CART_TTL_SECONDS):
        self.session_id = session_id
        self.redis = client
        self.ttl = ttl

    @property
    def key(self) -> str:
        return f"cart:guest:{self.session_id}"

    @redis_retry()
    def _read(self) -> str | None:
        return self.redis.get(self.key)

    @redis_retry()
    def _write(self, raw: str) -> None:
        self.redis.set(self.key, raw, ex=self.ttl)

    def _load_doc(self) -> Tuple[Cart, Dict[str, int]]:
        raw = self._read()
        cart = Cart()
        if not raw:
            return cart, {}
        try:
            doc = json.loads(raw)
        except (TypeError, ValueError):
            logger.warning(f"Guest cart {self.session_id} unreadable, starting empty")
            return cart, {}
        if not isinstance(doc, dict):
            return cart, {}

        cart.replace_from_snapshot(doc.get("lines"))
        synced = doc.get("synced") if isinstance(doc.get("synced"), dict) else {}
        baseline = {str(k): clamp_qty(v) for k, v in synced.items()}
        return cart, baseline

    def _save_doc(self, cart: Cart, baseline: Dict[str, int]) -> None:
        self._write(json.dumps({"lines": cart.to_payload(), "synced": baseline}))

    def load(self) -> Cart:
        return self._load_doc()[0]

    def baseline(self) -> Dict[str, int]:
        return self._load_doc()[1]

    def add(self, item: CatalogItem, quantity: Any = 1) -> Cart:
        cart, baseline = self._load_doc()
        line = cart.add(item, quantity)
        self._save_doc(cart, baseline)
        logger.info(f"Guest cart {self.session_id}: {item.id} -> {line.quantity}")
        return cart

    def set_quantity(self, item_id: str, quantity: Any) -> Cart:
        cart, baseline = self._load_doc()
        cart.set_quantity(item_id, quantity)
        self._save_doc(cart, baseline)
        return cart

    def remove(self, item_id: str) -> Cart:
        cart, baseline = self._load_doc()
        cart.remove(item_id)
        self._save_doc(cart, baseline)
        return cart

    def clear(self) -> Cart:
        cart, baseline = self._load_doc()
        cart.clear()
        self._save_doc(cart, baseline)
        return cart

    def replace_from_snapshot(self, rows: Any) -> bool:
        """Podmiana z autorytatywnego zrodla; zle wejscie nie kasuje koszyka."""
        cart, baseline = self._load_doc()
        if not cart.replace_from_snapshot(rows):
            logger.warning(f"Guest cart {self.session_id}: snapshot rejected, keeping current lines")
            return False
        self._save_doc(cart, cart.quantities())
        return True

    def guest_contribution(self) -> Dict[str, int]:
        """Ilosci dodane przez goscia ponad ostatni mirror z serwera."""
        cart, baseline = self._load_doc()
        contribution = {}
        for item_id, qty in cart.quantities().items():
            delta = qty - baseline.get(item_id, 0)
            if delta > 0:
                contribution[item_id] = delta
        return contribution


class ServerCartBackend(CartBackend):
    """Kazda mutacja od razu commitowana, wszystko filtrowane po actor_id."""

    mode = "server"

    def __init__(self, db: Session, actor_id: str, catalog: CatalogClient):
        self.repo = CartRepo(db)
        self.actor_id = actor_id
        self.catalog = catalog

    def quantities(self) -> Dict[str, int]:
        return {row.item_id: clamp_qty(row.qty) for row in self.repo.get_lines(self.actor_id)}

    def load(self) -> Cart:
        rows = self.repo.get_lines(self.actor_id)
        if not rows:
            return Cart()

        lookup = self.catalog.resolve_items(row.item_id for row in rows)
        lines = []
        for row in rows:
            item = lookup.found.get(row.item_id)
            if item:
                lines.append(
                    CartLine(
                        item_id=row.item_id,
                        quantity=clamp_qty(row.qty),
                        title=item.title,
                        price=item.price,
                        currency=item.currency,
                        image_url=item.image_url,
                    )
                )
            else:
                #pozycja zniknela z katalogu - pokazujemy, ale z cena 0
                lines.append(
                    CartLine(
                        item_id=row.item_id,
                        quantity=clamp_qty(row.qty),
                        title=UNAVAILABLE_TITLE,
                        price=0,
                        currency=STORE_CURRENCY,
                    )
                )
        return Cart(lines)

    def add(self, item: CatalogItem, quantity: Any = 1) -> Cart:
        q = clamp_qty(quantity)
        existing = self.repo.get_line(self.actor_id, item.id)
        new_qty = clamp_qty(existing.qty + q) if existing else q
        self.repo.upsert_line(self.actor_id, item.id, new_qty)
        logger.info(f"Server cart {self.actor_id}: {item.id} -> {new_qty}")
        return self.load()

    def set_quantity(self, item_id: str, quantity: Any) -> Cart:
        try:
            requested = int(float(quantity))
        except (TypeError, ValueError, OverflowError):
            requested = 0

        if requested <= 0:
            self.repo.delete_line(self.actor_id, item_id)
        elif self.repo.get_line(self.actor_id, item_id):
            self.repo.upsert_line(self.actor_id, item_id, clamp_qty(requested))
        logger.info(f"Server cart {self.actor_id}: set {item_id} -> {max(requested, 0)}")
        return self.load()

    def write_line(self, item_id: str, quantity: int) -> None:
        """Upsert ilosci bez przeladowania snapshotu (uzywane przy scalaniu)."""
        self.repo.upsert_line(self.actor_id, item_id, clamp_qty(quantity))

    def remove(self, item_id: str) -> Cart:
        self.repo.delete_line(self.actor_id, item_id)
        return self.load()

    def clear(self) -> Cart:
        removed = self.repo.clear_lines(self.actor_id)
        logger.info(f"Server cart {self.actor_id} cleared ({removed} lines)")
        return Cart()

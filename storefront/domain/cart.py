# storefront/domain/cart.py
"""
Koszyk w pamieci: jedna linia na item_id, ilosci zawsze w [1, 99].

Ta sama klasa obsluguje koszyk goscia (linie niosa snapshot tytulu/ceny
z momentu dodania) i snapshot koszyka z serwera (ceny z katalogu).
"""
import math
from dataclasses import asdict, dataclass, replace
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional

from storefront.domain.catalog import CatalogItem
from storefront.utils.settings import STORE_CURRENCY

MIN_QTY = 1
MAX_QTY = 99


def clamp_qty(value: Any) -> int:
    try:
        n = int(float(value or 0))
    except (TypeError, ValueError, OverflowError):
        n = 0
    return max(MIN_QTY, min(MAX_QTY, n))


def safe_price(value: Any) -> int:
    """Cena jako nieujemny int; smieci (tekst, NaN, inf, None) -> 0."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, str):
        try:
            n = float(value)
        except ValueError:
            return 0
    elif isinstance(value, (int, float, Decimal)):
        n = float(value)
    else:
        return 0
    if not math.isfinite(n):
        return 0
    return max(0, int(n))


def sum_quantities(lines: Iterable["CartLine"]) -> Dict[str, int]:
    """item_id -> ilosc; duplikaty sumowane i przycinane do 99."""
    result: Dict[str, int] = {}
    for line in lines:
        if not line.item_id:
            continue
        result[line.item_id] = clamp_qty(result.get(line.item_id, 0) + clamp_qty(line.quantity))
    return result


def merge_quantities(server: Mapping[str, int], local: Mapping[str, int]) -> Dict[str, int]:
    """
    Scalanie addytywne: start od serwera, ilosci lokalne dodawane,
    wynik przyciety do 99. Zera z lokalnej strony sa pomijane.
    """
    merged = dict(server)
    for item_id, qty in local.items():
        if qty <= 0:
            continue
        merged[item_id] = min(MAX_QTY, merged.get(item_id, 0) + qty)
    return merged


@dataclass(frozen=True)
class CartLine:
    item_id: str
    quantity: int
    title: str = "Item"
    price: int = 0
    currency: str = STORE_CURRENCY
    image_url: Optional[str] = None

    @property
    def line_total(self) -> int:
        return safe_price(self.price) * self.quantity

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def line_from_row(row: Any) -> Optional[CartLine]:
    """
    Normalizacja wiersza snapshotu do CartLine.
    Obslugiwane ksztalty:
      {"item": {"id", "title", "price", ...}, "qty"}
      {"item_id"/"itemId", "qty"/"quantity", "title", "price", ...}
    Zwraca None dla wierszy, ktorych nie da sie uzyc.
    """
    if isinstance(row, CartLine):
        return replace(row, quantity=clamp_qty(row.quantity))
    if not isinstance(row, Mapping):
        return None

    qty = row.get("qty", row.get("quantity", 1))
    item = row.get("item")
    if isinstance(item, Mapping) and item.get("id"):
        source = item
        item_id = item["id"]
    else:
        source = row
        item_id = row.get("item_id") or row.get("itemId")
    if not item_id:
        return None

    return CartLine(
        item_id=str(item_id),
        quantity=clamp_qty(qty),
        title=str(source.get("title") or "Item"),
        price=safe_price(source.get("price")),
        currency=str(source.get("currency") or STORE_CURRENCY),
        image_url=source.get("image_url", source.get("imageUrl")),
    )


class Cart:
    def __init__(self, lines: Iterable[CartLine] = ()):
        self._lines: Dict[str, CartLine] = {}
        for line in lines:
            existing = self._lines.get(line.item_id)
            if existing:
                line = replace(existing, quantity=clamp_qty(existing.quantity + line.quantity))
            self._lines[line.item_id] = replace(line, quantity=clamp_qty(line.quantity))

    @property
    def lines(self) -> List[CartLine]:
        return list(self._lines.values())

    def __len__(self) -> int:
        return len(self._lines)

    def __contains__(self, item_id: str) -> bool:
        return item_id in self._lines

    def get(self, item_id: str) -> Optional[CartLine]:
        return self._lines.get(item_id)

    def quantities(self) -> Dict[str, int]:
        return {item_id: line.quantity for item_id, line in self._lines.items()}

    def add(self, item: CatalogItem, quantity: Any = 1) -> CartLine:
        q = clamp_qty(quantity)
        existing = self._lines.get(item.id)
        if existing:
            line = replace(existing, quantity=clamp_qty(existing.quantity + q))
        else:
            line = CartLine(
                item_id=item.id,
                quantity=q,
                title=item.title,
                price=safe_price(item.price),
                currency=item.currency,
                image_url=item.image_url,
            )
        self._lines[item.id] = line
        return line

    def set_quantity(self, item_id: str, quantity: Any) -> None:
        try:
            requested = int(float(quantity))
        except (TypeError, ValueError, OverflowError):
            requested = 0
        if requested <= 0:
            self.remove(item_id)
            return
        existing = self._lines.get(item_id)
        if existing is None:
            return
        self._lines[item_id] = replace(existing, quantity=clamp_qty(requested))

    def remove(self, item_id: str) -> None:
        self._lines.pop(item_id, None)

    def clear(self) -> None:
        self._lines = {}

    def replace_from_snapshot(self, rows: Any) -> bool:
        """
        Podmiana calego koszyka na snapshot z serwera.
        Nie-lista albo niepusta lista bez zadnego poprawnego wiersza -> no-op,
        zeby chwilowy blad serwera nie wyczyscil koszyka uzytkownika.
        """
        if not isinstance(rows, (list, tuple)):
            return False
        mapped = [line for line in (line_from_row(r) for r in rows) if line is not None]
        if rows and not mapped:
            return False
        self._lines = {}
        for line in mapped:
            existing = self._lines.get(line.item_id)
            if existing:
                line = replace(existing, quantity=clamp_qty(existing.quantity + line.quantity))
            self._lines[line.item_id] = line
        return True

    def subtotal(self) -> int:
        return sum((line.line_total for line in self._lines.values()), 0)

    def to_payload(self) -> List[Dict[str, Any]]:
        return [line.to_dict() for line in self._lines.values()]

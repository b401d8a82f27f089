# storefront/domain/pricing.py
from dataclasses import dataclass
from typing import Iterable, Tuple

from storefront.utils.settings import FREE_SHIPPING_THRESHOLD, SHIPPING_FEE


def to_minor(value) -> int:
    """Kwota w minor units: obcieta do int, nigdy ujemna."""
    return max(0, int(value))


def shipping_fee_for(
    subtotal: int,
    threshold: int = FREE_SHIPPING_THRESHOLD,
    fee: int = SHIPPING_FEE,
) -> int:
    if subtotal == 0 or subtotal >= threshold:
        return 0
    return to_minor(fee)


@dataclass(frozen=True)
class Totals:
    subtotal: int
    shipping: int
    total: int


def compute_totals(
    lines: Iterable[Tuple[int, int]],
    threshold: int = FREE_SHIPPING_THRESHOLD,
    fee: int = SHIPPING_FEE,
) -> Totals:
    """lines: pary (cena jednostkowa, ilosc)."""
    subtotal = to_minor(sum(to_minor(price) * int(qty) for price, qty in lines))
    shipping = shipping_fee_for(subtotal, threshold, fee)
    return Totals(subtotal=subtotal, shipping=shipping, total=to_minor(subtotal + shipping))

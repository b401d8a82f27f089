# storefront/services/order_service.py
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy.orm import Session

from storefront.data.models.order import OrderModel
from storefront.data.models.order_line import OrderLineModel
from storefront.domain.cart import CartLine, sum_quantities
from storefront.domain.errors import NotFoundError, ValidationError
from storefront.domain.pricing import compute_totals, to_minor
from storefront.domain.schemas import OrderLineIn, ShippingIn
from storefront.repos.cart_repo import CartRepo
from storefront.repos.order_repo import OrderRepo
from storefront.services.catalog_client import CatalogClient
from storefront.utils.settings import STORE_CURRENCY
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

MAX_PAGE_SIZE = 50


def load_order_for(
    repo: OrderRepo,
    actor_id: Optional[str],
    order_id: str,
    allow_guest: bool = False,
) -> OrderModel:
    """
    Zamowienie innego aktora wyglada jak nieistniejace (nie zdradzamy, ze jest).
    Zamowienie goscia (user_id None) dostepne po samym id tylko z allow_guest (platnosci).
    """
    order = repo.get_order(order_id)
    if not order:
        raise NotFoundError("Order not found")
    if order.user_id is None:
        if not allow_guest:
            raise NotFoundError("Order not found")
    elif order.user_id != actor_id:
        raise NotFoundError("Order not found")
    return order


def line_to_dict(line: OrderLineModel) -> Dict[str, Any]:
    return {
        "id": line.id,
        "item_id": line.item_id,
        "title": line.title,
        "qty": line.qty,
        "price": line.price,
        "currency": line.currency,
        "image_url": line.image_url,
        "line_total": line.price * line.qty,
    }


def order_to_dict(order: OrderModel, lines: Optional[Sequence[OrderLineModel]] = None) -> Dict[str, Any]:
    data = {
        "id": order.id,
        "status": order.status,
        "payment_method": order.payment_method,
        "payment_status": order.payment_status,
        "payment_ref": order.payment_ref,
        "subtotal": order.subtotal,
        "shipping": order.shipping,
        "total": order.total,
        "currency": order.currency,
        "created_at": order.created_at,
    }
    if lines is not None:
        data["line_count"] = len(lines)
        data["lines"] = [line_to_dict(line) for line in lines]
    return data


class OrderService:
    """
    Serwis odpowiedzialny za domene zamowien.
    Separacja od CartService - koszyk jest tylko zrodlem linii.
    """

    def __init__(self, db: Session, catalog: CatalogClient, currency: str = STORE_CURRENCY):
        self.repo = OrderRepo(db)
        self.cart_repo = CartRepo(db)
        self.catalog = catalog
        self.currency = currency

    def create_order(
        self,
        actor_id: Optional[str],
        shipping: ShippingIn,
        lines: Optional[List[OrderLineIn]] = None,
        payment_method: str = "cod",
    ) -> Dict[str, Any]:
        """
        Use Case: Tworzenie zamowienia.

        1. Linie: od klienta, a jak ich brak - koszyk serwera zalogowanego aktora
        2. Kazde item_id rozwiazane w katalogu, brak = odrzucenie calosci
        3. Ceny tylko z katalogu (nigdy od klienta), total = subtotal + shipping
        4. Zamowienie + linie w jednej transakcji
        5. Koszyk serwera czyszczony niezaleznie od metody platnosci
        """
        source = [CartLine(item_id=line.item_id, quantity=line.quantity) for line in lines or []]
        if not source and actor_id:
            source = [CartLine(item_id=row.item_id, quantity=row.qty) for row in self.cart_repo.get_lines(actor_id)]

        #powtorzone item_id = jedna linia, ilosc zsumowana i przycieta do 99
        source = list(sum_quantities(source).items())

        if not source:
            raise ValidationError("Cart is empty", status_code=400)

        item_ids = [item_id for item_id, _ in source]
        lookup = self.catalog.resolve_items(item_ids)
        if lookup.missing:
            raise NotFoundError(f"Item not found: {lookup.missing[0]}")

        order_lines = []
        priced = []
        for item_id, qty in source:
            item = lookup.found[item_id]
            price = to_minor(item.price)
            order_lines.append(
                OrderLineModel(
                    item_id=item.id,
                    title=item.title,
                    price=price,
                    currency=self.currency,
                    qty=qty,
                    image_url=item.image_url,
                )
            )
            priced.append((price, qty))

        totals = compute_totals(priced)

        order = OrderModel(
            user_id=actor_id,
            name=shipping.name,
            email=shipping.email,
            phone=shipping.phone,
            address_line1=shipping.address_line1,
            address_line2=shipping.address_line2,
            city=shipping.city,
            state=shipping.state,
            postal_code=shipping.postal_code,
            country=shipping.country or "India",
            subtotal=totals.subtotal,
            shipping=totals.shipping,
            total=totals.total,
            currency=self.currency,
            status="pending",
            payment_method=payment_method,
            payment_status="pending",
        )
        created = self.repo.create_order(order, order_lines)

        logger.info(
            f"Order {created.id} created: {len(order_lines)} lines, "
            f"subtotal={totals.subtotal} shipping={totals.shipping} total={totals.total} via {payment_method}"
        )

        #zamowienie utworzone = koszyk "zatwierdzony", platnosc osobno
        cart_cleared = False
        if actor_id:
            self.cart_repo.clear_lines(actor_id)
            cart_cleared = True

        return {
            "ok": True,
            "id": created.id,
            "amount": created.total,
            "subtotal": created.subtotal,
            "shipping": created.shipping,
            "currency": created.currency,
            "payment_method": created.payment_method,
            "cart_cleared": cart_cleared,
            "lines": [],
        }

    def get_order(self, actor_id: str, order_id: str) -> Dict[str, Any]:
        """
        Use Case: Pobranie zamowienia (Query).
        """
        order = load_order_for(self.repo, actor_id, order_id)
        return {"ok": True, "order": order_to_dict(order, self.repo.get_lines(order.id))}

    def list_orders(self, actor_id: str, page: int = 1, limit: int = 10, expand: bool = False) -> Dict[str, Any]:
        page = max(1, int(page))
        limit = min(MAX_PAGE_SIZE, max(1, int(limit)))
        offset = (page - 1) * limit

        orders = self.repo.list_orders(actor_id, limit=limit, offset=offset)
        total = self.repo.count_orders(actor_id)
        lines_by_order = self.repo.get_lines_for([o.id for o in orders])

        out = []
        for order in orders:
            lines = lines_by_order.get(order.id, [])
            if expand:
                out.append(order_to_dict(order, lines))
            else:
                data = order_to_dict(order)
                data["line_count"] = len(lines)
                out.append(data)

        return {"ok": True, "page": page, "limit": limit, "total": total, "orders": out}

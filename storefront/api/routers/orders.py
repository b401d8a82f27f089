# storefront/api/routers/orders.py
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from storefront.api.deps import Actor, get_catalog, optional_actor, require_actor
from storefront.data.database import get_db
from storefront.domain.schemas import OrderCreateIn, OrderCreatedOut, OrderDetailOut, OrderListOut
from storefront.services.catalog_client import CatalogClient
from storefront.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


def get_service(
    db: Session = Depends(get_db),
    catalog: CatalogClient = Depends(get_catalog),
) -> OrderService:
    return OrderService(db, catalog)


@router.post("", response_model=OrderCreatedOut, status_code=201)
def create_order(
    payload: OrderCreateIn,
    actor: Optional[Actor] = Depends(optional_actor),
    svc: OrderService = Depends(get_service),
):
    """
    Tworzy zamowienie z linii klienta albo z koszyka serwera.
    Koszyk zalogowanego jest czyszczony od razu, niezaleznie od platnosci.
    """
    return svc.create_order(
        actor_id=actor.id if actor else None,
        shipping=payload.shipping,
        lines=payload.lines,
        payment_method=payload.payment_method,
    )


@router.get("", response_model=OrderListOut)
def list_orders(
    page: int = Query(1),
    limit: int = Query(10),
    expand: bool = Query(False),
    actor: Actor = Depends(require_actor),
    svc: OrderService = Depends(get_service),
):
    return svc.list_orders(actor.id, page=page, limit=limit, expand=expand)


@router.get("/{order_id}", response_model=OrderDetailOut)
def get_order(
    order_id: str,
    actor: Actor = Depends(require_actor),
    svc: OrderService = Depends(get_service),
):
    """
    Pobiera szczegoly zamowienia.
    """
    return svc.get_order(actor.id, order_id)

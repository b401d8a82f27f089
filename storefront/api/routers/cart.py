# storefront/api/routers/cart.py
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from storefront.api.deps import Actor, get_catalog, require_actor
from storefront.data.database import get_db
from storefront.domain.schemas import AddLineIn, CartOut, SetQuantityIn
from storefront.services.cart_backends import ServerCartBackend
from storefront.services.cart_service import CartService
from storefront.services.catalog_client import CatalogClient

router = APIRouter(prefix="/cart", tags=["cart"])


def get_service(
    actor: Actor = Depends(require_actor),
    db: Session = Depends(get_db),
    catalog: CatalogClient = Depends(get_catalog),
) -> CartService:
    return CartService(
        backend=ServerCartBackend(db, actor.id, catalog),
        catalog=catalog,
    )


@router.get("", response_model=CartOut)
def get_cart(svc: CartService = Depends(get_service)):
    return svc.snapshot()


@router.post("", response_model=CartOut, status_code=201)
def add_line(payload: AddLineIn, svc: CartService = Depends(get_service)):
    return svc.add_item(payload.item_id, payload.quantity)


@router.patch("", response_model=CartOut)
def set_quantity(payload: SetQuantityIn, svc: CartService = Depends(get_service)):
    return svc.set_quantity(payload.item_id, payload.quantity)


@router.delete("", response_model=CartOut)
def delete_lines(
    item_id: Optional[str] = Query(None, max_length=64),
    svc: CartService = Depends(get_service),
):
    """Z item_id usuwa jedna linie, bez - czysci caly koszyk."""
    if item_id:
        return svc.remove_item(item_id)
    return svc.clear()

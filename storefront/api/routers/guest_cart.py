# storefront/api/routers/guest_cart.py
from typing import Optional

import redis
from fastapi import APIRouter, Depends, Query

from storefront.api.deps import get_catalog, get_redis, get_session_id
from storefront.domain.schemas import AddLineIn, CartOut, SetQuantityIn
from storefront.services.cart_backends import LocalCartBackend
from storefront.services.cart_service import CartService
from storefront.services.catalog_client import CatalogClient

router = APIRouter(prefix="/guest-cart", tags=["guest-cart"])


def get_service(
    session_id: str = Depends(get_session_id),
    client: redis.Redis = Depends(get_redis),
    catalog: CatalogClient = Depends(get_catalog),
) -> CartService:
    return CartService(
        backend=LocalCartBackend(session_id, client),
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
    if item_id:
        return svc.remove_item(item_id)
    return svc.clear()

# storefront/api/routers/session.py
import redis
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from storefront.api import error_body
from storefront.api.deps import (
    Actor,
    get_catalog,
    get_lock_service,
    get_redis,
    get_session_id,
    require_actor,
)
from storefront.data.database import get_db
from storefront.domain.schemas import CartOut
from storefront.services.cart_backends import LocalCartBackend, ServerCartBackend
from storefront.services.cart_service import cart_snapshot
from storefront.services.cart_session import CartSession
from storefront.services.catalog_client import CatalogClient
from storefront.services.lock_service import LockService
from storefront.services.reconciliation import ReconciliationEngine

router = APIRouter(prefix="/session", tags=["session"])


def get_cart_session(
    session_id: str = Depends(get_session_id),
    db: Session = Depends(get_db),
    client: redis.Redis = Depends(get_redis),
    catalog: CatalogClient = Depends(get_catalog),
    lock_service: LockService = Depends(get_lock_service),
) -> CartSession:
    return CartSession(
        local=LocalCartBackend(session_id, client),
        server_factory=lambda actor_id: ServerCartBackend(db, actor_id, catalog),
        engine=ReconciliationEngine(catalog, lock_service),
    )


@router.post("/login", response_model=CartOut)
def login(
    actor: Actor = Depends(require_actor),
    session: CartSession = Depends(get_cart_session),
):
    """
    Wywolywane zaraz po zapisaniu tokenu po zalogowaniu:
    koszyk goscia scalany z koszykiem konta, wynik lustrzany w koszyku lokalnym.
    """
    session.auth.login(actor.token, actor.id)
    outcome = session.last_sync
    if not outcome.ok:
        return JSONResponse(status_code=outcome.status_code, content=error_body(outcome.reason))
    return cart_snapshot(outcome.cart, "server")


@router.post("/logout", response_model=CartOut)
def logout(
    actor: Actor = Depends(require_actor),
    session: CartSession = Depends(get_cart_session),
):
    """Koszyk NIE jest czyszczony - lokalny dostaje najnowszy snapshot serwera."""
    session.auth.restore(actor.token, actor.id)
    session.auth.logout()
    return session.snapshot()

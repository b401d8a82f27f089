# storefront/services/cart_session.py
from dataclasses import dataclass, field
from typing import Any, Callable, Dict

from storefront.domain.cart import Cart
from storefront.domain.errors import StorefrontError
from storefront.services.auth_state import AuthEvent, AuthState
from storefront.services.cart_backends import CartBackend, LocalCartBackend, ServerCartBackend
from storefront.services.cart_service import cart_snapshot
from storefront.services.reconciliation import ReconciliationEngine
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class SyncOutcome:
    ok: bool
    reason: str | None = None
    cart: Cart = field(default_factory=Cart)
    status_code: int = 200


class CartSession:
    """
    Koszyk jednej sesji przegladarki. Subskrybuje AuthState:
    LOGIN -> scalanie lokalnego koszyka z serwerem
    LOGOUT -> lustro serwera do lokalnego koszyka (bez czyszczenia)

    Bledy synchronizacji nie wychodza poza obserwatora, laduja w last_sync,
    a widoczny koszyk zostaje taki, jaki byl.
    """

    def __init__(
        self,
        local: LocalCartBackend,
        server_factory: Callable[[str], ServerCartBackend],
        engine: ReconciliationEngine,
        auth: AuthState | None = None,
    ):
        self.local = local
        self.server_factory = server_factory
        self.engine = engine
        self.auth = auth or AuthState()
        self.last_sync: SyncOutcome | None = None
        self._unsubscribe = self.auth.subscribe(self._on_auth_change)

    @property
    def backend(self) -> CartBackend:
        if self.auth.is_authenticated:
            return self.server_factory(self.auth.actor_id)
        return self.local

    def snapshot(self) -> Dict[str, Any]:
        backend = self.backend
        return cart_snapshot(backend.load(), backend.mode)

    def close(self) -> None:
        self._unsubscribe()

    def _on_auth_change(self, event: AuthEvent, auth: AuthState) -> None:
        server = self.server_factory(auth.actor_id)
        try:
            if event is AuthEvent.LOGIN:
                cart = self.engine.reconcile(self.local, server)
            else:
                cart = self.engine.mirror_for_logout(self.local, server)
        except StorefrontError as e:
            logger.warning(f"Cart sync on {event.value} failed for {auth.actor_id}: {e.message}")
            self.last_sync = SyncOutcome(ok=False, reason=e.message, status_code=e.status_code)
            return
        except Exception as e:
            logger.exception(f"Cart sync on {event.value} failed for {auth.actor_id}")
            self.last_sync = SyncOutcome(ok=False, reason=f"Cart sync failed: {e}", status_code=502)
            return
        self.last_sync = SyncOutcome(ok=True, cart=cart)

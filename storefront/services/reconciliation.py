# storefront/services/reconciliation.py
from storefront.domain.cart import Cart, merge_quantities
from storefront.domain.catalog import CatalogLookup
from storefront.domain.errors import ConflictError
from storefront.services.cart_backends import LocalCartBackend, ServerCartBackend
from storefront.services.catalog_client import CatalogClient
from storefront.services.lock_service import LockService
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class ReconciliationEngine:
    """
    Scalanie koszyka goscia z koszykiem konta, raz po zalogowaniu.

    1. lokalny koszyk -> item_id: ilosc (tylko to, co gosc dodal ponad baseline)
    2. koszyk serwera -> item_id: ilosc
    3. merge: serwer + lokalne ilosci, max 99 (addytywnie, nie max)
    4. zapis na serwer: nowe pozycje dodane, zmienione ilosci nadpisane,
       reszta bez zmian - kazdy krok idempotentny, retry calego przebiegu zbiega
    5. ponowny odczyt serwera i lustro do lokalnego koszyka

    Dwie rownolegle proby scalania dla tego samego aktora blokuje lock w redisie.
    """

    def __init__(self, catalog: CatalogClient, lock_service: LockService | None = None):
        self.catalog = catalog
        self.lock_service = lock_service

    def reconcile(self, local: LocalCartBackend, server: ServerCartBackend) -> Cart:
        token = None
        if self.lock_service is not None:
            token = self.lock_service.acquire_merge_lock(server.actor_id)
            if token is None:
                raise ConflictError("Cart merge already in progress")
        try:
            return self._reconcile(local, server)
        finally:
            if token is not None:
                self.lock_service.release_merge_lock(server.actor_id, token)

    def _reconcile(self, local: LocalCartBackend, server: ServerCartBackend) -> Cart:
        local_map = local.guest_contribution()
        server_map = server.quantities()
        merged = merge_quantities(server_map, local_map)

        logger.info(
            f"Reconciling cart for {server.actor_id}: "
            f"local={len(local_map)} server={len(server_map)} merged={len(merged)}"
        )

        new_ids = [item_id for item_id in merged if item_id not in server_map]
        lookup = self.catalog.resolve_items(new_ids) if new_ids else CatalogLookup()

        for item_id, qty in merged.items():
            if item_id not in server_map:
                if item_id not in lookup.found:
                    logger.warning(f"Skipping {item_id} during merge: not in catalog")
                    continue
                logger.info(f"Merge add {item_id} x{qty}")
                server.write_line(item_id, qty)
            elif server_map[item_id] != qty:
                logger.info(f"Merge update {item_id}: {server_map[item_id]} -> {qty}")
                server.write_line(item_id, qty)

        final = server.load()
        local.replace_from_snapshot(final.lines)
        return final

    def mirror_for_logout(self, local: LocalCartBackend, server: ServerCartBackend) -> Cart:
        """Przed wylogowaniem: najnowszy snapshot serwera do lokalnego koszyka. Nigdy nie czysci."""
        final = server.load()
        local.replace_from_snapshot(final.lines)
        logger.info(f"Mirrored {len(final)} lines to guest cart {local.session_id} before logout")
        return local.load()

# storefront/services/catalog_client.py
from typing import Iterable

import requests
from requests import RequestException

from storefront.domain.cart import safe_price
from storefront.domain.catalog import CatalogItem, CatalogLookup
from storefront.domain.errors import UpstreamError
from storefront.utils.retry import http_retry
from storefront.utils.settings import CATALOG_SERVICE_URL, STORE_CURRENCY
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class CatalogClient:
    """
    Katalog jest tylko do odczytu z punktu widzenia koszyka i zamowien.
    resolve_items zwraca znalezione pozycje i osobno id, ktorych brak.
    """

    def __init__(self, base_url: str | None = None, timeout: int = 2):
        self.base_url = (base_url or CATALOG_SERVICE_URL).rstrip("/")
        self.timeout = timeout

    @http_retry()
    def _fetch_items(self, ids: list[str]) -> dict:
        url = f"{self.base_url}/items"
        logger.info(f"CatalogClient GET {url} ids={len(ids)}")

        resp = requests.get(url, params={"ids": ",".join(ids)}, timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()

    def resolve_items(self, ids: Iterable[str]) -> CatalogLookup:
        wanted = list(dict.fromkeys(str(i) for i in ids if i))
        if not wanted:
            return CatalogLookup()

        try:
            payload = self._fetch_items(wanted)
        except RequestException as e:
            logger.error(f"Catalog lookup failed: {e}")
            raise UpstreamError("Catalog unavailable") from e

        found = {}
        for row in payload.get("items") or []:
            item_id = str(row.get("id") or "")
            if item_id not in wanted:
                continue
            found[item_id] = CatalogItem(
                id=item_id,
                title=str(row.get("title") or "Item"),
                price=safe_price(row.get("price")),
                currency=str(row.get("currency") or STORE_CURRENCY),
                image_url=row.get("image_url"),
            )

        missing = [i for i in wanted if i not in found]
        return CatalogLookup(found=found, missing=missing)

    def get_item(self, item_id: str) -> CatalogItem | None:
        return self.resolve_items([item_id]).found.get(str(item_id))

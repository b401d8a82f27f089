# storefront/domain/catalog.py
from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass(frozen=True)
class CatalogItem:
    id: str
    title: str
    price: int
    currency: str
    image_url: Optional[str] = None


@dataclass
class CatalogLookup:
    """Wynik resolve_items: znalezione po id + lista brakujacych id."""

    found: Dict[str, CatalogItem] = field(default_factory=dict)
    missing: List[str] = field(default_factory=list)

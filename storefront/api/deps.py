# storefront/api/deps.py
from dataclasses import dataclass
from functools import lru_cache

import jwt
import redis
from fastapi import Depends, Header
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from storefront.domain.errors import AuthorizationError
from storefront.services.catalog_client import CatalogClient
from storefront.services.lock_service import LockService
from storefront.services.payment_providers import PaymentProviders, default_providers
from storefront.utils import settings

_bearer = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Actor:
    id: str
    token: str


def decode_actor(token: str) -> Actor:
    """Tylko weryfikacja tokenu - wydawanie tokenow jest poza tym serwisem."""
    if not settings.JWT_SECRET:
        raise AuthorizationError("Unauthorized")
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except jwt.PyJWTError:
        raise AuthorizationError("Invalid token")

    actor_id = payload.get("sub") or payload.get("userId") or payload.get("id")
    if not actor_id:
        raise AuthorizationError("Invalid token")
    return Actor(id=str(actor_id), token=token)


def require_actor(credentials: HTTPAuthorizationCredentials | None = Depends(_bearer)) -> Actor:
    if credentials is None:
        raise AuthorizationError("Unauthorized")
    return decode_actor(credentials.credentials)


def optional_actor(credentials: HTTPAuthorizationCredentials | None = Depends(_bearer)) -> Actor | None:
    #brak naglowka = gosc; zly token = 401, nie cichy fallback na goscia
    if credentials is None:
        return None
    return decode_actor(credentials.credentials)


def get_session_id(
    x_cart_session: str = Header(..., alias="X-Cart-Session", min_length=8, max_length=128),
) -> str:
    return x_cart_session


@lru_cache
def get_redis() -> redis.Redis:
    return redis.Redis.from_url(settings.REDIS_URL, decode_responses=True)


def get_catalog() -> CatalogClient:
    return CatalogClient()


def get_lock_service(client: redis.Redis = Depends(get_redis)) -> LockService:
    return LockService(client=client)


def get_providers() -> PaymentProviders:
    return default_providers()

# storefront/services/lock_service.py
import uuid

import redis

from storefront.utils.retry import redis_retry
from storefront.utils.settings import REDIS_URL, MERGE_LOCK_TTL_SECONDS
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

#LUA porownaj i usun, atomicity
_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""

#redis wykonuje skrypt lua atomowo, nie mozna wcisnac sie miedzy GET a DEL
#wiec lock zwalnia tylko ten, kto go zalozyl (token)


class LockService:
    """
    -lock na scalanie koszyka per aktor (dwie karty logujace sie naraz)
    -zwalnianie locka tylko przez wlasciciela tokenu
    """

    def __init__(self, client: redis.Redis | None = None, url: str | None = None):
        self.redis = client or redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )

    @staticmethod
    def merge_key(actor_id: str) -> str:
        return f"cart:merge:{actor_id}"

    @redis_retry()
    def acquire_merge_lock(self, actor_id: str, ttl: int = MERGE_LOCK_TTL_SECONDS) -> str | None:
        key = self.merge_key(actor_id)
        token = uuid.uuid4().hex
        logger.info(f"Acquire lock {key}")
        #SET cart:merge:<actor> <token> NX EX <ttl>
        ok = self.redis.set(name=key, value=token, nx=True, ex=ttl)
        return token if ok else None

    @redis_retry()
    def release_merge_lock(self, actor_id: str, token: str) -> bool:
        key = self.merge_key(actor_id)
        logger.info(f"Release lock {key}")
        res = self.redis.eval(_RELEASE_LUA, 1, key, token)
        return bool(res)

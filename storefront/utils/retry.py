# storefront/utils/retry.py
import logging

import redis
import requests
from tenacity import before_sleep_log, retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def _retry_on(exc_types, attempts: int, base_wait: float, max_wait: float):
    return retry(
        reraise=True,
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(multiplier=base_wait, min=base_wait, max=max_wait),
        retry=retry_if_exception_type(exc_types),
        before_sleep=before_sleep_log(logger, logging.WARNING),
    )


def http_retry(attempts: int = 3):
    """Tylko dla idempotentnych GET (katalog). POST do bramek platnosci idzie bez retry."""
    return _retry_on(requests.RequestException, attempts, 0.3, 3)


def redis_retry(attempts: int = 3):
    return _retry_on(redis.RedisError, attempts, 0.2, 2)

"""Rate limiting configuration for the form API."""

import logging

import redis
from slowapi import Limiter
from slowapi.util import get_remote_address

from formbuilder.core.config import settings
from formbuilder.core.redis_client import get_redis_url

logger = logging.getLogger(__name__)

DEFAULT_LIMITS = (
    []
    if settings.is_testing or settings.RATE_LIMIT_API <= 0
    else [f"{settings.RATE_LIMIT_API}/minute"]
)
OTP_LIMIT = f"{settings.RATE_LIMIT_OTP}/minute"
PAYMENT_LIMIT = f"{settings.RATE_LIMIT_PAYMENT}/minute"


def _storage_uri() -> str:
    url = get_redis_url()
    if settings.is_testing or not url:
        return "memory://"
    try:
        client = redis.from_url(url, socket_connect_timeout=1)
        client.ping()
    except redis.RedisError as exc:
        logger.warning("Redis unavailable for rate limiting, using in-memory: %s", exc)
        return "memory://"
    return url


limiter = Limiter(
    key_func=get_remote_address,
    storage_uri=_storage_uri(),
    default_limits=DEFAULT_LIMITS,
    enabled=not settings.is_testing,
)

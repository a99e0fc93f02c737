"""Request rate limits (slowapi), shared across workers through redis when it is reachable."""

import logging
import os

from slowapi import Limiter
from slowapi.util import get_remote_address

from clinicops.core.config import settings

logger = logging.getLogger(__name__)

IS_TESTING = os.getenv("TESTING", "").lower() in ("1", "true", "yes")
MEMORY_STORAGE = "memory://"

# Anonymous endpoints: lead form, invite preview, shared report links
PUBLIC_LIMIT = "1000/minute" if IS_TESTING else f"{settings.RATE_LIMIT_PUBLIC}/minute"


def _default_limits() -> list[str]:
    if IS_TESTING or settings.RATE_LIMIT_API <= 0:
        return []
    return [f"{settings.RATE_LIMIT_API}/minute"]


def _storage_uri() -> str:
    """Redis when it answers a ping, otherwise per-process memory."""
    if IS_TESTING or not settings.REDIS_URL:
        return MEMORY_STORAGE
    try:
        import redis

        redis.from_url(settings.REDIS_URL, socket_connect_timeout=1).ping()
    except Exception as exc:
        logger.warning(f"Redis unavailable for rate limiting, using in-memory: {exc}")
        return MEMORY_STORAGE
    return settings.REDIS_URL


limiter = Limiter(
    key_func=get_remote_address,
    storage_uri=_storage_uri(),
    default_limits=_default_limits(),
)

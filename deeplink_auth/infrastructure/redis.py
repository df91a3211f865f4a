"""
Redis Connection Module

Creates the asynchronous Redis client backing the context store when
``CONTEXT_STORAGE_BACKEND`` is ``redis``. One client is created at startup and
closed at shutdown; requests share its connection pool.

**Security Note**: Ensure that REDIS_URL uses ``rediss://`` when connecting over
an insecure network. The URL may embed a password, so it is never logged.
"""

from typing import Optional

import structlog
from redis.asyncio import Redis

from deeplink_auth.core.config.settings import settings

logger = structlog.get_logger(__name__)


def create_redis_client(url: Optional[str] = None) -> Redis:
    """
    Create an asynchronous Redis client.

    Args:
        url: Connection URL; defaults to ``settings.REDIS_URL``.

    Returns:
        Redis: Client configured to decode responses as UTF-8 strings.
    """
    client = Redis.from_url(url or settings.REDIS_URL, encoding="utf-8", decode_responses=True)
    logger.debug("Redis connection created", host=settings.REDIS_HOST, port=settings.REDIS_PORT)
    return client

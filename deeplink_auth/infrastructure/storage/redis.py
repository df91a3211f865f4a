"""
Redis storage backend.

Keys are laid out as ``<prefix>:<namespace>:<key>``, where the namespace is
the browser session identifier. Consumption uses ``GETDEL`` so a pending
OAuth state can be validated at most once even when several workers receive
the same callback.

**Security Note**: stored values include pending OAuth state tokens. Reach
Redis over TLS (``REDIS_SSL``) on untrusted networks and never log the
connection URL.
"""

from typing import Iterable, List, Optional

import structlog
from redis.asyncio import Redis
from redis.exceptions import RedisError

from deeplink_auth.core.exceptions import StorageError
from deeplink_auth.domain.interfaces.storage import IStorageBackend

logger = structlog.get_logger(__name__)


class RedisStorageBackend(IStorageBackend):
    """``IStorageBackend`` backed by ``redis.asyncio``.

    Reads degrade to a miss when Redis fails, writes raise ``StorageError``.

    Args:
        client: An async Redis client created with ``decode_responses=True``.
        prefix: Common key prefix for every entry this backend writes.
        namespace: Scope inside the prefix; empty for the root backend.
    """

    def __init__(self, client: Redis, prefix: str = "authctx", namespace: str = ""):
        self.redis = client
        self.prefix = prefix
        self.namespace = namespace

    @property
    def _scope(self) -> str:
        return f"{self.prefix}:{self.namespace}" if self.namespace else self.prefix

    def _full_key(self, key: str) -> str:
        return f"{self._scope}:{key}"

    async def get(self, key: str) -> Optional[str]:
        try:
            return await self.redis.get(self._full_key(key))
        except RedisError as exc:
            logger.warning("redis_storage_read_failed", operation="get", error=type(exc).__name__)
            return None

    async def set(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> None:
        try:
            await self.redis.set(self._full_key(key), value, ex=ttl_seconds or None)
        except RedisError as exc:
            logger.error("redis_storage_write_failed", operation="set", error=type(exc).__name__)
            raise StorageError("Failed to persist authentication context") from exc

    async def remove(self, key: str) -> None:
        try:
            await self.redis.delete(self._full_key(key))
        except RedisError as exc:
            logger.error("redis_storage_write_failed", operation="delete", error=type(exc).__name__)
            raise StorageError("Failed to remove authentication context") from exc

    async def pop(self, key: str) -> Optional[str]:
        try:
            return await self.redis.getdel(self._full_key(key))
        except RedisError as exc:
            logger.warning("redis_storage_read_failed", operation="getdel", error=type(exc).__name__)
            return None

    async def clear(self, keys: Optional[Iterable[str]] = None) -> None:
        try:
            if keys is not None:
                full_keys: List[str] = [self._full_key(key) for key in keys]
            else:
                full_keys = [k async for k in self.redis.scan_iter(match=f"{self._scope}:*")]
            if full_keys:
                await self.redis.delete(*full_keys)
        except RedisError as exc:
            logger.error("redis_storage_write_failed", operation="clear", error=type(exc).__name__)
            raise StorageError("Failed to clear authentication context") from exc

    def scoped(self, namespace: str) -> "RedisStorageBackend":
        child = f"{self.namespace}:{namespace}" if self.namespace else namespace
        return RedisStorageBackend(self.redis, prefix=self.prefix, namespace=child)

    async def close(self) -> None:
        await self.redis.aclose()
        logger.debug("Redis connection closed")

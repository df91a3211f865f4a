"""In-process storage backend.

Suitable for a single worker and for tests. All scoped views share one dict,
so a session namespace created on one request sees what an earlier request
wrote for the same session.
"""

import time
from typing import Callable, Dict, Iterable, Optional, Tuple

import structlog

from deeplink_auth.domain.interfaces.storage import IStorageBackend

logger = structlog.get_logger(__name__)

# key -> (value, backend expiry in clock seconds or None)
_Entry = Tuple[str, Optional[float]]


class InMemoryStorageBackend(IStorageBackend):
    """Dict-backed ``IStorageBackend`` with namespacing and optional TTLs.

    Every coroutine completes without awaiting, so ``pop`` cannot interleave
    with another call on the same event loop.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.time,
        namespace: str = "",
        _data: Optional[Dict[str, _Entry]] = None,
    ):
        self._clock = clock
        self._namespace = namespace
        self._data: Dict[str, _Entry] = _data if _data is not None else {}

    def _full_key(self, key: str) -> str:
        return f"{self._namespace}:{key}" if self._namespace else key

    def _live(self, full_key: str) -> Optional[str]:
        entry = self._data.get(full_key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and self._clock() >= expires_at:
            del self._data[full_key]
            return None
        return value

    async def get(self, key: str) -> Optional[str]:
        return self._live(self._full_key(key))

    async def set(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> None:
        expires_at = self._clock() + ttl_seconds if ttl_seconds else None
        self._data[self._full_key(key)] = (value, expires_at)

    async def remove(self, key: str) -> None:
        self._data.pop(self._full_key(key), None)

    async def pop(self, key: str) -> Optional[str]:
        full_key = self._full_key(key)
        value = self._live(full_key)
        self._data.pop(full_key, None)
        return value

    async def clear(self, keys: Optional[Iterable[str]] = None) -> None:
        if keys is not None:
            for key in keys:
                self._data.pop(self._full_key(key), None)
            return

        if not self._namespace:
            self._data.clear()
            return
        prefix = f"{self._namespace}:"
        for full_key in [k for k in self._data if k.startswith(prefix)]:
            del self._data[full_key]

    def scoped(self, namespace: str) -> "InMemoryStorageBackend":
        return InMemoryStorageBackend(
            clock=self._clock,
            namespace=self._full_key(namespace),
            _data=self._data,
        )

    def purge_expired(self) -> int:
        """Drop every entry whose backend TTL has passed.

        Returns:
            int: Number of entries removed.
        """
        now = self._clock()
        expired = [
            key
            for key, (_, expires_at) in self._data.items()
            if expires_at is not None and now >= expires_at
        ]
        for key in expired:
            del self._data[key]
        if expired:
            logger.debug("memory_storage_purged", removed=len(expired))
        return len(expired)

    def __len__(self) -> int:
        return len(self._data)

"""Storage capability used by the ephemeral context store.

The context store never talks to a concrete backend; it receives an
``IStorageBackend`` already scoped to one browser session. Backends store
opaque strings. Expiry semantics are owned by the context store, the optional
``ttl_seconds`` only lets a backend reclaim space on its own.
"""

from abc import ABC, abstractmethod
from typing import Iterable, Optional


class IStorageBackend(ABC):
    """Interface for session-scoped key/value storage.

    Implementations must make ``pop`` atomic: when two callers pop the same
    key concurrently, at most one of them receives the value. The OAuth state
    check relies on this for single-use tokens.
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Return the stored value or None when absent."""
        raise NotImplementedError

    @abstractmethod
    async def set(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> None:
        """Store ``value`` under ``key``, replacing any previous value.

        Raises:
            StorageError: If the write could not be completed.
        """
        raise NotImplementedError

    @abstractmethod
    async def remove(self, key: str) -> None:
        """Delete ``key``. Deleting a missing key is not an error."""
        raise NotImplementedError

    @abstractmethod
    async def pop(self, key: str) -> Optional[str]:
        """Atomically read and delete ``key``."""
        raise NotImplementedError

    @abstractmethod
    async def clear(self, keys: Optional[Iterable[str]] = None) -> None:
        """Delete ``keys``, or everything in this scope when ``keys`` is None."""
        raise NotImplementedError

    @abstractmethod
    def scoped(self, namespace: str) -> "IStorageBackend":
        """Return a view of this backend restricted to ``namespace``."""
        raise NotImplementedError

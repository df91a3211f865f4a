"""Storage backends for the ephemeral context store."""

from .memory import InMemoryStorageBackend
from .redis import RedisStorageBackend

__all__ = ["InMemoryStorageBackend", "RedisStorageBackend"]

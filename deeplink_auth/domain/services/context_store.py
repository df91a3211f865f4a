"""Ephemeral, expiring storage for in-flight authentication context.

Values written here survive the round trip to an identity provider or an
email inbox and nothing longer: each entry carries an absolute expiry and is
never returned once that moment has passed. Expired entries are removed
lazily when read and periodically by a sweeper bound to the store's lifetime.

Entries are serialized as JSON objects ``{"value": str, "expiry": int}`` with
``expiry`` in epoch milliseconds. An entry that cannot be decoded is treated
as absent and removed.
"""

import asyncio
import contextlib
import json
import math
import time
from enum import Enum
from typing import Callable, Optional, Tuple, Union

import structlog

from deeplink_auth.core.exceptions import StorageError
from deeplink_auth.domain.interfaces.storage import IStorageBackend

logger = structlog.get_logger(__name__)

DEFAULT_TTL_MINUTES = 30
DEFAULT_SWEEP_INTERVAL_SECONDS = 30


class StorageKey(str, Enum):
    """The closed vocabulary of keys the auth flows may store."""

    AUTH_REDIRECT_URL = "auth_redirect_url"
    AUTH_COMPETITION_ID = "auth_competition_id"
    AUTH_FLOW = "auth_flow"
    OAUTH_STATE = "oauth_state"
    AUTH_CONTEXT_BACKUP = "auth_context_backup"
    AUTH_SESSION_EXPIRY = "auth_session_expiry"


KeyLike = Union[StorageKey, str]


def _resolve_key(key: KeyLike) -> StorageKey:
    try:
        return StorageKey(key)
    except ValueError:
        raise ValueError(f"Unknown auth context key: {key!r}") from None


class EphemeralContextStore:
    """Session-scoped, TTL-bounded key/value store for auth context.

    One instance serves one navigation or request. The backend it receives is
    already scoped to the browser session, so two sessions never observe each
    other's entries.

    Args:
        backend: Session-scoped storage backend.
        clock: Returns the current time in seconds; injectable for tests.
        sweep_interval_seconds: When set, entering the store as an async
            context manager starts a periodic sweep at this interval.
    """

    def __init__(
        self,
        backend: IStorageBackend,
        clock: Callable[[], float] = time.time,
        sweep_interval_seconds: Optional[float] = None,
    ):
        self._backend = backend
        self._clock = clock
        self._sweep_interval_seconds = sweep_interval_seconds
        self._sweeper: Optional[asyncio.Task] = None

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    @staticmethod
    def _decode(raw: str) -> Optional[Tuple[str, int]]:
        try:
            entry = json.loads(raw)
        except (TypeError, ValueError):
            return None
        if not isinstance(entry, dict):
            return None
        value = entry.get("value")
        expiry = entry.get("expiry")
        if not isinstance(value, str) or isinstance(expiry, bool):
            return None
        if not isinstance(expiry, (int, float)):
            return None
        return value, int(expiry)

    async def set(self, key: KeyLike, value: str, ttl_minutes: float = DEFAULT_TTL_MINUTES) -> None:
        """Store ``value`` under ``key`` for ``ttl_minutes``.

        Raises:
            ValueError: If ``key`` is not part of the vocabulary or the TTL is
                not positive.
            StorageError: If the backend rejects the write.
        """
        storage_key = _resolve_key(key)
        if ttl_minutes <= 0:
            raise ValueError("ttl_minutes must be positive")

        expiry = self._now_ms() + int(ttl_minutes * 60_000)
        payload = json.dumps({"value": value, "expiry": expiry})
        await self._backend.set(storage_key.value, payload, ttl_seconds=math.ceil(ttl_minutes * 60))
        logger.debug("auth_context_stored", key=storage_key.value, ttl_minutes=ttl_minutes)

    async def get(self, key: KeyLike) -> Optional[str]:
        """Return the live value for ``key`` or None.

        Expired and corrupt entries are removed on the way out.
        """
        storage_key = _resolve_key(key)
        raw = await self._backend.get(storage_key.value)
        if raw is None:
            return None

        decoded = self._decode(raw)
        if decoded is None:
            logger.warning("auth_context_entry_corrupt", key=storage_key.value)
            await self._discard(storage_key)
            return None

        value, expiry = decoded
        if self._now_ms() >= expiry:
            logger.debug("auth_context_entry_expired", key=storage_key.value)
            await self._discard(storage_key)
            return None
        return value

    async def consume(self, key: KeyLike) -> Optional[str]:
        """Atomically read and delete ``key``; same expiry rule as ``get``."""
        storage_key = _resolve_key(key)
        raw = await self._backend.pop(storage_key.value)
        if raw is None:
            return None

        decoded = self._decode(raw)
        if decoded is None:
            logger.warning("auth_context_entry_corrupt", key=storage_key.value)
            return None

        value, expiry = decoded
        if self._now_ms() >= expiry:
            logger.debug("auth_context_entry_expired", key=storage_key.value)
            return None
        return value

    async def remove(self, key: KeyLike) -> None:
        await self._backend.remove(_resolve_key(key).value)

    async def clear(self) -> None:
        """Remove every vocabulary key for this session."""
        await self._backend.clear(keys=[key.value for key in StorageKey])
        logger.debug("auth_context_cleared")

    async def _discard(self, key: StorageKey) -> None:
        try:
            await self._backend.remove(key.value)
        except StorageError:
            logger.warning("auth_context_discard_failed", key=key.value)

    async def sweep_expired(self) -> int:
        """Remove expired or corrupt vocabulary entries.

        Returns:
            int: Number of entries removed.
        """
        removed = 0
        now = self._now_ms()
        for key in StorageKey:
            raw = await self._backend.get(key.value)
            if raw is None:
                continue
            decoded = self._decode(raw)
            if decoded is None or now >= decoded[1]:
                await self._discard(key)
                removed += 1
        if removed:
            logger.debug("auth_context_swept", removed=removed)
        return removed

    async def _sweep_loop(self, interval_seconds: float) -> None:
        while True:
            await asyncio.sleep(interval_seconds)
            await self.sweep_expired()

    def start_sweeper(self, interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS) -> None:
        """Start the periodic sweep on the running event loop.

        Calling it while a sweeper is already running has no effect.
        """
        if self._sweeper is not None and not self._sweeper.done():
            return
        self._sweeper = asyncio.create_task(self._sweep_loop(interval_seconds))

    async def stop_sweeper(self) -> None:
        if self._sweeper is None:
            return
        self._sweeper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._sweeper
        self._sweeper = None

    @property
    def sweeper_running(self) -> bool:
        return self._sweeper is not None and not self._sweeper.done()

    async def __aenter__(self) -> "EphemeralContextStore":
        if self._sweep_interval_seconds:
            self.start_sweeper(self._sweep_interval_seconds)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop_sweeper()

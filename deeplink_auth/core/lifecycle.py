"""Application lifecycle management.

This module handles application startup and shutdown events: the context
storage backend is created on startup, attached to ``app.state`` and released
on shutdown.
"""

import asyncio
import contextlib
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from deeplink_auth.core.config.settings import settings
from deeplink_auth.core.logging import logger
from deeplink_auth.infrastructure.redis import create_redis_client
from deeplink_auth.infrastructure.storage import InMemoryStorageBackend, RedisStorageBackend


async def _purge_memory_storage(storage: InMemoryStorageBackend, interval_seconds: float) -> None:
    while True:
        await asyncio.sleep(interval_seconds)
        storage.purge_expired()


def create_lifespan_manager():
    """Create the application lifespan manager.

    Returns:
        AsyncContextManager: The lifespan manager for the FastAPI application
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Create the context storage backend and tear it down on shutdown.

        With the in-memory backend a background task purges expired entries
        every ``CONTEXT_SWEEP_INTERVAL_SECONDS``; Redis expires keys itself.
        """
        purge_task: Optional[asyncio.Task] = None

        if settings.CONTEXT_STORAGE_BACKEND == "redis":
            storage = RedisStorageBackend(create_redis_client(), prefix=settings.CONTEXT_KEY_PREFIX)
        else:
            storage = InMemoryStorageBackend()
            purge_task = asyncio.create_task(
                _purge_memory_storage(storage, settings.CONTEXT_SWEEP_INTERVAL_SECONDS)
            )

        app.state.context_storage = storage
        logger.info(
            "application_startup",
            env=settings.APP_ENV,
            version=settings.VERSION,
            storage_backend=settings.CONTEXT_STORAGE_BACKEND,
        )

        yield

        if purge_task is not None:
            purge_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await purge_task
        if isinstance(storage, RedisStorageBackend):
            await storage.close()
        logger.info("application_shutdown", env=settings.APP_ENV)

    return lifespan

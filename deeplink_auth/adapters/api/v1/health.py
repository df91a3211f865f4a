"""Health check endpoint reporting the context storage backend status."""

from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Request
from pydantic import BaseModel
from redis.exceptions import RedisError

from deeplink_auth.core.config.settings import settings
from deeplink_auth.core.logging import logger
from deeplink_auth.infrastructure.storage import RedisStorageBackend

router = APIRouter()


class HealthResponse(BaseModel):
    status: str
    env: str
    services: Dict[str, Any]
    timestamp: datetime


async def check_storage_health(request: Request) -> Dict[str, Any]:
    """Check the context storage backend."""
    storage = getattr(request.app.state, "context_storage", None)
    if storage is None:
        return {"status": "unhealthy", "backend": settings.CONTEXT_STORAGE_BACKEND}
    if isinstance(storage, RedisStorageBackend):
        try:
            await storage.redis.ping()
        except RedisError as exc:
            logger.error("redis_health_check_failed", error=type(exc).__name__)
            return {"status": "unhealthy", "backend": "redis"}
    return {"status": "healthy", "backend": settings.CONTEXT_STORAGE_BACKEND}


@router.get("", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """Report overall status; ``degraded`` when a dependency is unhealthy."""
    storage_health = await check_storage_health(request)
    credential_store = "configured" if request.app.state.credential_store else "missing"

    overall_status = "ok" if storage_health["status"] == "healthy" else "degraded"
    return HealthResponse(
        status=overall_status,
        env=settings.APP_ENV,
        services={"storage": storage_health, "credential_store": credential_store},
        timestamp=datetime.now(timezone.utc),
    )

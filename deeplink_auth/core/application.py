"""Application factory for creating and configuring the FastAPI application.

This module provides a factory function to create a properly configured FastAPI application
with all necessary middleware, exception handlers, and routers registered.
"""

from typing import Optional

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from deeplink_auth.adapters.api.v1 import api_router
from deeplink_auth.core.config.settings import settings
from deeplink_auth.core.handlers import register_exception_handlers
from deeplink_auth.core.lifecycle import create_lifespan_manager
from deeplink_auth.core.middleware import configure_middleware
from deeplink_auth.domain.interfaces.credential_store import ICredentialStore


def create_application(credential_store: Optional[ICredentialStore] = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        credential_store: Backend the auth endpoints drive. The host
            application supplies it; without one the credential endpoints
            answer ``503``.

    Returns:
        FastAPI: The configured FastAPI application instance
    """
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        description="Deep-link preserving authentication context service.",
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url=None,
        openapi_url="/openapi.json" if settings.DEBUG else None,
        lifespan=create_lifespan_manager(),
        default_response_class=JSONResponse,
    )
    app.state.credential_store = credential_store

    configure_middleware(app)

    register_exception_handlers(app)

    app.include_router(api_router, prefix="/api/v1")

    return app

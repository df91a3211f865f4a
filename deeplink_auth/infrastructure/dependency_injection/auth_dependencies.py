"""Dependencies for the authentication context endpoints.

Each request gets its own context store, state token service and
orchestrator, all scoped to the session identifier set by the session
middleware. FastAPI caches dependencies per request, so the state service
and the orchestrator share one context store instance.
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from deeplink_auth.core.config.settings import settings
from deeplink_auth.core.exceptions import AuthErrorKind
from deeplink_auth.domain.interfaces.credential_store import ICredentialStore
from deeplink_auth.domain.interfaces.storage import IStorageBackend
from deeplink_auth.domain.security.error_messages import get_message_for_kind
from deeplink_auth.domain.services.auth_flow import AuthFlowOrchestrator
from deeplink_auth.domain.services.context_store import EphemeralContextStore
from deeplink_auth.domain.services.state_token import StateTokenService
from deeplink_auth.utils.i18n import get_request_language, get_translated_message

# ---------------------------------------------------------------------------
# Request context
# ---------------------------------------------------------------------------


def get_language(request: Request) -> str:
    """Language resolved by the language middleware, or from the request."""
    return getattr(request.state, "language", None) or get_request_language(request)


def get_session_storage(request: Request) -> IStorageBackend:
    """Storage backend scoped to the caller's auth session.

    Raises:
        HTTPException: 503 if the storage backend was not initialized.
    """
    storage = getattr(request.app.state, "context_storage", None)
    if storage is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=get_translated_message("credential_store_unavailable", get_language(request)),
        )
    return storage.scoped(request.state.session_id)


Language = Annotated[str, Depends(get_language)]

# ---------------------------------------------------------------------------
# Domain service dependencies
# ---------------------------------------------------------------------------


def get_context_store(
    backend: IStorageBackend = Depends(get_session_storage),
) -> EphemeralContextStore:
    """Per-request store; expired entries are purged by the application lifespan."""
    return EphemeralContextStore(backend)


def get_state_token_service(
    language: Language,
    context_store: EphemeralContextStore = Depends(get_context_store),
) -> StateTokenService:
    return StateTokenService(
        context_store,
        invalid_state_message=get_message_for_kind(AuthErrorKind.INVALID_STATE, language),
    )


def get_credential_store(request: Request, language: Language) -> ICredentialStore:
    """Credential store supplied to ``create_application``.

    Raises:
        HTTPException: 503 when the application was built without one.
    """
    credential_store = getattr(request.app.state, "credential_store", None)
    if credential_store is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=get_translated_message("credential_store_unavailable", language),
        )
    return credential_store


def get_auth_flow_orchestrator(
    language: Language,
    context_store: EphemeralContextStore = Depends(get_context_store),
    state_service: StateTokenService = Depends(get_state_token_service),
    credential_store: ICredentialStore = Depends(get_credential_store),
) -> AuthFlowOrchestrator:
    return AuthFlowOrchestrator(
        context_store,
        state_service,
        credential_store,
        site_url=settings.SITE_URL,
        default_landing_path=settings.DEFAULT_LANDING_PATH,
        language=language,
        context_ttl_minutes=settings.CONTEXT_TTL_MINUTES,
        state_ttl_minutes=settings.OAUTH_STATE_TTL_MINUTES,
        oauth_providers=settings.OAUTH_PROVIDERS,
    )


Orchestrator = Annotated[AuthFlowOrchestrator, Depends(get_auth_flow_orchestrator)]
ContextStore = Annotated[EphemeralContextStore, Depends(get_context_store)]

"""OAuth entry and callback endpoints.

The API layer is kept thin: state issuance, context persistence and callback
validation all live in the orchestrator. Provider token exchange is the
credential store's job and happens before the callback reaches us.
"""

from fastapi import APIRouter, Request, status

from deeplink_auth.adapters.api.v1.auth.schemas import (
    OAuthStartRequest,
    OAuthUrlResponse,
    RedirectResponseBody,
)
from deeplink_auth.infrastructure.dependency_injection.auth_dependencies import Orchestrator

router = APIRouter()


@router.get(
    "/callback",
    response_model=RedirectResponseBody,
    status_code=status.HTTP_200_OK,
    summary="Complete an OAuth round trip",
    description=(
        "Validates the single-use `state`, confirms the session and returns the "
        "post-auth destination. A missing, expired or replayed state clears all "
        "stored context and answers 403 with `redirect_to` set to the login page."
    ),
    responses={
        403: {"description": "Invalid state or access denied"},
        503: {"description": "Credential store unreachable"},
    },
)
async def oauth_callback(request: Request, orchestrator: Orchestrator) -> RedirectResponseBody:
    redirect_to = await orchestrator.complete_oauth_callback(dict(request.query_params))
    return RedirectResponseBody(redirect_to=redirect_to)


@router.post(
    "/{provider}",
    response_model=OAuthUrlResponse,
    status_code=status.HTTP_200_OK,
    summary="Start an OAuth round trip",
    description=(
        "Issues a fresh state, stores the validated redirect and competition for the "
        "return trip and returns the provider entry URL."
    ),
    responses={422: {"description": "Unsupported provider"}},
)
async def start_oauth(
    provider: str, payload: OAuthStartRequest, orchestrator: Orchestrator
) -> OAuthUrlResponse:
    oauth_url = await orchestrator.build_oauth_url(
        provider, redirect_url=payload.redirect, competition_id=payload.competition
    )
    return OAuthUrlResponse(url=oauth_url.url, state=oauth_url.state)

"""Auth link and navigation context endpoints.

These endpoints let a page build links into the auth flows and hand the
query of an auth page to the server so the valid parts are remembered for
the return trip.
"""

from fastapi import APIRouter, status

from deeplink_auth.adapters.api.v1.auth.schemas import (
    AuthContextRequest,
    AuthContextResponse,
    AuthLinkRequest,
    AuthLinkResponse,
    ContextBackupRequest,
    ContextBackupResponse,
    ContextRestoreResponse,
)
from deeplink_auth.domain.services.auth_flow import build_auth_flow_url
from deeplink_auth.infrastructure.dependency_injection.auth_dependencies import Orchestrator

router = APIRouter()


@router.post(
    "/links",
    response_model=AuthLinkResponse,
    status_code=status.HTTP_200_OK,
    summary="Build an auth page link",
    description=(
        "Builds `/auth/{flow}` carrying the redirect and competition only when they "
        "pass validation. Extra parameters never override those two."
    ),
)
async def create_auth_link(payload: AuthLinkRequest) -> AuthLinkResponse:
    url = build_auth_flow_url(
        payload.flow,
        redirect_url=payload.redirect,
        competition_id=payload.competition,
        extra_params=payload.params,
    )
    return AuthLinkResponse(url=url)


@router.post(
    "/context",
    response_model=AuthContextResponse,
    status_code=status.HTTP_200_OK,
    summary="Record the context of an auth page visit",
)
async def begin_navigation(
    payload: AuthContextRequest, orchestrator: Orchestrator
) -> AuthContextResponse:
    """Extract the auth context from a page query and persist its valid parts."""
    context = await orchestrator.begin_navigation(payload.query)
    return AuthContextResponse(
        redirect_url=context.redirect_url,
        competition_id=context.competition_id,
        auth_flow=context.auth_flow.value if context.auth_flow else None,
        error=context.error,
    )


@router.post(
    "/context/backup",
    response_model=ContextBackupResponse,
    status_code=status.HTTP_200_OK,
    summary="Back up the current page before authenticating",
)
async def preserve_context(
    payload: ContextBackupRequest, orchestrator: Orchestrator
) -> ContextBackupResponse:
    return ContextBackupResponse(preserved=await orchestrator.preserve_context(payload.path))


@router.post(
    "/context/restore",
    response_model=ContextRestoreResponse,
    status_code=status.HTTP_200_OK,
    summary="Restore the page backed up before authenticating",
)
async def restore_context(orchestrator: Orchestrator) -> ContextRestoreResponse:
    return ContextRestoreResponse(path=await orchestrator.restore_context())

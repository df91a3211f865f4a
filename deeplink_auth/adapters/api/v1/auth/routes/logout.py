"""Sign-out endpoint.

Signing out always clears the session's stored auth context, even if the
credential store call fails.
"""

from fastapi import APIRouter, status

from deeplink_auth.adapters.api.v1.auth.schemas import RedirectResponseBody
from deeplink_auth.infrastructure.dependency_injection.auth_dependencies import Orchestrator

router = APIRouter()


@router.post(
    "",
    response_model=RedirectResponseBody,
    status_code=status.HTTP_200_OK,
    summary="Sign out and clear stored auth context",
)
async def logout(orchestrator: Orchestrator) -> RedirectResponseBody:
    return RedirectResponseBody(redirect_to=await orchestrator.sign_out())

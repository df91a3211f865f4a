"""Email and password sign-in endpoint."""

from fastapi import APIRouter, status

from deeplink_auth.adapters.api.v1.auth.schemas import AuthSessionResponse, LoginRequest
from deeplink_auth.infrastructure.dependency_injection.auth_dependencies import Orchestrator

router = APIRouter()


@router.post(
    "",
    response_model=AuthSessionResponse,
    status_code=status.HTTP_200_OK,
    summary="Sign in with email and password",
    description="Signs in through the credential store and returns the post-auth destination.",
    responses={
        401: {"description": "Invalid credentials"},
        403: {"description": "Email not confirmed"},
        503: {"description": "Credential store unreachable"},
    },
)
async def login(payload: LoginRequest, orchestrator: Orchestrator) -> AuthSessionResponse:
    outcome = await orchestrator.sign_in(
        payload.email, payload.password, param_redirect=payload.redirect
    )
    return AuthSessionResponse(redirect_to=outcome.redirect_to, user_id=outcome.user.id)

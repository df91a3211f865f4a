"""Account registration endpoint."""

from fastapi import APIRouter, status

from deeplink_auth.adapters.api.v1.auth.schemas import AuthSessionResponse, SignupRequest
from deeplink_auth.infrastructure.dependency_injection.auth_dependencies import Orchestrator

router = APIRouter()


@router.post(
    "",
    response_model=AuthSessionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an account",
    responses={
        409: {"description": "An account with this email already exists"},
        422: {"description": "Invalid email or weak password"},
    },
)
async def signup(payload: SignupRequest, orchestrator: Orchestrator) -> AuthSessionResponse:
    outcome = await orchestrator.sign_up(
        payload.email,
        payload.password,
        metadata=payload.metadata,
        param_redirect=payload.redirect,
    )
    return AuthSessionResponse(redirect_to=outcome.redirect_to, user_id=outcome.user.id)

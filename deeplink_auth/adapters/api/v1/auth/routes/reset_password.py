"""Password-reset endpoints.

Each endpoint drives one event of the reset state machine and answers with
the flow snapshot. Business failures (bad email, expired link, weak password)
are part of the snapshot and come back with ``200``; only out-of-order steps
are errors (``409``).

The reset state survives between requests through the ``auth_flow`` context
key: verifying a recovery token sets it, completing the reset requires it.
"""

from fastapi import APIRouter, status

from deeplink_auth.adapters.api.v1.auth.schemas import (
    RedirectResponseBody,
    ResetCompleteRequest,
    ResetFlowResponse,
    ResetRequestRequest,
    ResetVerifyRequest,
)
from deeplink_auth.core.exceptions import InvalidResetTransitionError
from deeplink_auth.domain.services.context_store import StorageKey
from deeplink_auth.domain.services.password_reset import PasswordResetFlow, ResetFlowState
from deeplink_auth.domain.value_objects.auth_context import AuthFlow
from deeplink_auth.infrastructure.dependency_injection.auth_dependencies import (
    Language,
    Orchestrator,
)
from deeplink_auth.utils.i18n import get_translated_message

router = APIRouter()


def _snapshot(flow: PasswordResetFlow, redirect_to=None) -> ResetFlowResponse:
    return ResetFlowResponse(**flow.snapshot(), redirect_to=redirect_to)


@router.post(
    "/request",
    response_model=ResetFlowResponse,
    status_code=status.HTTP_200_OK,
    summary="Send a password recovery email",
)
async def request_reset(
    payload: ResetRequestRequest, orchestrator: Orchestrator
) -> ResetFlowResponse:
    flow = orchestrator.password_reset_flow(
        redirect_url=payload.redirect, competition_id=payload.competition
    )
    await flow.request_reset(payload.email)
    return _snapshot(flow)


@router.post(
    "/verify",
    response_model=ResetFlowResponse,
    status_code=status.HTTP_200_OK,
    summary="Verify the recovery link the user arrived with",
)
async def verify_reset(
    payload: ResetVerifyRequest, orchestrator: Orchestrator
) -> ResetFlowResponse:
    flow = orchestrator.password_reset_flow(state=ResetFlowState.SENT)
    await flow.arrive_with_token(
        payload.token,
        error=payload.error,
        error_code=payload.error_code,
        error_description=payload.error_description,
    )
    return _snapshot(flow)


@router.post(
    "/complete",
    response_model=ResetFlowResponse,
    status_code=status.HTTP_200_OK,
    summary="Set the new password",
    responses={409: {"description": "No verified recovery session"}},
)
async def complete_reset(
    payload: ResetCompleteRequest, orchestrator: Orchestrator, language: Language
) -> ResetFlowResponse:
    context_store = orchestrator.context_store
    marker = await context_store.get(StorageKey.AUTH_FLOW)
    if marker != AuthFlow.RESET.value:
        raise InvalidResetTransitionError(get_translated_message("reset_flow_not_started", language))

    flow = orchestrator.password_reset_flow(
        redirect_url=await context_store.get(StorageKey.AUTH_REDIRECT_URL),
        competition_id=await context_store.get(StorageKey.AUTH_COMPETITION_ID),
        state=ResetFlowState.RESET,
    )
    await flow.submit_new_password(payload.password, payload.confirm_password)

    redirect_to = flow.login_url if flow.state is ResetFlowState.SUCCESS else None
    return _snapshot(flow, redirect_to=redirect_to)


@router.post(
    "/cancel",
    response_model=RedirectResponseBody,
    status_code=status.HTTP_200_OK,
    summary="Abandon the reset and go back to login",
)
async def cancel_reset(orchestrator: Orchestrator) -> RedirectResponseBody:
    flow = orchestrator.password_reset_flow()
    return RedirectResponseBody(redirect_to=await flow.back_to_login())

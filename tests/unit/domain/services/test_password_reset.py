import pytest

from deeplink_auth.core.exceptions import CredentialStoreError, InvalidResetTransitionError
from deeplink_auth.domain.services.context_store import StorageKey
from deeplink_auth.domain.services.password_reset import PasswordResetFlow, ResetFlowState

REDIRECT_TO = "https://fit.example.com/auth/reset?redirect=/competition/summer-shred"


@pytest.fixture
def flow(credential_store, context_store):
    return PasswordResetFlow(
        credential_store,
        context_store,
        redirect_to=REDIRECT_TO,
        login_url="/auth/login?redirect=/competition/summer-shred",
    )


@pytest.fixture
def reset_flow(credential_store, context_store):
    """A flow whose recovery link was already verified."""
    credential_store.current_user = credential_store.add_account("ana@example.com", "0ldPassword")
    return PasswordResetFlow(
        credential_store, context_store, redirect_to=REDIRECT_TO, state=ResetFlowState.RESET
    )


# ---------------------------------------------------------------------------
# request -> sent
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_request_reset_sends_email(flow, credential_store):
    assert await flow.request_reset("Ana@Example.com") is ResetFlowState.SENT
    assert credential_store.reset_emails == [("ana@example.com", REDIRECT_TO)]
    assert flow.email == "ana@example.com"
    assert flow.error is None


@pytest.mark.asyncio
async def test_request_reset_with_invalid_email(flow, credential_store):
    assert await flow.request_reset("not-an-email") is ResetFlowState.REQUEST
    assert "email" in flow.field_errors
    assert credential_store.calls == []


@pytest.mark.asyncio
async def test_request_reset_backend_failure_stays_in_request(flow, credential_store):
    credential_store.fail("reset_password_for_email", ConnectionError("smtp relay 10.1.1.1 down"))

    assert await flow.request_reset("ana@example.com") is ResetFlowState.REQUEST
    assert flow.error is not None
    assert "10.1.1.1" not in flow.error


@pytest.mark.asyncio
async def test_resend_stays_in_sent(flow, credential_store):
    await flow.request_reset("ana@example.com")

    assert await flow.resend() is ResetFlowState.SENT
    assert len(credential_store.reset_emails) == 2


@pytest.mark.asyncio
async def test_resend_before_request_is_rejected(flow):
    with pytest.raises(InvalidResetTransitionError):
        await flow.resend()


@pytest.mark.asyncio
async def test_rejected_event_is_logged_with_flow_state(flow, mocker):
    logger = mocker.patch("deeplink_auth.domain.services.password_reset.logger")

    with pytest.raises(InvalidResetTransitionError):
        await flow.submit_new_password("N3wPassword", "N3wPassword")

    logger.warning.assert_called_once_with(
        "password_reset_transition_rejected",
        reset_event="submit_new_password",
        flow_state="request",
    )


@pytest.mark.asyncio
async def test_request_reset_not_allowed_once_sent(flow):
    await flow.request_reset("ana@example.com")
    with pytest.raises(InvalidResetTransitionError):
        await flow.request_reset("ana@example.com")


# ---------------------------------------------------------------------------
# sent -> reset | expired | error
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_valid_token_moves_to_reset(flow, credential_store, context_store):
    credential_store.add_recovery_token("good-token")
    await flow.request_reset("ana@example.com")

    assert await flow.arrive_with_token("good-token") is ResetFlowState.RESET
    assert await context_store.get(StorageKey.AUTH_FLOW) == "reset"


@pytest.mark.asyncio
async def test_expired_token_moves_to_expired(flow, credential_store):
    credential_store.add_recovery_token("old-token", status="expired")

    assert await flow.arrive_with_token("old-token") is ResetFlowState.EXPIRED
    assert flow.error


@pytest.mark.asyncio
async def test_unknown_token_moves_to_error(flow):
    assert await flow.arrive_with_token("forged") is ResetFlowState.ERROR


@pytest.mark.asyncio
async def test_missing_token_moves_to_error(flow, credential_store):
    assert await flow.arrive_with_token(None) is ResetFlowState.ERROR
    assert "verify_recovery_token" not in credential_store.calls


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "params,expected",
    [
        ({"error": "access_denied", "error_code": "otp_expired"}, ResetFlowState.EXPIRED),
        (
            {"error": "access_denied", "error_description": "Email link is invalid or has expired"},
            ResetFlowState.EXPIRED,
        ),
        ({"error": "access_denied"}, ResetFlowState.ERROR),
        ({"error": "server_error", "error_description": "<script>x</script>"}, ResetFlowState.ERROR),
    ],
)
async def test_provider_error_params_win_over_token(flow, credential_store, params, expected):
    credential_store.add_recovery_token("good-token")

    assert await flow.arrive_with_token("good-token", **params) is expected
    assert "verify_recovery_token" not in credential_store.calls
    assert "<script>" not in (flow.error or "")


@pytest.mark.asyncio
async def test_expired_flow_can_request_again(flow, credential_store):
    await flow.arrive_with_token(None)

    assert await flow.request_reset("ana@example.com") is ResetFlowState.SENT


@pytest.mark.asyncio
async def test_link_can_be_opened_from_request_state(flow, credential_store):
    credential_store.add_recovery_token("good-token")
    assert await flow.arrive_with_token("good-token") is ResetFlowState.RESET


# ---------------------------------------------------------------------------
# reset -> success
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_submit_new_password_succeeds(reset_flow, context_store, credential_store):
    await context_store.set(StorageKey.AUTH_FLOW, "reset")
    await context_store.set(StorageKey.AUTH_REDIRECT_URL, "/competition/summer-shred")
    await context_store.set(StorageKey.OAUTH_STATE, "a" * 64)
    await context_store.set(StorageKey.AUTH_CONTEXT_BACKUP, "/competition/summer-shred/enter")

    assert await reset_flow.submit_new_password("N3wPassword", "N3wPassword") is ResetFlowState.SUCCESS
    assert "update_user" in credential_store.calls
    for key in StorageKey:
        assert await context_store.get(key) is None


@pytest.mark.asyncio
async def test_mismatched_passwords_stay_in_reset(reset_flow, credential_store):
    assert await reset_flow.submit_new_password("N3wPassword", "N3wPassw0rd") is ResetFlowState.RESET
    assert "confirm_password" in reset_flow.field_errors
    assert "update_user" not in credential_store.calls


@pytest.mark.asyncio
async def test_weak_password_reports_rule(reset_flow):
    assert await reset_flow.submit_new_password("Sh0rt", "Sh0rt") is ResetFlowState.RESET
    assert reset_flow.field_errors["password"] == "Password must be at least 8 characters long."


@pytest.mark.asyncio
async def test_weak_password_message_is_translated(credential_store, context_store):
    flow = PasswordResetFlow(
        credential_store,
        context_store,
        redirect_to=REDIRECT_TO,
        language="es",
        state=ResetFlowState.RESET,
    )

    await flow.submit_new_password("nouppercase1", "nouppercase1")

    assert flow.field_errors["password"] != "password_missing_uppercase"
    assert "Password" not in flow.field_errors["password"]


@pytest.mark.asyncio
async def test_expired_session_during_update(reset_flow, credential_store, context_store):
    await context_store.set(StorageKey.AUTH_FLOW, "reset")
    credential_store.fail("update_user", CredentialStoreError("Token has expired", "otp_expired"))

    assert await reset_flow.submit_new_password("N3wPassword", "N3wPassword") is ResetFlowState.EXPIRED
    assert await context_store.get(StorageKey.AUTH_FLOW) is None


@pytest.mark.asyncio
async def test_backend_weak_password_is_field_error(reset_flow, credential_store):
    credential_store.fail("update_user", CredentialStoreError("Password is too weak", "weak_password"))

    assert await reset_flow.submit_new_password("N3wPassword", "N3wPassword") is ResetFlowState.RESET
    assert "password" in reset_flow.field_errors


@pytest.mark.asyncio
async def test_transient_failure_stays_in_reset(reset_flow, credential_store):
    credential_store.fail("update_user", TimeoutError())

    assert await reset_flow.submit_new_password("N3wPassword", "N3wPassword") is ResetFlowState.RESET
    assert reset_flow.error is not None


@pytest.mark.asyncio
async def test_submit_before_verification_is_rejected(flow):
    with pytest.raises(InvalidResetTransitionError):
        await flow.submit_new_password("N3wPassword", "N3wPassword")


@pytest.mark.asyncio
async def test_success_is_terminal(reset_flow):
    await reset_flow.submit_new_password("N3wPassword", "N3wPassword")

    with pytest.raises(InvalidResetTransitionError):
        await reset_flow.arrive_with_token("good-token")
    with pytest.raises(InvalidResetTransitionError):
        await reset_flow.request_reset("ana@example.com")
    with pytest.raises(InvalidResetTransitionError):
        await reset_flow.resend()
    with pytest.raises(InvalidResetTransitionError):
        await reset_flow.submit_new_password("N3wPassword", "N3wPassword")


# ---------------------------------------------------------------------------
# back to login
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_back_to_login_clears_context(flow, context_store):
    await context_store.set(StorageKey.AUTH_FLOW, "reset")
    await context_store.set(StorageKey.AUTH_REDIRECT_URL, "/competition/summer-shred")

    assert await flow.back_to_login() == "/auth/login?redirect=/competition/summer-shred"
    for key in StorageKey:
        assert await context_store.get(key) is None


def test_snapshot(flow):
    assert flow.snapshot() == {"state": "request", "error": None, "field_errors": {}}

import re

import pytest

from deeplink_auth.core.exceptions import AuthErrorKind, InvalidOAuthStateError
from deeplink_auth.domain.services.context_store import StorageKey
from deeplink_auth.domain.services.state_token import generate_state, states_match


def test_generated_state_is_64_hex_chars():
    state = generate_state()
    assert re.fullmatch(r"[0-9a-f]{64}", state)


def test_generated_states_are_unique():
    assert len({generate_state() for _ in range(100)}) == 100


@pytest.mark.parametrize(
    "received,stored,expected",
    [
        ("abc", "abc", True),
        ("abc", "abd", False),
        ("abc", "abcd", False),
        ("", "", False),
        (None, "abc", False),
        ("abc", None, False),
    ],
)
def test_states_match(received, stored, expected):
    assert states_match(received, stored) is expected


def test_states_match_uses_constant_time_compare(mocker):
    compare = mocker.patch(
        "deeplink_auth.domain.services.state_token.hmac.compare_digest", return_value=True
    )
    assert states_match("abc", "abc") is True
    compare.assert_called_once_with(b"abc", b"abc")


@pytest.mark.asyncio
async def test_issue_state_stores_it(state_service, context_store):
    state = await state_service.issue_state()
    assert await context_store.get(StorageKey.OAUTH_STATE) == state


@pytest.mark.asyncio
async def test_issue_state_replaces_pending_state(state_service):
    first = await state_service.issue_state()
    second = await state_service.issue_state()

    with pytest.raises(InvalidOAuthStateError):
        await state_service.validate_state(first)
    assert first != second


@pytest.mark.asyncio
async def test_valid_state_validates_once(state_service):
    state = await state_service.issue_state()

    await state_service.validate_state(state)

    with pytest.raises(InvalidOAuthStateError) as exc_info:
        await state_service.validate_state(state)
    assert exc_info.value.kind is AuthErrorKind.INVALID_STATE


@pytest.mark.asyncio
async def test_mismatch_consumes_stored_state(state_service, context_store):
    state = await state_service.issue_state()

    with pytest.raises(InvalidOAuthStateError):
        await state_service.validate_state("f" * 64)

    assert await context_store.get(StorageKey.OAUTH_STATE) is None
    with pytest.raises(InvalidOAuthStateError):
        await state_service.validate_state(state)


@pytest.mark.asyncio
async def test_missing_state_is_rejected(state_service):
    await state_service.issue_state()
    with pytest.raises(InvalidOAuthStateError):
        await state_service.validate_state(None)


@pytest.mark.asyncio
async def test_nothing_issued_is_rejected(state_service):
    with pytest.raises(InvalidOAuthStateError):
        await state_service.validate_state("a" * 64)


@pytest.mark.asyncio
async def test_expired_state_is_rejected(state_service, clock):
    state = await state_service.issue_state(ttl_minutes=10)
    clock.advance(minutes=10, seconds=1)

    with pytest.raises(InvalidOAuthStateError):
        await state_service.validate_state(state)


@pytest.mark.asyncio
async def test_state_is_never_logged(state_service, mocker):
    log = mocker.patch("deeplink_auth.domain.services.state_token.logger")
    state = await state_service.issue_state()

    with pytest.raises(InvalidOAuthStateError):
        await state_service.validate_state(state + "x")

    for call in log.method_calls:
        assert state not in repr(call)

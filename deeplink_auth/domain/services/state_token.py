"""OAuth ``state`` issuance and single-use verification.

A state is 32 bytes from the operating system CSPRNG, hex encoded. It is
written to the context store before the user leaves for the identity provider
and consumed when the callback arrives: the stored entry is deleted whether or
not the check succeeds, so a state validates at most once.

State values are secrets. They are never logged, not even on mismatch.
"""

import hmac
import secrets
from typing import Optional

import structlog

from deeplink_auth.core.exceptions import InvalidOAuthStateError
from deeplink_auth.domain.services.context_store import EphemeralContextStore, StorageKey

logger = structlog.get_logger(__name__)

STATE_BYTES = 32
DEFAULT_STATE_TTL_MINUTES = 10


def generate_state() -> str:
    """Return a fresh state: 64 lowercase hex characters."""
    return secrets.token_hex(STATE_BYTES)


def states_match(received: Optional[str], stored: Optional[str]) -> bool:
    """Constant-time comparison of a received state against the stored one.

    Both values must be non-empty strings; anything else is a mismatch.
    """
    if not isinstance(received, str) or not isinstance(stored, str):
        return False
    if not received or not stored:
        return False
    return hmac.compare_digest(received.encode("utf-8"), stored.encode("utf-8"))


class StateTokenService:
    """Issues and validates OAuth state tokens through a context store.

    Args:
        context_store: Session-scoped store holding the pending state.
        invalid_state_message: User-facing text attached to
            ``InvalidOAuthStateError``; callers pass a translated message.
    """

    def __init__(
        self,
        context_store: EphemeralContextStore,
        invalid_state_message: str = "Invalid authentication state. Please start signing in again.",
    ):
        self._context_store = context_store
        self._invalid_state_message = invalid_state_message

    async def issue_state(self, ttl_minutes: float = DEFAULT_STATE_TTL_MINUTES) -> str:
        """Generate a state and store it for ``ttl_minutes``.

        Issuing again replaces any pending state for the session.
        """
        state = generate_state()
        await self._context_store.set(StorageKey.OAUTH_STATE, state, ttl_minutes=ttl_minutes)
        logger.info("oauth_state_issued", ttl_minutes=ttl_minutes)
        return state

    async def validate_state(self, received: Optional[str]) -> None:
        """Consume the stored state and compare it with ``received``.

        Raises:
            InvalidOAuthStateError: If no live state is stored or the values
                differ. The stored entry is gone either way.
        """
        stored = await self._context_store.consume(StorageKey.OAUTH_STATE)

        if stored is None:
            logger.warning("oauth_state_validation_failed", reason="missing_or_expired")
            raise InvalidOAuthStateError(self._invalid_state_message)

        if not states_match(received, stored):
            logger.warning("oauth_state_validation_failed", reason="mismatch")
            raise InvalidOAuthStateError(self._invalid_state_message)

        logger.info("oauth_state_validated")

"""Password-reset state machine.

One ``PasswordResetFlow`` drives one reset attempt through::

    request -> sent -> reset -> success

``expired`` and ``error`` are reachable from every non-terminal state and
lead back to a new request. ``success`` is terminal. Events that are not
allowed in the current state raise ``InvalidResetTransitionError``; everything
else (bad input, backend failures) is recorded on the flow as a user-facing
message so the caller can render it.
"""

import asyncio
from enum import Enum
from typing import Dict, FrozenSet, Optional

import structlog

from deeplink_auth.core.exceptions import (
    AuthErrorKind,
    CredentialStoreError,
    InvalidResetTransitionError,
    PasswordPolicyError,
)
from deeplink_auth.domain.interfaces.credential_store import ICredentialStore
from deeplink_auth.domain.security.error_messages import classify_error, get_message_for_kind
from deeplink_auth.domain.services.context_store import (
    DEFAULT_TTL_MINUTES,
    EphemeralContextStore,
    StorageKey,
)
from deeplink_auth.domain.value_objects.auth_context import AuthFlow
from deeplink_auth.domain.value_objects.email import Email
from deeplink_auth.domain.value_objects.password import Password
from deeplink_auth.utils.i18n import get_translated_message

logger = structlog.get_logger(__name__)

_CREDENTIAL_FAILURES = (CredentialStoreError, OSError, asyncio.TimeoutError)


class ResetFlowState(str, Enum):
    REQUEST = "request"
    SENT = "sent"
    RESET = "reset"
    SUCCESS = "success"
    EXPIRED = "expired"
    ERROR = "error"


NON_TERMINAL_STATES: FrozenSet[ResetFlowState] = frozenset(
    state for state in ResetFlowState if state is not ResetFlowState.SUCCESS
)

ALLOWED_TRANSITIONS: Dict[str, FrozenSet[ResetFlowState]] = {
    "request_reset": frozenset(
        {ResetFlowState.REQUEST, ResetFlowState.EXPIRED, ResetFlowState.ERROR}
    ),
    "resend": frozenset({ResetFlowState.SENT}),
    "arrive_with_token": NON_TERMINAL_STATES,
    "submit_new_password": frozenset({ResetFlowState.RESET}),
}


class PasswordResetFlow:
    """State machine for one password-reset attempt.

    Args:
        credential_store: Backend that sends recovery emails and updates
            passwords.
        context_store: Session-scoped store; the ``auth_flow`` key marks a
            verified recovery session and everything is cleared when the user
            goes back to login.
        redirect_to: Absolute URL the recovery email links to.
        login_url: Login entry point returned by ``back_to_login``.
        language: Language for user-facing messages.
        state: Initial state, for flows resumed across requests.
        context_ttl_minutes: Lifetime of the ``auth_flow`` marker.
    """

    def __init__(
        self,
        credential_store: ICredentialStore,
        context_store: EphemeralContextStore,
        *,
        redirect_to: str,
        login_url: str = "/auth/login",
        language: str = "en",
        state: ResetFlowState = ResetFlowState.REQUEST,
        context_ttl_minutes: float = DEFAULT_TTL_MINUTES,
    ):
        self._credentials = credential_store
        self._context_store = context_store
        self.redirect_to = redirect_to
        self.login_url = login_url
        self.language = language
        self.context_ttl_minutes = context_ttl_minutes

        self.state = state
        self.email: Optional[str] = None
        self.error: Optional[str] = None
        self.field_errors: Dict[str, str] = {}

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require(self, event: str) -> None:
        if self.state not in ALLOWED_TRANSITIONS[event]:
            logger.warning(
                "password_reset_transition_rejected",
                reset_event=event,
                flow_state=self.state.value,
            )
            raise InvalidResetTransitionError(
                get_translated_message("reset_invalid_transition", self.language)
            )

    def _reset_messages(self) -> None:
        self.error = None
        self.field_errors = {}

    def _transition(self, new_state: ResetFlowState) -> None:
        logger.info(
            "password_reset_transition",
            from_state=self.state.value,
            to_state=new_state.value,
        )
        self.state = new_state

    def _fail(self, kind: AuthErrorKind) -> None:
        """Move to ``expired`` or ``error`` depending on the failure kind."""
        self.error = get_message_for_kind(kind, self.language)
        if kind is AuthErrorKind.EXPIRED_TOKEN:
            self._transition(ResetFlowState.EXPIRED)
        else:
            self._transition(ResetFlowState.ERROR)

    def snapshot(self) -> Dict[str, object]:
        return {
            "state": self.state.value,
            "error": self.error,
            "field_errors": dict(self.field_errors),
        }

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    async def request_reset(self, email: str) -> ResetFlowState:
        """Ask the credential store to send a recovery email.

        An invalid address or a backend failure leaves the state unchanged
        with a message recorded; success moves to ``sent``.
        """
        self._require("request_reset")
        self._reset_messages()

        try:
            address = Email(email)
        except ValueError:
            self.field_errors["email"] = get_message_for_kind(
                AuthErrorKind.INVALID_EMAIL, self.language
            )
            return self.state

        try:
            await self._credentials.reset_password_for_email(address.value, self.redirect_to)
        except _CREDENTIAL_FAILURES as exc:
            kind = classify_error(exc)
            logger.warning("password_reset_request_failed", kind=kind.value, email=address.mask_for_logging())
            self.error = get_message_for_kind(kind, self.language)
            return self.state

        self.email = address.value
        logger.info("password_reset_email_requested", email=address.mask_for_logging())
        self._transition(ResetFlowState.SENT)
        return self.state

    async def resend(self) -> ResetFlowState:
        """Send the recovery email again; the flow stays in ``sent``."""
        self._require("resend")
        self._reset_messages()

        try:
            await self._credentials.reset_password_for_email(self.email or "", self.redirect_to)
        except _CREDENTIAL_FAILURES as exc:
            self.error = get_message_for_kind(classify_error(exc), self.language)
            return self.state

        logger.info("password_reset_email_resent")
        return self.state

    async def arrive_with_token(
        self,
        token: Optional[str],
        error: Optional[str] = None,
        error_code: Optional[str] = None,
        error_description: Optional[str] = None,
    ) -> ResetFlowState:
        """Handle the user arriving from the recovery email.

        Provider error parameters take precedence over the token. A verified
        token moves to ``reset``, an expired one to ``expired`` and anything
        else to ``error``.

        Raises:
            InvalidResetTransitionError: If the flow already succeeded.
        """
        self._require("arrive_with_token")
        self._reset_messages()

        if error or error_code:
            kind = classify_error(error_code or error)
            if kind is not AuthErrorKind.EXPIRED_TOKEN and error_description:
                kind = classify_error(error_description)
            if kind is not AuthErrorKind.EXPIRED_TOKEN:
                kind = AuthErrorKind.INVALID_TOKEN
            self._fail(kind)
            return self.state

        if not token:
            self._fail(AuthErrorKind.INVALID_TOKEN)
            return self.state

        try:
            await self._credentials.verify_recovery_token(token)
        except _CREDENTIAL_FAILURES as exc:
            kind = classify_error(exc)
            logger.warning("password_reset_token_rejected", kind=kind.value)
            self._fail(kind if kind is AuthErrorKind.EXPIRED_TOKEN else AuthErrorKind.INVALID_TOKEN)
            return self.state

        await self._context_store.set(
            StorageKey.AUTH_FLOW, AuthFlow.RESET.value, ttl_minutes=self.context_ttl_minutes
        )
        self._transition(ResetFlowState.RESET)
        return self.state

    async def submit_new_password(self, password: str, confirm_password: str) -> ResetFlowState:
        """Set the new password for the verified recovery session.

        Mismatched or non-compliant passwords keep the flow in ``reset`` with a
        field error. A rejected recovery session moves to ``expired`` or
        ``error``; transient failures stay in ``reset`` so the user can retry.
        Success clears all stored context; the user continues at ``login_url``.
        """
        self._require("submit_new_password")
        self._reset_messages()

        if password != confirm_password:
            self.field_errors["confirm_password"] = get_message_for_kind(
                AuthErrorKind.PASSWORD_MISMATCH, self.language
            )
            return self.state

        try:
            Password(password)
        except PasswordPolicyError as exc:
            self.field_errors["password"] = get_translated_message(exc.code, self.language).format(
                min_length=Password.MIN_LENGTH, max_length=Password.MAX_LENGTH
            )
            return self.state

        try:
            await self._credentials.update_user(password)
        except _CREDENTIAL_FAILURES as exc:
            kind = classify_error(exc)
            logger.warning("password_update_failed", kind=kind.value)
            if kind in (AuthErrorKind.EXPIRED_TOKEN, AuthErrorKind.INVALID_TOKEN):
                await self._context_store.remove(StorageKey.AUTH_FLOW)
                self._fail(kind)
            elif kind is AuthErrorKind.WEAK_PASSWORD:
                self.field_errors["password"] = get_message_for_kind(kind, self.language)
            else:
                self.error = get_message_for_kind(kind, self.language)
            return self.state

        await self._context_store.clear()
        self._transition(ResetFlowState.SUCCESS)
        return self.state

    async def back_to_login(self) -> str:
        """Abandon the flow: clear all stored context and return the login URL."""
        await self._context_store.clear()
        logger.info("password_reset_abandoned", flow_state=self.state.value)
        return self.login_url

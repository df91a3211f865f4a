from __future__ import annotations

"""Structured exception hierarchy for the authentication context service.

Every exception carries a machine-readable ``code`` and a human-readable
``message``. Messages raised from the domain layer are already translated and
safe to show to end users; raw credential-store text is kept on ``cause`` only
and never rendered.

The hierarchy is designed to:
- Fail closed on validation and CSRF problems.
- Map cleanly to HTTP status codes in the API layer.
- Offer a consistent structure for logging and monitoring.
"""

from enum import Enum
from typing import Final, Optional

__all__: Final = [
    "DeepLinkAuthError",
    "ValidationError",
    "PasswordPolicyError",
    "StorageError",
    "CredentialStoreError",
    "AuthErrorKind",
    "AuthFlowError",
    "InvalidOAuthStateError",
    "InvalidResetTransitionError",
]


class DeepLinkAuthError(Exception):
    """Base exception class for all custom errors in the service.

    Attributes:
        message (str): A human-readable error message.
        code (str): A unique, machine-readable error code.
    """

    message: str
    code: str = "generic_error"

    def __init__(self, message: str, code: str = "generic_error"):
        self.message = message
        self.code = code
        Exception.__init__(self, self.message)

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Validation errors (typically map to 422 Unprocessable Entity)
# ---------------------------------------------------------------------------


class ValidationError(DeepLinkAuthError):
    """Raised for general data validation failures."""

    def __init__(self, message: str, code: str = "validation_error"):
        super().__init__(message, code)


class PasswordPolicyError(ValidationError):
    """Raised when a password does not meet the reset complexity policy.

    The ``code`` is the i18n key of the specific rule that failed, e.g.
    ``password_too_short``.
    """

    def __init__(self, message: str, code: str = "password_policy_error"):
        super().__init__(message, code)


# ---------------------------------------------------------------------------
# Infrastructure errors
# ---------------------------------------------------------------------------


class StorageError(DeepLinkAuthError):
    """Raised when a storage backend cannot complete a write.

    Reads never raise; a failed read is a cache miss.
    """

    def __init__(self, message: str, code: str = "storage_error"):
        super().__init__(message, code)


class CredentialStoreError(DeepLinkAuthError):
    """Raised by credential store implementations for backend failures.

    ``message`` holds the raw backend text and must not be shown to users;
    it is routed through the error taxonomy instead.
    """

    def __init__(self, message: str, code: str = "credential_store_error"):
        super().__init__(message, code)


# ---------------------------------------------------------------------------
# Auth flow errors
# ---------------------------------------------------------------------------


class AuthErrorKind(str, Enum):
    """Closed set of failure kinds surfaced by the auth flows."""

    NETWORK = "network"
    TIMEOUT = "timeout"
    INVALID_STATE = "invalid_state"
    INVALID_TOKEN = "invalid_token"
    EXPIRED_TOKEN = "expired_token"
    WEAK_PASSWORD = "weak_password"
    PASSWORD_MISMATCH = "password_mismatch"
    INVALID_CREDENTIALS = "invalid_credentials"
    EMAIL_NOT_CONFIRMED = "email_not_confirmed"
    USER_ALREADY_REGISTERED = "user_already_registered"
    INVALID_EMAIL = "invalid_email"
    ACCESS_DENIED = "access_denied"
    UNKNOWN = "unknown"


class AuthFlowError(DeepLinkAuthError):
    """Tagged error variant produced by the orchestrator.

    Attributes:
        kind (AuthErrorKind): Which failure happened.
        message (str): Stable, translated, user-facing text.
        cause (Exception | None): The underlying exception, for logging only.
        redirect_to (str | None): Safe destination the caller should send the
            user to, when the failure ends the attempt.
    """

    def __init__(
        self,
        kind: AuthErrorKind,
        message: str,
        cause: Optional[BaseException] = None,
        redirect_to: Optional[str] = None,
    ):
        super().__init__(message, kind.value)
        self.kind = kind
        self.cause = cause
        self.redirect_to = redirect_to


class InvalidOAuthStateError(AuthFlowError):
    """Raised when an OAuth ``state`` is missing, expired, replayed or forged.

    Always fatal to the current attempt.
    """

    def __init__(
        self,
        message: str,
        cause: Optional[BaseException] = None,
        redirect_to: Optional[str] = None,
    ):
        super().__init__(AuthErrorKind.INVALID_STATE, message, cause, redirect_to)


class InvalidResetTransitionError(DeepLinkAuthError):
    """Raised when a password-reset event is not allowed in the current state."""

    def __init__(self, message: str, code: str = "invalid_reset_transition"):
        super().__init__(message, code)

"""Error taxonomy for authentication failures.

Credential stores and identity providers report failures as loosely
structured codes and free text. This module folds them into the closed
``AuthErrorKind`` set and gives each kind one stable, translated message and
one HTTP status.

Key Security Features:
- Raw backend text is never returned to users, only the kind's message
- Unrecognized failures collapse to a generic retry message
- Log events carry the kind and exception type, never the raw text
"""

import asyncio
from dataclasses import dataclass
from typing import Dict, Final, Optional, Tuple, Union

import structlog

from deeplink_auth.core.exceptions import AuthErrorKind, AuthFlowError, CredentialStoreError
from deeplink_auth.utils.i18n import get_translated_message

logger = structlog.get_logger(__name__)

ErrorInput = Union[str, BaseException, None]


@dataclass(frozen=True)
class AuthErrorDefinition:
    """How one error kind is presented."""

    message_key: str
    http_status: int


ERROR_DEFINITIONS: Final[Dict[AuthErrorKind, AuthErrorDefinition]] = {
    AuthErrorKind.NETWORK: AuthErrorDefinition("auth_error_network", 503),
    AuthErrorKind.TIMEOUT: AuthErrorDefinition("auth_error_timeout", 503),
    AuthErrorKind.INVALID_STATE: AuthErrorDefinition("auth_error_invalid_state", 403),
    AuthErrorKind.INVALID_TOKEN: AuthErrorDefinition("auth_error_invalid_token", 400),
    AuthErrorKind.EXPIRED_TOKEN: AuthErrorDefinition("auth_error_expired_token", 400),
    AuthErrorKind.WEAK_PASSWORD: AuthErrorDefinition("auth_error_weak_password", 422),
    AuthErrorKind.PASSWORD_MISMATCH: AuthErrorDefinition("auth_error_password_mismatch", 422),
    AuthErrorKind.INVALID_CREDENTIALS: AuthErrorDefinition("auth_error_invalid_credentials", 401),
    AuthErrorKind.EMAIL_NOT_CONFIRMED: AuthErrorDefinition("auth_error_email_not_confirmed", 403),
    AuthErrorKind.USER_ALREADY_REGISTERED: AuthErrorDefinition(
        "auth_error_user_already_registered", 409
    ),
    AuthErrorKind.INVALID_EMAIL: AuthErrorDefinition("auth_error_invalid_email", 422),
    AuthErrorKind.ACCESS_DENIED: AuthErrorDefinition("auth_error_access_denied", 403),
    AuthErrorKind.UNKNOWN: AuthErrorDefinition("auth_error_unknown", 500),
}

# Raw codes as reported by credential stores and OAuth providers.
RAW_CODE_KINDS: Final[Dict[str, AuthErrorKind]] = {
    "invalid_credentials": AuthErrorKind.INVALID_CREDENTIALS,
    "invalid_login_credentials": AuthErrorKind.INVALID_CREDENTIALS,
    "invalid_grant": AuthErrorKind.INVALID_CREDENTIALS,
    "email_not_confirmed": AuthErrorKind.EMAIL_NOT_CONFIRMED,
    "user_already_registered": AuthErrorKind.USER_ALREADY_REGISTERED,
    "user_already_exists": AuthErrorKind.USER_ALREADY_REGISTERED,
    "email_exists": AuthErrorKind.USER_ALREADY_REGISTERED,
    "invalid_email": AuthErrorKind.INVALID_EMAIL,
    "email_address_invalid": AuthErrorKind.INVALID_EMAIL,
    "weak_password": AuthErrorKind.WEAK_PASSWORD,
    "password_mismatch": AuthErrorKind.PASSWORD_MISMATCH,
    "access_denied": AuthErrorKind.ACCESS_DENIED,
    "otp_expired": AuthErrorKind.EXPIRED_TOKEN,
    "token_expired": AuthErrorKind.EXPIRED_TOKEN,
    "expired_token": AuthErrorKind.EXPIRED_TOKEN,
    "invalid_token": AuthErrorKind.INVALID_TOKEN,
    "token_not_found": AuthErrorKind.INVALID_TOKEN,
    "bad_jwt": AuthErrorKind.INVALID_TOKEN,
    "invalid_state": AuthErrorKind.INVALID_STATE,
    "state_mismatch": AuthErrorKind.INVALID_STATE,
    "timeout": AuthErrorKind.TIMEOUT,
    "request_timeout": AuthErrorKind.TIMEOUT,
    "network_error": AuthErrorKind.NETWORK,
    "fetch_failed": AuthErrorKind.NETWORK,
    "server_error": AuthErrorKind.NETWORK,
    "temporarily_unavailable": AuthErrorKind.NETWORK,
    "invalid_request": AuthErrorKind.UNKNOWN,
}

# Free-text fragments checked after the raw codes, in order.
TEXT_HINTS: Final[Tuple[Tuple[str, AuthErrorKind], ...]] = (
    ("failed to fetch", AuthErrorKind.NETWORK),
    ("network", AuthErrorKind.NETWORK),
    ("timed out", AuthErrorKind.TIMEOUT),
    ("already registered", AuthErrorKind.USER_ALREADY_REGISTERED),
    ("expired", AuthErrorKind.EXPIRED_TOKEN),
)


def _match_exact(text: str) -> Optional[AuthErrorKind]:
    normalized = text.strip().lower().replace(" ", "_")
    return RAW_CODE_KINDS.get(normalized)


def _match_substring(text: str) -> Optional[AuthErrorKind]:
    lowered = text.lower()
    for code, kind in RAW_CODE_KINDS.items():
        if code.replace("_", " ") in lowered or code in lowered:
            return kind
    for hint, kind in TEXT_HINTS:
        if hint in lowered:
            return kind
    return None


def classify_error(error: ErrorInput) -> AuthErrorKind:
    """Map a raw failure to an ``AuthErrorKind``.

    Exact code matches win, then substring matches, then ``UNKNOWN``.
    Timeouts and connection failures are recognized by exception type.
    """
    if error is None:
        return AuthErrorKind.UNKNOWN
    if isinstance(error, AuthFlowError):
        return error.kind
    if isinstance(error, (TimeoutError, asyncio.TimeoutError)):
        return AuthErrorKind.TIMEOUT
    if isinstance(error, (ConnectionError, OSError)):
        return AuthErrorKind.NETWORK

    candidates = []
    if isinstance(error, CredentialStoreError):
        candidates = [error.code, error.message]
    elif isinstance(error, BaseException):
        candidates = [str(error)]
    else:
        candidates = [error]

    candidates = [c for c in candidates if isinstance(c, str) and c]
    for candidate in candidates:
        kind = _match_exact(candidate)
        if kind is not None:
            return kind
    for candidate in candidates:
        kind = _match_substring(candidate)
        if kind is not None:
            return kind
    return AuthErrorKind.UNKNOWN


def get_message_for_kind(kind: AuthErrorKind, language: str = "en") -> str:
    return get_translated_message(ERROR_DEFINITIONS[kind].message_key, language)


def get_http_status(kind: AuthErrorKind) -> int:
    return ERROR_DEFINITIONS[kind].http_status


def get_auth_error_message(error: ErrorInput, language: str = "en") -> str:
    """Return the user-facing message for ``error``.

    The raw error text is never part of the result.
    """
    return get_message_for_kind(classify_error(error), language)


def to_auth_error(
    error: ErrorInput,
    language: str = "en",
    redirect_to: Optional[str] = None,
) -> AuthFlowError:
    """Wrap any failure into an ``AuthFlowError`` with a stable message."""
    if isinstance(error, AuthFlowError):
        return error

    kind = classify_error(error)
    logger.warning(
        "auth_error_classified",
        kind=kind.value,
        error_type=type(error).__name__ if isinstance(error, BaseException) else "str",
    )
    cause = error if isinstance(error, BaseException) else None
    return AuthFlowError(kind, get_message_for_kind(kind, language), cause=cause, redirect_to=redirect_to)

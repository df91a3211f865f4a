from __future__ import annotations

"""
Global exception handlers for the FastAPI application.

This module contains centralized handlers for custom application exceptions,
translating them into appropriate HTTP responses. Response bodies have the
shape ``{"detail": str, "code": str}`` plus ``redirect_to`` when the failure
ends the current attempt. Raw credential-store text is never rendered.
"""

from typing import Any, Dict

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette import status
from structlog import get_logger

from deeplink_auth.core.exceptions import (
    AuthFlowError,
    CredentialStoreError,
    DeepLinkAuthError,
    InvalidResetTransitionError,
    StorageError,
    ValidationError,
)
from deeplink_auth.domain.security.error_messages import (
    classify_error,
    get_http_status,
    get_message_for_kind,
)
from deeplink_auth.utils.i18n import get_request_language, get_translated_message

__all__ = [
    "auth_flow_error_handler",
    "validation_error_handler",
    "invalid_reset_transition_error_handler",
    "credential_store_error_handler",
    "storage_error_handler",
    "deeplink_auth_error_handler",
    "register_exception_handlers",
]

logger = get_logger(__name__)


def _body(detail: str, code: str, **extra: Any) -> Dict[str, Any]:
    body: Dict[str, Any] = {"detail": detail, "code": code}
    body.update({key: value for key, value in extra.items() if value is not None})
    return body


async def auth_flow_error_handler(request: Request, exc: AuthFlowError) -> JSONResponse:
    """Handles `AuthFlowError` with the status assigned to its kind.

    Args:
        request: The incoming `Request` object.
        exc: The `AuthFlowError` instance.

    Returns:
        A `JSONResponse` carrying the translated message, the kind as
        ``code`` and the ``redirect_to`` destination when there is one.
    """
    logger.warning(
        "Auth flow failure",
        kind=exc.kind.value,
        cause_type=type(exc.cause).__name__ if exc.cause else None,
        path=request.url.path,
    )
    return JSONResponse(
        status_code=get_http_status(exc.kind),
        content=_body(exc.message, exc.code, redirect_to=exc.redirect_to),
    )


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Handles `ValidationError`, returning a `422 Unprocessable Entity`."""
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=_body(exc.message, exc.code),
    )


async def invalid_reset_transition_error_handler(
    request: Request, exc: InvalidResetTransitionError
) -> JSONResponse:
    """Handles `InvalidResetTransitionError`, returning a `409 Conflict`.

    Raised when a reset step is attempted out of order, for example
    completing a reset that was never verified.
    """
    logger.info("Reset transition rejected", code=exc.code, path=request.url.path)
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content=_body(exc.message, exc.code),
    )


async def credential_store_error_handler(request: Request, exc: CredentialStoreError) -> JSONResponse:
    """Handles a `CredentialStoreError` that escaped the orchestrator.

    The backend text is classified and replaced by the kind's message.
    """
    kind = classify_error(exc)
    locale = get_request_language(request)
    logger.error("Unmapped credential store failure", kind=kind.value, path=request.url.path)
    return JSONResponse(
        status_code=get_http_status(kind),
        content=_body(get_message_for_kind(kind, locale), kind.value),
    )


async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
    """Handles `StorageError`, returning a `503 Service Unavailable`."""
    locale = get_request_language(request)
    logger.error("Context storage unavailable", path=request.url.path)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content=_body(get_translated_message("credential_store_unavailable", locale), exc.code),
    )


async def deeplink_auth_error_handler(request: Request, exc: DeepLinkAuthError) -> JSONResponse:
    """Handles the base `DeepLinkAuthError`, returning a `500 Internal Server Error`.

    This serves as a fallback for any custom application errors that do not
    have a more specific handler.
    """
    locale = get_request_language(request)
    logger.error(
        "An unhandled application error occurred",
        error_code=exc.code,
        path=request.url.path,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_body(get_translated_message("internal_server_error", locale), exc.code),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Registers all custom exception handlers with the FastAPI application.

    Args:
        app: The `FastAPI` application instance.
    """
    app.add_exception_handler(AuthFlowError, auth_flow_error_handler)
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(InvalidResetTransitionError, invalid_reset_transition_error_handler)
    app.add_exception_handler(CredentialStoreError, credential_store_error_handler)
    app.add_exception_handler(StorageError, storage_error_handler)
    app.add_exception_handler(DeepLinkAuthError, deeplink_auth_error_handler)

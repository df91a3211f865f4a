from __future__ import annotations

"""Request payload Pydantic models for the auth context endpoints.

Redirect and competition fields are plain strings on purpose: invalid values
are dropped by the domain validator rather than rejected, so a bad deep link
degrades to the default landing page instead of an error.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, EmailStr, Field

from deeplink_auth.domain.value_objects.auth_context import AuthFlow

# ---------------------------------------------------------------------------
# Links and context ---------------------------------------------------------
# ---------------------------------------------------------------------------


class AuthLinkRequest(BaseModel):
    """Payload expected by ``POST /auth/links``."""

    flow: AuthFlow = Field(..., examples=["login"])
    redirect: Optional[str] = Field(None, examples=["/competition/summer-shred/enter"])
    competition: Optional[str] = Field(
        None, examples=["123e4567-e89b-42d3-a456-426614174000"]
    )
    params: Dict[str, str] = Field(default_factory=dict, examples=[{"invite": "abc123"}])


class AuthContextRequest(BaseModel):
    """Payload expected by ``POST /auth/context``: the auth page's query."""

    query: Dict[str, str] = Field(
        default_factory=dict,
        examples=[{"redirect": "/competition/summer-shred", "flow": "signup"}],
    )


class ContextBackupRequest(BaseModel):
    """Payload expected by ``POST /auth/context/backup``."""

    path: str = Field(..., examples=["/competition/summer-shred/results"])


# ---------------------------------------------------------------------------
# OAuth ---------------------------------------------------------------------
# ---------------------------------------------------------------------------


class OAuthStartRequest(BaseModel):
    """Payload expected by ``POST /auth/oauth/{provider}``."""

    redirect: Optional[str] = Field(None, examples=["/competition/summer-shred/enter"])
    competition: Optional[str] = Field(None)


# ---------------------------------------------------------------------------
# Credentials ---------------------------------------------------------------
# ---------------------------------------------------------------------------


class LoginRequest(BaseModel):
    """Payload expected by ``POST /auth/login``."""

    email: EmailStr = Field(..., examples=["athlete@example.com"])
    password: str = Field(..., min_length=1, examples=["Str0ngPassw0rd"])
    redirect: Optional[str] = Field(None, examples=["/competition/summer-shred/enter"])


class SignupRequest(BaseModel):
    """Payload expected by ``POST /auth/signup``."""

    email: EmailStr = Field(..., examples=["athlete@example.com"])
    password: str = Field(..., min_length=1, examples=["Str0ngPassw0rd"])
    metadata: Dict[str, Any] = Field(default_factory=dict, examples=[{"full_name": "Ana Ruiz"}])
    redirect: Optional[str] = Field(None)


# ---------------------------------------------------------------------------
# Password reset ------------------------------------------------------------
# ---------------------------------------------------------------------------


class ResetRequestRequest(BaseModel):
    """Payload expected by ``POST /auth/reset/request``.

    ``email`` is validated by the reset flow so that an invalid address comes
    back as a field error on the flow snapshot.
    """

    email: str = Field(..., examples=["athlete@example.com"])
    redirect: Optional[str] = Field(None)
    competition: Optional[str] = Field(None)


class ResetVerifyRequest(BaseModel):
    """Payload expected by ``POST /auth/reset/verify``.

    Mirrors the query parameters of the recovery email link.
    """

    token: Optional[str] = Field(None)
    error: Optional[str] = Field(None, examples=["access_denied"])
    error_code: Optional[str] = Field(None, examples=["otp_expired"])
    error_description: Optional[str] = Field(None)


class ResetCompleteRequest(BaseModel):
    """Payload expected by ``POST /auth/reset/complete``."""

    password: str = Field(..., examples=["N3wPassword"])
    confirm_password: str = Field(..., examples=["N3wPassword"])

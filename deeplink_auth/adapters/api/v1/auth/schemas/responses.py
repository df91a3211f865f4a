"""Response models for the auth context endpoints."""

from typing import Dict, Optional

from pydantic import BaseModel, Field


class AuthLinkResponse(BaseModel):
    url: str = Field(..., examples=["/auth/login?redirect=/competition/summer-shred"])


class AuthContextResponse(BaseModel):
    """Validated context extracted from an auth page URL."""

    redirect_url: Optional[str] = None
    competition_id: Optional[str] = None
    auth_flow: Optional[str] = None
    error: Optional[str] = None


class ContextBackupResponse(BaseModel):
    preserved: bool


class ContextRestoreResponse(BaseModel):
    path: Optional[str] = None


class OAuthUrlResponse(BaseModel):
    url: str = Field(..., examples=["/auth/oauth/google?state=3f2a...&redirect=/competitions"])
    state: str


class RedirectResponseBody(BaseModel):
    redirect_to: str = Field(..., examples=["/competition/summer-shred/enter"])


class AuthSessionResponse(BaseModel):
    redirect_to: str
    user_id: str


class ResetFlowResponse(BaseModel):
    """Snapshot of a password-reset flow after one event."""

    state: str = Field(..., examples=["sent"])
    error: Optional[str] = None
    field_errors: Dict[str, str] = Field(default_factory=dict)
    redirect_to: Optional[str] = None

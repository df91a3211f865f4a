from .requests import (
    AuthContextRequest,
    AuthLinkRequest,
    ContextBackupRequest,
    LoginRequest,
    OAuthStartRequest,
    ResetCompleteRequest,
    ResetRequestRequest,
    ResetVerifyRequest,
    SignupRequest,
)
from .responses import (
    AuthContextResponse,
    AuthLinkResponse,
    AuthSessionResponse,
    ContextBackupResponse,
    ContextRestoreResponse,
    OAuthUrlResponse,
    RedirectResponseBody,
    ResetFlowResponse,
)

__all__ = [
    "AuthContextRequest",
    "AuthLinkRequest",
    "ContextBackupRequest",
    "LoginRequest",
    "OAuthStartRequest",
    "ResetCompleteRequest",
    "ResetRequestRequest",
    "ResetVerifyRequest",
    "SignupRequest",
    "AuthContextResponse",
    "AuthLinkResponse",
    "AuthSessionResponse",
    "ContextBackupResponse",
    "ContextRestoreResponse",
    "OAuthUrlResponse",
    "RedirectResponseBody",
    "ResetFlowResponse",
]

"""Domain Value Objects for the authentication context domain.

Value objects are immutable objects that describe domain concepts by their attributes
rather than their identity.
"""

from .auth_context import AuthFlow, AuthUrlContext, OAuthProvider, OAuthUrl
from .deep_link import (
    CompetitionContext,
    DeepLinkAction,
    DeepLinkData,
    DeepLinkRouteResult,
    DeepLinkSource,
)
from .email import Email
from .password import Password

__all__ = [
    "AuthFlow",
    "AuthUrlContext",
    "OAuthProvider",
    "OAuthUrl",
    "CompetitionContext",
    "DeepLinkAction",
    "DeepLinkData",
    "DeepLinkRouteResult",
    "DeepLinkSource",
    "Email",
    "Password",
]

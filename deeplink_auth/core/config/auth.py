"""Authentication context settings.
"""

import logging
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class AuthSettings(BaseSettings):
    """Defines settings for the ephemeral auth context, OAuth state and the
    session cookie that scopes it.

    Security Note:
        - OAUTH_STATE_TTL_MINUTES bounds how long a pending OAuth round trip
          stays valid; a callback arriving later always fails.
        - SESSION_COOKIE_SECURE must be enabled in production so the session
          identifier never travels over plain HTTP.
    """

    # Ephemeral context store
    CONTEXT_TTL_MINUTES: float = Field(default=30, gt=0)
    OAUTH_STATE_TTL_MINUTES: float = Field(default=10, gt=0)
    CONTEXT_SWEEP_INTERVAL_SECONDS: float = Field(default=30, gt=0)

    # OAuth providers the login page may offer
    OAUTH_PROVIDERS: List[str] = ["google", "github", "discord", "apple"]

    # Session cookie scoping the context store to one browser session
    SESSION_COOKIE_NAME: str = "auth_session"
    SESSION_COOKIE_SECURE: bool = False
    SESSION_COOKIE_MAX_AGE: int = Field(default=60 * 60 * 24, ge=60)

    # Deep-link middleware
    DEEP_LINK_COOKIE_NAME: str = "deep-link-context"
    DEEP_LINK_COOKIE_MAX_AGE: int = Field(default=300, ge=1)

"""Value objects describing an in-flight authentication attempt.

``AuthUrlContext`` is derived per navigation from query parameters and never
persisted as-is: only the validated fields reach the context store.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

import structlog

logger = structlog.get_logger(__name__)


class AuthFlow(str, Enum):
    """Authentication entry pages a user can be sent to."""

    LOGIN = "login"
    SIGNUP = "signup"
    RESET = "reset"

    @classmethod
    def values(cls) -> list[str]:
        return [flow.value for flow in cls]


@dataclass(frozen=True)
class AuthUrlContext:
    """Context extracted from an auth page URL.

    Attributes:
        redirect_url: Validated relative destination, if any.
        competition_id: Validated competition UUID, if any.
        auth_flow: Requested flow, if recognized.
        oauth_state: Raw ``state`` parameter; validated by the state service.
        error: Provider error code carried back on a callback.
        error_description: Provider error description. Display only.
    """

    redirect_url: Optional[str] = None
    competition_id: Optional[str] = None
    auth_flow: Optional[AuthFlow] = None
    oauth_state: Optional[str] = None
    error: Optional[str] = None
    error_description: Optional[str] = None

    @property
    def has_error(self) -> bool:
        return bool(self.error)

    def mask_for_logging(self) -> dict:
        """Summary of the context safe to attach to log events."""
        return {
            "has_redirect": self.redirect_url is not None,
            "competition_id": self.competition_id,
            "auth_flow": self.auth_flow.value if self.auth_flow else None,
            "has_state": bool(self.oauth_state),
            "error": self.error,
        }


@dataclass(frozen=True)
class OAuthUrl:
    """Provider entry URL together with the state issued for it."""

    url: str
    state: str

    def __repr__(self) -> str:
        return f"OAuthUrl(url='{self.url.split('?', 1)[0]}', state='***')"


class OAuthProvider:
    """OAuth provider value object.

    Provider names are normalized to lowercase and must belong to the
    configured allow-list.
    """

    def __init__(self, provider: str, supported: Iterable[str]):
        """Initialize OAuth provider with validation.

        Args:
            provider: OAuth provider name, e.g. ``google``.
            supported: Allowed provider names.

        Raises:
            ValueError: If provider is empty or not supported.
        """
        if not provider or not isinstance(provider, str):
            raise ValueError("OAuth provider cannot be empty")

        normalized = provider.strip().lower()
        allowed = [name.lower() for name in supported]
        if normalized not in allowed:
            raise ValueError(
                f"Unsupported OAuth provider: {normalized}. "
                f"Supported providers: {', '.join(allowed)}"
            )

        self._provider = normalized
        logger.debug("OAuth provider value object created", provider=self._provider)

    @property
    def value(self) -> str:
        return self._provider

    def __str__(self) -> str:
        return self._provider

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, OAuthProvider):
            return NotImplemented
        return self._provider == other._provider

    def __hash__(self) -> int:
        return hash(self._provider)

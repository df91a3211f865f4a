"""Value objects produced by the deep link classifier and router."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional
from urllib.parse import urlencode


class DeepLinkSource(str, Enum):
    """Where an inbound link most likely came from."""

    WEB = "web"
    MOBILE = "mobile"
    EMAIL = "email"
    SOCIAL = "social"
    DIRECT = "direct"


class DeepLinkAction(str, Enum):
    """What the link asks to do with a competition."""

    ENTER = "enter"
    VIEW = "view"
    RESULTS = "results"
    INVITE = "invite"
    SHARE = "share"


@dataclass(frozen=True)
class CompetitionContext:
    slug: str
    action: DeepLinkAction = DeepLinkAction.VIEW

    @property
    def path(self) -> str:
        """Canonical page path for this competition and action."""
        base = f"/competition/{self.slug}"
        if self.action == DeepLinkAction.ENTER:
            return f"{base}/enter"
        if self.action == DeepLinkAction.RESULTS:
            return f"{base}/results"
        return base


@dataclass(frozen=True)
class DeepLinkData:
    """Classification of one inbound navigation.

    ``params`` holds the raw query as received; anything that flows into a
    redirect is sanitized separately by the router.
    """

    is_deep_link: bool
    source: DeepLinkSource
    original_url: str
    params: Dict[str, str] = field(default_factory=dict)
    competition_slug: Optional[str] = None
    action: Optional[DeepLinkAction] = None
    timestamp: float = 0.0
    user_agent: Optional[str] = None
    referrer: Optional[str] = None

    @property
    def competition(self) -> Optional[CompetitionContext]:
        if not self.competition_slug:
            return None
        return CompetitionContext(self.competition_slug, self.action or DeepLinkAction.VIEW)


@dataclass(frozen=True)
class DeepLinkRouteResult:
    """Routing decision for a classified link."""

    should_redirect: bool
    path: Optional[str] = None
    query: Dict[str, str] = field(default_factory=dict)

    @property
    def location(self) -> Optional[str]:
        """Path plus encoded query, or None when there is nowhere to go."""
        if self.path is None:
            return None
        if not self.query:
            return self.path
        return f"{self.path}?{urlencode(self.query, safe='/')}"

    @classmethod
    def stay(cls) -> "DeepLinkRouteResult":
        return cls(should_redirect=False)

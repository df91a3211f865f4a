"""Deep link classification and routing.

Inbound page requests are classified into a ``DeepLinkData`` record (is this a
deep link, where did it come from, which competition does it point at) and
then routed: competition links are normalized to their canonical path,
social and email campaign traffic landing elsewhere is sent to the
competitions list. Auth pages are never redirected away from.

All values copied into a redirect pass through the URL validator first.
"""

import re
import time
from typing import Callable, Dict, Final, Mapping, Optional, Pattern, Tuple
from urllib.parse import urlparse

import structlog

from deeplink_auth.domain.validation.url_validator import (
    UTM_PARAMS,
    is_valid_competition_id,
    is_valid_competition_slug,
    sanitize_campaign_params,
)
from deeplink_auth.domain.value_objects.deep_link import (
    CompetitionContext,
    DeepLinkAction,
    DeepLinkData,
    DeepLinkRouteResult,
    DeepLinkSource,
)

logger = structlog.get_logger(__name__)

# Checked in order; the first match wins.
COMPETITION_URL_PATTERNS: Final[Tuple[Tuple[Pattern[str], DeepLinkAction], ...]] = (
    (re.compile(r"^/competition/([^/]+)/?$"), DeepLinkAction.VIEW),
    (re.compile(r"^/competition/([^/]+)/enter/?$"), DeepLinkAction.ENTER),
    (re.compile(r"^/competition/([^/]+)/results/?$"), DeepLinkAction.RESULTS),
    (re.compile(r"^/competitions/([^/]+)/?$"), DeepLinkAction.VIEW),
    (re.compile(r"^/competitions/([^/]+)/enter/?$"), DeepLinkAction.ENTER),
    (re.compile(r"^/competitions/([^/]+)/results/?$"), DeepLinkAction.RESULTS),
    (re.compile(r"^/c/([^/]+)/?$"), DeepLinkAction.VIEW),
)

AUTH_PATH_PREFIXES: Final = (
    "/auth/login",
    "/auth/signup",
    "/auth/reset",
    "/auth/reset-password",
    "/auth/forgot-password",
    "/auth/oauth",
)

CAMPAIGN_QUERY_KEYS: Final = tuple(sorted(UTM_PARAMS)) + ("fbclid", "gclid", "msclkid", "twclid")
DEEP_LINK_QUERY_KEYS: Final = ("invite", "share", "token", "redirect")

SOCIAL_UTM_SOURCES: Final = frozenset({"facebook", "twitter", "linkedin", "instagram", "tiktok"})
EMAIL_UTM_SOURCES: Final = frozenset({"email", "newsletter"})
SOCIAL_REFERRER_DOMAINS: Final = (
    "facebook.com",
    "fb.me",
    "twitter.com",
    "t.co",
    "x.com",
    "linkedin.com",
    "instagram.com",
    "tiktok.com",
    "youtube.com",
)

COMPETITIONS_PATH: Final = "/competitions"


def is_under_path(path: str, prefix: str) -> bool:
    """True if ``path`` is ``prefix`` or lies below it on a segment boundary."""
    return path == prefix or path.startswith((prefix + "/", prefix + "?"))


def is_auth_path(path: str) -> bool:
    return any(is_under_path(path, prefix) for prefix in AUTH_PATH_PREFIXES)


def has_campaign_params(query: Mapping[str, str]) -> bool:
    return any(query.get(key) for key in CAMPAIGN_QUERY_KEYS)


def is_deep_link_url(path: str, query: Mapping[str, str]) -> bool:
    """True for competition paths and for URLs carrying campaign or link params."""
    if any(pattern.match(path) for pattern, _ in COMPETITION_URL_PATTERNS):
        return True
    if has_campaign_params(query):
        return True
    return any(query.get(key) for key in DEEP_LINK_QUERY_KEYS)


def extract_competition_context(path: str) -> Optional[CompetitionContext]:
    """Return the competition a path points at, or None.

    Identifiers that are neither a valid slug nor a valid competition UUID
    yield no context.
    """
    for pattern, action in COMPETITION_URL_PATTERNS:
        match = pattern.match(path)
        if not match:
            continue
        slug = match.group(1)
        if is_valid_competition_slug(slug) or is_valid_competition_id(slug):
            return CompetitionContext(slug=slug, action=action)
        logger.debug("deep_link_invalid_competition_slug", path_length=len(path))
        return None
    return None


def _referrer_host(referrer: str) -> Optional[str]:
    parsed = urlparse(referrer if "//" in referrer else f"//{referrer}")
    return parsed.hostname


def _is_social_host(host: str) -> bool:
    return any(host == domain or host.endswith(f".{domain}") for domain in SOCIAL_REFERRER_DOMAINS)


def determine_source(
    query: Mapping[str, str],
    user_agent: Optional[str] = None,
    referrer: Optional[str] = None,
) -> DeepLinkSource:
    """Guess where a link was followed from.

    ``utm_source`` wins over the referrer; referrer hosts are matched on
    domain boundaries so ``t.co`` does not match ``microsoft.com``. A mobile
    user agent without a referrer is treated as an app hand-off.
    """
    utm_source = (query.get("utm_source") or "").lower()
    if utm_source in SOCIAL_UTM_SOURCES:
        return DeepLinkSource.SOCIAL
    if utm_source in EMAIL_UTM_SOURCES:
        return DeepLinkSource.EMAIL

    if referrer:
        host = _referrer_host(referrer)
        if host and _is_social_host(host.lower()):
            return DeepLinkSource.SOCIAL

    if user_agent and "Mobile" in user_agent and not referrer:
        return DeepLinkSource.MOBILE

    return DeepLinkSource.WEB


def classify(
    path: str,
    query: Mapping[str, str],
    user_agent: Optional[str] = None,
    referrer: Optional[str] = None,
    original_url: Optional[str] = None,
    clock: Callable[[], float] = time.time,
) -> DeepLinkData:
    """Classify one inbound navigation.

    Args:
        path: Request path.
        query: Query parameters as received.
        user_agent: ``User-Agent`` header, if any.
        referrer: ``Referer`` header, if any.
        original_url: Full URL for bookkeeping; defaults to ``path``.
        clock: Seconds since the epoch; injectable for tests.

    Returns:
        DeepLinkData: The classification. Never raises on odd input.
    """
    params: Dict[str, str] = {k: v for k, v in query.items() if isinstance(v, str)}
    competition = extract_competition_context(path)

    return DeepLinkData(
        is_deep_link=is_deep_link_url(path, params),
        source=determine_source(params, user_agent, referrer),
        original_url=original_url or path,
        params=params,
        competition_slug=competition.slug if competition else None,
        action=competition.action if competition else None,
        timestamp=clock(),
        user_agent=user_agent or None,
        referrer=referrer or None,
    )


def _competition_query(params: Mapping[str, str]) -> Dict[str, str]:
    sanitized = sanitize_campaign_params(params)
    ordered: Dict[str, str] = {}
    for key in ("invite", "share", "ref"):
        if key in sanitized:
            ordered[key] = sanitized[key]
    for key in sorted(UTM_PARAMS):
        if key in sanitized:
            ordered[key] = sanitized[key]
    return ordered


def route_deep_link(data: DeepLinkData, current_path: str) -> DeepLinkRouteResult:
    """Decide whether a classified link should be redirected.

    Returns:
        DeepLinkRouteResult: ``should_redirect`` is True only when the target
        differs from ``current_path``.
    """
    if is_auth_path(current_path):
        return DeepLinkRouteResult.stay()

    competition = data.competition
    if competition is not None:
        target = competition.path
        return DeepLinkRouteResult(
            should_redirect=target != current_path,
            path=target,
            query=_competition_query(data.params),
        )

    if data.source in (DeepLinkSource.SOCIAL, DeepLinkSource.EMAIL):
        if is_under_path(current_path, COMPETITIONS_PATH) or is_under_path(current_path, "/auth"):
            return DeepLinkRouteResult.stay()
        utm_only = {k: v for k, v in sanitize_campaign_params(data.params).items() if k in UTM_PARAMS}
        return DeepLinkRouteResult(
            should_redirect=True,
            path=COMPETITIONS_PATH,
            query=dict(sorted(utm_only.items())),
        )

    return DeepLinkRouteResult.stay()

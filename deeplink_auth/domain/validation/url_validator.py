"""Validation of untrusted URL fragments used during authentication.

Every value that can end up in a ``Location`` header or in a link rendered by
the application passes through this module first. The functions here never
raise on bad input: they answer ``False``, ``None`` or an empty mapping and the
caller falls back to a safe default.

``is_valid_redirect_url`` is the only open-redirect defense in the system;
keep it strict.
"""

import re
from typing import Any, Dict, Final, FrozenSet, Mapping, Optional

import structlog

from deeplink_auth.domain.value_objects.auth_context import AuthFlow

logger = structlog.get_logger(__name__)

MAX_REDIRECT_LENGTH: Final = 2000
MAX_CAMPAIGN_VALUE_LENGTH: Final = 100

COMPETITION_ID_PATTERN: Final = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)
COMPETITION_SLUG_PATTERN: Final = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
SLUG_MIN_LENGTH: Final = 3
SLUG_MAX_LENGTH: Final = 50

UTM_PARAMS: Final[FrozenSet[str]] = frozenset(
    {"utm_source", "utm_medium", "utm_campaign", "utm_content", "utm_term"}
)
CAMPAIGN_PARAMS: Final[FrozenSet[str]] = UTM_PARAMS | {"ref", "invite", "share"}

DANGEROUS_VALUE_PATTERNS: Final = ("javascript:", "data:", "vbscript:", "<script", "../")

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")


def is_valid_redirect_url(url: Any) -> bool:
    """Return True if ``url`` is a same-origin relative path.

    Accepted values start with a single ``/``. Absolute URLs, protocol-relative
    ``//host`` values, the ``/\\host`` variant browsers normalize to
    ``//host``, control characters and oversized values are rejected.

    Args:
        url: Candidate redirect target, typically a raw query parameter.

    Returns:
        bool: True only when the value is safe to redirect to.
    """
    if not isinstance(url, str) or not url:
        return False
    if len(url) > MAX_REDIRECT_LENGTH:
        return False
    if not url.startswith("/"):
        return False
    if url.startswith("//") or url.startswith("/\\"):
        return False
    if _CONTROL_CHARS.search(url):
        return False
    return True


def is_valid_competition_id(competition_id: Any) -> bool:
    """Return True if ``competition_id`` is a canonical UUID (versions 1-5)."""
    if not isinstance(competition_id, str):
        return False
    return bool(COMPETITION_ID_PATTERN.match(competition_id))


def is_valid_competition_slug(slug: Any) -> bool:
    """Return True for lowercase slugs such as ``summer-shred-2024``.

    Slugs are 3 to 50 characters of ``a-z``, ``0-9`` and single hyphens and
    neither start nor end with a hyphen.
    """
    if not isinstance(slug, str):
        return False
    if not SLUG_MIN_LENGTH <= len(slug) <= SLUG_MAX_LENGTH:
        return False
    return bool(COMPETITION_SLUG_PATTERN.match(slug))


def is_dangerous_value(value: str) -> bool:
    lowered = value.lower()
    return any(pattern in lowered for pattern in DANGEROUS_VALUE_PATTERNS)


def sanitize_campaign_params(params: Optional[Mapping[str, Any]]) -> Dict[str, str]:
    """Keep only known campaign parameters with harmless values.

    Allowed keys are the five standard ``utm_*`` parameters plus ``ref``,
    ``invite`` and ``share``. Values that carry a script scheme, a ``<script``
    tag or a path traversal are dropped rather than escaped, as are empty and
    oversized values.

    Args:
        params: Raw query parameters.

    Returns:
        A new dict containing only the surviving parameters.
    """
    sanitized: Dict[str, str] = {}
    if not params:
        return sanitized

    for key, value in params.items():
        if key not in CAMPAIGN_PARAMS or not isinstance(value, str):
            continue
        if not value or len(value) > MAX_CAMPAIGN_VALUE_LENGTH:
            continue
        if is_dangerous_value(value):
            logger.warning("campaign_param_dropped", param=key, reason="dangerous_value")
            continue
        sanitized[key] = value

    return sanitized


def parse_auth_flow(value: Any) -> Optional[AuthFlow]:
    """Return the matching ``AuthFlow`` or None for anything unrecognized."""
    if not isinstance(value, str):
        return None
    try:
        return AuthFlow(value)
    except ValueError:
        return None

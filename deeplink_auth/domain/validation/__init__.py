"""Validation of untrusted input reaching the auth flows."""

from .url_validator import (
    is_valid_competition_id,
    is_valid_competition_slug,
    is_valid_redirect_url,
    parse_auth_flow,
    sanitize_campaign_params,
)

__all__ = [
    "is_valid_competition_id",
    "is_valid_competition_slug",
    "is_valid_redirect_url",
    "parse_auth_flow",
    "sanitize_campaign_params",
]

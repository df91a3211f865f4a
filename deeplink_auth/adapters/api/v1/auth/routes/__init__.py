from __future__ import annotations

"""Subpackage aggregating individual auth route modules."""

__all__ = [
    "links",
    "oauth",
    "login",
    "signup",
    "logout",
    "reset_password",
]

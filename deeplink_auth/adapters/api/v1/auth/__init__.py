from __future__ import annotations

"""Authentication router package: bundles link, OAuth, credential and reset endpoints."""

from fastapi import APIRouter

from .routes import links as links_route
from .routes import login as login_route
from .routes import logout as logout_route
from .routes import oauth as oauth_route
from .routes import reset_password as reset_password_route
from .routes import signup as signup_route

router = APIRouter(prefix="/auth", tags=["auth"])

# Delegate to sub-routers ----------------------------------------------------

router.include_router(links_route.router)
router.include_router(oauth_route.router, prefix="/oauth")
router.include_router(login_route.router, prefix="/login")
router.include_router(signup_route.router, prefix="/signup")
router.include_router(logout_route.router, prefix="/logout")
router.include_router(reset_password_route.router, prefix="/reset")

__all__ = ["router"]

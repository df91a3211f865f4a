"""Middleware configuration for the FastAPI application.

This module handles the configuration and registration of all middleware
components: CORS, language selection, the auth session cookie that scopes the
context store, and deep-link classification of page requests.
"""

import json
import re
import secrets
from typing import Dict
from urllib.parse import urlencode

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse
from starlette import status

from deeplink_auth.core.config.settings import settings
from deeplink_auth.core.logging import logger
from deeplink_auth.domain.services.deep_link import classify, is_under_path, route_deep_link
from deeplink_auth.domain.validation.url_validator import (
    is_valid_redirect_url,
    sanitize_campaign_params,
)
from deeplink_auth.domain.value_objects.deep_link import DeepLinkData
from deeplink_auth.utils.i18n import get_request_language

SESSION_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{32,128}$")
API_PATH_PREFIX = "/api"


def configure_middleware(app: FastAPI) -> None:
    """Configure all middleware for the FastAPI application.

    Middleware registered last runs first, so the deep-link middleware sees
    the request before the session and language middleware do.

    Args:
        app (FastAPI): The FastAPI application instance
    """
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.middleware("http")(set_language_middleware)
    app.middleware("http")(auth_session_middleware)
    app.middleware("http")(deep_link_middleware)


async def set_language_middleware(request: Request, call_next):
    """Resolve the request language and echo it in ``Content-Language``."""
    lang = get_request_language(request)
    request.state.language = lang
    response = await call_next(request)
    response.headers["Content-Language"] = lang
    return response


async def auth_session_middleware(request: Request, call_next):
    """Attach an opaque session identifier to every request.

    The identifier namespaces the context store. A missing or malformed
    cookie is replaced by a fresh random identifier, which is then set on the
    response as an httponly, SameSite=Lax cookie.
    """
    session_id = request.cookies.get(settings.SESSION_COOKIE_NAME)
    issued = False
    if not session_id or not SESSION_ID_PATTERN.match(session_id):
        session_id = secrets.token_urlsafe(32)
        issued = True

    request.state.session_id = session_id
    response = await call_next(request)

    if issued:
        response.set_cookie(
            settings.SESSION_COOKIE_NAME,
            session_id,
            max_age=settings.SESSION_COOKIE_MAX_AGE,
            httponly=True,
            secure=settings.SESSION_COOKIE_SECURE,
            samesite="lax",
        )
    return response


def _deep_link_context(data: DeepLinkData) -> Dict[str, object]:
    return {
        "source": data.source.value,
        "competition_slug": data.competition_slug,
        "action": data.action.value if data.action else None,
        "params": sanitize_campaign_params(data.params),
        "timestamp": int(data.timestamp * 1000),
    }


async def deep_link_middleware(request: Request, call_next):
    """Classify page requests and route deep links.

    API requests pass through untouched. For page requests an invalid
    ``redirect`` parameter is stripped before anything downstream sees it;
    deep links that need routing get a ``307`` plus a short-lived
    ``deep-link-context`` cookie, other deep links get an
    ``X-Deep-Link-Context`` header.
    """
    path = request.url.path
    if is_under_path(path, API_PATH_PREFIX):
        return await call_next(request)

    query = dict(request.query_params)
    original_url = str(request.url)
    redirect = query.get("redirect")
    if redirect is not None and not is_valid_redirect_url(redirect):
        logger.warning("invalid_redirect_blocked", path=path)
        query.pop("redirect")
        query_string = urlencode(query, safe="/")
        request.scope["query_string"] = query_string.encode("latin-1")
        original_url = str(request.url.replace(query=query_string))

    data = classify(
        path,
        query,
        user_agent=request.headers.get("user-agent"),
        referrer=request.headers.get("referer"),
        original_url=original_url,
    )
    if not data.is_deep_link:
        return await call_next(request)

    context = _deep_link_context(data)
    route = route_deep_link(data, path)
    if route.should_redirect and route.location:
        logger.info(
            "deep_link_redirect",
            source=data.source.value,
            competition_slug=data.competition_slug,
            target=route.path,
        )
        response = RedirectResponse(route.location, status_code=status.HTTP_307_TEMPORARY_REDIRECT)
        response.set_cookie(
            settings.DEEP_LINK_COOKIE_NAME,
            json.dumps(context, separators=(",", ":")),
            max_age=settings.DEEP_LINK_COOKIE_MAX_AGE,
            httponly=True,
            secure=settings.SESSION_COOKIE_SECURE,
            samesite="lax",
        )
        return response

    response = await call_next(request)
    response.headers["X-Deep-Link-Context"] = json.dumps(
        {"source": context["source"], "params": context["params"], "timestamp": context["timestamp"]},
        separators=(",", ":"),
    )
    return response

"""Route guard: a cookie-presence pre-check run before routing.

Only the presence of the session cookie is inspected, never its contents.
It keeps anonymous visitors out of protected paths and sends signed-in
visitors away from the login and registration pages. Whether the cookie
is actually valid is decided later by the route policy on each endpoint.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING
from urllib.parse import urlencode

import structlog
from starlette.requests import HTTPConnection
from starlette.responses import RedirectResponse

if TYPE_CHECKING:
    from starlette.types import ASGIApp, Receive, Scope, Send

logger = structlog.get_logger()

PUBLIC_PATHS = ("/", "/login", "/register")
AUTH_ONLY_PATHS = ("/login", "/register")
AFTER_LOGIN_PATH = "/dashboard"
LOGIN_PATH = "/login"

# Served without a session: health checks, static files, and image assets
EXEMPT_PATHS = ("/health",)
EXEMPT_PREFIXES = ("/static/",)
EXEMPT_ASSET_PATTERN = re.compile(r"(?:/favicon\.ico|\.(?:svg|png|jpg|jpeg|gif|webp|PNG))$")


def _matches(path: str, prefixes: tuple[str, ...]) -> bool:
    """True when path equals one of the prefixes or lies beneath it."""
    return any(path == p or path.startswith(f"{p}/") for p in prefixes)


def is_public_path(path: str) -> bool:
    return _matches(path, PUBLIC_PATHS)


def is_auth_only_path(path: str) -> bool:
    return _matches(path, AUTH_ONLY_PATHS)


def is_exempt_path(path: str) -> bool:
    return path in EXEMPT_PATHS or path.startswith(EXEMPT_PREFIXES) or EXEMPT_ASSET_PATTERN.search(path) is not None


class RouteGuardMiddleware:
    """Redirect requests based on whether the session cookie is present."""

    def __init__(self, app: ASGIApp, cookie_name: str) -> None:
        self.app = app
        self._cookie_name = cookie_name

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        path = scope["path"].rstrip("/") or "/"
        if is_exempt_path(path):
            await self.app(scope, receive, send)
            return

        # Any value counts, an empty one included
        has_session = self._cookie_name in HTTPConnection(scope).cookies

        if has_session and is_auth_only_path(path):
            logger.debug("route guard redirect", path=path, to=AFTER_LOGIN_PATH)
            response = RedirectResponse(AFTER_LOGIN_PATH, status_code=303)
            await response(scope, receive, send)
            return

        if is_public_path(path) or has_session:
            await self.app(scope, receive, send)
            return

        logger.debug("route guard redirect", path=path, to=LOGIN_PATH)
        response = RedirectResponse(f"{LOGIN_PATH}?{urlencode({'callbackUrl': path})}", status_code=303)
        await response(scope, receive, send)


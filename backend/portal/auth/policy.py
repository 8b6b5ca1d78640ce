"""Route auth policy helpers for fail-closed authorization.

Each helper wraps a route endpoint and sets the ``AUTH_POLICY_ATTR`` marker
so that startup validation can verify every route has an explicit auth policy.

The route guard only checks that a session cookie exists. These wrappers run
after the authentication backend has opened it, so they are where a forged,
expired, or stale cookie is finally rejected. The rejected cookie is cleared,
otherwise the guard would keep bouncing the caller away from /login.
"""

from __future__ import annotations

import functools
from http import HTTPStatus
from typing import TYPE_CHECKING
from urllib.parse import urlencode

from starlette.authentication import has_required_scope
from starlette.responses import JSONResponse, RedirectResponse
from starlette.routing import Mount, Route

from shared.results import ErrorKind, failure_payload

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from starlette.requests import Request
    from starlette.responses import Response
    from starlette.routing import BaseRoute

    type Endpoint = Callable[..., Awaitable[Response]]

AUTH_POLICY_ATTR = "__auth_policy__"


def _clear_rejected_cookie(request: Request, response: Response) -> Response:
    cookie_name = request.app.state.auth_settings.session_cookie_name
    if cookie_name in request.cookies:
        response.delete_cookie(key=cookie_name, path="/")
    return response


def _login_redirect(request: Request) -> RedirectResponse:
    """Build a relative redirect to the login page preserving the original path.

    Relative URLs avoid Host-header open redirects; Starlette's
    ``requires(redirect=...)`` builds absolute ones from the Host header.
    """
    login_url = f"/login?{urlencode({'callbackUrl': request.url.path})}"
    return RedirectResponse(url=login_url, status_code=303)


def protected_html(endpoint: Endpoint) -> Endpoint:
    """Require authentication; redirect unauthenticated users to login."""

    @functools.wraps(endpoint)
    async def wrapper(request: Request, **kwargs: str) -> Response:
        if not has_required_scope(request, ["authenticated"]):
            return _clear_rejected_cookie(request, _login_redirect(request))
        return await endpoint(request, **kwargs)

    setattr(wrapper, AUTH_POLICY_ATTR, "protected_html")
    return wrapper


def protected_api(endpoint: Endpoint) -> Endpoint:
    """Require authentication; answer 401 with an ``Unauthorized`` failure otherwise."""

    @functools.wraps(endpoint)
    async def wrapper(request: Request, **kwargs: str) -> Response:
        if not has_required_scope(request, ["authenticated"]):
            response = JSONResponse(failure_payload(ErrorKind.UNAUTHORIZED), status_code=HTTPStatus.UNAUTHORIZED)
            return _clear_rejected_cookie(request, response)
        return await endpoint(request, **kwargs)

    setattr(wrapper, AUTH_POLICY_ATTR, "protected_api")
    return wrapper


def public_route(endpoint: Endpoint) -> Endpoint:
    """Mark endpoint as explicitly public (no auth required).

    Returns a thin wrapper so the marker lives on the wrapper, not on the
    original callable, and cannot leak to another route reusing the function.
    """

    @functools.wraps(endpoint)
    async def wrapper(request: Request, **kwargs: str) -> Response:
        return await endpoint(request, **kwargs)

    setattr(wrapper, AUTH_POLICY_ATTR, "public")
    return wrapper


def validate_route_auth_policy(routes: list[BaseRoute]) -> None:
    """Verify every Route has an auth policy marker. Mount routes are exempt.

    Raises RuntimeError listing all unclassified routes if any are found.
    """
    unclassified = [
        f"{route.path} ({route.name or getattr(route.endpoint, '__name__', 'unknown')})"
        for route in routes
        if not isinstance(route, Mount) and isinstance(route, Route) and not hasattr(route.endpoint, AUTH_POLICY_ATTR)
    ]
    if unclassified:
        msg = f"Unclassified routes missing auth policy: {', '.join(unclassified)}"
        raise RuntimeError(msg)

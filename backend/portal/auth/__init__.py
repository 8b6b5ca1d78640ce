"""Portal authentication: route guard, Starlette backend, user model, and route policy."""

from portal.auth.backend import SessionCookieBackend
from portal.auth.middleware import RouteGuardMiddleware
from portal.auth.models import AuthenticatedAccount
from portal.auth.policy import protected_api, protected_html, public_route, validate_route_auth_policy

__all__ = [
    "AuthenticatedAccount",
    "RouteGuardMiddleware",
    "SessionCookieBackend",
    "protected_api",
    "protected_html",
    "public_route",
    "validate_route_auth_policy",
]

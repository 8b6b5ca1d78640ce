"""Starlette AuthenticationBackend that opens the encrypted session cookie."""

from __future__ import annotations

from typing import TYPE_CHECKING

from starlette.authentication import AuthCredentials, AuthenticationBackend

from portal.auth.models import AuthenticatedAccount

if TYPE_CHECKING:
    from starlette.requests import HTTPConnection

    from shared.auth.service import AuthService


class SessionCookieBackend(AuthenticationBackend):
    """Authenticate requests from the session cookie.

    A missing, tampered, or expired cookie leaves the request anonymous;
    route policies decide what anonymous callers may see.
    """

    def __init__(self, auth_service: AuthService, cookie_name: str) -> None:
        self._auth_service = auth_service
        self._cookie_name = cookie_name

    async def authenticate(
        self,
        conn: HTTPConnection,
    ) -> tuple[AuthCredentials, AuthenticatedAccount] | None:
        session_user = self._auth_service.resolve_current_user(conn.cookies.get(self._cookie_name))
        if session_user is None:
            return None
        return AuthCredentials(["authenticated"]), AuthenticatedAccount(session_user)

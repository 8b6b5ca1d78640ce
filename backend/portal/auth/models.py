"""User model for Starlette AuthenticationMiddleware integration."""

from __future__ import annotations

from starlette.authentication import BaseUser

from shared.auth.models import SessionUser


class AuthenticatedAccount(BaseUser):
    """Authenticated account for Starlette's request.user.

    Created by the auth backend from a valid session cookie.
    """

    def __init__(self, session_user: SessionUser) -> None:
        self._session_user = session_user

    @property
    def is_authenticated(self) -> bool:  # pragma: no cover
        return True

    @property
    def display_name(self) -> str:
        return self._session_user.username

    @property
    def identity(self) -> str:  # pragma: no cover
        return self._session_user.user_id

    @property
    def user_id(self) -> str:
        return self._session_user.user_id

    @property
    def email(self) -> str:
        return self._session_user.email

    @property
    def username(self) -> str:
        return self._session_user.username

    def to_session_user(self) -> SessionUser:
        return self._session_user

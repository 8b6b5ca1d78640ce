"""Auth service coordinating registration, login, logout, and identity resolution."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from shared.auth.models import SessionData, SessionUser, SignedIn
from shared.dal.errors import UniqueViolation
from shared.results import ErrorKind, PortalError, Success, returns_result

if TYPE_CHECKING:
    from shared.auth.models import User
    from shared.auth.password import PasswordHasher
    from shared.auth.session_codec import SessionCodec
    from shared.dal.credential_store import CredentialStore
    from shared.results import Result

logger = structlog.get_logger()

PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_BYTES = 72  # bcrypt input limit
REGISTER_HASH_ROUNDS = 12


class AuthService:
    """Move callers between the anonymous and authenticated states.

    The session lives entirely in the sealed cookie token, so login and
    registration hand a fresh token back to the caller and logout only
    needs the caller to drop it.
    """

    def __init__(
        self,
        store: CredentialStore,
        session_codec: SessionCodec,
        *,
        password_hasher: PasswordHasher,
        register_hash_rounds: int = REGISTER_HASH_ROUNDS,
    ) -> None:
        self._store = store
        self._codec = session_codec
        self._hasher = password_hasher
        self._register_hash_rounds = register_hash_rounds

    def resolve_current_user(self, session_token: str | None) -> SessionUser | None:
        """Return the caller's identity, or None when not logged in. Never raises."""
        session = self._codec.open(session_token)
        if session is None or not session.is_logged_in:
            return None
        return SessionUser(user_id=session.user_id, email=session.email, username=session.username)

    @returns_result
    async def login(self, email: str, password: str) -> Result[SignedIn]:
        email = (email or "").strip()
        if not email or not password:
            raise PortalError(ErrorKind.MISSING_CREDENTIALS)

        user = await self._store.get_user_by_email(email)
        # Unknown email and wrong password must be indistinguishable
        if user is None or not await self._hasher.verify(password, user.password_hash):
            logger.info("login failed", email=email)
            raise PortalError(ErrorKind.INVALID_CREDENTIALS)

        logger.info("user logged in", user_id=user.user_id)
        return Success(data=self._sign_in(user))

    @returns_result
    async def register(self, username: str, email: str, password: str) -> Result[SignedIn]:
        username = (username or "").strip()
        email = (email or "").strip()
        if not username or not email or not password:
            raise PortalError(ErrorKind.MISSING_FIELDS)
        _validate_password(password)

        existing = await self._store.find_user_by_email_or_username(email, username)
        if existing is not None:
            raise PortalError(ErrorKind.EMAIL_TAKEN if existing.email == email else ErrorKind.USERNAME_TAKEN)

        password_hash = await self._hasher.hash(password, rounds=self._register_hash_rounds)
        try:
            user = await self._store.create_user(email, username, password_hash)
        except UniqueViolation as e:
            # Lost a race with a concurrent registration for the same email/username
            raise PortalError(ErrorKind.EMAIL_TAKEN if e.field == "email" else ErrorKind.USERNAME_TAKEN) from e

        logger.info("user registered", user_id=user.user_id, username=user.username)
        return Success(data=self._sign_in(user))

    async def logout(self, session_token: str | None) -> Success[None]:
        """End the session. Always succeeds; the cookie is cleared by the caller."""
        session = self._codec.open(session_token)
        if session is not None:
            logger.info("user logged out", user_id=session.user_id)
        return Success()

    def _sign_in(self, user: User) -> SignedIn:
        token = self._codec.seal(
            SessionData(user_id=user.user_id, email=user.email, username=user.username, is_logged_in=True),
        )
        return SignedIn(user=user.to_public(), session_token=token)


def _validate_password(password: str) -> None:
    """Validate password: at least 8 chars, at most 72 UTF-8 bytes (bcrypt limit)."""
    if len(password) < PASSWORD_MIN_LENGTH:
        raise PortalError(ErrorKind.PASSWORD_TOO_SHORT)
    if len(password.encode("utf-8")) > PASSWORD_MAX_BYTES:
        raise PortalError(ErrorKind.PASSWORD_TOO_LONG)

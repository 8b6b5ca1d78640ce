"""Encrypted, authenticated session tokens carried in the session cookie.

Sessions are not stored server-side. The payload (user id, email, username,
logged-in flag) is serialized to JSON and sealed with Fernet (AES-128-CBC +
HMAC-SHA256). The Fernet key is derived from the server secret with HKDF, so
any secret of sufficient length can be configured.

Token format: Fernet token (base64url), which embeds its issue timestamp.
Expiry is enforced on open using that timestamp.
"""

import base64

import structlog
from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.hkdf import HKDF
from pydantic import ValidationError

from shared.auth.models import SessionData

logger = structlog.get_logger()

SESSION_TTL_SECONDS = 60 * 60 * 24 * 7  # 7 days
MIN_SECRET_LENGTH = 32

_HKDF_INFO = b"portal-session-cookie"


def _derive_key(secret: str) -> bytes:
    """Derive a urlsafe-base64 Fernet key from the configured secret."""
    hkdf = HKDF(algorithm=hashes.SHA256(), length=32, salt=None, info=_HKDF_INFO)
    return base64.urlsafe_b64encode(hkdf.derive(secret.encode("utf-8")))


class SessionCodec:
    """Seal and open session payloads bound to a server-held secret."""

    def __init__(self, secret: str, ttl_seconds: int = SESSION_TTL_SECONDS) -> None:
        if len(secret) < MIN_SECRET_LENGTH:
            raise ValueError(f"Session secret must be at least {MIN_SECRET_LENGTH} characters")
        self._fernet = Fernet(_derive_key(secret))
        self._ttl_seconds = ttl_seconds

    @property
    def ttl_seconds(self) -> int:
        return self._ttl_seconds

    def seal(self, payload: SessionData) -> str:
        """Encrypt and authenticate the payload, returning a cookie-safe token."""
        return self._fernet.encrypt(payload.model_dump_json().encode("utf-8")).decode("ascii")

    def open(self, token: str | None) -> SessionData | None:
        """Return the payload, or None when the token is missing, tampered, expired, or malformed."""
        if not token:
            return None
        try:
            plaintext = self._fernet.decrypt(token.encode("ascii"), ttl=self._ttl_seconds)
        except (InvalidToken, UnicodeEncodeError):
            logger.debug("session token rejected")
            return None

        try:
            return SessionData.model_validate_json(plaintext)
        except ValidationError:
            logger.debug("session token malformed payload")
            return None

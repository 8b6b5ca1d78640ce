"""Authentication core: password hashing, session sealing, and login/registration."""

from shared.auth.models import (
    AccountProfile,
    Character,
    DashboardSummary,
    Faction,
    PublicUser,
    SessionData,
    SessionUser,
    SignedIn,
    User,
)
from shared.auth.password import BcryptHasher, PasswordHasher, SimpleHasher, get_hasher
from shared.auth.service import AuthService
from shared.auth.session_codec import SESSION_TTL_SECONDS, SessionCodec
from shared.auth.settings import AuthSettings

__all__ = [
    "SESSION_TTL_SECONDS",
    "AccountProfile",
    "AuthService",
    "AuthSettings",
    "BcryptHasher",
    "Character",
    "DashboardSummary",
    "Faction",
    "PasswordHasher",
    "PublicUser",
    "SessionCodec",
    "SessionData",
    "SessionUser",
    "SignedIn",
    "SimpleHasher",
    "User",
    "get_hasher",
]

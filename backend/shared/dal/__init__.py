"""Data access layer: credential store interface and store errors."""

from shared.dal.credential_store import CredentialStore
from shared.dal.errors import CharacterLimitExceeded, StoreError, UniqueViolation

__all__ = [
    "CharacterLimitExceeded",
    "CredentialStore",
    "StoreError",
    "UniqueViolation",
]

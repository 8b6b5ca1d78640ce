"""Abstract interface for user and character persistence."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from shared.auth.models import Character, User


class CredentialStore(ABC):
    """Abstract interface for user and character persistence.

    Implementations can use SQLite, an in-process dict, MySQL, etc.
    Every method may raise ``StoreError``; services treat it as an
    unrecoverable failure for the current request.
    """

    # -- users --

    @abstractmethod
    async def get_user_by_id(self, user_id: str) -> User | None: ...

    @abstractmethod
    async def get_user_by_email(self, email: str) -> User | None:
        """Exact, case-sensitive match on the stored email."""

    @abstractmethod
    async def find_user_by_email_or_username(self, email: str, username: str) -> User | None:
        """Return any user whose email or username matches, preferring an email match."""

    @abstractmethod
    async def create_user(self, email: str, username: str, password_hash: str) -> User:
        """Insert a user. Raises UniqueViolation("email" | "username") on collision."""

    @abstractmethod
    async def set_secondary_password(self, user_id: str, secondary_password_hash: str | None) -> User | None:
        """Store or clear the secondary password hash. Returns None if the user is gone."""

    # -- characters --

    @abstractmethod
    async def list_characters(self, user_id: str) -> list[Character]:
        """Characters owned by the user, highest level first, then creation order."""

    @abstractmethod
    async def get_character(self, character_id: str) -> Character | None: ...

    @abstractmethod
    async def count_characters(self, user_id: str) -> int: ...

    @abstractmethod
    async def create_character(self, user_id: str, name: str, *, max_characters: int) -> Character:
        """Create a level 1 character with no points.

        The owner's character cap and the case-insensitive per-owner name
        uniqueness are enforced in the same atomic step as the insert.
        Raises CharacterLimitExceeded or UniqueViolation("name").
        """

    @abstractmethod
    async def insert_character(self, character: Character) -> None:
        """Insert a fully specified character (used for seeding)."""

    @abstractmethod
    async def transfer_jpoint(
        self,
        user_id: str,
        from_character_id: str,
        to_character_id: str,
        amount: int,
    ) -> tuple[Character, Character] | None:
        """Move ``amount`` jpoint between two characters owned by ``user_id`` atomically.

        Returns the updated (source, target) pair, or None without writing
        anything when either character is missing, not owned by the user,
        or the source balance is below ``amount``.
        """

    @abstractmethod
    async def delete_character(self, character_id: str, user_id: str) -> Character | None:
        """Delete a character scoped to its owner. Returns the deleted record or None."""

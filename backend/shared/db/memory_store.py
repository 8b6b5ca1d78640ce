"""In-process credential store backed by dicts."""

import asyncio
from datetime import UTC, datetime
from uuid import uuid4

import structlog

from shared.auth.models import Character, User
from shared.dal.credential_store import CredentialStore
from shared.dal.errors import CharacterLimitExceeded, UniqueViolation

logger = structlog.get_logger()


class MemoryCredentialStore(CredentialStore):
    """Dict-backed credential store.

    Stand-in backend for local development and tests: data lives only as long
    as the process. Every mutation runs under an asyncio.Lock and performs all
    of its writes without awaiting in between, so multi-record updates are
    never observable half-applied within the process.
    """

    def __init__(self) -> None:
        self._users: dict[str, User] = {}  # keyed by user_id
        self._characters: dict[str, Character] = {}  # keyed by character_id, insertion ordered
        self._lock = asyncio.Lock()

    # -- users --

    async def get_user_by_id(self, user_id: str) -> User | None:
        return self._users.get(user_id)

    async def get_user_by_email(self, email: str) -> User | None:
        return next((u for u in self._users.values() if u.email == email), None)

    async def find_user_by_email_or_username(self, email: str, username: str) -> User | None:
        by_email = await self.get_user_by_email(email)
        if by_email is not None:
            return by_email
        return next((u for u in self._users.values() if u.username == username), None)

    async def create_user(self, email: str, username: str, password_hash: str) -> User:
        async with self._lock:
            for existing in self._users.values():
                if existing.email == email:
                    raise UniqueViolation("email")
                if existing.username == username:
                    raise UniqueViolation("username")
            user = User(
                user_id=str(uuid4()),
                email=email,
                username=username,
                password_hash=password_hash,
                created_at=datetime.now(tz=UTC),
            )
            self._users[user.user_id] = user
        logger.debug("memory store created user", user_id=user.user_id)
        return user

    async def set_secondary_password(self, user_id: str, secondary_password_hash: str | None) -> User | None:
        async with self._lock:
            user = self._users.get(user_id)
            if user is None:
                return None
            updated = user.model_copy(update={"secondary_password_hash": secondary_password_hash})
            self._users[user_id] = updated
            return updated

    # -- characters --

    def _owned(self, user_id: str) -> list[Character]:
        return [c for c in self._characters.values() if c.user_id == user_id]

    async def list_characters(self, user_id: str) -> list[Character]:
        # sorted() is stable, so equal levels keep creation order
        return sorted(self._owned(user_id), key=lambda c: c.level, reverse=True)

    async def get_character(self, character_id: str) -> Character | None:
        return self._characters.get(character_id)

    async def count_characters(self, user_id: str) -> int:
        return len(self._owned(user_id))

    async def create_character(self, user_id: str, name: str, *, max_characters: int) -> Character:
        async with self._lock:
            owned = self._owned(user_id)
            if len(owned) >= max_characters:
                raise CharacterLimitExceeded(user_id, max_characters)
            lowered = name.lower()
            if any(c.name.lower() == lowered for c in owned):
                raise UniqueViolation("name")
            character = Character(
                character_id=str(uuid4()),
                user_id=user_id,
                name=name,
                created_at=datetime.now(tz=UTC),
            )
            self._characters[character.character_id] = character
            return character

    async def insert_character(self, character: Character) -> None:
        async with self._lock:
            if character.character_id in self._characters:
                raise UniqueViolation("id")
            lowered = character.name.lower()
            if any(c.name.lower() == lowered for c in self._owned(character.user_id)):
                raise UniqueViolation("name")
            self._characters[character.character_id] = character

    async def transfer_jpoint(
        self,
        user_id: str,
        from_character_id: str,
        to_character_id: str,
        amount: int,
    ) -> tuple[Character, Character] | None:
        async with self._lock:
            source = self._characters.get(from_character_id)
            target = self._characters.get(to_character_id)
            if source is None or target is None:
                return None
            if source.user_id != user_id or target.user_id != user_id:
                return None
            if source.jpoint < amount:
                return None
            updated_source = source.model_copy(update={"jpoint": source.jpoint - amount})
            updated_target = target.model_copy(update={"jpoint": target.jpoint + amount})
            self._characters[from_character_id] = updated_source
            self._characters[to_character_id] = updated_target
            return updated_source, updated_target

    async def delete_character(self, character_id: str, user_id: str) -> Character | None:
        async with self._lock:
            character = self._characters.get(character_id)
            if character is None or character.user_id != user_id:
                return None
            del self._characters[character_id]
            return character

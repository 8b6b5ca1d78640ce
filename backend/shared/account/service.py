"""Account service: profile, secondary password, characters, and jpoint transfer.

Every operation takes the caller resolved by ``AuthService.resolve_current_user``.
A missing caller fails with ``Unauthorized`` before the store is touched.
Secondary-password checks and the mutation they guard run inside the same
call, so a successful verification is never persisted on its own.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

import structlog

from shared.auth.models import MAX_CHARACTERS_PER_ACCOUNT, AccountProfile, DashboardSummary
from shared.auth.service import PASSWORD_MAX_BYTES
from shared.dal.errors import CharacterLimitExceeded, UniqueViolation
from shared.results import ErrorKind, PortalError, Success, returns_result

if TYPE_CHECKING:
    from shared.auth.models import Character, SessionUser, User
    from shared.auth.password import PasswordHasher
    from shared.dal.credential_store import CredentialStore
    from shared.results import Result

logger = structlog.get_logger()

SECONDARY_PASSWORD_MIN_LENGTH = 6
CHARACTER_NAME_MIN_LENGTH = 2
CHARACTER_NAME_MAX_LENGTH = 16
CHARACTER_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_]+$")


class AccountService:
    """Authenticated account operations for the dashboard."""

    def __init__(
        self,
        store: CredentialStore,
        *,
        password_hasher: PasswordHasher,
        max_characters: int = MAX_CHARACTERS_PER_ACCOUNT,
    ) -> None:
        self._store = store
        self._hasher = password_hasher
        self._max_characters = max_characters

    # -- profile --

    @returns_result
    async def get_profile(self, caller: SessionUser | None) -> Result[AccountProfile]:
        """Return the profile, or ``Success(data=None)`` when the session outlived its user."""
        user_id = _require_user_id(caller)
        user = await self._store.get_user_by_id(user_id)
        if user is None:
            logger.warning("session references missing user", user_id=user_id)
            return Success(data=None)

        character_count = await self._store.count_characters(user_id)
        return Success(
            data=AccountProfile(
                id=user.user_id,
                email=user.email,
                username=user.username,
                has_secondary_password=user.secondary_password_hash is not None,
                character_count=character_count,
                created_at=user.created_at,
            ),
        )

    @returns_result
    async def get_dashboard(self, caller: SessionUser | None) -> Result[DashboardSummary]:
        """Summary of the caller's characters. A session that outlived its user is ``AccountNotFound``."""
        user = await self._require_user(caller)
        characters = await self._store.list_characters(user.user_id)
        return Success(
            data=DashboardSummary(
                username=user.username,
                character_count=len(characters),
                max_characters=self._max_characters,
                highest_level=max((c.level for c in characters), default=0),
                total_jpoint=sum(c.jpoint for c in characters),
                total_gold=sum(c.gold for c in characters),
                characters=characters,
            ),
        )

    # -- secondary password --

    @returns_result
    async def set_secondary_password(
        self,
        caller: SessionUser | None,
        new_password: str,
        current_password: str | None = None,
    ) -> Result[None]:
        user = await self._require_user(caller)

        # Changing an existing secret requires re-authentication; setting the first one does not
        if user.secondary_password_hash is not None:
            if not current_password:
                raise PortalError(ErrorKind.SECONDARY_PASSWORD_REQUIRED)
            if not await self._hasher.verify(current_password, user.secondary_password_hash):
                raise PortalError(ErrorKind.SECONDARY_PASSWORD_INCORRECT)

        if len(new_password) < SECONDARY_PASSWORD_MIN_LENGTH:
            raise PortalError(ErrorKind.SECONDARY_PASSWORD_TOO_SHORT)
        if len(new_password.encode("utf-8")) > PASSWORD_MAX_BYTES:
            raise PortalError(ErrorKind.PASSWORD_TOO_LONG)

        hashed = await self._hasher.hash(new_password)
        if await self._store.set_secondary_password(user.user_id, hashed) is None:
            raise PortalError(ErrorKind.ACCOUNT_NOT_FOUND)

        logger.info("secondary password set", user_id=user.user_id, replaced=user.secondary_password_hash is not None)
        return Success(message="Secondary password updated.")

    @returns_result
    async def remove_secondary_password(self, caller: SessionUser | None, current_password: str) -> Result[None]:
        user = await self._require_user(caller)
        if user.secondary_password_hash is None:
            raise PortalError(ErrorKind.NO_SECONDARY_PASSWORD_SET)
        if not current_password or not await self._hasher.verify(current_password, user.secondary_password_hash):
            raise PortalError(ErrorKind.SECONDARY_PASSWORD_INCORRECT)

        if await self._store.set_secondary_password(user.user_id, None) is None:
            raise PortalError(ErrorKind.ACCOUNT_NOT_FOUND)

        logger.info("secondary password removed", user_id=user.user_id)
        return Success(message="Secondary password removed.")

    # -- characters --

    @returns_result
    async def list_characters(self, caller: SessionUser | None) -> Result[list[Character]]:
        user_id = _require_user_id(caller)
        return Success(data=await self._store.list_characters(user_id))

    @returns_result
    async def create_character(self, caller: SessionUser | None, name: str) -> Result[Character]:
        user_id = _require_user_id(caller)
        name = _validate_character_name(name)

        # Pre-checks give precise errors; the store re-checks both atomically with the insert
        if await self._store.count_characters(user_id) >= self._max_characters:
            raise PortalError(ErrorKind.CHARACTER_LIMIT_REACHED)
        lowered = name.lower()
        if any(c.name.lower() == lowered for c in await self._store.list_characters(user_id)):
            raise PortalError(ErrorKind.DUPLICATE_NAME)

        try:
            character = await self._store.create_character(user_id, name, max_characters=self._max_characters)
        except CharacterLimitExceeded as e:
            raise PortalError(ErrorKind.CHARACTER_LIMIT_REACHED) from e
        except UniqueViolation as e:
            raise PortalError(ErrorKind.DUPLICATE_NAME) from e

        logger.info("character created", user_id=user_id, character_id=character.character_id, name=name)
        return Success(data=character, message=f"Character {character.name} created.")

    @returns_result
    async def delete_character(
        self,
        caller: SessionUser | None,
        character_id: str,
        secondary_password: str | None = None,
    ) -> Result[None]:
        user = await self._require_user(caller)

        if user.secondary_password_hash is not None:
            if not secondary_password:
                raise PortalError(ErrorKind.SECONDARY_PASSWORD_REQUIRED)
            if not await self._hasher.verify(secondary_password, user.secondary_password_hash):
                raise PortalError(ErrorKind.SECONDARY_PASSWORD_INCORRECT)

        deleted = await self._store.delete_character(character_id, user.user_id)
        if deleted is None:
            raise PortalError(ErrorKind.CHARACTER_NOT_FOUND)

        logger.info("character deleted", user_id=user.user_id, character_id=character_id)
        return Success(message=f"Character {deleted.name} deleted.")

    # -- jpoint --

    @returns_result
    async def transfer_jpoint(
        self,
        caller: SessionUser | None,
        from_character_id: str,
        to_character_id: str,
        amount: int,
    ) -> Result[None]:
        user_id = _require_user_id(caller)
        if amount <= 0:
            raise PortalError(ErrorKind.INVALID_AMOUNT)
        if from_character_id == to_character_id:
            raise PortalError(ErrorKind.SAME_CHARACTER)

        source = await self._store.get_character(from_character_id)
        target = await self._store.get_character(to_character_id)
        # Foreign characters look exactly like missing ones
        if source is None or source.user_id != user_id or target is None or target.user_id != user_id:
            raise PortalError(ErrorKind.CHARACTER_NOT_FOUND)
        if source.jpoint < amount:
            raise PortalError(ErrorKind.INSUFFICIENT_BALANCE)

        moved = await self._store.transfer_jpoint(user_id, from_character_id, to_character_id, amount)
        if moved is None:
            # State changed between the read and the transaction; re-read to report why
            raise PortalError(await self._transfer_rejection(user_id, from_character_id, to_character_id, amount))
        updated_source, updated_target = moved

        logger.info(
            "jpoint transferred",
            user_id=user_id,
            from_character_id=from_character_id,
            to_character_id=to_character_id,
            amount=amount,
        )
        return Success(
            message=f"Transferred {amount:,} JPoint from {updated_source.name} to {updated_target.name}.",
        )

    # -- private helpers --

    async def _require_user(self, caller: SessionUser | None) -> User:
        user = await self._store.get_user_by_id(_require_user_id(caller))
        if user is None:
            raise PortalError(ErrorKind.ACCOUNT_NOT_FOUND)
        return user

    async def _transfer_rejection(
        self,
        user_id: str,
        from_character_id: str,
        to_character_id: str,
        amount: int,
    ) -> ErrorKind:
        source = await self._store.get_character(from_character_id)
        target = await self._store.get_character(to_character_id)
        if source is None or source.user_id != user_id or target is None or target.user_id != user_id:
            return ErrorKind.CHARACTER_NOT_FOUND
        if source.jpoint < amount:
            return ErrorKind.INSUFFICIENT_BALANCE
        return ErrorKind.STORE_FAILURE  # pragma: no cover - guard failed but state looks valid again


def _require_user_id(caller: SessionUser | None) -> str:
    if caller is None:
        raise PortalError(ErrorKind.UNAUTHORIZED)
    return caller.user_id


def _validate_character_name(name: str) -> str:
    """Validate and return the trimmed name: 2-16 chars, letters, digits, underscores."""
    name = (name or "").strip()
    if len(name) < CHARACTER_NAME_MIN_LENGTH or len(name) > CHARACTER_NAME_MAX_LENGTH:
        raise PortalError(ErrorKind.NAME_LENGTH_INVALID)
    if not CHARACTER_NAME_PATTERN.match(name):
        raise PortalError(ErrorKind.NAME_CHARS_INVALID)
    return name

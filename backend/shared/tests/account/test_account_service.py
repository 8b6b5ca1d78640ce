"""Tests for AccountService against both credential stores."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from shared.account.service import AccountService
from shared.auth.models import MAX_CHARACTERS_PER_ACCOUNT, Character, Faction, SessionUser
from shared.dal.errors import CharacterLimitExceeded, StoreError, UniqueViolation
from shared.results import ErrorKind, Failure, Success


@pytest.fixture
def account_service(store, hasher):
    return AccountService(store, password_hasher=hasher)


async def _make_user(store, hasher, username="alice") -> SessionUser:
    user = await store.create_user(f"{username}@test.com", username, await hasher.hash("password123"))
    return SessionUser(user_id=user.user_id, email=user.email, username=user.username)


async def _add_character(store, caller: SessionUser, name: str, *, level: int = 1, jpoint: int = 0) -> Character:
    character = Character(
        character_id=str(uuid4()),
        user_id=caller.user_id,
        name=name,
        level=level,
        jpoint=jpoint,
        created_at=datetime.now(tz=UTC),
    )
    await store.insert_character(character)
    return character


@pytest.fixture
async def alice(store, hasher):
    return await _make_user(store, hasher, "alice")


@pytest.fixture
async def bob(store, hasher):
    return await _make_user(store, hasher, "bob")


class TestUnauthorized:
    @pytest.mark.parametrize(
        ("operation", "kwargs"),
        [
            ("get_profile", {}),
            ("get_dashboard", {}),
            ("set_secondary_password", {"new_password": "123456"}),
            ("remove_secondary_password", {"current_password": "123456"}),
            ("list_characters", {}),
            ("create_character", {"name": "IronMonk"}),
            ("delete_character", {"character_id": "c1"}),
            ("transfer_jpoint", {"from_character_id": "a", "to_character_id": "b", "amount": 1}),
        ],
    )
    async def test_no_caller_fails_before_touching_store(self, hasher, operation, kwargs):
        store = AsyncMock()
        service = AccountService(store, password_hasher=hasher)

        result = await getattr(service, operation)(None, **kwargs)

        assert result == Failure.of(ErrorKind.UNAUTHORIZED)
        assert store.mock_calls == []


class TestProfile:
    async def test_profile_reflects_account(self, account_service, store, alice):
        await _add_character(store, alice, "IronMonk")

        result = await account_service.get_profile(alice)

        assert isinstance(result, Success)
        profile = result.data
        assert profile.id == alice.user_id
        assert profile.username == "alice"
        assert profile.email == "alice@test.com"
        assert profile.character_count == 1
        assert profile.has_secondary_password is False

    async def test_stale_session_returns_none(self, account_service):
        ghost = SessionUser(user_id="deleted-user", email="ghost@test.com", username="ghost")
        assert await account_service.get_profile(ghost) == Success(data=None)

    async def test_store_failure_is_reported(self, hasher, alice):
        store = AsyncMock()
        store.get_user_by_id.side_effect = StoreError("database is locked")
        service = AccountService(store, password_hasher=hasher)

        assert await service.get_profile(alice) == Failure.of(ErrorKind.STORE_FAILURE)


class TestDashboard:
    async def test_summary_totals(self, account_service, store, alice):
        await _add_character(store, alice, "ShadowBlade", level=85, jpoint=12500)
        await _add_character(store, alice, "IronMonk", level=72, jpoint=8200)

        summary = (await account_service.get_dashboard(alice)).data

        assert summary.username == "alice"
        assert summary.character_count == 2
        assert summary.max_characters == MAX_CHARACTERS_PER_ACCOUNT
        assert summary.highest_level == 85
        assert summary.total_jpoint == 20700
        assert summary.total_gold == 0
        assert [c.name for c in summary.characters] == ["ShadowBlade", "IronMonk"]

    async def test_stale_session_is_account_not_found(self, account_service):
        ghost = SessionUser(user_id="deleted-user", email="ghost@test.com", username="ghost")
        assert await account_service.get_dashboard(ghost) == Failure.of(ErrorKind.ACCOUNT_NOT_FOUND)

    async def test_empty_account(self, account_service, alice):
        summary = (await account_service.get_dashboard(alice)).data
        assert summary.character_count == 0
        assert summary.highest_level == 0
        assert summary.characters == []


class TestSecondaryPassword:
    async def test_first_set_needs_no_current_password(self, account_service, alice):
        result = await account_service.set_secondary_password(alice, new_password="123456")

        assert result == Success(message="Secondary password updated.")
        assert (await account_service.get_profile(alice)).data.has_secondary_password is True

    async def test_too_short(self, account_service, alice):
        result = await account_service.set_secondary_password(alice, new_password="12345")
        assert result == Failure.of(ErrorKind.SECONDARY_PASSWORD_TOO_SHORT)

    async def test_too_long(self, account_service, alice):
        result = await account_service.set_secondary_password(alice, new_password="x" * 73)
        assert result == Failure.of(ErrorKind.PASSWORD_TOO_LONG)

    async def test_change_requires_current(self, account_service, alice):
        await account_service.set_secondary_password(alice, new_password="123456")

        missing = await account_service.set_secondary_password(alice, new_password="654321")
        wrong = await account_service.set_secondary_password(alice, new_password="654321", current_password="000000")

        assert missing == Failure.of(ErrorKind.SECONDARY_PASSWORD_REQUIRED)
        assert wrong == Failure.of(ErrorKind.SECONDARY_PASSWORD_INCORRECT)

    async def test_change_with_current(self, account_service, store, hasher, alice):
        await account_service.set_secondary_password(alice, new_password="123456")

        result = await account_service.set_secondary_password(alice, new_password="654321", current_password="123456")

        assert isinstance(result, Success)
        user = await store.get_user_by_id(alice.user_id)
        assert await hasher.verify("654321", user.secondary_password_hash)

    async def test_failed_verification_leaves_secret_unchanged(self, account_service, store, hasher, alice):
        await account_service.set_secondary_password(alice, new_password="123456")

        await account_service.set_secondary_password(alice, new_password="654321", current_password="wrong!")

        user = await store.get_user_by_id(alice.user_id)
        assert await hasher.verify("123456", user.secondary_password_hash)

    async def test_remove(self, account_service, alice):
        await account_service.set_secondary_password(alice, new_password="123456")

        result = await account_service.remove_secondary_password(alice, current_password="123456")

        assert result == Success(message="Secondary password removed.")
        assert (await account_service.get_profile(alice)).data.has_secondary_password is False

    async def test_remove_when_none_set(self, account_service, alice):
        result = await account_service.remove_secondary_password(alice, current_password="123456")
        assert result == Failure.of(ErrorKind.NO_SECONDARY_PASSWORD_SET)

    @pytest.mark.parametrize("current", ["", "wrong!"])
    async def test_remove_with_wrong_password(self, account_service, alice, current):
        await account_service.set_secondary_password(alice, new_password="123456")

        result = await account_service.remove_secondary_password(alice, current_password=current)

        assert result == Failure.of(ErrorKind.SECONDARY_PASSWORD_INCORRECT)
        assert (await account_service.get_profile(alice)).data.has_secondary_password is True

    async def test_stale_session(self, account_service):
        ghost = SessionUser(user_id="deleted-user", email="ghost@test.com", username="ghost")
        result = await account_service.set_secondary_password(ghost, new_password="123456")
        assert result == Failure.of(ErrorKind.ACCOUNT_NOT_FOUND)

    async def test_secret_not_logged(self, account_service, alice, caplog):
        with caplog.at_level(logging.INFO):
            await account_service.set_secondary_password(alice, new_password="topsecret9")

        assert "secondary password set" in caplog.text
        assert "topsecret9" not in caplog.text


class TestCreateCharacter:
    async def test_creates_with_defaults(self, account_service, alice):
        result = await account_service.create_character(alice, name="IronMonk")

        assert isinstance(result, Success)
        character = result.data
        assert character.name == "IronMonk"
        assert character.user_id == alice.user_id
        assert (character.faction, character.level, character.jpoint, character.gold) == (Faction.NONE, 1, 0, 0)
        assert result.message == "Character IronMonk created."

    async def test_trims_name(self, account_service, alice):
        result = await account_service.create_character(alice, name="  IronMonk  ")
        assert result.data.name == "IronMonk"

    @pytest.mark.parametrize(("name", "ok"), [("A", False), ("AA", True), ("A" * 16, True), ("A" * 17, False)])
    async def test_length_boundaries(self, account_service, alice, name, ok):
        result = await account_service.create_character(alice, name=name)
        if ok:
            assert isinstance(result, Success)
        else:
            assert result == Failure.of(ErrorKind.NAME_LENGTH_INVALID)

    @pytest.mark.parametrize("name", ["Iron Monk", "Iron-Monk", "Iron.Monk", "Ирон"])
    async def test_rejects_disallowed_characters(self, account_service, alice, name):
        result = await account_service.create_character(alice, name=name)
        assert result == Failure.of(ErrorKind.NAME_CHARS_INVALID)

    async def test_allows_underscores_and_digits(self, account_service, alice):
        assert isinstance(await account_service.create_character(alice, name="Iron_Monk_99"), Success)

    async def test_duplicate_name_case_insensitive(self, account_service, alice):
        await account_service.create_character(alice, name="IronMonk")
        result = await account_service.create_character(alice, name="ironmonk")
        assert result == Failure.of(ErrorKind.DUPLICATE_NAME)

    async def test_same_name_allowed_across_owners(self, account_service, alice, bob):
        assert isinstance(await account_service.create_character(alice, name="IronMonk"), Success)
        assert isinstance(await account_service.create_character(bob, name="IronMonk"), Success)

    async def test_eleventh_character_rejected(self, account_service, store, alice):
        for i in range(MAX_CHARACTERS_PER_ACCOUNT):
            assert isinstance(await account_service.create_character(alice, name=f"Hero{i}"), Success)

        result = await account_service.create_character(alice, name="OneTooMany")

        assert result == Failure.of(ErrorKind.CHARACTER_LIMIT_REACHED)
        assert await store.count_characters(alice.user_id) == MAX_CHARACTERS_PER_ACCOUNT

    async def test_store_enforced_limit_maps_to_limit_reached(self, hasher, alice):
        store = AsyncMock()
        store.count_characters.return_value = 0
        store.list_characters.return_value = []
        store.create_character.side_effect = CharacterLimitExceeded(alice.user_id, MAX_CHARACTERS_PER_ACCOUNT)
        service = AccountService(store, password_hasher=hasher)

        assert await service.create_character(alice, name="Racer") == Failure.of(ErrorKind.CHARACTER_LIMIT_REACHED)

    async def test_store_enforced_uniqueness_maps_to_duplicate(self, hasher, alice):
        store = AsyncMock()
        store.count_characters.return_value = 0
        store.list_characters.return_value = []
        store.create_character.side_effect = UniqueViolation("name")
        service = AccountService(store, password_hasher=hasher)

        assert await service.create_character(alice, name="Racer") == Failure.of(ErrorKind.DUPLICATE_NAME)


class TestListCharacters:
    async def test_lists_only_own_characters_by_level(self, account_service, store, alice, bob):
        await _add_character(store, alice, "Low", level=10)
        await _add_character(store, alice, "High", level=90)
        await _add_character(store, alice, "Mid", level=50)
        await _add_character(store, bob, "Other", level=99)

        result = await account_service.list_characters(alice)

        assert [c.name for c in result.data] == ["High", "Mid", "Low"]


class TestDeleteCharacter:
    async def test_deletes_without_secondary_password(self, account_service, store, alice):
        character = await _add_character(store, alice, "IronMonk")

        result = await account_service.delete_character(alice, character_id=character.character_id)

        assert result == Success(message="Character IronMonk deleted.")
        assert await store.get_character(character.character_id) is None

    async def test_secondary_password_gates_deletion(self, account_service, store, alice):
        character = await _add_character(store, alice, "IronMonk")
        await account_service.set_secondary_password(alice, new_password="123456")

        missing = await account_service.delete_character(alice, character_id=character.character_id)
        wrong = await account_service.delete_character(
            alice,
            character_id=character.character_id,
            secondary_password="000000",
        )

        assert missing == Failure.of(ErrorKind.SECONDARY_PASSWORD_REQUIRED)
        assert wrong == Failure.of(ErrorKind.SECONDARY_PASSWORD_INCORRECT)
        assert await store.get_character(character.character_id) is not None

        ok = await account_service.delete_character(
            alice,
            character_id=character.character_id,
            secondary_password="123456",
        )
        assert isinstance(ok, Success)

    async def test_foreign_and_missing_are_indistinguishable(self, account_service, store, alice, bob):
        foreign = await _add_character(store, bob, "BobsHero")

        not_owned = await account_service.delete_character(alice, character_id=foreign.character_id)
        missing = await account_service.delete_character(alice, character_id="no-such-character")

        assert not_owned == missing == Failure.of(ErrorKind.CHARACTER_NOT_FOUND)
        assert await store.get_character(foreign.character_id) is not None


class TestTransferJPoint:
    async def test_moves_exact_amount(self, account_service, store, alice):
        source = await _add_character(store, alice, "ShadowBlade", jpoint=12500)
        target = await _add_character(store, alice, "IronMonk", jpoint=8200)

        result = await account_service.transfer_jpoint(
            alice,
            from_character_id=source.character_id,
            to_character_id=target.character_id,
            amount=2500,
        )

        assert result == Success(message="Transferred 2,500 JPoint from ShadowBlade to IronMonk.")
        assert (await store.get_character(source.character_id)).jpoint == 10000
        assert (await store.get_character(target.character_id)).jpoint == 10700

    async def test_entire_balance(self, account_service, store, alice):
        source = await _add_character(store, alice, "Source", jpoint=50)
        target = await _add_character(store, alice, "Target")

        result = await account_service.transfer_jpoint(
            alice,
            from_character_id=source.character_id,
            to_character_id=target.character_id,
            amount=50,
        )

        assert isinstance(result, Success)
        assert (await store.get_character(source.character_id)).jpoint == 0

    async def test_insufficient_balance(self, account_service, store, alice):
        source = await _add_character(store, alice, "Source", jpoint=50)
        target = await _add_character(store, alice, "Target")

        result = await account_service.transfer_jpoint(
            alice,
            from_character_id=source.character_id,
            to_character_id=target.character_id,
            amount=100,
        )

        assert result == Failure.of(ErrorKind.INSUFFICIENT_BALANCE)
        assert (await store.get_character(source.character_id)).jpoint == 50
        assert (await store.get_character(target.character_id)).jpoint == 0

    @pytest.mark.parametrize("amount", [0, -1])
    async def test_non_positive_amount(self, account_service, store, alice, amount):
        source = await _add_character(store, alice, "Source", jpoint=50)
        target = await _add_character(store, alice, "Target")

        result = await account_service.transfer_jpoint(
            alice,
            from_character_id=source.character_id,
            to_character_id=target.character_id,
            amount=amount,
        )

        assert result == Failure.of(ErrorKind.INVALID_AMOUNT)

    @pytest.mark.parametrize("amount", [1, 50, 1_000_000])
    async def test_same_character_always_rejected(self, account_service, store, alice, amount):
        source = await _add_character(store, alice, "Source", jpoint=50)

        result = await account_service.transfer_jpoint(
            alice,
            from_character_id=source.character_id,
            to_character_id=source.character_id,
            amount=amount,
        )

        assert result == Failure.of(ErrorKind.SAME_CHARACTER)

    async def test_foreign_character_looks_missing(self, account_service, store, alice, bob):
        mine = await _add_character(store, alice, "Mine", jpoint=100)
        theirs = await _add_character(store, bob, "Theirs", jpoint=100)

        to_foreign = await account_service.transfer_jpoint(
            alice,
            from_character_id=mine.character_id,
            to_character_id=theirs.character_id,
            amount=10,
        )
        from_foreign = await account_service.transfer_jpoint(
            alice,
            from_character_id=theirs.character_id,
            to_character_id=mine.character_id,
            amount=10,
        )
        to_missing = await account_service.transfer_jpoint(
            alice,
            from_character_id=mine.character_id,
            to_character_id="no-such-character",
            amount=10,
        )

        assert to_foreign == from_foreign == to_missing == Failure.of(ErrorKind.CHARACTER_NOT_FOUND)
        assert (await store.get_character(mine.character_id)).jpoint == 100
        assert (await store.get_character(theirs.character_id)).jpoint == 100

    async def test_total_is_conserved(self, account_service, store, alice):
        source = await _add_character(store, alice, "Source", jpoint=1000)
        target = await _add_character(store, alice, "Target", jpoint=250)

        for amount in (1, 99, 400):
            await account_service.transfer_jpoint(
                alice,
                from_character_id=source.character_id,
                to_character_id=target.character_id,
                amount=amount,
            )

        after = [(await store.get_character(c.character_id)).jpoint for c in (source, target)]
        assert after == [500, 750]
        assert sum(after) == 1250

    async def test_balance_drained_between_check_and_commit(self, hasher, alice):
        now = datetime.now(tz=UTC)
        source = Character(character_id="s", user_id=alice.user_id, name="Source", jpoint=50, created_at=now)
        drained = source.model_copy(update={"jpoint": 0})
        target = Character(character_id="t", user_id=alice.user_id, name="Target", created_at=now)
        store = AsyncMock()
        store.get_character.side_effect = [source, target, drained, target]
        store.transfer_jpoint.return_value = None
        service = AccountService(store, password_hasher=hasher)

        result = await service.transfer_jpoint(alice, from_character_id="s", to_character_id="t", amount=50)

        assert result == Failure.of(ErrorKind.INSUFFICIENT_BALANCE)

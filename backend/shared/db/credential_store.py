"""SQLite-backed credential store."""

from __future__ import annotations

import asyncio
import contextlib
import sqlite3
from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import uuid4

from shared.auth.models import Character, Faction, User
from shared.dal.credential_store import CredentialStore
from shared.dal.errors import CharacterLimitExceeded, StoreError, UniqueViolation

if TYPE_CHECKING:
    from collections.abc import Iterator

    from shared.db.connection import Database

_USER_COLUMNS = "id, email, username, password_hash, secondary_password_hash, created_at"
_CHARACTER_COLUMNS = "id, user_id, name, faction, level, jpoint, gold, created_at"

# sqlite3 reports "UNIQUE constraint failed: <table>.<column>[, ...]"
_UNIQUE_FIELDS = (
    ("users.email", "email"),
    ("users.username", "username"),
    ("characters.name", "name"),
    ("characters.id", "id"),
    ("users.id", "id"),
)


def _user_from_row(row: sqlite3.Row) -> User:
    return User(
        user_id=row["id"],
        email=row["email"],
        username=row["username"],
        password_hash=row["password_hash"],
        secondary_password_hash=row["secondary_password_hash"],
        created_at=row["created_at"],
    )


def _character_from_row(row: sqlite3.Row) -> Character:
    return Character(
        character_id=row["id"],
        user_id=row["user_id"],
        name=row["name"],
        faction=Faction(row["faction"]),
        level=row["level"],
        jpoint=row["jpoint"],
        gold=row["gold"],
        created_at=row["created_at"],
    )


@contextlib.contextmanager
def _translate_errors() -> Iterator[None]:
    """Map sqlite3 exceptions to store exceptions."""
    try:
        yield
    except sqlite3.IntegrityError as exc:
        error_msg = str(exc).lower()
        for marker, field in _UNIQUE_FIELDS:
            if marker in error_msg:
                raise UniqueViolation(field) from exc
        raise StoreError(str(exc)) from exc
    except sqlite3.Error as exc:
        raise StoreError(str(exc)) from exc


class SqliteCredentialStore(CredentialStore):
    """SQLite implementation of CredentialStore.

    Writes run under an asyncio lock inside explicit ``BEGIN IMMEDIATE``
    transactions, so multi-row operations (character creation with its cap
    check, jpoint transfer) commit or roll back as one unit. Uniqueness is
    enforced by database indexes and mapped to UniqueViolation.
    """

    def __init__(self, db: Database) -> None:
        self._db = db
        self._lock = asyncio.Lock()

    @contextlib.contextmanager
    def _write_transaction(self) -> Iterator[sqlite3.Connection]:
        conn = self._db.connection
        with _translate_errors():
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except BaseException:
                conn.rollback()
                raise
            conn.commit()

    def _fetch_one(self, sql: str, params: tuple) -> sqlite3.Row | None:
        with _translate_errors():
            return self._db.connection.execute(sql, params).fetchone()

    # -- users --

    async def get_user_by_id(self, user_id: str) -> User | None:
        row = self._fetch_one(f"SELECT {_USER_COLUMNS} FROM users WHERE id = ?", (user_id,))  # noqa: S608
        return _user_from_row(row) if row is not None else None

    async def get_user_by_email(self, email: str) -> User | None:
        row = self._fetch_one(f"SELECT {_USER_COLUMNS} FROM users WHERE email = ?", (email,))  # noqa: S608
        return _user_from_row(row) if row is not None else None

    async def find_user_by_email_or_username(self, email: str, username: str) -> User | None:
        row = self._fetch_one(
            f"SELECT {_USER_COLUMNS} FROM users WHERE email = ? OR username = ? "  # noqa: S608
            "ORDER BY (email = ?) DESC LIMIT 1",
            (email, username, email),
        )
        return _user_from_row(row) if row is not None else None

    async def create_user(self, email: str, username: str, password_hash: str) -> User:
        user = User(
            user_id=str(uuid4()),
            email=email,
            username=username,
            password_hash=password_hash,
            created_at=datetime.now(tz=UTC),
        )
        async with self._lock:
            with self._write_transaction() as conn:
                conn.execute(
                    f"INSERT INTO users ({_USER_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?)",  # noqa: S608
                    (user.user_id, user.email, user.username, user.password_hash, None, user.created_at.isoformat()),
                )
        return user

    async def set_secondary_password(self, user_id: str, secondary_password_hash: str | None) -> User | None:
        async with self._lock:
            with self._write_transaction() as conn:
                cursor = conn.execute(
                    "UPDATE users SET secondary_password_hash = ? WHERE id = ?",
                    (secondary_password_hash, user_id),
                )
                if cursor.rowcount == 0:
                    return None
        return await self.get_user_by_id(user_id)

    # -- characters --

    async def list_characters(self, user_id: str) -> list[Character]:
        with _translate_errors():
            rows = self._db.connection.execute(
                f"SELECT {_CHARACTER_COLUMNS} FROM characters WHERE user_id = ? "  # noqa: S608
                "ORDER BY level DESC, created_at ASC, rowid ASC",
                (user_id,),
            ).fetchall()
        return [_character_from_row(row) for row in rows]

    async def get_character(self, character_id: str) -> Character | None:
        row = self._fetch_one(
            f"SELECT {_CHARACTER_COLUMNS} FROM characters WHERE id = ?",  # noqa: S608
            (character_id,),
        )
        return _character_from_row(row) if row is not None else None

    async def count_characters(self, user_id: str) -> int:
        row = self._fetch_one("SELECT COUNT(*) AS n FROM characters WHERE user_id = ?", (user_id,))
        return row["n"] if row is not None else 0

    async def create_character(self, user_id: str, name: str, *, max_characters: int) -> Character:
        character = Character(
            character_id=str(uuid4()),
            user_id=user_id,
            name=name,
            created_at=datetime.now(tz=UTC),
        )
        async with self._lock:
            with self._write_transaction() as conn:
                count = conn.execute("SELECT COUNT(*) FROM characters WHERE user_id = ?", (user_id,)).fetchone()[0]
                if count >= max_characters:
                    raise CharacterLimitExceeded(user_id, max_characters)
                self._insert_character(conn, character)
        return character

    async def insert_character(self, character: Character) -> None:
        async with self._lock:
            with self._write_transaction() as conn:
                self._insert_character(conn, character)

    @staticmethod
    def _insert_character(conn: sqlite3.Connection, character: Character) -> None:
        conn.execute(
            f"INSERT INTO characters ({_CHARACTER_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",  # noqa: S608
            (
                character.character_id,
                character.user_id,
                character.name,
                character.faction.value,
                character.level,
                character.jpoint,
                character.gold,
                character.created_at.isoformat(),
            ),
        )

    async def transfer_jpoint(
        self,
        user_id: str,
        from_character_id: str,
        to_character_id: str,
        amount: int,
    ) -> tuple[Character, Character] | None:
        async with self._lock:
            with self._write_transaction() as conn:
                source = conn.execute(
                    "SELECT jpoint FROM characters WHERE id = ? AND user_id = ?",
                    (from_character_id, user_id),
                ).fetchone()
                target = conn.execute(
                    "SELECT jpoint FROM characters WHERE id = ? AND user_id = ?",
                    (to_character_id, user_id),
                ).fetchone()
                if source is None or target is None or source["jpoint"] < amount:
                    return None
                conn.execute(
                    "UPDATE characters SET jpoint = jpoint - ? WHERE id = ? AND user_id = ?",
                    (amount, from_character_id, user_id),
                )
                conn.execute(
                    "UPDATE characters SET jpoint = jpoint + ? WHERE id = ? AND user_id = ?",
                    (amount, to_character_id, user_id),
                )
                select_sql = f"SELECT {_CHARACTER_COLUMNS} FROM characters WHERE id = ?"  # noqa: S608
                updated_source = conn.execute(select_sql, (from_character_id,)).fetchone()
                updated_target = conn.execute(select_sql, (to_character_id,)).fetchone()
        return _character_from_row(updated_source), _character_from_row(updated_target)

    async def delete_character(self, character_id: str, user_id: str) -> Character | None:
        async with self._lock:
            with self._write_transaction() as conn:
                row = conn.execute(
                    f"SELECT {_CHARACTER_COLUMNS} FROM characters WHERE id = ? AND user_id = ?",  # noqa: S608
                    (character_id, user_id),
                ).fetchone()
                if row is None:
                    return None
                conn.execute("DELETE FROM characters WHERE id = ? AND user_id = ?", (character_id, user_id))
        return _character_from_row(row)

"""SQLite database connection and schema management."""

import os
import sqlite3
from pathlib import Path

import structlog

logger = structlog.get_logger()

_DB_FILE_PERMISSIONS = 0o600

# Email is unique as stored (case-sensitive); character names are unique per
# owner regardless of case. The character cap is enforced by the store inside
# a write transaction since SQLite has no portable count constraint.
_SCHEMA_SQL = """\
CREATE TABLE IF NOT EXISTS users (
    id TEXT PRIMARY KEY,
    email TEXT NOT NULL,
    username TEXT NOT NULL,
    password_hash TEXT NOT NULL,
    secondary_password_hash TEXT,
    created_at TEXT NOT NULL
);

CREATE UNIQUE INDEX IF NOT EXISTS idx_users_email ON users (email);

CREATE UNIQUE INDEX IF NOT EXISTS idx_users_username ON users (username);

CREATE TABLE IF NOT EXISTS characters (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL REFERENCES users (id) ON DELETE CASCADE,
    name TEXT NOT NULL,
    faction TEXT NOT NULL DEFAULT 'None',
    level INTEGER NOT NULL DEFAULT 1 CHECK (level >= 1),
    jpoint INTEGER NOT NULL DEFAULT 0 CHECK (jpoint >= 0),
    gold INTEGER NOT NULL DEFAULT 0 CHECK (gold >= 0),
    created_at TEXT NOT NULL
);

CREATE UNIQUE INDEX IF NOT EXISTS idx_characters_owner_name
    ON characters (user_id, name COLLATE NOCASE);

CREATE INDEX IF NOT EXISTS idx_characters_user_id ON characters (user_id);
"""


class Database:
    """SQLite database wrapper with schema management."""

    def __init__(self, path: str | Path) -> None:
        self._path = str(path)
        self._conn: sqlite3.Connection | None = None

    @property
    def connection(self) -> sqlite3.Connection:
        """Return the active connection or raise if disconnected."""
        if self._conn is None:
            raise RuntimeError("Database is not connected")
        return self._conn

    def connect(self) -> None:
        """Open the database, apply pragmas, create schema, and harden file permissions."""
        parent = Path(self._path).parent
        parent.mkdir(parents=True, exist_ok=True)

        self._conn = sqlite3.connect(self._path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.execute("PRAGMA foreign_keys=ON")
        self._conn.execute("PRAGMA busy_timeout=5000")
        self._conn.executescript(_SCHEMA_SQL)

        self._harden_permissions()
        logger.info("database connected", path=self._path)

    def close(self) -> None:
        """Close the database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def _harden_permissions(self) -> None:
        """Set owner-only permissions on the DB file and its WAL/SHM siblings (POSIX, best effort)."""
        if os.name != "posix":  # pragma: no cover
            return
        for suffix in ("", "-wal", "-shm"):
            p = Path(self._path + suffix)
            if p.exists():
                try:
                    p.chmod(_DB_FILE_PERMISSIONS)
                except OSError:
                    logger.warning("could not set file permissions", permissions=oct(_DB_FILE_PERMISSIONS), path=str(p))

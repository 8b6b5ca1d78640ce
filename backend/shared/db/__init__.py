"""Credential store implementations: SQLite, in-memory, and demo seeding."""

from shared.db.connection import Database
from shared.db.credential_store import SqliteCredentialStore
from shared.db.memory_store import MemoryCredentialStore
from shared.db.seed import seed_demo_data

__all__ = [
    "Database",
    "MemoryCredentialStore",
    "SqliteCredentialStore",
    "seed_demo_data",
]

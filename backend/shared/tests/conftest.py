"""Shared fixtures: every store-backed test runs against SQLite and the in-memory store."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from shared.auth.password import SimpleHasher
from shared.db import Database, MemoryCredentialStore, SqliteCredentialStore

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture(params=["sqlite", "memory"])
def store(request, tmp_path: Path):
    if request.param == "memory":
        yield MemoryCredentialStore()
        return
    db = Database(tmp_path / "test.db")
    db.connect()
    yield SqliteCredentialStore(db)
    db.close()


@pytest.fixture
def hasher():
    return SimpleHasher()

"""Request helpers shared by portal integration tests."""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import uuid4

from shared.auth.models import Character
from shared.auth.settings import AuthSettings

if TYPE_CHECKING:
    from starlette.testclient import TestClient

    from shared.dal.credential_store import CredentialStore

TEST_SECRET = "integration-session-secret-0123456789"
PASSWORD = "longenough1"


def make_auth_settings(**overrides) -> AuthSettings:
    fields = {
        "session_secret": TEST_SECRET,
        "store_backend": "memory",
        "password_hasher": "simple",
        "cookie_secure": False,
    }
    fields.update(overrides)
    return AuthSettings(**fields)


def register(client: TestClient, username: str, email: str | None = None, password: str = PASSWORD):
    return client.post(
        "/register",
        json={"username": username, "email": email or f"{username}@test.com", "password": password},
    )


def create_character(client: TestClient, name: str) -> dict:
    response = client.post("/api/characters", json={"name": name})
    assert response.status_code == 201, response.text
    return response.json()["data"]


def give_character(store: CredentialStore, user_id: str, name: str, *, jpoint: int) -> Character:
    """Insert a character with a balance directly; the API never mints JPoint."""
    character = Character(
        character_id=str(uuid4()),
        user_id=user_id,
        name=name,
        jpoint=jpoint,
        created_at=datetime.now(tz=UTC),
    )
    asyncio.run(store.insert_character(character))
    return character

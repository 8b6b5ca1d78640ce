"""Demo accounts and characters for local development."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import uuid4

import structlog

from shared.auth.models import Character, Faction

if TYPE_CHECKING:
    from shared.auth.password import PasswordHasher
    from shared.dal.credential_store import CredentialStore

logger = structlog.get_logger()


@dataclass(frozen=True)
class DemoUser:
    email: str
    username: str
    password: str  # plain text, hashed at seed time


@dataclass(frozen=True)
class DemoCharacter:
    owner_email: str
    name: str
    faction: Faction
    level: int
    jpoint: int
    gold: int


DEMO_USERS = (
    DemoUser(email="admin@test.com", username="admin", password="admin123"),
    DemoUser(email="player@test.com", username="player", password="player123"),
    DemoUser(email="demo@test.com", username="demo", password="demo1234"),
)

DEMO_CHARACTERS = (
    DemoCharacter("admin@test.com", "ShadowBlade", Faction.TANG_CLAN, level=85, jpoint=12500, gold=340000),
    DemoCharacter("admin@test.com", "IronMonk", Faction.SHAOLIN, level=72, jpoint=8200, gold=180000),
    DemoCharacter("player@test.com", "WindWalker", Faction.WUDANG, level=60, jpoint=4500, gold=95000),
)


async def seed_demo_data(store: CredentialStore, hasher: PasswordHasher) -> int:
    """Create demo users and characters that do not exist yet.

    Idempotent: users are matched by email, characters are only added to
    users created by this call. Returns the number of users created.
    """
    created: dict[str, str] = {}  # email -> user_id
    for demo in DEMO_USERS:
        if await store.find_user_by_email_or_username(demo.email, demo.username) is not None:
            continue
        password_hash = await hasher.hash(demo.password)
        user = await store.create_user(demo.email, demo.username, password_hash)
        created[demo.email] = user.user_id

    for demo_char in DEMO_CHARACTERS:
        user_id = created.get(demo_char.owner_email)
        if user_id is None:
            continue
        await store.insert_character(
            Character(
                character_id=str(uuid4()),
                user_id=user_id,
                name=demo_char.name,
                faction=demo_char.faction,
                level=demo_char.level,
                jpoint=demo_char.jpoint,
                gold=demo_char.gold,
                created_at=datetime.now(tz=UTC),
            ),
        )

    if created:
        logger.info("seeded demo accounts", count=len(created))
    return len(created)

"""Account, character, and session models."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field

MAX_CHARACTERS_PER_ACCOUNT = 10


class Faction(StrEnum):
    NONE = "None"
    SHAOLIN = "Shaolin"
    TANG_CLAN = "Tang Clan"
    FIVE_POISON = "Five Poison"
    BEGGAR_SECT = "Beggar Sect"
    WUDANG = "Wudang"
    EMEI = "Emei"
    ROYAL_GUARD = "Royal Guard"
    KUNLUN = "Kunlun"


class PublicUser(BaseModel, frozen=True):
    """User projection safe to hand to the presentation layer."""

    id: str
    email: str
    username: str


class User(BaseModel, frozen=True):
    """User account stored in the credential store."""

    user_id: str
    email: str
    username: str
    password_hash: str
    secondary_password_hash: str | None = None  # None = feature disabled
    created_at: datetime

    def to_public(self) -> PublicUser:
        return PublicUser(id=self.user_id, email=self.email, username=self.username)


class Character(BaseModel, frozen=True):
    """A game character owned by a user."""

    character_id: str
    user_id: str
    name: str
    faction: Faction = Faction.NONE
    level: int = Field(default=1, ge=1)
    jpoint: int = Field(default=0, ge=0)
    gold: int = Field(default=0, ge=0)  # read-only in this system
    created_at: datetime


class SessionData(BaseModel, frozen=True):
    """Payload sealed inside the encrypted session cookie."""

    user_id: str
    email: str
    username: str
    is_logged_in: bool = True


class SessionUser(BaseModel, frozen=True):
    """Identity of the caller resolved from a valid session."""

    user_id: str
    email: str
    username: str


class SignedIn(BaseModel, frozen=True):
    """Outcome of a successful login or registration.

    The HTTP edge stores ``session_token`` in the cookie and returns only ``user``.
    """

    user: PublicUser
    session_token: str


class AccountProfile(BaseModel, frozen=True):
    """Derived view of a user, computed on read."""

    id: str
    email: str
    username: str
    has_secondary_password: bool
    character_count: int
    created_at: datetime


class DashboardSummary(BaseModel, frozen=True):
    """Totals shown at the top of the dashboard."""

    username: str
    character_count: int
    max_characters: int
    highest_level: int
    total_jpoint: int
    total_gold: int
    characters: list[Character]

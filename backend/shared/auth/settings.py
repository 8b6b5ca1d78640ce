"""Auth and credential store settings."""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings

from shared.auth.session_codec import MIN_SECRET_LENGTH, SESSION_TTL_SECONDS


class AuthSettings(BaseSettings):
    model_config = {"env_prefix": "AUTH_"}

    # Secret used to derive the session encryption key -- required, no default.
    # The application fails to start if AUTH_SESSION_SECRET is not set.
    session_secret: str = Field(min_length=MIN_SECRET_LENGTH)

    session_cookie_name: str = "low_session"
    session_max_age_seconds: int = Field(default=SESSION_TTL_SECONDS, gt=0)

    # Cookie Secure flag -- True in production, False for local dev (HTTP)
    cookie_secure: bool = False

    # "memory" is the in-process stand-in store; data is lost on restart
    store_backend: Literal["sqlite", "memory"] = "sqlite"
    database_path: str = "backend/storage.db"
    seed_demo_data: bool = False

    password_hasher: Literal["bcrypt", "simple"] = "bcrypt"
    register_hash_rounds: int = Field(default=12, ge=4, le=31)
    default_hash_rounds: int = Field(default=10, ge=4, le=31)

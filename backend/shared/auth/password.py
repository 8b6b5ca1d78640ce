"""Password hashing: protocol, bcrypt (production), and simple SHA-256 (tests).

BcryptHasher is CPU-bound (~100ms per call at 10 rounds, ~400ms at 12) and
runs off the event loop using anyio.to_thread.run_sync() so concurrent
requests are not blocked.

SimpleHasher uses SHA-256 with a "simple$" prefix for instant hashing.
It is intended for tests only.
"""

from __future__ import annotations

import hashlib
import hmac
from typing import Protocol, runtime_checkable

import bcrypt
from anyio import to_thread

DEFAULT_ROUNDS = 10


@runtime_checkable
class PasswordHasher(Protocol):
    """Hash and verify passwords."""

    async def hash(self, plain: str, *, rounds: int | None = None) -> str: ...

    async def verify(self, plain: str, hashed: str) -> bool: ...


class BcryptHasher:
    """Production hasher using bcrypt (async, off-thread).

    The work factor and salt are embedded in each digest, so two hashes of the
    same password differ and ``verify`` needs no extra parameters.
    """

    def __init__(self, default_rounds: int = DEFAULT_ROUNDS) -> None:
        self._default_rounds = default_rounds

    async def hash(self, plain: str, *, rounds: int | None = None) -> str:
        encoded = plain.encode("utf-8")
        salt = bcrypt.gensalt(rounds=rounds or self._default_rounds)
        return await to_thread.run_sync(lambda: bcrypt.hashpw(encoded, salt).decode("utf-8"))

    async def verify(self, plain: str, hashed: str) -> bool:
        """Return False for malformed hashes or over-long input rather than raising."""
        encoded_plain = plain.encode("utf-8")
        encoded_hash = hashed.encode("utf-8")
        try:
            return await to_thread.run_sync(lambda: bcrypt.checkpw(encoded_plain, encoded_hash))
        except ValueError:
            return False


_SIMPLE_PREFIX = "simple$"


class SimpleHasher:
    """Fast SHA-256 hasher for tests. Not suitable for production use."""

    async def hash(self, plain: str, *, rounds: int | None = None) -> str:  # noqa: ARG002
        return _SIMPLE_PREFIX + hashlib.sha256(plain.encode("utf-8")).hexdigest()

    async def verify(self, plain: str, hashed: str) -> bool:
        if not hashed.startswith(_SIMPLE_PREFIX):
            return False
        expected = _SIMPLE_PREFIX + hashlib.sha256(plain.encode("utf-8")).hexdigest()
        return hmac.compare_digest(hashed, expected)


def get_hasher(name: str = "bcrypt", *, default_rounds: int = DEFAULT_ROUNDS) -> PasswordHasher:
    """Return a PasswordHasher by name ("bcrypt" or "simple")."""
    if name == "bcrypt":
        return BcryptHasher(default_rounds=default_rounds)
    if name == "simple":
        return SimpleHasher()
    raise ValueError(f"Unknown password hasher: {name!r}")

"""Exceptions raised by credential store implementations."""


class StoreError(Exception):
    """Unrecoverable store failure (connectivity, corruption, constraint misuse)."""


class UniqueViolation(StoreError):
    """A uniqueness constraint rejected a write.

    ``field`` names the colliding column: "email", "username", or "name".
    """

    def __init__(self, field: str) -> None:
        super().__init__(f"Unique constraint violated on '{field}'")
        self.field = field


class CharacterLimitExceeded(StoreError):
    """The owner already holds the maximum number of characters."""

    def __init__(self, user_id: str, limit: int) -> None:
        super().__init__(f"User '{user_id}' already owns {limit} characters")
        self.user_id = user_id
        self.limit = limit

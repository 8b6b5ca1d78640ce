"""Result types returned across the service boundary.

Services never let validation or business-rule failures escape as exceptions.
Each public operation returns either ``Success`` or ``Failure``; the failure
carries a machine-readable ``ErrorKind`` plus a default English message that
the presentation layer may replace with a localized string.
"""

from __future__ import annotations

import functools
from enum import StrEnum
from typing import TYPE_CHECKING, Literal

import structlog
from pydantic import BaseModel

from shared.dal.errors import StoreError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable
    from typing import Any

logger = structlog.get_logger()


class ErrorKind(StrEnum):
    UNAUTHORIZED = "Unauthorized"
    INVALID_CREDENTIALS = "InvalidCredentials"
    MISSING_CREDENTIALS = "MissingCredentials"
    EMAIL_TAKEN = "EmailTaken"
    USERNAME_TAKEN = "UsernameTaken"
    PASSWORD_TOO_SHORT = "PasswordTooShort"
    PASSWORD_TOO_LONG = "PasswordTooLong"
    MISSING_FIELDS = "MissingFields"
    ACCOUNT_NOT_FOUND = "AccountNotFound"
    SECONDARY_PASSWORD_REQUIRED = "SecondaryPasswordRequired"
    SECONDARY_PASSWORD_INCORRECT = "SecondaryPasswordIncorrect"
    SECONDARY_PASSWORD_TOO_SHORT = "SecondaryPasswordTooShort"
    NO_SECONDARY_PASSWORD_SET = "NoSecondaryPasswordSet"
    NAME_LENGTH_INVALID = "NameLengthInvalid"
    NAME_CHARS_INVALID = "NameCharsInvalid"
    DUPLICATE_NAME = "DuplicateName"
    CHARACTER_LIMIT_REACHED = "CharacterLimitReached"
    CHARACTER_NOT_FOUND = "CharacterNotFound"
    INVALID_AMOUNT = "InvalidAmount"
    SAME_CHARACTER = "SameCharacter"
    INSUFFICIENT_BALANCE = "InsufficientBalance"
    INVALID_REQUEST = "InvalidRequest"
    STORE_FAILURE = "StoreFailure"


_INVALID_CREDENTIALS_MESSAGE = "Invalid email or password."

DEFAULT_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.UNAUTHORIZED: "You must be signed in to do that.",
    ErrorKind.INVALID_CREDENTIALS: _INVALID_CREDENTIALS_MESSAGE,
    ErrorKind.MISSING_CREDENTIALS: "Email and password are required.",
    ErrorKind.EMAIL_TAKEN: "This email is already registered.",
    ErrorKind.USERNAME_TAKEN: "This username is already taken.",
    ErrorKind.PASSWORD_TOO_SHORT: "Password must be at least 8 characters.",
    ErrorKind.PASSWORD_TOO_LONG: "Password must not exceed 72 bytes.",
    ErrorKind.MISSING_FIELDS: "All fields are required.",
    ErrorKind.ACCOUNT_NOT_FOUND: "Account not found.",
    ErrorKind.SECONDARY_PASSWORD_REQUIRED: "Your current secondary password is required.",
    ErrorKind.SECONDARY_PASSWORD_INCORRECT: "Secondary password is incorrect.",
    ErrorKind.SECONDARY_PASSWORD_TOO_SHORT: "Secondary password must be at least 6 characters.",
    ErrorKind.NO_SECONDARY_PASSWORD_SET: "No secondary password is set.",
    ErrorKind.NAME_LENGTH_INVALID: "Character name must be 2-16 characters.",
    ErrorKind.NAME_CHARS_INVALID: "Character name may only contain letters, numbers, and underscores.",
    ErrorKind.DUPLICATE_NAME: "You already have a character with this name.",
    ErrorKind.CHARACTER_LIMIT_REACHED: "You have reached the maximum of 10 characters.",
    ErrorKind.CHARACTER_NOT_FOUND: "Character not found.",
    ErrorKind.INVALID_AMOUNT: "Amount must be greater than zero.",
    ErrorKind.SAME_CHARACTER: "Cannot transfer to the same character.",
    ErrorKind.INSUFFICIENT_BALANCE: "Insufficient JPoint balance.",
    ErrorKind.INVALID_REQUEST: "Invalid request.",
    ErrorKind.STORE_FAILURE: "Something went wrong. Please try again later.",
}


class Success[T](BaseModel, frozen=True):
    success: Literal[True] = True
    data: T | None = None
    message: str | None = None


class Failure(BaseModel, frozen=True):
    success: Literal[False] = False
    error: ErrorKind
    message: str

    @classmethod
    def of(cls, kind: ErrorKind) -> Failure:
        return cls(error=kind, message=DEFAULT_MESSAGES[kind])


type Result[T] = Success[T] | Failure


class PortalError(Exception):
    """A business-rule failure raised inside a service and converted to ``Failure``."""

    def __init__(self, kind: ErrorKind) -> None:
        super().__init__(DEFAULT_MESSAGES[kind])
        self.kind = kind


def returns_result[**P, T](
    operation: Callable[P, Awaitable[Result[T]]],
) -> Callable[P, Awaitable[Result[T]]]:
    """Convert ``PortalError`` and ``StoreError`` raised by a service operation into ``Failure``."""

    @functools.wraps(operation)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> Result[T]:
        try:
            return await operation(*args, **kwargs)
        except PortalError as e:
            return Failure.of(e.kind)
        except StoreError:
            logger.exception("credential store failure", operation=operation.__qualname__)
            return Failure.of(ErrorKind.STORE_FAILURE)

    return wrapper


def failure_payload(kind: ErrorKind) -> dict[str, Any]:
    """Serialized ``Failure`` for a kind, used by the HTTP edge."""
    return Failure.of(kind).model_dump(mode="json")

"""Authenticated account operations."""

from shared.account.service import AccountService

__all__ = ["AccountService"]

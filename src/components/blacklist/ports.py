"""
Blacklist component port definitions.
"""

from __future__ import annotations

from typing import Protocol
from uuid import UUID

from src.domain.entities import BlacklistedUser


class BlacklistRepoPort(Protocol):
    """Repository interface for blacklisted users."""

    def list_page(self, offset: int, limit: int) -> tuple[list[BlacklistedUser], int]:
        """Rows ordered by timestamp desc then id desc, plus the total row count."""
        ...

    def get_by_id(self, entry_id: UUID) -> BlacklistedUser | None: ...

    def get_by_username(self, username: str) -> BlacklistedUser | None:
        """Case-insensitive lookup."""
        ...

    def save(self, entry: BlacklistedUser) -> BlacklistedUser:
        """
        Insert or update by id.

        Raises IntegrityViolationError if the username is taken (any casing).
        """
        ...

    def delete(self, entry_id: UUID) -> bool:
        """Delete an entry. Returns False if it didn't exist."""
        ...

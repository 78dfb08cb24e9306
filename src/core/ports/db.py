"""
Database adapter interfaces shared across components.

Component-specific repository protocols live in each component's ports.py.
This module holds what more than one component needs:

- IntegrityViolationError: a write broke a constraint the database enforces
  (unique index, trigger abort, foreign key). Adapters translate their
  driver's exception into this so services never import sqlite3.
- ResourceUrlRepoPort: the signed URL cache table.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from src.domain.entities import ResourceUrl


class IntegrityViolationError(Exception):
    """
    Raised by repositories when the database rejects a write.

    `code` is the trigger message when the database raised one
    (e.g. "exclusive_addon_linked_elsewhere"), otherwise "constraint_violation".
    Nothing from the failed statement is committed.
    """

    def __init__(self, code: str, message: str | None = None) -> None:
        self.code = code
        self.message = message or code
        super().__init__(self.message)


class ResourceUrlRepoPort(Protocol):
    """Cache of signed read URLs keyed by storage path."""

    def get_many(self, paths: list[str]) -> dict[str, ResourceUrl]:
        """Cached entries for the given paths (expired ones included)."""
        ...

    def upsert_many(self, entries: list[ResourceUrl]) -> None:
        """Insert or replace entries by resource_path."""
        ...

    def delete_expired(self, now: datetime) -> int:
        """Delete entries with expired_at <= now. Returns rows deleted."""
        ...

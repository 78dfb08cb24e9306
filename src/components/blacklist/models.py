"""
Blacklist component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

from src.core.services.pagination import Page
from src.domain.entities import BlacklistedUser


@dataclass(frozen=True)
class BlacklistValidationError:
    """Blacklist validation error."""

    code: str
    message: str
    field: str | None = None


@dataclass(frozen=True)
class ListBlacklistInput:
    """Raw paging values; they are clamped, never rejected."""

    page: Any = 1
    page_size: Any = 10


@dataclass(frozen=True)
class AddBlacklistInput:
    username: str
    reasoning: str | None = None


@dataclass(frozen=True)
class UpdateBlacklistInput:
    entry_id: UUID
    username: str | None = None
    reasoning: str | None = None


@dataclass(frozen=True)
class RemoveBlacklistInput:
    entry_id: UUID


@dataclass(frozen=True)
class BlacklistOperationOutput:
    entry: BlacklistedUser | None = None
    errors: list[BlacklistValidationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class BlacklistPageOutput:
    page: Page[BlacklistedUser]

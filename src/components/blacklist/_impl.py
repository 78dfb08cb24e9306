"""
BlacklistService - users the artist won't take commissions from.

Key behaviors:
- Usernames are trimmed, required and unique regardless of case
- Listing is paginated, newest first (timestamp desc, id desc)
- Page inputs are clamped rather than rejected
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Protocol
from uuid import UUID, uuid4

from src.core.ports.db import IntegrityViolationError
from src.core.services.pagination import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    Page,
    build_page,
    clamp_page_request,
)
from src.core.services.query_cache import TAG_BLACKLIST, CachePort
from src.domain.entities import BlacklistedUser
from src.domain.fields import check_required_text

from .models import BlacklistValidationError
from .ports import BlacklistRepoPort

DEFAULT_USERNAME_MAX = 100


class TimePort(Protocol):
    def now_utc(self) -> datetime: ...


def validate_username(
    username: str | None, max_len: int = DEFAULT_USERNAME_MAX
) -> list[BlacklistValidationError]:
    problem = check_required_text(username, field="username", label="Username", max_len=max_len)
    if problem:
        code, message = problem
        return [BlacklistValidationError(code=code, message=message, field="username")]
    return []


def _taken(username: str) -> BlacklistValidationError:
    return BlacklistValidationError(
        code="username_exists",
        message=f"'{username}' is already blacklisted",
        field="username",
    )


class BlacklistService:
    def __init__(
        self,
        repo: BlacklistRepoPort,
        cache: CachePort | None = None,
        time_port: TimePort | None = None,
        username_max: int = DEFAULT_USERNAME_MAX,
        default_page_size: int = DEFAULT_PAGE_SIZE,
        max_page_size: int = MAX_PAGE_SIZE,
    ) -> None:
        self._repo = repo
        self._cache = cache
        self._time_port = time_port
        self._username_max = username_max
        self._default_page_size = default_page_size
        self._max_page_size = max_page_size

    def _now(self) -> datetime:
        if self._time_port:
            return self._time_port.now_utc()
        return datetime.now(UTC)

    def _invalidate(self) -> None:
        if self._cache is not None:
            self._cache.invalidate(TAG_BLACKLIST)

    def list_page(self, page: Any = 1, page_size: Any = None) -> Page[BlacklistedUser]:
        request = clamp_page_request(
            page,
            page_size if page_size is not None else self._default_page_size,
            default_page_size=self._default_page_size,
            max_page_size=self._max_page_size,
        )
        rows, total = self._repo.list_page(request.offset, request.limit)
        return build_page(rows, total, request)

    def get(self, entry_id: UUID) -> BlacklistedUser | None:
        return self._repo.get_by_id(entry_id)

    def add(
        self, username: str, reasoning: str | None = None
    ) -> tuple[BlacklistedUser | None, list[BlacklistValidationError]]:
        errors = validate_username(username, self._username_max)
        if errors:
            return None, errors

        clean = username.strip()
        if self._repo.get_by_username(clean) is not None:
            return None, [_taken(clean)]

        entry = BlacklistedUser(
            id=uuid4(),
            username=clean,
            reasoning=(reasoning or "").strip() or None,
            timestamp=self._now(),
        )
        try:
            saved = self._repo.save(entry)
        except IntegrityViolationError:
            return None, [_taken(clean)]

        self._invalidate()
        return saved, []

    def update(
        self,
        entry_id: UUID,
        username: str | None = None,
        reasoning: str | None = None,
    ) -> tuple[BlacklistedUser | None, list[BlacklistValidationError]]:
        entry = self._repo.get_by_id(entry_id)
        if entry is None:
            return None, [
                BlacklistValidationError(
                    code="entry_not_found", message=f"Blacklist entry {entry_id} not found"
                )
            ]

        changes: dict[str, Any] = {}
        if username is not None:
            errors = validate_username(username, self._username_max)
            if errors:
                return None, errors
            clean = username.strip()
            other = self._repo.get_by_username(clean)
            if other is not None and other.id != entry_id:
                return None, [_taken(clean)]
            changes["username"] = clean
        if reasoning is not None:
            changes["reasoning"] = reasoning.strip() or None

        try:
            saved = self._repo.save(entry.model_copy(update=changes))
        except IntegrityViolationError:
            return None, [_taken(changes.get("username", entry.username))]

        self._invalidate()
        return saved, []

    def remove(self, entry_id: UUID) -> list[BlacklistValidationError]:
        if not self._repo.delete(entry_id):
            return [
                BlacklistValidationError(
                    code="entry_not_found", message=f"Blacklist entry {entry_id} not found"
                )
            ]
        self._invalidate()
        return []

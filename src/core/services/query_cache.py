"""
In-memory query cache with tag invalidation.

Public read endpoints cache their results under a key and a set of tags.
Mutating services name the tags they dirty ("services", "addons",
"service-addons:<id>", ...) and the cache drops every entry carrying one of
them. Entries also expire after a TTL so a missed invalidation heals itself.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from threading import Lock
from typing import Any, Protocol, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

_MISSING = object()


class TimePort(Protocol):
    def now_utc(self) -> datetime: ...


class _SystemTime:
    def now_utc(self) -> datetime:
        return datetime.now(UTC)


@dataclass
class _Entry:
    value: Any
    expires_at: datetime
    tags: frozenset[str] = field(default_factory=frozenset)


class QueryCache:
    def __init__(self, ttl_seconds: int = 3000, time_port: TimePort | None = None) -> None:
        self._ttl = timedelta(seconds=ttl_seconds)
        self._time = time_port if time_port is not None else _SystemTime()
        self._entries: dict[str, _Entry] = {}
        self._lock = Lock()

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return default
            if entry.expires_at <= self._time.now_utc():
                del self._entries[key]
                return default
            return entry.value

    def set(
        self,
        key: str,
        value: Any,
        *,
        tags: Iterable[str] = (),
        ttl_seconds: int | None = None,
    ) -> None:
        ttl = self._ttl if ttl_seconds is None else timedelta(seconds=ttl_seconds)
        with self._lock:
            self._entries[key] = _Entry(
                value=value,
                expires_at=self._time.now_utc() + ttl,
                tags=frozenset(tags),
            )

    def get_or_load(
        self,
        key: str,
        loader: Callable[[], T],
        *,
        tags: Iterable[str] = (),
        ttl_seconds: int | None = None,
    ) -> T:
        """
        Return the cached value for `key`, calling `loader` on a miss.

        The loader runs outside the lock; two concurrent misses may both load,
        the later write wins.
        """
        value = self.get(key, _MISSING)
        if value is not _MISSING:
            return value  # type: ignore[no-any-return]

        value = loader()
        self.set(key, value, tags=tags, ttl_seconds=ttl_seconds)
        return value

    def invalidate(self, *tags: str) -> int:
        """Drop every entry carrying any of `tags`. Returns the number dropped."""
        wanted = set(tags)
        with self._lock:
            stale = [k for k, e in self._entries.items() if e.tags & wanted]
            for key in stale:
                del self._entries[key]
        if stale:
            logger.debug("Invalidated %d cache entries for tags %s", len(stale), sorted(wanted))
        return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class NullCache:
    """Cache that never stores anything. Used where callers don't wire one."""

    def get(self, key: str, default: Any = None) -> Any:
        return default

    def set(self, key: str, value: Any, **_: Any) -> None:
        return None

    def get_or_load(self, key: str, loader: Callable[[], T], **_: Any) -> T:
        return loader()

    def invalidate(self, *tags: str) -> int:
        return 0

    def clear(self) -> None:
        return None


class CachePort(Protocol):
    def invalidate(self, *tags: str) -> int: ...


# --- Tag helpers ---

TAG_SERVICES = "services"
TAG_ADDONS = "addons"
TAG_EXCLUSIVE_ADDON_SERVICES = "exclusive-addon-services"
TAG_BLACKLIST = "blacklist"
TAG_WIKI = "wiki"
TAG_RELATIONSHIPS = "relationships"
TAG_BLOG = "blog"
TAG_PORTFOLIO = "portfolio"


def service_addons_tag(service_id: object) -> str:
    return f"service-addons:{service_id}"


def addon_services_tag(addon_id: object) -> str:
    return f"addon-services:{addon_id}"

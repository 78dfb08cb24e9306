"""
Signed URL service.

Turns storage paths into time-limited read URLs. Two flavours:

- batch_get_signed_urls: straight to the object store, one call per
  `batch_size` paths, per-path success/error reported.
- get_cached_signed_url / batch_get_cached_signed_urls: consult the
  `resource_urls` table first and only sign paths whose cached URL is
  missing or expired. Used by the public read endpoints, which render many
  images per page.

Values that are already absolute URLs (http/https) are passed through as-is.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Protocol

from src.core.ports.db import ResourceUrlRepoPort
from src.core.ports.storage import ObjectStoragePort, SignedUrlResult, StorageError
from src.domain.entities import ResourceUrl

logger = logging.getLogger(__name__)


class TimePort(Protocol):
    def now_utc(self) -> datetime: ...


class _SystemTime:
    def now_utc(self) -> datetime:
        return datetime.now(UTC)


@dataclass(frozen=True)
class SignedUrlConfig:
    default_expiration: int = 3600
    max_expiration: int = 604800
    revalidate_seconds: int = 3000
    batch_size: int = 100


def is_external_url(value: str) -> bool:
    return value.startswith(("http://", "https://"))


def chunked(items: list[str], size: int) -> Iterable[list[str]]:
    for start in range(0, len(items), size):
        yield items[start : start + size]


class SignedUrlService:
    def __init__(
        self,
        storage: ObjectStoragePort,
        repo: ResourceUrlRepoPort,
        config: SignedUrlConfig | None = None,
        time_port: TimePort | None = None,
    ) -> None:
        self._storage = storage
        self._repo = repo
        self._config = config or SignedUrlConfig()
        self._time = time_port if time_port is not None else _SystemTime()

    def _cap(self, expires_in: int) -> int:
        return max(1, min(expires_in, self._config.max_expiration))

    def batch_get_signed_urls(
        self, paths: list[str], expires_in: int | None = None
    ) -> list[SignedUrlResult]:
        """
        Sign every path. Raises StorageError if the store itself fails;
        per-path failures (missing objects) come back as entries with `error`.
        """
        ttl = self._cap(expires_in if expires_in is not None else self._config.default_expiration)
        results: list[SignedUrlResult] = []
        for chunk in chunked(list(paths), self._config.batch_size):
            results.extend(self._storage.create_signed_urls(chunk, ttl))
        return results

    def get_cached_signed_url(self, path: str | None) -> str | None:
        if not path:
            return None
        return self.batch_get_cached_signed_urls([path]).get(path)

    def batch_get_cached_signed_urls(self, paths: list[str]) -> dict[str, str]:
        """
        Map path -> signed URL for every path that could be resolved.

        Failures are logged and the paths left out; callers render a
        placeholder instead of failing the whole page.
        """
        unique = list(dict.fromkeys(p for p in paths if p))
        urls: dict[str, str] = {}

        to_sign: list[str] = []
        for path in unique:
            if is_external_url(path):
                urls[path] = path
            else:
                to_sign.append(path)

        if not to_sign:
            return urls

        now = self._time.now_utc()
        try:
            cached = self._repo.get_many(to_sign)
        except Exception:
            logger.exception("Failed to read signed URL cache")
            cached = {}

        missing: list[str] = []
        for path in to_sign:
            entry = cached.get(path)
            if entry is not None and entry.expired_at > now:
                urls[path] = entry.url
            else:
                missing.append(path)

        if not missing:
            return urls

        # signed for longer than it is cached
        ttl = self._cap(max(self._config.default_expiration, self._config.revalidate_seconds))
        expires_at = now + timedelta(seconds=min(ttl, self._config.revalidate_seconds))
        fresh: list[ResourceUrl] = []
        for chunk in chunked(missing, self._config.batch_size):
            try:
                results = self._storage.create_signed_urls(chunk, ttl)
            except StorageError:
                logger.exception("Failed to sign %d storage paths", len(chunk))
                continue
            for result in results:
                if result.success and result.signed_url:
                    urls[result.path] = result.signed_url
                    fresh.append(
                        ResourceUrl(
                            resource_path=result.path,
                            url=result.signed_url,
                            expired_at=expires_at,
                        )
                    )
                else:
                    logger.warning("Could not sign %s: %s", result.path, result.error)

        if fresh:
            try:
                self._repo.upsert_many(fresh)
            except Exception:
                logger.exception("Failed to write signed URL cache")

        return urls

    def cleanup_expired(self) -> int:
        """Delete cache rows whose URL has expired. Returns rows removed."""
        removed = self._repo.delete_expired(self._time.now_utc())
        logger.info("Removed %d expired signed URL cache entries", removed)
        return removed

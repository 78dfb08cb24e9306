"""
Local Filesystem Object Storage Adapter.

Implements ObjectStoragePort on a local directory. Signed URLs are
HMAC-SHA256 tokens over (method, path, expiry) and are served back by the
`/storage` routes of the API, so the browser can read and upload directly
without going through the admin endpoints.

Layout: {base_path}/{path} holds bytes, {base_path}/.meta/{path}.json holds
the content type.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import logging
import os
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Protocol
from urllib.parse import quote, urlencode

from src.core.ports.storage import (
    InvalidPathError,
    InvalidSignatureError,
    ObjectExistsError,
    ObjectNotFoundError,
    SignedUpload,
    SignedUrlResult,
    StoredObject,
)

logger = logging.getLogger(__name__)

META_DIR = ".meta"


class ClockPort(Protocol):
    def now_utc(self) -> datetime: ...


class _UTCClock:
    def now_utc(self) -> datetime:
        return datetime.now(UTC)


class LocalObjectStorage:
    """
    Local filesystem implementation of ObjectStoragePort.

    Example: upload(b"...", path="services/abc", filename="ref.png")
    -> {base_path}/services/abc/ref.png, read back through
    {base_url}/storage/objects/services/abc/ref.png?expires=...&signature=...
    """

    def __init__(
        self,
        base_path: str | Path,
        *,
        secret_key: str,
        base_url: str = "http://localhost:8000",
        upload_url_expiration: int = 7200,
        clock: ClockPort | None = None,
        create_dirs: bool = True,
    ) -> None:
        self.base_path = Path(base_path)
        self._secret = secret_key.encode()
        self._base_url = base_url.rstrip("/")
        self._upload_ttl = upload_url_expiration
        self._clock = clock or _UTCClock()

        if create_dirs:
            self.base_path.mkdir(parents=True, exist_ok=True)

    # --- Path handling ---

    def _resolve(self, path: str) -> Path:
        """Map a storage path to a file, refusing anything outside base_path."""
        clean = path.strip().lstrip("/")
        if not clean or clean.startswith(META_DIR):
            raise InvalidPathError(path)

        root = self.base_path.resolve()
        target = (root / clean).resolve()
        if root not in target.parents:
            raise InvalidPathError(path)
        return target

    def _meta_path(self, path: str) -> Path:
        return self.base_path / META_DIR / f"{path.strip().lstrip('/')}.json"

    @staticmethod
    def _join(path: str, filename: str) -> str:
        directory = path.strip().strip("/")
        return f"{directory}/{filename}" if directory else filename

    # --- Signing ---

    def _sign(self, method: str, path: str, expires: int, upsert: bool = False) -> str:
        message = f"{method}\n{path}\n{expires}\n{int(upsert)}".encode()
        return hmac.new(self._secret, message, hashlib.sha256).hexdigest()

    def _signed_url(self, route: str, method: str, path: str, expires_at: datetime,
                    upsert: bool = False) -> str:
        expires = int(expires_at.timestamp())
        params = {"expires": expires, "signature": self._sign(method, path, expires, upsert)}
        if method == "PUT":
            params["upsert"] = int(upsert)
        return f"{self._base_url}/storage/{route}/{quote(path)}?{urlencode(params)}"

    def verify_signature(
        self, method: str, path: str, expires: int, signature: str, upsert: bool = False
    ) -> None:
        """
        Check a signature produced by share()/create_signed_upload_url().

        Raises:
            InvalidSignatureError: If the signature doesn't match or has expired
        """
        expected = self._sign(method, path, expires, upsert)
        if not hmac.compare_digest(expected, signature):
            raise InvalidSignatureError("Signature mismatch")
        if expires < int(self._clock.now_utc().timestamp()):
            raise InvalidSignatureError("Signed URL expired")

    # --- ObjectStoragePort ---

    def upload(
        self,
        data: bytes,
        *,
        path: str,
        filename: str,
        content_type: str = "application/octet-stream",
        upsert: bool = True,
    ) -> StoredObject:
        full_path = self._join(path, filename)
        return self.put(full_path, data, content_type=content_type, upsert=upsert)

    def put(
        self,
        path: str,
        data: bytes,
        *,
        content_type: str = "application/octet-stream",
        upsert: bool = True,
    ) -> StoredObject:
        """Write bytes at an exact storage path."""
        target = self._resolve(path)
        if target.exists() and not upsert:
            raise ObjectExistsError(path)

        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)

        meta_path = self._meta_path(path)
        meta_path.parent.mkdir(parents=True, exist_ok=True)
        meta_path.write_text(json.dumps({"content_type": content_type}))

        logger.debug("Stored %s (%d bytes)", path, len(data))
        return StoredObject(path=path, size_bytes=len(data), content_type=content_type)

    def get(self, path: str) -> tuple[bytes, StoredObject]:
        """Read bytes and metadata for a path."""
        target = self._resolve(path)
        if not target.is_file():
            raise ObjectNotFoundError(path)

        data = target.read_bytes()
        content_type = "application/octet-stream"
        meta_path = self._meta_path(path)
        if meta_path.exists():
            content_type = json.loads(meta_path.read_text()).get("content_type", content_type)
        return data, StoredObject(path=path, size_bytes=len(data), content_type=content_type)

    def exists(self, path: str) -> bool:
        try:
            return self._resolve(path).is_file()
        except InvalidPathError:
            return False

    def share(self, path: str, *, expires_in: int) -> str:
        if not self.exists(path):
            raise ObjectNotFoundError(path)
        expires_at = self._clock.now_utc() + timedelta(seconds=expires_in)
        return self._signed_url("objects", "GET", path.strip().lstrip("/"), expires_at)

    def delete(self, paths: list[str]) -> list[str]:
        deleted: list[str] = []
        for path in paths:
            try:
                target = self._resolve(path)
            except InvalidPathError:
                logger.warning("Refusing to delete invalid path %r", path)
                continue
            if target.is_file():
                target.unlink()
                meta_path = self._meta_path(path)
                if meta_path.exists():
                    meta_path.unlink()
                deleted.append(path)
        return deleted

    def create_signed_urls(self, paths: list[str], expires_in: int) -> list[SignedUrlResult]:
        expires_at = self._clock.now_utc() + timedelta(seconds=expires_in)
        results: list[SignedUrlResult] = []
        for path in paths:
            if not self.exists(path):
                results.append(
                    SignedUrlResult(path=path, signed_url=None, expires_at=None,
                                    error="Object not found")
                )
                continue
            url = self._signed_url("objects", "GET", path.strip().lstrip("/"), expires_at)
            results.append(SignedUrlResult(path=path, signed_url=url, expires_at=expires_at))
        return results

    def create_signed_upload_url(
        self, path: str, filename: str, *, upsert: bool = True
    ) -> SignedUpload:
        full_path = self._join(path, filename)
        self._resolve(full_path)
        expires_at = self._clock.now_utc() + timedelta(seconds=self._upload_ttl)
        url = self._signed_url("upload", "PUT", full_path, expires_at, upsert=upsert)
        return SignedUpload(path=full_path, signed_url=url, expires_at=expires_at)


def create_local_storage(
    base_path: str | Path | None = None,
    *,
    secret_key: str,
    base_url: str = "http://localhost:8000",
    env_var: str = "EXO_STORAGE_PATH",
    default_path: str = "./data/storage",
    upload_url_expiration: int = 7200,
) -> LocalObjectStorage:
    """Factory for LocalObjectStorage from config/environment."""
    if base_path is None:
        base_path = os.environ.get(env_var, default_path)

    return LocalObjectStorage(
        base_path,
        secret_key=secret_key,
        base_url=base_url,
        upload_url_expiration=upload_url_expiration,
    )

"""
LocalObjectStorage tests.

Bytes live under the storage root; signed URLs are HMAC tokens over
(method, path, expiry) that the /storage routes verify.
"""

from __future__ import annotations

from datetime import timedelta
from pathlib import Path
from urllib.parse import parse_qs, unquote, urlparse

import pytest

from src.adapters.clock import FixedClock
from src.adapters.local_storage import LocalObjectStorage
from src.core.ports.storage import (
    InvalidPathError,
    InvalidSignatureError,
    ObjectExistsError,
    ObjectNotFoundError,
)


@pytest.fixture
def storage(tmp_path: Path, clock: FixedClock) -> LocalObjectStorage:
    """Storage rooted in a temp dir with a fixed clock."""
    return LocalObjectStorage(
        tmp_path / "storage",
        secret_key="test-secret",
        base_url="http://testserver/",
        upload_url_expiration=600,
        clock=clock,
    )


def _query(url: str) -> tuple[str, dict[str, str]]:
    parsed = urlparse(url)
    params = {k: v[0] for k, v in parse_qs(parsed.query).items()}
    return unquote(parsed.path), params


class TestReadWrite:
    def test_upload_and_get(self, storage: LocalObjectStorage) -> None:
        stored = storage.upload(
            b"png-bytes", path="services/abc", filename="ref.png", content_type="image/png"
        )
        assert stored.path == "services/abc/ref.png"
        data, meta = storage.get("services/abc/ref.png")
        assert data == b"png-bytes"
        assert meta.content_type == "image/png"
        assert meta.size_bytes == 9

    def test_upload_without_upsert_refuses_overwrite(self, storage: LocalObjectStorage) -> None:
        storage.upload(b"one", path="a", filename="x.txt")
        with pytest.raises(ObjectExistsError):
            storage.upload(b"two", path="a", filename="x.txt", upsert=False)
        assert storage.get("a/x.txt")[0] == b"one"

    def test_upsert_overwrites(self, storage: LocalObjectStorage) -> None:
        storage.upload(b"one", path="a", filename="x.txt")
        storage.upload(b"two", path="a", filename="x.txt")
        assert storage.get("a/x.txt")[0] == b"two"

    def test_get_missing(self, storage: LocalObjectStorage) -> None:
        with pytest.raises(ObjectNotFoundError):
            storage.get("nowhere/file.png")

    @pytest.mark.parametrize(
        "path", ["", "   ", "../escape.txt", "a/../../escape.txt", ".meta/x"]
    )
    def test_paths_outside_root_are_refused(self, storage: LocalObjectStorage, path: str) -> None:
        with pytest.raises(InvalidPathError):
            storage.put(path, b"x")
        assert storage.exists(path) is False

    def test_delete_reports_removed_paths(self, storage: LocalObjectStorage) -> None:
        storage.upload(b"x", path="d", filename="one.png")
        removed = storage.delete(["d/one.png", "d/missing.png", "../etc/passwd"])
        assert removed == ["d/one.png"]
        assert storage.exists("d/one.png") is False


class TestSignedReads:
    def test_share_round_trip(self, storage: LocalObjectStorage) -> None:
        storage.upload(b"x", path="art", filename="piece one.png")
        url = storage.share("art/piece one.png", expires_in=60)
        path, params = _query(url)
        assert url.startswith("http://testserver/storage/objects/")
        assert path == "/storage/objects/art/piece one.png"
        storage.verify_signature(
            "GET", "art/piece one.png", int(params["expires"]), params["signature"]
        )

    def test_share_missing_object(self, storage: LocalObjectStorage) -> None:
        with pytest.raises(ObjectNotFoundError):
            storage.share("art/none.png", expires_in=60)

    def test_tampered_path_is_rejected(self, storage: LocalObjectStorage) -> None:
        storage.upload(b"x", path="art", filename="a.png")
        _, params = _query(storage.share("art/a.png", expires_in=60))
        with pytest.raises(InvalidSignatureError):
            storage.verify_signature(
                "GET", "art/b.png", int(params["expires"]), params["signature"]
            )

    def test_expired_signature(self, storage: LocalObjectStorage, clock: FixedClock) -> None:
        storage.upload(b"x", path="art", filename="a.png")
        _, params = _query(storage.share("art/a.png", expires_in=60))
        clock.advance(61)
        with pytest.raises(InvalidSignatureError):
            storage.verify_signature(
                "GET", "art/a.png", int(params["expires"]), params["signature"]
            )

    def test_batch_signing_reports_missing(
        self, storage: LocalObjectStorage, clock: FixedClock
    ) -> None:
        storage.upload(b"x", path="art", filename="a.png")
        results = storage.create_signed_urls(["art/a.png", "art/missing.png"], expires_in=120)
        assert results[0].success
        assert results[0].expires_at == clock.now_utc() + timedelta(seconds=120)
        assert not results[1].success
        assert results[1].error == "Object not found"


class TestSignedUploads:
    def test_upload_url_signs_put(self, storage: LocalObjectStorage) -> None:
        signed = storage.create_signed_upload_url("blog", "cover.png", upsert=False)
        assert signed.path == "blog/cover.png"
        path, params = _query(signed.signed_url)
        assert path == "/storage/upload/blog/cover.png"
        assert params["upsert"] == "0"
        storage.verify_signature(
            "PUT", "blog/cover.png", int(params["expires"]), params["signature"], upsert=False
        )

    def test_read_signature_does_not_authorize_upload(self, storage: LocalObjectStorage) -> None:
        storage.upload(b"x", path="blog", filename="cover.png")
        _, params = _query(storage.share("blog/cover.png", expires_in=60))
        with pytest.raises(InvalidSignatureError):
            storage.verify_signature(
                "PUT", "blog/cover.png", int(params["expires"]), params["signature"]
            )

    def test_upload_url_refuses_escaping_path(self, storage: LocalObjectStorage) -> None:
        with pytest.raises(InvalidPathError):
            storage.create_signed_upload_url("..", "secrets.txt")

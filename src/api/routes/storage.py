"""
Admin storage routes.

The browser uploads images straight to the object store: it asks for a
signed upload URL here, PUTs the bytes to it, then saves the returned path
on the entity.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import Field

from src.adapters.local_storage import LocalObjectStorage
from src.api.deps import get_current_admin, get_signed_url_service, get_storage
from src.api.schemas import CamelModel
from src.core.ports.storage import StorageError
from src.core.services.signed_urls import SignedUrlService
from src.domain.entities import AdminUser

logger = logging.getLogger(__name__)

router = APIRouter()


class SignedUploadRequest(CamelModel):
    path: str | None = None
    upsert: bool = True


class SignedUploadResponse(CamelModel):
    success: bool = True
    signed_url: str = Field(serialization_alias="signedUrl")
    path: str


class SignedUrlsRequest(CamelModel):
    paths: list[str]
    expires_in: int | None = Field(None, alias="expiresIn")


def split_upload_path(path: str | None) -> tuple[str, str]:
    """
    Split "directory/filename.ext" at the last slash.

    Raises HTTPException(400) with the message shown in the upload dialog.
    """
    if not path or not path.strip():
        raise HTTPException(status_code=400, detail="No path provided")
    clean = path.strip().lstrip("/")
    if "/" not in clean:
        raise HTTPException(
            status_code=400, detail="Invalid path format. Expected directory/filename.ext"
        )
    directory, filename = clean.rsplit("/", 1)
    if not filename:
        raise HTTPException(status_code=400, detail="Filename cannot be empty")
    return directory, filename


@router.post("/signed-upload-url", response_model=SignedUploadResponse)
def create_signed_upload_url(
    data: SignedUploadRequest,
    current_admin: AdminUser = Depends(get_current_admin),
    storage: LocalObjectStorage = Depends(get_storage),
) -> SignedUploadResponse:
    directory, filename = split_upload_path(data.path)
    try:
        upload = storage.create_signed_upload_url(directory, filename, upsert=data.upsert)
    except StorageError as e:
        logger.exception("Failed to create signed upload URL for %s", data.path)
        raise HTTPException(status_code=500, detail="Failed to create upload URL") from e
    return SignedUploadResponse(signed_url=upload.signed_url, path=upload.path)


@router.post("/signed-urls")
def create_signed_urls(
    data: SignedUrlsRequest,
    current_admin: AdminUser = Depends(get_current_admin),
    service: SignedUrlService = Depends(get_signed_url_service),
) -> dict[str, Any]:
    """Sign a batch of read URLs; missing objects are reported per path."""
    try:
        results = service.batch_get_signed_urls(data.paths, data.expires_in)
    except StorageError as e:
        logger.exception("Failed to sign %d paths", len(data.paths))
        raise HTTPException(status_code=500, detail="Failed to create signed URLs") from e
    return {
        "data": [
            {
                "path": r.path,
                "signedUrl": r.signed_url,
                "expiresAt": r.expires_at.isoformat() if r.expires_at else None,
                "error": r.error,
            }
            for r in results
        ]
    }

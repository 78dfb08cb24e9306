"""
Signed object routes served by the local storage adapter.

GET  /storage/objects/{path}?expires=..&signature=..
PUT  /storage/upload/{path}?expires=..&signature=..&upsert=..
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from src.adapters.local_storage import LocalObjectStorage
from src.api.deps import get_storage
from src.core.ports.storage import (
    InvalidPathError,
    InvalidSignatureError,
    ObjectExistsError,
    ObjectNotFoundError,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/objects/{path:path}")
def get_object(
    path: str,
    expires: int,
    signature: str,
    storage: LocalObjectStorage = Depends(get_storage),
) -> Response:
    try:
        storage.verify_signature("GET", path, expires, signature)
        data, meta = storage.get(path)
    except InvalidSignatureError as e:
        raise HTTPException(status_code=403, detail=str(e)) from e
    except (ObjectNotFoundError, InvalidPathError) as e:
        raise HTTPException(status_code=404, detail="Object not found") from e
    return Response(content=data, media_type=meta.content_type)


@router.put("/upload/{path:path}")
async def upload_object(
    path: str,
    request: Request,
    expires: int,
    signature: str,
    upsert: int = 1,
    storage: LocalObjectStorage = Depends(get_storage),
) -> dict[str, str]:
    try:
        storage.verify_signature("PUT", path, expires, signature, upsert=bool(upsert))
    except InvalidSignatureError as e:
        raise HTTPException(status_code=403, detail=str(e)) from e

    body = await request.body()
    content_type = request.headers.get("content-type", "application/octet-stream")
    try:
        stored = storage.put(path, body, content_type=content_type, upsert=bool(upsert))
    except ObjectExistsError as e:
        raise HTTPException(status_code=409, detail="Object already exists") from e
    except InvalidPathError as e:
        raise HTTPException(status_code=400, detail="Invalid path") from e
    logger.info("Uploaded %s (%d bytes)", stored.path, stored.size_bytes)
    return {"path": stored.path}

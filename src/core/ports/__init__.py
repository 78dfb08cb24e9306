# EXOCORPSE - Ports (Protocol Interfaces)
# Abstract interfaces for adapters; no implementations here

from src.core.ports.db import IntegrityViolationError, ResourceUrlRepoPort
from src.core.ports.storage import (
    InvalidPathError,
    InvalidSignatureError,
    ObjectExistsError,
    ObjectNotFoundError,
    ObjectStoragePort,
    SignedUpload,
    SignedUrlResult,
    StorageError,
    StoredObject,
)
from src.core.ports.time import TimePort

__all__ = [
    # Database
    "IntegrityViolationError",
    "ResourceUrlRepoPort",
    # Object storage
    "InvalidPathError",
    "InvalidSignatureError",
    "ObjectExistsError",
    "ObjectNotFoundError",
    "ObjectStoragePort",
    "SignedUpload",
    "SignedUrlResult",
    "StorageError",
    "StoredObject",
    # Time
    "TimePort",
]

"""Validating convenience façade over S3-compatible object storage."""

from s3helper.infra.storage import (
    CannedAcl,
    CompletedPart,
    ObjectTag,
    SignedUrlType,
    StorageClient,
    StorageError,
)
from s3helper.services import (
    InvalidArgumentError,
    ObjectStorageService,
    PartSizeOutOfRangeError,
    ServiceError,
)

__all__ = [
    "CannedAcl",
    "CompletedPart",
    "InvalidArgumentError",
    "ObjectStorageService",
    "ObjectTag",
    "PartSizeOutOfRangeError",
    "ServiceError",
    "SignedUrlType",
    "StorageClient",
    "StorageError",
]

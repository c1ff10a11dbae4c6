"""Object storage abstraction layer.

This module provides a protocol-based abstraction for object storage backends,
enabling support for S3, MinIO, and other S3-compatible services.
"""

from .client import (
    CannedAcl,
    CompletedPart,
    ObjectTag,
    SignedUrlType,
    StorageClient,
    StorageError,
)

__all__ = [
    "CannedAcl",
    "CompletedPart",
    "ObjectTag",
    "SignedUrlType",
    "StorageClient",
    "StorageError",
]

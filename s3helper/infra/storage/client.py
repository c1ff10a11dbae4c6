"""Storage client protocol and data types.

This module defines the narrow interface every object storage backend
implements: bucket and object management, tagging, multipart uploads and
pre-signed URLs. Backends return the remote service's response unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import IO, Any, Mapping, Protocol, Sequence, Union

# Bytes, an open binary file or a local file path to read the payload from.
Payload = Union[bytes, IO[bytes], Path]


class StorageError(RuntimeError):
    """Raised when a storage backend cannot make sense of a remote response."""


class SignedUrlType(str, Enum):
    """Action a pre-signed URL grants."""

    DOWNLOAD = "download"
    UPLOAD = "upload"

    @property
    def client_method(self) -> str:
        return "get_object" if self is SignedUrlType.DOWNLOAD else "put_object"

    @property
    def http_method(self) -> str:
        return "GET" if self is SignedUrlType.DOWNLOAD else "PUT"


class CannedAcl(str, Enum):
    """Predefined S3 access-control policies."""

    PRIVATE = "private"
    PUBLIC_READ = "public-read"
    PUBLIC_READ_WRITE = "public-read-write"
    AUTHENTICATED_READ = "authenticated-read"
    AWS_EXEC_READ = "aws-exec-read"
    BUCKET_OWNER_READ = "bucket-owner-read"
    BUCKET_OWNER_FULL_CONTROL = "bucket-owner-full-control"


@dataclass(frozen=True, slots=True)
class ObjectTag:
    """A single name/value tag attached to an object."""

    key: str
    value: str

    def to_s3(self) -> dict[str, str]:
        return {"Key": self.key, "Value": self.value}

    @classmethod
    def from_s3(cls, data: Mapping[str, Any]) -> "ObjectTag":
        return cls(key=str(data["Key"]), value=str(data.get("Value", "")))


@dataclass(frozen=True, slots=True)
class CompletedPart:
    """Represents a completed part in a multipart upload."""

    part_number: int
    etag: str


class StorageClient(Protocol):
    """Protocol defining the interface for object storage backends.

    Implementations perform exactly one remote request per call (none for
    ``generate_presigned_url``) and let remote errors propagate unchanged.
    Argument validation is the caller's job.
    """

    def copy_object(
        self,
        *,
        source_bucket: str,
        source_key: str,
        destination_bucket: str,
        destination_key: str,
    ) -> dict[str, Any]:
        """Copy an object to a new location, returning the copy response."""
        ...

    def create_bucket(self, *, bucket: str) -> dict[str, Any]:
        """Create a bucket."""
        ...

    def delete_bucket(self, *, bucket: str) -> dict[str, Any]:
        """Delete an empty bucket."""
        ...

    def delete_object(self, *, bucket: str, object_key: str) -> dict[str, Any]:
        """Delete a single object."""
        ...

    def delete_objects(
        self, *, bucket: str, object_keys: Sequence[str]
    ) -> dict[str, Any]:
        """Delete several objects in one request.

        Args:
            bucket: Target bucket name.
            object_keys: Keys to delete; S3 accepts at most 1000 per request.

        Returns:
            Response listing ``Deleted`` keys and per-key ``Errors``.
        """
        ...

    def get_object(self, *, bucket: str, object_key: str) -> dict[str, Any]:
        """Fetch an object.

        Returns:
            Response whose ``Body`` is a readable stream of the content; the
            remaining keys carry the object metadata.
        """
        ...

    def head_object(self, *, bucket: str, object_key: str) -> dict[str, Any]:
        """Fetch object metadata without the content."""
        ...

    def get_object_tagging(
        self, *, bucket: str, object_key: str
    ) -> dict[str, Any]:
        """Fetch the tag set of an object (``TagSet`` in the response)."""
        ...

    def put_object_tagging(
        self, *, bucket: str, object_key: str, tags: Sequence[ObjectTag]
    ) -> dict[str, Any]:
        """Replace the whole tag set of an object with ``tags``."""
        ...

    def delete_object_tagging(
        self, *, bucket: str, object_key: str
    ) -> dict[str, Any]:
        """Remove every tag from an object."""
        ...

    def put_object(
        self,
        *,
        bucket: str,
        object_key: str,
        body: Payload,
        acl: str,
    ) -> dict[str, Any]:
        """Upload an object in a single request."""
        ...

    def create_multipart_upload(
        self, *, bucket: str, object_key: str, acl: str
    ) -> str:
        """Start a multipart upload session.

        Returns:
            The ``UploadId`` of the new session.

        Raises:
            StorageError: If the response carries no ``UploadId``.
        """
        ...

    def upload_part(
        self,
        *,
        bucket: str,
        object_key: str,
        upload_id: str,
        part_number: int,
        body: Payload,
    ) -> CompletedPart:
        """Upload one part of a multipart upload session."""
        ...

    def list_parts(
        self, *, bucket: str, object_key: str, upload_id: str
    ) -> list[CompletedPart]:
        """List the parts uploaded so far, in ascending part order."""
        ...

    def complete_multipart_upload(
        self,
        *,
        bucket: str,
        object_key: str,
        upload_id: str,
        parts: Sequence[CompletedPart],
    ) -> dict[str, Any]:
        """Complete a multipart upload by combining ``parts``."""
        ...

    def abort_multipart_upload(
        self, *, bucket: str, object_key: str, upload_id: str
    ) -> dict[str, Any]:
        """Abort a multipart upload and discard its uploaded parts."""
        ...

    def generate_presigned_url(
        self,
        *,
        bucket: str,
        object_key: str,
        url_type: SignedUrlType,
        expires_in: int,
        acl: str | None = None,
    ) -> str:
        """Compute a pre-signed URL locally.

        Args:
            bucket: Target bucket name.
            object_key: Object key (path) in the bucket.
            url_type: Whether the URL grants a download (GET) or upload (PUT).
            expires_in: Validity in seconds from now.
            acl: Canned ACL the uploader must send; upload URLs only.

        Returns:
            The signed URL.
        """
        ...

    def close(self) -> None:
        """Release the underlying connection pool."""
        ...

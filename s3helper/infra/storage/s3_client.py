"""S3-compatible storage client implementation.

This module provides an S3-compatible storage client that works with
AWS S3, MinIO, and other S3-compatible object storage services.

Remote errors (``botocore.exceptions.ClientError`` and friends) are not
caught here; they reach the caller exactly as boto3 raised them.

Dependencies:
    - boto3
    - botocore
"""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any, Iterator, Sequence

from s3helper.infra.storage.client import (
    CompletedPart,
    ObjectTag,
    Payload,
    SignedUrlType,
    StorageError,
)

if TYPE_CHECKING:
    from s3helper.common.config import Settings


@contextmanager
def _open_payload(body: Payload) -> Iterator[Any]:
    """Yield something boto3 accepts as ``Body``, opening paths for reading."""
    if isinstance(body, Path):
        with body.open("rb") as handle:
            yield handle
    else:
        yield body


class S3StorageClient:
    """S3-compatible object storage client.

    Supports AWS S3, MinIO, and other S3-compatible services.
    Uses boto3 for all storage operations. The boto3 client is created once
    and is safe to share between threads.
    """

    def __init__(self, *, settings: "Settings") -> None:
        """Initialize the S3 client with configuration from settings.

        Args:
            settings: Settings containing S3 configuration.

        Raises:
            StorageError: If boto3 is not installed.
        """
        self._settings = settings
        self._client = self._build_client(settings)

    @staticmethod
    def _build_client(settings: "Settings") -> Any:
        """Create a boto3 S3 client from settings."""
        try:
            import boto3
            from botocore.config import Config
        except ImportError as exc:
            raise StorageError(
                "boto3 and botocore are required for S3 storage backend. "
                "Install with: pip install boto3"
            ) from exc

        config = Config(
            signature_version=settings.S3_SIGNATURE_VERSION,
            s3={"addressing_style": settings.S3_ADDRESSING_STYLE},
        )

        params: dict[str, Any] = {
            "endpoint_url": settings.S3_ENDPOINT_URL,
            "region_name": settings.S3_REGION,
            "use_ssl": bool(settings.S3_USE_SSL),
            "config": config,
        }
        # Without static keys boto3 falls back to its default credential chain
        if settings.has_static_credentials:
            params["aws_access_key_id"] = settings.S3_ACCESS_KEY_ID
            params["aws_secret_access_key"] = settings.S3_SECRET_ACCESS_KEY
            if settings.S3_SESSION_TOKEN:
                params["aws_session_token"] = settings.S3_SESSION_TOKEN

        return boto3.client("s3", **params)

    def copy_object(
        self,
        *,
        source_bucket: str,
        source_key: str,
        destination_bucket: str,
        destination_key: str,
    ) -> dict[str, Any]:
        """Copy an object to a new location."""
        return self._client.copy_object(
            Bucket=destination_bucket,
            Key=destination_key,
            CopySource={"Bucket": source_bucket, "Key": source_key},
        )

    def create_bucket(self, *, bucket: str) -> dict[str, Any]:
        """Create a bucket in the configured region."""
        params: dict[str, Any] = {"Bucket": bucket}
        region = self._settings.S3_REGION
        # us-east-1 rejects an explicit location constraint
        if region and region != "us-east-1":
            params["CreateBucketConfiguration"] = {"LocationConstraint": region}
        return self._client.create_bucket(**params)

    def delete_bucket(self, *, bucket: str) -> dict[str, Any]:
        return self._client.delete_bucket(Bucket=bucket)

    def delete_object(self, *, bucket: str, object_key: str) -> dict[str, Any]:
        return self._client.delete_object(Bucket=bucket, Key=object_key)

    def delete_objects(
        self, *, bucket: str, object_keys: Sequence[str]
    ) -> dict[str, Any]:
        return self._client.delete_objects(
            Bucket=bucket,
            Delete={"Objects": [{"Key": key} for key in object_keys]},
        )

    def get_object(self, *, bucket: str, object_key: str) -> dict[str, Any]:
        return self._client.get_object(Bucket=bucket, Key=object_key)

    def head_object(self, *, bucket: str, object_key: str) -> dict[str, Any]:
        return self._client.head_object(Bucket=bucket, Key=object_key)

    def get_object_tagging(
        self, *, bucket: str, object_key: str
    ) -> dict[str, Any]:
        return self._client.get_object_tagging(Bucket=bucket, Key=object_key)

    def put_object_tagging(
        self, *, bucket: str, object_key: str, tags: Sequence[ObjectTag]
    ) -> dict[str, Any]:
        return self._client.put_object_tagging(
            Bucket=bucket,
            Key=object_key,
            Tagging={"TagSet": [tag.to_s3() for tag in tags]},
        )

    def delete_object_tagging(
        self, *, bucket: str, object_key: str
    ) -> dict[str, Any]:
        return self._client.delete_object_tagging(Bucket=bucket, Key=object_key)

    def put_object(
        self,
        *,
        bucket: str,
        object_key: str,
        body: Payload,
        acl: str,
    ) -> dict[str, Any]:
        """Upload an object in a single request."""
        with _open_payload(body) as payload:
            return self._client.put_object(
                Bucket=bucket,
                Key=object_key,
                Body=payload,
                ACL=acl,
            )

    def create_multipart_upload(
        self, *, bucket: str, object_key: str, acl: str
    ) -> str:
        """Initialize a multipart upload session."""
        response = self._client.create_multipart_upload(
            Bucket=bucket,
            Key=object_key,
            ACL=acl,
        )

        upload_id = response.get("UploadId")
        if not upload_id:
            raise StorageError("S3 response missing UploadId")

        return str(upload_id)

    def upload_part(
        self,
        *,
        bucket: str,
        object_key: str,
        upload_id: str,
        part_number: int,
        body: Payload,
    ) -> CompletedPart:
        """Upload one part and return its part number and ETag."""
        with _open_payload(body) as payload:
            response = self._client.upload_part(
                Bucket=bucket,
                Key=object_key,
                UploadId=upload_id,
                PartNumber=int(part_number),
                Body=payload,
            )

        etag = response.get("ETag")
        if not etag:
            raise StorageError("S3 response missing ETag")

        return CompletedPart(part_number=int(part_number), etag=str(etag))

    def list_parts(
        self, *, bucket: str, object_key: str, upload_id: str
    ) -> list[CompletedPart]:
        """List uploaded parts across all result pages."""
        paginator = self._client.get_paginator("list_parts")
        parts: list[CompletedPart] = []
        for page in paginator.paginate(
            Bucket=bucket, Key=object_key, UploadId=upload_id
        ):
            for item in page.get("Parts", []):
                parts.append(
                    CompletedPart(
                        part_number=int(item["PartNumber"]), etag=str(item["ETag"])
                    )
                )
        return sorted(parts, key=lambda p: p.part_number)

    def complete_multipart_upload(
        self,
        *,
        bucket: str,
        object_key: str,
        upload_id: str,
        parts: Sequence[CompletedPart],
    ) -> dict[str, Any]:
        """Complete a multipart upload by combining all parts."""
        multipart_payload = {
            "Parts": [
                {"ETag": part.etag, "PartNumber": int(part.part_number)}
                for part in sorted(parts, key=lambda p: p.part_number)
            ]
        }

        return self._client.complete_multipart_upload(
            Bucket=bucket,
            Key=object_key,
            UploadId=upload_id,
            MultipartUpload=multipart_payload,
        )

    def abort_multipart_upload(
        self, *, bucket: str, object_key: str, upload_id: str
    ) -> dict[str, Any]:
        """Abort a multipart upload and clean up uploaded parts."""
        return self._client.abort_multipart_upload(
            Bucket=bucket,
            Key=object_key,
            UploadId=upload_id,
        )

    def generate_presigned_url(
        self,
        *,
        bucket: str,
        object_key: str,
        url_type: SignedUrlType,
        expires_in: int,
        acl: str | None = None,
    ) -> str:
        """Generate a pre-signed URL; computed locally, no request is sent."""
        params: dict[str, Any] = {"Bucket": bucket, "Key": object_key}
        if acl and url_type is SignedUrlType.UPLOAD:
            params["ACL"] = acl

        url = self._client.generate_presigned_url(
            url_type.client_method,
            Params=params,
            ExpiresIn=int(expires_in),
            HttpMethod=url_type.http_method,
        )

        if not url:
            raise StorageError("Generated presigned URL is empty")

        return str(url)

    def close(self) -> None:
        self._client.close()

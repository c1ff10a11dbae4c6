"""Object storage service.

This module provides the application-facing façade over an object storage
backend. Each operation validates its arguments locally, delegates a single
call to the backend and hands back the backend's response unchanged. Text
payloads are staged to a temporary file that is removed after the upload.

Remote errors are never translated: whatever the backend raises reaches the
caller as-is.
"""

from __future__ import annotations

import codecs
import io
import logging
import os
from typing import IO, Any, Iterable, Mapping, TypeVar

from pydantic import TypeAdapter

from s3helper.common.config import Settings, get_settings
from s3helper.infra.storage.client import (
    CannedAcl,
    CompletedPart,
    ObjectTag,
    SignedUrlType,
    StorageClient,
)
from s3helper.infra.storage.s3_client import S3StorageClient
from s3helper.services.base import (
    BaseService,
    InvalidArgumentError,
    ensure_part_size,
    ensure_text,
)
from s3helper.services.staging import encode_text, staged_bytes, staged_text

# Maximum part number allowed by S3
MAX_PART_NUMBER = 10000

T = TypeVar("T")

# Longest marks first: the UTF-32 LE mark starts with the UTF-16 LE one.
_BOM_CODECS: tuple[tuple[bytes, str], ...] = (
    (codecs.BOM_UTF32_LE, "utf-32"),
    (codecs.BOM_UTF32_BE, "utf-32"),
    (codecs.BOM_UTF8, "utf-8-sig"),
    (codecs.BOM_UTF16_LE, "utf-16"),
    (codecs.BOM_UTF16_BE, "utf-16"),
)

logger = logging.getLogger("storage")


def decode_text(payload: bytes, encoding: str = "utf-8") -> str:
    """Decode ``payload``, letting a byte-order mark override ``encoding``."""
    for bom, codec in _BOM_CODECS:
        if payload.startswith(bom):
            return payload.decode(codec)
    return payload.decode(encoding)


def _stream_size(stream: IO[bytes]) -> int | None:
    """Bytes left to read in ``stream``, or None when it cannot seek."""
    try:
        if not stream.seekable():
            return None
        position = stream.tell()
        end = stream.seek(0, os.SEEK_END)
        stream.seek(position)
    except (AttributeError, OSError, io.UnsupportedOperation):
        return None
    return end - position


class ObjectStorageService(BaseService):
    """Validating façade over a ``StorageClient``.

    The backend is acquired once at construction and released by ``close()``,
    which also runs when the service is used as a context manager::

        with ObjectStorageService() as storage:
            storage.put_object("bucket", "key", "text")
    """

    def __init__(
        self,
        storage_client: StorageClient | None = None,
        *,
        settings: Settings | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._storage = storage_client or self._build_storage_client(self._settings)
        self._closed = False

    @staticmethod
    def _build_storage_client(settings: Settings) -> StorageClient:
        return S3StorageClient(settings=settings)

    @property
    def storage(self) -> StorageClient:
        return self._storage

    def close(self) -> None:
        """Release the backend; later calls are no-ops."""
        if self._closed:
            return
        self._closed = True
        self._storage.close()

    def __enter__(self) -> "ObjectStorageService":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _resolve_acl(self, acl: CannedAcl | str | None) -> str:
        if acl is None:
            return self._settings.S3_DEFAULT_ACL
        try:
            return CannedAcl(acl).value
        except ValueError:
            raise InvalidArgumentError("acl", f"acl is not a canned ACL: {acl}") from None

    def _text_encoding(self, encoding: str | None) -> str:
        return encoding or self._settings.S3_TEXT_ENCODING

    # Buckets

    def create_bucket(self, name: str) -> dict[str, Any]:
        logger.debug("create_bucket name=%s", name)
        self._ensure_text(name=name)
        return self._storage.create_bucket(bucket=name)

    def delete_bucket(self, name: str) -> dict[str, Any]:
        logger.debug("delete_bucket name=%s", name)
        self._ensure_text(name=name)
        return self._storage.delete_bucket(bucket=name)

    # Objects

    def copy_object(
        self,
        source_bucket: str,
        source_key: str,
        destination_bucket: str,
        destination_key: str,
    ) -> dict[str, Any]:
        logger.debug(
            "copy_object source_bucket=%s source_key=%s "
            "destination_bucket=%s destination_key=%s",
            source_bucket,
            source_key,
            destination_bucket,
            destination_key,
        )
        self._ensure_text(
            source_bucket=source_bucket,
            source_key=source_key,
            destination_bucket=destination_bucket,
            destination_key=destination_key,
        )
        return self._storage.copy_object(
            source_bucket=source_bucket,
            source_key=source_key,
            destination_bucket=destination_bucket,
            destination_key=destination_key,
        )

    def move_object(
        self,
        source_bucket: str,
        source_key: str,
        destination_bucket: str,
        destination_key: str,
    ) -> bool:
        """Copy an object, then delete the source.

        There is no rollback: if deleting the source fails, that error
        propagates and the object is left in both locations.
        """
        logger.debug(
            "move_object source_bucket=%s source_key=%s "
            "destination_bucket=%s destination_key=%s",
            source_bucket,
            source_key,
            destination_bucket,
            destination_key,
        )
        self.copy_object(
            source_bucket, source_key, destination_bucket, destination_key
        )
        self.delete_object(source_bucket, source_key)
        return True

    def delete_object(self, bucket: str, key: str) -> dict[str, Any]:
        logger.debug("delete_object bucket=%s key=%s", bucket, key)
        self._ensure_text(bucket=bucket, key=key)
        return self._storage.delete_object(bucket=bucket, object_key=key)

    def delete_objects(self, bucket: str, keys: Iterable[str]) -> dict[str, Any]:
        """Delete several objects with one request."""
        logger.debug("delete_objects bucket=%s", bucket)
        self._ensure_text(bucket=bucket)
        self._ensure_not_none("keys", keys)
        key_list = list(keys)
        if not key_list:
            raise InvalidArgumentError("keys", "keys must not be empty")
        for key in key_list:
            ensure_text("keys", key)
        return self._storage.delete_objects(bucket=bucket, object_keys=key_list)

    def get_object(self, bucket: str, key: str) -> dict[str, Any]:
        """Fetch an object; ``Body`` in the result streams its content."""
        logger.debug("get_object bucket=%s key=%s", bucket, key)
        self._ensure_text(bucket=bucket, key=key)
        return self._storage.get_object(bucket=bucket, object_key=key)

    def get_object_contents(
        self, bucket: str, key: str, encoding: str = "utf-8"
    ) -> str:
        """Read an object fully and decode it as text.

        A byte-order mark at the start of the content takes precedence over
        ``encoding``, so text stored with the default UTF-16 staging reads
        back unchanged.
        """
        response = self.get_object(bucket, key)
        body = response["Body"]
        try:
            payload = body.read()
        finally:
            body.close()
        return decode_text(payload, encoding)

    def get_object_as_json(self, bucket: str, key: str, model: type[T]) -> T:
        """Read an object and validate its JSON content as ``model``.

        Raises:
            pydantic.ValidationError: If the content is not valid JSON for
                ``model``.
        """
        data = self.get_object_contents(bucket, key)
        return TypeAdapter(model).validate_json(data)

    def get_object_metadata(self, bucket: str, key: str) -> dict[str, str]:
        """Return the user metadata of an object."""
        logger.debug("get_object_metadata bucket=%s key=%s", bucket, key)
        self._ensure_text(bucket=bucket, key=key)
        response = self._storage.head_object(bucket=bucket, object_key=key)
        return dict(response.get("Metadata") or {})

    def put_object(
        self,
        bucket: str,
        key: str,
        contents: str | bytes | IO[bytes],
        acl: CannedAcl | str | None = None,
        encoding: str | None = None,
    ) -> dict[str, Any]:
        """Upload an object.

        Text is encoded (UTF-16 unless ``encoding`` says otherwise) and
        uploaded from a temporary file; bytes and binary streams are sent
        as they are.
        """
        logger.debug(
            "put_object bucket=%s key=%s acl=%s encoding=%s",
            bucket,
            key,
            acl,
            encoding,
        )
        self._ensure_text(bucket=bucket, key=key)
        self._ensure_not_none("contents", contents)
        resolved_acl = self._resolve_acl(acl)

        if isinstance(contents, str):
            with staged_text(contents, self._text_encoding(encoding)) as path:
                return self._storage.put_object(
                    bucket=bucket, object_key=key, body=path, acl=resolved_acl
                )

        if isinstance(contents, (bytes, bytearray)):
            if not contents:
                raise InvalidArgumentError("contents")
            contents = bytes(contents)

        return self._storage.put_object(
            bucket=bucket, object_key=key, body=contents, acl=resolved_acl
        )

    # Tags

    def get_object_tags(self, bucket: str, key: str) -> list[ObjectTag]:
        logger.debug("get_object_tags bucket=%s key=%s", bucket, key)
        self._ensure_text(bucket=bucket, key=key)
        response = self._storage.get_object_tagging(bucket=bucket, object_key=key)
        return [ObjectTag.from_s3(item) for item in response.get("TagSet", [])]

    def set_object_tag(
        self, bucket: str, key: str, tag_name: str, tag_value: str
    ) -> dict[str, Any]:
        """Replace the tag set of an object with a single tag."""
        self._ensure_text(
            bucket=bucket, key=key, tag_name=tag_name, tag_value=tag_value
        )
        return self.set_object_tags(
            bucket, key, [ObjectTag(key=tag_name, value=tag_value)]
        )

    def set_object_tags(
        self,
        bucket: str,
        key: str,
        tags: Iterable[ObjectTag | tuple[str, str]] | Mapping[str, str],
    ) -> dict[str, Any]:
        """Replace the whole tag set of an object.

        Tags not present in ``tags`` are removed; nothing is merged.
        """
        logger.debug("set_object_tags bucket=%s key=%s", bucket, key)
        self._ensure_text(bucket=bucket, key=key)
        self._ensure_not_none("tags", tags)

        items = tags.items() if isinstance(tags, Mapping) else tags
        tag_set: list[ObjectTag] = []
        seen: set[str] = set()
        for item in items:
            tag = item if isinstance(item, ObjectTag) else ObjectTag(*item)
            if not isinstance(tag.key, str) or not tag.key.strip():
                raise InvalidArgumentError("tags", "tags must have non-empty names")
            if tag.key in seen:
                raise InvalidArgumentError("tags", f"tags contain duplicate name: {tag.key}")
            seen.add(tag.key)
            tag_set.append(tag)

        return self._storage.put_object_tagging(
            bucket=bucket, object_key=key, tags=tag_set
        )

    def delete_object_tags(self, bucket: str, key: str) -> dict[str, Any]:
        logger.debug("delete_object_tags bucket=%s key=%s", bucket, key)
        self._ensure_text(bucket=bucket, key=key)
        return self._storage.delete_object_tagging(bucket=bucket, object_key=key)

    # Signed URLs

    def get_signed_url(
        self,
        bucket: str,
        key: str,
        url_type: SignedUrlType | str,
        timeout_in_minutes: int,
        acl: CannedAcl | str | None = None,
    ) -> str:
        """Build a pre-signed URL valid for ``timeout_in_minutes``.

        Downloads are signed for GET and uploads for PUT. The URL is computed
        locally from the configured credentials; no request is sent.
        """
        logger.debug(
            "get_signed_url bucket=%s key=%s url_type=%s timeout_in_minutes=%s acl=%s",
            bucket,
            key,
            url_type,
            timeout_in_minutes,
            acl,
        )
        self._ensure_text(bucket=bucket, key=key)
        try:
            kind = SignedUrlType(url_type)
        except ValueError:
            raise InvalidArgumentError(
                "url_type", f"url_type must be download or upload, not {url_type}"
            ) from None
        if (
            isinstance(timeout_in_minutes, bool)
            or not isinstance(timeout_in_minutes, int)
            or timeout_in_minutes <= 0
        ):
            raise InvalidArgumentError(
                "timeout_in_minutes", "timeout_in_minutes must be a positive integer"
            )

        return self._storage.generate_presigned_url(
            bucket=bucket,
            object_key=key,
            url_type=kind,
            expires_in=timeout_in_minutes * 60,
            acl=self._resolve_acl(acl) if acl is not None else None,
        )

    # Multipart uploads

    def start_multipart_upload(
        self, bucket: str, key: str, acl: CannedAcl | str | None = None
    ) -> str:
        """Start a multipart upload and return its upload id."""
        logger.debug("start_multipart_upload bucket=%s key=%s acl=%s", bucket, key, acl)
        self._ensure_text(bucket=bucket, key=key)
        return self._storage.create_multipart_upload(
            bucket=bucket, object_key=key, acl=self._resolve_acl(acl)
        )

    def upload_part(
        self,
        bucket: str,
        key: str,
        upload_id: str,
        part_number: int,
        contents: str | bytes | IO[bytes],
        encoding: str | None = None,
    ) -> CompletedPart:
        """Upload one part of a multipart upload.

        Every payload whose size is known locally must be between 5 MB and
        10 GB. Text is measured after encoding and uploaded from a temporary
        file; bytes and seekable streams are measured as they are.
        Non-seekable streams are sent unchecked.

        Raises:
            InvalidArgumentError: On a blank identifier, a part number outside
                1..10000 or empty contents.
            PartSizeOutOfRangeError: If the payload size is out of bounds.
        """
        logger.debug(
            "upload_part bucket=%s key=%s upload_id=%s part_number=%s encoding=%s",
            bucket,
            key,
            upload_id,
            part_number,
            encoding,
        )
        self._ensure_text(bucket=bucket, key=key, upload_id=upload_id)
        if (
            isinstance(part_number, bool)
            or not isinstance(part_number, int)
            or not 1 <= part_number <= MAX_PART_NUMBER
        ):
            raise InvalidArgumentError(
                "part_number", f"part_number must be between 1 and {MAX_PART_NUMBER}"
            )
        self._ensure_not_none("contents", contents)

        if isinstance(contents, str):
            ensure_text("contents", contents)
            payload = encode_text(contents, self._text_encoding(encoding))
            ensure_part_size(len(payload))
            with staged_bytes(payload) as path:
                return self._storage.upload_part(
                    bucket=bucket,
                    object_key=key,
                    upload_id=upload_id,
                    part_number=part_number,
                    body=path,
                )

        if isinstance(contents, (bytes, bytearray)):
            if not contents:
                raise InvalidArgumentError("contents")
            ensure_part_size(len(contents))
            body: bytes | IO[bytes] = bytes(contents)
        else:
            size = _stream_size(contents)
            if size == 0:
                raise InvalidArgumentError("contents")
            if size is not None:
                ensure_part_size(size)
            body = contents

        return self._storage.upload_part(
            bucket=bucket,
            object_key=key,
            upload_id=upload_id,
            part_number=part_number,
            body=body,
        )

    def complete_multipart_upload(
        self,
        bucket: str,
        key: str,
        upload_id: str,
        parts: Iterable[CompletedPart] | None = None,
    ) -> dict[str, Any]:
        """Finalize a multipart upload.

        Without ``parts`` the uploaded parts are listed from the backend and
        completed in ascending part order.
        """
        logger.debug(
            "complete_multipart_upload bucket=%s key=%s upload_id=%s",
            bucket,
            key,
            upload_id,
        )
        self._ensure_text(bucket=bucket, key=key, upload_id=upload_id)
        if parts is None:
            part_list = self._storage.list_parts(
                bucket=bucket, object_key=key, upload_id=upload_id
            )
        else:
            part_list = list(parts)
        return self._storage.complete_multipart_upload(
            bucket=bucket, object_key=key, upload_id=upload_id, parts=part_list
        )

    def abort_multipart_upload(
        self, bucket: str, key: str, upload_id: str
    ) -> dict[str, Any]:
        logger.debug(
            "abort_multipart_upload bucket=%s key=%s upload_id=%s",
            bucket,
            key,
            upload_id,
        )
        self._ensure_text(bucket=bucket, key=key, upload_id=upload_id)
        return self._storage.abort_multipart_upload(
            bucket=bucket, object_key=key, upload_id=upload_id
        )

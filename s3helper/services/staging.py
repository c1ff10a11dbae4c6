"""Temporary-file staging for text payloads.

Text is encoded and written to a uniquely named file in the platform temp
directory so it can be uploaded from disk. The ``staged_*`` context managers
remove the file again once the upload using it has finished.
"""

from __future__ import annotations

import logging
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from s3helper.services.base import ensure_text

DEFAULT_TEXT_ENCODING = "utf-16"
TEMP_FILE_PREFIX = "s3helper-"

logger = logging.getLogger("storage")


def encode_text(contents: str, encoding: str | None = None) -> bytes:
    return contents.encode(encoding or DEFAULT_TEXT_ENCODING)


def _write_temp_file(payload: bytes) -> Path:
    fd, name = tempfile.mkstemp(prefix=TEMP_FILE_PREFIX, suffix=".tmp")
    path = Path(name)
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(payload)
    except BaseException:
        path.unlink(missing_ok=True)
        raise

    logger.debug("staged_temp_file path=%s size_bytes=%s", path, len(payload))
    return path


def create_temp_file(contents: str, encoding: str | None = None) -> Path:
    """Write ``contents`` to a new temp file and return its path.

    The caller owns the file; use ``staged_text`` to have it removed.

    Args:
        contents: Non-blank text to stage.
        encoding: Codec name; defaults to UTF-16 (with byte-order mark).

    Raises:
        InvalidArgumentError: If ``contents`` is empty or whitespace.
    """
    ensure_text("contents", contents)
    return _write_temp_file(encode_text(contents, encoding))


@contextmanager
def _removing(path: Path) -> Iterator[Path]:
    try:
        yield path
    finally:
        path.unlink(missing_ok=True)
        logger.debug("removed_temp_file path=%s", path)


@contextmanager
def staged_text(contents: str, encoding: str | None = None) -> Iterator[Path]:
    """Stage ``contents`` for the duration of the block, then delete the file."""
    with _removing(create_temp_file(contents, encoding)) as path:
        yield path


@contextmanager
def staged_bytes(payload: bytes) -> Iterator[Path]:
    """Stage already-encoded bytes for the duration of the block."""
    with _removing(_write_temp_file(payload)) as path:
        yield path

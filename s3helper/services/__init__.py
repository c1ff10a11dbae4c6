from .base import (
    MAX_PART_SIZE_BYTES,
    MIN_PART_SIZE_BYTES,
    BaseService,
    InvalidArgumentError,
    PartSizeOutOfRangeError,
    ServiceError,
)
from .object_storage_service import ObjectStorageService
from .staging import DEFAULT_TEXT_ENCODING, create_temp_file, staged_text

__all__ = [
    "BaseService",
    "ServiceError",
    "InvalidArgumentError",
    "PartSizeOutOfRangeError",
    "MIN_PART_SIZE_BYTES",
    "MAX_PART_SIZE_BYTES",
    "ObjectStorageService",
    "DEFAULT_TEXT_ENCODING",
    "create_temp_file",
    "staged_text",
]

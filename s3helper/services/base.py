from __future__ import annotations

from typing import Any

# Bounds applied to multipart part payloads before they are sent.
MIN_PART_SIZE_BYTES = 5_000_000
MAX_PART_SIZE_BYTES = 10_000_000_000
INVALID_PART_SIZE_MESSAGE = "Part size must be between 5 MB and 10 GB"


class ServiceError(Exception):
    """Base class for application service level exceptions."""


class InvalidArgumentError(ServiceError, ValueError):
    """Raised when a required argument is missing, blank or out of domain."""

    def __init__(self, param_name: str, message: str | None = None) -> None:
        self.param_name = param_name
        super().__init__(message or f"{param_name} is required")


class PartSizeOutOfRangeError(ServiceError, ValueError):
    """Raised when a multipart part payload is outside the allowed size."""

    def __init__(self, size_bytes: int) -> None:
        self.size_bytes = size_bytes
        super().__init__(INVALID_PART_SIZE_MESSAGE)


def ensure_text(param_name: str, value: Any) -> str:
    """Return ``value`` if it is a non-blank string, else raise."""
    if not isinstance(value, str) or not value.strip():
        raise InvalidArgumentError(param_name)
    return value


def ensure_part_size(size_bytes: int) -> int:
    if not MIN_PART_SIZE_BYTES <= size_bytes <= MAX_PART_SIZE_BYTES:
        raise PartSizeOutOfRangeError(size_bytes)
    return size_bytes


class BaseService:
    """Provides guard rails and helpers shared by application services."""

    def _ensure_text(self, **arguments: Any) -> None:
        """Validate keyword arguments in order, naming the first blank one."""
        for name, value in arguments.items():
            ensure_text(name, value)

    def _ensure_not_none(self, param_name: str, value: Any) -> Any:
        if value is None:
            raise InvalidArgumentError(param_name)
        return value

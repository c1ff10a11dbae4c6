from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

ENV_FILE = Path(".env")

ADDRESSING_STYLES: tuple[str, ...] = ("auto", "path", "virtual")
CANNED_ACLS: tuple[str, ...] = (
    "private",
    "public-read",
    "public-read-write",
    "authenticated-read",
    "aws-exec-read",
    "bucket-owner-read",
    "bucket-owner-full-control",
)
LOG_FORMATS: tuple[str, ...] = ("json", "plain")


def _load_env_file() -> None:
    if not ENV_FILE.exists():
        return
    for raw_line in ENV_FILE.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key and key not in os.environ:
            os.environ[key] = value


def _as_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.lower() in {"1", "true", "t", "yes", "y", "on"}


def _as_optional(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


@dataclass
class Settings:
    S3_ENDPOINT_URL: str | None = None
    S3_REGION: str = "us-east-1"
    S3_ACCESS_KEY_ID: str | None = None
    S3_SECRET_ACCESS_KEY: str | None = None
    S3_SESSION_TOKEN: str | None = None
    S3_USE_SSL: bool = True
    S3_ADDRESSING_STYLE: str = "auto"
    S3_SIGNATURE_VERSION: str = "s3v4"
    S3_DEFAULT_ACL: str = "bucket-owner-full-control"
    S3_TEXT_ENCODING: str = "utf-16"
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"

    def __post_init__(self) -> None:
        self.S3_ADDRESSING_STYLE = self.S3_ADDRESSING_STYLE.strip().lower()
        if self.S3_ADDRESSING_STYLE not in ADDRESSING_STYLES:
            raise ValueError(
                f"S3_ADDRESSING_STYLE must be one of {', '.join(ADDRESSING_STYLES)}."
            )
        if self.S3_DEFAULT_ACL not in CANNED_ACLS:
            raise ValueError(f"S3_DEFAULT_ACL is not a canned ACL: {self.S3_DEFAULT_ACL}")
        self.LOG_FORMAT = self.LOG_FORMAT.strip().lower()
        if self.LOG_FORMAT not in LOG_FORMATS:
            raise ValueError("LOG_FORMAT must be 'json' or 'plain'.")
        self.LOG_LEVEL = self.LOG_LEVEL.strip().upper()

    @property
    def has_static_credentials(self) -> bool:
        return bool(self.S3_ACCESS_KEY_ID and self.S3_SECRET_ACCESS_KEY)

    @classmethod
    def from_environment(cls) -> "Settings":
        _load_env_file()
        return cls(
            S3_ENDPOINT_URL=_as_optional(os.environ.get("S3_ENDPOINT_URL")),
            S3_REGION=os.environ.get("S3_REGION", cls.S3_REGION),
            S3_ACCESS_KEY_ID=_as_optional(os.environ.get("S3_ACCESS_KEY_ID")),
            S3_SECRET_ACCESS_KEY=_as_optional(os.environ.get("S3_SECRET_ACCESS_KEY")),
            S3_SESSION_TOKEN=_as_optional(os.environ.get("S3_SESSION_TOKEN")),
            S3_USE_SSL=_as_bool(os.environ.get("S3_USE_SSL"), cls.S3_USE_SSL),
            S3_ADDRESSING_STYLE=os.environ.get(
                "S3_ADDRESSING_STYLE", cls.S3_ADDRESSING_STYLE
            ),
            S3_SIGNATURE_VERSION=os.environ.get(
                "S3_SIGNATURE_VERSION", cls.S3_SIGNATURE_VERSION
            ),
            S3_DEFAULT_ACL=os.environ.get("S3_DEFAULT_ACL", cls.S3_DEFAULT_ACL),
            S3_TEXT_ENCODING=os.environ.get("S3_TEXT_ENCODING", cls.S3_TEXT_ENCODING),
            LOG_LEVEL=os.environ.get("LOG_LEVEL", cls.LOG_LEVEL),
            LOG_FORMAT=os.environ.get("LOG_FORMAT", cls.LOG_FORMAT),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_environment()

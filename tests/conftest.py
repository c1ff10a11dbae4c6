from __future__ import annotations

import os

import pytest

from s3helper.common.config import get_settings

SETTINGS_ENV_PREFIXES = ("S3_", "LOG_")


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    """Keep the developer's environment and .env file out of every test."""
    for name in list(os.environ):
        if name.startswith(SETTINGS_ENV_PREFIXES):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr("s3helper.common.config.ENV_FILE", tmp_path / ".env")
    get_settings.cache_clear()  # type: ignore[attr-defined]
    yield
    get_settings.cache_clear()  # type: ignore[attr-defined]

from __future__ import annotations

import pytest

from s3helper.common import config
from s3helper.common.config import Settings, get_settings


class TestSettingsDefaults:
    def test_defaults(self) -> None:
        settings = Settings.from_environment()

        assert settings.S3_ENDPOINT_URL is None
        assert settings.S3_REGION == "us-east-1"
        assert settings.S3_USE_SSL is True
        assert settings.S3_ADDRESSING_STYLE == "auto"
        assert settings.S3_SIGNATURE_VERSION == "s3v4"
        assert settings.S3_DEFAULT_ACL == "bucket-owner-full-control"
        assert settings.S3_TEXT_ENCODING == "utf-16"
        assert settings.has_static_credentials is False


class TestSettingsFromEnvironment:
    def test_reads_environment(self, monkeypatch) -> None:
        monkeypatch.setenv("S3_ENDPOINT_URL", "http://minio:9000")
        monkeypatch.setenv("S3_REGION", "eu-central-1")
        monkeypatch.setenv("S3_ACCESS_KEY_ID", "key")
        monkeypatch.setenv("S3_SECRET_ACCESS_KEY", "secret")
        monkeypatch.setenv("S3_USE_SSL", "no")
        monkeypatch.setenv("S3_ADDRESSING_STYLE", "PATH")
        monkeypatch.setenv("S3_DEFAULT_ACL", "private")
        monkeypatch.setenv("LOG_LEVEL", "debug")
        monkeypatch.setenv("LOG_FORMAT", "plain")

        settings = Settings.from_environment()

        assert settings.S3_ENDPOINT_URL == "http://minio:9000"
        assert settings.S3_REGION == "eu-central-1"
        assert settings.has_static_credentials is True
        assert settings.S3_USE_SSL is False
        assert settings.S3_ADDRESSING_STYLE == "path"
        assert settings.S3_DEFAULT_ACL == "private"
        assert settings.LOG_LEVEL == "DEBUG"
        assert settings.LOG_FORMAT == "plain"

    def test_blank_optional_values_become_none(self, monkeypatch) -> None:
        monkeypatch.setenv("S3_ENDPOINT_URL", "  ")
        monkeypatch.setenv("S3_ACCESS_KEY_ID", "")

        settings = Settings.from_environment()

        assert settings.S3_ENDPOINT_URL is None
        assert settings.S3_ACCESS_KEY_ID is None

    def test_env_file_does_not_override_environment(
        self, monkeypatch, tmp_path
    ) -> None:
        env_file = tmp_path / ".env"
        env_file.write_text(
            "# comment\nS3_REGION='ap-south-1'\nS3_TEXT_ENCODING=\"utf-8\"\ninvalid line\n",
            encoding="utf-8",
        )
        monkeypatch.setattr(config, "ENV_FILE", env_file)
        monkeypatch.setenv("S3_TEXT_ENCODING", "utf-16")
        # _load_env_file writes straight into os.environ; register for cleanup
        monkeypatch.setenv("S3_REGION", "placeholder")
        monkeypatch.delenv("S3_REGION")

        settings = Settings.from_environment()

        assert settings.S3_REGION == "ap-south-1"
        assert settings.S3_TEXT_ENCODING == "utf-16"

    def test_get_settings_is_cached(self) -> None:
        assert get_settings() is get_settings()


class TestSettingsValidation:
    def test_rejects_unknown_addressing_style(self) -> None:
        with pytest.raises(ValueError, match="S3_ADDRESSING_STYLE"):
            Settings(S3_ADDRESSING_STYLE="sideways")

    def test_rejects_unknown_acl(self) -> None:
        with pytest.raises(ValueError, match="S3_DEFAULT_ACL"):
            Settings(S3_DEFAULT_ACL="everyone")

    def test_rejects_unknown_log_format(self) -> None:
        with pytest.raises(ValueError, match="LOG_FORMAT"):
            Settings(LOG_FORMAT="xml")

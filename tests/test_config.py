"""
Tests for Configuration Module

Tests for broll/config.py
"""

import pytest

from broll.config import Config
from broll.errors import CredentialsError


class TestConfig:
    """Tests for Config defaults and environment handling."""

    def test_defaults(self, monkeypatch):
        for name in ("IMAGE_BATCH_SIZE", "VIDEO_BATCH_SIZE", "VIDEO_POLL_INTERVAL", "VIDEO_POLL_TIMEOUT", "MAX_UPLOAD_MB"):
            monkeypatch.delenv(name, raising=False)

        config = Config()

        assert config.image_batch_size == 3
        assert config.video_batch_size == 2
        assert config.video_poll_interval == 10.0
        assert config.video_poll_timeout is None
        assert config.max_upload_bytes == 200 * 1024 * 1024

    def test_env_overrides(self, monkeypatch, tmp_path):
        monkeypatch.setenv("IMAGE_BATCH_SIZE", "5")
        monkeypatch.setenv("VIDEO_POLL_TIMEOUT", "900")
        monkeypatch.setenv("BROLL_WORKSPACE", str(tmp_path))
        monkeypatch.delenv("HISTORY_FILE", raising=False)

        config = Config()

        assert config.image_batch_size == 5
        assert config.video_poll_timeout == 900.0
        assert config.resolved_history_file == tmp_path / ".broll" / "history.yaml"
        assert config.assets_dir == tmp_path / ".broll" / "assets"

    def test_history_file_override(self, monkeypatch, tmp_path):
        monkeypatch.setenv("HISTORY_FILE", str(tmp_path / "h.yaml"))

        assert Config().resolved_history_file == tmp_path / "h.yaml"


class TestValidation:
    """Tests for credential validation."""

    def test_missing_anthropic_key(self):
        with pytest.raises(CredentialsError):
            Config(anthropic_api_key="").validate_required()

    def test_google_requires_project(self):
        with pytest.raises(CredentialsError, match="GOOGLE_CLOUD_PROJECT"):
            Config(google_cloud_project="").validate_google_required()

        Config(google_cloud_project="p").validate_google_required()

    def test_veo_requires_project(self):
        with pytest.raises(CredentialsError, match="GOOGLE_CLOUD_PROJECT"):
            Config(google_cloud_project="", google_application_credentials="").validate_veo_required()

    def test_veo_credentials_file_must_exist(self, tmp_path):
        config = Config(
            google_cloud_project="p",
            google_application_credentials=str(tmp_path / "missing.json"),
        )

        with pytest.raises(CredentialsError, match="file not found"):
            config.validate_veo_required()

    def test_veo_bucket_must_be_gcs_uri(self):
        config = Config(google_cloud_project="p", google_application_credentials="", veo_output_bucket="bucket")

        with pytest.raises(CredentialsError, match="gs://"):
            config.validate_veo_required()

    def test_veo_valid(self):
        Config(
            google_cloud_project="p",
            google_application_credentials="",
            veo_output_bucket="gs://bucket/out",
        ).validate_veo_required()

    def test_credentials_error_is_value_error(self):
        assert issubclass(CredentialsError, ValueError)

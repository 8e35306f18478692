"""Tests for settings and retry policy loading."""

import pytest
from pydantic import ValidationError

from rider_offline.config import DEFAULT_RETRY_POLICIES, Settings


def make_settings(tmp_path, **kwargs) -> Settings:
    return Settings(
        _env_file=None,
        data_dir=tmp_path / "data",
        retry_policies_file=tmp_path / "retry_policies.yaml",
        **kwargs,
    )


class TestSettings:
    """Environment-driven configuration."""

    def test_defaults(self, tmp_path):
        settings = make_settings(tmp_path)

        assert settings.default_cache_ttl_minutes == 60
        assert settings.store_path == tmp_path / "data" / "offline.db"
        assert settings.log_level == "INFO"

    def test_env_prefix(self, tmp_path, monkeypatch):
        monkeypatch.setenv("RIDER_API_BASE_URL", "https://rider.example.com/api")
        monkeypatch.setenv("RIDER_LOG_LEVEL", "debug")

        settings = make_settings(tmp_path)

        assert settings.api_base_url == "https://rider.example.com/api"
        assert settings.log_level == "DEBUG"

    def test_invalid_log_level(self, tmp_path):
        with pytest.raises(ValidationError):
            make_settings(tmp_path, log_level="LOUD")

    def test_non_positive_interval(self, tmp_path):
        with pytest.raises(ValidationError):
            make_settings(tmp_path, connectivity_interval=0)


class TestRetryPolicies:
    """YAML overrides of per-type retry bounds."""

    def test_missing_file_gives_defaults(self, tmp_path):
        assert make_settings(tmp_path).load_retry_policies() == DEFAULT_RETRY_POLICIES

    def test_overrides_are_merged(self, tmp_path):
        (tmp_path / "retry_policies.yaml").write_text("job_status: 8\nphoto_upload: 2\n")

        policies = make_settings(tmp_path).load_retry_policies()

        assert policies["job_status"] == 8
        assert policies["photo_upload"] == 2
        assert policies["location_update"] == 3

    def test_bad_values_are_ignored(self, tmp_path):
        (tmp_path / "retry_policies.yaml").write_text(
            "job_status: 0\nqr_scan: many\nunknown_type: 4\navailability_update: true\n"
        )

        assert make_settings(tmp_path).load_retry_policies() == DEFAULT_RETRY_POLICIES

    def test_malformed_yaml_gives_defaults(self, tmp_path):
        (tmp_path / "retry_policies.yaml").write_text("job_status: [unclosed\n")

        assert make_settings(tmp_path).load_retry_policies() == DEFAULT_RETRY_POLICIES

    def test_non_mapping_gives_defaults(self, tmp_path):
        (tmp_path / "retry_policies.yaml").write_text("- 1\n- 2\n")

        assert make_settings(tmp_path).load_retry_policies() == DEFAULT_RETRY_POLICIES

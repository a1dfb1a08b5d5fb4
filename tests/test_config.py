"""
Tests for settings and configuration models.
"""

import pytest
from pydantic import ValidationError

from datalake_mediator.core.config import DatalakeConfig, DatalakeLibConfig, Settings


def _settings(**values):
    return Settings(_env_file=None, **values)


def test_defaults():
    settings = _settings()

    assert settings.SERVICE_NAME == "datalake-mediator"
    assert settings.listen_buckets == []
    assert settings.openhim_config() is None


def test_listen_buckets_parsing():
    """Test that bucket lists are split and trimmed."""
    settings = _settings(LISTEN_BUCKETS=" a, b ,,c ")
    assert settings.listen_buckets == ["a", "b", "c"]


def test_settings_read_environment(monkeypatch):
    """Test that settings come from environment variables."""
    monkeypatch.setenv("DATALAKE_ENDPOINT", "minio")
    monkeypatch.setenv("DATALAKE_PORT", "9100")
    monkeypatch.setenv("DATALAKE_USE_SSL", "true")

    config = Settings(_env_file=None).datalake_config()

    assert config.end_point == "minio"
    assert config.port == 9100
    assert config.use_ssl is True
    assert config.region is None


def test_lib_config_with_openhim():
    """Test that an API URL enables the OpenHIM section."""
    settings = _settings(
        OPENHIM_API_URL="https://openhim:8080",
        OPENHIM_USERNAME="root",
        OPENHIM_PASSWORD="pw",
        OPENHIM_MEDIATOR_URN="urn:mediator:x",
        LISTENER_SUFFIX=".json",
        STAGING_DIR="/data/staging",
    )

    config = settings.lib_config()

    assert config.openhim.api_url == "https://openhim:8080"
    assert config.openhim.trust_self_signed is True
    assert config.listener_suffix == ".json"
    assert config.staging_dir == "/data/staging"


def test_lib_config_defaults():
    config = DatalakeLibConfig(datalake=DatalakeConfig(end_point="x", access_key="a", secret_key="s"))

    assert config.openhim is None
    assert config.listener_prefix == ""
    assert config.staging_dir is None
    assert config.datalake.port == 9000


def test_negative_retry_delay_rejected():
    with pytest.raises(ValidationError):
        DatalakeLibConfig(
            datalake=DatalakeConfig(end_point="x", access_key="a", secret_key="s"),
            notification_retry_delay=-1,
        )


def test_presigned_expiry_reaches_lib_config():
    """Test that the presigned URL expiry setting is carried into the library config."""
    config = _settings(PRESIGNED_URL_EXPIRY_SECONDS=3600).lib_config()

    assert config.presigned_url_expiry_seconds == 3600
    assert _settings().lib_config().presigned_url_expiry_seconds == 7 * 24 * 60 * 60

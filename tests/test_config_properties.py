"""Property-based tests for configuration models and loading.

Feature: window-sync
"""

import os
from pathlib import Path

import pytest
import structlog
from hypothesis import given
from hypothesis import strategies as st
from pydantic import ValidationError

from windowsync.models import AppConfig, SyncConfig
from windowsync.utils.config_loader import ConfigLoader, ConfigurationError

log = structlog.stdlib.get_logger()


@given(st.integers(min_value=1, max_value=100_000))
def test_max_range_length_accepts_positive(max_range_length: int):
    """Positive window limits are accepted as given.

    **Feature: window-sync, Property 12: Window limit bounds**
    """
    config = SyncConfig(max_range_length=max_range_length)

    assert config.max_range_length == max_range_length


@given(st.integers(max_value=0))
def test_max_range_length_rejects_non_positive(max_range_length: int):
    """Zero or negative window limits are rejected."""
    log.info("test_max_range_length_rejects_non_positive", value=max_range_length)

    with pytest.raises(ValidationError) as exc_info:
        SyncConfig(max_range_length=max_range_length)

    assert "max_range_length" in str(exc_info.value)


@given(st.integers().filter(lambda x: x < 0 or x > 10))
def test_provider_retries_bounds(retries: int):
    """Retry counts outside 0..10 are rejected."""
    with pytest.raises(ValidationError):
        SyncConfig(provider_max_retries=retries)


def test_sync_config_defaults():
    """Defaults describe a clearing engine with a 1000 row window limit."""
    config = SyncConfig()

    assert config.key_field == "key"
    assert config.max_range_length == 1000
    assert config.clear_evicted_rows is True
    assert config.provider_max_retries == 0


def test_environment_variable_loading():
    """Nested settings are read from WINDOWSYNC_ prefixed environment variables."""
    env = {
        "WINDOWSYNC_SYNC__KEY_FIELD": "__key",
        "WINDOWSYNC_SYNC__MAX_RANGE_LENGTH": "250",
        "WINDOWSYNC_SYNC__CLEAR_EVICTED_ROWS": "false",
        "WINDOWSYNC_LOGGING__LOG_LEVEL": "DEBUG",
        "WINDOWSYNC_LOGGING__JSON_LOGS": "false",
    }
    os.environ.update(env)

    try:
        config = AppConfig()

        assert config.sync.key_field == "__key"
        assert config.sync.max_range_length == 250
        assert config.sync.clear_evicted_rows is False
        assert config.logging.log_level == "DEBUG"
        assert config.logging.json_logs is False
    finally:
        for key in env:
            os.environ.pop(key, None)


class TestConfigLoader:
    """Loading configuration from YAML files."""

    def test_loads_yaml_file(self, tmp_path: Path):
        config_file = tmp_path / "default.yaml"
        config_file.write_text(
            "sync:\n  max_range_length: 64\n  provider_max_retries: 2\nlogging:\n  json_logs: false\n"
        )

        config = ConfigLoader(config_dir=tmp_path).load_config()

        assert config.sync.max_range_length == 64
        assert config.sync.provider_max_retries == 2
        assert config.logging.json_logs is False

    def test_environment_specific_file(self, tmp_path: Path, monkeypatch):
        (tmp_path / "default.yaml").write_text("sync:\n  key_field: key\n")
        (tmp_path / "test.yaml").write_text("sync:\n  key_field: rowKey\n")
        monkeypatch.setenv("WINDOWSYNC_ENV", "test")

        assert ConfigLoader(config_dir=tmp_path).load_sync_config().key_field == "rowKey"

    def test_substitutes_environment_variables(self, tmp_path: Path, monkeypatch):
        config_file = tmp_path / "app.yaml"
        config_file.write_text("logging:\n  log_file: ${WINDOWSYNC_TEST_LOG_DIR}/sync.log\n")
        monkeypatch.setenv("WINDOWSYNC_TEST_LOG_DIR", "/var/log")

        config = ConfigLoader().load_config(str(config_file))

        assert config.logging.log_file == "/var/log/sync.log"

    def test_missing_environment_variable(self, tmp_path: Path, monkeypatch):
        config_file = tmp_path / "app.yaml"
        config_file.write_text("logging:\n  log_file: ${WINDOWSYNC_UNSET_VARIABLE}\n")
        monkeypatch.delenv("WINDOWSYNC_UNSET_VARIABLE", raising=False)

        with pytest.raises(ConfigurationError, match="WINDOWSYNC_UNSET_VARIABLE"):
            ConfigLoader().load_config(str(config_file))

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(ConfigurationError, match="not found"):
            ConfigLoader().load_config(str(tmp_path / "absent.yaml"))

    def test_missing_default_directory(self, tmp_path: Path):
        with pytest.raises(ConfigurationError):
            ConfigLoader(config_dir=tmp_path).load_config()

    def test_empty_file(self, tmp_path: Path):
        config_file = tmp_path / "empty.yaml"
        config_file.write_text("")

        with pytest.raises(ConfigurationError, match="empty"):
            ConfigLoader().load_config(str(config_file))

    def test_invalid_yaml(self, tmp_path: Path):
        config_file = tmp_path / "broken.yaml"
        config_file.write_text("sync: [unclosed\n")

        with pytest.raises(ConfigurationError, match="parse"):
            ConfigLoader().load_config(str(config_file))

    def test_invalid_values(self, tmp_path: Path):
        config_file = tmp_path / "invalid.yaml"
        config_file.write_text("sync:\n  max_range_length: -5\n")

        with pytest.raises(ConfigurationError, match="validation failed"):
            ConfigLoader().load_config(str(config_file))

    def test_bundled_default_config_loads(self):
        config = ConfigLoader().load_config(
            str(Path(__file__).parent.parent / "config" / "default.yaml")
        )

        assert config.sync == SyncConfig()

    def test_validate_config_warnings(self):
        config = AppConfig(sync=SyncConfig(max_range_length=None, clear_evicted_rows=False))

        warnings = ConfigLoader().validate_config(config)

        assert len(warnings) == 2
        assert any("max_range_length" in warning for warning in warnings)

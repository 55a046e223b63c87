#!/usr/bin/env python3
"""
Integration tests for configuration module.

Tests configuration loading, environment overrides and validation.
"""

from decimal import Decimal
from pathlib import Path

import pytest

from money_manager.core.config import (
    Environment,
    get_config,
    get_data_dir,
    is_development,
    is_production,
    is_test,
    reload_config,
)


@pytest.mark.integration
class TestConfigLoading:
    """Test configuration loading and structure."""

    def test_config_loads_in_test_environment(self, tmp_path):
        config = get_config()

        assert config.environment == Environment.TEST
        assert config.data_dir == tmp_path / "data"
        assert config.data_dir.exists()

    def test_ledger_file_lives_under_data_dir(self):
        config = get_config()

        assert config.storage.ledger_file == config.data_dir / "ledger" / "ledger.json"
        assert config.storage.backup_dir == config.data_dir / "backups"

    def test_defaults(self):
        config = get_config()

        assert config.default_currency == "CNY"
        assert config.importer.skip_duplicates is True
        assert config.importer.encoding == "utf-8"
        assert Decimal(config.stats.long_tail_ratio) == Decimal("0.025")
        assert config.stats.sparse_series_days == 365 * 5

    def test_environment_detection_functions(self):
        assert is_test() is True
        assert is_development() is False
        assert is_production() is False

    def test_get_data_dir_returns_path(self):
        assert isinstance(get_data_dir(), Path)

    def test_get_config_is_cached(self):
        assert get_config() is get_config()

    def test_to_dict(self):
        data = get_config().to_dict()

        assert data["environment"] == "test"
        assert data["stats"]["long_tail_ratio"] == "0.025"
        assert isinstance(data["storage"]["ledger_dir"], str)


@pytest.mark.integration
class TestConfigOverrides:
    """Test environment variable overrides and validation."""

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("IMPORT_SKIP_DUPLICATES", "false")
        monkeypatch.setenv("IMPORT_ENCODING", "gbk")
        monkeypatch.setenv("LONG_TAIL_RATIO", "0.05")
        monkeypatch.setenv("DEFAULT_CURRENCY", "USD")

        config = reload_config()

        assert config.importer.skip_duplicates is False
        assert config.importer.encoding == "gbk"
        assert config.stats.long_tail_ratio == "0.05"
        assert config.default_currency == "USD"

    @pytest.mark.parametrize(
        "name,value,message",
        [
            ("LONG_TAIL_RATIO", "1.5", "LONG_TAIL_RATIO must be between 0 and 1"),
            ("LONG_TAIL_RATIO", "lots", "LONG_TAIL_RATIO is not a number"),
            ("SPARSE_SERIES_DAYS", "0", "SPARSE_SERIES_DAYS must be positive"),
            ("IMPORT_ENCODING", "no-such-codec", "Unknown IMPORT_ENCODING"),
        ],
    )
    def test_invalid_values(self, monkeypatch, name, value, message):
        monkeypatch.setenv(name, value)

        with pytest.raises(ValueError, match=message):
            reload_config()

"""Tests for ConfigService and StoreConfig."""

from __future__ import annotations

import json
import sys

import pytest

from taskvault.errors import ValidationError
from taskvault.models import StoreConfig
from taskvault.services.config_service import ConfigService, get_config_service


class TestStoreConfig:
    def test_defaults(self):
        config = StoreConfig()
        assert config.db_path is None
        assert config.journal_mode == "WAL"
        assert config.operation_timeout == 10.0
        assert config.min_sort_gap == 1e-9

    def test_values_normalised(self):
        config = StoreConfig(journal_mode="delete", log_level="debug")
        assert config.journal_mode == "DELETE"
        assert config.log_level == "DEBUG"

    def test_invalid_values(self):
        with pytest.raises(ValueError):
            StoreConfig(log_level="LOUD")
        with pytest.raises(ValueError):
            StoreConfig(journal_mode="fast")
        with pytest.raises(ValueError):
            StoreConfig(lock_timeout=0)


class TestConfigService:
    def test_first_load_writes_defaults(self, tmp_path):
        service = ConfigService(tmp_path)
        assert service.store == StoreConfig()

        on_disk = json.loads((tmp_path / "config.json").read_text())
        assert on_disk["store"]["journal_mode"] == "WAL"

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions")
    def test_file_is_owner_only(self, tmp_path):
        ConfigService(tmp_path).load_config()
        assert (tmp_path / "config.json").stat().st_mode & 0o777 == 0o600

    def test_set_persists(self, tmp_path):
        ConfigService(tmp_path).set("lock_timeout", "5")

        reloaded = ConfigService(tmp_path)
        assert reloaded.get("lock_timeout") == 5.0

    def test_set_unknown_key(self, tmp_path):
        with pytest.raises(ValidationError, match="Unknown setting"):
            ConfigService(tmp_path).set("colour", "red")

    def test_get_unknown_key(self, tmp_path):
        with pytest.raises(ValidationError):
            ConfigService(tmp_path).get("colour")

    def test_set_invalid_value_leaves_config(self, tmp_path):
        service = ConfigService(tmp_path)
        with pytest.raises(ValidationError, match="busy_timeout"):
            service.set("busy_timeout", -1)
        assert service.get("busy_timeout") == 30.0

    def test_reset(self, tmp_path):
        service = ConfigService(tmp_path)
        service.set("min_sort_gap", 0.5)
        service.reset_config()
        assert ConfigService(tmp_path).get("min_sort_gap") == 1e-9

    def test_corrupt_file(self, tmp_path):
        (tmp_path / "config.json").write_text("{not json")
        with pytest.raises(RuntimeError, match="Failed to load config"):
            ConfigService(tmp_path).load_config()

    def test_cached_service_uses_platform_dir(self, tmp_dirs):
        service = get_config_service()
        assert service is get_config_service()
        assert service.config_path == tmp_dirs / "config" / "config.json"
        assert service.config_path.exists()

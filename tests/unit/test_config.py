"""Tests for environment configuration and its validation"""
import importlib
from pathlib import Path

import pytest

from loadgen import config
from loadgen.exceptions import ConfigurationError


@pytest.fixture
def reload_config(monkeypatch):
    """Reload loadgen.config under patched environment variables"""
    def _reload(**env):
        for key, value in env.items():
            monkeypatch.setenv(key, value)
        return importlib.reload(config)

    yield _reload

    monkeypatch.undo()
    importlib.reload(config)


class TestConfigLoading:
    """Test values read from the environment"""

    def test_defaults(self, reload_config, monkeypatch):
        """Test defaults when nothing is set"""
        for key in ("BASE_URL", "LOAD_PROFILE", "SEED_USER_ID", "RESULTS_DIR",
                    "ENABLE_PROMETHEUS", "PROMETHEUS_PORT"):
            monkeypatch.delenv(key, raising=False)
        cfg = reload_config()

        assert cfg.BASE_URL == "http://localhost:8080"
        assert cfg.LOAD_PROFILE == "load"
        assert cfg.SEED_USER_ID == 1
        assert cfg.RESULTS_DIR == Path(".")
        assert cfg.ENABLE_PROMETHEUS is False
        assert cfg.PROMETHEUS_PORT == 9646

    def test_overrides(self, reload_config):
        cfg = reload_config(
            BASE_URL="http://nginx-thrift.socialnet.svc:8080/",
            LOAD_PROFILE="stress",
            SEED_USER_ID="5",
            RESULTS_DIR="/tmp/results",
            ENABLE_PROMETHEUS="True",
            PROMETHEUS_PORT="9100",
        )

        # Trailing slash stripped so paths join cleanly
        assert cfg.BASE_URL == "http://nginx-thrift.socialnet.svc:8080"
        assert cfg.LOAD_PROFILE == "stress"
        assert cfg.SEED_USER_ID == 5
        assert cfg.RESULTS_DIR == Path("/tmp/results")
        assert cfg.ENABLE_PROMETHEUS is True
        assert cfg.PROMETHEUS_PORT == 9100


class TestConfigValidation:
    """Test validate_config against bad settings"""

    def test_valid_configuration(self, monkeypatch):
        monkeypatch.setattr(config, "BASE_URL", "http://localhost:8080")
        monkeypatch.setattr(config, "LOAD_PROFILE", "sweet")
        monkeypatch.setattr(config, "SEED_USER_ID", 1)
        monkeypatch.setattr(config, "PROMETHEUS_PORT", 9646)
        config.validate_config()

    @pytest.mark.parametrize("url", ["localhost:8080", "ftp://host", "http://", ""])
    def test_bad_base_url(self, monkeypatch, url):
        monkeypatch.setattr(config, "BASE_URL", url)
        with pytest.raises(ConfigurationError) as exc_info:
            config.validate_config()
        assert exc_info.value.config_key == "BASE_URL"

    def test_unknown_profile(self, monkeypatch):
        monkeypatch.setattr(config, "BASE_URL", "http://localhost:8080")
        monkeypatch.setattr(config, "LOAD_PROFILE", "hammer")
        with pytest.raises(ConfigurationError) as exc_info:
            config.validate_config()
        assert exc_info.value.config_key == "LOAD_PROFILE"
        assert "stress" in str(exc_info.value)

    def test_negative_seed_user(self, monkeypatch):
        monkeypatch.setattr(config, "BASE_URL", "http://localhost:8080")
        monkeypatch.setattr(config, "LOAD_PROFILE", "load")
        monkeypatch.setattr(config, "SEED_USER_ID", -1)
        with pytest.raises(ConfigurationError) as exc_info:
            config.validate_config()
        assert exc_info.value.config_key == "SEED_USER_ID"

    @pytest.mark.parametrize("port", [0, 70000])
    def test_bad_prometheus_port(self, monkeypatch, port):
        monkeypatch.setattr(config, "BASE_URL", "http://localhost:8080")
        monkeypatch.setattr(config, "LOAD_PROFILE", "load")
        monkeypatch.setattr(config, "SEED_USER_ID", 1)
        monkeypatch.setattr(config, "PROMETHEUS_PORT", port)
        with pytest.raises(ConfigurationError):
            config.validate_config()

"""Unit tests for configuration loading and parsing"""

import pytest
from pathlib import Path

from displayadjust.common.config import (
    DEFAULT_LOG_FORMAT,
    AdjustmentConfig,
    BackendConfig,
    Config,
    ConfigLoader,
)


class TestConfigLoaderYAMLLoading:
    """Test YAML file loading"""

    def test_yaml_load_valid_file(self, tmp_path):
        """Test loading valid YAML file"""
        config_file = tmp_path / "test.yml"
        config_file.write_text(
            """
backend:
  name: x11
  display: ":1"
"""
        )

        data = ConfigLoader.yaml_load(config_file)
        assert isinstance(data, dict)
        assert data["backend"]["display"] == ":1"

    def test_yaml_load_missing_file_raises(self):
        """Test loading non-existent file raises FileNotFoundError"""
        with pytest.raises(FileNotFoundError):
            ConfigLoader.yaml_load(Path("/nonexistent/config.yml"))

    def test_yaml_load_invalid_yaml_raises(self, tmp_path):
        """Test loading invalid YAML raises error"""
        config_file = tmp_path / "invalid.yml"
        config_file.write_text("invalid: yaml: content: [unclosed")

        with pytest.raises(Exception):  # yaml.YAMLError or similar
            ConfigLoader.yaml_load(config_file)

    def test_yaml_load_non_dict_raises(self, tmp_path):
        """Test loading YAML that isn't a dict raises ValueError"""
        config_file = tmp_path / "list.yml"
        config_file.write_text("- item1\n- item2")

        with pytest.raises(ValueError, match="must contain a YAML dictionary"):
            ConfigLoader.yaml_load(config_file)


class TestConfigLoaderParsing:
    """Test configuration dictionary parsing"""

    def test_config_parse_empty_uses_defaults(self):
        """Test every section is optional"""
        config = ConfigLoader.config_parse({})

        assert isinstance(config, Config)
        assert config.backend == BackendConfig()
        assert config.adjustment == AdjustmentConfig()
        assert config.logging.level == "INFO"
        assert config.logging.file is None
        assert config.logging.format == DEFAULT_LOG_FORMAT

    def test_config_parse_full(self):
        """Test parsing a fully specified config"""
        data = {
            "backend": {"name": "X11", "display": ":0", "window_id": "0x3a00007"},
            "adjustment": {
                "poll_interval_ms": 5,
                "max_poll_attempts": 200,
                "timeout_seconds": 2.5,
                "confirmation_seconds": 15,
            },
            "logging": {"level": "DEBUG", "file": "adjust.log", "format": "%(message)s"},
        }

        config = ConfigLoader.config_parse(data)

        assert config.backend.name == "x11"
        assert config.backend.display == ":0"
        assert config.backend.window_id == 0x3A00007
        assert config.adjustment.poll_interval_ms == 5
        assert config.adjustment.max_poll_attempts == 200
        assert config.adjustment.timeout_seconds == 2.5
        assert config.adjustment.confirmation_seconds == 15
        assert config.logging.level == "DEBUG"
        assert config.logging.file == "adjust.log"

    def test_config_parse_window_id_as_int(self):
        """Test integer window ids are kept as-is"""
        config = ConfigLoader.config_parse({"backend": {"window_id": 1234}})
        assert config.backend.window_id == 1234

    def test_config_parse_unknown_backend_raises(self):
        """Test unsupported backend names are rejected"""
        with pytest.raises(ValueError, match="Unsupported backend 'wayland'"):
            ConfigLoader.config_parse({"backend": {"name": "wayland"}})

    def test_config_parse_negative_interval_raises(self):
        """Test negative poll interval is rejected"""
        with pytest.raises(ValueError, match="poll_interval_ms"):
            ConfigLoader.config_parse({"adjustment": {"poll_interval_ms": -1}})

    def test_config_parse_zero_poll_attempts_raises(self):
        """Test a poll guard below one attempt is rejected"""
        with pytest.raises(ValueError, match="max_poll_attempts"):
            ConfigLoader.config_parse({"adjustment": {"max_poll_attempts": 0}})

    def test_config_parse_non_positive_timeout_raises(self):
        """Test a non-positive timeout is rejected"""
        with pytest.raises(ValueError, match="timeout_seconds"):
            ConfigLoader.config_parse({"adjustment": {"timeout_seconds": 0}})


class TestConfigLoaderLoad:
    """Test loading from files and applying overrides"""

    def test_config_load_explicit_path(self, tmp_path):
        """Test loading from an explicit path"""
        config_file = tmp_path / "config.yml"
        config_file.write_text("adjustment:\n  poll_interval_ms: 33\n")

        config = ConfigLoader.config_load(config_file)
        assert config.adjustment.poll_interval_ms == 33

    def test_config_load_not_found_raises(self, tmp_path, monkeypatch):
        """Test FileNotFoundError when nothing is found in standard locations"""
        monkeypatch.setattr(ConfigLoader, "configFile_find", staticmethod(lambda: None))

        with pytest.raises(FileNotFoundError, match="Config file not found"):
            ConfigLoader.config_load()

    def test_overrides_fall_back_to_defaults(self, monkeypatch):
        """Test overrides apply over defaults when no config file exists"""
        monkeypatch.setattr(ConfigLoader, "configFile_find", staticmethod(lambda: None))

        config = ConfigLoader.configWithOverrides_load(
            display=":2", timeout_seconds=4.0, poll_interval_ms=8
        )

        assert config.backend.display == ":2"
        assert config.adjustment.timeout_seconds == 4.0
        assert config.adjustment.poll_interval_ms == 8

    def test_overrides_none_values_ignored(self, tmp_path):
        """Test None overrides keep file values"""
        config_file = tmp_path / "config.yml"
        config_file.write_text("backend:\n  display: ':5'\n")

        config = ConfigLoader.configWithOverrides_load(config_file, display=None, backend=None)
        assert config.backend.display == ":5"

    def test_overrides_unknown_backend_raises(self, monkeypatch):
        """Test an unsupported backend override is rejected"""
        monkeypatch.setattr(ConfigLoader, "configFile_find", staticmethod(lambda: None))

        with pytest.raises(ValueError, match="Unsupported backend"):
            ConfigLoader.configWithOverrides_load(backend="wayland")

    def test_sample_config_parses(self, sample_config):
        """Test the repository sample config is valid"""
        assert sample_config.backend.name == "x11"
        assert sample_config.adjustment.poll_interval_ms == 16

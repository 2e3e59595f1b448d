"""Tests for configuration management."""

import json
import tomllib
from pathlib import Path

import pytest
import yaml

from phantom_bridge.config import (
    CONFIG_DIR,
    CONFIG_FILE,
    DEFAULT_PORT,
    BridgeConfig,
    LoggingConfig,
    ProcessConfig,
    ValidationError,
    clear_config_cache,
    export_config_json,
    export_config_yaml,
    get_config,
    load_config,
    save_config,
    set_config,
    validate_config,
)
from phantom_bridge.errors import ConfigurationError


class TestConfigConstants:
    """Test configuration constants."""

    def test_default_config_dir(self):
        """Test default config directory."""
        assert CONFIG_DIR == Path.home() / ".config" / "phantom-bridge"

    def test_default_config_file(self):
        """Test default config file."""
        assert CONFIG_FILE == "config.toml"


class TestValidationError:
    """Test ValidationError dataclass."""

    def test_validation_error_str(self):
        """Test ValidationError string representation."""
        error = ValidationError(field="process.port", message="bad port", severity="error")
        assert str(error) == "[ERROR] process.port: bad port"


class TestProcessConfig:
    """Test ProcessConfig dataclass."""

    def test_defaults(self):
        """Test default process settings."""
        config = ProcessConfig()
        assert config.engine == "phantomjs"
        assert config.bin_path is None
        assert config.port == DEFAULT_PORT
        assert config.startup_timeout == 30.0
        assert config.probe_interval == 1.0
        assert config.request_timeout is None

    def test_url(self):
        """Test the dispatcher URL."""
        assert ProcessConfig(port=8910).url == "http://localhost:8910"

    def test_subprocess_env_filters_host_env(self, monkeypatch):
        """Test that only allow-listed and prefixed variables pass through."""
        monkeypatch.setenv("PATH", "/usr/bin")
        monkeypatch.setenv("PHANTOM_BRIDGE_TRACE", "1")
        monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "nope")

        env = ProcessConfig(env_vars={"EXTRA": "yes"}).subprocess_env()

        assert env["PATH"] == "/usr/bin"
        assert env["PHANTOM_BRIDGE_TRACE"] == "1"
        assert env["EXTRA"] == "yes"
        assert "AWS_SECRET_ACCESS_KEY" not in env

    def test_subprocess_env_extras_override(self, monkeypatch):
        """Test that configured variables win over host ones."""
        monkeypatch.setenv("LANG", "C")

        env = ProcessConfig(env_vars={"LANG": "en_US.UTF-8"}).subprocess_env()

        assert env["LANG"] == "en_US.UTF-8"


class TestConfigLoading:
    """Test configuration loading."""

    def test_load_default_config(self, isolated_config):
        """Test loading default config when no file exists."""
        config = load_config(isolated_config / "nonexistent.toml")

        assert isinstance(config, BridgeConfig)
        assert config.process.port == DEFAULT_PORT

    def test_load_from_file(self, isolated_config):
        """Test loading config from a file."""
        config_path = isolated_config / "config.toml"
        config_path.write_text(
            """
[process]
engine = "python"
port = 30303
startup_timeout = 5.0

[process.env_vars]
LOG_LEVEL = "DEBUG"

[logging]
level = "INFO"
file = "/tmp/phantom-bridge.log"
"""
        )

        config = load_config(config_path)

        assert config.process.engine == "python"
        assert config.process.port == 30303
        assert config.process.startup_timeout == 5.0
        assert config.process.env_vars == {"LOG_LEVEL": "DEBUG"}
        assert config.logging.level == "INFO"
        assert config.logging.file == Path("/tmp/phantom-bridge.log")

    def test_config_dir_from_env(self, isolated_config):
        """Test that the config directory can be moved by env var."""
        (isolated_config / CONFIG_FILE).write_text("[process]\nport = 40404\n")

        config = load_config()

        assert config.config_dir == isolated_config
        assert config.process.port == 40404

    def test_env_overrides_file(self, isolated_config, monkeypatch):
        """Test that environment variables win over the file."""
        config_path = isolated_config / "config.toml"
        config_path.write_text("[process]\nport = 30303\n")
        monkeypatch.setenv("PHANTOM_BRIDGE_PORT", "31313")
        monkeypatch.setenv("PHANTOM_BRIDGE_ENGINE", "PYTHON")
        monkeypatch.setenv("PHANTOM_BRIDGE_REQUEST_TIMEOUT", "2.5")
        monkeypatch.setenv("PHANTOM_BRIDGE_LOG_LEVEL", "debug")

        config = load_config(config_path)

        assert config.process.port == 31313
        assert config.process.engine == "python"
        assert config.process.request_timeout == 2.5
        assert config.logging.level == "DEBUG"

    def test_invalid_env_value(self, isolated_config, monkeypatch):
        """Test that an unparseable env value is a configuration error."""
        monkeypatch.setenv("PHANTOM_BRIDGE_PORT", "eighty")

        with pytest.raises(ConfigurationError, match="PHANTOM_BRIDGE_PORT"):
            load_config(isolated_config / "missing.toml")

    def test_invalid_toml(self, isolated_config):
        """Test that a malformed file is a configuration error."""
        config_path = isolated_config / "config.toml"
        config_path.write_text("[process\nport = ")

        with pytest.raises(ConfigurationError):
            load_config(config_path)

    def test_section_must_be_table(self, isolated_config):
        """Test that a section given as a plain value is a configuration error."""
        config_path = isolated_config / "config.toml"
        config_path.write_text("process = 5\n")

        with pytest.raises(ConfigurationError, match=r"\[process\]"):
            load_config(config_path)

    def test_unknown_key_ignored(self, isolated_config, caplog):
        """Test that unknown keys are skipped with a warning."""
        config_path = isolated_config / "config.toml"
        config_path.write_text("[process]\ncolour = \"blue\"\n")

        config = load_config(config_path)

        assert not hasattr(config.process, "colour")
        assert "process.colour" in caplog.text


class TestConfigSaving:
    """Test configuration saving."""

    def test_save_and_reload(self, isolated_config):
        """Test that a saved config loads back with the same values."""
        config = BridgeConfig(config_dir=isolated_config)
        config.process.engine = "python"
        config.process.port = 25252
        config.process.env_vars = {"LOG_LEVEL": "INFO"}
        config_path = isolated_config / "nested" / "config.toml"

        save_config(config, config_path)
        loaded = load_config(config_path)

        assert loaded.process.engine == "python"
        assert loaded.process.port == 25252
        assert loaded.process.env_vars == {"LOG_LEVEL": "INFO"}

    def test_save_omits_unset_values(self, isolated_config):
        """Test that None values are left out of the TOML file."""
        config_path = isolated_config / "config.toml"

        save_config(BridgeConfig(config_dir=isolated_config), config_path)

        with open(config_path, "rb") as f:
            data = tomllib.load(f)
        assert "bin_path" not in data["process"]
        assert "request_timeout" not in data["process"]
        assert "file" not in data["logging"]

    def test_save_default_path(self, isolated_config):
        """Test saving into the config directory."""
        save_config(BridgeConfig(config_dir=isolated_config))

        assert (isolated_config / CONFIG_FILE).exists()


class TestConfigExport:
    """Test configuration export."""

    def test_export_json(self):
        """Test JSON export."""
        data = json.loads(export_config_json(BridgeConfig()))

        assert data["process"]["port"] == DEFAULT_PORT
        assert data["process"]["bin_path"] is None

    def test_export_yaml(self):
        """Test YAML export."""
        data = yaml.safe_load(export_config_yaml(BridgeConfig()))

        assert data["process"]["engine"] == "phantomjs"
        assert data["logging"]["level"] == "WARNING"


class TestConfigValidation:
    """Test configuration validation."""

    def test_defaults_are_valid(self):
        """Test that the default configuration has no errors."""
        assert validate_config(BridgeConfig()) == []

    def test_unknown_engine(self):
        """Test that an unknown engine is an error."""
        config = BridgeConfig(process=ProcessConfig(engine="rhino"))

        errors = validate_config(config)

        assert [e.field for e in errors] == ["process.engine"]
        assert errors[0].severity == "error"

    def test_port_out_of_range(self):
        """Test that ports outside 1-65535 are errors."""
        for port in (0, 70000):
            errors = validate_config(BridgeConfig(process=ProcessConfig(port=port)))
            assert any(e.field == "process.port" and e.severity == "error" for e in errors)

    def test_privileged_port_warning(self):
        """Test that a privileged port only warns."""
        errors = validate_config(BridgeConfig(process=ProcessConfig(port=80)))

        assert [(e.field, e.severity) for e in errors] == [("process.port", "warning")]

    def test_non_positive_timeouts(self):
        """Test that zero or negative timeouts are errors."""
        config = BridgeConfig(
            process=ProcessConfig(startup_timeout=0, probe_interval=-1, request_timeout=0)
        )

        fields = {e.field for e in validate_config(config) if e.severity == "error"}

        assert fields == {
            "process.startup_timeout",
            "process.probe_interval",
            "process.request_timeout",
        }

    def test_interval_longer_than_timeout_warns(self):
        """Test that an interval above the startup timeout warns."""
        config = BridgeConfig(process=ProcessConfig(startup_timeout=1.0, probe_interval=5.0))

        errors = validate_config(config)

        assert [(e.field, e.severity) for e in errors] == [("process.probe_interval", "warning")]

    def test_unknown_log_level(self):
        """Test that an unknown log level is an error."""
        config = BridgeConfig(logging=LoggingConfig(level="LOUD"))

        assert [e.field for e in validate_config(config)] == ["logging.level"]


class TestGlobalConfig:
    """Test the cached global configuration."""

    def test_get_config_caches(self, isolated_config):
        """Test that get_config returns the same instance until cleared."""
        first = get_config()

        assert get_config() is first

        clear_config_cache()
        assert get_config() is not first

    def test_set_config(self, isolated_config):
        """Test replacing the global configuration."""
        config = BridgeConfig(process=ProcessConfig(port=12345))

        set_config(config)

        assert get_config() is config

"""
phantom-bridge configuration management.

Handles loading, saving, and validating configuration from various sources:
- Default values
- Configuration file (TOML)
- Environment variables
"""

from __future__ import annotations

import json
import logging
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, List

import tomli_w
import yaml

from phantom_bridge.errors import ConfigurationError

logger = logging.getLogger(__name__)


# Configuration directory and file constants
CONFIG_DIR = Path.home() / ".config" / "phantom-bridge"
CONFIG_FILE = "config.toml"

DEFAULT_PORT = 20202
DEFAULT_ENGINE = "phantomjs"
KNOWN_ENGINES = ("phantomjs", "python")

ENV_PREFIX = "PHANTOM_BRIDGE_"

# Host variables handed to the engine subprocess besides PORT
PASSTHROUGH_ENV_VARS = ("PATH", "HOME", "USER", "LANG", "TMPDIR", "PYTHONPATH", "LOG_LEVEL")


@dataclass
class ValidationError:
    """Validation error for configuration."""
    field: str
    message: str
    severity: str  # "error" or "warning"

    def __str__(self) -> str:
        return f"[{self.severity.upper()}] {self.field}: {self.message}"


@dataclass
class ProcessConfig:
    """Configuration for the supervised engine process."""

    # Engine that runs the dispatcher: "phantomjs" or "python"
    engine: str = DEFAULT_ENGINE

    # Path to the engine binary (discovered if not specified)
    bin_path: Optional[str] = None

    # HTTP port the dispatcher listens on
    port: int = DEFAULT_PORT

    # Readiness probing (seconds)
    startup_timeout: float = 30.0
    probe_interval: float = 1.0

    # Per-request timeout (seconds); None lets calls block indefinitely
    request_timeout: Optional[float] = None

    # Extra environment variables for the subprocess
    env_vars: dict[str, str] = field(default_factory=dict)

    @property
    def url(self) -> str:
        return f"http://localhost:{self.port}"

    def subprocess_env(self) -> dict[str, str]:
        """Environment for the engine: pass-through host vars plus extras."""
        env = {
            key: value
            for key, value in os.environ.items()
            if key in PASSTHROUGH_ENV_VARS or key.startswith(ENV_PREFIX)
        }
        env.update(self.env_vars)
        return env


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = "WARNING"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file: Optional[Path] = None


@dataclass
class BridgeConfig:
    """Main configuration container."""

    config_dir: Path = CONFIG_DIR
    process: ProcessConfig = field(default_factory=ProcessConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(
    config_path: Optional[Path] = None,
    env_prefix: str = ENV_PREFIX,
) -> BridgeConfig:
    """
    Load configuration from file and environment variables.

    Priority (highest to lowest):
    1. Environment variables
    2. Config file
    3. Default values

    Args:
        config_path: Path to config file (default: ~/.config/phantom-bridge/config.toml)
        env_prefix: Prefix for environment variables

    Returns:
        Loaded configuration

    Raises:
        ConfigurationError: If the file or an environment value cannot be parsed
    """
    config = BridgeConfig()

    if config_path is None:
        env_config_dir = os.environ.get(f"{env_prefix}CONFIG_DIR")
        if env_config_dir:
            config.config_dir = Path(env_config_dir)
        config_path = config.config_dir / CONFIG_FILE

    if config_path.exists():
        config = _load_from_file(config_path, config)

    return _load_from_env(config, env_prefix)


def _load_from_file(path: Path, config: BridgeConfig) -> BridgeConfig:
    """Load configuration from a TOML file."""
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ConfigurationError(
            f"Failed to load config from {path}: {e}",
            details={"path": str(path)},
        ) from e

    for section in ("process", "logging"):
        if section in data and not isinstance(data[section], dict):
            raise ConfigurationError(
                f"Config section [{section}] in {path} must be a table",
                details={"path": str(path)},
            )

    if "process" in data:
        for key, value in data["process"].items():
            if hasattr(config.process, key):
                setattr(config.process, key, value)
            else:
                logger.warning(f"Ignoring unknown config key: process.{key}")

    if "logging" in data:
        for key, value in data["logging"].items():
            if key == "file":
                config.logging.file = Path(value) if value else None
            elif hasattr(config.logging, key):
                setattr(config.logging, key, value)
            else:
                logger.warning(f"Ignoring unknown config key: logging.{key}")

    if "config_dir" in data:
        config.config_dir = Path(data["config_dir"])

    return config


def _parse_env(name: str, value: str, convert: Any) -> Any:
    try:
        return convert(value)
    except ValueError as e:
        raise ConfigurationError(
            f"Invalid value for {name}: {value!r}",
            details={"variable": name},
        ) from e


def _load_from_env(config: BridgeConfig, prefix: str) -> BridgeConfig:
    """Load configuration from environment variables."""

    if env_val := os.environ.get(f"{prefix}ENGINE"):
        config.process.engine = env_val.lower()
    if env_val := os.environ.get(f"{prefix}BIN_PATH"):
        config.process.bin_path = env_val
    if env_val := os.environ.get(f"{prefix}PORT"):
        config.process.port = _parse_env(f"{prefix}PORT", env_val, int)
    if env_val := os.environ.get(f"{prefix}STARTUP_TIMEOUT"):
        config.process.startup_timeout = _parse_env(f"{prefix}STARTUP_TIMEOUT", env_val, float)
    if env_val := os.environ.get(f"{prefix}PROBE_INTERVAL"):
        config.process.probe_interval = _parse_env(f"{prefix}PROBE_INTERVAL", env_val, float)
    if env_val := os.environ.get(f"{prefix}REQUEST_TIMEOUT"):
        config.process.request_timeout = _parse_env(f"{prefix}REQUEST_TIMEOUT", env_val, float)

    # Logging settings
    if env_val := os.environ.get(f"{prefix}LOG_LEVEL"):
        config.logging.level = env_val.upper()
    if env_val := os.environ.get(f"{prefix}LOG_FILE"):
        config.logging.file = Path(env_val)

    return config


def save_config(config: BridgeConfig, path: Optional[Path] = None) -> None:
    """
    Save configuration to a TOML file.

    Args:
        config: Configuration to save
        path: Path to save to (default: config.config_dir / config.toml)
    """
    if path is None:
        path = config.config_dir / CONFIG_FILE

    path.parent.mkdir(parents=True, exist_ok=True)

    # TOML has no null, so unset optional values are left out
    data = _config_to_dict(config)
    data["process"] = {k: v for k, v in data["process"].items() if v is not None}
    data["logging"] = {k: v for k, v in data["logging"].items() if v is not None}

    with open(path, "wb") as f:
        tomli_w.dump(data, f)


def _config_to_dict(config: BridgeConfig) -> dict[str, Any]:
    """Convert configuration to a plain dictionary."""
    return {
        "config_dir": str(config.config_dir),
        "process": {
            "engine": config.process.engine,
            "bin_path": config.process.bin_path,
            "port": config.process.port,
            "startup_timeout": config.process.startup_timeout,
            "probe_interval": config.process.probe_interval,
            "request_timeout": config.process.request_timeout,
            "env_vars": dict(config.process.env_vars),
        },
        "logging": {
            "level": config.logging.level,
            "format": config.logging.format,
            "file": str(config.logging.file) if config.logging.file else None,
        },
    }


def export_config_yaml(config: BridgeConfig) -> str:
    """Export configuration as YAML string."""
    return yaml.safe_dump(_config_to_dict(config), default_flow_style=False, sort_keys=False)


def export_config_json(config: BridgeConfig) -> str:
    """Export configuration as JSON string."""
    return json.dumps(_config_to_dict(config), indent=2)


def validate_config(config: Optional[BridgeConfig] = None) -> List[ValidationError]:
    """
    Validate configuration and return list of errors.

    Args:
        config: Configuration to validate (default: loaded from file)

    Returns:
        List of validation errors (empty if valid)
    """
    if config is None:
        config = load_config()

    errors: List[ValidationError] = []
    process = config.process

    if process.engine not in KNOWN_ENGINES:
        errors.append(ValidationError(
            field="process.engine",
            message=f"Unknown engine: {process.engine} (expected one of: {', '.join(KNOWN_ENGINES)})",
            severity="error",
        ))

    if not isinstance(process.port, int) or not 0 < process.port < 65536:
        errors.append(ValidationError(
            field="process.port",
            message=f"Port out of range: {process.port}",
            severity="error",
        ))
    elif process.port < 1024:
        errors.append(ValidationError(
            field="process.port",
            message=f"Port {process.port} is privileged; the engine may fail to bind it",
            severity="warning",
        ))

    if process.startup_timeout <= 0:
        errors.append(ValidationError(
            field="process.startup_timeout",
            message="Startup timeout must be positive",
            severity="error",
        ))

    if process.probe_interval <= 0:
        errors.append(ValidationError(
            field="process.probe_interval",
            message="Probe interval must be positive",
            severity="error",
        ))
    elif process.probe_interval > process.startup_timeout:
        errors.append(ValidationError(
            field="process.probe_interval",
            message="Probe interval is longer than the startup timeout; only one probe will run",
            severity="warning",
        ))

    if process.request_timeout is not None and process.request_timeout <= 0:
        errors.append(ValidationError(
            field="process.request_timeout",
            message="Request timeout must be positive when set",
            severity="error",
        ))

    if config.logging.level.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        errors.append(ValidationError(
            field="logging.level",
            message=f"Unknown log level: {config.logging.level}",
            severity="error",
        ))

    return errors


# Global configuration instance (lazy-loaded)
_global_config: Optional[BridgeConfig] = None


def get_config() -> BridgeConfig:
    """Get the global configuration instance."""
    global _global_config
    if _global_config is None:
        _global_config = load_config()
    return _global_config


def set_config(config: BridgeConfig) -> None:
    """Set the global configuration instance."""
    global _global_config
    _global_config = config


def clear_config_cache() -> None:
    """Clear the global configuration cache."""
    global _global_config
    _global_config = None

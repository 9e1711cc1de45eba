"""Configuration file loading and management"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

SUPPORTED_BACKENDS = ("x11",)

DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass
class BackendConfig:
    """Display backend selection"""
    name: str = "x11"
    display: Optional[str] = None
    window_id: Optional[int] = None  # None means the active window


@dataclass
class AdjustmentConfig:
    """Convergence polling and confirmation settings"""
    poll_interval_ms: int = 16
    max_poll_attempts: Optional[int] = None
    timeout_seconds: Optional[float] = None
    confirmation_seconds: int = 10


@dataclass
class LoggingConfig:
    """Logging configuration settings"""
    level: str = "INFO"
    file: Optional[str] = None
    format: str = DEFAULT_LOG_FORMAT


@dataclass
class Config:
    """Complete application configuration"""
    backend: BackendConfig
    adjustment: AdjustmentConfig
    logging: LoggingConfig


class ConfigLoader:
    """Loads and parses configuration from YAML files"""

    DEFAULT_CONFIG_PATHS = [
        "config.yml",
        "~/.config/displayadjust/config.yml",
        "/etc/displayadjust/config.yml",
    ]

    @staticmethod
    def configFile_find() -> Optional[Path]:
        """
        Find configuration file in standard locations

        Returns:
            Path to config file, or None if not found
        """
        for config_path in ConfigLoader.DEFAULT_CONFIG_PATHS:
            path = Path(config_path).expanduser().resolve()
            if path.exists() and path.is_file():
                return path
        return None

    @staticmethod
    def yaml_load(file_path: Path) -> Dict[str, Any]:
        """
        Load YAML configuration file

        Args:
            file_path: Path to YAML file

        Returns:
            Parsed configuration dictionary

        Raises:
            FileNotFoundError: If file does not exist
            yaml.YAMLError: If file is not valid YAML
        """
        with open(file_path, "r") as f:
            data = yaml.safe_load(f)

        if not isinstance(data, dict):
            raise ValueError(f"Config file {file_path} must contain a YAML dictionary")

        return data

    @staticmethod
    def windowId_parse(value: Any) -> Optional[int]:
        """
        Parse an X11 window id given as int or hex/decimal string

        Args:
            value: Raw config value

        Returns:
            Window id, or None when unset
        """
        if value is None:
            return None
        if isinstance(value, int):
            return value
        return int(str(value), 0)

    @staticmethod
    def config_parse(data: Dict[str, Any]) -> Config:
        """
        Parse configuration dictionary into Config object

        Every section is optional; missing keys take dataclass defaults.

        Args:
            data: Raw configuration dictionary

        Returns:
            Parsed Config object

        Raises:
            ValueError: If a value is out of range or names an unknown backend
        """
        # Parse backend config
        backend_data = data.get("backend") or {}
        backend = BackendConfig(
            name=str(backend_data.get("name", "x11")).lower(),
            display=backend_data.get("display"),
            window_id=ConfigLoader.windowId_parse(backend_data.get("window_id")),
        )
        if backend.name not in SUPPORTED_BACKENDS:
            raise ValueError(
                f"Unsupported backend '{backend.name}'. Supported: {', '.join(SUPPORTED_BACKENDS)}."
            )

        # Parse adjustment config
        adjustment_data = data.get("adjustment") or {}
        adjustment = AdjustmentConfig(
            poll_interval_ms=int(adjustment_data.get("poll_interval_ms", 16)),
            max_poll_attempts=adjustment_data.get("max_poll_attempts"),
            timeout_seconds=adjustment_data.get("timeout_seconds"),
            confirmation_seconds=int(adjustment_data.get("confirmation_seconds", 10)),
        )
        if adjustment.poll_interval_ms < 0:
            raise ValueError("adjustment.poll_interval_ms must not be negative")
        if adjustment.max_poll_attempts is not None and adjustment.max_poll_attempts < 1:
            raise ValueError("adjustment.max_poll_attempts must be at least 1")
        if adjustment.timeout_seconds is not None and adjustment.timeout_seconds <= 0:
            raise ValueError("adjustment.timeout_seconds must be positive")

        # Parse logging config
        logging_data = data.get("logging") or {}
        logging = LoggingConfig(
            level=logging_data.get("level", "INFO"),
            file=logging_data.get("file"),
            format=logging_data.get("format", DEFAULT_LOG_FORMAT),
        )

        return Config(
            backend=backend,
            adjustment=adjustment,
            logging=logging,
        )

    @staticmethod
    def config_load(file_path: Optional[Path] = None) -> Config:
        """
        Load configuration from file

        Args:
            file_path: Optional path to config file. If None, searches standard locations.

        Returns:
            Parsed Config object

        Raises:
            FileNotFoundError: If config file not found
            ValueError: If config file is invalid
        """
        if file_path is None:
            file_path = ConfigLoader.configFile_find()
            if file_path is None:
                raise FileNotFoundError(
                    f"Config file not found in standard locations: "
                    f"{ConfigLoader.DEFAULT_CONFIG_PATHS}"
                )

        data = ConfigLoader.yaml_load(file_path)
        return ConfigLoader.config_parse(data)

    @staticmethod
    def configWithOverrides_load(
        file_path: Optional[Path] = None,
        **overrides: Any
    ) -> Config:
        """
        Load configuration and apply command-line overrides

        Falls back to built-in defaults when no file is given and none
        is found in the standard locations.

        Args:
            file_path: Optional path to config file
            **overrides: Key-value pairs to override config values

        Returns:
            Config object with overrides applied

        Example:
            config = ConfigLoader.configWithOverrides_load(
                display=":1",
                timeout_seconds=5.0
            )
        """
        if file_path is None and ConfigLoader.configFile_find() is None:
            config = ConfigLoader.config_parse({})
        else:
            config = ConfigLoader.config_load(file_path)

        if overrides.get("backend") is not None:
            backend_name = str(overrides["backend"]).lower()
            if backend_name not in SUPPORTED_BACKENDS:
                raise ValueError(
                    f"Unsupported backend '{backend_name}'. "
                    f"Supported: {', '.join(SUPPORTED_BACKENDS)}."
                )
            config.backend.name = backend_name
        if overrides.get("display") is not None:
            config.backend.display = overrides["display"]
        if overrides.get("poll_interval_ms") is not None:
            config.adjustment.poll_interval_ms = overrides["poll_interval_ms"]
        if overrides.get("timeout_seconds") is not None:
            config.adjustment.timeout_seconds = overrides["timeout_seconds"]

        return config

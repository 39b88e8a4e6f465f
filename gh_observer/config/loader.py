"""Configuration loading.

The loading hierarchy is:
1. Default values from Pydantic models
2. Configuration file (YAML), if one is found
3. Runtime overrides (command-line flags)

A missing configuration file is not an error; a file that exists but cannot
be parsed or validated is.
"""

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .exceptions import ConfigurationFileError, ConfigurationValidationError
from .models import ObserverConfig

logger = logging.getLogger(__name__)

CONFIG_PATH_ENV_VAR = "GH_OBSERVER_CONFIG_PATH"
CONFIG_FILENAME = "config.yaml"


class ConfigurationLoader:
    """Handles loading and validation of configuration from various sources."""

    def __init__(self) -> None:
        """Initialize configuration loader."""
        self._config: ObserverConfig | None = None
        self._config_file_path: Path | None = None

    def load_from_file(self, config_path: str | Path) -> ObserverConfig:
        """Load configuration from a YAML file.

        Args:
            config_path: Path to the YAML configuration file

        Returns:
            Loaded and validated configuration

        Raises:
            ConfigurationFileError: If file cannot be read or parsed
            ConfigurationValidationError: If configuration validation fails
        """
        config_path = Path(config_path)

        if not config_path.exists():
            raise ConfigurationFileError(
                f"Configuration file not found: {config_path}",
                file_path=str(config_path),
            )

        if not config_path.is_file():
            raise ConfigurationFileError(
                f"Configuration path is not a file: {config_path}",
                file_path=str(config_path),
            )

        try:
            with open(config_path, encoding="utf-8") as f:
                config_data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationFileError(
                f"Failed to parse YAML configuration: {e}", file_path=str(config_path)
            ) from e
        except OSError as e:
            raise ConfigurationFileError(
                f"Failed to read configuration file: {e}", file_path=str(config_path)
            ) from e

        if config_data is None:
            config_data = {}
        if not isinstance(config_data, dict):
            raise ConfigurationFileError(
                "Configuration file must contain a mapping", file_path=str(config_path)
            )

        self._config = self.load_from_dict(config_data)
        self._config_file_path = config_path.resolve()
        logger.debug(f"Loaded configuration from {self._config_file_path}")
        return self._config

    def load_from_dict(self, config_data: dict[str, Any]) -> ObserverConfig:
        """Load configuration from a dictionary.

        Raises:
            ConfigurationValidationError: If configuration validation fails
        """
        try:
            self._config = ObserverConfig(**config_data)
        except (ValidationError, ValueError) as e:
            errors = e.errors() if isinstance(e, ValidationError) else []
            raise ConfigurationValidationError(
                f"Configuration validation failed: {e}", validation_errors=errors
            ) from e

        return self._config

    def load_default(self) -> ObserverConfig:
        """Load configuration with default values only."""
        self._config = ObserverConfig()
        self._config_file_path = None
        return self._config

    def find_config_file(self, filename: str = CONFIG_FILENAME) -> Path | None:
        """Find configuration file in standard locations.

        Search order:
        1. GH_OBSERVER_CONFIG_PATH environment variable (file or directory)
        2. ~/.config/gh-observer/

        Args:
            filename: Configuration filename to search for

        Returns:
            Path to found configuration file, or None if not found
        """
        search_paths = []

        env_path_str = os.getenv(CONFIG_PATH_ENV_VAR)
        if env_path_str:
            env_path = Path(env_path_str).expanduser()
            if env_path.is_dir():
                search_paths.append(env_path / filename)
            else:
                search_paths.append(env_path)

        search_paths.append(Path.home() / ".config" / "gh-observer" / filename)

        for path in search_paths:
            if path.exists() and path.is_file():
                return path

        return None

    def auto_load(self, config_filename: str = CONFIG_FILENAME) -> ObserverConfig:
        """Load from the first standard location that has a file, else defaults."""
        config_path = self.find_config_file(config_filename)

        if config_path is None:
            logger.debug("No configuration file found, using defaults")
            return self.load_default()

        return self.load_from_file(config_path)

    @property
    def config(self) -> ObserverConfig | None:
        """Get the loaded configuration."""
        return self._config

    @property
    def config_file_path(self) -> Path | None:
        """Get the path to the loaded configuration file."""
        return self._config_file_path

    @property
    def is_loaded(self) -> bool:
        """Check if configuration has been loaded."""
        return self._config is not None


def load_config(config_path: str | Path | None = None) -> ObserverConfig:
    """Load configuration from an explicit path or the standard locations.

    Args:
        config_path: Explicit path to configuration file

    Returns:
        Loaded configuration

    Raises:
        ConfigurationError: If configuration cannot be loaded or is invalid
    """
    loader = ConfigurationLoader()
    if config_path:
        return loader.load_from_file(config_path)
    return loader.auto_load()

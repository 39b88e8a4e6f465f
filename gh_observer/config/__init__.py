"""Configuration management for gh-observer.

Example usage:
    from gh_observer.config import load_config

    config = load_config()
    interval = config.refresh_interval
"""

from .exceptions import (
    ConfigurationError,
    ConfigurationFileError,
    ConfigurationValidationError,
)
from .loader import ConfigurationLoader, load_config
from .models import ColorConfig, GitHubSettings, LogLevel, ObserverConfig, parse_duration

__all__ = [
    "ColorConfig",
    "ConfigurationError",
    "ConfigurationFileError",
    "ConfigurationLoader",
    "ConfigurationValidationError",
    "GitHubSettings",
    "LogLevel",
    "ObserverConfig",
    "load_config",
    "parse_duration",
]

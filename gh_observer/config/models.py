"""Pydantic configuration models for gh-observer.

The configuration hierarchy follows this structure:
- ObserverConfig: Root configuration (poll cadence, logging)
- ColorConfig: ANSI 256-color indexes used by the live view
- GitHubSettings: API endpoints and HTTP client settings

Environment variables are substituted using the format ${VAR_NAME} with
optional defaults: ${VAR_NAME:default_value}
"""

import os
import re
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|h|m|s)")
_DURATION_UNITS = {"h": 3600.0, "m": 60.0, "s": 1.0, "ms": 0.001}


class LogLevel(str, Enum):
    """Supported logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


def parse_duration(value: Any) -> float:
    """Parse a duration into seconds.

    Numbers are taken as seconds. Strings may be plain numbers or Go-style
    durations such as ``"5s"``, ``"1m30s"`` or ``"500ms"``.

    Raises:
        ValueError: If the value cannot be parsed
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid duration: {value!r}")
    if isinstance(value, int | float):
        return float(value)
    if not isinstance(value, str):
        raise ValueError(f"Invalid duration: {value!r}")

    text = value.strip().lower()
    try:
        return float(text)
    except ValueError:
        pass

    position = 0
    total = 0.0
    for match in _DURATION_PART.finditer(text):
        if match.start() != position:
            break
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        position = match.end()

    if position == 0 or position != len(text):
        raise ValueError(f"Invalid duration: {value!r}")
    return total


class BaseConfigModel(BaseModel):
    """Base configuration model with environment variable substitution."""

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    @model_validator(mode="before")
    @classmethod
    def substitute_env_vars(cls, values: Any) -> Any:
        """Substitute environment variables in string values.

        Supports formats:
        - ${VAR_NAME} - Required environment variable
        - ${VAR_NAME:default} - Optional with default value

        Args:
            values: Raw configuration values

        Returns:
            Configuration values with environment variables substituted

        Raises:
            ValueError: If required environment variable is missing
        """
        if not isinstance(values, dict):
            return values

        def substitute_value(value: Any) -> Any:
            if isinstance(value, str):
                pattern = r"\$\{([^}:]+)(?::([^}]*))?\}"

                def replacer(match: re.Match[str]) -> str:
                    var_name = match.group(1)
                    default_value = match.group(2)

                    env_value = os.getenv(var_name)
                    if env_value is not None:
                        return env_value
                    elif default_value is not None:
                        return default_value
                    else:
                        raise ValueError(
                            f"Required environment variable '{var_name}' not found"
                        )

                return re.sub(pattern, replacer, value)
            elif isinstance(value, dict):
                return {k: substitute_value(v) for k, v in value.items()}
            elif isinstance(value, list):
                return [substitute_value(item) for item in value]
            else:
                return value

        return {key: substitute_value(value) for key, value in values.items()}


class ColorConfig(BaseConfigModel):
    """Terminal colors for each check state, as ANSI 256-color indexes."""

    success: int = Field(default=10, ge=0, le=255, description="Passed checks")
    failure: int = Field(default=9, ge=0, le=255, description="Failed checks")
    running: int = Field(default=11, ge=0, le=255, description="Running checks")
    queued: int = Field(default=8, ge=0, le=255, description="Queued checks")


class GitHubSettings(BaseConfigModel):
    """GitHub endpoint and HTTP client settings."""

    api_url: str = Field(
        default="https://api.github.com", description="REST API base URL"
    )

    graphql_url: str = Field(
        default="https://api.github.com/graphql", description="GraphQL endpoint"
    )

    timeout: int = Field(
        default=30, ge=1, le=300, description="Request timeout in seconds"
    )

    user_agent: str = Field(default="gh-observer/0.1", description="User-Agent header")

    @field_validator("api_url", "graphql_url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Only http(s) endpoints make sense here."""
        if not v.startswith(("https://", "http://")):
            raise ValueError("GitHub endpoints must be http(s) URLs")
        return v


class ObserverConfig(BaseConfigModel):
    """Root configuration for the observer."""

    refresh_interval: float = Field(
        default=5.0, description="Base polling interval in seconds"
    )

    log_level: LogLevel = Field(
        default=LogLevel.WARNING, description="Logging level"
    )

    colors: ColorConfig = Field(
        default_factory=ColorConfig, description="Check state colors"
    )

    github: GitHubSettings = Field(
        default_factory=GitHubSettings, description="GitHub API settings"
    )

    @field_validator("refresh_interval", mode="before")
    @classmethod
    def validate_refresh_interval(cls, v: Any) -> float:
        """Accept seconds or duration strings and require a positive interval."""
        seconds = parse_duration(v)
        if seconds <= 0:
            raise ValueError("refresh_interval must be positive")
        return seconds

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: Any) -> Any:
        """Allow lowercase level names in YAML."""
        return v.upper() if isinstance(v, str) else v

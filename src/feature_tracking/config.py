"""
Configuration management for the feature tracking service.

Loads configuration from YAML with ZERO defaults.
Every value must be explicitly specified or startup fails.
"""

from __future__ import annotations

import os
import re
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

__all__ = [
    "REDACTION_MARKER",
    "SENSITIVE_KEYWORDS",
    "BRISKConfig",
    "ConfigurationError",
    "HarrisConfig",
    "MatchingConfig",
    "RegionConfig",
    "ServerConfig",
    "ServiceConfig",
    "Settings",
    "ShiTomasiConfig",
    "TrackingConfig",
    "VisualizationConfig",
    "clear_settings_cache",
    "get_config_path",
    "get_safe_config",
    "get_settings",
    "is_sensitive_key",
    "load_settings",
    "load_yaml_config",
    "redact_sensitive_values",
]


class ConfigurationError(Exception):
    """Raised when configuration is invalid or missing."""


# Keywords that indicate sensitive data (case-insensitive)
SENSITIVE_KEYWORDS: frozenset[str] = frozenset(
    {
        "secret",
        "pass",
        "password",
        "token",
        "credential",
        "auth",
        "api_key",
        "apikey",
        "private",
        "bearer",
    }
)

_SENSITIVE_PATTERN = re.compile(
    r"(" + "|".join(re.escape(kw) for kw in SENSITIVE_KEYWORDS) + r")",
    re.IGNORECASE,
)

REDACTION_MARKER: str = "[REDACTED]"


class ServiceConfig(BaseModel):
    """Service identity configuration."""

    model_config = ConfigDict(extra="forbid")

    name: str
    version: str


class ShiTomasiConfig(BaseModel):
    """Shi-Tomasi corner detector configuration."""

    model_config = ConfigDict(extra="forbid")

    block_size: int = Field(..., ge=1)
    max_overlap: float = Field(..., ge=0.0, lt=1.0)
    quality_level: float = Field(..., gt=0.0)
    k: float


class HarrisConfig(BaseModel):
    """Harris corner detector configuration."""

    model_config = ConfigDict(extra="forbid")

    block_size: int = Field(..., ge=1)
    aperture_size: int
    min_response: int = Field(..., ge=0, le=255)
    k: float
    max_overlap: float = Field(..., ge=0.0)


class BRISKConfig(BaseModel):
    """BRISK descriptor extractor configuration."""

    model_config = ConfigDict(extra="forbid")

    threshold: int
    octaves: int = Field(..., ge=0)
    pattern_scale: float = Field(..., gt=0.0)


class MatchingConfig(BaseModel):
    """Descriptor matching configuration."""

    model_config = ConfigDict(extra="forbid")

    ratio_threshold: float = Field(..., gt=0.0, le=1.0)
    lsh_table_number: int = Field(..., ge=1)
    lsh_key_size: int = Field(..., ge=1)
    lsh_multi_probe_level: int = Field(..., ge=0)


class RegionConfig(BaseModel):
    """Axis-aligned region of interest in pixels."""

    model_config = ConfigDict(extra="forbid")

    x: int
    y: int
    width: int = Field(..., ge=0)
    height: int = Field(..., ge=0)


class TrackingConfig(BaseModel):
    """Frame-to-frame tracking configuration."""

    model_config = ConfigDict(extra="forbid")

    buffer_size: int = Field(..., ge=1)
    max_keypoints: int | None
    region: RegionConfig | None


class VisualizationConfig(BaseModel):
    """Debug visualization configuration."""

    model_config = ConfigDict(extra="forbid")

    mode: Literal["none", "window", "file"]
    output_dir: str


class ServerConfig(BaseModel):
    """HTTP server configuration."""

    model_config = ConfigDict(extra="forbid")

    host: str
    port: int
    log_level: str


class Settings(BaseModel):
    """
    Root configuration container.

    All fields are REQUIRED. No defaults exist.
    Missing fields cause immediate startup failure.

    Usage:
        from feature_tracking.config import get_settings
        settings = get_settings()
    """

    model_config = ConfigDict(extra="forbid")

    service: ServiceConfig
    shi_tomasi: ShiTomasiConfig
    harris: HarrisConfig
    brisk: BRISKConfig
    matching: MatchingConfig
    tracking: TrackingConfig
    visualization: VisualizationConfig
    server: ServerConfig


def load_yaml_config(config_path: Path) -> dict[str, Any]:
    """
    Load and parse YAML configuration file.

    Args:
        config_path: Path to config.yaml

    Returns:
        Parsed configuration dictionary

    Raises:
        ConfigurationError: If file is missing, empty, or invalid
    """
    if not config_path.exists():
        raise ConfigurationError(
            f"Configuration file not found: {config_path}\n"
            f"Expected location: {config_path.absolute()}\n"
            f"Create the file or set CONFIG_PATH environment variable."
        )

    try:
        with config_path.open() as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e

    if config is None:
        raise ConfigurationError(
            f"Configuration file is empty: {config_path}\n"
            f"All configuration values must be explicitly specified."
        )

    if not isinstance(config, dict):
        raise ConfigurationError(
            f"Configuration must be a YAML mapping, got {type(config).__name__}"
        )

    return config


def load_settings(yaml_config: dict[str, Any]) -> Settings:
    """
    Build typed settings from raw YAML config.

    Raises:
        ConfigurationError: If validation fails
    """
    try:
        return Settings(**yaml_config)
    except ValidationError as e:
        raise ConfigurationError(
            f"Configuration validation failed: {e}\n"
            f"All configuration values must be explicitly specified.\n"
            f"No default values are allowed."
        ) from e


def get_config_path() -> Path:
    """
    Determine configuration file path.

    Uses CONFIG_PATH environment variable if set, otherwise defaults
    to ./config.yaml relative to working directory.
    """
    config_path_str = os.environ.get("CONFIG_PATH")
    if config_path_str is None:
        config_path_str = "config.yaml"
    return Path(config_path_str)


@lru_cache
def get_settings() -> Settings:
    """Load, validate and cache the settings."""
    return load_settings(load_yaml_config(get_config_path()))


def clear_settings_cache() -> None:
    """Forget cached settings. Used in testing."""
    get_settings.cache_clear()


def is_sensitive_key(key: str) -> bool:
    """Check if a configuration key contains sensitive keywords."""
    return bool(_SENSITIVE_PATTERN.search(key))


def redact_sensitive_values(
    data: dict[str, Any],
    redaction_marker: str,
) -> dict[str, Any]:
    """
    Recursively redact sensitive values from configuration.

    Args:
        data: Configuration dictionary
        redaction_marker: String to replace sensitive values

    Returns:
        New dictionary with sensitive values redacted
    """
    result: dict[str, Any] = {}

    for key, value in data.items():
        if is_sensitive_key(key):
            result[key] = redaction_marker
        elif isinstance(value, dict):
            result[key] = redact_sensitive_values(value, redaction_marker)
        elif isinstance(value, list):
            result[key] = [
                redact_sensitive_values(item, redaction_marker) if isinstance(item, dict) else item
                for item in value
            ]
        else:
            result[key] = value

    return result


def get_safe_config() -> dict[str, Any]:
    """
    Get configuration with sensitive values redacted.

    Returns:
        Configuration dictionary safe for logging/API exposure
    """
    return redact_sensitive_values(get_settings().model_dump(), REDACTION_MARKER)

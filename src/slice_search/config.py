"""
Configuration management for the slice search service.

Loads configuration from YAML with explicit values for every setting.
Only `search.unit_norm_tolerance` may be `null`, which disables the
stored-vector norm check.
"""

from __future__ import annotations

import os
import re
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, PositiveFloat, ValidationError

__all__ = [
    "REDACTION_MARKER",
    "SENSITIVE_KEYWORDS",
    "CollectionConfig",
    "ConfigurationError",
    "EmbeddingsConfig",
    "LoggingConfig",
    "SearchConfig",
    "ServerConfig",
    "ServiceConfig",
    "Settings",
    "StoreConfig",
    "clear_settings_cache",
    "get_config_path",
    "get_safe_config",
    "get_settings",
    "is_sensitive_key",
    "load_yaml_config",
    "redact_sensitive_values",
]


class ConfigurationError(Exception):
    """Raised when configuration is invalid or missing."""

    pass


# Keywords that indicate sensitive data (case-insensitive)
SENSITIVE_KEYWORDS: frozenset[str] = frozenset(
    {
        "key",
        "secret",
        "pass",
        "password",
        "token",
        "credential",
        "auth",
        "private",
        "bearer",
    }
)

_SENSITIVE_PATTERN = re.compile(
    r"(" + "|".join(re.escape(kw) for kw in SENSITIVE_KEYWORDS) + r")",
    re.IGNORECASE,
)

# Store keys name blobs, they are not secrets
_NON_SENSITIVE_KEYS: frozenset[str] = frozenset({"vectors_key", "metadata_key"})

REDACTION_MARKER: str = "[REDACTED]"


class ServiceConfig(BaseModel):
    """Service identity configuration."""

    model_config = ConfigDict(extra="forbid")

    name: str
    version: str


class StoreConfig(BaseModel):
    """Blob store location and ranged-read behavior."""

    model_config = ConfigDict(extra="forbid")

    path: str
    vectors_key: str
    metadata_key: str
    chunk_size_bytes: int = Field(..., gt=0)
    """Maximum size of a single chunk handed to the record decoder."""


class CollectionConfig(BaseModel):
    """Collection defaults used when the metadata object is absent."""

    model_config = ConfigDict(extra="forbid")

    default_dimension: int = Field(..., gt=0)


class SearchConfig(BaseModel):
    """Search parameters configuration."""

    model_config = ConfigDict(extra="forbid")

    default_k: int = Field(..., ge=1)
    max_k: int = Field(..., ge=1)
    slice_size: int = Field(..., ge=1)
    """Vectors per slice when /search scans the whole collection."""

    strict_records: bool
    """Fail on a partial record at end of stream instead of dropping it."""

    unit_norm_tolerance: PositiveFloat | None


class EmbeddingsConfig(BaseModel):
    """Embedding provider (OpenAI-compatible) configuration."""

    model_config = ConfigDict(extra="forbid")

    base_url: str
    model: str
    api_key: str
    timeout_seconds: float = Field(..., gt=0.0)


class ServerConfig(BaseModel):
    """HTTP server configuration."""

    model_config = ConfigDict(extra="forbid")

    host: str
    port: int


class LoggingConfig(BaseModel):
    """Logging configuration."""

    model_config = ConfigDict(extra="forbid")

    level: str
    format: Literal["json", "text"]


class Settings(BaseModel):
    """
    Root configuration container.

    All fields are REQUIRED. Missing fields cause immediate startup failure.

    Usage:
        from slice_search.config import get_settings
        settings = get_settings()
    """

    model_config = ConfigDict(extra="forbid")

    service: ServiceConfig
    store: StoreConfig
    collection: CollectionConfig
    search: SearchConfig
    embeddings: EmbeddingsConfig
    server: ServerConfig
    logging: LoggingConfig


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


def get_config_path() -> Path:
    """
    Determine configuration file path.

    Uses CONFIG_PATH environment variable if set, otherwise defaults
    to ./config.yaml relative to working directory.
    """
    return Path(os.environ.get("CONFIG_PATH", "config.yaml"))


@lru_cache
def get_settings() -> Settings:
    """
    Load, validate and cache the service settings.

    Raises:
        ConfigurationError: If the file is unusable or validation fails
    """
    yaml_config = load_yaml_config(get_config_path())
    try:
        settings = Settings(**yaml_config)
    except ValidationError as e:
        raise ConfigurationError(
            f"Configuration validation failed: {e}\n"
            f"All configuration values must be explicitly specified."
        ) from e

    if settings.search.default_k > settings.search.max_k:
        raise ConfigurationError(
            f"search.default_k ({settings.search.default_k}) must not exceed "
            f"search.max_k ({settings.search.max_k})"
        )
    return settings


def clear_settings_cache() -> None:
    """Drop cached settings so the next call reloads the file."""
    get_settings.cache_clear()


def is_sensitive_key(key: str) -> bool:
    """Check if a configuration key likely holds sensitive data."""
    if key in _NON_SENSITIVE_KEYS:
        return False
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

"""Frozen dataclasses for configuration and YAML loader with env-var interpolation."""

from __future__ import annotations

import os
import re
import types
import typing
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import yaml

from .exceptions import ConfigurationError

_ENV_PATTERN = re.compile(r"\$\{([^}]+)\}")

DEFAULT_METADATA_BASE_URI = "http://169.254.169.254/latest/meta-data/"


def _interpolate_env(value: str) -> str:
    """Replace ${ENV_VAR} placeholders with environment variable values."""

    def _replace(match: re.Match) -> str:
        env_key = match.group(1)
        env_val = os.environ.get(env_key)
        if env_val is None:
            raise ConfigurationError(f"Environment variable '{env_key}' is not set")
        return env_val

    return _ENV_PATTERN.sub(_replace, value)


def _walk_and_interpolate(obj: Any) -> Any:
    """Recursively interpolate env vars in strings throughout a nested structure."""
    if isinstance(obj, str):
        return _interpolate_env(obj)
    if isinstance(obj, dict):
        return {k: _walk_and_interpolate(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_walk_and_interpolate(v) for v in obj]
    return obj


@dataclass(frozen=True)
class AWSConfig:
    region: str = ""
    access_key: str = ""
    secret_key: str = ""
    endpoint: str = ""  # empty = regional default endpoint
    credential_profile: str = ""  # empty = use default boto3 credential chain


@dataclass(frozen=True)
class DiscoveryConfig:
    port: int | None = None
    cluster_name: str = "default"
    # Unfiltered when both are unset: every instance visible to the credentials is a member.
    filters: str | None = None  # "name1=value1,value2;name2=value3"
    tag_names: str | None = None  # "env,role"


@dataclass(frozen=True)
class MetadataConfig:
    base_uri: str = DEFAULT_METADATA_BASE_URI
    timeout: float | None = None  # None = transport default (no timeout)


@dataclass(frozen=True)
class PollingConfig:
    interval_seconds: int = 30
    jitter_seconds: int = 5
    max_backoff_seconds: int = 300
    backoff_base_seconds: int = 5


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"
    format: str = "json"  # "json" or "text"


@dataclass(frozen=True)
class AppConfig:
    aws: AWSConfig = field(default_factory=AWSConfig)
    discovery: DiscoveryConfig = field(default_factory=DiscoveryConfig)
    metadata: MetadataConfig = field(default_factory=MetadataConfig)
    polling: PollingConfig = field(default_factory=PollingConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _get_dataclass_type(ft: Any) -> type | None:
    """Return the underlying dataclass type from a type annotation (handles Optional/X|None)."""
    if isinstance(ft, type) and hasattr(ft, "__dataclass_fields__"):
        return ft
    if isinstance(ft, types.UnionType):
        args = [a for a in ft.__args__ if a is not type(None)]
        if len(args) == 1 and isinstance(args[0], type) and hasattr(args[0], "__dataclass_fields__"):
            return args[0]
    origin = getattr(ft, "__origin__", None)
    if origin is typing.Union:
        args = [a for a in ft.__args__ if a is not type(None)]
        if len(args) == 1 and isinstance(args[0], type) and hasattr(args[0], "__dataclass_fields__"):
            return args[0]
    return None


def _build_nested(cls: type, data: dict[str, Any]) -> Any:
    """Construct a frozen dataclass, recursively building nested dataclass fields."""
    if not isinstance(data, dict):
        return data
    hints = typing.get_type_hints(cls)
    kwargs: dict[str, Any] = {}
    for key, value in data.items():
        if key not in hints:
            continue
        dc_type = _get_dataclass_type(hints[key])
        if dc_type is not None and isinstance(value, dict):
            kwargs[key] = _build_nested(dc_type, value)
        else:
            kwargs[key] = value
    return cls(**kwargs)


def load_config(path: str | Path) -> AppConfig:
    """Load and validate configuration from a YAML file."""
    path = Path(path)
    if not path.is_file():
        raise ConfigurationError(f"Configuration file not found: {path}")

    with open(path) as f:
        raw = yaml.safe_load(f)

    if not isinstance(raw, dict):
        raise ConfigurationError("Configuration file must be a YAML mapping")

    raw = _walk_and_interpolate(raw)
    config = _build_nested(AppConfig, raw)
    config = _coerce_port(config)
    _validate(config)
    return config


def _coerce_port(config: AppConfig) -> AppConfig:
    """Accept the port as a string (e.g. from an env var) and store it as an int."""
    port = config.discovery.port
    if port is None or isinstance(port, bool) or isinstance(port, int):
        return config
    try:
        number = int(str(port).strip())
    except ValueError:
        raise ConfigurationError(f"discovery.port must be an integer, got '{port}'") from None
    return replace(config, discovery=replace(config.discovery, port=number))


def _validate(config: AppConfig) -> None:
    """Validate configuration values."""
    port = config.discovery.port
    if port is None:
        raise ConfigurationError("discovery.port is required")
    if isinstance(port, bool) or not isinstance(port, int) or not 0 < port < 65536:
        raise ConfigurationError(f"discovery.port must be between 1 and 65535, got {port!r}")

    if not config.aws.region:
        raise ConfigurationError("aws.region is required")

    if bool(config.aws.access_key) != bool(config.aws.secret_key):
        raise ConfigurationError("aws.access_key and aws.secret_key must be set together")

    for name in ("filters", "tag_names"):
        value = getattr(config.discovery, name)
        if value is not None and not isinstance(value, str):
            raise ConfigurationError(f"discovery.{name} must be a string")

    if not config.metadata.base_uri:
        raise ConfigurationError("metadata.base_uri must not be empty")

    if config.polling.interval_seconds < 1:
        raise ConfigurationError("polling.interval_seconds must be >= 1")

    if config.logging.format not in ("json", "text"):
        raise ConfigurationError("logging.format must be 'json' or 'text'")
